"""
core/parallel/timeout.py - 제한 시간 실행 헬퍼

스캐너 어댑터 전체 수집과 리소스 단위 부가 API 호출(S3 버킷 위치, ECR 이미지 등)에
제한 시간을 적용합니다. 제한 시간을 넘긴 작업은 기다리지 않고 버립니다.

주요 구성 요소:
- call_with_timeout: 제한 시간 안에 함수 실행, 초과 시 TimeoutError
- try_or_default: 실패/초과 시 기본값 반환 (부수 호출용)

Example:
    location = call_with_timeout(lambda: s3.get_bucket_location(Bucket=name), 15)

    tags = try_or_default(
        lambda: ecr.list_tags_for_resource(resourceArn=arn)["tags"],
        default=[],
        timeout=10,
        operation="list_tags_for_resource",
    )
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import TypeVar

from botocore.exceptions import ClientError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def call_with_timeout(func: Callable[[], T], timeout: float | None) -> T:
    """제한 시간 안에 함수 실행

    작업은 단기 워커 스레드에서 실행되며, 제한 시간을 넘기면 결과를 기다리지 않고
    TimeoutError를 발생시킵니다. 함수가 던진 예외는 그대로 전파됩니다.

    제한 시간을 넘긴 작업은 중단되지 않고 워커 스레드에서 끝까지 실행되며,
    인터프리터 종료 시 join됩니다. 네트워크 호출은 client 쪽 타임아웃
    (get_client의 budget, Kubernetes의 _request_timeout)을 같은 제한 시간 이하로
    맞춰 버려진 스레드가 오래 남지 않게 합니다.

    Args:
        func: 실행할 함수 (인자 없음)
        timeout: 제한 시간 (초). None 또는 0 이하이면 제한 없이 직접 실행

    Returns:
        함수 실행 결과

    Raises:
        TimeoutError: 제한 시간 초과
    """
    if timeout is None or timeout <= 0:
        return func()

    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="inventory-timeout")
    future = executor.submit(func)
    try:
        return future.result(timeout=timeout)
    except FutureTimeoutError as e:
        future.cancel()
        raise TimeoutError(f"{timeout:g}초 제한 시간 초과") from e
    finally:
        executor.shutdown(wait=False)


def try_or_default(
    func: Callable[[], T],
    default: T,
    timeout: float | None = None,
    operation: str = "",
    resource_id: str = "",
) -> T:
    """함수 실행, 실패하거나 제한 시간을 넘기면 기본값 반환

    부수적인 API 호출(태그 조회 등)이 실패해도 어댑터 전체를 중단하지 않고
    기본값으로 대체합니다. 실패는 DEBUG 로그로만 남깁니다.

    Args:
        func: 실행할 함수 (인자 없음)
        default: 실패 시 반환할 기본값
        timeout: 제한 시간 (초)
        operation: API 작업 이름 (로그용)
        resource_id: 관련 리소스 ID (로그용)

    Returns:
        함수 실행 결과 또는 실패 시 default 값
    """
    try:
        return call_with_timeout(func, timeout)
    except ClientError as e:
        error_code = e.response.get("Error", {}).get("Code", "Unknown")
        logger.debug("%s 실패 (%s): %s", operation, resource_id, error_code)
        return default
    except Exception as e:
        logger.debug("%s 실패 (%s): %s", operation, resource_id, e)
        return default
