"""
core/parallel/client.py - 인벤토리 어댑터용 boto3 client 생성

어댑터는 session.client() 대신 get_client()로 client를 만듭니다.
adaptive retry와 연결 풀 설정은 공통이고, 읽기 타임아웃은 호출 쪽 제한 시간
(budget)을 넘지 않도록 줄일 수 있습니다.

call_with_timeout()은 제한 시간을 넘긴 작업을 버릴 뿐 멈추지는 못하므로,
버킷/리포지토리 단위 호출처럼 짧은 제한 시간이 걸린 client는 budget을 넘겨
소켓 수준에서도 같은 시점에 끊기도록 합니다.

Example:
    from core.parallel.client import get_client

    # 목록 조회 (기본 타임아웃)
    ec2 = get_client(session.boto_session, "ec2", region_name=session.region)

    # 버킷 단위 호출: 읽기 타임아웃을 item_timeout 이하로 제한
    s3 = get_client(session.boto_session, "s3", region_name=region, budget=settings.item_timeout)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Literal, cast

if TYPE_CHECKING:
    import boto3

RetryMode = Literal["legacy", "standard", "adaptive"]

# 스로틀링이 잦은 Describe/List 호출 기준
DEFAULT_MAX_ATTEMPTS = 5
DEFAULT_RETRY_MODE: RetryMode = "adaptive"
DEFAULT_CONNECT_TIMEOUT = 10.0  # 초
DEFAULT_READ_TIMEOUT = 30.0  # 초
# 리전별 S3 client를 버킷마다 재사용하므로 작게 유지
DEFAULT_MAX_POOL_CONNECTIONS = 10


def capped_timeout(timeout: float, budget: float | None) -> float:
    """budget을 넘지 않는 타임아웃 (budget이 없거나 0 이하이면 그대로)"""
    if budget is None or budget <= 0:
        return timeout
    return min(timeout, budget)


def get_client(
    session: boto3.Session,
    service_name: str,
    region_name: str | None = None,
    budget: float | None = None,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    retry_mode: RetryMode = DEFAULT_RETRY_MODE,
    connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
    read_timeout: float = DEFAULT_READ_TIMEOUT,
    max_pool_connections: int = DEFAULT_MAX_POOL_CONNECTIONS,
    **kwargs: Any,
) -> Any:
    """어댑터용 boto3 client 생성

    Args:
        session: boto3 Session (AWSSession.boto_session)
        service_name: AWS 서비스 이름 (ec2, s3, ecr 등)
        region_name: 리전 (None이면 세션 기본값)
        budget: 호출 하나의 제한 시간 (초). 주면 연결/읽기 타임아웃을 이 값 이하로 줄임
        max_attempts: 최대 시도 횟수
        retry_mode: 재시도 모드
        connect_timeout: 연결 타임아웃 (초)
        read_timeout: 읽기 타임아웃 (초)
        max_pool_connections: HTTP 연결 풀 크기
        **kwargs: session.client()에 전달할 추가 인자 (config는 병합)

    Returns:
        boto3 client
    """
    from botocore.config import Config

    config = Config(
        retries={"max_attempts": max_attempts, "mode": retry_mode},  # pyright: ignore[reportArgumentType]
        connect_timeout=capped_timeout(connect_timeout, budget),
        read_timeout=capped_timeout(read_timeout, budget),
        max_pool_connections=max_pool_connections,
    )

    if "config" in kwargs:
        config = config.merge(kwargs.pop("config"))

    return session.client(  # pyright: ignore[reportCallIssue]
        cast(Any, service_name),
        region_name=region_name,
        config=config,
        **kwargs,
    )
