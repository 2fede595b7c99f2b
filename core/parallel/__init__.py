"""
core/parallel - AWS 호출 보조 모듈

스캐너 어댑터가 공통으로 사용하는 boto3 client 생성과 제한 시간 실행 헬퍼입니다.

주요 구성 요소:
- get_client: adaptive retry + 연결/읽기 타임아웃(budget 이하로 제한 가능)이 적용된 boto3 client
- call_with_timeout: 제한 시간 안에 함수 실행
- try_or_default: 부수 호출 실패 시 기본값 반환

Example:
    from core.parallel import call_with_timeout, get_client

    ecr = get_client(session.boto_session, "ecr", budget=10)
    images = call_with_timeout(lambda: ecr.describe_images(repositoryName=name), 10)
"""

from .client import get_client
from .timeout import call_with_timeout, try_or_default

__all__: list[str] = [
    "get_client",
    "call_with_timeout",
    "try_or_default",
]
