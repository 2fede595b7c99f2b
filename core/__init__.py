# core/__init__.py
"""
core - 클라우드 인벤토리 엔진

인벤토리 수집, 리포트 생성, 공통 인프라를 포함하는 최상위 패키지입니다.

아키텍처:
    core/
    ├── inventory/      # 수집 엔진 (모델, 수집기, 레지스트리, 저장소, 리포트)
    ├── parallel/       # boto3 client 생성, 제한 시간 실행
    ├── config.py       # 중앙 설정 관리
    └── exceptions.py   # 통합 예외 계층

Usage:
    # 설정 사용
    from core.config import InventorySettings, get_default_region
    settings = InventorySettings.from_env()

    # 예외 처리 (권한 거부/스로틀링은 details["reason"]으로 구분)
    from core.exceptions import ScanError
    try:
        result = ec2.describe_instances()
    except ClientError as e:
        raise ScanError.from_client_error("EC2", "DescribeInstances", e) from e

    # 수집 패스
    from core.inventory import InventoryOrchestrator, KubernetesInventoryStore
    orchestrator = InventoryOrchestrator(KubernetesInventoryStore(), settings)
"""

from core import config, exceptions, inventory, parallel

__all__: list[str] = [
    # 서브패키지
    "inventory",
    "parallel",
    # 모듈
    "config",
    "exceptions",
]
