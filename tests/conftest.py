"""
tests/conftest.py - pytest 공통 픽스처

AWS/Kubernetes API 모킹, 인벤토리 객체 생성 헬퍼, 고정 시계를 제공합니다.

Usage:
    def test_something(memory_store, fake_clock, aws_inventory):
        memory_store.add_inventory(aws_inventory)
        ...
"""

import os
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from types import SimpleNamespace
from typing import Any, Dict, List, Optional
from unittest.mock import MagicMock

import pytest

# 프로젝트 루트를 sys.path에 추가
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from core.config import InventorySettings  # noqa: E402
from core.inventory.session import AWSSession  # noqa: E402
from core.inventory.store import MemoryInventoryStore  # noqa: E402
from core.inventory.types import (  # noqa: E402
    AWSInventorySpec,
    CloudInventory,
    CloudInventorySpec,
    KubernetesInventorySpec,
    ObjectMeta,
)

# =============================================================================
# 환경 설정
# =============================================================================


@pytest.fixture(autouse=True)
def setup_test_environment():
    """테스트 환경 설정"""
    os.environ.setdefault("AWS_DEFAULT_REGION", "us-east-1")
    os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
    os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")

    yield


# =============================================================================
# 시계 / 설정
# =============================================================================


class FakeClock:
    """테스트용 시계 (advance로 시간 이동)"""

    def __init__(self, start: Optional[datetime] = None):
        self.now = start or datetime(2024, 5, 1, 10, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def fake_clock():
    """2024-05-01T10:00:00Z에서 시작하는 시계"""
    return FakeClock()


@pytest.fixture
def settings():
    """기본 인벤토리 설정 (Environment 태그 허용)"""
    return InventorySettings(tag_keys=("Environment", "Customer", "Team"))


@pytest.fixture
def memory_store(fake_clock):
    """고정 시계를 쓰는 메모리 저장소"""
    return MemoryInventoryStore(clock=fake_clock)


# =============================================================================
# 인벤토리 객체
# =============================================================================


def make_aws_inventory(
    resources: List[str],
    name: str = "prod-inventory",
    namespace: str = "default",
    tag_filter: str = "",
    region: str = "us-east-1",
) -> CloudInventory:
    """AWS 모드 CloudInventory 생성 헬퍼"""
    return CloudInventory(
        metadata=ObjectMeta(name=name, namespace=namespace),
        spec=CloudInventorySpec(
            mode="aws",
            aws=AWSInventorySpec(resources=list(resources), region=region, tag_filter=tag_filter),
        ),
    )


def make_kubernetes_inventory(
    namespaces: Optional[List[str]] = None,
    name: str = "cluster-images",
    namespace: str = "default",
    label_selector: str = "",
) -> CloudInventory:
    """Kubernetes 모드 CloudInventory 생성 헬퍼"""
    return CloudInventory(
        metadata=ObjectMeta(name=name, namespace=namespace),
        spec=CloudInventorySpec(
            mode="kubernetes",
            kubernetes=KubernetesInventorySpec(namespaces=list(namespaces or []), label_selector=label_selector),
        ),
    )


@pytest.fixture
def aws_inventory():
    """EC2만 수집하는 AWS 인벤토리"""
    return make_aws_inventory(["ec2"])


# =============================================================================
# AWS 모킹 픽스처
# =============================================================================


@pytest.fixture
def aws_session():
    """boto3 Session이 MagicMock인 AWSSession"""
    return AWSSession(boto_session=MagicMock(), region="us-east-1", account_id="123456789012")


@pytest.fixture
def mock_sts_client():
    """STS 클라이언트 모킹"""
    mock_client = MagicMock()

    mock_client.get_caller_identity.return_value = {
        "UserId": "AIDATEST123",
        "Account": "123456789012",
        "Arn": "arn:aws:iam::123456789012:user/test-user",
    }

    mock_client.assume_role.return_value = {
        "Credentials": {
            "AccessKeyId": "ASIATEST123",
            "SecretAccessKey": "test-secret",
            "SessionToken": "test-token",
            "Expiration": "2024-12-31T23:59:59Z",
        }
    }

    yield mock_client


def make_paginator(*pages: Dict[str, Any]) -> MagicMock:
    """paginate()가 주어진 페이지들을 반환하는 페이지네이터"""
    paginator = MagicMock()
    paginator.paginate.return_value = list(pages)
    return paginator


def create_mock_client_error(
    error_code: str,
    error_message: str = "Test error",
    operation_name: str = "TestOperation",
) -> Exception:
    """ClientError 생성 헬퍼"""
    from botocore.exceptions import ClientError

    return ClientError(
        {
            "Error": {
                "Code": error_code,
                "Message": error_message,
            }
        },
        operation_name,
    )


# =============================================================================
# Kubernetes 모킹 헬퍼
# =============================================================================


def make_pod(containers: List[tuple], statuses: Optional[List[tuple]] = None) -> SimpleNamespace:
    """kubernetes V1Pod 형태의 객체 생성

    Args:
        containers: (컨테이너 이름, 이미지) 목록
        statuses: (컨테이너 이름, imageID) 목록
    """
    return SimpleNamespace(
        spec=SimpleNamespace(containers=[SimpleNamespace(name=n, image=i) for n, i in containers]),
        status=SimpleNamespace(
            container_statuses=[SimpleNamespace(name=n, image_id=i) for n, i in (statuses or [])]
        ),
    )


def make_pod_list(pods: List[SimpleNamespace], continue_token: Optional[str] = None) -> SimpleNamespace:
    """kubernetes V1PodList 형태의 객체 생성"""
    return SimpleNamespace(items=pods, metadata=SimpleNamespace(_continue=continue_token))


# =============================================================================
# moto 통합
# =============================================================================


@pytest.fixture
def aws_credentials():
    """moto 사용 시 AWS 자격 증명 설정"""
    os.environ["AWS_ACCESS_KEY_ID"] = "testing"
    os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
    os.environ["AWS_SECURITY_TOKEN"] = "testing"
    os.environ["AWS_SESSION_TOKEN"] = "testing"
    os.environ["AWS_DEFAULT_REGION"] = "us-east-1"


@pytest.fixture
def moto_session(aws_credentials):
    """moto로 모킹된 리전의 AWSSession"""
    from moto import mock_aws

    with mock_aws():
        import boto3

        yield AWSSession(boto_session=boto3.Session(region_name="us-east-1"), region="us-east-1")


# =============================================================================
# 헬퍼 픽스처 (테스트 모듈에서 conftest를 직접 import하지 않도록)
# =============================================================================


@pytest.fixture
def inventory_factory():
    """make_aws_inventory / make_kubernetes_inventory 묶음"""
    return SimpleNamespace(aws=make_aws_inventory, kubernetes=make_kubernetes_inventory)


@pytest.fixture
def paginator():
    """make_paginator 헬퍼"""
    return make_paginator


@pytest.fixture
def client_error():
    """create_mock_client_error 헬퍼"""
    return create_mock_client_error


@pytest.fixture
def pod_factory():
    """make_pod / make_pod_list 묶음"""
    return SimpleNamespace(pod=make_pod, pod_list=make_pod_list)
