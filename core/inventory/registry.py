"""
core/inventory/registry.py - 리소스 종류 디스크립터 레지스트리

리소스 종류(ResourceKind)마다 수집 함수, 리포트 필드, 수집 제한 시간을 묶은
SourceDescriptor를 등록합니다. Orchestrator는 요청된 이름을 resolve()로 찾아
collect()만 호출하며, 리소스 종류별 분기를 갖지 않습니다.

새 리소스 종류 추가:
    1. types.py에 레코드 데이터 클래스와 ResourceKind 값 추가
    2. services/에 collect_* 함수 작성
    3. default_registry()에 SourceDescriptor 한 줄 추가

Usage:
    from core.inventory.registry import default_registry

    registry = default_registry()
    descriptor = registry.resolve("ec2")
    records = descriptor.collect(session, tag_filter, settings)
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass
from typing import TYPE_CHECKING

from botocore.exceptions import ClientError

from core.exceptions import ScanError, ScanTimeoutError
from core.parallel import call_with_timeout

from .services import (
    collect_ec2_instances,
    collect_ecr_repositories,
    collect_elastic_ips,
    collect_internet_gateways,
    collect_load_balancers,
    collect_nat_gateways,
    collect_rds_instances,
    collect_s3_buckets,
)
from .tags import TagFilter
from .types import InventoryRecord, ResourceKind

if TYPE_CHECKING:
    from core.config import InventorySettings

    from .session import AWSSession

# (session, tag_filter, settings) -> 레코드 목록
FetchFunc = Callable[..., list[InventoryRecord]]

# 등록되지 않은 리소스 종류에 대해 보고하는 고정 개수
SIMULATED_COUNTS = {"ec2": 3, "rds": 1, "elbv2": 2}


def simulate_count(name: str) -> int:
    """등록되지 않은 리소스 종류의 대체 개수 (알 수 없는 이름은 0)"""
    return SIMULATED_COUNTS.get(name.strip().lower(), 0)


@dataclass(frozen=True)
class SourceDescriptor:
    """리소스 종류 하나의 수집 방법

    Attributes:
        kind: 리소스 종류
        fetch: 수집 함수 (session, tag_filter, settings) -> 레코드 목록
        report_field: 리포트 status에서 레코드 목록을 담는 필드 이름
        timeout: 전체 수집 제한 시간 (초). None이면 settings.scan_timeout
    """

    kind: ResourceKind
    fetch: FetchFunc
    report_field: str
    timeout: float | None = None

    @property
    def name(self) -> str:
        return self.kind.value

    def count(self, records: list[InventoryRecord]) -> int:
        return len(records)

    def convert(self, records: list[InventoryRecord]) -> list[InventoryRecord]:
        """리포트에 담을 레코드 목록 (원본과 분리된 복사본)"""
        return list(records)

    def budget(self, settings: InventorySettings) -> float:
        return self.timeout if self.timeout is not None else settings.scan_timeout

    def collect(
        self,
        session: AWSSession,
        tag_filter: TagFilter | None,
        settings: InventorySettings,
    ) -> list[InventoryRecord]:
        """제한 시간 안에 수집 실행

        Raises:
            ScanTimeoutError: 제한 시간 초과
            ScanError: 수집 중 API 오류 (원인 예외 포함)
        """
        budget = self.budget(settings)
        try:
            return call_with_timeout(lambda: self.fetch(session, tag_filter, settings), budget)
        except TimeoutError as e:
            raise ScanTimeoutError(self.name, budget) from e
        except ScanError:
            raise
        except ClientError as e:
            raise ScanError.from_client_error(self.name, e.operation_name, e) from e
        except Exception as e:
            raise ScanError(self.name, "수집 실패", cause=e) from e


class SourceRegistry:
    """ResourceKind 순서를 유지하는 디스크립터 레지스트리"""

    def __init__(self, descriptors: Iterable[SourceDescriptor] = ()):
        self._descriptors: dict[ResourceKind, SourceDescriptor] = {}
        for descriptor in descriptors:
            self.register(descriptor)

    def register(self, descriptor: SourceDescriptor) -> None:
        """디스크립터 등록 (같은 종류가 있으면 교체)"""
        self._descriptors[descriptor.kind] = descriptor

    def get(self, kind: ResourceKind) -> SourceDescriptor | None:
        return self._descriptors.get(kind)

    def resolve(self, name: str) -> SourceDescriptor | None:
        """요청된 이름으로 디스크립터 찾기 (대소문자 무시)

        ResourceKind 값("NATGateways")과 리포트 필드 이름("natGateways") 모두 허용합니다.
        """
        key = name.strip().lower()
        for kind, descriptor in self._descriptors.items():
            if key in (kind.summary_key, descriptor.report_field.lower()):
                return descriptor
        return None

    @property
    def kinds(self) -> list[ResourceKind]:
        return list(self._descriptors)

    def __iter__(self) -> Iterator[SourceDescriptor]:
        return iter(self._descriptors.values())

    def __len__(self) -> int:
        return len(self._descriptors)

    def __contains__(self, kind: object) -> bool:
        return kind in self._descriptors


def default_registry() -> SourceRegistry:
    """기본 AWS 리소스 종류 8개가 등록된 레지스트리"""
    return SourceRegistry(
        [
            SourceDescriptor(ResourceKind.EC2, collect_ec2_instances, ResourceKind.EC2.report_field),
            SourceDescriptor(ResourceKind.RDS, collect_rds_instances, ResourceKind.RDS.report_field, timeout=10.0),
            SourceDescriptor(ResourceKind.ELBV2, collect_load_balancers, ResourceKind.ELBV2.report_field),
            SourceDescriptor(ResourceKind.S3, collect_s3_buckets, ResourceKind.S3.report_field, timeout=120.0),
            SourceDescriptor(ResourceKind.EIP, collect_elastic_ips, ResourceKind.EIP.report_field),
            SourceDescriptor(ResourceKind.ECR, collect_ecr_repositories, ResourceKind.ECR.report_field, timeout=60.0),
            SourceDescriptor(
                ResourceKind.NAT_GATEWAYS, collect_nat_gateways, ResourceKind.NAT_GATEWAYS.report_field
            ),
            SourceDescriptor(
                ResourceKind.INTERNET_GATEWAYS,
                collect_internet_gateways,
                ResourceKind.INTERNET_GATEWAYS.report_field,
            ),
        ]
    )
