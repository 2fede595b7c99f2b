"""
core/inventory - 인벤토리 수집/리포트 엔진

CloudInventory 객체를 읽어 AWS 계정 또는 Kubernetes 클러스터의 리소스를 수집하고,
결과를 CloudInventoryReport로 남긴 뒤 요약을 인벤토리 status에 반영합니다.

구성:
    - types.py: 레코드/인벤토리/리포트 데이터 모델 (CRD 와이어 포맷)
    - tags.py: 태그 파싱, 허용 목록, "Key=Value" 필터
    - services/: 리소스 종류별 수집기 (collect_*)
    - registry.py: 리소스 종류 → 수집기 디스크립터
    - session.py: 자격 증명 참조 → AWS/Kubernetes 세션
    - store.py: 인벤토리/리포트 저장소 (메모리, Kubernetes CRD)
    - orchestrator.py: 수집 패스 정책 (재시도 폭주 방지, 중복 리포트 방지)
    - report.py: 리포트 → 마크다운/CSV

Usage:
    from core.inventory import InventoryOrchestrator, KubernetesInventoryStore

    orchestrator = InventoryOrchestrator(KubernetesInventoryStore())
    result = orchestrator.reconcile("default", "prod-inventory")
"""

from .orchestrator import InventoryOrchestrator, ReconcileResult
from .registry import SourceDescriptor, SourceRegistry, default_registry
from .report import build_csv, build_inventory_markdown
from .session import AWSSession, KubernetesSession, SessionResolver
from .store import InventoryStore, KubernetesInventoryStore, MemoryInventoryStore
from .tags import TagFilter
from .types import (
    CloudInventory,
    ContainerImage,
    InventoryMode,
    InventoryReport,
    InventoryStatus,
    ResourceKind,
)

__all__: list[str] = [
    # 실행
    "InventoryOrchestrator",
    "ReconcileResult",
    # 레지스트리
    "SourceDescriptor",
    "SourceRegistry",
    "default_registry",
    # 리포트
    "build_csv",
    "build_inventory_markdown",
    # 세션
    "AWSSession",
    "KubernetesSession",
    "SessionResolver",
    # 저장소
    "InventoryStore",
    "MemoryInventoryStore",
    "KubernetesInventoryStore",
    # 모델
    "TagFilter",
    "CloudInventory",
    "ContainerImage",
    "InventoryMode",
    "InventoryReport",
    "InventoryStatus",
    "ResourceKind",
]
