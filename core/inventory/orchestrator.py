"""
core/inventory/orchestrator.py - 인벤토리 수집 패스 실행

CloudInventory 하나에 대한 수집 패스(reconcile)를 실행합니다.

패스 순서:
    0. 인벤토리 조회 (없으면 아무것도 하지 않음), status 스냅샷 저장
    1. 재시도 폭주 방지: 최근 실패 직후면 건너뜀 (status 변경 없음)
    2. 세션 확보 (AWS 자격 증명 / kubeconfig)
    3. 수집: 요청된 리소스 종류를 순서대로, 첫 오류에서 중단
    4. 중복 방지: 최근 리포트가 있으면 새 리포트를 만들지 않음
    5. 리포트 생성 후 status 기록
    6. 요약을 인벤토리 status에 반영

모든 status 기록은 스냅샷 대비 merge patch로 전송하므로 다른 주체가 동시에 바꾼
필드를 덮어쓰지 않습니다. 어떤 실패도 예외로 빠져나가지 않고, 실패 상태 기록과
재시도 간격(ReconcileResult.requeue_after)으로 끝납니다.

Usage:
    from core.config import InventorySettings
    from core.inventory import InventoryOrchestrator, MemoryInventoryStore

    orchestrator = InventoryOrchestrator(store, InventorySettings.from_env())
    result = orchestrator.reconcile("default", "prod-inventory")
    if result.requeue_after:
        schedule(result.requeue_after)
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any

from core.config import InventorySettings
from core.exceptions import (
    InventoryConfigError,
    InventoryError,
    ScanError,
    ScanTimeoutError,
    format_error_for_user,
)
from core.parallel.timeout import call_with_timeout

from .registry import SourceRegistry, default_registry, simulate_count
from .services.kubernetes import PodImageScan, collect_container_images
from .session import SessionResolver
from .store import InventoryStore, build_merge_patch
from .tags import TagFilter
from .types import (
    CloudInventory,
    ContainerImage,
    InventoryMode,
    InventoryReport,
    InventoryStatus,
    ObjectMeta,
    ObjectReference,
    ReportSpec,
    ReportStatus,
    ResourceKind,
    utc_now,
)

logger = logging.getLogger(__name__)

RECENT_REPORT_MESSAGE = "Recent inventory already reported"

PodScanner = Callable[..., PodImageScan]


@dataclass
class InventoryRequest:
    """패스 하나의 수집 요청 (저장하지 않음)

    Attributes:
        mode: 수집 대상
        kinds: 요청된 리소스 종류 이름 (AWS) 또는 네임스페이스 (Kubernetes)
        filter: 태그 필터 ("Key=Value") 또는 라벨 셀렉터
        session: 확보한 AWS/Kubernetes 세션
    """

    mode: InventoryMode
    kinds: list[str]
    filter: str
    session: Any


@dataclass
class ScanOutcome:
    """수집 결과 (리포트와 status에 기록할 내용)"""

    summary: dict[str, int] = field(default_factory=dict)
    records: dict[ResourceKind, list[Any]] = field(default_factory=dict)
    container_images: list[ContainerImage] = field(default_factory=list)
    message: str = ""

    @property
    def item_count(self) -> int:
        return sum(self.summary.values())


@dataclass(frozen=True)
class ReconcileResult:
    """패스 실행 결과

    Attributes:
        requeue_after: 다음 패스까지의 간격 (None이면 재실행 예약 없음)
        success: 수집 성공 여부 (건너뛴 패스는 False)
        skipped: 건너뛴 이유 ("missing", "anti-storm", "recent-report")
        report_name: 생성된 리포트 이름
        message: status에 기록한 메시지
        summary: 수집 요약
    """

    requeue_after: timedelta | None = None
    success: bool = False
    skipped: str = ""
    report_name: str = ""
    message: str = ""
    summary: dict[str, int] = field(default_factory=dict)


class PassFailed(Exception):
    """패스 중단 (단계 이름 + 원인)"""

    def __init__(self, stage: str, error: Exception):
        super().__init__(f"{stage} failed: {format_error_for_user(error)}")
        self.stage = stage
        self.error = error


class InventoryOrchestrator:
    """CloudInventory 수집 패스 실행기

    패스별 상태를 인스턴스에 보관하지 않으므로 서로 다른 인벤토리의 패스를
    동시에 실행할 수 있습니다. 같은 인벤토리의 패스 직렬화는 호출자가 보장합니다.

    Args:
        store: 인벤토리/리포트 저장소
        settings: 인벤토리 설정 (시간 구간, 재시도 간격, 제한 시간)
        registry: 리소스 종류 레지스트리 (기본: default_registry())
        sessions: 세션 생성기 (기본: store 기반 SessionResolver)
        pod_scanner: Pod 이미지 수집 함수 (session, namespaces, label_selector, request_timeout=)
        clock: 현재 시각 함수 (테스트에서 교체)
    """

    def __init__(
        self,
        store: InventoryStore,
        settings: InventorySettings | None = None,
        registry: SourceRegistry | None = None,
        sessions: SessionResolver | None = None,
        pod_scanner: PodScanner = collect_container_images,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.store = store
        self.settings = settings or InventorySettings()
        self.registry = registry or default_registry()
        self.sessions = sessions or SessionResolver(store, self.settings)
        self.pod_scanner = pod_scanner
        self.clock = clock

    # =========================================================================
    # 패스 실행
    # =========================================================================

    def reconcile(self, namespace: str, name: str) -> ReconcileResult:
        """인벤토리 하나에 대한 수집 패스 실행"""
        try:
            inventory = self.store.get_inventory(namespace, name)
        except InventoryError as e:
            logger.error("인벤토리 조회 실패 %s/%s: %s", namespace, name, e)
            return ReconcileResult(requeue_after=self.settings.failure_requeue, message=str(e))

        if inventory is None:
            logger.info("인벤토리 %s/%s 없음, 건너뜀", namespace, name)
            return ReconcileResult(skipped="missing")

        snapshot = copy.deepcopy(inventory.status)

        if self._in_anti_storm_window(snapshot):
            logger.info("%s/%s 최근 실패로 수집 건너뜀", namespace, name)
            return ReconcileResult(requeue_after=self.settings.anti_storm_requeue, skipped="anti-storm")

        try:
            request = self._build_request(inventory)
            outcome = self._scan(request)
        except PassFailed as failure:
            return self._fail(inventory, snapshot, failure)

        success_requeue = self._success_requeue(request.mode)

        if self._has_recent_report(inventory):
            status = copy.deepcopy(snapshot)
            status.last_run_time = self.clock()
            status.last_run_success = True
            status.last_failed_time = None
            status.message = RECENT_REPORT_MESSAGE
            self._write_status_quietly(inventory, snapshot, status)
            logger.info("%s/%s 최근 리포트가 있어 리포트 생성 건너뜀", namespace, name)
            return ReconcileResult(
                requeue_after=success_requeue,
                success=True,
                skipped="recent-report",
                message=RECENT_REPORT_MESSAGE,
                summary=outcome.summary,
            )

        try:
            report_name = self._emit_report(inventory, request.mode, outcome)
        except PassFailed as failure:
            return self._fail(inventory, snapshot, failure)

        status = copy.deepcopy(snapshot)
        status.last_failed_time = None
        status.last_run_time = self.clock()
        status.last_run_success = True
        status.summary = dict(outcome.summary)
        status.item_count = outcome.item_count
        status.message = outcome.message
        if request.mode is InventoryMode.KUBERNETES:
            status.container_images = list(outcome.container_images)

        try:
            self._write_status(inventory, snapshot, status)
        except InventoryError as e:
            logger.error("%s/%s status 기록 실패: %s", namespace, name, e)
            return ReconcileResult(
                requeue_after=self.settings.failure_requeue,
                report_name=report_name,
                message=str(e),
                summary=outcome.summary,
            )

        logger.info("%s/%s 수집 완료: %s", namespace, name, outcome.summary)
        return ReconcileResult(
            requeue_after=success_requeue,
            success=True,
            report_name=report_name,
            message=outcome.message,
            summary=outcome.summary,
        )

    # =========================================================================
    # 단계별 처리
    # =========================================================================

    def _in_anti_storm_window(self, status: InventoryStatus) -> bool:
        if status.last_failed_time is None or status.last_run_success:
            return False
        return self.clock() - status.last_failed_time < self.settings.anti_storm_window

    def _success_requeue(self, mode: InventoryMode) -> timedelta:
        if mode is InventoryMode.KUBERNETES:
            return self.settings.kubernetes_requeue
        return self.settings.aws_requeue

    def _build_request(self, inventory: CloudInventory) -> InventoryRequest:
        spec = inventory.spec
        try:
            mode = InventoryMode(spec.mode.strip().lower())
        except ValueError as e:
            raise PassFailed("Config", InventoryConfigError("spec.mode", f"지원하지 않는 mode '{spec.mode}'")) from e

        if mode is InventoryMode.AWS:
            if spec.aws is None:
                raise PassFailed("Config", InventoryConfigError("spec.aws", "AWS 설정이 없습니다"))
            try:
                session = self.sessions.resolve_aws(inventory)
            except InventoryError as e:
                raise PassFailed("Session", e) from e
            return InventoryRequest(
                mode=mode,
                kinds=list(spec.aws.resources),
                filter=spec.aws.tag_filter or spec.filter,
                session=session,
            )

        try:
            k8s_session = self.sessions.resolve_kubernetes(inventory)
        except InventoryError as e:
            raise PassFailed("Session", e) from e
        k8s_spec = spec.kubernetes
        return InventoryRequest(
            mode=mode,
            kinds=list(k8s_spec.namespaces) if k8s_spec else [],
            filter=(k8s_spec.label_selector if k8s_spec else "") or spec.filter,
            session=k8s_session,
        )

    def _scan(self, request: InventoryRequest) -> ScanOutcome:
        if request.mode is InventoryMode.KUBERNETES:
            return self._scan_kubernetes(request)
        return self._scan_aws(request)

    def _scan_aws(self, request: InventoryRequest) -> ScanOutcome:
        """요청 순서대로 수집, 첫 번째 오류에서 중단"""
        tag_filter = TagFilter.parse(request.filter)
        outcome = ScanOutcome(message=f"AWS Inventory complete for account {request.session.account_id}")

        for requested in request.kinds:
            descriptor = self.registry.resolve(requested)
            if descriptor is None:
                key = requested.strip().lower()
                outcome.summary[key] = simulate_count(key)
                logger.warning("등록되지 않은 리소스 종류 '%s', 대체 개수 %d 사용", requested, outcome.summary[key])
                continue

            try:
                records = descriptor.collect(request.session, tag_filter, self.settings)
            except ScanError as e:
                raise PassFailed(f"{descriptor.name} inventory", e) from e

            outcome.summary[descriptor.kind.summary_key] = descriptor.count(records)
            outcome.records[descriptor.kind] = descriptor.convert(records)
            logger.debug("%s: %d개 수집", descriptor.name, len(records))

        return outcome

    def _scan_kubernetes(self, request: InventoryRequest) -> ScanOutcome:
        """Pod 이미지 수집 (scan_timeout 안에 끝나지 않으면 실패)"""
        budget = self.settings.scan_timeout
        try:
            scan = call_with_timeout(
                lambda: self.pod_scanner(
                    request.session,
                    request.kinds,
                    request.filter,
                    request_timeout=self.settings.item_timeout,
                ),
                budget,
            )
        except TimeoutError as e:
            raise PassFailed("Kubernetes inventory", ScanTimeoutError("Pods", budget)) from e
        except Exception as e:
            raise PassFailed("Kubernetes inventory", ScanError("Pods", "Pod 목록 조회 실패", cause=e)) from e

        return ScanOutcome(
            summary=scan.summary,
            container_images=list(scan.images),
            message=f"Kubernetes inventory complete for cluster {scan.cluster}",
        )

    def _has_recent_report(self, inventory: CloudInventory) -> bool:
        """같은 인벤토리의 가장 최근 리포트가 중복 방지 구간 안에 있는지 확인

        목록 조회 실패는 경고만 남기고 리포트가 없는 것으로 간주합니다.
        """
        try:
            reports = self.store.list_reports(inventory.namespace)
        except Exception as e:
            logger.warning("리포트 목록 조회 실패, 중복 확인 생략: %s", e)
            return False

        latest: datetime | None = None
        for report in reports:
            created = report.metadata.creation_timestamp
            if report.source_name != inventory.name or created is None:
                continue
            if latest is None or created > latest:
                latest = created

        return latest is not None and self.clock() - latest < self.settings.freshness_window

    def _emit_report(self, inventory: CloudInventory, mode: InventoryMode, outcome: ScanOutcome) -> str:
        """리포트 생성 후 status 기록, 생성된 리포트 이름 반환"""
        settings = self.settings
        report = InventoryReport(
            metadata=ObjectMeta(namespace=inventory.namespace, generate_name=f"{inventory.name}-{mode.value}-"),
            spec=ReportSpec(
                source_ref=ObjectReference(
                    name=inventory.name,
                    namespace=inventory.namespace,
                    api_version=f"{settings.api_group}/{settings.api_version}",
                ),
                timestamp=self.clock(),
            ),
        )

        try:
            created = self.store.create_report(report)
        except Exception as e:
            raise PassFailed("Report creation", e) from e

        status = ReportStatus.from_records(outcome.records, outcome.summary, outcome.container_images)
        patch = build_merge_patch({"status": created.status.to_dict()}, {"status": status.to_dict()})
        try:
            self.store.patch_report_status(inventory.namespace, created.name, patch)
        except Exception as e:
            raise PassFailed("Report status", e) from e

        logger.info("리포트 생성: %s/%s", inventory.namespace, created.name)
        return created.name

    # =========================================================================
    # status 기록
    # =========================================================================

    def _write_status(self, inventory: CloudInventory, snapshot: InventoryStatus, status: InventoryStatus) -> None:
        patch = build_merge_patch({"status": snapshot.to_dict()}, {"status": status.to_dict()})
        if patch:
            self.store.patch_inventory_status(inventory.namespace, inventory.name, patch)

    def _write_status_quietly(
        self, inventory: CloudInventory, snapshot: InventoryStatus, status: InventoryStatus
    ) -> None:
        try:
            self._write_status(inventory, snapshot, status)
        except Exception as e:
            logger.error("%s/%s status 기록 실패: %s", inventory.namespace, inventory.name, e)

    def _fail(self, inventory: CloudInventory, snapshot: InventoryStatus, failure: PassFailed) -> ReconcileResult:
        message = str(failure)
        logger.error(
            "%s/%s %s",
            inventory.namespace,
            inventory.name,
            message,
            exc_info=failure.error if self.settings.debug else None,
        )

        status = copy.deepcopy(snapshot)
        status.last_failed_time = self.clock()
        status.last_run_success = False
        status.message = message
        self._write_status_quietly(inventory, snapshot, status)

        return ReconcileResult(requeue_after=self.settings.failure_requeue, message=message)
