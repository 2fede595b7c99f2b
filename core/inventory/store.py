"""
core/inventory/store.py - 인벤토리/리포트 객체 저장소

Orchestrator가 사용하는 객체 저장소 인터페이스(InventoryStore)와 구현체를 제공합니다.
상태 변경은 모두 JSON merge patch(RFC 7386)로 전달되므로, 패스 도중 다른 주체가
바꾼 필드는 덮어쓰지 않습니다.

구현체:
    - MemoryInventoryStore: 프로세스 내부 저장소 (테스트, 일회성 CLI 실행)
    - KubernetesInventoryStore: CustomObjectsApi 기반 CRD 저장소
"""

from __future__ import annotations

import base64
import copy
import logging
import random
from collections.abc import Callable
from datetime import datetime
from typing import Any, Protocol

from kubernetes import client as k8s_client
from kubernetes.client.rest import ApiException

from core.exceptions import StoreError

from .types import API_GROUP, API_VERSION, CloudInventory, InventoryReport, ObjectMeta, utc_now

logger = logging.getLogger(__name__)

INVENTORY_PLURAL = "cloudinventories"
REPORT_PLURAL = "cloudinventoryreports"
MERGE_PATCH = "application/merge-patch+json"

# Kubernetes generateName 접미사와 같은 문자 집합
_NAME_ALPHABET = "bcdfghjklmnpqrstvwxz2456789"
_NAME_SUFFIX_LENGTH = 5


# =============================================================================
# JSON merge patch (RFC 7386)
# =============================================================================


def build_merge_patch(original: dict[str, Any], modified: dict[str, Any]) -> dict[str, Any]:
    """original → modified로 바꾸는 merge patch 생성

    - modified에 없는 키는 None(삭제)
    - 양쪽 모두 dict인 값은 재귀적으로 비교
    - 리스트와 스칼라는 통째로 교체
    """
    patch: dict[str, Any] = {}
    for key in original:
        if key not in modified:
            patch[key] = None

    for key, value in modified.items():
        if key in original and original[key] == value:
            continue
        old = original.get(key)
        if isinstance(old, dict) and isinstance(value, dict):
            nested = build_merge_patch(old, value)
            if nested:
                patch[key] = nested
        else:
            patch[key] = copy.deepcopy(value)

    return patch


def apply_merge_patch(target: Any, patch: Any) -> Any:
    """merge patch 적용 (원본은 바꾸지 않고 새 객체 반환)"""
    if not isinstance(patch, dict):
        return copy.deepcopy(patch)

    result = copy.deepcopy(target) if isinstance(target, dict) else {}
    for key, value in patch.items():
        if value is None:
            result.pop(key, None)
        else:
            result[key] = apply_merge_patch(result.get(key), value)
    return result


def generate_name(prefix: str) -> str:
    """generateName 규칙으로 이름 생성 (prefix + 임의 5자)"""
    return prefix + "".join(random.choices(_NAME_ALPHABET, k=_NAME_SUFFIX_LENGTH))


# =============================================================================
# 저장소 인터페이스
# =============================================================================


class InventoryStore(Protocol):
    """Orchestrator가 사용하는 객체 저장소

    구현체의 모든 오류는 StoreError로 전달합니다.
    get_inventory는 객체가 없으면 None을 반환합니다.
    """

    def get_inventory(self, namespace: str, name: str) -> CloudInventory | None: ...

    def patch_inventory_status(self, namespace: str, name: str, patch: dict[str, Any]) -> None: ...

    def list_reports(self, namespace: str) -> list[InventoryReport]: ...

    def create_report(self, report: InventoryReport) -> InventoryReport: ...

    def patch_report_status(self, namespace: str, name: str, patch: dict[str, Any]) -> None: ...

    def get_secret(self, namespace: str, name: str) -> dict[str, str]: ...


# =============================================================================
# 메모리 저장소
# =============================================================================


class MemoryInventoryStore:
    """프로세스 내부 저장소

    객체는 와이어 포맷(dict)으로 보관하여 CRD 저장소와 같은 직렬화 경로를 거칩니다.

    Example:
        store = MemoryInventoryStore()
        store.add_inventory(inventory)
        store.add_secret("default", "aws-creds", {"aws_access_key_id": "..."})
    """

    def __init__(self, clock: Callable[[], datetime] = utc_now):
        self.clock = clock
        self.inventories: dict[tuple[str, str], dict[str, Any]] = {}
        self.reports: dict[tuple[str, str], dict[str, Any]] = {}
        self.secrets: dict[tuple[str, str], dict[str, str]] = {}

    def add_inventory(self, inventory: CloudInventory) -> None:
        self.inventories[(inventory.namespace, inventory.name)] = inventory.to_dict()

    def add_secret(self, namespace: str, name: str, data: dict[str, str]) -> None:
        self.secrets[(namespace, name)] = dict(data)

    def get_inventory(self, namespace: str, name: str) -> CloudInventory | None:
        data = self.inventories.get((namespace, name))
        return CloudInventory.from_dict(data) if data is not None else None

    def patch_inventory_status(self, namespace: str, name: str, patch: dict[str, Any]) -> None:
        key = (namespace, name)
        if key not in self.inventories:
            raise StoreError("patch_inventory_status", f"{namespace}/{name}")
        self.inventories[key] = apply_merge_patch(self.inventories[key], patch)

    def list_reports(self, namespace: str) -> list[InventoryReport]:
        return [InventoryReport.from_dict(data) for (ns, _), data in self.reports.items() if ns == namespace]

    def create_report(self, report: InventoryReport) -> InventoryReport:
        namespace = report.metadata.namespace
        name = report.metadata.name
        if not name:
            name = generate_name(report.metadata.generate_name)
            while (namespace, name) in self.reports:
                name = generate_name(report.metadata.generate_name)
        elif (namespace, name) in self.reports:
            raise StoreError("create_report", f"{namespace}/{name} 이미 존재")

        data = report.to_dict()
        data.pop("status", None)
        data["metadata"] = ObjectMeta(
            name=name,
            namespace=namespace,
            generate_name=report.metadata.generate_name,
            creation_timestamp=self.clock(),
        ).to_dict()
        self.reports[(namespace, name)] = data
        logger.debug("리포트 생성: %s/%s", namespace, name)
        return InventoryReport.from_dict(data)

    def patch_report_status(self, namespace: str, name: str, patch: dict[str, Any]) -> None:
        key = (namespace, name)
        if key not in self.reports:
            raise StoreError("patch_report_status", f"{namespace}/{name}")
        self.reports[key] = apply_merge_patch(self.reports[key], patch)

    def get_secret(self, namespace: str, name: str) -> dict[str, str]:
        try:
            return dict(self.secrets[(namespace, name)])
        except KeyError as e:
            raise StoreError("get_secret", f"{namespace}/{name}", cause=e) from e


# =============================================================================
# Kubernetes CRD 저장소
# =============================================================================


class KubernetesInventoryStore:
    """CustomObjectsApi 기반 CRD 저장소

    Args:
        api_client: kubernetes ApiClient (None이면 전역 설정 사용)
        group: CRD API 그룹
        version: CRD API 버전
    """

    def __init__(self, api_client: Any = None, group: str = API_GROUP, version: str = API_VERSION):
        self.group = group
        self.version = version
        self.custom = k8s_client.CustomObjectsApi(api_client)
        self.core = k8s_client.CoreV1Api(api_client)

    def get_inventory(self, namespace: str, name: str) -> CloudInventory | None:
        try:
            data = self.custom.get_namespaced_custom_object(self.group, self.version, namespace, INVENTORY_PLURAL, name)
        except ApiException as e:
            if e.status == 404:
                return None
            raise StoreError("get_inventory", f"{namespace}/{name}", cause=e) from e
        return CloudInventory.from_dict(data)

    def patch_inventory_status(self, namespace: str, name: str, patch: dict[str, Any]) -> None:
        try:
            self.custom.patch_namespaced_custom_object_status(
                self.group, self.version, namespace, INVENTORY_PLURAL, name, patch, _content_type=MERGE_PATCH
            )
        except ApiException as e:
            raise StoreError("patch_inventory_status", f"{namespace}/{name}", cause=e) from e

    def list_reports(self, namespace: str) -> list[InventoryReport]:
        try:
            data = self.custom.list_namespaced_custom_object(self.group, self.version, namespace, REPORT_PLURAL)
        except ApiException as e:
            raise StoreError("list_reports", namespace, cause=e) from e
        return [InventoryReport.from_dict(item) for item in data.get("items", [])]

    def create_report(self, report: InventoryReport) -> InventoryReport:
        body = report.to_dict()
        # status는 생성 후 별도 patch로 기록
        body.pop("status", None)
        namespace = report.metadata.namespace
        try:
            created = self.custom.create_namespaced_custom_object(
                self.group, self.version, namespace, REPORT_PLURAL, body
            )
        except ApiException as e:
            raise StoreError("create_report", f"{namespace}/{report.metadata.generate_name}", cause=e) from e
        return InventoryReport.from_dict(created)

    def patch_report_status(self, namespace: str, name: str, patch: dict[str, Any]) -> None:
        try:
            self.custom.patch_namespaced_custom_object_status(
                self.group, self.version, namespace, REPORT_PLURAL, name, patch, _content_type=MERGE_PATCH
            )
        except ApiException as e:
            raise StoreError("patch_report_status", f"{namespace}/{name}", cause=e) from e

    def get_secret(self, namespace: str, name: str) -> dict[str, str]:
        try:
            secret = self.core.read_namespaced_secret(name, namespace)
        except ApiException as e:
            raise StoreError("get_secret", f"{namespace}/{name}", cause=e) from e

        decoded = {key: base64.b64decode(value).decode("utf-8") for key, value in (secret.data or {}).items()}
        decoded.update(secret.string_data or {})
        return decoded
