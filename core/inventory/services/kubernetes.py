"""
core/inventory/services/kubernetes.py - 실행 중인 컨테이너 이미지 수집

Pod 목록에서 컨테이너 이미지를 모아 이미지 문자열 기준으로 중복을 제거합니다.
같은 이미지가 여러 Pod에 있으면 처음 본 항목을 유지하고, 처음 본 순서를 보존합니다.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from ..types import ContainerImage

if TYPE_CHECKING:
    from ..session import KubernetesSession

logger = logging.getLogger(__name__)

# list 호출 한 번에 가져올 Pod 수
PAGE_SIZE = 500
# list 호출 하나의 API 서버 응답 제한 시간 (초)
DEFAULT_REQUEST_TIMEOUT = 15.0
DIGEST_MARKER = "@sha256:"


@dataclass
class PodImageScan:
    """Pod 이미지 수집 결과

    Attributes:
        cluster: 클러스터 이름
        pod_count: 조회한 Pod 수
        images: 중복 제거된 이미지 목록 (처음 본 순서)
    """

    cluster: str
    pod_count: int = 0
    images: list[ContainerImage] = field(default_factory=list)

    @property
    def summary(self) -> dict[str, int]:
        return {"pods": self.pod_count, "images": len(self.images)}


def parse_image_reference(image: str, image_id: str = "") -> tuple[str, str, str]:
    """이미지 문자열을 (repository, version, sha)로 분해

    - "@" 뒤의 다이제스트는 리포지토리/태그에서 제외
    - 태그는 마지막 "/" 뒤에 오는 ":" 이후만 인정 (레지스트리 포트와 구분)
    - sha는 런타임 imageID의 "@sha256:" 부분을 우선, 없으면 이미지 문자열의 다이제스트

    Examples:
        >>> parse_image_reference("registry:5000/team/app:1.2")
        ('registry:5000/team/app', '1.2', '')
        >>> parse_image_reference("nginx", "docker-pullable://nginx@sha256:abc")
        ('nginx', '', 'sha256:abc')
    """
    name, _, reference_digest = image.partition("@")

    repository, version = name, ""
    colon = name.rfind(":")
    if colon > name.rfind("/"):
        repository, version = name[:colon], name[colon + 1 :]

    sha = ""
    if DIGEST_MARKER in image_id:
        sha = image_id.rpartition("@")[2]
    elif reference_digest:
        sha = reference_digest

    return repository, version, sha


def collect_container_images(
    session: KubernetesSession,
    namespaces: list[str] | None = None,
    label_selector: str = "",
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
) -> PodImageScan:
    """Pod의 컨테이너 이미지를 수집합니다.

    namespaces가 비어 있으면 전체 네임스페이스를, 아니면 지정한 네임스페이스를
    차례로 조회합니다. 모든 페이지(_continue)를 끝까지 읽습니다.

    Args:
        session: Kubernetes 세션 (CoreV1Api + 클러스터 이름)
        namespaces: 대상 네임스페이스 목록
        label_selector: Pod 라벨 셀렉터
        request_timeout: list 호출 하나의 제한 시간 (초, _request_timeout으로 전달)

    Returns:
        PodImageScan (Pod 수 + 중복 제거된 이미지)
    """
    result = PodImageScan(cluster=session.cluster_name)
    seen: set[str] = set()

    for pod in _iter_pods(session.core_v1, namespaces or [], label_selector, request_timeout):
        result.pod_count += 1

        statuses = (pod.status.container_statuses if pod.status else None) or []
        image_ids = {status.name: status.image_id or "" for status in statuses}

        for container in (pod.spec.containers if pod.spec else None) or []:
            image = container.image or ""
            if not image or image in seen:
                continue
            seen.add(image)

            repository, version, sha = parse_image_reference(image, image_ids.get(container.name, ""))
            result.images.append(
                ContainerImage(
                    cluster=session.cluster_name,
                    image=image,
                    repository=repository,
                    version=version,
                    sha=sha,
                )
            )

    logger.debug("%s: Pod %d개, 이미지 %d개", session.cluster_name, result.pod_count, len(result.images))
    return result


def _iter_pods(core_v1: Any, namespaces: list[str], label_selector: str, request_timeout: float):
    """대상 Pod를 페이지 단위로 모두 순회"""
    if namespaces:
        calls = [(core_v1.list_namespaced_pod, {"namespace": ns}) for ns in namespaces]
    else:
        calls = [(core_v1.list_pod_for_all_namespaces, {})]

    for list_call, scope in calls:
        token = None
        while True:
            kwargs: dict[str, Any] = dict(scope, limit=PAGE_SIZE, _request_timeout=request_timeout)
            if label_selector:
                kwargs["label_selector"] = label_selector
            if token:
                kwargs["_continue"] = token

            pod_list = list_call(**kwargs)
            yield from pod_list.items or []

            token = getattr(pod_list.metadata, "_continue", None) if pod_list.metadata else None
            if not token:
                break
