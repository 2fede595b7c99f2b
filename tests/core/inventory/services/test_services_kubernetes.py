"""
tests/core/inventory/services/test_services_kubernetes.py - Pod 이미지 수집기 테스트
"""

from unittest.mock import MagicMock

import pytest

from core.inventory.services import collect_container_images, parse_image_reference
from core.inventory.session import KubernetesSession


class TestParseImageReference:
    """이미지 문자열 분해 테스트"""

    @pytest.mark.parametrize(
        "image, expected",
        [
            ("nginx", ("nginx", "", "")),
            ("nginx:1.25", ("nginx", "1.25", "")),
            ("registry:5000/team/app", ("registry:5000/team/app", "", "")),
            ("registry:5000/team/app:2.0", ("registry:5000/team/app", "2.0", "")),
            ("ghcr.io/org/tool:v1@sha256:abc", ("ghcr.io/org/tool", "v1", "sha256:abc")),
        ],
    )
    def test_parse(self, image, expected):
        assert parse_image_reference(image) == expected

    def test_image_id_digest_preferred(self):
        repo, version, sha = parse_image_reference(
            "app:1.0@sha256:fromref", "docker-pullable://app@sha256:fromruntime"
        )
        assert (repo, version, sha) == ("app", "1.0", "sha256:fromruntime")


class TestCollectContainerImages:
    """Pod 이미지 수집 테스트"""

    def test_deduplicates_by_image(self, pod_factory):
        """같은 이미지를 쓰는 Pod 두 개 → 이미지 하나"""
        core_v1 = MagicMock()
        core_v1.list_pod_for_all_namespaces.return_value = pod_factory.pod_list(
            [
                pod_factory.pod([("app", "app:1.0")], [("app", "docker-pullable://app@sha256:aaa")]),
                pod_factory.pod([("app", "app:1.0"), ("proxy", "envoy:1.29")]),
            ]
        )
        session = KubernetesSession(core_v1=core_v1, cluster_name="prod")

        scan = collect_container_images(session)

        assert scan.pod_count == 2
        assert [i.image for i in scan.images] == ["app:1.0", "envoy:1.29"]
        assert scan.images[0].sha == "sha256:aaa"
        assert scan.images[0].cluster == "prod"
        assert scan.summary == {"pods": 2, "images": 2}

    def test_namespaces_and_pagination(self, pod_factory):
        core_v1 = MagicMock()
        core_v1.list_namespaced_pod.side_effect = [
            pod_factory.pod_list([pod_factory.pod([("a", "a:1")])], continue_token="next"),
            pod_factory.pod_list([pod_factory.pod([("b", "b:1")])]),
            pod_factory.pod_list([pod_factory.pod([("c", "c:1")])]),
        ]
        session = KubernetesSession(core_v1=core_v1)

        scan = collect_container_images(session, ["team-a", "team-b"], "app=web")

        assert [i.image for i in scan.images] == ["a:1", "b:1", "c:1"]
        calls = core_v1.list_namespaced_pod.call_args_list
        assert calls[0].kwargs == {
            "namespace": "team-a",
            "limit": 500,
            "label_selector": "app=web",
            "_request_timeout": 15.0,
        }
        assert calls[1].kwargs["_continue"] == "next"
        assert calls[2].kwargs["namespace"] == "team-b"
        core_v1.list_pod_for_all_namespaces.assert_not_called()

    def test_no_pods(self, pod_factory):
        core_v1 = MagicMock()
        core_v1.list_pod_for_all_namespaces.return_value = pod_factory.pod_list([])

        scan = collect_container_images(KubernetesSession(core_v1=core_v1))

        assert scan.summary == {"pods": 0, "images": 0}

    def test_request_timeout_on_every_page(self, pod_factory):
        """모든 list 호출에 응답 제한 시간 전달"""
        core_v1 = MagicMock()
        core_v1.list_pod_for_all_namespaces.side_effect = [
            pod_factory.pod_list([pod_factory.pod([("a", "a:1")])], continue_token="next"),
            pod_factory.pod_list([]),
        ]

        collect_container_images(KubernetesSession(core_v1=core_v1), request_timeout=3.0)

        calls = core_v1.list_pod_for_all_namespaces.call_args_list
        assert len(calls) == 2
        assert all(call.kwargs["_request_timeout"] == 3.0 for call in calls)
