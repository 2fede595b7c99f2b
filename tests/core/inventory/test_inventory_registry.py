"""
tests/core/inventory/test_inventory_registry.py - 리소스 종류 레지스트리 테스트
"""

import threading

import pytest

from core.config import InventorySettings
from core.exceptions import ScanError, ScanTimeoutError
from core.inventory.registry import SourceDescriptor, SourceRegistry, default_registry, simulate_count
from core.inventory.tags import TagFilter
from core.inventory.types import ResourceKind


class TestDefaultRegistry:
    """기본 레지스트리 테스트"""

    def test_all_kinds_registered_in_order(self):
        registry = default_registry()
        assert registry.kinds == list(ResourceKind)
        assert len(registry) == 8

    @pytest.mark.parametrize(
        "name, kind",
        [
            ("ec2", ResourceKind.EC2),
            ("EC2", ResourceKind.EC2),
            (" elbv2 ", ResourceKind.ELBV2),
            ("NATGateways", ResourceKind.NAT_GATEWAYS),
            ("natGateways", ResourceKind.NAT_GATEWAYS),
            ("internetgateways", ResourceKind.INTERNET_GATEWAYS),
        ],
    )
    def test_resolve_case_insensitive(self, name, kind):
        descriptor = default_registry().resolve(name)
        assert descriptor is not None
        assert descriptor.kind is kind

    def test_resolve_unknown(self):
        assert default_registry().resolve("lambda") is None

    def test_budgets(self):
        """RDS 10초, S3 120초, ECR 60초, 나머지는 설정값"""
        registry = default_registry()
        settings = InventorySettings(scan_timeout=45.0)
        assert registry.get(ResourceKind.RDS).budget(settings) == 10.0
        assert registry.get(ResourceKind.S3).budget(settings) == 120.0
        assert registry.get(ResourceKind.ECR).budget(settings) == 60.0
        assert registry.get(ResourceKind.EC2).budget(settings) == 45.0


class TestSimulateCount:
    """등록되지 않은 종류의 대체 개수 테스트"""

    def test_known_names(self):
        assert simulate_count("EC2") == 3
        assert simulate_count("rds") == 1
        assert simulate_count("elbv2") == 2

    def test_unknown_name(self):
        assert simulate_count("unknown-kind") == 0


class TestSourceDescriptor:
    """SourceDescriptor.collect 테스트"""

    def _descriptor(self, fetch, timeout=None):
        return SourceDescriptor(ResourceKind.EC2, fetch, "ec2", timeout=timeout)

    def test_collect_passes_arguments(self, aws_session):
        calls = []

        def fetch(session, tag_filter, settings):
            calls.append((session, tag_filter))
            return ["a", "b"]

        tag_filter = TagFilter("Team", "ops")
        records = self._descriptor(fetch).collect(aws_session, tag_filter, InventorySettings())

        assert records == ["a", "b"]
        assert calls == [(aws_session, tag_filter)]

    def test_client_error_wrapped(self, aws_session, client_error):
        def fetch(session, tag_filter, settings):
            raise client_error("UnauthorizedOperation", operation_name="DescribeInstances")

        with pytest.raises(ScanError) as exc_info:
            self._descriptor(fetch).collect(aws_session, None, InventorySettings())

        assert exc_info.value.kind == "EC2"
        assert exc_info.value.details["error_code"] == "UnauthorizedOperation"

    def test_other_error_wrapped(self, aws_session):
        def fetch(session, tag_filter, settings):
            raise RuntimeError("connection reset")

        with pytest.raises(ScanError) as exc_info:
            self._descriptor(fetch).collect(aws_session, None, InventorySettings())
        assert isinstance(exc_info.value.cause, RuntimeError)

    def test_timeout(self, aws_session):
        release = threading.Event()

        def fetch(session, tag_filter, settings):
            release.wait(5)
            return []

        with pytest.raises(ScanTimeoutError):
            self._descriptor(fetch, timeout=0.05).collect(aws_session, None, InventorySettings())
        release.set()

    def test_convert_returns_copy(self):
        records = [1, 2]
        converted = self._descriptor(lambda *a: records).convert(records)
        assert converted == records
        assert converted is not records


class TestSourceRegistry:
    """SourceRegistry 테스트"""

    def test_register_replaces(self):
        registry = SourceRegistry()
        first = SourceDescriptor(ResourceKind.S3, lambda *a: [], "s3")
        second = SourceDescriptor(ResourceKind.S3, lambda *a: ["x"], "s3")

        registry.register(first)
        registry.register(second)

        assert len(registry) == 1
        assert registry.get(ResourceKind.S3) is second
        assert ResourceKind.S3 in registry
        assert list(registry) == [second]
