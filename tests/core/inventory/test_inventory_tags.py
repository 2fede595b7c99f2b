"""
tests/core/inventory/test_inventory_tags.py - 태그 필터/허용 목록 테스트
"""

import pytest

from core.inventory.tags import TagFilter, ec2_filters, filter_allowed, parse_tags


class TestParseTags:
    """parse_tags 테스트"""

    def test_key_value_list(self):
        tags = parse_tags([{"Key": "Name", "Value": "web"}, {"Key": "Team", "Value": "ops"}])
        assert tags == {"Name": "web", "Team": "ops"}

    def test_none(self):
        assert parse_tags(None) == {}

    def test_custom_fields(self):
        tags = parse_tags([{"key": "Team", "value": "ops"}], key_field="key", value_field="value")
        assert tags == {"Team": "ops"}


class TestFilterAllowed:
    """허용 목록 테스트"""

    def test_keeps_only_allowed(self):
        tags = {"Name": "web", "Customer": "acme", "Environment": "prod"}
        assert filter_allowed(tags, ("Customer", "RPO")) == {"Customer": "acme"}


class TestTagFilter:
    """TagFilter 테스트"""

    def test_parse(self):
        assert TagFilter.parse("Environment=prod") == TagFilter("Environment", "prod")

    def test_parse_strips_prefix(self):
        assert TagFilter.parse("tag:Team=ops") == TagFilter("Team", "ops")

    def test_parse_splits_on_first_equals(self):
        assert TagFilter.parse("Query=a=b") == TagFilter("Query", "a=b")

    @pytest.mark.parametrize("text", ["", None, "Environment", "=prod"])
    def test_parse_invalid_means_no_filter(self, text):
        assert TagFilter.parse(text) is None

    def test_matches_is_exact_and_case_sensitive(self):
        tag_filter = TagFilter("Environment", "prod")
        assert tag_filter.matches({"Environment": "prod"})
        assert not tag_filter.matches({"Environment": "Prod"})
        assert not tag_filter.matches({"environment": "prod"})
        assert not tag_filter.matches({})

    def test_ec2_filters(self):
        assert ec2_filters(TagFilter("Team", "ops")) == {"Filters": [{"Name": "tag:Team", "Values": ["ops"]}]}
        assert ec2_filters(None) == {}

    def test_str(self):
        assert str(TagFilter("Team", "ops")) == "Team=ops"
