"""
core/inventory/tags.py - 태그 필터와 태그 허용 목록

수집 대상 선택용 태그 필터("Key=Value")와, 리포트에 남길 태그를
허용 목록으로 걸러내는 헬퍼를 제공합니다.

필터는 항상 전체 태그 집합에 대해 먼저 평가하고, 허용 목록 교집합은 그 다음에 적용합니다.

Usage:
    from core.inventory.tags import TagFilter, parse_tags, filter_allowed

    tag_filter = TagFilter.parse("Environment=prod")
    tags = parse_tags(resource.get("Tags"))

    if tag_filter is None or tag_filter.matches(tags):
        record_tags = filter_allowed(tags, settings.tag_keys)
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

TAG_PREFIX = "tag:"


def parse_tags(
    tag_list: Iterable[Mapping[str, Any]] | None,
    key_field: str = "Key",
    value_field: str = "Value",
) -> dict[str, str]:
    """AWS 태그 목록([{"Key": ..., "Value": ...}])을 딕셔너리로 변환

    필드 이름이 다른 API는 key_field/value_field로 지정합니다.
    """
    if not tag_list:
        return {}
    return {tag[key_field]: tag.get(value_field, "") for tag in tag_list if key_field in tag}


def filter_allowed(tags: Mapping[str, str], allowed: Iterable[str]) -> dict[str, str]:
    """허용 목록에 있는 태그만 남김"""
    allowed_keys = set(allowed)
    return {key: value for key, value in tags.items() if key in allowed_keys}


@dataclass(frozen=True)
class TagFilter:
    """단일 태그 일치 필터

    키와 값 모두 대소문자를 구분하여 정확히 일치해야 합니다.

    Attributes:
        key: 태그 키
        value: 태그 값
    """

    key: str
    value: str

    @classmethod
    def parse(cls, text: str | None) -> TagFilter | None:
        """ "Key=Value" 문자열 파싱

        - 앞의 "tag:" 접두사는 제거
        - 첫 번째 "="에서만 분리 (값에 "="가 있어도 됨)
        - "="가 없거나 키가 비어 있으면 필터 없음(None)
        """
        if not text:
            return None
        text = text.strip()
        if text.startswith(TAG_PREFIX):
            text = text[len(TAG_PREFIX) :]
        key, sep, value = text.partition("=")
        if not sep or not key:
            return None
        return cls(key=key, value=value)

    def matches(self, tags: Mapping[str, str]) -> bool:
        """전체 태그 집합이 필터와 일치하는지 확인"""
        return self.key in tags and tags[self.key] == self.value

    def to_ec2_filters(self) -> list[dict[str, Any]]:
        """EC2 계열 describe_* API의 Filters 파라미터로 변환

        API는 값의 * ? 를 와일드카드로 해석하므로 결과는 matches()로 다시 확인해야 합니다.
        """
        return [{"Name": f"{TAG_PREFIX}{self.key}", "Values": [self.value]}]

    def __str__(self) -> str:
        return f"{self.key}={self.value}"


def ec2_filters(tag_filter: TagFilter | None) -> dict[str, Any]:
    """paginate()에 넘길 Filters 키워드 인자 (필터가 없으면 빈 딕셔너리)"""
    if tag_filter is None:
        return {}
    return {"Filters": tag_filter.to_ec2_filters()}
