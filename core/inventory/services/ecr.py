"""
core/inventory/services/ecr.py - ECR 리포지토리 수집
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING, Any

from core.parallel import call_with_timeout, get_client, try_or_default

from ..tags import TagFilter, filter_allowed, parse_tags
from ..types import ECRRepository

if TYPE_CHECKING:
    from core.config import InventorySettings

    from ..session import AWSSession

logger = logging.getLogger(__name__)

# 리포지토리 단위 호출 제한 시간 (초)
REPOSITORY_TIMEOUT = 10.0
# 최신 이미지를 고를 때 조회할 태그 이미지 수
IMAGE_SAMPLE_SIZE = 10


def collect_ecr_repositories(
    session: AWSSession, tag_filter: TagFilter | None, settings: InventorySettings
) -> list[ECRRepository]:
    """ECR Repository 리소스를 수집합니다.

    리포지토리마다 태그가 있는 이미지 일부를 조회해 가장 최근에 푸시된 이미지의
    태그와 다이제스트를 기록합니다. 이미지 조회에 실패하거나 제한 시간을 넘긴
    리포지토리는 경고 후 건너뜁니다.

    Args:
        session: AWS 세션
        tag_filter: "Key=Value" 태그 필터 (None이면 전체, 수집 후 적용)
        settings: 인벤토리 설정

    Returns:
        ECRRepository 데이터 클래스 목록
    """
    timeout = min(REPOSITORY_TIMEOUT, settings.item_timeout)
    ecr = get_client(session.boto_session, "ecr", region_name=session.region, budget=timeout)

    repositories = []
    paginator = ecr.get_paginator("describe_repositories")
    for page in paginator.paginate():
        repositories.extend(page.get("repositories", []))

    results = []
    for repo in repositories:
        name = repo.get("repositoryName", "")

        try:
            images = call_with_timeout(
                lambda: ecr.describe_images(
                    repositoryName=name,
                    maxResults=IMAGE_SAMPLE_SIZE,
                    filter={"tagStatus": "TAGGED"},
                ).get("imageDetails", []),
                timeout,
            )
        except Exception as e:
            logger.warning("리포지토리 %s 이미지 조회 실패, 건너뜀: %s", name, e)
            continue

        tags = try_or_default(
            lambda: parse_tags(ecr.list_tags_for_resource(resourceArn=repo.get("repositoryArn", "")).get("tags")),
            default={},
            timeout=timeout,
            operation="list_tags_for_resource",
            resource_id=name,
        )
        if tag_filter is not None and not tag_filter.matches(tags):
            continue

        latest_tag, latest_digest = _latest_image(images)
        results.append(
            ECRRepository(
                registry_id=repo.get("registryId", ""),
                repository_name=name,
                latest_image_tag=latest_tag,
                latest_image_digest=latest_digest,
                tags=filter_allowed(tags, settings.tag_keys),
            )
        )

    return results


def _latest_image(images: list[dict[str, Any]]) -> tuple[str, str]:
    """푸시 시각이 가장 늦은 이미지의 (첫 번째 태그, 다이제스트)"""
    latest_tag, latest_digest = "", ""
    latest_time: datetime | None = None

    for detail in images:
        pushed_at = detail.get("imagePushedAt")
        if pushed_at is None:
            continue
        if latest_time is None or pushed_at > latest_time:
            latest_time = pushed_at
            tags = detail.get("imageTags") or []
            latest_tag = tags[0] if tags else ""
            latest_digest = detail.get("imageDigest", "")

    return latest_tag, latest_digest
