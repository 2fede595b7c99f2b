"""
core/inventory/services/storage.py - S3 버킷 수집

S3는 글로벌 서비스이므로 버킷 목록은 세션 리전에서 한 번 조회하고,
버킷별 설정(PublicAccessBlock, 태그)은 버킷이 있는 리전의 client로 조회합니다.
버킷 단위 호출에는 settings.item_timeout 제한 시간이 적용됩니다.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from botocore.exceptions import ClientError

from core.exceptions import get_error_code, is_not_found
from core.parallel import call_with_timeout, get_client, try_or_default

from ..tags import TagFilter, filter_allowed, parse_tags
from ..types import S3Bucket

if TYPE_CHECKING:
    from core.config import InventorySettings

    from ..session import AWSSession

logger = logging.getLogger(__name__)

# get_bucket_location의 레거시 응답값
LEGACY_LOCATIONS = {"EU": "eu-west-1"}


def collect_s3_buckets(
    session: AWSSession, tag_filter: TagFilter | None, settings: InventorySettings
) -> list[S3Bucket]:
    """S3 Bucket 리소스를 수집합니다.

    버킷마다 리전 → PublicAccessBlock → 태그 순으로 조회합니다.
    리전을 확인할 수 없는 버킷(오류/제한 시간 초과)은 경고 후 건너뛰고,
    PublicAccessBlock 설정이 없는 버킷은 "차단 안 됨"으로 기록합니다.

    Args:
        session: AWS 세션
        tag_filter: "Key=Value" 태그 필터 (None이면 전체)
        settings: 인벤토리 설정

    Returns:
        S3Bucket 데이터 클래스 목록
    """
    s3 = get_client(session.boto_session, "s3", region_name=session.region, budget=settings.item_timeout)
    regional_clients: dict[str, Any] = {session.region: s3}
    buckets = []

    for bucket in s3.list_buckets().get("Buckets", []):
        name = bucket["Name"]

        try:
            location = call_with_timeout(lambda: s3.get_bucket_location(Bucket=name), settings.item_timeout)
        except Exception as e:
            logger.warning("버킷 %s 리전 확인 실패, 건너뜀: %s", name, e)
            continue

        region = location.get("LocationConstraint") or session.region
        region = LEGACY_LOCATIONS.get(region, region)

        if region not in regional_clients:
            regional_clients[region] = get_client(
                session.boto_session, "s3", region_name=region, budget=settings.item_timeout
            )
        regional = regional_clients[region]

        block_all = _is_public_access_blocked(regional, name, settings.item_timeout)

        tags = try_or_default(
            lambda: parse_tags(regional.get_bucket_tagging(Bucket=name).get("TagSet")),
            default={},
            timeout=settings.item_timeout,
            operation="get_bucket_tagging",
            resource_id=name,
        )
        if tag_filter is not None and not tag_filter.matches(tags):
            continue

        buckets.append(
            S3Bucket(
                name=name,
                region=region,
                block_all_public_access=block_all,
                tags=filter_allowed(tags, settings.tag_keys),
            )
        )

    return buckets


def _is_public_access_blocked(s3, bucket_name: str, timeout: float) -> bool:
    """PublicAccessBlock 네 가지 설정이 모두 켜져 있는지 확인

    설정 자체가 없으면 False, 그 외 조회 실패는 경고 후 True(기본값)로 간주합니다.
    """
    try:
        response = call_with_timeout(lambda: s3.get_public_access_block(Bucket=bucket_name), timeout)
    except ClientError as e:
        if is_not_found(e):
            return False
        logger.warning("버킷 %s PublicAccessBlock 조회 실패: %s", bucket_name, get_error_code(e))
        return True
    except Exception as e:
        logger.warning("버킷 %s PublicAccessBlock 조회 실패: %s", bucket_name, e)
        return True

    config = response.get("PublicAccessBlockConfiguration", {})
    return all(
        [
            config.get("BlockPublicAcls", False),
            config.get("IgnorePublicAcls", False),
            config.get("BlockPublicPolicy", False),
            config.get("RestrictPublicBuckets", False),
        ]
    )
