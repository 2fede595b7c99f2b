"""
core/inventory/services/elb.py - ELBv2 로드밸런서 수집
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from core.parallel import get_client, try_or_default

from ..tags import TagFilter, filter_allowed, parse_tags
from ..types import LoadBalancer

if TYPE_CHECKING:
    from core.config import InventorySettings

    from ..session import AWSSession

logger = logging.getLogger(__name__)

# describe_tags는 한 번에 최대 20개 ARN
TAG_BATCH_SIZE = 20


def collect_load_balancers(
    session: AWSSession, tag_filter: TagFilter | None, settings: InventorySettings
) -> list[LoadBalancer]:
    """Load Balancer 리소스를 수집합니다 (ALB/NLB/GWLB).

    목록을 먼저 모두 조회한 뒤 태그를 20개씩 배치로 조회하고,
    태그 필터는 전체 태그 기준으로 수집 후 적용합니다.

    Args:
        session: AWS 세션
        tag_filter: "Key=Value" 태그 필터 (None이면 전체)
        settings: 인벤토리 설정 (태그 배치 조회 제한 시간)

    Returns:
        LoadBalancer 데이터 클래스 목록
    """
    elbv2 = get_client(session.boto_session, "elbv2", region_name=session.region, budget=settings.item_timeout)

    raw_lbs = []
    paginator = elbv2.get_paginator("describe_load_balancers")
    for page in paginator.paginate():
        raw_lbs.extend(page.get("LoadBalancers", []))

    tag_map = _fetch_tags(elbv2, [lb.get("LoadBalancerArn", "") for lb in raw_lbs], settings.item_timeout)

    load_balancers = []
    for lb in raw_lbs:
        arn = lb.get("LoadBalancerArn", "")
        tags = tag_map.get(arn, {})
        if tag_filter is not None and not tag_filter.matches(tags):
            continue

        load_balancers.append(
            LoadBalancer(
                name=lb.get("LoadBalancerName", ""),
                arn=arn,
                dns_name=lb.get("DNSName", ""),
                scheme=lb.get("Scheme", ""),
                lb_type=lb.get("Type", ""),
                vpc_id=lb.get("VpcId", ""),
                state=lb.get("State", {}).get("Code", ""),
                ip_address_type=lb.get("IpAddressType", ""),
                security_groups=list(lb.get("SecurityGroups", [])),
                subnets=[az.get("SubnetId", "") for az in lb.get("AvailabilityZones", [])],
                tags=filter_allowed(tags, settings.tag_keys),
            )
        )

    return load_balancers


def _fetch_tags(elbv2, arns: list[str], timeout: float) -> dict[str, dict[str, str]]:
    """ARN별 전체 태그를 배치로 조회 (실패한 배치는 태그 없음으로 처리)"""
    tag_map: dict[str, dict[str, str]] = {}
    arns = [arn for arn in arns if arn]

    for i in range(0, len(arns), TAG_BATCH_SIZE):
        batch_arns = arns[i : i + TAG_BATCH_SIZE]
        descriptions = try_or_default(
            lambda batch=batch_arns: elbv2.describe_tags(ResourceArns=batch).get("TagDescriptions", []),
            default=[],
            timeout=timeout,
            operation="describe_tags",
            resource_id=f"{len(batch_arns)} load balancers",
        )
        for tag_desc in descriptions:
            tag_map[tag_desc.get("ResourceArn", "")] = parse_tags(tag_desc.get("Tags"))

    return tag_map
