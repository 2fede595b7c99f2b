"""
core/inventory/services/vpc.py - VPC/Network 리소스 수집

Elastic IP, NAT Gateway, Internet Gateway 수집.
세 API 모두 "tag:<Key>" 필터를 지원하므로 태그 필터는 API 쪽에서 적용합니다.
API 필터는 * ? 를 와일드카드로 해석하므로, 받은 결과도 값이 정확히 같은지 다시 확인합니다.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.parallel import get_client

from ..tags import TagFilter, ec2_filters, filter_allowed, parse_tags
from ..types import ElasticIP, InternetGateway, NATGateway

if TYPE_CHECKING:
    from core.config import InventorySettings

    from ..session import AWSSession


def collect_elastic_ips(
    session: AWSSession, tag_filter: TagFilter | None, settings: InventorySettings
) -> list[ElasticIP]:
    """Elastic IP 리소스를 수집합니다.

    describe_addresses는 페이지네이션이 없는 API이므로 한 번만 호출합니다.

    Args:
        session: AWS 세션
        tag_filter: "Key=Value" 태그 필터 (None이면 전체)
        settings: 인벤토리 설정

    Returns:
        ElasticIP 데이터 클래스 목록
    """
    ec2 = get_client(session.boto_session, "ec2", region_name=session.region)
    eips = []

    response = ec2.describe_addresses(**ec2_filters(tag_filter))
    for addr in response.get("Addresses", []):
        tags = parse_tags(addr.get("Tags"))
        if tag_filter is not None and not tag_filter.matches(tags):
            continue
        eips.append(
            ElasticIP(
                allocation_id=addr.get("AllocationId", ""),
                public_ip=addr.get("PublicIp", ""),
                domain=addr.get("Domain", ""),
                instance_id=addr.get("InstanceId", ""),
                network_interface_id=addr.get("NetworkInterfaceId", ""),
                private_ip=addr.get("PrivateIpAddress", ""),
                tags=filter_allowed(tags, settings.tag_keys),
            )
        )

    return eips


def collect_nat_gateways(
    session: AWSSession, tag_filter: TagFilter | None, settings: InventorySettings
) -> list[NATGateway]:
    """NAT Gateway 리소스를 수집합니다.

    describe_nat_gateways의 필터 파라미터 이름은 Filters가 아닌 Filter입니다.
    """
    ec2 = get_client(session.boto_session, "ec2", region_name=session.region)
    nat_gateways = []

    kwargs = {}
    if tag_filter is not None:
        kwargs["Filter"] = tag_filter.to_ec2_filters()

    paginator = ec2.get_paginator("describe_nat_gateways")
    for page in paginator.paginate(**kwargs):
        for nat in page.get("NatGateways", []):
            tags = parse_tags(nat.get("Tags"))
            if tag_filter is not None and not tag_filter.matches(tags):
                continue
            nat_gateways.append(
                NATGateway(
                    nat_gateway_id=nat.get("NatGatewayId", ""),
                    vpc_id=nat.get("VpcId", ""),
                    subnet_id=nat.get("SubnetId", ""),
                    state=nat.get("State", ""),
                    tags=filter_allowed(tags, settings.tag_keys),
                )
            )

    return nat_gateways


def collect_internet_gateways(
    session: AWSSession, tag_filter: TagFilter | None, settings: InventorySettings
) -> list[InternetGateway]:
    """Internet Gateway 리소스를 수집합니다 (attachments = 연결된 VPC ID 목록)."""
    ec2 = get_client(session.boto_session, "ec2", region_name=session.region)
    igws = []

    paginator = ec2.get_paginator("describe_internet_gateways")
    for page in paginator.paginate(**ec2_filters(tag_filter)):
        for igw in page.get("InternetGateways", []):
            tags = parse_tags(igw.get("Tags"))
            if tag_filter is not None and not tag_filter.matches(tags):
                continue
            igws.append(
                InternetGateway(
                    internet_gateway_id=igw.get("InternetGatewayId", ""),
                    attachments=[a.get("VpcId", "") for a in igw.get("Attachments", []) if a.get("VpcId")],
                    tags=filter_allowed(tags, settings.tag_keys),
                )
            )

    return igws
