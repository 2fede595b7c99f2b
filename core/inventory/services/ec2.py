"""
core/inventory/services/ec2.py - EC2 인스턴스 수집
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.parallel import get_client

from ..tags import TagFilter, ec2_filters, filter_allowed, parse_tags
from ..types import EC2Instance

if TYPE_CHECKING:
    from core.config import InventorySettings

    from ..session import AWSSession


def collect_ec2_instances(
    session: AWSSession, tag_filter: TagFilter | None, settings: InventorySettings
) -> list[EC2Instance]:
    """EC2 Instance 리소스를 수집합니다.

    태그 필터는 describe_instances의 "tag:<Key>" 필터로 API 쪽에서 적용하고
    (API는 * ? 를 와일드카드로 해석하므로 받은 뒤 값이 정확히 같은지 다시 확인),
    리포트에는 허용 목록의 태그만 남깁니다. 이름은 Name 태그에서 가져옵니다.

    Args:
        session: AWS 세션 (boto3 Session + 리전 + 계정)
        tag_filter: "Key=Value" 태그 필터 (None이면 전체)
        settings: 인벤토리 설정 (태그 허용 목록)

    Returns:
        EC2Instance 데이터 클래스 목록
    """
    ec2 = get_client(session.boto_session, "ec2", region_name=session.region)
    instances = []

    paginator = ec2.get_paginator("describe_instances")
    for page in paginator.paginate(**ec2_filters(tag_filter)):
        for reservation in page.get("Reservations", []):
            for inst in reservation.get("Instances", []):
                tags = parse_tags(inst.get("Tags"))
                if tag_filter is not None and not tag_filter.matches(tags):
                    continue

                instances.append(
                    EC2Instance(
                        name=tags.get("Name", ""),
                        instance_id=inst.get("InstanceId", ""),
                        state=inst.get("State", {}).get("Name", ""),
                        instance_type=inst.get("InstanceType", ""),
                        availability_zone=inst.get("Placement", {}).get("AvailabilityZone", ""),
                        platform=inst.get("PlatformDetails", ""),
                        public_ip=inst.get("PublicIpAddress", ""),
                        private_dns=inst.get("PrivateDnsName", ""),
                        private_ip=inst.get("PrivateIpAddress", ""),
                        image_id=inst.get("ImageId", ""),
                        vpc_id=inst.get("VpcId", ""),
                        tags=filter_allowed(tags, settings.tag_keys),
                    )
                )

    return instances
