"""
core/inventory/services/database.py - RDS 인스턴스 수집
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.parallel import get_client

from ..tags import TagFilter, filter_allowed, parse_tags
from ..types import RDSInstance

if TYPE_CHECKING:
    from core.config import InventorySettings

    from ..session import AWSSession


def collect_rds_instances(
    session: AWSSession, tag_filter: TagFilter | None, settings: InventorySettings
) -> list[RDSInstance]:
    """RDS Instance 리소스를 수집합니다.

    describe_db_instances는 태그 필터를 지원하지 않으므로 응답의 TagList로
    수집 후 필터링합니다. VPC ID는 DB 서브넷 그룹에서 가져옵니다.

    Args:
        session: AWS 세션
        tag_filter: "Key=Value" 태그 필터 (None이면 전체)
        settings: 인벤토리 설정

    Returns:
        RDSInstance 데이터 클래스 목록
    """
    rds = get_client(session.boto_session, "rds", region_name=session.region)
    instances = []

    paginator = rds.get_paginator("describe_db_instances")
    for page in paginator.paginate():
        for db in page.get("DBInstances", []):
            tags = parse_tags(db.get("TagList"))
            if tag_filter is not None and not tag_filter.matches(tags):
                continue

            vpc_id = ""
            if db.get("DBSubnetGroup"):
                vpc_id = db["DBSubnetGroup"].get("VpcId", "")

            instances.append(
                RDSInstance(
                    db_instance_identifier=db.get("DBInstanceIdentifier", ""),
                    engine=db.get("Engine", ""),
                    engine_version=db.get("EngineVersion", ""),
                    instance_class=db.get("DBInstanceClass", ""),
                    availability_zone=db.get("AvailabilityZone", ""),
                    status=db.get("DBInstanceStatus", ""),
                    multi_az=db.get("MultiAZ", False),
                    publicly_accessible=db.get("PubliclyAccessible", False),
                    storage_type=db.get("StorageType", ""),
                    allocated_storage=db.get("AllocatedStorage", 0),
                    vpc_id=vpc_id,
                    tags=filter_allowed(tags, settings.tag_keys),
                )
            )

    return instances
