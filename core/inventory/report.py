"""
core/inventory/report.py - 인벤토리 리포트 마크다운/CSV 생성

InventoryReport를 사람이 읽는 마크다운 문서로 변환합니다. 티켓 작성 등
외부 소비자가 CSV 블록을 다시 파싱하므로 컬럼 순서는 항상 결정적이어야 합니다.

출력 구조:
    ## Cloud Inventory Report
    (컨테이너 이미지 블록: 클러스터, Pod 수, 고유 이미지 수, 이미지 상세, CSV)
    ### AWS <종류> Inventory      (레코드가 있는 종류만, ResourceKind 순서)
    #### Summary                  (총계 + 분류별 개수, 분류 이름순)
    #### CSV Summary              (```csv 펜스 블록)

CSV 규칙:
    - 기본 컬럼은 종류별 고정, 이어서 해당 종류 레코드 태그 키의 합집합(정렬)
    - 태그가 없는 칸은 빈 값
    - 모든 값의 쉼표는 "\\,"로 치환 (CSV 따옴표 처리 대신)
    - 리스트 값은 "|"로 연결, bool은 true/false

레코드와 컨테이너 이미지가 하나도 없으면 안내 한 줄만 반환합니다.

Usage:
    from core.inventory.report import build_inventory_markdown

    markdown = build_inventory_markdown(report)
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any

from .types import ContainerImage, InventoryReport, ResourceKind, ReportStatus

REPORT_HEADER = "## Cloud Inventory Report\n"
IMAGE_CSV_COLUMNS = "cluster,image,repository,version,sha"
EC2_PRIORITY_STATES = ("running", "stopped")

# (CSV 헤더, 레코드 속성)
Column = tuple[str, str]


# =============================================================================
# 셀/CSV 헬퍼
# =============================================================================


def escape_cell(value: Any) -> str:
    """CSV 셀 문자열 변환 (쉼표 이스케이프, 리스트는 "|" 연결)"""
    if value is None:
        text = ""
    elif isinstance(value, bool):
        text = "true" if value else "false"
    elif isinstance(value, (list, tuple)):
        text = "|".join(str(item) for item in value)
    else:
        text = str(value)
    return text.replace(",", "\\,")


def collect_tag_keys(records: Iterable[Any]) -> list[str]:
    """레코드 태그 키의 합집합 (정렬)"""
    keys: set[str] = set()
    for record in records:
        keys.update(getattr(record, "tags", None) or {})
    return sorted(keys)


def _csv_lines(columns: list[Column], records: list[Any]) -> list[str]:
    tag_keys = collect_tag_keys(records)
    header = [name for name, _ in columns] + tag_keys
    lines = [",".join(escape_cell(h) for h in header)]

    for record in records:
        tags = getattr(record, "tags", None) or {}
        cells = [escape_cell(getattr(record, attr, "")) for _, attr in columns]
        cells.extend(escape_cell(tags.get(key, "")) for key in tag_keys)
        lines.append(",".join(cells))
    return lines


def _fenced(lines: list[str]) -> str:
    return "\n#### CSV Summary\n```csv\n" + "".join(line + "\n" for line in lines) + "```\n"


def _grouped(label: str, values: Iterable[str]) -> list[str]:
    """분류별 개수 줄 (분류 이름순)"""
    counts = Counter(value.lower() for value in values)
    return [f"- {label}: `{key}` → `{counts[key]}`" for key in sorted(counts)]


# =============================================================================
# 종류별 요약
# =============================================================================


def _ec2_summary(records: list[Any]) -> list[str]:
    counts = Counter(record.state.lower() for record in records)
    lines = [f"- Total Instances: `{len(records)}`"]
    for state in EC2_PRIORITY_STATES:
        if state in counts:
            lines.append(f"- {state.title()}: `{counts[state]}`")
    for state in sorted(counts):
        if state not in EC2_PRIORITY_STATES:
            lines.append(f"- {state.title()}: `{counts[state]}`")
    return lines


def _rds_summary(records: list[Any]) -> list[str]:
    return (
        [f"- Total DB Instances: `{len(records)}`"]
        + _grouped("Engine", (r.engine for r in records))
        + _grouped("Status", (r.status for r in records))
    )


def _elb_summary(records: list[Any]) -> list[str]:
    return (
        [f"- Total Load Balancers: `{len(records)}`"]
        + _grouped("Scheme", (r.scheme for r in records))
        + _grouped("Type", (r.lb_type for r in records))
    )


def _s3_summary(records: list[Any]) -> list[str]:
    public = sum(1 for r in records if not r.block_all_public_access)
    lines = [
        f"- Total Buckets: `{len(records)}`",
        f"- Potentially Public Buckets: `{public}`",
    ]
    for r in records:
        lines.append(
            f"- `{r.name}` (region: `{r.region}`, BlockAllPublicAccess: `{escape_cell(r.block_all_public_access)}`)"
        )
    return lines


def _eip_summary(records: list[Any]) -> list[str]:
    associated = sum(1 for r in records if r.instance_id or r.network_interface_id)
    return [
        f"- Total Elastic IPs: `{len(records)}`",
        f"- Associated: `{associated}`",
        f"- Unassociated: `{len(records) - associated}`",
    ]


def _ecr_summary(records: list[Any]) -> list[str]:
    lines = [f"- Total Repositories: `{len(records)}`", "", "#### Repositories & Latest Images:"]
    lines.extend(f"- `{r.repository_name}` → `{r.latest_image_tag}`" for r in records)
    return lines


def _nat_summary(records: list[Any]) -> list[str]:
    return [f"- Total NAT Gateways: `{len(records)}`"] + _grouped("State", (r.state for r in records))


def _igw_summary(records: list[Any]) -> list[str]:
    return [f"- Total Internet Gateways: `{len(records)}`"]


@dataclass(frozen=True)
class KindFormat:
    """리소스 종류별 출력 형식 (CSV 기본 컬럼 + 요약 생성 함수)"""

    columns: list[Column]
    summary: Callable[[list[Any]], list[str]]


KIND_FORMATS: dict[ResourceKind, KindFormat] = {
    ResourceKind.EC2: KindFormat(
        [
            ("Name", "name"),
            ("InstanceID", "instance_id"),
            ("State", "state"),
            ("Type", "instance_type"),
            ("AvailabilityZone", "availability_zone"),
            ("Platform", "platform"),
            ("PublicIP", "public_ip"),
            ("PrivateDNS", "private_dns"),
            ("PrivateIP", "private_ip"),
            ("ImageID", "image_id"),
            ("VPCID", "vpc_id"),
        ],
        _ec2_summary,
    ),
    ResourceKind.RDS: KindFormat(
        [
            ("Identifier", "db_instance_identifier"),
            ("Engine", "engine"),
            ("Version", "engine_version"),
            ("Class", "instance_class"),
            ("AZ", "availability_zone"),
            ("Status", "status"),
            ("MultiAZ", "multi_az"),
            ("Public", "publicly_accessible"),
            ("StorageType", "storage_type"),
            ("Allocated", "allocated_storage"),
            ("VPCID", "vpc_id"),
        ],
        _rds_summary,
    ),
    ResourceKind.ELBV2: KindFormat(
        [
            ("Name", "name"),
            ("ARN", "arn"),
            ("DNSName", "dns_name"),
            ("Scheme", "scheme"),
            ("Type", "lb_type"),
            ("VPCID", "vpc_id"),
            ("State", "state"),
            ("IPAddressType", "ip_address_type"),
            ("SecurityGroups", "security_groups"),
            ("Subnets", "subnets"),
        ],
        _elb_summary,
    ),
    ResourceKind.S3: KindFormat(
        [("name", "name"), ("region", "region"), ("BlockAllPublicAccess", "block_all_public_access")],
        _s3_summary,
    ),
    ResourceKind.EIP: KindFormat(
        [
            ("allocationId", "allocation_id"),
            ("publicIp", "public_ip"),
            ("domain", "domain"),
            ("instanceId", "instance_id"),
            ("networkInterfaceId", "network_interface_id"),
            ("privateIp", "private_ip"),
        ],
        _eip_summary,
    ),
    ResourceKind.ECR: KindFormat(
        [
            ("registryId", "registry_id"),
            ("repositoryName", "repository_name"),
            ("latestImageTag", "latest_image_tag"),
            ("latestImageDigest", "latest_image_digest"),
        ],
        _ecr_summary,
    ),
    ResourceKind.NAT_GATEWAYS: KindFormat(
        [("natGatewayId", "nat_gateway_id"), ("vpcId", "vpc_id"), ("subnetId", "subnet_id"), ("state", "state")],
        _nat_summary,
    ),
    ResourceKind.INTERNET_GATEWAYS: KindFormat(
        [("internetGatewayId", "internet_gateway_id"), ("attachments", "attachments")],
        _igw_summary,
    ),
}


# =============================================================================
# 공개 API
# =============================================================================


def build_csv(kind: ResourceKind, records: list[Any]) -> str:
    """리소스 종류 하나의 CSV (헤더 + 행, 펜스 제외)

    같은 레코드 목록이면 호출할 때마다 같은 문자열을 반환합니다.
    """
    lines = _csv_lines(KIND_FORMATS[kind].columns, records)
    return "".join(line + "\n" for line in lines)


def build_image_csv(images: list[ContainerImage]) -> str:
    """컨테이너 이미지 CSV (헤더 + 행, 펜스 제외)"""
    lines = [IMAGE_CSV_COLUMNS]
    for image in images:
        cells = (image.cluster, image.image, image.repository, image.version, image.sha)
        lines.append(",".join(escape_cell(cell) for cell in cells))
    return "".join(line + "\n" for line in lines)


def no_results_line(source_name: str) -> str:
    return f"_No inventory results found for `{source_name}`._\n"


def _image_section(status: ReportStatus) -> str:
    images = status.container_images
    parts = [
        f"- Cluster: `{images[0].cluster}`\n",
        f"- Total Pods: `{status.summary.get('pods', 0)}`\n",
        f"- Unique Images: `{status.summary.get('images', len(images))}`\n\n",
        "#### Image Details:\n",
    ]
    for image in images:
        parts.append(f"- `{image.image}`\n")
        parts.append(f"  - Repo: `{image.repository}`\n")
        parts.append(f"  - Tag: `{image.version}`\n")
        if image.sha:
            parts.append(f"  - SHA256: `{image.sha}`\n")
    parts.append("\n#### CSV Summary\n```csv\n" + build_image_csv(images) + "```\n")
    return "".join(parts)


def _kind_section(kind: ResourceKind, records: list[Any]) -> str:
    kind_format = KIND_FORMATS[kind]
    summary = "".join(line + "\n" for line in kind_format.summary(records))
    return (
        f"\n### AWS {kind.value} Inventory\n"
        + "#### Summary\n"
        + summary
        + _fenced(_csv_lines(kind_format.columns, records))
    )


def build_inventory_markdown(report: InventoryReport) -> str:
    """리포트 → 마크다운 문서

    부수 효과가 없는 순수 함수입니다.
    레코드와 컨테이너 이미지가 모두 없으면 안내 한 줄만 반환합니다.
    """
    status = report.status
    if status.is_empty:
        return no_results_line(report.source_name)

    parts = [REPORT_HEADER]
    if status.container_images:
        parts.append(_image_section(status))

    for kind in ResourceKind:
        records = status.records(kind)
        if records:
            parts.append(_kind_section(kind, records))

    return "".join(parts)
