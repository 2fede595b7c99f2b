"""
core/inventory/types.py - 인벤토리 데이터 모델

리소스 레코드, 인벤토리 객체(CloudInventory), 리포트 객체(CloudInventoryReport)의
데이터 클래스 정의. 모든 모델은 CRD 와이어 포맷(camelCase JSON, RFC3339 시각)으로
to_dict() / from_dict() 변환을 제공합니다.

카테고리:
- 리소스 레코드: EC2Instance, RDSInstance, LoadBalancer, S3Bucket, ElasticIP,
  ECRRepository, NATGateway, InternetGateway, ContainerImage
- 인벤토리: CloudInventory, CloudInventorySpec, InventoryStatus
- 리포트: InventoryReport, ReportSpec, ReportStatus
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Union

API_GROUP = "openproject.org"
API_VERSION = "v1alpha1"
INVENTORY_KIND = "CloudInventory"
REPORT_KIND = "CloudInventoryReport"


class ResourceKind(str, Enum):
    """AWS 리소스 종류 (레지스트리 순서 = 리포트 출력 순서)"""

    EC2 = "EC2"
    RDS = "RDS"
    ELBV2 = "ELBV2"
    S3 = "S3"
    EIP = "EIP"
    ECR = "ECR"
    NAT_GATEWAYS = "NATGateways"
    INTERNET_GATEWAYS = "InternetGateways"

    @property
    def summary_key(self) -> str:
        """summary 맵에서 사용하는 소문자 키 (예: natgateways)"""
        return self.value.lower()

    @property
    def report_field(self) -> str:
        """리포트 status의 필드 이름 (예: natGateways)"""
        return _REPORT_FIELDS[self]


_REPORT_FIELDS = {
    ResourceKind.EC2: "ec2",
    ResourceKind.RDS: "rds",
    ResourceKind.ELBV2: "elbv2",
    ResourceKind.S3: "s3",
    ResourceKind.EIP: "eip",
    ResourceKind.ECR: "ecr",
    ResourceKind.NAT_GATEWAYS: "natGateways",
    ResourceKind.INTERNET_GATEWAYS: "internetGateways",
}


class InventoryMode(str, Enum):
    """인벤토리 수집 대상"""

    AWS = "aws"
    KUBERNETES = "kubernetes"


# =============================================================================
# 와이어 포맷 헬퍼
# =============================================================================


def utc_now() -> datetime:
    """현재 UTC 시각 (초 단위 절삭, CRD 시각 정밀도와 동일)"""
    return datetime.now(timezone.utc).replace(microsecond=0)


def format_time(value: datetime | None) -> str | None:
    """datetime → RFC3339 문자열 (예: 2024-05-01T10:00:00Z)"""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def parse_time(value: Any) -> datetime | None:
    """RFC3339 문자열(또는 datetime) → timezone-aware datetime"""
    if not value:
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    text = str(value)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def _json_name(f: Any) -> str:
    return f.metadata.get("json") or _camel(f.name)


def _copy_value(value: Any) -> Any:
    if isinstance(value, list):
        return list(value)
    if isinstance(value, dict):
        return dict(value)
    return value


class WireRecord:
    """camelCase JSON 변환 믹스인

    필드 이름은 snake_case → camelCase로 변환하며,
    예외적인 이름은 field(metadata={"json": ...})로 지정합니다.
    """

    def to_dict(self) -> dict[str, Any]:
        return {_json_name(f): _copy_value(getattr(self, f.name)) for f in fields(self)}  # type: ignore[arg-type]

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Any:
        kwargs: dict[str, Any] = {}
        for f in fields(cls):  # type: ignore[arg-type]
            value = data.get(_json_name(f))
            if value is not None:
                kwargs[f.name] = _copy_value(value)
        return cls(**kwargs)


# =============================================================================
# 리소스 레코드
# =============================================================================


@dataclass
class EC2Instance(WireRecord):
    """EC2 인스턴스 정보

    Attributes:
        name: Name 태그 값
        instance_id: 인스턴스 ID
        state: 인스턴스 상태 (running, stopped 등)
        instance_type: 인스턴스 유형 (예: t3.micro)
        availability_zone: 가용 영역
        platform: 플랫폼 정보 (없으면 빈 문자열)
        public_ip: 퍼블릭 IP 주소
        private_dns: 프라이빗 DNS 이름
        private_ip: 프라이빗 IP 주소
        image_id: AMI ID
        vpc_id: 소속 VPC ID
        tags: 허용 목록으로 걸러낸 태그
    """

    name: str = ""
    instance_id: str = ""
    state: str = ""
    instance_type: str = field(default="", metadata={"json": "type"})
    availability_zone: str = field(default="", metadata={"json": "az"})
    platform: str = ""
    public_ip: str = ""
    private_dns: str = ""
    private_ip: str = ""
    image_id: str = ""
    vpc_id: str = ""
    tags: dict[str, str] = field(default_factory=dict)


@dataclass
class RDSInstance(WireRecord):
    """RDS DB 인스턴스 정보"""

    db_instance_identifier: str = ""
    engine: str = ""
    engine_version: str = ""
    instance_class: str = ""
    availability_zone: str = ""
    status: str = ""
    multi_az: bool = False
    publicly_accessible: bool = False
    storage_type: str = ""
    allocated_storage: int = 0
    vpc_id: str = ""
    tags: dict[str, str] = field(default_factory=dict)


@dataclass
class LoadBalancer(WireRecord):
    """ELBv2 로드밸런서 정보 (ALB/NLB/GWLB)

    Attributes:
        name: 로드밸런서 이름
        arn: 로드밸런서 ARN
        dns_name: DNS 이름
        scheme: internet-facing / internal
        lb_type: application / network / gateway
        vpc_id: 소속 VPC ID
        state: 프로비저닝 상태 (active 등)
        ip_address_type: ipv4 / dualstack
        security_groups: 보안 그룹 ID 목록
        subnets: 가용 영역별 서브넷 ID 목록
        tags: 허용 목록으로 걸러낸 태그
    """

    name: str = ""
    arn: str = ""
    dns_name: str = ""
    scheme: str = ""
    lb_type: str = field(default="", metadata={"json": "type"})
    vpc_id: str = ""
    state: str = ""
    ip_address_type: str = ""
    security_groups: list[str] = field(default_factory=list)
    subnets: list[str] = field(default_factory=list)
    tags: dict[str, str] = field(default_factory=dict)


@dataclass
class S3Bucket(WireRecord):
    """S3 버킷 정보

    block_all_public_access는 PublicAccessBlock 네 가지 설정이 모두 켜진 경우에만 True
    """

    name: str = ""
    region: str = ""
    block_all_public_access: bool = False
    tags: dict[str, str] = field(default_factory=dict)


@dataclass
class ElasticIP(WireRecord):
    """Elastic IP 정보"""

    allocation_id: str = ""
    public_ip: str = ""
    domain: str = ""
    instance_id: str = ""
    network_interface_id: str = ""
    private_ip: str = ""
    tags: dict[str, str] = field(default_factory=dict)


@dataclass
class ECRRepository(WireRecord):
    """ECR 리포지토리 정보 (가장 최근 푸시된 태그 이미지 포함)"""

    registry_id: str = ""
    repository_name: str = ""
    latest_image_tag: str = ""
    latest_image_digest: str = ""
    tags: dict[str, str] = field(default_factory=dict)


@dataclass
class NATGateway(WireRecord):
    """NAT Gateway 정보"""

    nat_gateway_id: str = ""
    vpc_id: str = ""
    subnet_id: str = ""
    state: str = ""
    tags: dict[str, str] = field(default_factory=dict)


@dataclass
class InternetGateway(WireRecord):
    """Internet Gateway 정보

    Attributes:
        internet_gateway_id: IGW ID
        attachments: 연결된 VPC ID 목록
        tags: 허용 목록으로 걸러낸 태그
    """

    internet_gateway_id: str = ""
    attachments: list[str] = field(default_factory=list)
    tags: dict[str, str] = field(default_factory=dict)


@dataclass
class ContainerImage(WireRecord):
    """클러스터에서 실행 중인 컨테이너 이미지

    Attributes:
        cluster: 클러스터 이름
        image: Pod spec에 적힌 이미지 문자열 그대로
        repository: 태그/다이제스트를 제외한 리포지토리
        version: 태그 (없으면 빈 문자열)
        sha: sha256 다이제스트 (없으면 빈 문자열)
    """

    cluster: str = ""
    image: str = ""
    repository: str = ""
    version: str = ""
    sha: str = ""

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        if not self.sha:
            data.pop("sha")
        return data


InventoryRecord = Union[
    EC2Instance,
    RDSInstance,
    LoadBalancer,
    S3Bucket,
    ElasticIP,
    ECRRepository,
    NATGateway,
    InternetGateway,
]

RECORD_TYPES: dict[ResourceKind, type[InventoryRecord]] = {
    ResourceKind.EC2: EC2Instance,
    ResourceKind.RDS: RDSInstance,
    ResourceKind.ELBV2: LoadBalancer,
    ResourceKind.S3: S3Bucket,
    ResourceKind.EIP: ElasticIP,
    ResourceKind.ECR: ECRRepository,
    ResourceKind.NAT_GATEWAYS: NATGateway,
    ResourceKind.INTERNET_GATEWAYS: InternetGateway,
}


# =============================================================================
# 공통 메타데이터
# =============================================================================


@dataclass
class ObjectMeta:
    """Kubernetes 객체 메타데이터 (사용하는 필드만)"""

    name: str = ""
    namespace: str = ""
    generate_name: str = ""
    creation_timestamp: datetime | None = None
    resource_version: str = ""
    uid: str = ""

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        for key, value in (
            ("name", self.name),
            ("namespace", self.namespace),
            ("generateName", self.generate_name),
            ("creationTimestamp", format_time(self.creation_timestamp)),
            ("resourceVersion", self.resource_version),
            ("uid", self.uid),
        ):
            if value:
                data[key] = value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> ObjectMeta:
        data = data or {}
        return cls(
            name=data.get("name", ""),
            namespace=data.get("namespace", ""),
            generate_name=data.get("generateName", ""),
            creation_timestamp=parse_time(data.get("creationTimestamp")),
            resource_version=data.get("resourceVersion", ""),
            uid=data.get("uid", ""),
        )


@dataclass
class SecretKeySelector:
    """Secret 참조 (name + key)"""

    name: str
    key: str = ""

    def to_dict(self) -> dict[str, Any]:
        data = {"name": self.name}
        if self.key:
            data["key"] = self.key
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> SecretKeySelector | None:
        if not data or not data.get("name"):
            return None
        return cls(name=data["name"], key=data.get("key", ""))


# =============================================================================
# CloudInventory (입력 객체)
# =============================================================================


@dataclass
class AWSInventorySpec:
    """AWS 모드 설정

    Attributes:
        resources: 수집할 리소스 종류 이름 목록 (대소문자 무시)
        region: 리전 (비어 있으면 Secret → us-east-1 순)
        tag_filter: "Key=Value" 형식 태그 필터
        credentials_secret_ref: 정적 자격 증명 Secret 참조
        assume_role_arn: AssumeRole 대상 역할 ARN
    """

    resources: list[str] = field(default_factory=list)
    region: str = ""
    tag_filter: str = ""
    credentials_secret_ref: SecretKeySelector | None = None
    assume_role_arn: str = ""

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"resources": list(self.resources)}
        if self.region:
            data["region"] = self.region
        if self.tag_filter:
            data["tagFilter"] = self.tag_filter
        if self.credentials_secret_ref:
            data["credentialsSecretRef"] = self.credentials_secret_ref.to_dict()
        if self.assume_role_arn:
            data["assumeRoleARN"] = self.assume_role_arn
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> AWSInventorySpec | None:
        if data is None:
            return None
        return cls(
            resources=list(data.get("resources") or []),
            region=data.get("region", ""),
            tag_filter=data.get("tagFilter", ""),
            credentials_secret_ref=SecretKeySelector.from_dict(data.get("credentialsSecretRef")),
            assume_role_arn=data.get("assumeRoleARN", ""),
        )


@dataclass
class KubernetesInventorySpec:
    """Kubernetes 모드 설정

    Attributes:
        namespaces: 대상 네임스페이스 (비어 있으면 전체)
        label_selector: Pod 라벨 셀렉터
        kubeconfig_secret_ref: 원격 클러스터 kubeconfig Secret 참조
    """

    namespaces: list[str] = field(default_factory=list)
    label_selector: str = ""
    kubeconfig_secret_ref: SecretKeySelector | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        if self.namespaces:
            data["namespaces"] = list(self.namespaces)
        if self.label_selector:
            data["labelSelector"] = self.label_selector
        if self.kubeconfig_secret_ref:
            data["kubeconfigSecretRef"] = self.kubeconfig_secret_ref.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> KubernetesInventorySpec | None:
        if data is None:
            return None
        return cls(
            namespaces=list(data.get("namespaces") or []),
            label_selector=data.get("labelSelector", ""),
            kubeconfig_secret_ref=SecretKeySelector.from_dict(data.get("kubeconfigSecretRef")),
        )


@dataclass
class CloudInventorySpec:
    """CloudInventory spec"""

    mode: str = InventoryMode.AWS.value
    filter: str = ""
    aws: AWSInventorySpec | None = None
    kubernetes: KubernetesInventorySpec | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"mode": self.mode}
        if self.filter:
            data["filter"] = self.filter
        if self.aws is not None:
            data["aws"] = self.aws.to_dict()
        if self.kubernetes is not None:
            data["kubernetes"] = self.kubernetes.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> CloudInventorySpec:
        data = data or {}
        return cls(
            mode=data.get("mode", InventoryMode.AWS.value),
            filter=data.get("filter", ""),
            aws=AWSInventorySpec.from_dict(data.get("aws")),
            kubernetes=KubernetesInventorySpec.from_dict(data.get("kubernetes")),
        )


@dataclass
class InventoryStatus:
    """CloudInventory status (요약 정보만 보관)

    불변 조건:
        - 성공할 때마다 last_failed_time은 비워짐
        - item_count == sum(summary.values())

    to_dict()는 빈 값을 생략합니다. 스냅샷과 비교한 merge patch에서
    생략된 키는 null(삭제)로 전송됩니다.
    """

    last_run_time: datetime | None = None
    last_failed_time: datetime | None = None
    last_run_success: bool = False
    item_count: int = 0
    message: str = ""
    summary: dict[str, int] = field(default_factory=dict)
    container_images: list[ContainerImage] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        if self.last_run_time:
            data["lastRunTime"] = format_time(self.last_run_time)
        if self.last_failed_time:
            data["lastFailedTime"] = format_time(self.last_failed_time)
        if self.last_run_success:
            data["lastRunSuccess"] = True
        if self.item_count:
            data["itemCount"] = self.item_count
        if self.message:
            data["message"] = self.message
        if self.summary:
            data["summary"] = dict(self.summary)
        if self.container_images:
            data["containerImages"] = [image.to_dict() for image in self.container_images]
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> InventoryStatus:
        data = data or {}
        return cls(
            last_run_time=parse_time(data.get("lastRunTime")),
            last_failed_time=parse_time(data.get("lastFailedTime")),
            last_run_success=bool(data.get("lastRunSuccess", False)),
            item_count=int(data.get("itemCount", 0) or 0),
            message=data.get("message", ""),
            summary={k: int(v) for k, v in (data.get("summary") or {}).items()},
            container_images=[ContainerImage.from_dict(i) for i in data.get("containerImages") or []],
        )


@dataclass
class CloudInventory:
    """인벤토리 객체 (사용자가 작성하는 입력 + 엔진이 쓰는 status)"""

    metadata: ObjectMeta
    spec: CloudInventorySpec
    status: InventoryStatus = field(default_factory=InventoryStatus)

    @property
    def name(self) -> str:
        return self.metadata.name

    @property
    def namespace(self) -> str:
        return self.metadata.namespace

    def to_dict(self) -> dict[str, Any]:
        return {
            "apiVersion": f"{API_GROUP}/{API_VERSION}",
            "kind": INVENTORY_KIND,
            "metadata": self.metadata.to_dict(),
            "spec": self.spec.to_dict(),
            "status": self.status.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CloudInventory:
        return cls(
            metadata=ObjectMeta.from_dict(data.get("metadata")),
            spec=CloudInventorySpec.from_dict(data.get("spec")),
            status=InventoryStatus.from_dict(data.get("status")),
        )


# =============================================================================
# CloudInventoryReport (출력 객체)
# =============================================================================


@dataclass(frozen=True)
class ObjectReference:
    """리포트가 가리키는 인벤토리 참조"""

    name: str
    namespace: str = ""
    kind: str = INVENTORY_KIND
    api_version: str = f"{API_GROUP}/{API_VERSION}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "namespace": self.namespace,
            "name": self.name,
            "apiVersion": self.api_version,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> ObjectReference:
        data = data or {}
        return cls(
            name=data.get("name", ""),
            namespace=data.get("namespace", ""),
            kind=data.get("kind", INVENTORY_KIND),
            api_version=data.get("apiVersion", f"{API_GROUP}/{API_VERSION}"),
        )


@dataclass(frozen=True)
class ReportSpec:
    """리포트 spec (출처와 생성 시각)"""

    source_ref: ObjectReference
    timestamp: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"sourceRef": self.source_ref.to_dict(), "timestamp": format_time(self.timestamp)}

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> ReportSpec:
        data = data or {}
        return cls(
            source_ref=ObjectReference.from_dict(data.get("sourceRef")),
            timestamp=parse_time(data.get("timestamp")),
        )


@dataclass(frozen=True)
class ReportStatus:
    """리포트 status (리소스 종류별 전체 목록 + 요약)"""

    ec2: list[EC2Instance] = field(default_factory=list)
    rds: list[RDSInstance] = field(default_factory=list)
    elbv2: list[LoadBalancer] = field(default_factory=list)
    s3: list[S3Bucket] = field(default_factory=list)
    eip: list[ElasticIP] = field(default_factory=list)
    ecr: list[ECRRepository] = field(default_factory=list)
    nat_gateways: list[NATGateway] = field(default_factory=list)
    internet_gateways: list[InternetGateway] = field(default_factory=list)
    container_images: list[ContainerImage] = field(default_factory=list)
    summary: dict[str, int] = field(default_factory=dict)

    @classmethod
    def from_records(
        cls,
        records: dict[ResourceKind, list[Any]],
        summary: dict[str, int],
        container_images: list[ContainerImage] | None = None,
    ) -> ReportStatus:
        """리소스 종류별 레코드 목록으로 status 생성"""
        kwargs = {_STATUS_ATTRS[kind]: list(items) for kind, items in records.items()}
        return cls(container_images=list(container_images or []), summary=dict(summary), **kwargs)

    def records(self, kind: ResourceKind) -> list[Any]:
        """리소스 종류에 해당하는 레코드 목록"""
        return list(getattr(self, _STATUS_ATTRS[kind]))

    @property
    def is_empty(self) -> bool:
        return not self.container_images and not any(self.records(kind) for kind in ResourceKind)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        for kind in ResourceKind:
            records = self.records(kind)
            if records:
                data[kind.report_field] = [record.to_dict() for record in records]
        if self.container_images:
            data["containerImages"] = [image.to_dict() for image in self.container_images]
        if self.summary:
            data["summary"] = dict(self.summary)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> ReportStatus:
        data = data or {}
        kwargs: dict[str, Any] = {}
        for kind, record_type in RECORD_TYPES.items():
            kwargs[_STATUS_ATTRS[kind]] = [record_type.from_dict(item) for item in data.get(kind.report_field) or []]
        return cls(
            container_images=[ContainerImage.from_dict(i) for i in data.get("containerImages") or []],
            summary={k: int(v) for k, v in (data.get("summary") or {}).items()},
            **kwargs,
        )


_STATUS_ATTRS = {
    ResourceKind.EC2: "ec2",
    ResourceKind.RDS: "rds",
    ResourceKind.ELBV2: "elbv2",
    ResourceKind.S3: "s3",
    ResourceKind.EIP: "eip",
    ResourceKind.ECR: "ecr",
    ResourceKind.NAT_GATEWAYS: "nat_gateways",
    ResourceKind.INTERNET_GATEWAYS: "internet_gateways",
}


@dataclass(frozen=True)
class InventoryReport:
    """인벤토리 리포트 (한 번 생성, status 한 번 기록, 삭제하지 않음)"""

    metadata: ObjectMeta
    spec: ReportSpec
    status: ReportStatus = field(default_factory=ReportStatus)

    @property
    def name(self) -> str:
        return self.metadata.name

    @property
    def source_name(self) -> str:
        return self.spec.source_ref.name

    def to_dict(self) -> dict[str, Any]:
        return {
            "apiVersion": f"{API_GROUP}/{API_VERSION}",
            "kind": REPORT_KIND,
            "metadata": self.metadata.to_dict(),
            "spec": self.spec.to_dict(),
            "status": self.status.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> InventoryReport:
        return cls(
            metadata=ObjectMeta.from_dict(data.get("metadata")),
            spec=ReportSpec.from_dict(data.get("spec")),
            status=ReportStatus.from_dict(data.get("status")),
        )
