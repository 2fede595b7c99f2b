"""
core/inventory/services - 리소스 종류별 수집기 패키지

각 모듈은 ``collect_*`` 함수를 제공하며, 하나의 세션(계정/리전 또는 클러스터)에서
해당 리소스를 수집해 레코드 목록을 반환합니다. AWS 수집기는 모두
``(session, tag_filter, settings)`` 시그니처를 따르고, ``SourceRegistry``의
디스크립터가 이 함수들을 리소스 종류에 연결합니다.

리소스 종류:
    - Compute: EC2Instance
    - Database/Storage: RDSInstance, S3Bucket, ECRRepository
    - Load Balancing: LoadBalancer (ELBv2)
    - Network: ElasticIP, NATGateway, InternetGateway
    - Kubernetes: ContainerImage (Pod 이미지)
"""

from .database import collect_rds_instances
from .ec2 import collect_ec2_instances
from .ecr import collect_ecr_repositories
from .elb import collect_load_balancers
from .kubernetes import PodImageScan, collect_container_images, parse_image_reference
from .storage import collect_s3_buckets
from .vpc import collect_elastic_ips, collect_internet_gateways, collect_nat_gateways

__all__: list[str] = [
    "collect_ec2_instances",
    "collect_rds_instances",
    "collect_load_balancers",
    "collect_s3_buckets",
    "collect_elastic_ips",
    "collect_ecr_repositories",
    "collect_nat_gateways",
    "collect_internet_gateways",
    "collect_container_images",
    "parse_image_reference",
    "PodImageScan",
]
