"""
core/inventory/session.py - 프로바이더 세션 확보

인벤토리 spec의 자격 증명 참조를 실제 세션으로 바꿉니다.

AWS:
    1. credentialsSecretRef가 있으면 Secret의 정적 키 사용
       (aws_access_key_id, aws_secret_access_key, aws_region, aws_account_id)
    2. 없으면 실행 환경의 기본 자격 증명(IRSA, 환경변수, 프로파일)
       + assumeRoleARN이 있으면 AssumeRole
    리전 우선순위: spec.region → Secret의 aws_region → 기본 리전(us-east-1)

Kubernetes:
    1. kubeconfigSecretRef가 있으면 Secret의 kubeconfig 사용
       (클러스터 이름 = kubeconfig의 첫 번째 cluster, 없으면 "remote")
    2. 없으면 in-cluster 설정, 실패하면 로컬 kubeconfig (클러스터 이름 "local")
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import boto3
import yaml
from kubernetes import client as k8s_client
from kubernetes import config as k8s_config
from kubernetes.config.config_exception import ConfigException

from core.exceptions import InventoryConfigError, SessionError
from core.parallel import get_client

if TYPE_CHECKING:
    from core.config import InventorySettings

    from .store import InventoryStore
    from .types import CloudInventory

logger = logging.getLogger(__name__)

ROLE_SESSION_NAME = "openproject-inventory"
DEFAULT_KUBECONFIG_KEY = "kubeconfig"
LOCAL_CLUSTER = "local"
REMOTE_CLUSTER = "remote"


@dataclass
class AWSSession:
    """AWS 수집용 세션

    Attributes:
        boto_session: 자격 증명이 설정된 boto3 Session
        region: 수집 대상 리전
        account_id: 계정 ID (상태 메시지용)
    """

    boto_session: boto3.Session
    region: str
    account_id: str = ""


@dataclass
class KubernetesSession:
    """Kubernetes 수집용 세션"""

    core_v1: Any
    cluster_name: str = LOCAL_CLUSTER


def resolve_region(spec_region: str, secret_region: str, default_region: str) -> str:
    """spec → Secret → 기본값 순서로 리전 결정"""
    return spec_region or secret_region or default_region


def parse_cluster_name(kubeconfig: dict[str, Any]) -> str:
    """kubeconfig의 첫 번째 cluster 이름 (없으면 "remote")"""
    for cluster in kubeconfig.get("clusters") or []:
        name = cluster.get("name") if isinstance(cluster, dict) else None
        if name:
            return name
    return REMOTE_CLUSTER


class SessionResolver:
    """인벤토리 객체로부터 AWS/Kubernetes 세션 생성

    Secret 조회는 InventoryStore를 통해 인벤토리와 같은 네임스페이스에서 합니다.
    모든 실패는 SessionError로 변환됩니다.
    """

    def __init__(self, store: InventoryStore, settings: InventorySettings):
        self.store = store
        self.settings = settings

    # -------------------------------------------------------------------------
    # AWS
    # -------------------------------------------------------------------------

    def resolve_aws(self, inventory: CloudInventory) -> AWSSession:
        spec = inventory.spec.aws
        if spec is None:
            raise InventoryConfigError("spec.aws", "AWS 설정이 없습니다")

        try:
            if spec.credentials_secret_ref is not None:
                secret = self._read_secret(inventory.namespace, spec.credentials_secret_ref.name)
                return self._static_session(secret, spec.region)
            return self._ambient_session(spec.region, spec.assume_role_arn)
        except SessionError:
            raise
        except Exception as e:
            raise SessionError("aws", "세션 생성 실패", cause=e) from e

    def _static_session(self, secret: dict[str, str], spec_region: str) -> AWSSession:
        access_key = secret.get("aws_access_key_id", "")
        secret_key = secret.get("aws_secret_access_key", "")
        if not access_key or not secret_key:
            raise SessionError("aws", "Secret에 aws_access_key_id/aws_secret_access_key가 없습니다")

        region = resolve_region(spec_region, secret.get("aws_region", ""), self.settings.default_region)
        session = boto3.Session(
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
            aws_session_token=secret.get("aws_session_token") or None,
            region_name=region,
        )

        account_id = secret.get("aws_account_id") or self._caller_account(session, region)
        logger.info("정적 AWS 자격 증명 사용 (region=%s, account=%s)", region, account_id)
        return AWSSession(boto_session=session, region=region, account_id=account_id)

    def _ambient_session(self, spec_region: str, assume_role_arn: str) -> AWSSession:
        region = resolve_region(spec_region, "", self.settings.default_region)
        session = boto3.Session(region_name=region)

        if assume_role_arn:
            sts = get_client(session, "sts", region_name=region)
            credentials = sts.assume_role(RoleArn=assume_role_arn, RoleSessionName=ROLE_SESSION_NAME)["Credentials"]
            session = boto3.Session(
                aws_access_key_id=credentials["AccessKeyId"],
                aws_secret_access_key=credentials["SecretAccessKey"],
                aws_session_token=credentials["SessionToken"],
                region_name=region,
            )
            logger.info("AWS 역할 AssumeRole 완료: %s", assume_role_arn)

        account_id = self._caller_account(session, region)
        return AWSSession(boto_session=session, region=region, account_id=account_id)

    def _caller_account(self, session: boto3.Session, region: str) -> str:
        sts = get_client(session, "sts", region_name=region)
        account: str = sts.get_caller_identity()["Account"]
        return account

    # -------------------------------------------------------------------------
    # Kubernetes
    # -------------------------------------------------------------------------

    def resolve_kubernetes(self, inventory: CloudInventory) -> KubernetesSession:
        spec = inventory.spec.kubernetes
        ref = spec.kubeconfig_secret_ref if spec is not None else None

        try:
            if ref is not None:
                secret = self._read_secret(inventory.namespace, ref.name)
                key = ref.key or DEFAULT_KUBECONFIG_KEY
                if key not in secret:
                    raise SessionError("kubernetes", f"kubeconfig Secret에 '{key}' 키가 없습니다")
                return self._remote_session(secret[key])
            return self._local_session()
        except SessionError:
            raise
        except Exception as e:
            raise SessionError("kubernetes", "클러스터 연결 설정 실패", cause=e) from e

    def _remote_session(self, raw_kubeconfig: str) -> KubernetesSession:
        kubeconfig = yaml.safe_load(raw_kubeconfig)
        if not isinstance(kubeconfig, dict):
            raise SessionError("kubernetes", "kubeconfig 형식이 올바르지 않습니다")

        api_client = k8s_config.new_client_from_config_dict(kubeconfig)
        cluster_name = parse_cluster_name(kubeconfig)
        logger.info("원격 클러스터 kubeconfig 사용: %s", cluster_name)
        return KubernetesSession(core_v1=k8s_client.CoreV1Api(api_client), cluster_name=cluster_name)

    def _local_session(self) -> KubernetesSession:
        configuration = k8s_client.Configuration()
        try:
            k8s_config.load_incluster_config(client_configuration=configuration)
        except ConfigException:
            logger.debug("in-cluster 설정 없음, 로컬 kubeconfig 사용")
            k8s_config.load_kube_config(client_configuration=configuration)

        api_client = k8s_client.ApiClient(configuration)
        return KubernetesSession(core_v1=k8s_client.CoreV1Api(api_client), cluster_name=LOCAL_CLUSTER)

    # -------------------------------------------------------------------------

    def _read_secret(self, namespace: str, name: str) -> dict[str, str]:
        try:
            return self.store.get_secret(namespace, name)
        except Exception as e:
            raise SessionError("secret", f"Secret {namespace}/{name} 조회 실패", cause=e) from e
