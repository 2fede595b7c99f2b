"""
core/config.py - 중앙 설정 관리

인벤토리 엔진 전체에서 사용하는 설정값과 환경변수 헬퍼를 제공합니다.
설정은 프로세스 시작 시 한 번 만들어 Orchestrator 생성자에 전달합니다.

환경변수:
    INVENTORY_ANTI_STORM_SECONDS: 실패 후 재시도 억제 구간 (기본: 30)
    INVENTORY_ANTI_STORM_REQUEUE_SECONDS: 억제 시 재확인 간격 (기본: 1800)
    INVENTORY_FRESHNESS_SECONDS: 리포트 중복 생성 방지 구간 (기본: 120)
    INVENTORY_FAILURE_REQUEUE_SECONDS: 실패 시 재시도 간격 (기본: 30)
    INVENTORY_AWS_REQUEUE_SECONDS: AWS 모드 성공 후 재실행 간격 (기본: 300)
    INVENTORY_KUBERNETES_REQUEUE_SECONDS: Kubernetes 모드 성공 후 재실행 간격 (기본: 600)
    INVENTORY_SCAN_TIMEOUT: 리소스 종류별 기본 수집 제한 시간 (초, 기본: 60)
    INVENTORY_ITEM_TIMEOUT: 리소스 하나당 부가 API 호출 제한 시간 (초, 기본: 15)
    INVENTORY_TAG_KEYS: 리포트에 포함할 태그 키 목록 (쉼표 구분)
    INVENTORY_DEFAULT_REGION: 기본 리전 (기본: AWS_REGION → AWS_DEFAULT_REGION → us-east-1)
    DEBUG: true면 DEBUG 로그 레벨 강제
    LOG_LEVEL / LOG_FORMAT: 로깅 설정

Usage:
    from core.config import InventorySettings, setup_logging, LogConfig

    setup_logging(LogConfig.from_env())
    settings = InventorySettings.from_env()
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from datetime import timedelta

# 리포트에 남길 태그 키 (이 외의 태그는 버림)
DEFAULT_TAG_KEYS: tuple[str, ...] = ("RPO(Hours)", "RTO(Hours)", "RPO", "RTO", "ClientName", "Customer")

_TRUE_VALUES = {"true", "1", "yes", "on"}
_FALSE_VALUES = {"false", "0", "no", "off"}


# =============================================================================
# 환경변수 헬퍼
# =============================================================================


def get_env_bool(name: str, default: bool = False) -> bool:
    """환경변수를 bool로 변환

    Args:
        name: 환경변수 이름
        default: 없거나 해석할 수 없을 때 기본값

    Returns:
        bool 값
    """
    value = os.environ.get(name)
    if value is None:
        return default

    normalized = value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    return default


def get_env_int(name: str, default: int) -> int:
    """환경변수를 int로 변환 (실패 시 기본값)"""
    value = os.environ.get(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def get_env_list(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    """쉼표로 구분된 환경변수를 튜플로 변환 (빈 항목 제외)"""
    value = os.environ.get(name)
    if not value:
        return default
    items = tuple(item.strip() for item in value.split(",") if item.strip())
    return items or default


def get_default_region() -> str:
    """AWS_REGION → AWS_DEFAULT_REGION → us-east-1 순으로 리전 결정"""
    return os.environ.get("AWS_REGION") or os.environ.get("AWS_DEFAULT_REGION") or InventorySettings.default_region


# =============================================================================
# 인벤토리 설정
# =============================================================================


@dataclass(frozen=True)
class InventorySettings:
    """인벤토리 엔진 설정 (불변)

    Attributes:
        anti_storm_window: 마지막 실패 후 스캔을 건너뛰는 구간
        anti_storm_requeue: 건너뛴 경우 다시 확인할 때까지의 간격
        freshness_window: 이 시간보다 최근 리포트가 있으면 새 리포트를 만들지 않음
        failure_requeue: 실패한 패스의 재시도 간격
        aws_requeue: AWS 모드 성공 후 다음 패스까지의 간격
        kubernetes_requeue: Kubernetes 모드 성공 후 다음 패스까지의 간격
        scan_timeout: 리소스 종류별 기본 수집 제한 시간 (초)
        item_timeout: 버킷/리포지토리 단위 부가 API 호출 제한 시간 (초)
        tag_keys: 리포트에 포함할 태그 키 허용 목록
        debug: 실패 로그에 원인 예외의 traceback 포함
        default_region: 리전 정보가 없을 때 사용할 리전
        api_group: CRD API 그룹
        api_version: CRD API 버전
    """

    anti_storm_window: timedelta = timedelta(seconds=30)
    anti_storm_requeue: timedelta = timedelta(minutes=30)
    freshness_window: timedelta = timedelta(minutes=2)
    failure_requeue: timedelta = timedelta(seconds=30)
    aws_requeue: timedelta = timedelta(minutes=5)
    kubernetes_requeue: timedelta = timedelta(minutes=10)
    scan_timeout: float = 60.0
    item_timeout: float = 15.0
    tag_keys: tuple[str, ...] = field(default=DEFAULT_TAG_KEYS)
    debug: bool = False
    default_region: str = "us-east-1"
    api_group: str = "openproject.org"
    api_version: str = "v1alpha1"

    @classmethod
    def from_env(cls) -> InventorySettings:
        """환경변수에서 설정 로드 (없는 값은 기본값 사용)"""
        defaults = cls()
        return cls(
            anti_storm_window=timedelta(
                seconds=get_env_int("INVENTORY_ANTI_STORM_SECONDS", int(defaults.anti_storm_window.total_seconds()))
            ),
            anti_storm_requeue=timedelta(
                seconds=get_env_int(
                    "INVENTORY_ANTI_STORM_REQUEUE_SECONDS", int(defaults.anti_storm_requeue.total_seconds())
                )
            ),
            freshness_window=timedelta(
                seconds=get_env_int("INVENTORY_FRESHNESS_SECONDS", int(defaults.freshness_window.total_seconds()))
            ),
            failure_requeue=timedelta(
                seconds=get_env_int("INVENTORY_FAILURE_REQUEUE_SECONDS", int(defaults.failure_requeue.total_seconds()))
            ),
            aws_requeue=timedelta(
                seconds=get_env_int("INVENTORY_AWS_REQUEUE_SECONDS", int(defaults.aws_requeue.total_seconds()))
            ),
            kubernetes_requeue=timedelta(
                seconds=get_env_int(
                    "INVENTORY_KUBERNETES_REQUEUE_SECONDS", int(defaults.kubernetes_requeue.total_seconds())
                )
            ),
            scan_timeout=float(get_env_int("INVENTORY_SCAN_TIMEOUT", int(defaults.scan_timeout))),
            item_timeout=float(get_env_int("INVENTORY_ITEM_TIMEOUT", int(defaults.item_timeout))),
            tag_keys=get_env_list("INVENTORY_TAG_KEYS", defaults.tag_keys),
            debug=get_env_bool("DEBUG", defaults.debug),
            default_region=os.environ.get("INVENTORY_DEFAULT_REGION") or get_default_region(),
            api_group=os.environ.get("INVENTORY_API_GROUP", defaults.api_group),
            api_version=os.environ.get("INVENTORY_API_VERSION", defaults.api_version),
        )


# =============================================================================
# 로깅 설정
# =============================================================================


@dataclass
class LogConfig:
    """로깅 설정"""

    level: str = "INFO"
    format: str = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    date_format: str = "%Y-%m-%d %H:%M:%S"

    @classmethod
    def from_env(cls) -> LogConfig:
        """LOG_LEVEL, LOG_FORMAT 환경변수에서 로드

        DEBUG=true이면 LOG_LEVEL과 관계없이 DEBUG 레벨을 사용합니다.
        """
        defaults = cls()
        level = os.environ.get("LOG_LEVEL", defaults.level).upper()
        if get_env_bool("DEBUG"):
            level = "DEBUG"
        return cls(
            level=level,
            format=os.environ.get("LOG_FORMAT", defaults.format),
            date_format=defaults.date_format,
        )


def setup_logging(config: LogConfig | None = None) -> None:
    """루트 로거 설정

    botocore/urllib3 로그는 DEBUG 모드가 아니면 WARNING 이상만 출력합니다.
    """
    config = config or LogConfig.from_env()
    level = getattr(logging, config.level, logging.INFO)

    logging.basicConfig(level=level, format=config.format, datefmt=config.date_format, force=True)

    if level > logging.DEBUG:
        for noisy in ("botocore", "boto3", "urllib3", "kubernetes"):
            logging.getLogger(noisy).setLevel(logging.WARNING)
