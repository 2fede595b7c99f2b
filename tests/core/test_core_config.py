"""
tests/core/test_core_config.py - core/config.py 테스트
"""

import logging
from datetime import timedelta
from unittest.mock import patch

import pytest

from core.config import (
    DEFAULT_TAG_KEYS,
    InventorySettings,
    LogConfig,
    get_default_region,
    get_env_bool,
    get_env_int,
    get_env_list,
    setup_logging,
)


class TestInventorySettings:
    """InventorySettings 데이터클래스 테스트"""

    def test_settings_is_frozen(self):
        """설정이 불변인지 확인"""
        settings = InventorySettings()
        with pytest.raises(Exception):  # FrozenInstanceError
            settings.scan_timeout = 1.0

    def test_default_values(self):
        """기본값 확인"""
        settings = InventorySettings()
        assert settings.anti_storm_window == timedelta(seconds=30)
        assert settings.anti_storm_requeue == timedelta(minutes=30)
        assert settings.freshness_window == timedelta(minutes=2)
        assert settings.failure_requeue == timedelta(seconds=30)
        assert settings.aws_requeue == timedelta(minutes=5)
        assert settings.kubernetes_requeue == timedelta(minutes=10)
        assert settings.tag_keys == DEFAULT_TAG_KEYS
        assert settings.api_group == "openproject.org"
        assert settings.api_version == "v1alpha1"

    def test_from_env_without_variables(self):
        """환경변수가 없으면 기본값"""
        with patch.dict("os.environ", {}, clear=True):
            settings = InventorySettings.from_env()
        assert settings.freshness_window == timedelta(minutes=2)
        assert settings.default_region == "us-east-1"
        assert settings.debug is False

    def test_from_env_overrides(self):
        """환경변수로 시간 구간과 태그 키 변경"""
        env = {
            "INVENTORY_ANTI_STORM_SECONDS": "10",
            "INVENTORY_FRESHNESS_SECONDS": "300",
            "INVENTORY_SCAN_TIMEOUT": "5",
            "INVENTORY_TAG_KEYS": "Team, Owner,,",
            "DEBUG": "yes",
        }
        with patch.dict("os.environ", env, clear=True):
            settings = InventorySettings.from_env()

        assert settings.anti_storm_window == timedelta(seconds=10)
        assert settings.freshness_window == timedelta(minutes=5)
        assert settings.scan_timeout == 5.0
        assert settings.tag_keys == ("Team", "Owner")
        assert settings.debug is True

    def test_from_env_invalid_int_uses_default(self):
        """숫자가 아닌 값은 기본값 사용"""
        with patch.dict("os.environ", {"INVENTORY_AWS_REQUEUE_SECONDS": "soon"}, clear=True):
            settings = InventorySettings.from_env()
        assert settings.aws_requeue == timedelta(minutes=5)

    def test_default_region_precedence(self):
        """INVENTORY_DEFAULT_REGION이 AWS_REGION보다 우선"""
        env = {"INVENTORY_DEFAULT_REGION": "eu-central-1", "AWS_REGION": "ap-northeast-2"}
        with patch.dict("os.environ", env, clear=True):
            assert InventorySettings.from_env().default_region == "eu-central-1"


class TestEnvHelpers:
    """환경변수 헬퍼 테스트"""

    @pytest.mark.parametrize("value", ["true", "1", "YES", " on "])
    def test_env_bool_true(self, value):
        with patch.dict("os.environ", {"FLAG": value}):
            assert get_env_bool("FLAG") is True

    @pytest.mark.parametrize("value", ["false", "0", "No", "off"])
    def test_env_bool_false(self, value):
        with patch.dict("os.environ", {"FLAG": value}):
            assert get_env_bool("FLAG", default=True) is False

    def test_env_bool_invalid_returns_default(self):
        with patch.dict("os.environ", {"FLAG": "maybe"}):
            assert get_env_bool("FLAG", default=True) is True

    def test_env_int(self):
        with patch.dict("os.environ", {"NUM": "42"}):
            assert get_env_int("NUM", 1) == 42

    def test_env_int_missing(self):
        with patch.dict("os.environ", {}, clear=True):
            assert get_env_int("NUM", 7) == 7

    def test_env_list_empty_returns_default(self):
        with patch.dict("os.environ", {"KEYS": " , "}):
            assert get_env_list("KEYS", ("A",)) == ("A",)

    def test_default_region_order(self):
        """AWS_REGION → AWS_DEFAULT_REGION → us-east-1"""
        with patch.dict("os.environ", {"AWS_REGION": "eu-west-1", "AWS_DEFAULT_REGION": "us-west-2"}, clear=True):
            assert get_default_region() == "eu-west-1"
        with patch.dict("os.environ", {"AWS_DEFAULT_REGION": "us-west-2"}, clear=True):
            assert get_default_region() == "us-west-2"
        with patch.dict("os.environ", {}, clear=True):
            assert get_default_region() == "us-east-1"


class TestLogConfig:
    """로깅 설정 테스트"""

    def test_from_env_level(self):
        with patch.dict("os.environ", {"LOG_LEVEL": "warning"}, clear=True):
            assert LogConfig.from_env().level == "WARNING"

    def test_debug_forces_debug_level(self):
        """DEBUG=true이면 LOG_LEVEL 무시"""
        with patch.dict("os.environ", {"LOG_LEVEL": "ERROR", "DEBUG": "true"}, clear=True):
            assert LogConfig.from_env().level == "DEBUG"

    def test_setup_logging_quiets_sdk_loggers(self):
        """INFO 레벨에서는 botocore/kubernetes 로그를 WARNING으로 제한"""
        setup_logging(LogConfig(level="INFO"))

        assert logging.getLogger().level == logging.INFO
        assert logging.getLogger("botocore").level == logging.WARNING
        assert logging.getLogger("kubernetes").level == logging.WARNING
