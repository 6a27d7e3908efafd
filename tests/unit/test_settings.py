"""
Unit tests for configuration loading (courtbook/config/settings.py)

Covers:
- Environment-driven settings
- Facility rule table loading and schema validation
- Identity API key lookup order
- Secret redaction filter
"""

import json
import logging
from decimal import Decimal
from io import StringIO
from unittest.mock import patch

import boto3
import pytest
from moto import mock_aws

from courtbook.config.settings import (
    IDENTITY_SECRET_ID,
    RULES_SCHEMA_FILE,
    ConfigurationError,
    SecretRedactionFilter,
    Settings,
)
from courtbook.services.rules import FacilityRules
from courtbook.utils import logger as logger_module
from courtbook.utils.logger import StructuredLogger, install_handler_filter


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        "IDENTITY_API_KEY",
        "USE_LOCAL_SECRETS_FILE",
        "LOCAL_SECRETS_FILE_PATH",
        "BOOKING_STORE",
        "BOOKINGS_TABLE",
        "COURTBOOK_AWS_REGION",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def installed_filters():
    """Remove filters installed on shared handlers during a test."""
    before = list(logger_module._handler_filters)
    yield
    added = [f for f in logger_module._handler_filters if f not in before]
    for log_filter in added:
        logger_module._handler_filters.remove(log_filter)
        for handler in logger_module._structured_handlers + logging.getLogger().handlers:
            handler.removeFilter(log_filter)


class TestSettingsEnvironment:
    def test_defaults(self):
        settings = Settings()

        assert settings.region_name == "ap-southeast-1"
        assert settings.bookings_table == "bookings"
        assert settings.uses_remote_bookings() is False

    def test_overrides(self, monkeypatch):
        monkeypatch.setenv("BOOKING_STORE", "DynamoDB")
        monkeypatch.setenv("BOOKINGS_TABLE", "bookings-dev")

        settings = Settings(region_name="us-east-1")

        assert settings.uses_remote_bookings() is True
        assert settings.bookings_table == "bookings-dev"
        assert settings.region_name == "us-east-1"

    def test_unknown_booking_store(self, monkeypatch):
        monkeypatch.setenv("BOOKING_STORE", "redis")

        with pytest.raises(ConfigurationError):
            Settings()


class TestLoadRules:
    def test_repository_rules_match_defaults(self):
        rules = Settings().load_rules()

        assert rules == FacilityRules()

    def test_custom_rules(self, tmp_path):
        rules_file = tmp_path / "rules.yaml"
        rules_file.write_text(
            "open_days:\n"
            "  Badminton: [Saturday]\n"
            "base_prices:\n"
            "  Badminton: 12.5\n"
            "default_price: 10\n"
            "student_discount:\n"
            "  rate: 0.2\n"
            "  min_id_length: 7\n"
        )
        settings = Settings()

        rules = settings.load_rules(str(rules_file), str(RULES_SCHEMA_FILE))

        assert rules.open_days == {"Badminton": ["Saturday"]}
        assert rules.base_prices == {"Badminton": Decimal("12.5")}
        assert rules.discount_rate == Decimal("0.2")
        assert rules.discount_min_id_length == 7
        assert rules.first_hour == 8
        assert settings.rules_config["default_price"] == 10

    def test_empty_file_uses_defaults(self, tmp_path):
        rules_file = tmp_path / "rules.yaml"
        rules_file.write_text("")

        assert Settings().load_rules(str(rules_file)) == FacilityRules()

    def test_invalid_weekday_rejected(self, tmp_path):
        rules_file = tmp_path / "rules.yaml"
        rules_file.write_text(
            "open_days:\n  Badminton: [Funday]\nbase_prices: {}\ndefault_price: 20\n"
        )

        with pytest.raises(ValueError, match="validation failed"):
            Settings().load_rules(str(rules_file))

    def test_empty_opening_hours_rejected(self, tmp_path):
        rules_file = tmp_path / "rules.yaml"
        rules_file.write_text(
            "open_days: {}\nbase_prices: {}\ndefault_price: 20\nslots:\n  first_hour: 12\n  last_hour: 10\n"
        )

        with pytest.raises(ValueError, match="validation failed"):
            Settings().load_rules(str(rules_file))

    def test_missing_required_key_rejected(self, tmp_path):
        rules_file = tmp_path / "rules.yaml"
        rules_file.write_text("open_days: {}\nbase_prices: {}\n")

        with pytest.raises(ValueError):
            Settings().load_rules(str(rules_file))

    def test_invalid_yaml(self, tmp_path):
        rules_file = tmp_path / "rules.yaml"
        rules_file.write_text("open_days: [unclosed\n")

        with pytest.raises(ValueError, match="Invalid YAML"):
            Settings().load_rules(str(rules_file))

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            Settings().load_rules(str(tmp_path / "missing.yaml"))


class TestIdentityApiKey:
    def test_environment_wins(self, monkeypatch):
        monkeypatch.setenv("IDENTITY_API_KEY", "env-key")

        assert Settings().load_identity_api_key() == "env-key"

    def test_local_secrets_file(self, monkeypatch, tmp_path):
        secrets_file = tmp_path / "secrets.json"
        secrets_file.write_text(json.dumps({"identity": {"api_key": "file-key"}}))
        monkeypatch.setenv("USE_LOCAL_SECRETS_FILE", "true")
        monkeypatch.setenv("LOCAL_SECRETS_FILE_PATH", str(secrets_file))

        assert Settings().load_identity_api_key() == "file-key"

    def test_local_secrets_file_missing(self, monkeypatch, tmp_path):
        monkeypatch.setenv("USE_LOCAL_SECRETS_FILE", "true")
        monkeypatch.setenv("LOCAL_SECRETS_FILE_PATH", str(tmp_path / "nope.json"))

        with pytest.raises(ConfigurationError, match="not found"):
            Settings().load_identity_api_key()

    def test_local_secrets_without_key(self, monkeypatch, tmp_path):
        secrets_file = tmp_path / "secrets.json"
        secrets_file.write_text(json.dumps({"identity": {}}))
        monkeypatch.setenv("USE_LOCAL_SECRETS_FILE", "true")
        monkeypatch.setenv("LOCAL_SECRETS_FILE_PATH", str(secrets_file))

        with pytest.raises(ConfigurationError, match="api_key"):
            Settings().load_identity_api_key()

    @mock_aws
    def test_secrets_manager(self):
        client = boto3.client("secretsmanager", region_name="ap-southeast-1")
        client.create_secret(Name=IDENTITY_SECRET_ID, SecretString=json.dumps({"api_key": "sm-key"}))

        assert Settings().load_identity_api_key() == "sm-key"

    @mock_aws
    def test_secrets_manager_missing_secret(self):
        with pytest.raises(ConfigurationError, match="not found"):
            Settings().load_identity_api_key()

    @mock_aws
    def test_secret_with_invalid_json(self):
        client = boto3.client("secretsmanager", region_name="ap-southeast-1")
        client.create_secret(Name=IDENTITY_SECRET_ID, SecretString="{not json")

        with pytest.raises(ConfigurationError, match="invalid JSON"):
            Settings().load_identity_api_key()

    @mock_aws
    def test_key_looked_up_once_per_settings(self):
        client = boto3.client("secretsmanager", region_name="ap-southeast-1")
        client.create_secret(Name=IDENTITY_SECRET_ID, SecretString=json.dumps({"api_key": "sm-key"}))
        settings = Settings()

        with patch.object(Settings, "_get_secret_value", wraps=Settings._get_secret_value) as lookup:
            assert settings.load_identity_api_key() == "sm-key"
            assert settings.load_identity_api_key() == "sm-key"

        assert lookup.call_count == 1

    @mock_aws
    def test_failed_lookup_not_repeated(self):
        settings = Settings()

        with patch.object(Settings, "_get_secret_value", wraps=Settings._get_secret_value) as lookup:
            for _ in range(2):
                with pytest.raises(ConfigurationError, match="not found"):
                    settings.load_identity_api_key()

        assert lookup.call_count == 1


class TestRedaction:
    def test_filter_redacts_secret_values(self):
        redaction = SecretRedactionFilter({"identity_api_key": "AIzaSecretKey123"})
        record = logging.LogRecord("x", logging.INFO, __file__, 1, "key=AIzaSecretKey123", None, None)

        redaction.filter(record)

        assert record.msg == "key=***REDACTED***"

    def test_short_values_not_redacted(self):
        redaction = SecretRedactionFilter({"flag": "on"})

        assert redaction.redacted_values == set()

    def test_setup_without_key_installs_empty_filter(self, installed_filters):
        with patch.object(Settings, "load_identity_api_key", side_effect=ConfigurationError("none")):
            redaction = Settings().setup_redaction_filter()

        assert redaction.redacted_values == set()
        assert redaction in logger_module._handler_filters

    def test_child_logger_records_redacted(self, installed_filters, monkeypatch, caplog):
        monkeypatch.setenv("IDENTITY_API_KEY", "AIzaSecretKey123")
        Settings().setup_redaction_filter()

        with caplog.at_level(logging.INFO):
            logging.getLogger("courtbook.test.child").warning("calling with key=%s", "AIzaSecretKey123")

        assert "AIzaSecretKey123" not in caplog.text
        assert "***REDACTED***" in caplog.text

    def test_structured_logger_created_later_is_redacted(self, installed_filters):
        install_handler_filter(SecretRedactionFilter({"identity_api_key": "AIzaSecretKey123"}))
        structured = StructuredLogger("courtbook.test.redaction.late")
        stream = StringIO()
        structured.logger.handlers[0].setStream(stream)

        structured.info("Signing in", context={"key": "AIzaSecretKey123"})

        assert "AIzaSecretKey123" not in stream.getvalue()
        assert "***REDACTED***" in stream.getvalue()
