"""
Configuration loader for the booking backend.

Reads table names and feature switches from the environment, fetches the
identity provider API key from the environment, a local secrets file or AWS
Secrets Manager (with backoff), loads the facility rule table from YAML
validated by JSON schema, and installs a log redaction filter.
"""

import json
import logging
import os
import time
from pathlib import Path
from typing import Dict, Any, Optional

import boto3
import jsonschema
import yaml
from botocore.exceptions import ClientError

from courtbook.services.rules import FacilityRules
from courtbook.utils.logger import install_handler_filter

logger = logging.getLogger(__name__)


class ConfigurationError(Exception):
    """Exception raised for configuration-related errors."""

    pass


# Secrets Manager secret name, not the value
IDENTITY_SECRET_ID = "courtbook/identity-credentials"  # nosec B105

DEFAULT_REGION = "ap-southeast-1"
CONFIG_DIR = Path(os.getenv("COURTBOOK_CONFIG_DIR", Path(__file__).resolve().parents[2] / "config"))
RULES_FILE = CONFIG_DIR / "facility_rules.yaml"
RULES_SCHEMA_FILE = CONFIG_DIR / "facility_rules.schema.json"


def _use_local_secrets() -> bool:
    return os.getenv("USE_LOCAL_SECRETS_FILE", "false").lower() == "true"


def _local_secrets_file() -> str:
    return os.getenv("LOCAL_SECRETS_FILE_PATH", ".local/secrets.json")


class SecretRedactionFilter(logging.Filter):
    """
    Logging filter that redacts secret values from log records.
    Replaces secret substrings with ***REDACTED***.
    """

    def __init__(self, secrets: Optional[Dict[str, Any]] = None):
        """
        Args:
            secrets: Dictionary of secrets to redact (values will be masked)
        """
        super().__init__()
        self.secrets = secrets or {}
        self.redacted_values: set[str] = set()
        if self.secrets:
            self._extract_secret_values(self.secrets)

    def _extract_secret_values(self, obj: Any, max_depth: int = 5) -> None:
        """Recursively extract all secret values from nested structures."""
        if max_depth <= 0:
            return

        if isinstance(obj, dict):
            for value in obj.values():
                self._extract_secret_values(value, max_depth - 1)
        elif isinstance(obj, (list, tuple)):
            for item in obj:
                self._extract_secret_values(item, max_depth - 1)
        elif isinstance(obj, str) and len(obj) > 3:
            self.redacted_values.add(obj)

    def filter(self, record: logging.LogRecord) -> bool:
        """Filter and redact log record."""
        record.msg = self._redact_string(str(record.msg))
        if record.args:
            if isinstance(record.args, dict):
                record.args = {k: self._redact_string(str(v)) for k, v in record.args.items()}
            elif isinstance(record.args, (list, tuple)):
                record.args = tuple(self._redact_string(str(arg)) for arg in record.args)
        return True

    def _redact_string(self, text: str) -> str:
        """Redact all secret values from string."""
        for secret in self.redacted_values:
            if secret in text:
                text = text.replace(secret, "***REDACTED***")
        return text


class Settings:
    """
    Runtime configuration.

    Environment variables:
        COURTBOOK_AWS_REGION: AWS region for DynamoDB and Secrets Manager
        FACILITIES_TABLE / BOOKINGS_TABLE / USERS_TABLE: DynamoDB table names
        BOOKING_STORE: "memory" (process-local list) or "dynamodb"
        LOCAL_CACHE_PATH: sqlite file for the offline cache
        IDENTITY_API_KEY: identity provider web API key
        IDENTITY_TIMEOUT_SECONDS: HTTP timeout for identity calls
    """

    def __init__(self, region_name: Optional[str] = None):
        self.region_name = region_name or os.getenv("COURTBOOK_AWS_REGION", DEFAULT_REGION)
        self.facilities_table = os.getenv("FACILITIES_TABLE", "facilities")
        self.bookings_table = os.getenv("BOOKINGS_TABLE", "bookings")
        self.users_table = os.getenv("USERS_TABLE", "users")
        self.booking_store = os.getenv("BOOKING_STORE", "memory").lower()
        self.local_cache_path = os.getenv("LOCAL_CACHE_PATH", ".local/courtbook.sqlite3")
        self.identity_timeout = float(os.getenv("IDENTITY_TIMEOUT_SECONDS", "10"))
        self.rules_config: Dict[str, Any] = {}
        self._identity_api_key: Optional[str] = None
        self._identity_key_error: Optional[ConfigurationError] = None

        if self.booking_store not in ("memory", "dynamodb"):
            raise ConfigurationError(
                f"BOOKING_STORE must be 'memory' or 'dynamodb', got '{self.booking_store}'"
            )

    def uses_remote_bookings(self) -> bool:
        return self.booking_store == "dynamodb"

    @staticmethod
    def _get_secret_value(
        secret_id: str,
        region_name: str = DEFAULT_REGION,
        max_retries: int = 3,
        base_wait: float = 1.0,
    ) -> Dict[str, Any]:
        """
        Fetch secret from Secrets Manager with exponential backoff.

        Args:
            secret_id: Secret identifier in Secrets Manager
            region_name: AWS region holding the secret
            max_retries: Maximum number of retry attempts
            base_wait: Base wait time in seconds for exponential backoff

        Returns:
            Parsed secret JSON as dictionary

        Raises:
            ConfigurationError: If secret cannot be retrieved after retries
        """
        client = boto3.client("secretsmanager", region_name=region_name)

        for attempt in range(max_retries):
            try:
                response = client.get_secret_value(SecretId=secret_id)
                secret_string = response.get("SecretString")
                if not secret_string:
                    raise ConfigurationError(f"Secret {secret_id} has empty value")
                return json.loads(secret_string)
            except ClientError as e:
                error_code = e.response["Error"]["Code"]
                if error_code == "ResourceNotFoundException":
                    raise ConfigurationError(
                        f"Secret '{secret_id}' not found in Secrets Manager ({region_name})"
                    ) from e
                if error_code in ("AccessDeniedException", "UnauthorizedOperation"):
                    raise ConfigurationError(
                        f"Access denied to secret '{secret_id}'. "
                        f"Verify the role has secretsmanager:GetSecretValue permission"
                    ) from e
                if attempt < max_retries - 1:
                    wait_time = base_wait * (2**attempt)
                    logger.warning(
                        f"Transient error fetching secret {secret_id}: {error_code}. "
                        f"Retrying in {wait_time}s (attempt {attempt + 1}/{max_retries})"
                    )
                    time.sleep(wait_time)
                else:
                    raise ConfigurationError(
                        f"Failed to retrieve secret '{secret_id}' after {max_retries} attempts: {error_code}"
                    ) from e
            except json.JSONDecodeError as e:
                raise ConfigurationError(f"Secret '{secret_id}' contains invalid JSON: {e}") from e

        raise ConfigurationError(
            f"Failed to retrieve secret '{secret_id}' - exhausted all retry attempts"
        )

    @staticmethod
    def _load_from_local_file(filepath: str) -> Dict[str, Any]:
        """
        Load secrets from a local JSON file for development.

        Raises:
            ConfigurationError: If file cannot be read or contains invalid JSON
        """
        try:
            with open(filepath, "r", encoding="utf-8") as f:
                return json.load(f)
        except FileNotFoundError:
            raise ConfigurationError(
                f"Local secrets file not found: {filepath}. "
                f"Set IDENTITY_API_KEY or provide LOCAL_SECRETS_FILE_PATH"
            )
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Local secrets file contains invalid JSON: {e}")

    def load_identity_api_key(self) -> str:
        """
        Identity provider web API key, resolved once per Settings instance.

        Priority:
        1. IDENTITY_API_KEY environment variable
        2. Local secrets file ("identity" -> "api_key") when USE_LOCAL_SECRETS_FILE=true
        3. Secrets Manager

        A failed lookup is remembered too, so a missing secret does not go
        through the Secrets Manager backoff twice.

        Raises:
            ConfigurationError: If no key can be found
        """
        if self._identity_api_key:
            return self._identity_api_key
        if self._identity_key_error is not None:
            raise self._identity_key_error

        try:
            self._identity_api_key = self._resolve_identity_api_key()
        except ConfigurationError as e:
            self._identity_key_error = e
            raise
        return self._identity_api_key

    def _resolve_identity_api_key(self) -> str:
        env_key = os.getenv("IDENTITY_API_KEY")
        if env_key:
            return env_key

        if _use_local_secrets():
            credentials = self._load_from_local_file(_local_secrets_file()).get("identity", {})
        else:
            credentials = self._get_secret_value(IDENTITY_SECRET_ID, region_name=self.region_name)

        api_key = credentials.get("api_key")
        if not api_key:
            raise ConfigurationError(
                f"Identity credentials missing 'api_key'. Got: {sorted(credentials.keys())}"
            )
        return api_key

    def load_rules(
        self,
        rules_config_path: Optional[str] = None,
        schema_config_path: Optional[str] = None,
    ) -> FacilityRules:
        """
        Load the facility rule table from YAML and validate it against the schema.

        Args:
            rules_config_path: Path to facility_rules.yaml (default: config dir)
            schema_config_path: Path to facility_rules.schema.json (default: config dir)

        Returns:
            FacilityRules built from the file; built-in defaults if the file is empty

        Raises:
            FileNotFoundError: If config files not found
            ValueError: If the YAML or schema is invalid, or the rules fail validation
        """
        rules_path = Path(rules_config_path or RULES_FILE)
        schema_path = Path(schema_config_path or RULES_SCHEMA_FILE)

        try:
            with schema_path.open("r", encoding="utf-8") as f:
                schema = json.load(f)
        except FileNotFoundError:
            logger.error(f"Rules schema file not found: {schema_path}")
            raise
        except json.JSONDecodeError as e:
            logger.error(f"Invalid JSON in rules schema: {e}")
            raise ValueError(f"Invalid JSON in {schema_path}: {e}") from e

        try:
            with rules_path.open("r", encoding="utf-8") as f:
                rules_config = yaml.safe_load(f)
        except FileNotFoundError:
            logger.error(f"Rules configuration file not found: {rules_path}")
            raise
        except yaml.YAMLError as e:
            logger.error(f"Invalid YAML in rules configuration: {e}")
            raise ValueError(f"Invalid YAML in {rules_path}: {e}") from e

        if not rules_config:
            logger.warning(f"Empty rules configuration: {rules_path}; using defaults")
            self.rules_config = {}
            return FacilityRules()

        try:
            jsonschema.validate(instance=rules_config, schema=schema)
        except jsonschema.ValidationError as e:
            logger.error(f"Rules configuration failed schema validation: {e.message}")
            raise ValueError(f"Rules configuration validation failed: {e.message}") from e
        except jsonschema.SchemaError as e:
            logger.error(f"Rules schema is invalid: {e.message}")
            raise ValueError(f"Rules schema is invalid: {e.message}") from e

        self.rules_config = rules_config
        logger.info(
            f"Loaded rules for {len(rules_config.get('open_days', {}))} categories from {rules_path}"
        )
        try:
            return FacilityRules.from_config(rules_config)
        except ValueError as e:
            logger.error(f"Rules configuration is inconsistent: {e}")
            raise ValueError(f"Rules configuration validation failed: {e}") from e

    def setup_redaction_filter(self) -> SecretRedactionFilter:
        """
        Install a SecretRedactionFilter holding the identity API key on every
        structured logger handler and the root handlers.

        A missing key is not an error here; the filter is installed empty.
        """
        secrets: Dict[str, Any] = {}
        try:
            secrets["identity_api_key"] = self.load_identity_api_key()
        except ConfigurationError as e:
            logger.debug(f"No identity key available for redaction: {e}")
        redaction = SecretRedactionFilter(secrets)
        install_handler_filter(redaction)
        return redaction


def setup_logging_redaction(settings: Optional[Settings] = None) -> SecretRedactionFilter:
    """Setup logging redaction for all log handlers."""
    return (settings or Settings()).setup_redaction_filter()
