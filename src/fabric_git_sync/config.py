"""Configuration management for Fabric Git sync commands.

Settings come from built-in defaults, an optional JSON config file and
FABRIC_* environment variables, in increasing order of precedence.
"""

import json
import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

from .exceptions import ConfigurationError

DEFAULT_API_URL = "https://api.fabric.microsoft.com/v1"
DEFAULT_TOKEN_SCOPE = "https://api.fabric.microsoft.com/.default"
DEFAULT_TIMEOUT = 30
DEFAULT_POLL_INTERVAL = 5
DEFAULT_LOG_LEVEL = "warning"
VALID_LOG_LEVELS = ["debug", "info", "warning", "error"]
MIN_TIMEOUT = 1
MAX_TIMEOUT = 300

ENV_OVERRIDES = {
    "FABRIC_API_URL": ("api_url", str),
    "FABRIC_TOKEN_SCOPE": ("token_scope", str),
    "FABRIC_TIMEOUT": ("timeout", int),
    "FABRIC_POLL_INTERVAL": ("poll_fallback_interval", int),
    "FABRIC_LOG_LEVEL": ("log_level", str),
}

logger = logging.getLogger(__name__)


@dataclass
class FabricConfig:
    """Settings shared by every command.

    Args:
        api_url: Base URL of the Fabric REST API (must use HTTPS)
        token_scope: OAuth scope requested from the identity provider
        timeout: Request timeout in seconds (1-300, default: 30)
        poll_fallback_interval: Seconds between operation polls when the
            server sends no Retry-After header (default: 5)
        log_level: Logging level (debug/info/warning/error, default: warning)
    """

    api_url: str = DEFAULT_API_URL
    token_scope: str = DEFAULT_TOKEN_SCOPE
    timeout: int = DEFAULT_TIMEOUT
    poll_fallback_interval: int = DEFAULT_POLL_INTERVAL
    log_level: str = DEFAULT_LOG_LEVEL

    def __post_init__(self):
        """Validate configuration after initialization."""
        for field in fields(self):
            value = getattr(self, field.name)
            # bool is an int subclass but never a valid setting
            if isinstance(value, bool) or not isinstance(value, field.type):
                raise ConfigurationError(
                    f"{field.name} must be of type {field.type.__name__}",
                    f"Got: {value!r}",
                )

        if not self.api_url:
            raise ConfigurationError("api_url cannot be empty")

        # Allow localhost for testing, require HTTPS everywhere else
        is_localhost = "://localhost" in self.api_url or "://127.0.0.1" in self.api_url
        if not self.api_url.startswith("https://") and not is_localhost:
            raise ConfigurationError(
                "api_url must use HTTPS", f"Got: {self.api_url[:40]}"
            )

        if not self.token_scope:
            raise ConfigurationError("token_scope cannot be empty")

        if self.timeout < MIN_TIMEOUT or self.timeout > MAX_TIMEOUT:
            raise ConfigurationError(
                f"timeout must be between {MIN_TIMEOUT} and {MAX_TIMEOUT} seconds",
                f"Got: {self.timeout}",
            )

        if self.poll_fallback_interval < 0:
            raise ConfigurationError(
                "poll_fallback_interval must be non-negative",
                f"Got: {self.poll_fallback_interval}",
            )

        self.log_level = self.log_level.lower()
        if self.log_level not in VALID_LOG_LEVELS:
            raise ConfigurationError(
                f"log_level must be one of {VALID_LOG_LEVELS}",
                f"Got: {self.log_level}",
            )

        self.api_url = self.api_url.rstrip("/")


def load_config(
    config_path: Optional[str] = None, use_env: bool = True
) -> FabricConfig:
    """Load configuration from file and/or environment variables.

    Args:
        config_path: Path to config JSON file (optional)
        use_env: Whether FABRIC_* environment variables override file values

    Returns:
        FabricConfig instance

    Raises:
        ConfigurationError: If the file is missing or unreadable, or a value
            is invalid
    """
    config_data: Dict[str, Any] = {}

    if config_path is not None:
        path = Path(config_path).expanduser().resolve()
        if not path.exists():
            raise ConfigurationError(f"Config file not found: {path}")

        try:
            with open(path) as f:
                config_data = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise ConfigurationError(f"Invalid JSON in config file {path}", str(e))
        except OSError as e:
            raise ConfigurationError(f"Cannot read config file {path}", str(e))

        if not isinstance(config_data, dict):
            raise ConfigurationError(f"Config file {path} must contain a JSON object")

        unknown = set(config_data) - set(FabricConfig.__dataclass_fields__)
        if unknown:
            logger.warning(f"Ignoring unknown config keys: {sorted(unknown)}")
            for key in unknown:
                config_data.pop(key)

    if use_env:
        for env_name, (field_name, convert) in ENV_OVERRIDES.items():
            if env_name not in os.environ:
                continue
            raw = os.environ[env_name]
            try:
                config_data[field_name] = convert(raw)
            except ValueError:
                raise ConfigurationError(
                    f"Invalid value for {env_name}", f"Got: {raw!r}"
                )

    return FabricConfig(**config_data)
