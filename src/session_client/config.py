"""Configuration management for Session Client."""

import json
import logging
import os
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from .exceptions import ConfigurationError, URLValidationError
from .url_validator import validate_and_normalize_api_root

logger = logging.getLogger(__name__)

DEFAULT_HOME_DIR = Path.home() / ".session-client"

# Environment overrides applied on top of the config file
ENV_API_ROOT_URL = "SESSION_CLIENT_API_ROOT_URL"
ENV_TIMEOUT_MS = "SESSION_CLIENT_TIMEOUT_MS"
ENV_STORAGE_PATH = "SESSION_CLIENT_STORAGE_PATH"


class ClientConfig(BaseModel):
    """Configuration for the HTTP client, session storage and search."""

    api_root_url: Optional[str] = Field(
        default=None,
        description="API root URL; endpoint paths are resolved relative to it",
    )
    timeout_ms: int = Field(
        default=30000, gt=0, description="Request timeout in milliseconds"
    )
    retry_limit: int = Field(
        default=2,
        ge=0,
        le=10,
        description="Additional attempts for retryable idempotent requests",
    )
    retry_statuses: List[int] = Field(
        default_factory=lambda: [408, 500, 502, 503, 504],
        description="HTTP status codes that trigger a retry",
    )
    retry_jitter_ms: int = Field(
        default=0,
        ge=0,
        le=5000,
        description="Upper bound of the random delay between retry attempts",
    )
    debounce_ms: int = Field(
        default=300, ge=0, description="Quiet period before a search fires"
    )
    search_hits_per_page: int = Field(
        default=10, ge=1, le=100, description="Number of hits requested per search"
    )
    storage_path: Path = Field(
        default=DEFAULT_HOME_DIR / "storage.json",
        description="Durable key-value store holding the session token",
    )

    @field_validator("api_root_url")
    @classmethod
    def api_root_must_be_http(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        try:
            return validate_and_normalize_api_root(v)
        except URLValidationError as e:
            raise ValueError(str(e))

    @field_validator("retry_statuses")
    @classmethod
    def statuses_must_be_http_codes(cls, v: List[int]) -> List[int]:
        for status in v:
            if not 100 <= status <= 599:
                raise ValueError(f"Invalid HTTP status code: {status}")
        return v


class ConfigManager:
    """Manages configuration loading, saving, and environment overrides."""

    DEFAULT_CONFIG_PATH = DEFAULT_HOME_DIR / "config.json"

    def __init__(self, config_path: Optional[Path] = None):
        self.config_path = config_path or self.DEFAULT_CONFIG_PATH
        self._config: Optional[ClientConfig] = None

    def load(self) -> ClientConfig:
        """Load configuration from file (or defaults) and apply env overrides."""
        data: dict = {}
        if self.config_path.exists():
            try:
                with open(self.config_path, "r") as f:
                    data = json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                raise ConfigurationError(
                    f"Failed to load config from {self.config_path}", str(e)
                )
            if not isinstance(data, dict):
                raise ConfigurationError(
                    f"Failed to load config from {self.config_path}",
                    "top-level value must be an object",
                )
        else:
            logger.debug(f"No config file at {self.config_path}, using defaults")

        data.update(self._env_overrides())

        try:
            self._config = ClientConfig(**data)
        except ValidationError as e:
            raise ConfigurationError("Invalid configuration", str(e))

        return self._config

    def save(self, config: Optional[ClientConfig] = None) -> None:
        """Save configuration to file."""
        if config is None:
            config = self._config

        if config is None:
            raise ConfigurationError("No configuration to save")

        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_path, "w") as f:
                json.dump(config.model_dump(mode="json"), f, indent=2)
        except OSError as e:
            raise ConfigurationError(
                f"Failed to save config to {self.config_path}", str(e)
            )

    @staticmethod
    def _env_overrides() -> dict:
        overrides: dict = {}
        api_root = os.environ.get(ENV_API_ROOT_URL)
        if api_root:
            overrides["api_root_url"] = api_root
        timeout = os.environ.get(ENV_TIMEOUT_MS)
        if timeout:
            overrides["timeout_ms"] = timeout
        storage_path = os.environ.get(ENV_STORAGE_PATH)
        if storage_path:
            overrides["storage_path"] = storage_path
        return overrides
