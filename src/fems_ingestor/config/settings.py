"""Configuration settings using Pydantic for validation."""

from typing import List, Optional, Any
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
import os
import re

import yaml


DEFAULT_PASSWORD = "owner"


class ConfigurationError(ValueError):
    """Raised when the service configuration is missing or invalid."""


class FemsConfig(BaseModel):
    """FEMS edge connection target."""
    model_config = ConfigDict(frozen=True)

    url: str = Field(description="FEMS edge WebSocket endpoint as host:port")
    password: str = Field(default=DEFAULT_PASSWORD, description="Password for authenticateWithPassword")
    channels: List[str] = Field(description="Channel addresses to subscribe to, e.g. _sum/State")
    measurement: str = Field(default="fems", description="Source tag for emitted records")
    reconnect_interval_seconds: float = Field(default=10.0, description="Fixed delay before each reconnect")
    ping_interval_seconds: Optional[float] = Field(
        default=None, description="WebSocket keepalive interval; None disables keepalive"
    )

    @field_validator('url')
    @classmethod
    def validate_url(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("FEMS URL missing")
        return v

    @field_validator('password', mode='before')
    @classmethod
    def default_password(cls, v):
        if v is None or v == "":
            return DEFAULT_PASSWORD
        return v

    @field_validator('channels')
    @classmethod
    def validate_channels(cls, v):
        if not v:
            raise ValueError("No FEMS channels configured")
        return v

    @field_validator('reconnect_interval_seconds')
    @classmethod
    def validate_reconnect_interval(cls, v):
        if v < 0:
            raise ValueError("reconnect_interval_seconds must not be negative")
        return v


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="json", description="Log format: json or text")
    output: str = Field(default="stdout", description="Log output destination")


class HealthConfig(BaseModel):
    """Health check server configuration."""
    enabled: bool = Field(default=True, description="Serve health endpoints")
    host: str = Field(default="0.0.0.0", description="Health check server host")
    port: int = Field(default=8080, description="Health check server port")


class MetricsConfig(BaseModel):
    """Metrics configuration."""
    enable_prometheus: bool = Field(default=False, description="Expose Prometheus metrics")
    prometheus_port: int = Field(default=8081, description="Prometheus metrics port")


class FemsIngestorSettings(BaseSettings):
    """Main ingestor service settings."""
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    service_name: str = Field(default="fems-ingestor", description="Service name")
    environment: str = Field(default="local", description="Environment: local, dev, prod")

    fems: FemsConfig
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    health: HealthConfig = Field(default_factory=HealthConfig)
    metrics: MetricsConfig = Field(default_factory=MetricsConfig)

    @field_validator('environment')
    @classmethod
    def validate_environment(cls, v):
        if v not in ['local', 'dev', 'prod']:
            raise ValueError("Environment must be 'local', 'dev', or 'prod'")
        return v


def substitute_env_vars(obj: Any) -> Any:
    """
    Recursively substitute environment variables in configuration objects.

    Supports syntax:
    - ${VAR_NAME} - Required variable (raises error if not found)
    - ${VAR_NAME:-default} - Optional variable with default value

    Raises:
        ConfigurationError: If a required environment variable is not set
    """
    if isinstance(obj, dict):
        return {key: substitute_env_vars(value) for key, value in obj.items()}
    elif isinstance(obj, list):
        return [substitute_env_vars(item) for item in obj]
    elif isinstance(obj, str):
        def replace_env_var(match):
            var_expr = match.group(1)

            if ':-' in var_expr:
                var_name, default_value = var_expr.split(':-', 1)
                return os.getenv(var_name.strip(), default_value)

            var_name = var_expr.strip()
            value = os.getenv(var_name)
            if value is None:
                raise ConfigurationError(f"Required environment variable '{var_name}' is not set")
            return value

        return re.sub(r'\$\{([^}]+)\}', replace_env_var, obj)
    else:
        return obj


def load_settings(config_file: Optional[str] = None) -> FemsIngestorSettings:
    """
    Load settings from a YAML config file and environment variables.

    Validation happens here, before any connection attempt: a missing
    endpoint or an empty channel list is reported as ConfigurationError.

    Args:
        config_file: Path to YAML configuration file

    Raises:
        ConfigurationError: If the file is missing or the settings are invalid
    """
    config_data = {}

    if config_file:
        if not os.path.exists(config_file):
            raise ConfigurationError(f"Configuration file not found: {config_file}")

        try:
            with open(config_file, 'r') as f:
                raw_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {config_file}: {e}") from e

        if not isinstance(raw_config, dict):
            raise ConfigurationError(f"Configuration file {config_file} must contain a mapping")

        config_data = substitute_env_vars(raw_config)

    try:
        return FemsIngestorSettings(**config_data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e
