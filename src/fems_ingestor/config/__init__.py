from .settings import (
    ConfigurationError,
    FemsConfig,
    FemsIngestorSettings,
    HealthConfig,
    LoggingConfig,
    MetricsConfig,
    load_settings,
)

__all__ = [
    "ConfigurationError",
    "FemsConfig",
    "FemsIngestorSettings",
    "HealthConfig",
    "LoggingConfig",
    "MetricsConfig",
    "load_settings",
]
