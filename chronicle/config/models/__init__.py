"""Configuration section models."""

from chronicle.config.models.audit import AuditConfig
from chronicle.config.models.observability import (
    LoggingConfig,
    MetricsConfig,
    ObservabilityConfig,
)

__all__ = [
    "AuditConfig",
    "LoggingConfig",
    "MetricsConfig",
    "ObservabilityConfig",
]
