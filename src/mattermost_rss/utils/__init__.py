"""Utility functions and helpers.

This module provides various utilities for the Mattermost RSS service:
- security: Secret redaction
- logging: Structured logging with secret sanitization
- health: Health check for the upstream connection
- clock: UTC time helpers
"""

from mattermost_rss.utils.health import (
    HealthChecker,
    HealthReport,
    HealthStatus,
)
from mattermost_rss.utils.logging import (
    LogFormat,
    LogLevel,
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
    unbind_context,
)
from mattermost_rss.utils.security import (
    RedactionError,
    SecretRedactor,
    SecurityError,
)

__all__ = [
    # Health
    "HealthChecker",
    "HealthReport",
    "HealthStatus",
    # Logging
    "LogFormat",
    "LogLevel",
    "bind_context",
    "clear_context",
    "configure_logging",
    "get_logger",
    "unbind_context",
    # Security
    "RedactionError",
    "SecretRedactor",
    "SecurityError",
]
