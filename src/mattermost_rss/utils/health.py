"""Health check for the Mattermost connection.

The check probes the credential identity and the news channel metadata
concurrently. Both calls degrade to fallback records on upstream errors,
so a report is only unhealthy when something unexpected escapes them.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from typing import TYPE_CHECKING, Any

import structlog

from mattermost_rss.utils.clock import Clock, isoformat_utc, utc_now

if TYPE_CHECKING:
    from mattermost_rss.interfaces.source import PostSource

log = structlog.get_logger()


class HealthStatus(StrEnum):
    """Health check status values."""

    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"


@dataclass
class HealthReport:
    """Outcome of one health check."""

    status: HealthStatus
    timestamp: datetime
    news_channel: str | None = None
    error: str | None = None
    latency_ms: float | None = None

    @property
    def healthy(self) -> bool:
        return self.status == HealthStatus.HEALTHY

    def to_dict(self) -> dict[str, Any]:
        """Convert to the ``/health`` response body."""
        body: dict[str, Any] = {
            "status": self.status.value,
            "timestamp": isoformat_utc(self.timestamp),
        }
        if self.healthy:
            body["mattermost"] = "connected"
            body["newsChannel"] = self.news_channel
        else:
            body["error"] = self.error
        return body


class HealthChecker:
    """Probes the upstream server through a PostSource.

    Example:
        checker = HealthChecker(adapter)
        report = await checker.check()
        if not report.healthy:
            print(report.error)
    """

    def __init__(self, source: PostSource, clock: Clock | None = None) -> None:
        self._source = source
        self._clock = clock or utc_now

    async def check(self) -> HealthReport:
        """Run the identity and channel probes.

        Returns:
            HealthReport describing the outcome
        """
        log.debug("health_check_start")
        timestamp = self._clock()
        start = time.monotonic()

        try:
            _identity, channel = await asyncio.gather(
                self._source.fetch_identity(),
                self._source.fetch_channel_info(),
            )
        except Exception as e:
            log.error("health_check_failed", error=str(e))
            return HealthReport(
                status=HealthStatus.UNHEALTHY,
                timestamp=timestamp,
                error=str(e),
            )

        latency = (time.monotonic() - start) * 1000
        log.debug(
            "health_check_complete",
            news_channel=channel.display_name,
            latency_ms=round(latency, 1),
        )
        return HealthReport(
            status=HealthStatus.HEALTHY,
            timestamp=timestamp,
            news_channel=channel.display_name,
            latency_ms=latency,
        )
