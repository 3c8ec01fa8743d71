"""Dependency checks for /health and /ready.

Each check runs one round trip against a dependency and reports its latency.
A check never raises; failures come back as UNHEALTHY with the error text.
"""

import time
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional

import redis
from sqlalchemy import text
from sqlalchemy.orm import Session

from ..config import get_settings
from .logging_config import get_logger

logger = get_logger(__name__)


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"
    DEGRADED = "degraded"


@dataclass
class ComponentHealth:
    status: HealthStatus
    message: Optional[str] = None
    latency_ms: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        body = asdict(self)
        body["status"] = self.status.value
        return body


def timed_check(component: str, round_trip: Callable[[], Any]) -> ComponentHealth:
    """Time round_trip and turn its outcome into a ComponentHealth."""
    started = time.perf_counter()
    try:
        round_trip()
    except Exception as e:
        logger.error(f"{component} health check failed: {e}", exc_info=True)
        return ComponentHealth(HealthStatus.UNHEALTHY, message=f"{component} error: {e}")

    return ComponentHealth(
        HealthStatus.HEALTHY,
        message=f"{component} connection OK",
        latency_ms=round((time.perf_counter() - started) * 1000, 2),
    )


def check_database_health(db: Session) -> ComponentHealth:
    return timed_check("Database", lambda: db.execute(text("SELECT 1")))


def check_redis_health() -> ComponentHealth:
    return timed_check("Redis", lambda: redis.from_url(get_settings().REDIS_URL).ping())


def get_overall_health(components: Dict[str, ComponentHealth]) -> HealthStatus:
    """UNHEALTHY wins over DEGRADED, which wins over HEALTHY."""
    statuses = {component.status for component in components.values()}
    for status in (HealthStatus.UNHEALTHY, HealthStatus.DEGRADED):
        if status in statuses:
            return status
    return HealthStatus.HEALTHY
