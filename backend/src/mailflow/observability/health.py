"""Health probes for MailFlow.

Two components are checked against the relational store: the connection
itself, and whether the migrated schema is present. A reachable database
without the mail tables is reported as degraded so a deploy that skipped
migrations is visible without taking the instance out of rotation.
"""

import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional

from sqlalchemy import inspect, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .logging_config import get_logger

logger = get_logger(__name__)

REQUIRED_TABLES = ("organizations", "mail_rooms", "user_profiles", "mail_items")


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


@dataclass
class ComponentHealth:
    status: HealthStatus
    message: Optional[str] = None
    latency_ms: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"status": self.status.value, "message": self.message, "latency_ms": self.latency_ms}


def _timed(probe: Callable[[], Optional[str]]) -> ComponentHealth:
    """Run probe; a returned string is a degradation message."""
    started = time.perf_counter()
    try:
        problem = probe()
    except SQLAlchemyError as e:
        logger.error(f"Health probe failed: {e}", exc_info=True)
        return ComponentHealth(status=HealthStatus.UNHEALTHY, message=f"Database error: {e}")

    latency_ms = round((time.perf_counter() - started) * 1000, 2)
    if problem:
        return ComponentHealth(status=HealthStatus.DEGRADED, message=problem, latency_ms=latency_ms)
    return ComponentHealth(status=HealthStatus.HEALTHY, message="OK", latency_ms=latency_ms)


def check_database(db: Session) -> ComponentHealth:
    def probe() -> Optional[str]:
        db.execute(text("SELECT 1"))
        return None

    return _timed(probe)


def check_schema(db: Session) -> ComponentHealth:
    def probe() -> Optional[str]:
        inspector = inspect(db.get_bind())
        missing = [name for name in REQUIRED_TABLES if not inspector.has_table(name)]
        return f"Missing tables: {', '.join(missing)}" if missing else None

    return _timed(probe)


def run_health_checks(db: Session) -> Dict[str, ComponentHealth]:
    database = check_database(db)
    if database.status == HealthStatus.UNHEALTHY:
        return {"database": database}
    return {"database": database, "schema": check_schema(db)}


def overall_status(components: Dict[str, ComponentHealth]) -> HealthStatus:
    """Worst component status wins."""
    statuses = {component.status for component in components.values()}
    for status in (HealthStatus.UNHEALTHY, HealthStatus.DEGRADED):
        if status in statuses:
            return status
    return HealthStatus.HEALTHY
