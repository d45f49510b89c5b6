"""Observability for MailFlow: structured logging with request correlation,
Prometheus counters and health probes."""

from .correlation import bind_actor, bind_mail_room, current_correlation, start_request
from .health import ComponentHealth, HealthStatus, run_health_checks
from .logging_config import configure_logging, get_logger
from .metrics import (
    mail_item_transitions_total,
    mail_items_received_total,
    notifications_created_total,
)
from .middleware import RequestIDMiddleware

__all__ = [
    "bind_actor",
    "bind_mail_room",
    "current_correlation",
    "start_request",
    "ComponentHealth",
    "HealthStatus",
    "run_health_checks",
    "configure_logging",
    "get_logger",
    "mail_item_transitions_total",
    "mail_items_received_total",
    "notifications_created_total",
    "RequestIDMiddleware",
]
