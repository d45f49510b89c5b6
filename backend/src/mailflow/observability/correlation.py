"""Per-request correlation state for log lines.

A RequestCorrelation is created when a request enters the middleware and is
filled in as the request is resolved: the authenticated profile first, then
the organization and mailroom once the MailroomContext exists.

The object is held in a context variable and mutated in place. Sync
dependencies run in a threadpool with a copy of the context, so rebinding
the variable there would not be seen by the middleware; mutating the shared
object is.
"""

import uuid
from contextvars import ContextVar
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional


@dataclass
class RequestCorrelation:
    request_id: str
    user_id: Optional[int] = None
    organization_id: Optional[int] = None
    mail_room_id: Optional[int] = None

    def as_log_fields(self) -> Dict[str, Any]:
        return {key: value for key, value in asdict(self).items() if value is not None}


_correlation: ContextVar[Optional[RequestCorrelation]] = ContextVar("mailflow_correlation", default=None)


def start_request(request_id: Optional[str] = None) -> RequestCorrelation:
    """Begin correlation for a new request, reusing an inbound X-Request-ID."""
    correlation = RequestCorrelation(request_id=request_id or str(uuid.uuid4()))
    _correlation.set(correlation)
    return correlation


def current_correlation() -> Optional[RequestCorrelation]:
    return _correlation.get()


def bind_actor(user_id: int, organization_id: int) -> None:
    correlation = _correlation.get()
    if correlation is not None:
        correlation.user_id = user_id
        correlation.organization_id = organization_id


def bind_mail_room(mail_room_id: Optional[int]) -> None:
    correlation = _correlation.get()
    if correlation is not None:
        correlation.mail_room_id = mail_room_id
