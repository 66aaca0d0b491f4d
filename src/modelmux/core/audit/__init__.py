"""Audit log of request/response pairs."""

from modelmux.core.audit.log import DEFAULT_MAX_ENTRIES, AuditListener, AuditLog
from modelmux.core.audit.models import LoggedInteraction, LoggedRequest, LoggedResponse

__all__ = [
    "DEFAULT_MAX_ENTRIES",
    "AuditListener",
    "AuditLog",
    "LoggedInteraction",
    "LoggedRequest",
    "LoggedResponse",
]
