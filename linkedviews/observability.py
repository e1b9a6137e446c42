"""
Observability & Audit Layer

RESPONSIBILITY: record what the client did and what the backend answered.

WHAT THIS LAYER MUST NOT DO:
============================
- Modify view state
- Make decisions based on logged data
- Block or delay interaction

Every entry is mirrored to the stdlib `logging` tree under `linkedviews`.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional, Tuple
import logging

from .contracts.base import ViewName


logger = logging.getLogger("linkedviews.audit")


class AuditEventType(Enum):
    """Explicit audit event types."""
    SESSION_CREATED = "session_created"
    REQUEST_SENT = "request_sent"
    RESPONSE_APPLIED = "response_applied"
    RESPONSE_DISCARDED = "response_discarded"
    REQUEST_FAILED = "request_failed"
    SELECTION_CHANGED = "selection_changed"
    SELECTION_CLEARED = "selection_cleared"
    MODE_CHANGED = "mode_changed"
    FEEDBACK_UPDATED = "feedback_updated"


# Failures are logged louder than bookkeeping
_LEVELS = {
    AuditEventType.REQUEST_FAILED: logging.WARNING,
    AuditEventType.RESPONSE_DISCARDED: logging.INFO,
    AuditEventType.SESSION_CREATED: logging.INFO,
}


@dataclass(frozen=True)
class AuditEntry:
    """Immutable audit log entry."""
    sequence: int
    event_type: AuditEventType
    timestamp: datetime
    action: str
    view: Optional[ViewName] = None
    metadata: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)

    def get(self, key: str) -> Optional[str]:
        for k, v in self.metadata:
            if k == key:
                return v
        return None


class InteractionAuditLog:
    """
    Append-only collector of interaction and protocol events.

    Entries are numbered in the order they were recorded, which is
    also the order responses were applied.
    """

    def __init__(self):
        self._entries: List[AuditEntry] = []
        self._sequence: int = 0

    def record(
        self,
        event_type: AuditEventType,
        action: str,
        view: Optional[ViewName] = None,
        **metadata: object
    ) -> AuditEntry:
        self._sequence += 1
        entry = AuditEntry(
            sequence=self._sequence,
            event_type=event_type,
            timestamp=datetime.now(timezone.utc),
            action=action,
            view=view,
            metadata=tuple((k, str(v)) for k, v in metadata.items()),
        )
        self._entries.append(entry)
        logger.log(
            _LEVELS.get(event_type, logging.DEBUG),
            "%s %s%s %s",
            event_type.value,
            action,
            f" [{view.value}]" if view else "",
            " ".join(f"{k}={v}" for k, v in entry.metadata),
        )
        return entry

    def entries(
        self,
        event_type: Optional[AuditEventType] = None,
        view: Optional[ViewName] = None
    ) -> List[AuditEntry]:
        """Get entries, optionally filtered."""
        entries = self._entries
        if event_type:
            entries = [e for e in entries if e.event_type == event_type]
        if view:
            entries = [e for e in entries if e.view == view]
        return list(entries)
