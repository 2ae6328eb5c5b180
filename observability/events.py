"""
Structured JSON event emission (shared).

Used by the session gateway and the voice client. Every event carries the same
envelope (ts, session_id, component, event_type, severity, correlation_id, pii)
plus event-specific fields, is written as one JSON line to stdout and kept in
the in-memory event store for the read API.
"""

from __future__ import annotations

import json
import sys
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from .event_store import EventStore, event_store


class Component(str, Enum):
    """Event-producing components."""

    SESSION_GATEWAY = "session_gateway"
    VOICE_CLIENT = "voice_client"


class Severity(str, Enum):
    """Event severity levels."""

    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"


DEFAULT_PII = {"contains_pii": False, "fields": [], "handling": "none"}


class EventEmitter:
    """Emits structured JSON events."""

    def __init__(self, component: Component, store: Optional[EventStore] = None):
        self.component = component
        self.store = store if store is not None else event_store

    def emit(
        self,
        event_type: str,
        session_id: str,
        severity: Severity = Severity.INFO,
        correlation_id: Optional[str] = None,
        pii: Optional[Dict[str, Any]] = None,
        **kwargs: Any,
    ) -> None:
        event = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "session_id": session_id,
            "component": self.component.value,
            "event_type": event_type,
            "severity": severity.value,
            "correlation_id": correlation_id or session_id,
            "pii": pii or DEFAULT_PII,
        }
        event.update(kwargs)

        sys.stdout.write(json.dumps(event, ensure_ascii=False, default=str))
        sys.stdout.write("\n")
        sys.stdout.flush()

        self.store.store(event)

    def session_status_changed(
        self,
        session_id: str,
        from_status: str,
        to_status: str,
    ) -> None:
        """Emit session.status_changed."""
        self.emit(
            "session.status_changed",
            session_id,
            from_status=from_status,
            to_status=to_status,
        )

    def session_error(
        self,
        session_id: str,
        category: str,
        detail: Optional[str] = None,
    ) -> None:
        """Emit session.error (transport or authorization failure seen by the client)."""
        self.emit(
            "session.error",
            session_id,
            severity=Severity.ERROR,
            category=category,
            detail=detail,
        )

    def turn_ended(
        self,
        session_id: str,
        turn_id: str,
        chunk_count: int,
    ) -> None:
        """Emit transcript.turn_ended. Carries counts only, never transcript text."""
        self.emit(
            "transcript.turn_ended",
            session_id,
            correlation_id=turn_id,
            turn_id=turn_id,
            chunk_count=chunk_count,
        )

    def authorize_requested(self, agent_id: str, correlation_id: str) -> None:
        """Emit authorize.requested."""
        self.emit(
            "authorize.requested",
            agent_id,
            correlation_id=correlation_id,
        )

    def authorize_completed(
        self,
        agent_id: str,
        correlation_id: str,
        result: str,
        status_code: int,
        category: Optional[str] = None,
        latency_ms: Optional[int] = None,
    ) -> None:
        """Emit authorize.completed with the outcome of the upstream exchange."""
        self.emit(
            "authorize.completed",
            agent_id,
            severity=Severity.INFO if result == "ok" else Severity.WARN,
            correlation_id=correlation_id,
            result=result,
            status_code=status_code,
            category=category,
            latency_ms=latency_ms,
        )
