"""
Structured event emission tests.
Tests the event envelope, the in-memory store and the helper events.
"""
import json
import sys
from io import StringIO
from datetime import datetime

import pytest

from observability.event_store import EventStore
from observability.events import Component, EventEmitter, Severity


@pytest.fixture
def store():
    return EventStore()


@pytest.fixture
def emitter(store):
    return EventEmitter(Component.SESSION_GATEWAY, store=store)


def _capture(fn):
    old_stdout = sys.stdout
    sys.stdout = captured_output = StringIO()
    try:
        fn()
    finally:
        sys.stdout = old_stdout
    return [json.loads(line) for line in captured_output.getvalue().splitlines() if line]


class TestEventFormat:
    """Test the event envelope."""

    def test_required_fields(self, emitter):
        events = _capture(lambda: emitter.emit(
            event_type="test.event",
            session_id="test-session-123",
            severity=Severity.INFO,
        ))

        event = events[0]
        for key in ("ts", "session_id", "component", "event_type", "severity", "correlation_id", "pii"):
            assert key in event

        assert event["session_id"] == "test-session-123"
        assert event["component"] == "session_gateway"
        assert event["event_type"] == "test.event"
        assert event["severity"] == "info"
        assert event["correlation_id"] == "test-session-123"
        assert event["pii"] == {"contains_pii": False, "fields": [], "handling": "none"}

    def test_timestamp_format(self, emitter):
        event = _capture(lambda: emitter.emit("test.event", "s1"))[0]
        datetime.fromisoformat(event["ts"].replace("Z", "+00:00"))

    def test_extra_fields_and_correlation(self, emitter):
        event = _capture(lambda: emitter.emit(
            "test.event",
            "s1",
            correlation_id="auth_1",
            latency_ms=42,
            attempt=1,
        ))[0]

        assert event["correlation_id"] == "auth_1"
        assert event["latency_ms"] == 42
        assert event["attempt"] == 1

    def test_emitted_events_are_stored(self, emitter, store):
        _capture(lambda: emitter.emit("test.event", "s1", latency_ms=7))

        stored = store.query(session_id="s1")
        assert len(stored) == 1
        assert stored[0]["event_type"] == "test.event"
        assert stored[0]["latency_ms"] == 7


class TestEventHelpers:
    def test_session_status_changed(self, store):
        emitter = EventEmitter(Component.VOICE_CLIENT, store=store)
        event = _capture(lambda: emitter.session_status_changed("s1", "disconnected", "connecting"))[0]

        assert event["event_type"] == "session.status_changed"
        assert event["component"] == "voice_client"
        assert event["from_status"] == "disconnected"
        assert event["to_status"] == "connecting"

    def test_session_error(self, emitter):
        event = _capture(lambda: emitter.session_error("s1", "insufficient_balance", detail="402"))[0]

        assert event["event_type"] == "session.error"
        assert event["severity"] == "error"
        assert event["category"] == "insufficient_balance"

    def test_turn_ended_carries_no_text(self, emitter):
        event = _capture(lambda: emitter.turn_ended("s1", "t1", 3))[0]

        assert event["event_type"] == "transcript.turn_ended"
        assert event["correlation_id"] == "t1"
        assert event["chunk_count"] == 3
        assert "content" not in event and "text" not in event

    def test_authorize_completed_severity(self, emitter):
        ok, failed = _capture(lambda: (
            emitter.authorize_completed("ag_1", "auth_1", "ok", 200, latency_ms=12),
            emitter.authorize_completed("ag_1", "auth_2", "error", 402, category="insufficient_balance"),
        ))

        assert ok["severity"] == "info"
        assert ok["session_id"] == "ag_1"
        assert failed["severity"] == "warn"
        assert failed["status_code"] == 402


class TestEventStore:
    def test_query_filters_and_limit(self, store):
        store.store({"ts": "2026-01-01T00:00:00+00:00", "session_id": "a", "component": "voice_client", "event_type": "x"})
        store.store({"ts": "2026-01-01T00:00:01+00:00", "session_id": "a", "component": "session_gateway", "event_type": "y"})
        store.store({"ts": "2026-01-01T00:00:02Z", "session_id": "b", "component": "voice_client", "event_type": "x"})

        assert [e["event_type"] for e in store.query(session_id="a")] == ["x", "y"]
        assert len(store.query(event_type="x")) == 2
        assert len(store.query(component="session_gateway")) == 1
        assert len(store.query(limit=2)) == 2

    def test_bounded(self):
        store = EventStore(max_events=2)
        for i in range(3):
            store.store({"session_id": f"s{i}", "event_type": "x"})

        assert [e["session_id"] for e in store.query()] == ["s1", "s2"]
        assert store.get_stats()["total_events"] == 2

    def test_clear(self, store):
        store.store({"session_id": "s", "event_type": "x"})
        store.clear()
        assert store.query() == []
        assert store.get_stats()["oldest_event_ts"] is None
