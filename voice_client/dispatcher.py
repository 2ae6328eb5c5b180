"""
Routing of inbound agent events.

The platform transport delivers loosely-typed records with optional
`type`, `turn_id`, `delta_counter` and `content` fields. Only three event
families change state; everything else, including records without a type,
is dropped without comment since the transport also sends control frames.
"""

from __future__ import annotations

import json
from typing import Any, Mapping, Optional

from .aggregator import TranscriptAggregator, normalize_turn_id
from .ledger import Message, MessageLedger, Role, UpsertMode


TURN_END = "turn.end"
USER_TRANSCRIPT_DELTA = "user.transcript.delta"
USER_TRANSCRIPT_INTERIM_DELTA = "user.transcript.interim_delta"
RESPONSE_TEXT = "response.text"

TRANSCRIPT_EVENT_TYPES = frozenset({USER_TRANSCRIPT_DELTA, USER_TRANSCRIPT_INTERIM_DELTA})


def parse_agent_event(raw: Any) -> dict[str, Any]:
    """
    Normalize a raw event into a dict.

    Accepts a mapping or a JSON string/bytes. Returns {} when the payload is
    missing, not valid JSON, or not an object.
    """
    if isinstance(raw, Mapping):
        return dict(raw)
    if isinstance(raw, (bytes, bytearray)):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError:
            return {}
    if not isinstance(raw, str) or not raw:
        return {}
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        return {}
    if not isinstance(parsed, dict):
        return {}
    return parsed


class EventDispatcher:
    """Routes agent events to the transcript aggregator and the message ledger."""

    def __init__(self, aggregator: TranscriptAggregator, ledger: MessageLedger):
        self.aggregator = aggregator
        self.ledger = ledger

    def dispatch(self, raw: Any) -> Optional[str]:
        """
        Handle one event to completion.

        Returns the event type that was acted on, or None if the event was ignored.
        """
        event = parse_agent_event(raw)
        event_type = event.get("type")
        if not event_type or not isinstance(event_type, str):
            return None

        if event_type == TURN_END:
            turn_id = normalize_turn_id(event.get("turn_id"))
            if turn_id is None:
                return None
            self.aggregator.on_turn_end(turn_id)
            return event_type

        if event_type in TRANSCRIPT_EVENT_TYPES:
            self.aggregator.on_delta(
                event.get("turn_id"),
                event.get("delta_counter"),
                event.get("content"),
            )
            return event_type

        if event_type == RESPONSE_TEXT:
            self._append_assistant_text(event)
            return event_type

        return None

    def _append_assistant_text(self, event: Mapping[str, Any]) -> None:
        content = event.get("content")
        self.ledger.upsert(
            Message(
                role=Role.ASSISTANT,
                text=content if isinstance(content, str) else "",
                turn_id=normalize_turn_id(event.get("turn_id")),
            ),
            UpsertMode.ACCUMULATE,
        )
