"""
Turn-scoped transcript aggregation.

User transcript deltas arrive as (turn_id, delta_counter, content). Each
delta is stored under its counter and the turn's full text is rebuilt by
concatenating the fragments in counter order, so out-of-order arrival and
resent fragments still produce a coherent message. The rebuilt text always
replaces the turn's user message in the ledger.

Deltas that cannot be placed (no turn id, or a counter that is not a number)
replace the turn's message with the raw content instead. Nothing here raises
for malformed input.
"""

from __future__ import annotations

import math
from typing import Any, Optional

from logging_setup import get_logger, Component
from .chunk_store import ChunkStore
from .ledger import Message, MessageLedger, Role, UpsertMode


def parse_counter(value: Any) -> Optional[int]:
    """
    Coerce a delta counter to an int.

    Accepts ints, integral floats and numeric strings ("3", " 3 ", "3.0").
    Returns None for anything else, including booleans and empty strings.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if math.isfinite(value) and value.is_integer():
            return int(value)
        return None
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            return int(text)
        except ValueError:
            pass
        try:
            number = float(text)
        except ValueError:
            return None
        if math.isfinite(number) and number.is_integer():
            return int(number)
    return None


def normalize_turn_id(value: Any) -> Optional[str]:
    """Turn ids are opaque strings; numeric ids are stringified. Integral floats drop their ".0"."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, float):
        if not math.isfinite(value):
            return None
        if value.is_integer():
            return str(int(value))
    if isinstance(value, (str, int, float)):
        text = str(value)
        return text or None
    return None


class TranscriptAggregator:
    """Reassembles user transcript deltas into per-turn ledger messages."""

    def __init__(
        self,
        store: ChunkStore,
        ledger: MessageLedger,
        session_id: Optional[str] = None,
    ):
        self.store = store
        self.ledger = ledger
        self.logger = get_logger(Component.TRANSCRIPT, session_id=session_id)

    def on_delta(self, turn_id: Any, counter: Any, content: Any) -> Message:
        """Apply one transcript delta and return the resulting user message."""
        turn = normalize_turn_id(turn_id)
        position = parse_counter(counter)
        text = content if isinstance(content, str) else ""

        if turn is None or position is None:
            return self._replace_whole(turn, text)

        self.store.record_chunk(turn, position, text)
        chunks = self.store.reassemble(turn)
        message = Message(
            role=Role.USER,
            text="".join(chunk.text for chunk in chunks),
            turn_id=turn,
            chunks=chunks,
        )
        self.ledger.upsert(message, UpsertMode.REPLACE)
        self.logger.debug(
            "Transcript delta applied",
            turn_id=turn,
            counter=position,
            chunk_count=len(chunks),
            transcript_length=len(message.text),
        )
        return message

    def on_turn_end(self, turn_id: Any) -> None:
        """Forget the turn's fragments; its last message stays in the ledger."""
        turn = normalize_turn_id(turn_id)
        if turn is None:
            return
        chunk_count = self.store.chunk_count(turn)
        self.store.clear_turn(turn)
        self.logger.debug("Turn chunks cleared", turn_id=turn, chunk_count=chunk_count)

    def _replace_whole(self, turn: Optional[str], text: str) -> Message:
        if turn is not None:
            self.store.clear_turn(turn)
        message = Message(role=Role.USER, text=text, turn_id=turn, chunks=[])
        self.ledger.upsert(message, UpsertMode.REPLACE)
        self.logger.debug(
            "Transcript delta without usable counter, replacing message",
            turn_id=turn,
            transcript_length=len(text),
        )
        return message
