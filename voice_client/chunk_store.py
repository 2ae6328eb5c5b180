"""
Per-turn storage of streamed transcript fragments.

A turn maps sequence counters to text. Counters may arrive out of order,
with gaps, or repeated; a repeated counter overwrites (last write wins).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List


@dataclass(frozen=True)
class TranscriptChunk:
    """One fragment of a user's streamed transcript."""

    counter: int
    text: str


class ChunkStore:
    """Turn id -> (counter -> text)."""

    def __init__(self):
        self._turns: Dict[str, Dict[int, str]] = {}

    def record_chunk(self, turn_id: str, counter: int, text: str) -> None:
        self._turns.setdefault(turn_id, {})[counter] = text

    def clear_turn(self, turn_id: str) -> None:
        self._turns.pop(turn_id, None)

    def reassemble(self, turn_id: str) -> List[TranscriptChunk]:
        """Chunks of a turn in ascending counter order; empty for an unknown turn."""
        chunks = self._turns.get(turn_id, {})
        return [TranscriptChunk(counter=c, text=chunks[c]) for c in sorted(chunks)]

    def chunk_count(self, turn_id: str) -> int:
        return len(self._turns.get(turn_id, {}))

    def clear(self) -> None:
        self._turns.clear()

    def __len__(self) -> int:
        return len(self._turns)
