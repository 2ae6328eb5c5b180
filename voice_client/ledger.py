"""
Ordered conversation messages with keyed upsert.

Messages are appended in arrival order. A message carrying a turn_id can
instead be merged into the most recent message with the same (turn_id, role);
the merge strategy is chosen by the caller via UpsertMode.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Iterator, List, Optional

from .chunk_store import TranscriptChunk


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class UpsertMode(str, Enum):
    """How an upsert merges into an existing message."""

    ACCUMULATE = "accumulate"  # new text is appended to the existing text
    REPLACE = "replace"        # new text overwrites the existing text


@dataclass(frozen=True)
class Message:
    """A single conversation entry."""

    role: Role
    text: str
    turn_id: Optional[str] = None
    chunks: Optional[List[TranscriptChunk]] = None

    @classmethod
    def system(cls, text: str) -> "Message":
        return cls(role=Role.SYSTEM, text=text)


class MessageLedger:
    """Ordered message list; append-only except for in-place upsert."""

    def __init__(self):
        self._messages: List[Message] = []

    @property
    def messages(self) -> List[Message]:
        """Snapshot of the current messages."""
        return list(self._messages)

    def append(self, message: Message) -> None:
        self._messages.append(message)

    def upsert(self, message: Message, mode: UpsertMode = UpsertMode.ACCUMULATE) -> int:
        """
        Merge `message` into the latest message with the same (turn_id, role),
        or append it when there is none. Messages without a turn_id always append.

        Returns the index the message ended up at.
        """
        index = self.find(message.turn_id, message.role)
        if index is None:
            self._messages.append(message)
            return len(self._messages) - 1

        current = self._messages[index]
        if mode == UpsertMode.REPLACE:
            text = message.text
        else:
            text = current.text + message.text
        chunks = message.chunks if message.chunks is not None else current.chunks

        self._messages[index] = replace(current, text=text, chunks=chunks)
        return index

    def find(self, turn_id: Optional[str], role: Role) -> Optional[int]:
        """Index of the most recent message keyed by (turn_id, role)."""
        if turn_id is None:
            return None
        for index in range(len(self._messages) - 1, -1, -1):
            candidate = self._messages[index]
            if candidate.turn_id == turn_id and candidate.role == role:
                return index
        return None

    def get(self, turn_id: str, role: Role) -> Optional[Message]:
        index = self.find(turn_id, role)
        return self._messages[index] if index is not None else None

    def reset(self, messages: Optional[List[Message]] = None) -> None:
        """Replace the whole ledger (empty by default)."""
        self._messages = list(messages or [])

    def clear(self) -> None:
        self._messages.clear()

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[Message]:
        return iter(list(self._messages))
