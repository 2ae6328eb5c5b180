"""
Session-scoped voice client controller.

Owns the chunk store and the message ledger for one voice session and
reacts to the transport's lifecycle signals:

- connect attempt: everything is reset (chunks, messages, error banner)
- connected / disconnected: a system message is appended; disconnect also
  drops all pending transcript chunks but keeps the conversation visible
- error: shown as a system message, except an exhausted account balance,
  which raises a persistent banner until dismissed
"""

from __future__ import annotations

import uuid
from enum import Enum
from typing import Any, Dict, List, Optional, Protocol

from logging_setup import get_logger, Component as LogComponent
from observability.events import Component as ObsComponent, EventEmitter
from .aggregator import TranscriptAggregator, normalize_turn_id
from .authorize_client import AuthorizeClient
from .chunk_store import ChunkStore
from .config import ClientConfig
from .dispatcher import TURN_END, EventDispatcher, parse_agent_event
from .ledger import Message, MessageLedger


INSUFFICIENT_FUNDS_MESSAGE = (
    "Your organization has insufficient funds. "
    "Please add funds to your Layercode account to continue."
)


class SessionStatus(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class SessionAuthorizer(Protocol):
    async def authorize(self, agent_id: str, **metadata: Any) -> Dict[str, Any]: ...


def is_insufficient_balance(message: str) -> bool:
    """The platform reports an exhausted balance as `insufficient_balance` or HTTP 402."""
    return "insufficient_balance" in message or "402" in message


class VoiceSessionController:
    """Holds the transcript state of one voice session."""

    def __init__(
        self,
        agent_id: str,
        authorizer: Optional[SessionAuthorizer] = None,
        session_id: Optional[str] = None,
        emitter: Optional[EventEmitter] = None,
    ):
        self.agent_id = agent_id
        self.authorizer = authorizer
        self.session_id = session_id or str(uuid.uuid4())
        self.emitter = emitter or EventEmitter(ObsComponent.VOICE_CLIENT)
        self.logger = get_logger(LogComponent.VOICE_CLIENT, session_id=self.session_id)

        self.chunks = ChunkStore()
        self.ledger = MessageLedger()
        self.aggregator = TranscriptAggregator(self.chunks, self.ledger, session_id=self.session_id)
        self.dispatcher = EventDispatcher(self.aggregator, self.ledger)

        self.status = SessionStatus.DISCONNECTED
        self.error_banner: Optional[str] = None

    @classmethod
    def from_config(cls, config: ClientConfig) -> "VoiceSessionController":
        return cls(
            agent_id=config.agent_id,
            authorizer=AuthorizeClient(
                config.authorize_session_url,
                timeout_seconds=config.authorize_timeout_seconds,
            ),
        )

    @property
    def messages(self) -> List[Message]:
        return self.ledger.messages

    @property
    def is_active(self) -> bool:
        return self.status == SessionStatus.CONNECTED

    def _transition_to(self, new_status: SessionStatus) -> SessionStatus:
        old_status = self.status
        self.status = new_status
        if old_status != new_status:
            self.emitter.session_status_changed(self.session_id, old_status.value, new_status.value)
        return old_status

    # --- lifecycle signals ---

    def begin_connect(self) -> None:
        """Reset all session state ahead of a connect attempt."""
        self.chunks.clear()
        self.ledger.clear()
        self.error_banner = None
        self._transition_to(SessionStatus.CONNECTING)

    def on_connect(self) -> None:
        self._transition_to(SessionStatus.CONNECTED)
        self.ledger.append(Message.system("Connected"))
        self.logger.info("Voice session connected", agent_id=self.agent_id)

    def on_disconnect(self) -> None:
        self._transition_to(SessionStatus.DISCONNECTED)
        self.chunks.clear()
        self.ledger.append(Message.system("Disconnected"))
        self.logger.info("Voice session disconnected", message_count=len(self.ledger))

    def on_error(self, error: Any) -> None:
        """Surface a transport/session error to the user."""
        message = str(error)
        if is_insufficient_balance(message):
            self.error_banner = INSUFFICIENT_FUNDS_MESSAGE
            self.emitter.session_error(self.session_id, "insufficient_balance", detail=message)
            self.logger.warning("Voice session blocked by insufficient balance")
            return
        self.ledger.append(Message.system(f"Error: {message}"))
        self.emitter.session_error(self.session_id, "session_error", detail=message)
        self.logger.error("Voice session error", error=message)

    def on_connect_failed(self, error: Any) -> None:
        """The connect attempt failed; the failure replaces the conversation."""
        message = str(error)
        self._transition_to(SessionStatus.DISCONNECTED)
        if is_insufficient_balance(message):
            self.error_banner = INSUFFICIENT_FUNDS_MESSAGE
        self.ledger.reset([Message.system(f"Failed to connect: {message}")])
        self.emitter.session_error(
            self.session_id,
            "insufficient_balance" if self.error_banner else "connect_failed",
            detail=message,
        )
        self.logger.error("Voice session connect failed", error=message, error_type=type(error).__name__)

    def dismiss_error(self) -> None:
        self.error_banner = None

    def on_message(self, event: Any) -> Optional[str]:
        """Feed one agent event from the transport."""
        event = parse_agent_event(event)
        turn_id = normalize_turn_id(event.get("turn_id"))
        pending = self.chunks.chunk_count(turn_id) if turn_id is not None else 0

        handled = self.dispatcher.dispatch(event)
        if handled == TURN_END:
            self.emitter.turn_ended(self.session_id, turn_id, pending)
        return handled

    # --- session control ---

    async def connect(self, **metadata: Any) -> Optional[Dict[str, Any]]:
        """
        Authorize and open the session.

        Returns the credential payload, or None when the attempt was skipped
        (already connecting/connected) or failed. Any exception raised by the
        authorizer ends the attempt through on_connect_failed.
        """
        if self.status != SessionStatus.DISCONNECTED:
            return None
        if self.authorizer is None:
            raise ValueError("VoiceSessionController.connect requires an authorizer")

        self.begin_connect()
        try:
            credentials = await self.authorizer.authorize(self.agent_id, **metadata)
        except Exception as e:
            self.on_connect_failed(e)
            return None

        self.on_connect()
        return credentials

    def disconnect(self) -> None:
        if self.status == SessionStatus.DISCONNECTED:
            return
        self.on_disconnect()
