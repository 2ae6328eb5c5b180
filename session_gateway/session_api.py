"""
Session gateway API.

POST /api/authorize is the first call of every voice session: the browser
(or voice client) sends the agent id, the gateway adds the Layercode bearer
key and forwards the request to the authorization service, and relays the
session credential back.

Implementation notes:
- Stateless per call, no retries.
- Failures are answered as `{"error": ...}`; an exhausted account balance is
  detected in the upstream error text and answered with 402.
- Emits authorize.requested / authorize.completed events, with the agent id
  as session id.

Also serves the knowledge prompt block and a read API over emitted events.
"""

from __future__ import annotations

import asyncio
import time
from typing import Any, Dict, List, Optional

import aiohttp
from fastapi import APIRouter, Query, Request
from pydantic import BaseModel, Field

from logging_setup import get_logger, Component as LogComponent
from observability.events import Component as ObsComponent, EventEmitter
from observability.event_store import event_store
from .config import GatewayConfig, get_config
from .errors import (
    AuthorizeError,
    AuthorizeErrorCategory,
    UpstreamAuthorizeError,
    classify_upstream_error,
    status_code_for,
)
from .knowledge import format_knowledge_for_prompt, get_knowledge_base


router = APIRouter(prefix="/api", tags=["session"])
emitter = EventEmitter(ObsComponent.SESSION_GATEWAY)
logger = get_logger(LogComponent.AUTHORIZE_PROXY)


def _new_correlation_id() -> str:
    return f"auth_{int(time.time() * 1000)}"


async def _forward_authorize(payload: Dict[str, Any], config: GatewayConfig) -> Dict[str, Any]:
    """
    POST the caller's body to the Layercode authorization service.

    Raises UpstreamAuthorizeError with the upstream body text (or reason
    phrase) on a non-2xx answer, and on a 2xx answer whose body is not a
    JSON object.
    """
    headers = {
        "Content-Type": "application/json",
        "Authorization": f"Bearer {config.layercode_api_key}",
    }
    async with aiohttp.ClientSession() as s:
        async with s.post(
            config.layercode_authorize_url,
            json=payload,
            headers=headers,
            timeout=aiohttp.ClientTimeout(total=config.authorize_timeout_seconds),
        ) as resp:
            if not 200 <= resp.status < 300:
                text = await resp.text()
                raise UpstreamAuthorizeError(resp.status, text or resp.reason or "")
            try:
                body = await resp.json(content_type=None)
            except ValueError:
                body = None
            if not isinstance(body, dict):
                raise UpstreamAuthorizeError(resp.status, "invalid JSON from authorization service")
            return body


async def _read_payload(request: Request) -> Dict[str, Any]:
    try:
        payload = await request.json()
    except ValueError:
        payload = None
    if not isinstance(payload, dict) or not payload.get("agent_id"):
        raise AuthorizeError(AuthorizeErrorCategory.INVALID_REQUEST, "Missing agent_id in request body.")
    return payload


@router.post("/authorize")
async def authorize_session(request: Request) -> Dict[str, Any]:
    """
    Exchange an agent id for a voice session credential.

    The request body is forwarded unchanged, so callers may add session
    metadata next to `agent_id`.
    """
    config = get_config()
    if not config.layercode_api_key:
        logger.error("Authorization requested without LAYERCODE_API_KEY")
        raise AuthorizeError(AuthorizeErrorCategory.MISCONFIGURED, "LAYERCODE_API_KEY is not set.")

    payload = await _read_payload(request)
    agent_id = str(payload["agent_id"])
    correlation_id = _new_correlation_id()
    start_ts = time.time()

    emitter.authorize_requested(agent_id, correlation_id)

    try:
        result = await _forward_authorize(payload, config)
    except UpstreamAuthorizeError as e:
        category = classify_upstream_error(str(e))
        _log_failure(agent_id, correlation_id, category, start_ts, str(e), upstream_status=e.status)
        raise AuthorizeError(category, str(e))
    except (aiohttp.ClientError, asyncio.TimeoutError) as e:
        message = str(e) or type(e).__name__
        category = AuthorizeErrorCategory.NETWORK_ERROR
        _log_failure(agent_id, correlation_id, category, start_ts, message)
        raise AuthorizeError(category, message)

    latency_ms = int((time.time() - start_ts) * 1000)
    emitter.authorize_completed(agent_id, correlation_id, "ok", 200, latency_ms=latency_ms)
    logger.info("Session authorized", agent_id=agent_id, latency_ms=latency_ms)
    return result


def _log_failure(
    agent_id: str,
    correlation_id: str,
    category: str,
    start_ts: float,
    message: str,
    upstream_status: Optional[int] = None,
) -> None:
    latency_ms = int((time.time() - start_ts) * 1000)
    logger.warning(
        "Layercode authorize session response error",
        agent_id=agent_id,
        category=category,
        upstream_status=upstream_status,
        error=message,
        latency_ms=latency_ms,
    )
    emitter.authorize_completed(
        agent_id,
        correlation_id,
        "error",
        status_code_for(category),
        category=category,
        latency_ms=latency_ms,
    )


# --- Knowledge ---


class KnowledgeResponse(BaseModel):
    name: str
    prompt: str


@router.get("/knowledge", response_model=KnowledgeResponse)
async def get_knowledge(
    name: Optional[str] = Query(None, description="Knowledge base name (defaults to KNOWLEDGE_BASE or 'default')"),
) -> KnowledgeResponse:
    """Serve the static knowledge base as a prompt-ready block."""
    knowledge = get_knowledge_base(name)
    return KnowledgeResponse(name=knowledge.name, prompt=format_knowledge_for_prompt(knowledge))


# --- Read API ---


class EventsResponse(BaseModel):
    events: List[Dict[str, Any]] = Field(default_factory=list)
    count: int


@router.get("/events", response_model=EventsResponse)
async def list_events(
    session_id: Optional[str] = Query(None, description="Filter by session_id (agent id for authorize events)"),
    event_type: Optional[str] = Query(None, description="Filter by event_type"),
    component: Optional[str] = Query(None, description="Filter by component"),
    limit: Optional[int] = Query(None, ge=1, le=1000, description="Max events to return"),
) -> EventsResponse:
    """Query structured events emitted by this process, oldest first."""
    events: List[Dict[str, Any]] = event_store.query(
        session_id=session_id,
        event_type=event_type,
        component=component,
        limit=limit,
    )
    return EventsResponse(events=events, count=len(events))


@router.get("/events/stats")
async def event_stats() -> Dict[str, Any]:
    """Size and time range of the in-memory event store."""
    return event_store.get_stats()
