"""
Voice client -> session gateway authorization client.

Before a voice session starts the client exchanges its agent id for a
session credential. The gateway does the upstream call; this module only
posts the agent id and turns non-2xx answers into AuthorizeSessionError.
"""

from __future__ import annotations

import time
from typing import Any, Dict, Optional

import aiohttp

from logging_setup import get_logger, Component as LogComponent


logger = get_logger(LogComponent.VOICE_CLIENT)


class AuthorizeSessionError(Exception):
    """The gateway refused or failed the authorization exchange."""

    def __init__(self, status: int, error: str):
        self.status = status
        self.error = error
        super().__init__(f"{status} {error}")


def error_from_response(status: int, body: Any, reason: Optional[str] = None) -> AuthorizeSessionError:
    """
    Build the error for a non-2xx gateway answer.

    The gateway answers `{"error": ...}`; anything else falls back to the
    reason phrase so the message is never empty.
    """
    error = None
    if isinstance(body, dict):
        error = body.get("error") or body.get("detail")
    if not isinstance(error, str) or not error:
        error = reason or "authorize_failed"
    return AuthorizeSessionError(status, error)


class AuthorizeClient:
    """Posts `{"agent_id": ...}` to the gateway's authorize route."""

    def __init__(self, url: str, timeout_seconds: int = 10):
        self.url = url
        self.timeout_seconds = timeout_seconds

    async def authorize(self, agent_id: str, **metadata: Any) -> Dict[str, Any]:
        """
        Return the session credential payload relayed by the gateway.

        Raises AuthorizeSessionError on a non-2xx answer. Network failures
        propagate as aiohttp.ClientError.
        """
        payload = {"agent_id": agent_id, **metadata}
        start_ts = time.time()
        logger.info("Requesting session authorization", endpoint=self.url, agent_id=agent_id)

        async with aiohttp.ClientSession() as s:
            async with s.post(
                self.url,
                json=payload,
                timeout=aiohttp.ClientTimeout(total=self.timeout_seconds),
            ) as resp:
                try:
                    body = await resp.json(content_type=None)
                except ValueError:
                    body = None
                latency_ms = int((time.time() - start_ts) * 1000)
                if not 200 <= resp.status < 300:
                    err = error_from_response(resp.status, body, resp.reason)
                    logger.warning(
                        "Session authorization refused",
                        endpoint=self.url,
                        agent_id=agent_id,
                        status=resp.status,
                        error=err.error,
                        latency_ms=latency_ms,
                    )
                    raise err

                logger.info(
                    "Session authorization granted",
                    endpoint=self.url,
                    agent_id=agent_id,
                    status=resp.status,
                    latency_ms=latency_ms,
                )
                return body if isinstance(body, dict) else {}
