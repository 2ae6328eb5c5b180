"""
Voice client configuration.

Loads the agent id and the authorization endpoint from environment variables.
"""
import os
from dataclasses import dataclass
from typing import Optional


DEFAULT_AUTHORIZE_SESSION_URL = "http://127.0.0.1:8000/api/authorize"


def _parse_int_env(key: str, default: int) -> int:
    """
    Parse integer environment variable, stripping comments and whitespace.

    Handles cases like:
    - "10  # comment" -> 10
    - "10" -> 10
    - None -> default
    """
    value = os.environ.get(key)
    if not value:
        return default

    if "#" in value:
        value = value.split("#")[0]

    value = value.strip()

    if not value:
        return default

    try:
        return int(value)
    except ValueError:
        return default


@dataclass
class ClientConfig:
    """Voice client configuration."""

    # Layercode agent the session talks to
    agent_id: str

    # Gateway route that exchanges the agent id for a session credential
    authorize_session_url: str = DEFAULT_AUTHORIZE_SESSION_URL

    authorize_timeout_seconds: int = 10

    @classmethod
    def from_env(cls) -> "ClientConfig":
        """Load configuration from environment variables."""
        return cls(
            agent_id=os.environ["LAYERCODE_AGENT_ID"],
            authorize_session_url=os.environ.get("AUTHORIZE_SESSION_URL", DEFAULT_AUTHORIZE_SESSION_URL),
            authorize_timeout_seconds=_parse_int_env("AUTHORIZE_TIMEOUT_SECONDS", default=10),
        )


def get_config() -> ClientConfig:
    """Get or create global config instance."""
    global _config
    if _config is None:
        _config = ClientConfig.from_env()
    return _config


# Global config instance (lazy loaded)
_config: Optional[ClientConfig] = None
