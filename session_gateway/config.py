"""
Configuration management for the session gateway.
Loads from environment variables with sensible defaults.
"""
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


DEFAULT_AUTHORIZE_URL = "https://api.layercode.com/v1/agents/web/authorize_session"


def load_local_env() -> None:
    """Load .env_local / .env.local from the project root without overriding the environment."""
    root = Path(__file__).parent.parent
    for name in (".env_local", ".env.local"):
        p = root / name
        if p.exists():
            load_dotenv(p, override=False)


@dataclass
class GatewayConfig:
    """Session gateway configuration."""

    # Layercode credentials; validated per request so the app can start without them
    layercode_api_key: Optional[str]

    layercode_authorize_url: str = DEFAULT_AUTHORIZE_URL
    authorize_timeout_seconds: float = 10.0

    @classmethod
    def from_env(cls) -> "GatewayConfig":
        """Load configuration from environment variables."""
        timeout = os.environ.get("AUTHORIZE_TIMEOUT_SECONDS", "").split("#")[0].strip()
        try:
            timeout_seconds = float(timeout) if timeout else 10.0
        except ValueError:
            timeout_seconds = 10.0
        return cls(
            layercode_api_key=(os.environ.get("LAYERCODE_API_KEY") or "").strip() or None,
            layercode_authorize_url=os.environ.get("LAYERCODE_AUTHORIZE_URL", DEFAULT_AUTHORIZE_URL),
            authorize_timeout_seconds=timeout_seconds,
        )


def get_config() -> GatewayConfig:
    """Get or create global config instance."""
    global _config
    if _config is None:
        load_local_env()
        _config = GatewayConfig.from_env()
    return _config


# Global config instance (lazy loaded)
_config: Optional[GatewayConfig] = None
