"""
Entry point for running the session gateway.

Usage:
    python -m session_gateway

This starts the FastAPI server on http://0.0.0.0:8000
"""
import os

import uvicorn
from logging_setup import setup_logging

if __name__ == "__main__":
    setup_logging(level=os.getenv("LOG_LEVEL", "INFO"), use_json=True)

    uvicorn.run(
        "session_gateway.server:app",
        host=os.getenv("GATEWAY_HOST", "0.0.0.0"),
        port=int(os.getenv("GATEWAY_PORT", "8000")),
        log_level="info"
    )
