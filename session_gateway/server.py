"""
Session gateway HTTP server.
Can be run standalone (python -m session_gateway) or mounted into an existing app.
"""
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from logging_setup import get_logger, Component
from .errors import AuthorizeError
from .session_api import router as session_router

app = FastAPI(title="Voice Session Gateway")
logger = get_logger(Component.SESSION_GATEWAY)
app.include_router(session_router)


@app.exception_handler(AuthorizeError)
async def handle_authorize_error(request: Request, exc: AuthorizeError) -> JSONResponse:
    """Authorization failures become a structured JSON answer, never a raw trace."""
    logger.debug(
        "Authorization request failed",
        path=request.url.path,
        category=exc.category,
        status_code=exc.status_code,
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_response())


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "ok", "component": "session_gateway"}
