"""
Authorization exchange error handling.
Maps upstream failures to stable categories and status codes without crashing.
"""
from typing import Any, Dict


class AuthorizeErrorCategory:
    """Stable error categories for the authorization exchange."""

    # Account state
    INSUFFICIENT_BALANCE = "insufficient_balance"

    # Upstream / transport
    UPSTREAM_ERROR = "upstream_error"
    NETWORK_ERROR = "network_error"

    # Local setup / caller input
    MISCONFIGURED = "misconfigured"
    INVALID_REQUEST = "invalid_request"


_STATUS_CODES = {
    AuthorizeErrorCategory.INSUFFICIENT_BALANCE: 402,
    AuthorizeErrorCategory.UPSTREAM_ERROR: 500,
    AuthorizeErrorCategory.NETWORK_ERROR: 500,
    AuthorizeErrorCategory.MISCONFIGURED: 500,
    AuthorizeErrorCategory.INVALID_REQUEST: 400,
}


class AuthorizeError(Exception):
    """
    A failed authorization exchange.

    Rendered by the app's exception handler as `{"error": ...}` with the
    category's status code.
    """

    def __init__(self, category: str, message: str):
        self.category = category
        self.message = message
        super().__init__(message)

    @property
    def status_code(self) -> int:
        return status_code_for(self.category)

    def to_response(self) -> Dict[str, Any]:
        if self.category == AuthorizeErrorCategory.INSUFFICIENT_BALANCE:
            return {"error": AuthorizeErrorCategory.INSUFFICIENT_BALANCE}
        return {"error": self.message}


def status_code_for(category: str) -> int:
    return _STATUS_CODES.get(category, 500)


class UpstreamAuthorizeError(Exception):
    """The authorization service answered with a non-2xx status."""

    def __init__(self, status: int, message: str):
        self.status = status
        super().__init__(message)


def classify_upstream_error(message: str) -> str:
    """
    Classify an upstream error message into a stable category.

    Only an exhausted balance is singled out; every other upstream
    failure is reported as-is under upstream_error.
    """
    if message and "insufficient_balance" in message:
        return AuthorizeErrorCategory.INSUFFICIENT_BALANCE
    return AuthorizeErrorCategory.UPSTREAM_ERROR
