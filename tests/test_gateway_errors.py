"""
Tests for authorization error classification and responses.
"""
from session_gateway.errors import (
    AuthorizeError,
    AuthorizeErrorCategory,
    classify_upstream_error,
    status_code_for,
)


class TestClassification:
    def test_insufficient_balance_by_substring(self):
        assert classify_upstream_error('{"error":"insufficient_balance"}') == AuthorizeErrorCategory.INSUFFICIENT_BALANCE
        assert classify_upstream_error("org has insufficient_balance left") == AuthorizeErrorCategory.INSUFFICIENT_BALANCE

    def test_everything_else_is_upstream_error(self):
        assert classify_upstream_error("Unauthorized") == AuthorizeErrorCategory.UPSTREAM_ERROR
        assert classify_upstream_error("insufficient balance") == AuthorizeErrorCategory.UPSTREAM_ERROR
        assert classify_upstream_error("") == AuthorizeErrorCategory.UPSTREAM_ERROR


class TestStatusCodes:
    def test_status_codes(self):
        assert status_code_for(AuthorizeErrorCategory.INSUFFICIENT_BALANCE) == 402
        assert status_code_for(AuthorizeErrorCategory.INVALID_REQUEST) == 400
        assert status_code_for(AuthorizeErrorCategory.UPSTREAM_ERROR) == 500
        assert status_code_for(AuthorizeErrorCategory.NETWORK_ERROR) == 500
        assert status_code_for(AuthorizeErrorCategory.MISCONFIGURED) == 500
        assert status_code_for("something.else") == 500


class TestAuthorizeError:
    def test_insufficient_balance_response_is_fixed(self):
        err = AuthorizeError(AuthorizeErrorCategory.INSUFFICIENT_BALANCE, "long upstream text with insufficient_balance")
        assert err.status_code == 402
        assert err.to_response() == {"error": "insufficient_balance"}

    def test_other_errors_carry_message(self):
        err = AuthorizeError(AuthorizeErrorCategory.UPSTREAM_ERROR, "agent not found")
        assert err.status_code == 500
        assert err.to_response() == {"error": "agent not found"}
        assert str(err) == "agent not found"
