"""
Unit tests for error mapping.
"""

import pytest

from notify_gateway.notifications.exceptions import (
    BadRequestError, ChannelMismatchError, ConfigurationError, ConflictError, DeliveryError,
    InvalidStateError, NotFoundError, RateLimitError, TemplateRenderError, UnauthorizedError,
    UnknownEngineError, UnsupportedError, UpstreamError, to_error_response
)


class TestErrorResponse:
    """Test exception to response mapping."""

    @pytest.mark.parametrize("error,status", [
        (NotFoundError("x"), 404),
        (InvalidStateError("x"), 400),
        (ChannelMismatchError("x", "email", "sms"), 400),
        (BadRequestError("x"), 400),
        (TemplateRenderError("x", "jinja2"), 400),
        (UnknownEngineError("x", "ejs"), 400),
        (UnauthorizedError("x"), 401),
        (ConflictError("x"), 409),
        (RateLimitError("x", retry_after=30), 429),
        (UnsupportedError("x"), 501),
        (UpstreamError("x", 503), 502),
        (DeliveryError("x", provider="twilio"), 502),
        (ConfigurationError("x"), 500),
    ])
    def test_status_codes(self, error, status):
        code, body = to_error_response(error)
        assert code == status
        assert body["status_code"] == status
        assert body["errors"] == [{"error": type(error).__name__, "message": "x"}]

    def test_explicit_status_code(self):
        error = BadRequestError("too large", status_code=413)
        assert to_error_response(error)[0] == 413

    def test_unknown_exception_hides_details(self):
        code, body = to_error_response(KeyError("secret internals"))

        assert code == 500
        assert body["errors"] == [{"error": "InternalServerError", "message": "Internal server error"}]

    def test_delivery_error_attributes(self):
        error = DeliveryError("SMTP down", provider="nodemailer", upstream_status=421)

        assert isinstance(error, UpstreamError)
        assert error.provider == "nodemailer"
        assert error.upstream_status == 421
