"""
Tests for error classification and retryability.
"""

import asyncio
import logging
import random

import httpx
import pytest

from widget_gateway.core.errors import (
    ErrorKind,
    GatewayError,
    QuerySecretFilter,
    RETRYABLE_KINDS,
    classify_response_error,
    classify_status,
    classify_transport_error,
    extract_error_message,
    redact,
    redact_query_secrets,
)

STATUS_TABLE = [
    (400, "Invalid value for 'model parameter'", ErrorKind.CONFIGURATION, False),
    (400, "messages: field required", ErrorKind.BAD_REQUEST, False),
    (401, "Invalid API key", ErrorKind.AUTHENTICATION, False),
    (429, "Too many requests", ErrorKind.RATE_LIMIT, True),
    (500, "Internal error", ErrorKind.SERVICE_UNAVAILABLE, True),
    (502, "Bad gateway", ErrorKind.SERVICE_UNAVAILABLE, True),
    (503, "Overloaded", ErrorKind.SERVICE_UNAVAILABLE, True),
    (504, "Gateway timeout", ErrorKind.SERVICE_UNAVAILABLE, True),
    (418, "I'm a teapot", ErrorKind.API_ERROR, False),
]


class TestStatusClassification:
    """HTTP status -> ErrorKind mapping."""

    @pytest.mark.parametrize("status,message,kind,retryable", STATUS_TABLE)
    def test_status_mapping(self, status, message, kind, retryable):
        """Test each status maps to its kind and retryable flag."""
        error = classify_status(status, message, provider="openai", model="gpt-4o-mini")
        assert error.kind == kind
        assert error.retryable is retryable
        assert error.status_code == status

    @pytest.mark.parametrize("status,message,kind,retryable", STATUS_TABLE)
    def test_mapping_is_deterministic(self, status, message, kind, retryable):
        """Test classifying the same input twice gives the same result."""
        first = classify_status(status, message)
        second = classify_status(status, message)
        assert (first.kind, first.retryable) == (second.kind, second.retryable)

    def test_model_parameter_match_is_case_insensitive(self):
        error = classify_status(400, "Unsupported Model Parameter value")
        assert error.kind == ErrorKind.CONFIGURATION

    def test_configuration_error_names_model(self):
        """Test the model sent is recorded for diagnostics."""
        error = classify_status(400, "bad model parameter", model="gpt-5-preview")
        assert error.debug_info == "model sent: gpt-5-preview"

    @pytest.mark.parametrize("status", [403, 404, 409, 422, 501, 505])
    def test_other_statuses_are_api_errors(self, status):
        error = classify_status(status, "nope")
        assert error.kind == ErrorKind.API_ERROR
        assert error.retryable is False


class TestRetryable:
    """Retryable is a pure function of kind."""

    def test_retryable_table(self):
        expected = {
            ErrorKind.CONFIGURATION: False,
            ErrorKind.AUTHENTICATION: False,
            ErrorKind.TIMEOUT: True,
            ErrorKind.NETWORK: True,
            ErrorKind.RATE_LIMIT: True,
            ErrorKind.SERVICE_UNAVAILABLE: True,
            ErrorKind.PARSE_ERROR: False,
            ErrorKind.BAD_REQUEST: False,
            ErrorKind.API_ERROR: False,
            ErrorKind.UNKNOWN: True,
        }
        assert {kind: kind in RETRYABLE_KINDS for kind in ErrorKind} == expected

    @pytest.mark.parametrize("kind", list(ErrorKind))
    def test_randomized_errors_share_retryable(self, kind):
        """Test 100 random errors of one kind all agree on retryable."""
        rng = random.Random(kind.value)
        errors = [
            GatewayError(
                kind,
                "".join(rng.choice("abcdef retry timeout 429") for _ in range(rng.randint(0, 40))),
                provider=rng.choice(["openai", "anthropic", "google", "azure", "custom", None]),
                debug_info=rng.choice([None, "model sent: x"]),
                status_code=rng.choice([None, 400, 429, 500, 418]),
            )
            for _ in range(100)
        ]
        assert len({e.retryable for e in errors}) == 1

    def test_retryable_cannot_be_set(self):
        error = GatewayError(ErrorKind.BAD_REQUEST, "x")
        with pytest.raises(AttributeError):
            error.retryable = True

    def test_to_dict_hides_debug_by_default(self):
        error = GatewayError(ErrorKind.CONFIGURATION, "bad model", debug_info="model sent: x")
        assert "debug_info" not in error.to_dict()
        assert error.to_dict(include_debug=True)["debug_info"] == "model sent: x"

    def test_error_can_be_raised(self):
        with pytest.raises(GatewayError) as exc_info:
            raise GatewayError(ErrorKind.NETWORK, "down")
        assert str(exc_info.value) == "down"


class TestTransportClassification:
    """Failures without an HTTP response."""

    def test_httpx_timeout(self):
        error = classify_transport_error(httpx.ConnectTimeout("connect"), timeout=30.0)
        assert error.kind == ErrorKind.TIMEOUT
        assert error.message == "Request timed out after 30s"

    def test_asyncio_timeout(self):
        error = classify_transport_error(asyncio.TimeoutError())
        assert error.kind == ErrorKind.TIMEOUT

    def test_timeout_detected_from_message(self):
        error = classify_transport_error(httpx.ConnectError("operation timed out"))
        assert error.kind == ErrorKind.TIMEOUT

    def test_dns_failure_is_network(self):
        error = classify_transport_error(httpx.ConnectError("Name or service not known"))
        assert error.kind == ErrorKind.NETWORK
        assert error.retryable is True

    def test_transport_message_redacted(self):
        error = classify_transport_error(
            httpx.ConnectError("failed for https://x/?key=AIza-secret"),
            secrets={"AIza-secret"},
        )
        assert "AIza-secret" not in error.message


class TestErrorBodies:
    """Upstream error message extraction."""

    @pytest.mark.parametrize("body,expected", [
        ({"error": {"message": "openai says no", "type": "invalid_request_error"}}, "openai says no"),
        ({"type": "error", "error": {"type": "overloaded_error", "message": "anthropic busy"}}, "anthropic busy"),
        ({"error": {"code": 400, "message": "gemini rejects", "status": "INVALID_ARGUMENT"}}, "gemini rejects"),
        ([{"error": {"code": 503, "message": "wrapped"}}], "wrapped"),
        ({"error": "plain string"}, "plain string"),
        ({"message": "top level"}, "top level"),
    ])
    def test_extract_message(self, body, expected):
        response = httpx.Response(400, json=body)
        assert extract_error_message(response) == expected

    def test_falls_back_to_reason_phrase(self):
        response = httpx.Response(502, text="<html>Bad Gateway</html>")
        assert extract_error_message(response) == "Bad Gateway"

    def test_classify_response_redacts_and_classifies(self):
        response = httpx.Response(401, json={"error": {"message": "Incorrect API key provided: sk-live-123"}})
        error = classify_response_error(response, provider="openai", secrets={"sk-live-123"})
        assert error.kind == ErrorKind.AUTHENTICATION
        assert "sk-live-123" not in error.message
        assert error.provider == "openai"

    def test_redact_ignores_empty_secrets(self):
        assert redact("nothing to hide", {"", None}) == "nothing to hide"

    @pytest.mark.parametrize("url,expected", [
        ("https://g/v1/m:generateContent?key=AIza-1", "https://g/v1/m:generateContent?key=[redacted]"),
        ("https://h/x?a=1&api_key=s3cret&b=2", "https://h/x?a=1&api_key=[redacted]&b=2"),
        ("https://az/chat?api-version=2024-02-15-preview", "https://az/chat?api-version=2024-02-15-preview"),
    ])
    def test_redact_query_secrets(self, url, expected):
        assert redact_query_secrets(url) == expected


class TestQuerySecretFilter:
    """Log records carrying request URLs."""

    def test_filter_rewrites_formatted_message(self):
        record = logging.LogRecord(
            "httpx", logging.INFO, __file__, 1,
            'HTTP Request: %s %s "%s"', ("POST", httpx.URL("https://g/m?key=AIza-9"), "HTTP/1.1 200 OK"), None,
        )

        assert QuerySecretFilter().filter(record) is True
        assert record.getMessage() == 'HTTP Request: POST https://g/m?key=[redacted] "HTTP/1.1 200 OK"'

    def test_filter_leaves_clean_records(self):
        record = logging.LogRecord("httpx", logging.INFO, __file__, 1, "GET %s", ("https://x/",), None)
        QuerySecretFilter().filter(record)
        assert record.args == ("https://x/",)
