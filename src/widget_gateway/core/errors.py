"""
Gateway error types and failure classification.

Every failure the gateway can report is a GatewayError carrying an
ErrorKind. Whether a caller may retry is decided by the kind alone.
"""

import asyncio
import logging
import re
from enum import Enum
from typing import Any, Dict, Iterable, Optional

import httpx


class ErrorKind(str, Enum):
    """Canonical failure categories."""
    CONFIGURATION = "configuration"
    AUTHENTICATION = "authentication"
    TIMEOUT = "timeout"
    NETWORK = "network"
    RATE_LIMIT = "rate_limit"
    SERVICE_UNAVAILABLE = "service_unavailable"
    PARSE_ERROR = "parse_error"
    BAD_REQUEST = "bad_request"
    API_ERROR = "api_error"
    UNKNOWN = "unknown"


RETRYABLE_KINDS = frozenset({
    ErrorKind.TIMEOUT,
    ErrorKind.NETWORK,
    ErrorKind.RATE_LIMIT,
    ErrorKind.SERVICE_UNAVAILABLE,
    ErrorKind.UNKNOWN,
})

SERVICE_UNAVAILABLE_STATUSES = frozenset({500, 502, 503, 504})

REDACTED = "[redacted]"

# Credentials that travel in the query string (Google uses ?key=)
QUERY_SECRET_PATTERN = re.compile(r"([?&](?:key|api[-_]key)=)[^&\s\"']+", re.IGNORECASE)


def is_retryable(kind: ErrorKind) -> bool:
    """Return whether errors of this kind are worth re-issuing."""
    return kind in RETRYABLE_KINDS


class GatewayError(Exception):
    """
    Canonical gateway failure.

    Returned (not raised) by the dispatcher. It is still an Exception so
    callers that prefer raising can do ``raise result``.
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        provider: str = None,
        debug_info: str = None,
        status_code: int = None,
    ):
        self.kind = ErrorKind(kind)
        self.message = message
        self.provider = provider
        self.debug_info = debug_info
        self.status_code = status_code
        super().__init__(message)

    @property
    def retryable(self) -> bool:
        return is_retryable(self.kind)

    def to_dict(self, include_debug: bool = False) -> Dict[str, Any]:
        data = {
            "kind": self.kind.value,
            "message": self.message,
            "retryable": self.retryable,
        }
        if include_debug and self.debug_info:
            data["debug_info"] = self.debug_info
        return data

    def __repr__(self) -> str:
        return (
            f"GatewayError(kind={self.kind.value!r}, message={self.message!r}, "
            f"provider={self.provider!r})"
        )


def redact(text: str, secrets: Iterable[str]) -> str:
    """Mask every configured secret that appears in ``text``."""
    if not text:
        return text
    for secret in secrets:
        if secret:
            text = text.replace(secret, REDACTED)
    return text


def redact_query_secrets(text: str) -> str:
    """Mask ``key=`` style credentials in URLs."""
    if not text:
        return text
    return QUERY_SECRET_PATTERN.sub(rf"\1{REDACTED}", text)


class QuerySecretFilter(logging.Filter):
    """
    Logging filter masking query-string credentials.

    httpx logs every request URL at INFO; attached to the ``httpx``
    logger this keeps API keys sent as ``?key=`` out of the logs.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = redact_query_secrets(message)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


def extract_error_message(response: httpx.Response) -> str:
    """
    Pull a human-readable message out of an upstream error body.

    Handles the shapes used by the supported providers:
    ``{"error": {"message": ...}}``, ``{"error": "..."}`` and
    ``{"message": ...}``. Falls back to the HTTP reason phrase.
    """
    try:
        data = response.json()
    except ValueError:
        data = None

    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict) and isinstance(error.get("message"), str):
            return error["message"]
        if isinstance(error, str) and error:
            return error
        if isinstance(data.get("message"), str):
            return data["message"]

    if isinstance(data, list) and data and isinstance(data[0], dict):
        # Google occasionally wraps the error object in a list
        error = data[0].get("error")
        if isinstance(error, dict) and isinstance(error.get("message"), str):
            return error["message"]

    return response.reason_phrase or f"HTTP {response.status_code}"


def classify_status(
    status_code: int,
    message: str,
    provider: str = None,
    model: str = None,
) -> GatewayError:
    """Map a non-2xx HTTP status and upstream message to a GatewayError."""
    detail = message or f"HTTP {status_code}"

    if status_code == 400:
        if "model parameter" in detail.lower():
            return GatewayError(
                ErrorKind.CONFIGURATION,
                f"Model configuration rejected by provider: {detail}",
                provider=provider,
                debug_info=f"model sent: {model}" if model else None,
                status_code=status_code,
            )
        return GatewayError(
            ErrorKind.BAD_REQUEST,
            f"Bad request: {detail}",
            provider=provider,
            status_code=status_code,
        )

    if status_code == 401:
        return GatewayError(
            ErrorKind.AUTHENTICATION,
            f"Authentication failed: {detail}",
            provider=provider,
            status_code=status_code,
        )

    if status_code == 429:
        return GatewayError(
            ErrorKind.RATE_LIMIT,
            f"Rate limit exceeded: {detail}",
            provider=provider,
            status_code=status_code,
        )

    if status_code in SERVICE_UNAVAILABLE_STATUSES:
        return GatewayError(
            ErrorKind.SERVICE_UNAVAILABLE,
            f"Service unavailable ({status_code}): {detail}",
            provider=provider,
            status_code=status_code,
        )

    return GatewayError(
        ErrorKind.API_ERROR,
        f"Request failed ({status_code}): {detail}",
        provider=provider,
        status_code=status_code,
    )


def classify_response_error(
    response: httpx.Response,
    provider: str = None,
    model: str = None,
    secrets: Iterable[str] = (),
) -> GatewayError:
    """Classify a non-2xx response, redacting secrets from its message."""
    message = redact(extract_error_message(response), secrets)
    return classify_status(response.status_code, message, provider=provider, model=model)


def _looks_like_timeout(message: str) -> bool:
    lowered = message.lower()
    return "timed out" in lowered or "timeout" in lowered


def classify_transport_error(
    exc: BaseException,
    provider: str = None,
    timeout: Optional[float] = None,
    secrets: Iterable[str] = (),
) -> GatewayError:
    """Map a transport failure (no HTTP response) to Timeout or Network."""
    message = redact(str(exc), secrets) or exc.__class__.__name__

    timed_out = isinstance(exc, (httpx.TimeoutException, asyncio.TimeoutError, TimeoutError))
    if timed_out or _looks_like_timeout(message):
        if timeout is not None:
            message = f"Request timed out after {timeout:g}s"
        return GatewayError(ErrorKind.TIMEOUT, message, provider=provider)

    return GatewayError(
        ErrorKind.NETWORK,
        f"Connection failed: {message}",
        provider=provider,
    )
