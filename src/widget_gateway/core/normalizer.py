"""
Response normalization.

Turns a successful provider response into a Reply by walking a
provider-specific content path. Each step either yields a value or a
GatewayError; nothing here raises on a malformed body.
"""

from typing import Any, Sequence, Union

import httpx

from .errors import ErrorKind, GatewayError
from ..models.response import Reply

INVALID_STRUCTURE = "invalid response structure"
EMPTY_RESPONSE = "empty response"

PathStep = Union[str, int]


def decode_body(response: httpx.Response, provider: str = None) -> Union[Any, GatewayError]:
    """Decode a JSON body, or return a ParseError."""
    try:
        return response.json()
    except ValueError as e:
        return GatewayError(
            ErrorKind.PARSE_ERROR,
            f"Could not decode response body: {e}",
            provider=provider,
            status_code=response.status_code,
        )


def navigate(data: Any, path: Sequence[PathStep], provider: str = None) -> Union[Any, GatewayError]:
    """Follow ``path`` through nested dicts/lists."""
    current = data
    for step in path:
        if isinstance(step, int):
            if not isinstance(current, list) or not -len(current) <= step < len(current):
                return _invalid_structure(path, provider)
            current = current[step]
        else:
            if not isinstance(current, dict) or step not in current:
                return _invalid_structure(path, provider)
            current = current[step]
    return current


def _invalid_structure(path: Sequence[PathStep], provider: str) -> GatewayError:
    return GatewayError(
        ErrorKind.API_ERROR,
        INVALID_STRUCTURE,
        provider=provider,
        debug_info=f"expected path: {format_path(path)}",
    )


def format_path(path: Sequence[PathStep]) -> str:
    """Render a content path the way it reads in provider docs."""
    rendered = ""
    for step in path:
        if isinstance(step, int):
            rendered += f"[{step}]"
        else:
            rendered += f".{step}" if rendered else step
    return rendered


def normalize(
    response: httpx.Response,
    path: Sequence[PathStep],
    provider: str = None,
    model: str = None,
    debug_info: str = None,
) -> Union[Reply, GatewayError]:
    """Decode, navigate, trim and wrap a successful response."""
    data = decode_body(response, provider)
    if isinstance(data, GatewayError):
        return data

    content = navigate(data, path, provider)
    if isinstance(content, GatewayError):
        return content

    if content is None:
        text = ""
    elif isinstance(content, str):
        text = content.strip()
    else:
        return _invalid_structure(path, provider)

    if not text:
        return GatewayError(
            ErrorKind.API_ERROR,
            EMPTY_RESPONSE,
            provider=provider,
            debug_info=debug_info,
        )

    return Reply(text=text, provider=provider, model=model, debug_info=debug_info)
