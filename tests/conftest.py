"""
Shared fixtures for widget gateway tests.

Provider traffic is served by httpx.MockTransport handlers; nothing here
touches the network.
"""

import json
from typing import Any, Callable, Dict

import httpx
import pytest

from widget_gateway.core.config import GatewaySettings, ProviderSettings
from widget_gateway.core.dispatcher import GatewayDispatcher
from widget_gateway.models.request import Provider

API_KEYS = {
    Provider.OPENAI: "sk-openai-test-key",
    Provider.ANTHROPIC: "sk-ant-test-key",
    Provider.GOOGLE: "AIza-google-test-key",
    Provider.AZURE: "azure-test-key",
    Provider.CUSTOM: "custom-test-key",
}

HOSTS = {
    Provider.OPENAI: "api.openai.com",
    Provider.ANTHROPIC: "api.anthropic.com",
    Provider.GOOGLE: "generativelanguage.googleapis.com",
    Provider.AZURE: "widget.openai.azure.com",
    Provider.CUSTOM: "llm.internal.example",
}


def build_settings(timeout: float = 30.0, overrides: Dict[Provider, ProviderSettings] = None) -> GatewaySettings:
    providers = {
        Provider.OPENAI: ProviderSettings(
            api_key=API_KEYS[Provider.OPENAI], model="gpt-4o-mini", timeout=timeout,
        ),
        Provider.ANTHROPIC: ProviderSettings(
            api_key=API_KEYS[Provider.ANTHROPIC], timeout=timeout,
        ),
        Provider.GOOGLE: ProviderSettings(
            api_key=API_KEYS[Provider.GOOGLE], timeout=timeout,
        ),
        Provider.AZURE: ProviderSettings(
            api_key=API_KEYS[Provider.AZURE],
            base_url=f"https://{HOSTS[Provider.AZURE]}",
            model="chat-deployment",
            timeout=timeout,
        ),
        Provider.CUSTOM: ProviderSettings(
            api_key=API_KEYS[Provider.CUSTOM],
            base_url=f"https://{HOSTS[Provider.CUSTOM]}",
            model="llama-3.1-8b",
            timeout=timeout,
        ),
    }
    providers.update(overrides or {})
    return GatewaySettings(providers=providers)


def success_body(provider: Provider, text: Any) -> Dict[str, Any]:
    """Minimal successful response body in the provider's own shape."""
    if provider == Provider.ANTHROPIC:
        return {
            "id": "msg_123",
            "type": "message",
            "content": [{"type": "text", "text": text}],
            "stop_reason": "end_turn",
        }
    if provider == Provider.GOOGLE:
        return {
            "candidates": [
                {"content": {"role": "model", "parts": [{"text": text}]}, "finishReason": "STOP"}
            ],
        }
    return {
        "id": "chatcmpl-123",
        "object": "chat.completion",
        "choices": [
            {"index": 0, "message": {"role": "assistant", "content": text}, "finish_reason": "stop"}
        ],
    }


def user_text(request: httpx.Request) -> str:
    """Extract the visitor text from any provider's request body."""
    body = json.loads(request.content)
    if "contents" in body:
        return body["contents"][0]["parts"][0]["text"]
    return body["messages"][-1]["content"]


def provider_for(request: httpx.Request) -> Provider:
    for provider, host in HOSTS.items():
        if request.url.host == host:
            return provider
    raise AssertionError(f"unexpected host {request.url.host}")


@pytest.fixture
def settings() -> GatewaySettings:
    return build_settings()


@pytest.fixture
def make_dispatcher() -> Callable[..., GatewayDispatcher]:
    """Build a dispatcher whose requests are served by ``handler``."""
    def _make(handler, settings: GatewaySettings = None) -> GatewayDispatcher:
        return GatewayDispatcher(
            settings or build_settings(),
            transport=httpx.MockTransport(handler),
        )
    return _make


@pytest.fixture
def recorded_requests():
    """Handler factory that records requests and replies with a fixed body."""
    requests = []

    def _handler_for(status_code: int = 200, json_body: Any = None, text: str = None):
        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            if text is not None:
                return httpx.Response(status_code, text=text)
            return httpx.Response(status_code, json=json_body)
        return handler

    _handler_for.requests = requests
    return _handler_for


@pytest.fixture
def settings_factory() -> Callable[..., GatewaySettings]:
    return build_settings


@pytest.fixture
def body_for() -> Callable[[Provider, Any], Dict[str, Any]]:
    return success_body


@pytest.fixture
def echo_handler():
    """Handler replying ``<provider>:<visitor text>`` in each provider's shape."""
    async def handler(request: httpx.Request) -> httpx.Response:
        provider = provider_for(request)
        return httpx.Response(200, json=success_body(provider, f"{provider.value}:{user_text(request)}"))
    return handler
