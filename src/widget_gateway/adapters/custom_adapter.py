"""
Custom endpoint adapter.

Talks to any OpenAI-compatible chat completions endpoint (self-hosted
models, proxies). The API key is optional.
"""

from typing import Any, Dict

from ..core.interface import AbstractAdapter
from ..models.request import ChatRequest, Provider, RawRequest


class CustomAdapter(AbstractAdapter):
    """
    Custom gateway adapter for OpenAI-compatible backends.

    Settings:
        base_url: API base URL (required)
        api_key: optional bearer token
        model: model name sent to the backend
        extra["chat_endpoint"]: path appended to base_url
        extra["headers"]: additional headers to include
    """

    CHAT_ENDPOINT = "/v1/chat/completions"
    CONTENT_PATH = ("choices", 0, "message", "content")
    DEFAULT_MODEL = "custom-model"
    REQUIRES_API_KEY = False
    REQUIRES_BASE_URL = True

    @property
    def provider(self) -> Provider:
        return Provider.CUSTOM

    def _chat_url(self) -> str:
        base_url = self._settings.base_url.rstrip("/")
        chat_endpoint = self._settings.extra.get("chat_endpoint", self.CHAT_ENDPOINT)
        if not chat_endpoint or base_url.endswith(chat_endpoint):
            return base_url
        return f"{base_url}/{chat_endpoint.lstrip('/')}"

    def build_request(self, request: ChatRequest) -> RawRequest:
        model = self.resolve_model(request)

        headers: Dict[str, Any] = {
            "Content-Type": "application/json",
            **(self._settings.extra.get("headers") or {}),
        }
        if self._settings.api_key:
            headers["Authorization"] = f"Bearer {self._settings.api_key}"

        return RawRequest(
            method="POST",
            url=self._chat_url(),
            model=model,
            json={
                "model": model,
                "messages": self._messages(request, request.system_prompt),
                "max_tokens": self._gateway_settings.max_tokens,
                "temperature": self._gateway_settings.temperature,
            },
            headers=headers,
            secrets=self.secrets(),
        )
