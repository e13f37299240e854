"""
Google generative language (Gemini) adapter.

Gemini's generateContent API has no system role in this request shape,
so the system prompt is prepended to the visitor's text.
"""

from typing import Any, Dict, List

from ..core.interface import AbstractAdapter
from ..models.request import ChatRequest, Provider, RawRequest


class GoogleAdapter(AbstractAdapter):
    """Gemini adapter authenticating with an API key query parameter."""

    GOOGLE_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
    CONTENT_PATH = ("candidates", 0, "content", "parts", 0, "text")
    DEFAULT_MODEL = "gemini-1.5-flash"

    # Model aliases
    MODEL_IDS = {
        "gemini-flash": "gemini-1.5-flash",
        "gemini-pro": "gemini-1.5-pro",
    }

    @property
    def provider(self) -> Provider:
        return Provider.GOOGLE

    def resolve_model(self, request: ChatRequest) -> str:
        model = super().resolve_model(request)
        return self.MODEL_IDS.get(model, model)

    @staticmethod
    def prompt_text(request: ChatRequest) -> str:
        if request.system_prompt:
            return f"{request.system_prompt}\n\n{request.user_message}"
        return request.user_message

    def build_request(self, request: ChatRequest) -> RawRequest:
        model = self.resolve_model(request)
        base_url = (self._settings.base_url or self.GOOGLE_BASE_URL).rstrip("/")

        return RawRequest(
            method="POST",
            url=f"{base_url}/models/{model}:generateContent",
            model=model,
            json={
                "contents": [{"parts": [{"text": self.prompt_text(request)}]}],
                "generationConfig": {
                    "maxOutputTokens": self._gateway_settings.max_tokens,
                    "temperature": self._gateway_settings.temperature,
                },
            },
            headers={"Content-Type": "application/json"},
            params={"key": self._settings.api_key},
            secrets=self.secrets(),
        )

    def list_models(self) -> List[Dict[str, Any]]:
        default = self.MODEL_IDS.get(self._settings.model, self._settings.model) or self.DEFAULT_MODEL
        models = sorted(set(self.MODEL_IDS.values()) | {default})
        return [{"id": m, "object": "model", "default": m == default} for m in models]
