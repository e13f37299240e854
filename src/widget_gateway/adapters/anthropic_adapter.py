"""
Direct Anthropic API adapter.

Provides direct access to Anthropic's Claude messages API.
"""

from typing import Any, Dict, List

from ..core.interface import AbstractAdapter
from ..models.request import ChatRequest, Provider, RawRequest


class AnthropicAdapter(AbstractAdapter):
    """
    Direct Anthropic API adapter.

    The system prompt travels in the top-level ``system`` field and is
    omitted entirely when empty.
    """

    ANTHROPIC_BASE_URL = "https://api.anthropic.com/v1"
    ANTHROPIC_VERSION = "2023-06-01"
    CONTENT_PATH = ("content", 0, "text")
    DEFAULT_MODEL = "claude-3-haiku-20240307"

    @property
    def provider(self) -> Provider:
        return Provider.ANTHROPIC

    def build_request(self, request: ChatRequest) -> RawRequest:
        model = self.resolve_model(request)
        base_url = (self._settings.base_url or self.ANTHROPIC_BASE_URL).rstrip("/")

        payload: Dict[str, Any] = {
            "model": model,
            "max_tokens": self._gateway_settings.max_tokens,
            "messages": [{"role": "user", "content": request.user_message}],
        }
        if request.system_prompt:
            payload["system"] = request.system_prompt

        return RawRequest(
            method="POST",
            url=f"{base_url}/messages",
            model=model,
            json=payload,
            headers={
                "Content-Type": "application/json",
                "x-api-key": self._settings.api_key,
                "anthropic-version": self._settings.api_version or self.ANTHROPIC_VERSION,
            },
            secrets=self.secrets(),
        )

    def list_models(self) -> List[Dict[str, Any]]:
        """
        List known Anthropic models.

        Note: the widget never queries Anthropic for this, so the list is
        static.
        """
        default = self._settings.model or self.DEFAULT_MODEL
        models = [
            "claude-3-haiku-20240307",
            "claude-3-5-haiku-20241022",
            "claude-3-5-sonnet-20241022",
            "claude-3-opus-20240229",
        ]
        if default not in models:
            models.insert(0, default)
        return [{"id": m, "object": "model", "default": m == default} for m in models]
