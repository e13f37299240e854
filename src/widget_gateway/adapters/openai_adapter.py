"""
Direct OpenAI API adapter.

Sends the visitor message to OpenAI's chat completions endpoint. The
model identifier is checked locally before sending so that a bad
setting degrades to a known-good model instead of a remote 400.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from ..core.interface import AbstractAdapter
from ..models.request import ChatRequest, Provider, RawRequest

logger = logging.getLogger(__name__)

SAFE_DEFAULT_MODEL = "gpt-4o-mini"

ALLOWED_MODELS = (
    "gpt-4o",
    "gpt-4o-mini",
    "gpt-4-turbo",
    "gpt-4",
    "gpt-3.5-turbo",
)


def validate_model(model: Any) -> Tuple[str, Optional[str]]:
    """
    Check a model identifier against the allow-list.

    Returns:
        (model to send, substitution note or None)
    """
    if isinstance(model, str) and model in ALLOWED_MODELS:
        return model, None

    note = f"model {model!r} is not supported, using {SAFE_DEFAULT_MODEL}"
    logger.warning(f"OpenAI {note}")
    return SAFE_DEFAULT_MODEL, note


class OpenAIAdapter(AbstractAdapter):
    """
    Direct OpenAI API adapter.

    An empty system prompt is replaced by the configured default persona.
    """

    OPENAI_BASE_URL = "https://api.openai.com/v1"
    CONTENT_PATH = ("choices", 0, "message", "content")
    DEFAULT_MODEL = SAFE_DEFAULT_MODEL

    @property
    def provider(self) -> Provider:
        return Provider.OPENAI

    def resolve_model(self, request: ChatRequest) -> Optional[str]:
        # No built-in fallback here: an unset model must go through
        # validate_model so the substitution is recorded
        return request.model_hint or self._settings.model

    def build_request(self, request: ChatRequest) -> RawRequest:
        model, note = validate_model(self.resolve_model(request))
        base_url = (self._settings.base_url or self.OPENAI_BASE_URL).rstrip("/")
        system_prompt = request.system_prompt or self._gateway_settings.system_prompt

        return RawRequest(
            method="POST",
            url=f"{base_url}/chat/completions",
            model=model,
            json={
                "model": model,
                "messages": self._messages(request, system_prompt),
                "max_tokens": self._gateway_settings.max_tokens,
                "temperature": self._gateway_settings.temperature,
            },
            headers={
                "Content-Type": "application/json",
                "Authorization": f"Bearer {self._settings.api_key}",
            },
            secrets=self.secrets(),
            debug_info=note,
        )

    def list_models(self) -> List[Dict[str, Any]]:
        return [
            {"id": model, "object": "model", "default": model == SAFE_DEFAULT_MODEL}
            for model in ALLOWED_MODELS
        ]
