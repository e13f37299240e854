"""
Abstract adapter interface definition.

Defines the contract that every provider adapter implements. Adapters
hold only frozen settings, so one instance can serve any number of
concurrent requests.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence, Union

import httpx

from .config import GatewaySettings, ProviderSettings
from .errors import ErrorKind, GatewayError, classify_response_error
from .normalizer import PathStep, normalize
from ..models.request import ChatRequest, Provider, RawRequest
from ..models.response import Reply


class AbstractAdapter(ABC):
    """
    Base class for provider adapters.

    Subclasses build the provider's request and declare where the reply
    text lives in its response body. Sending and status classification
    are shared.
    """

    #: Location of the reply text in a successful response body
    CONTENT_PATH: Sequence[PathStep] = ()

    #: Model used when neither the request nor the settings name one
    DEFAULT_MODEL: str = ""

    #: Whether the adapter refuses to run without an API key
    REQUIRES_API_KEY: bool = True

    #: Whether the adapter refuses to run without a base URL / endpoint
    REQUIRES_BASE_URL: bool = False

    def __init__(self, settings: ProviderSettings, gateway_settings: GatewaySettings):
        self._settings = settings
        self._gateway_settings = gateway_settings

    @property
    @abstractmethod
    def provider(self) -> Provider:
        """Provider this adapter talks to."""
        pass

    @property
    def settings(self) -> ProviderSettings:
        return self._settings

    @property
    def timeout(self) -> float:
        return self._settings.timeout

    def check_configuration(self) -> Optional[GatewayError]:
        """Return a Configuration error if required settings are missing."""
        if self.REQUIRES_API_KEY and not self._settings.api_key:
            return GatewayError(
                ErrorKind.CONFIGURATION,
                f"No API key configured for {self.provider.value}",
                provider=self.provider.value,
            )
        if self.REQUIRES_BASE_URL and not self._settings.base_url:
            return GatewayError(
                ErrorKind.CONFIGURATION,
                f"No endpoint URL configured for {self.provider.value}",
                provider=self.provider.value,
            )
        return None

    def resolve_model(self, request: ChatRequest) -> str:
        """Pick the model: request hint, then configured default, then built-in."""
        return request.model_hint or self._settings.model or self.DEFAULT_MODEL

    def secrets(self) -> frozenset:
        return frozenset(s for s in (self._settings.api_key,) if s)

    @abstractmethod
    def build_request(self, request: ChatRequest) -> RawRequest:
        """
        Build the provider-specific HTTP request.

        Args:
            request: Canonical chat request

        Returns:
            Request ready to send
        """
        pass

    async def send(self, client: httpx.AsyncClient, raw: RawRequest) -> httpx.Response:
        """
        Send a built request.

        Transport failures propagate as httpx exceptions; the dispatcher
        classifies them.
        """
        return await client.request(
            raw.method,
            raw.url,
            headers=raw.headers,
            params=raw.params or None,
            json=raw.json,
        )

    def parse(self, response: httpx.Response, raw: RawRequest) -> Union[Reply, GatewayError]:
        """Turn a provider response into a Reply or a classified error."""
        if not response.is_success:
            error = classify_response_error(
                response,
                provider=self.provider.value,
                model=raw.model,
                secrets=raw.secrets,
            )
            if error.debug_info is None and raw.debug_info:
                error.debug_info = raw.debug_info
            return error

        return normalize(
            response,
            self.CONTENT_PATH,
            provider=self.provider.value,
            model=raw.model,
            debug_info=raw.debug_info,
        )

    def list_models(self) -> List[Dict[str, Any]]:
        """Known models for this provider. No network access."""
        model = self._settings.model or self.DEFAULT_MODEL
        return [{"id": model, "object": "model", "default": True}]

    def _messages(self, request: ChatRequest, system_prompt: Optional[str]) -> List[Dict[str, str]]:
        """OpenAI-style messages list."""
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": request.user_message})
        return messages

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(provider={self.provider.value!r})"
