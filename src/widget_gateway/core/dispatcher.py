"""
Gateway dispatcher: the public entry point of the widget gateway.

Selects the adapter for a request's provider, performs exactly one
outbound call under a deadline and returns a Reply or a GatewayError.
Retry policy is left to the caller, guided by GatewayError.retryable.
"""

import asyncio
import logging
from typing import Any, Dict, List, Mapping, Optional, Type, Union

import httpx

from .config import GatewaySettings
from .errors import ErrorKind, GatewayError, QuerySecretFilter, classify_transport_error
from .interface import AbstractAdapter
from ..adapters import (
    AnthropicAdapter,
    AzureOpenAIAdapter,
    CustomAdapter,
    GoogleAdapter,
    OpenAIAdapter,
)
from ..models.request import ChatRequest, Provider, RawRequest
from ..models.response import Reply

logger = logging.getLogger(__name__)

# httpx logs full request URLs, including Google's ?key= credential
logging.getLogger("httpx").addFilter(QuerySecretFilter())

DispatchResult = Union[Reply, GatewayError]

ADAPTER_TYPES: Dict[Provider, Type[AbstractAdapter]] = {
    Provider.OPENAI: OpenAIAdapter,
    Provider.ANTHROPIC: AnthropicAdapter,
    Provider.GOOGLE: GoogleAdapter,
    Provider.AZURE: AzureOpenAIAdapter,
    Provider.CUSTOM: CustomAdapter,
}


class GatewayDispatcher:
    """
    Routes chat requests to provider adapters.

    Adapters are built once from the settings and never mutated, so a
    single dispatcher can serve concurrent dispatch() calls.
    """

    def __init__(
        self,
        settings: GatewaySettings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        adapter_types: Optional[Mapping[Provider, Type[AbstractAdapter]]] = None,
    ):
        """
        Initialize the dispatcher.

        Args:
            settings: Gateway configuration
            transport: Optional httpx transport used for every request
                (tests inject httpx.MockTransport here)
            adapter_types: Override the provider -> adapter class mapping
        """
        self._settings = settings
        self._transport = transport
        self._adapters: Dict[Provider, AbstractAdapter] = {
            provider: adapter_class(settings.for_provider(provider), settings)
            for provider, adapter_class in (adapter_types or ADAPTER_TYPES).items()
        }

    @property
    def settings(self) -> GatewaySettings:
        return self._settings

    def get_adapter(self, provider: Union[str, Provider, None]) -> Optional[AbstractAdapter]:
        return self._adapters.get(Provider.resolve(provider))

    def list_providers(self) -> List[Dict[str, Any]]:
        return [
            {
                "provider": provider.value,
                "configured": adapter.check_configuration() is None,
                "is_default": provider == Provider.resolve(self._settings.default_provider),
            }
            for provider, adapter in self._adapters.items()
        ]

    def list_models(self, provider: Union[str, Provider, None]) -> List[Dict[str, Any]]:
        adapter = self.get_adapter(provider)
        return adapter.list_models() if adapter else []

    async def dispatch_message(
        self,
        provider: Union[str, Provider],
        user_message: str,
        system_prompt: Optional[str] = None,
        model_hint: Optional[str] = None,
    ) -> DispatchResult:
        """Convenience wrapper building the ChatRequest."""
        provider_id = provider.value if isinstance(provider, Provider) else provider
        return await self.dispatch(ChatRequest(
            provider=provider_id,
            user_message=user_message,
            system_prompt=system_prompt,
            model_hint=model_hint,
        ))

    async def dispatch(self, request: ChatRequest) -> DispatchResult:
        """
        Send one chat request and normalize the outcome.

        Never raises for provider failures: every failure, including an
        unexpected exception inside an adapter, comes back as a
        GatewayError.
        """
        provider = Provider.resolve(request.provider)
        adapter = self._adapters.get(provider)
        if adapter is None:
            return GatewayError(
                ErrorKind.UNKNOWN,
                f"No adapter wired for provider {provider.value}",
                provider=provider.value,
            )

        try:
            result = await self._dispatch(adapter, request)
        except Exception as e:
            logger.exception(f"Unexpected failure in {provider.value} adapter")
            result = GatewayError(
                ErrorKind.UNKNOWN,
                f"Unexpected gateway failure: {e.__class__.__name__}",
                provider=provider.value,
            )

        if isinstance(result, GatewayError):
            logger.info(
                f"Dispatch to {provider.value} failed: kind={result.kind.value} "
                f"retryable={result.retryable}"
            )
        else:
            logger.info(f"Dispatch to {provider.value} succeeded (model={result.model})")
        return result

    async def _dispatch(self, adapter: AbstractAdapter, request: ChatRequest) -> DispatchResult:
        provider = adapter.provider.value

        if not request.user_message or not request.user_message.strip():
            return GatewayError(
                ErrorKind.BAD_REQUEST,
                "User message must not be empty",
                provider=provider,
            )

        config_error = adapter.check_configuration()
        if config_error is not None:
            return config_error

        raw = adapter.build_request(request)
        timeout = adapter.timeout

        try:
            response = await asyncio.wait_for(self._send(adapter, raw, timeout), timeout=timeout)
        except (asyncio.TimeoutError, httpx.RequestError) as e:
            error = classify_transport_error(e, provider=provider, timeout=timeout, secrets=raw.secrets)
            error.debug_info = raw.debug_info
            return error

        return adapter.parse(response, raw)

    async def _send(self, adapter: AbstractAdapter, raw: RawRequest, timeout: float) -> httpx.Response:
        async with httpx.AsyncClient(transport=self._transport, timeout=timeout) as client:
            return await adapter.send(client, raw)
