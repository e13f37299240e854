"""
Widget Chat Gateway

Sends one chat-widget message to a configured AI provider and returns a
normalized reply or a classified error:
- Five backends: OpenAI, Anthropic, Google Gemini, Azure OpenAI, custom
  OpenAI-compatible endpoints
- One canonical Reply / GatewayError shape regardless of backend
- Retryability derived from the error kind, retries left to the caller
"""

from .core.config import GatewaySettings, ProviderSettings, load_config, settings_from_options
from .core.dispatcher import GatewayDispatcher
from .core.errors import ErrorKind, GatewayError
from .models.request import ChatRequest, Provider
from .models.response import Reply

__version__ = "1.0.0"

__all__ = [
    "ChatRequest",
    "ErrorKind",
    "GatewayDispatcher",
    "GatewayError",
    "GatewaySettings",
    "Provider",
    "ProviderSettings",
    "Reply",
    "load_config",
    "settings_from_options",
]
