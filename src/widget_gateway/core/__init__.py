"""
Core gateway components.
"""

from .config import GatewaySettings, ProviderSettings, load_config, settings_from_options
from .errors import ErrorKind, GatewayError, RETRYABLE_KINDS, is_retryable
from .interface import AbstractAdapter
from .dispatcher import GatewayDispatcher, DispatchResult

__all__ = [
    "AbstractAdapter",
    "DispatchResult",
    "ErrorKind",
    "GatewayDispatcher",
    "GatewayError",
    "GatewaySettings",
    "ProviderSettings",
    "RETRYABLE_KINDS",
    "is_retryable",
    "load_config",
    "settings_from_options",
]
