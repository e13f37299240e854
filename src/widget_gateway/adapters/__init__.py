"""
Provider adapters for the widget gateway.
"""

from .openai_adapter import OpenAIAdapter
from .anthropic_adapter import AnthropicAdapter
from .google_adapter import GoogleAdapter
from .azure_openai_adapter import AzureOpenAIAdapter
from .custom_adapter import CustomAdapter

__all__ = [
    "OpenAIAdapter",
    "AnthropicAdapter",
    "GoogleAdapter",
    "AzureOpenAIAdapter",
    "CustomAdapter",
]
