"""
Request models for the widget gateway.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)


class Provider(str, Enum):
    """Supported chat-completion backends."""
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    GOOGLE = "google"
    AZURE = "azure"
    CUSTOM = "custom"

    @classmethod
    def resolve(cls, value: Union[str, "Provider", None]) -> "Provider":
        """
        Convert a provider identifier to a Provider.

        Unrecognized identifiers fall back to OPENAI, matching how the
        widget has always behaved. The fallback is logged because it can
        hide a misconfigured provider setting.
        """
        if isinstance(value, cls):
            return value
        mapping = {
            "openai": cls.OPENAI,
            "anthropic": cls.ANTHROPIC,
            "claude": cls.ANTHROPIC,
            "google": cls.GOOGLE,
            "gemini": cls.GOOGLE,
            "azure": cls.AZURE,
            "azure_openai": cls.AZURE,
            "custom": cls.CUSTOM,
        }
        provider = mapping.get((value or "").strip().lower())
        if provider is None:
            logger.warning(f"Unrecognized provider {value!r}, falling back to openai")
            return cls.OPENAI
        return provider


class ChatRequest(BaseModel):
    """
    A single visitor message bound for one provider.

    The provider is kept as a plain string so that unknown identifiers
    reach the dispatcher, which resolves them (see Provider.resolve).
    """
    provider: str = Field(default="openai", description="Provider identifier")
    user_message: str = Field(..., description="Visitor message text")
    system_prompt: Optional[str] = Field(default=None, description="System instructions")
    model_hint: Optional[str] = Field(default=None, description="Model or deployment override")

    model_config = ConfigDict(frozen=True, protected_namespaces=())


@dataclass(frozen=True)
class RawRequest:
    """
    Provider-specific HTTP request produced by an adapter.

    Credentials live in headers/params and are listed in ``secrets`` so
    that error text can be redacted; none of them show up in repr().
    """
    method: str
    url: str
    model: str
    json: Dict[str, Any]
    headers: Dict[str, str] = field(default_factory=dict, repr=False)
    params: Dict[str, str] = field(default_factory=dict, repr=False)
    secrets: FrozenSet[str] = field(default_factory=frozenset, repr=False)
    debug_info: Optional[str] = None
