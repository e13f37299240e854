"""
Configuration loading for the widget gateway.
"""

import os
import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional

import yaml

from ..models.request import Provider

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0
DEFAULT_MAX_TOKENS = 500
DEFAULT_TEMPERATURE = 0.7

DEFAULT_SYSTEM_PROMPT = (
    "You are the AI assistant embedded in this website. Help visitors learn "
    "about the site owner's experience, skills and background. Be helpful, "
    "professional and concise."
)

OPTION_PREFIX = "ai_interview_widget_"

TRUTHY_VALUES = frozenset({"1", "true", "yes", "on"})


@dataclass(frozen=True)
class ProviderSettings:
    """Credentials and defaults for one provider."""
    api_key: Optional[str] = None
    base_url: Optional[str] = None
    model: Optional[str] = None
    api_version: Optional[str] = None
    timeout: float = DEFAULT_TIMEOUT
    extra: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class GatewaySettings:
    """Complete gateway configuration."""
    default_provider: str = Provider.OPENAI.value
    providers: Mapping[Provider, ProviderSettings] = field(default_factory=dict)
    max_tokens: int = DEFAULT_MAX_TOKENS
    temperature: float = DEFAULT_TEMPERATURE
    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    debug: bool = False

    def for_provider(self, provider: Provider) -> ProviderSettings:
        return self.providers.get(provider) or ProviderSettings()


def sanitize_api_key(value: Any) -> Optional[str]:
    """Trim surrounding whitespace from a pasted key; blank means unset."""
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def parse_flag(value: Any) -> bool:
    """Interpret a boolean setting that may arrive as a string ("0", "false", "yes")."""
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in TRUTHY_VALUES


def _expand_env(value: Any) -> Any:
    """Expand ``${VAR}`` references, recursing into lists and dicts."""
    if isinstance(value, str) and value.startswith("${") and value.endswith("}"):
        return os.environ.get(value[2:-1], "")
    if isinstance(value, dict):
        return {k: _expand_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_expand_env(v) for v in value]
    return value


def load_config(config_path: Optional[str] = None) -> GatewaySettings:
    """
    Load gateway configuration from a YAML file.

    Args:
        config_path: Path to config file. If None, common locations are tried.

    Returns:
        Loaded configuration, or defaults built from the environment
    """
    if config_path is None:
        paths = [
            Path("config/widget-gateway/gateways.yaml"),
            Path("/etc/widget-gateway/gateways.yaml"),
            Path.home() / ".config/widget-gateway/gateways.yaml",
        ]
        for p in paths:
            if p.exists():
                config_path = str(p)
                break

    if config_path is None or not Path(config_path).exists():
        logger.warning("No gateway config file found, using environment defaults")
        return _default_config()

    try:
        with open(config_path, 'r') as f:
            data = yaml.safe_load(f) or {}

        return parse_config(data)

    except (OSError, yaml.YAMLError, TypeError, ValueError) as e:
        logger.error(f"Failed to load config from {config_path}: {e}")
        return _default_config()


def parse_config(data: Mapping[str, Any]) -> GatewaySettings:
    """Parse a configuration dictionary."""
    data = _expand_env(dict(data))
    timeout = float(data.get("timeout", DEFAULT_TIMEOUT))

    providers: Dict[Provider, ProviderSettings] = {}
    for name, provider_data in (data.get("providers") or {}).items():
        try:
            provider = Provider(str(name).lower())
        except ValueError:
            logger.warning(f"Ignoring unknown provider section: {name}")
            continue

        provider_data = provider_data or {}
        if not isinstance(provider_data, Mapping):
            logger.warning(f"Ignoring provider section {name}: expected a mapping")
            continue
        providers[provider] = ProviderSettings(
            api_key=sanitize_api_key(provider_data.get("api_key")),
            base_url=provider_data.get("base_url") or None,
            model=provider_data.get("model") or None,
            api_version=provider_data.get("api_version") or None,
            timeout=float(provider_data.get("timeout", timeout)),
            extra=provider_data.get("extra") or {},
        )

    return GatewaySettings(
        default_provider=data.get("default_provider", Provider.OPENAI.value),
        providers=providers,
        max_tokens=int(data.get("max_tokens", DEFAULT_MAX_TOKENS)),
        temperature=float(data.get("temperature", DEFAULT_TEMPERATURE)),
        system_prompt=data.get("system_prompt") or DEFAULT_SYSTEM_PROMPT,
        debug=parse_flag(data.get("debug", False)),
    )


def _default_config() -> GatewaySettings:
    """Return configuration built from environment variables."""
    timeout = float(os.environ.get("WIDGET_GATEWAY_TIMEOUT", DEFAULT_TIMEOUT))
    return GatewaySettings(
        default_provider=os.environ.get("WIDGET_GATEWAY_PROVIDER", Provider.OPENAI.value),
        providers={
            Provider.OPENAI: ProviderSettings(
                api_key=sanitize_api_key(os.environ.get("OPENAI_API_KEY")),
                model=os.environ.get("OPENAI_MODEL", "gpt-4o-mini"),
                timeout=timeout,
            ),
            Provider.ANTHROPIC: ProviderSettings(
                api_key=sanitize_api_key(os.environ.get("ANTHROPIC_API_KEY")),
                model=os.environ.get("ANTHROPIC_MODEL") or None,
                timeout=timeout,
            ),
            Provider.GOOGLE: ProviderSettings(
                api_key=sanitize_api_key(os.environ.get("GOOGLE_API_KEY")),
                model=os.environ.get("GOOGLE_MODEL") or None,
                timeout=timeout,
            ),
            Provider.AZURE: ProviderSettings(
                api_key=sanitize_api_key(os.environ.get("AZURE_OPENAI_API_KEY")),
                base_url=os.environ.get("AZURE_OPENAI_ENDPOINT") or None,
                model=os.environ.get("AZURE_OPENAI_DEPLOYMENT") or None,
                api_version=os.environ.get("AZURE_OPENAI_API_VERSION") or None,
                timeout=timeout,
            ),
            Provider.CUSTOM: ProviderSettings(
                api_key=sanitize_api_key(os.environ.get("CUSTOM_API_KEY")),
                base_url=os.environ.get("CUSTOM_API_ENDPOINT") or None,
                model=os.environ.get("CUSTOM_API_MODEL") or None,
                timeout=timeout,
            ),
        },
        debug=parse_flag(os.environ.get("WIDGET_GATEWAY_DEBUG")),
    )


def settings_from_options(
    lookup: Callable[[str, Any], Any],
    prefix: str = OPTION_PREFIX,
) -> GatewaySettings:
    """
    Build settings from a key/value option store.

    ``lookup(key, default)`` is the host application's option accessor,
    e.g. a wrapper around a CMS ``get_option``. Keys are prefixed with
    ``prefix`` (``openai_api_key`` is read as
    ``ai_interview_widget_openai_api_key``).
    """
    def option(key: str, default: Any = None) -> Any:
        value = lookup(prefix + key, default)
        return default if value in (None, "") else value

    timeout = float(option("timeout", DEFAULT_TIMEOUT))
    providers = {
        Provider.OPENAI: ProviderSettings(
            api_key=sanitize_api_key(option("openai_api_key")),
            model=option("model", "gpt-4o-mini"),
            timeout=timeout,
        ),
        Provider.ANTHROPIC: ProviderSettings(
            api_key=sanitize_api_key(option("anthropic_api_key")),
            model=option("anthropic_model"),
            timeout=timeout,
        ),
        Provider.GOOGLE: ProviderSettings(
            api_key=sanitize_api_key(option("gemini_api_key")),
            model=option("gemini_model"),
            timeout=timeout,
        ),
        Provider.AZURE: ProviderSettings(
            api_key=sanitize_api_key(option("azure_api_key")),
            base_url=option("azure_endpoint"),
            model=option("azure_deployment"),
            api_version=option("azure_api_version"),
            timeout=timeout,
        ),
        Provider.CUSTOM: ProviderSettings(
            api_key=sanitize_api_key(option("custom_api_key")),
            base_url=option("custom_api_endpoint"),
            model=option("custom_model"),
            timeout=timeout,
        ),
    }

    return GatewaySettings(
        default_provider=option("api_provider", Provider.OPENAI.value),
        providers=providers,
        max_tokens=int(option("max_tokens", DEFAULT_MAX_TOKENS)),
        temperature=float(option("temperature", DEFAULT_TEMPERATURE)),
        system_prompt=option("system_prompt", DEFAULT_SYSTEM_PROMPT),
        debug=parse_flag(option("enable_debug", False)),
    )


def with_provider(
    settings: GatewaySettings,
    provider: Provider,
    provider_settings: ProviderSettings,
) -> GatewaySettings:
    """Return a copy of ``settings`` with one provider section replaced."""
    providers = dict(settings.providers)
    providers[provider] = provider_settings
    return replace(settings, providers=providers)
