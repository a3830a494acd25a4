"""
Process-wide provider configuration, read from the environment and `.env`.
"""
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

import dotenv

from .gateway import ChatGateway
from .providers.azure import DEFAULT_API_VERSION, AzureOpenAIProvider
from .providers.openrouter import OPENROUTER_BASE_URL, OpenRouterProvider
from .types import ProviderConfig

logger = logging.getLogger(__name__)

DEFAULT_PRIMARY_MODEL = "google/gemini-2.5-pro-exp-03-25:free"
DEFAULT_FALLBACK_MODEL = "openai/gpt-4o"
DEFAULT_AZURE_MODEL = "gpt-4o"
DEFAULT_SITE_URL = "http://localhost"
DEFAULT_SITE_NAME = "LLMGate Chat"
DEFAULT_TIMEOUT = 60.0

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class GatewaySettings:
    """
    Configuration of the three gateway roles. `load_settings` always fills
    `secondary`; None leaves the gateway without one.
    """
    primary: ProviderConfig
    fallback: ProviderConfig
    secondary: Optional[ProviderConfig] = None
    site_url: str = DEFAULT_SITE_URL
    site_name: str = DEFAULT_SITE_NAME
    azure_api_version: str = DEFAULT_API_VERSION


def _get(name: str, default: Optional[str] = None) -> Optional[str]:
    value = os.environ.get(name)
    if value is None or not value.strip():
        return default
    return value.strip()


def _get_bool(name: str, default: bool) -> bool:
    value = _get(name)
    if value is None:
        return default
    if value.lower() in _TRUE:
        return True
    if value.lower() in _FALSE:
        return False
    raise ValueError(f"{name} must be a boolean (true/false), got {value!r}")


def _get_float(name: str, default: float) -> float:
    value = _get(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"{name} must be a number of seconds, got {value!r}") from None


def load_settings(env_file: Optional[Union[str, Path]] = None) -> GatewaySettings:
    """
    Load provider settings from the environment.

    Values from `env_file` (or a `.env` found from the working directory) are
    loaded first; variables already set in the environment take precedence.
    A missing API key or Azure endpoint is not an error here: calls to that
    provider fail when attempted, and the fallback takes over.

    Args:
        env_file: Optional path to a dotenv file.

    Returns:
        GatewaySettings: The frozen provider configuration.

    Raises:
        ValueError: If a boolean or numeric variable cannot be parsed.
    """
    dotenv.load_dotenv(env_file or dotenv.find_dotenv(usecwd=True), override=False)

    timeout = _get_float("LLMGATE_TIMEOUT", DEFAULT_TIMEOUT)
    openrouter_key = _get("OPENROUTER_API_KEY")
    openrouter_url = _get("OPENROUTER_BASE_URL", OPENROUTER_BASE_URL)

    primary = ProviderConfig(
        name="openrouter",
        endpoint=openrouter_url,
        credential=openrouter_key,
        default_model=_get("OPENROUTER_MODEL", DEFAULT_PRIMARY_MODEL),
        supports_streaming=_get_bool("OPENROUTER_STREAMING", True),
        timeout=timeout,
    )

    fallback = ProviderConfig(
        name="openrouter-fallback",
        endpoint=openrouter_url,
        credential=openrouter_key,
        default_model=_get("FALLBACK_MODEL", DEFAULT_FALLBACK_MODEL),
        supports_streaming=False,
        timeout=timeout,
    )

    secondary = ProviderConfig(
        name="azure",
        endpoint=_get("AZURE_ENDPOINT"),
        credential=_get("AZURE_API_KEY"),
        default_model=_get("AZURE_MODEL", DEFAULT_AZURE_MODEL),
        supports_streaming=_get_bool("AZURE_STREAMING", True),
        timeout=timeout,
    )

    for config in (primary, secondary, fallback):
        if not config.credential:
            logger.warning("No API key configured for provider %s", config.name)
    if not secondary.endpoint:
        logger.warning("No endpoint configured for provider %s", secondary.name)

    return GatewaySettings(
        primary=primary,
        secondary=secondary,
        fallback=fallback,
        site_url=_get("OPENROUTER_SITE_URL", DEFAULT_SITE_URL),
        site_name=_get("OPENROUTER_SITE_NAME", DEFAULT_SITE_NAME),
        azure_api_version=_get("AZURE_API_VERSION", DEFAULT_API_VERSION),
    )


def build_gateway(settings: Optional[GatewaySettings] = None) -> ChatGateway:
    """
    Wire the OpenRouter, Azure and fallback clients into a ChatGateway.

    Args:
        settings: Settings to use. Loaded with `load_settings()` when omitted.

    Returns:
        ChatGateway: A gateway ready for concurrent use.
    """
    settings = settings or load_settings()

    primary = OpenRouterProvider(settings.primary, settings.site_url, settings.site_name)
    fallback = OpenRouterProvider(settings.fallback, settings.site_url, settings.site_name)
    secondary = None
    if settings.secondary is not None:
        secondary = AzureOpenAIProvider(settings.secondary, api_version=settings.azure_api_version)

    return ChatGateway(primary=primary, secondary=secondary, fallback=fallback)
