from dataclasses import replace
from typing import Optional

from .openai import OpenAIProvider
from ..types import ProviderConfig

OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"


class OpenRouterProvider(OpenAIProvider):
    """
    Provider for the OpenRouter API (OpenAI-compatible).
    """

    def __init__(
        self,
        config: ProviderConfig,
        site_url: Optional[str] = None,
        site_name: Optional[str] = None,
    ):
        """
        Initialize OpenRouterProvider.

        OpenRouter uses the optional HTTP-Referer and X-Title headers to
        attribute traffic to the calling application.
        """
        headers = dict(config.default_headers)
        if site_url:
            headers["HTTP-Referer"] = site_url
        if site_name:
            headers["X-Title"] = site_name

        super().__init__(
            replace(
                config,
                endpoint=config.endpoint or OPENROUTER_BASE_URL,
                default_headers=headers,
            )
        )
