from .base import BaseProviderClient
from .openai import OpenAIProvider
from .openrouter import OpenRouterProvider
from .azure import AzureOpenAIProvider

__all__ = ["BaseProviderClient", "OpenAIProvider", "OpenRouterProvider", "AzureOpenAIProvider"]
