from dataclasses import replace

from openai import AsyncOpenAI

from .openai import OpenAIProvider
from ..errors import ProviderError, ProviderErrorKind
from ..types import ProviderConfig

DEFAULT_API_VERSION = "2023-12-01-preview"


class AzureOpenAIProvider(OpenAIProvider):
    """
    Provider for an Azure OpenAI deployment, reached through the
    OpenAI-compatible client with Azure's header and query conventions.
    """

    def __init__(
        self,
        config: ProviderConfig,
        api_version: str = DEFAULT_API_VERSION,
    ):
        """
        Initialize AzureOpenAIProvider.

        Azure authenticates with an `api-key` header and selects the API
        surface with the `api-version` query parameter. Results are labelled
        "azure-ai (<model>)" unless the config sets its own label.
        """
        headers = dict(config.default_headers)
        if config.credential:
            headers["api-key"] = config.credential
        query = {**config.default_query, "api-version": api_version}

        super().__init__(
            replace(
                config,
                label=config.label or "azure-ai",
                default_headers=headers,
                default_query=query,
            )
        )

    def _get_client(self) -> AsyncOpenAI:
        client = super()._get_client()
        # requests must go to the deployment's own endpoint
        if not self.config.endpoint:
            raise ProviderError(
                ProviderErrorKind.UNREACHABLE,
                "No endpoint configured",
                provider=self.name,
            )
        return client
