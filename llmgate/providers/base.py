from abc import ABC, abstractmethod
from typing import AsyncIterator, Optional, Sequence

from ..errors import ProviderError, ProviderErrorKind
from ..types import ChatMessage, CompletionResult, ProviderConfig
from ..utils import format_model_label

class BaseProviderClient(ABC):
    """
    Abstract base class for provider clients.

    A provider client translates a normalized (messages, model) pair into one
    backend's request format, runs the call, and translates the reply back.
    Every failure surfaces as a ProviderError.
    """

    def __init__(self, config: ProviderConfig):
        self.config = config

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def default_model(self) -> str:
        return self.config.default_model

    @property
    def supports_streaming(self) -> bool:
        """Whether `stream` may be called. The gateway checks this first."""
        return self.config.supports_streaming

    @abstractmethod
    async def complete(
        self,
        messages: Sequence[ChatMessage],
        model: str,
    ) -> CompletionResult:
        """
        Send a blocking chat request to the provider.

        Args:
            messages (Sequence[ChatMessage]): The conversation, oldest first.
            model (str): The model identifier.

        Returns:
            CompletionResult: The full completion and the label of the model that served it.

        Raises:
            ProviderError: On any failure. A partial result is never returned.
        """
        pass

    def stream(
        self,
        messages: Sequence[ChatMessage],
        model: str,
    ) -> AsyncIterator[str]:
        """
        Stream a chat response from the provider.

        The returned iterator is lazy, finite and can be consumed once. The
        underlying transport is closed when the iterator is exhausted, closed
        with `aclose()`, or cancelled.

        Args:
            messages (Sequence[ChatMessage]): The conversation, oldest first.
            model (str): The model identifier.

        Yields:
            str: Text fragments in the order the backend sent them.

        Raises:
            ProviderError: On any failure, including failures mid-stream.
            NotImplementedError: If the provider does not support streaming.
        """
        raise NotImplementedError(f"Provider '{self.name}' does not support streaming")

    def require_credential(self) -> str:
        """
        Return the configured credential or fail the call as unauthorized.

        A missing key does not stop the client from being built; it only fails
        the calls that would need it.
        """
        if not self.config.credential:
            raise ProviderError(
                ProviderErrorKind.UNAUTHORIZED,
                "No credential configured",
                provider=self.name,
            )
        return self.config.credential

    def label_for(self, model: str, served_model: Optional[str] = None) -> str:
        """
        Label for a served call: "<label> (<model>)" when the config carries a
        label, otherwise the model the backend reports.
        """
        if self.config.label:
            return format_model_label(model, self.config.label)
        return served_model or model
