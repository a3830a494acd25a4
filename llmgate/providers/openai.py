import logging
import time
from typing import Any, AsyncIterator, Dict, Sequence

import httpx
import openai
from openai import AsyncOpenAI

from .base import BaseProviderClient
from ..errors import ProviderError, ProviderErrorKind
from ..types import ChatMessage, CompletionResult, ProviderConfig
from ..utils import to_wire_messages

logger = logging.getLogger(__name__)


class OpenAIProvider(BaseProviderClient):
    """
    Provider client for OpenAI-compatible chat completion APIs.
    """

    def __init__(self, config: ProviderConfig):
        super().__init__(config)
        self.client = self._build_client(config) if config.credential else None

    @staticmethod
    def _build_client(config: ProviderConfig) -> AsyncOpenAI:
        client_kwargs: Dict[str, Any] = {
            "api_key": config.credential,
            "base_url": config.endpoint or None,
            # no SDK-level retries
            "max_retries": 0,
        }
        if config.default_headers:
            client_kwargs["default_headers"] = dict(config.default_headers)
        if config.default_query:
            client_kwargs["default_query"] = dict(config.default_query)
        if config.timeout is not None:
            client_kwargs["timeout"] = config.timeout
        return AsyncOpenAI(**client_kwargs)

    def _get_client(self) -> AsyncOpenAI:
        if self.client is None:
            self.require_credential()
        return self.client

    async def complete(
        self,
        messages: Sequence[ChatMessage],
        model: str,
    ) -> CompletionResult:
        """
        Send a chat request using the OpenAI-compatible API.

        Args:
            messages (Sequence[ChatMessage]): The conversation, oldest first.
            model (str): The model identifier.

        Returns:
            CompletionResult: The generated text and model label.

        Raises:
            ProviderError: If the call fails or the reply carries no text.
        """
        client = self._get_client()

        start = time.perf_counter()
        try:
            resp = await client.chat.completions.create(
                model=model,
                messages=to_wire_messages(messages),
            )
        except (openai.OpenAIError, httpx.HTTPError) as e:
            raise self._translate_error(e) from e
        latency_ms = (time.perf_counter() - start) * 1000.0

        if not getattr(resp, "choices", None):
            raise ProviderError(
                ProviderErrorKind.INVALID_RESPONSE,
                "Response contained no choices",
                provider=self.name,
            )

        text = resp.choices[0].message.content
        if not text:
            raise ProviderError(
                ProviderErrorKind.INVALID_RESPONSE,
                "Response contained no text",
                provider=self.name,
            )

        served_model = getattr(resp, "model", None)
        logger.debug("%s served %s in %.0f ms", self.name, served_model or model, latency_ms)

        return CompletionResult(
            content=text,
            model_label=self.label_for(model, served_model),
            provider=self.name,
        )

    async def stream(
        self,
        messages: Sequence[ChatMessage],
        model: str,
    ) -> AsyncIterator[str]:
        """
        Stream a chat response using the OpenAI-compatible API.

        Yields only non-empty text deltas. The HTTP response is closed in
        every exit path, including `aclose()` and task cancellation.

        Args:
            messages (Sequence[ChatMessage]): The conversation, oldest first.
            model (str): The model identifier.

        Yields:
            str: Text fragments in arrival order.
        """
        if not self.supports_streaming:
            raise NotImplementedError(f"Provider '{self.name}' does not support streaming")

        client = self._get_client()

        try:
            stream = await client.chat.completions.create(
                model=model,
                messages=to_wire_messages(messages),
                stream=True,
            )
        except (openai.OpenAIError, httpx.HTTPError) as e:
            raise self._translate_error(e) from e

        produced = False
        try:
            async for chunk in stream:
                if not chunk.choices:
                    continue

                content = chunk.choices[0].delta.content
                if not content:
                    continue

                # Handle both list and string content
                if isinstance(content, list):
                    piece = "".join(part.get("text", "") for part in content if isinstance(part, dict))
                else:
                    piece = str(content)

                if piece:
                    produced = True
                    yield piece

            if not produced:
                raise ProviderError(
                    ProviderErrorKind.INVALID_RESPONSE,
                    "Stream contained no text",
                    provider=self.name,
                )
        except (openai.OpenAIError, httpx.HTTPError) as e:
            raise self._translate_error(e) from e
        finally:
            await stream.close()

    def _translate_error(self, error: Exception) -> ProviderError:
        """
        Map an SDK or transport error onto a ProviderError kind.

        Args:
            error: The exception raised by the openai SDK or httpx.

        Returns:
            ProviderError: The normalized error, to be raised by the caller.
        """
        status_code = getattr(error, "status_code", None)

        if isinstance(error, (openai.AuthenticationError, openai.PermissionDeniedError)):
            kind = ProviderErrorKind.UNAUTHORIZED
        elif isinstance(error, openai.RateLimitError):
            kind = ProviderErrorKind.RATE_LIMITED
        elif isinstance(error, (openai.APIConnectionError, openai.InternalServerError, httpx.TransportError)):
            kind = ProviderErrorKind.UNREACHABLE
        else:
            kind = ProviderErrorKind.INVALID_RESPONSE

        return ProviderError(
            kind,
            str(error) or error.__class__.__name__,
            provider=self.name,
            status_code=status_code,
        )
