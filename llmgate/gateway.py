import logging
from dataclasses import replace
from typing import Any, Callable, Iterable, Mapping, Optional, Sequence, Union

from .aggregator import ChunkCallback, StreamAggregator, notify
from .errors import GatewayError, GatewayErrorKind, ProviderError
from .providers.base import BaseProviderClient
from .types import ChatMessage, CompletionResult
from .utils import fallback_label, normalize_messages

logger = logging.getLogger(__name__)

Conversation = Iterable[Union[ChatMessage, Mapping[str, str]]]
FallbackCallback = Callable[[ProviderError], Any]


class ChatGateway:
    """
    Single entry point for chat completions across interchangeable providers.

    The gateway picks the primary or secondary provider for each call and,
    when that provider fails, makes exactly one attempt on the designated
    fallback provider. It keeps no state between calls; the provider clients
    it holds are injected at construction time.
    """

    def __init__(
        self,
        primary: BaseProviderClient,
        secondary: Optional[BaseProviderClient] = None,
        fallback: Optional[BaseProviderClient] = None,
    ):
        """
        Initialize the ChatGateway.

        Args:
            primary: Provider used by default.
            secondary: Provider used when a call passes `use_secondary=True`.
            fallback: Provider tried once, with its own default model, after
                the selected provider fails.
        """
        self.primary = primary
        self.secondary = secondary
        self.fallback = fallback

    def select(self, use_secondary: bool = False) -> BaseProviderClient:
        """
        Return the provider a call should go to.

        Raises:
            GatewayError: If the secondary provider is requested but not configured.
        """
        if not use_secondary:
            return self.primary
        if self.secondary is None:
            raise GatewayError(
                GatewayErrorKind.PROVIDER_NOT_CONFIGURED,
                "Secondary provider requested but not configured",
            )
        return self.secondary

    async def chat(
        self,
        messages: Conversation,
        *,
        use_secondary: bool = False,
        model: Optional[str] = None,
    ) -> CompletionResult:
        """
        Send a blocking chat request.

        Args:
            messages: The conversation, oldest message first. Not modified.
            use_secondary (bool): Route the call to the secondary provider.
            model (str, optional): Model for the selected provider. Defaults to
                that provider's default model. Ignored by the fallback.

        Returns:
            CompletionResult: The full reply. After a fallback its
                `model_label` ends with "(fallback)" and `fallback` is True.

        Raises:
            GatewayError: If the selected provider and the fallback both fail.
        """
        conversation = normalize_messages(messages)
        provider = self.select(use_secondary)
        model = model or provider.default_model

        logger.debug("chat -> %s (%s), %d messages", provider.name, model, len(conversation))
        try:
            return await provider.complete(conversation, model)
        except ProviderError as e:
            return await self._call_fallback(conversation, provider, e)

    async def stream_chat(
        self,
        messages: Conversation,
        on_chunk: Optional[ChunkCallback] = None,
        *,
        use_secondary: bool = False,
        model: Optional[str] = None,
        on_fallback: Optional[FallbackCallback] = None,
    ) -> CompletionResult:
        """
        Stream a chat reply to `on_chunk` and return the assembled result.

        Each non-empty chunk goes to `on_chunk` once, in arrival order. If the
        selected provider cannot stream, its blocking reply is delivered as a
        single chunk. If the provider fails (before or during the stream), the
        fallback runs in blocking mode. `on_fallback(error)` is then called to
        mark the boundary, and the fallback's full reply is delivered as one
        final chunk. Chunks already delivered before the failure are not
        retracted.

        Args:
            messages: The conversation, oldest message first. Not modified.
            on_chunk: Sync or async callable receiving each text fragment.
            use_secondary (bool): Route the call to the secondary provider.
            model (str, optional): Model for the selected provider.
            on_fallback: Sync or async callable receiving the provider error
                right before the fallback's reply is delivered.

        Returns:
            CompletionResult: On the normal path, content equals the
                concatenation of all delivered chunks. After a fallback it
                equals the single fallback chunk.
                Streamed replies are labelled with the requested model; an
                unlabelled provider's blocking reply may name the exact
                model the backend served instead.

        Raises:
            GatewayError: If the selected provider and the fallback both fail.
        """
        conversation = normalize_messages(messages)
        provider = self.select(use_secondary)
        model = model or provider.default_model

        if not provider.supports_streaming:
            logger.debug("%s cannot stream, using blocking call", provider.name)
            try:
                result = await provider.complete(conversation, model)
            except ProviderError as e:
                return await self._stream_fallback(conversation, provider, e, on_chunk, on_fallback)
            await notify(on_chunk, result.content)
            return result

        logger.debug("stream_chat -> %s (%s), %d messages", provider.name, model, len(conversation))
        aggregator = StreamAggregator(on_chunk)
        try:
            content = await aggregator.aggregate(provider.stream(conversation, model))
        except ProviderError as e:
            return await self._stream_fallback(conversation, provider, e, on_chunk, on_fallback)

        return CompletionResult(
            content=content,
            model_label=provider.label_for(model),
            provider=provider.name,
        )

    async def _stream_fallback(
        self,
        conversation: Sequence[ChatMessage],
        failed: BaseProviderClient,
        error: ProviderError,
        on_chunk: Optional[ChunkCallback],
        on_fallback: Optional[FallbackCallback],
    ) -> CompletionResult:
        result = await self._call_fallback(conversation, failed, error)
        await notify(on_fallback, error)
        await notify(on_chunk, result.content)
        return result

    async def _call_fallback(
        self,
        conversation: Sequence[ChatMessage],
        failed: BaseProviderClient,
        error: ProviderError,
    ) -> CompletionResult:
        """
        Make the single fallback attempt for a failed call.

        The fallback always runs with its own default model, since it may not
        serve the model the caller asked for.
        """
        fallback = self.fallback
        if fallback is None or fallback is failed:
            logger.error("Provider %s failed with no fallback available: %s", failed.name, error)
            raise GatewayError(
                GatewayErrorKind.ALL_PROVIDERS_FAILED,
                f"Provider '{failed.name}' failed and no fallback is available",
                cause=error,
            ) from error

        logger.warning("Provider %s failed (%s), falling back to %s", failed.name, error, fallback.name)
        try:
            result = await fallback.complete(conversation, fallback.default_model)
        except ProviderError as fallback_error:
            logger.error(
                "Fallback %s failed after %s: %s", fallback.name, failed.name, fallback_error
            )
            raise GatewayError(
                GatewayErrorKind.ALL_PROVIDERS_FAILED,
                f"Provider '{failed.name}' and fallback '{fallback.name}' both failed",
                cause=fallback_error,
                original=error,
            ) from fallback_error

        return replace(result, model_label=fallback_label(result.model_label), fallback=True)
