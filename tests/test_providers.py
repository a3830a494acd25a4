import httpx
import openai
import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from llmgate.errors import ProviderError, ProviderErrorKind
from llmgate.providers.azure import AzureOpenAIProvider
from llmgate.providers.openai import OpenAIProvider
from llmgate.providers.openrouter import OpenRouterProvider
from llmgate.types import ChatMessage, ProviderConfig

MESSAGES = (ChatMessage("user", "2+2?"),)
REQUEST = httpx.Request("POST", "https://api.example.com/v1/chat/completions")


def status_error(cls, status_code):
    return cls("boom", response=httpx.Response(status_code, request=REQUEST), body=None)


def completion(content="4", model="gpt-4o"):
    return MagicMock(
        choices=[MagicMock(message=MagicMock(content=content))],
        model=model,
    )


def stream_chunk(content):
    return MagicMock(choices=[MagicMock(delta=MagicMock(content=content))])


class FakeSDKStream:
    """Stands in for openai.AsyncStream."""

    def __init__(self, chunks, error=None):
        self.chunks = chunks
        self.error = error
        self.close = AsyncMock()

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for chunk in self.chunks:
            yield chunk
        if self.error is not None:
            raise self.error


class TestOpenAIProvider:

    @patch("llmgate.providers.openai.AsyncOpenAI")
    def test_client_built_from_config(self, mock_openai_cls):
        config = ProviderConfig(
            name="openai",
            endpoint="https://api.example.com/v1",
            credential="sk-test",
            default_model="gpt-4o",
            timeout=12.5,
        )

        OpenAIProvider(config)

        kwargs = mock_openai_cls.call_args.kwargs
        assert kwargs["api_key"] == "sk-test"
        assert kwargs["base_url"] == "https://api.example.com/v1"
        assert kwargs["timeout"] == 12.5
        assert kwargs["max_retries"] == 0

    @pytest.mark.asyncio
    @patch("llmgate.providers.openai.AsyncOpenAI")
    async def test_complete(self, mock_openai_cls, provider_config):
        client_mock = AsyncMock()
        mock_openai_cls.return_value = client_mock
        client_mock.chat.completions.create.return_value = completion("4", model="gpt-4o-2024-08-06")

        provider = OpenAIProvider(provider_config)
        result = await provider.complete(MESSAGES, "gpt-4o")

        assert result.content == "4"
        assert result.model_label == "gpt-4o-2024-08-06"
        assert result.provider == "openai"
        client_mock.chat.completions.create.assert_awaited_once_with(
            model="gpt-4o",
            messages=[{"role": "user", "content": "2+2?"}],
        )

    @pytest.mark.asyncio
    @patch("llmgate.providers.openai.AsyncOpenAI")
    async def test_missing_credential_fails_as_unauthorized(self, mock_openai_cls):
        config = ProviderConfig(name="openai", endpoint=None, credential="", default_model="gpt-4o")

        provider = OpenAIProvider(config)
        with pytest.raises(ProviderError) as exc_info:
            await provider.complete(MESSAGES, "gpt-4o")

        assert exc_info.value.kind == ProviderErrorKind.UNAUTHORIZED
        mock_openai_cls.assert_not_called()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error, kind",
        [
            (status_error(openai.AuthenticationError, 401), ProviderErrorKind.UNAUTHORIZED),
            (status_error(openai.PermissionDeniedError, 403), ProviderErrorKind.UNAUTHORIZED),
            (status_error(openai.RateLimitError, 429), ProviderErrorKind.RATE_LIMITED),
            (status_error(openai.InternalServerError, 503), ProviderErrorKind.UNREACHABLE),
            (openai.APIConnectionError(request=REQUEST), ProviderErrorKind.UNREACHABLE),
            (openai.APITimeoutError(request=REQUEST), ProviderErrorKind.UNREACHABLE),
            (status_error(openai.BadRequestError, 400), ProviderErrorKind.INVALID_RESPONSE),
        ],
    )
    @patch("llmgate.providers.openai.AsyncOpenAI")
    async def test_error_mapping(self, mock_openai_cls, error, kind, provider_config):
        client_mock = AsyncMock()
        mock_openai_cls.return_value = client_mock
        client_mock.chat.completions.create.side_effect = error

        provider = OpenAIProvider(provider_config)
        with pytest.raises(ProviderError) as exc_info:
            await provider.complete(MESSAGES, "gpt-4o")

        assert exc_info.value.kind == kind
        assert exc_info.value.provider == "openai"
        assert exc_info.value.__cause__ is error

    @pytest.mark.asyncio
    @patch("llmgate.providers.openai.AsyncOpenAI")
    async def test_empty_reply_is_invalid(self, mock_openai_cls, provider_config):
        client_mock = AsyncMock()
        mock_openai_cls.return_value = client_mock
        client_mock.chat.completions.create.return_value = completion(None)

        provider = OpenAIProvider(provider_config)
        with pytest.raises(ProviderError) as exc_info:
            await provider.complete(MESSAGES, "gpt-4o")

        assert exc_info.value.kind == ProviderErrorKind.INVALID_RESPONSE

    @pytest.mark.asyncio
    @patch("llmgate.providers.openai.AsyncOpenAI")
    async def test_no_choices_is_invalid(self, mock_openai_cls, provider_config):
        client_mock = AsyncMock()
        mock_openai_cls.return_value = client_mock
        client_mock.chat.completions.create.return_value = MagicMock(choices=[])

        provider = OpenAIProvider(provider_config)
        with pytest.raises(ProviderError) as exc_info:
            await provider.complete(MESSAGES, "gpt-4o")

        assert exc_info.value.kind == ProviderErrorKind.INVALID_RESPONSE

    @pytest.mark.asyncio
    @patch("llmgate.providers.openai.AsyncOpenAI")
    async def test_stream(self, mock_openai_cls, provider_config):
        client_mock = AsyncMock()
        mock_openai_cls.return_value = client_mock
        sdk_stream = FakeSDKStream([
            stream_chunk("Hel"),
            MagicMock(choices=[]),
            stream_chunk(None),
            stream_chunk("lo"),
        ])
        client_mock.chat.completions.create.return_value = sdk_stream

        provider = OpenAIProvider(provider_config)
        pieces = [piece async for piece in provider.stream(MESSAGES, "gpt-4o")]

        assert pieces == ["Hel", "lo"]
        assert client_mock.chat.completions.create.call_args.kwargs["stream"] is True
        sdk_stream.close.assert_awaited_once()

    @pytest.mark.asyncio
    @patch("llmgate.providers.openai.AsyncOpenAI")
    async def test_stream_closed_when_abandoned(self, mock_openai_cls, provider_config):
        client_mock = AsyncMock()
        mock_openai_cls.return_value = client_mock
        sdk_stream = FakeSDKStream([stream_chunk("a"), stream_chunk("b"), stream_chunk("c")])
        client_mock.chat.completions.create.return_value = sdk_stream

        provider = OpenAIProvider(provider_config)
        pieces = provider.stream(MESSAGES, "gpt-4o")
        assert await pieces.__anext__() == "a"
        await pieces.aclose()

        sdk_stream.close.assert_awaited_once()

    @pytest.mark.asyncio
    @patch("llmgate.providers.openai.AsyncOpenAI")
    async def test_stream_error_mid_feed(self, mock_openai_cls, provider_config):
        client_mock = AsyncMock()
        mock_openai_cls.return_value = client_mock
        sdk_stream = FakeSDKStream([stream_chunk("Hel")], error=httpx.ReadError("reset", request=REQUEST))
        client_mock.chat.completions.create.return_value = sdk_stream

        provider = OpenAIProvider(provider_config)
        received = []
        with pytest.raises(ProviderError) as exc_info:
            async for piece in provider.stream(MESSAGES, "gpt-4o"):
                received.append(piece)

        assert received == ["Hel"]
        assert exc_info.value.kind == ProviderErrorKind.UNREACHABLE
        sdk_stream.close.assert_awaited_once()

    @pytest.mark.asyncio
    @patch("llmgate.providers.openai.AsyncOpenAI")
    async def test_stream_without_text_is_invalid(self, mock_openai_cls, provider_config):
        client_mock = AsyncMock()
        mock_openai_cls.return_value = client_mock
        sdk_stream = FakeSDKStream([stream_chunk(None)])
        client_mock.chat.completions.create.return_value = sdk_stream

        provider = OpenAIProvider(provider_config)
        with pytest.raises(ProviderError) as exc_info:
            async for _ in provider.stream(MESSAGES, "gpt-4o"):
                pass

        assert exc_info.value.kind == ProviderErrorKind.INVALID_RESPONSE
        sdk_stream.close.assert_awaited_once()

    @pytest.mark.asyncio
    @patch("llmgate.providers.openai.AsyncOpenAI")
    async def test_stream_not_supported(self, mock_openai_cls):
        config = ProviderConfig(
            name="batch", endpoint=None, credential="k", default_model="m", supports_streaming=False
        )

        provider = OpenAIProvider(config)
        with pytest.raises(NotImplementedError):
            async for _ in provider.stream(MESSAGES, "m"):
                pass


class TestOpenRouterProvider:

    @patch("llmgate.providers.openai.AsyncOpenAI")
    def test_attribution_headers(self, mock_openai_cls):
        config = ProviderConfig(name="openrouter", endpoint=None, credential="sk-or", default_model="openai/gpt-4o")

        provider = OpenRouterProvider(config, site_url="https://chat.example.com", site_name="Example Chat")

        kwargs = mock_openai_cls.call_args.kwargs
        assert kwargs["base_url"] == "https://openrouter.ai/api/v1"
        assert kwargs["default_headers"] == {
            "HTTP-Referer": "https://chat.example.com",
            "X-Title": "Example Chat",
        }
        # the caller's config object is left untouched
        assert config.default_headers == {}
        assert provider.name == "openrouter"


class TestAzureOpenAIProvider:

    @patch("llmgate.providers.openai.AsyncOpenAI")
    def test_azure_conventions(self, mock_openai_cls):
        config = ProviderConfig(
            name="azure",
            endpoint="https://example.openai.azure.com/openai/deployments/gpt-4o",
            credential="az-key",
            default_model="gpt-4o",
        )

        provider = AzureOpenAIProvider(config, api_version="2024-02-01")

        kwargs = mock_openai_cls.call_args.kwargs
        assert kwargs["default_headers"] == {"api-key": "az-key"}
        assert kwargs["default_query"] == {"api-version": "2024-02-01"}
        assert provider.label_for("gpt-4o") == "azure-ai (gpt-4o)"

    @pytest.mark.asyncio
    @patch("llmgate.providers.openai.AsyncOpenAI")
    async def test_label_ignores_served_model(self, mock_openai_cls):
        client_mock = AsyncMock()
        mock_openai_cls.return_value = client_mock
        client_mock.chat.completions.create.return_value = completion("4", model="gpt-4o-2024-05-13")
        config = ProviderConfig(name="azure", endpoint="https://x", credential="k", default_model="gpt-4o")

        result = await AzureOpenAIProvider(config).complete(MESSAGES, "gpt-4o")

        assert result.model_label == "azure-ai (gpt-4o)"

    @pytest.mark.asyncio
    @patch("llmgate.providers.openai.AsyncOpenAI")
    async def test_missing_endpoint_is_unreachable(self, mock_openai_cls):
        client_mock = AsyncMock()
        mock_openai_cls.return_value = client_mock
        config = ProviderConfig(name="azure", endpoint=None, credential="k", default_model="gpt-4o")

        with pytest.raises(ProviderError) as exc_info:
            await AzureOpenAIProvider(config).complete(MESSAGES, "gpt-4o")

        assert exc_info.value.kind == ProviderErrorKind.UNREACHABLE
        client_mock.chat.completions.create.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_key_is_unauthorized(self):
        config = ProviderConfig(name="azure", endpoint=None, credential=None, default_model="gpt-4o")

        with pytest.raises(ProviderError) as exc_info:
            await AzureOpenAIProvider(config).complete(MESSAGES, "gpt-4o")

        assert exc_info.value.kind == ProviderErrorKind.UNAUTHORIZED
