import asyncio
import os
from typing import List, Optional
from unittest.mock import patch

import pytest

from llmgate.errors import ProviderError
from llmgate.providers.base import BaseProviderClient
from llmgate.types import CompletionResult, ProviderConfig


class FakeProvider(BaseProviderClient):
    """In-process provider client that records its calls."""

    def __init__(
        self,
        name: str,
        default_model: str,
        reply: str = "4",
        chunks: Optional[List[str]] = None,
        error: Optional[ProviderError] = None,
        fail_after: Optional[int] = None,
        hang_after: Optional[int] = None,
        supports_streaming: bool = True,
        label: Optional[str] = None,
        served_model: Optional[str] = None,
    ):
        super().__init__(
            ProviderConfig(
                name=name,
                endpoint=None,
                credential="test-key",
                default_model=default_model,
                supports_streaming=supports_streaming,
                label=label,
            )
        )
        self.reply = reply
        self.chunks = chunks if chunks is not None else [reply]
        self.error = error
        self.fail_after = fail_after
        self.hang_after = hang_after
        self.served_model = served_model
        self.calls = []
        self.closed = 0

    async def complete(self, messages, model):
        self.calls.append(("complete", messages, model))
        if self.error is not None:
            raise self.error
        return CompletionResult(content=self.reply, model_label=self.label_for(model, self.served_model), provider=self.name)

    async def stream(self, messages, model):
        self.calls.append(("stream", messages, model))
        try:
            for i, chunk in enumerate(self.chunks):
                if self.error is not None and self.fail_after == i:
                    raise self.error
                if self.hang_after == i:
                    await asyncio.Event().wait()
                yield chunk
            if self.error is not None and (self.fail_after is None or self.fail_after >= len(self.chunks)):
                raise self.error
        finally:
            self.closed += 1


@pytest.fixture
def fake_provider():
    """Factory for FakeProvider instances."""
    return FakeProvider


@pytest.fixture
def user_messages():
    return [{"role": "user", "content": "2+2?"}]


@pytest.fixture
def clean_env():
    """Run with an empty environment, restored afterwards."""
    with patch.dict(os.environ, {}, clear=True):
        yield os.environ


@pytest.fixture
def provider_config():
    return ProviderConfig(
        name="openai",
        endpoint="https://api.example.com/v1",
        credential="sk-test",
        default_model="gpt-4o",
    )
