import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from openai import APIStatusError

from app.ai.llm_client import (
    LLMClient,
    LLMConfigurationError,
    LLMProviderError,
    LLMStreamTimeout,
)
from app.core.config import settings

CONFIG = settings.model_copy(update={"LLM_API_KEY": "dummy_key"})


def _status_error(code: int) -> APIStatusError:
    request = httpx.Request("POST", "https://openrouter.ai/api/v1/chat/completions")
    response = httpx.Response(code, request=request)
    return APIStatusError("provider error", response=response, body=None)


def _chunk(content: str | None) -> MagicMock:
    chunk = MagicMock()
    chunk.choices = [MagicMock()]
    chunk.choices[0].delta.content = content
    return chunk


class FakeStream:
    def __init__(self, chunks, *, hang: bool = False):
        self.chunks = list(chunks)
        self.hang = hang
        self.close = AsyncMock()

    def __aiter__(self):
        return self

    async def __anext__(self):
        if self.hang:
            await asyncio.sleep(10)
        if not self.chunks:
            raise StopAsyncIteration
        return self.chunks.pop(0)


def _mock_openai(create: AsyncMock) -> MagicMock:
    mock_client_instance = MagicMock()
    mock_client_instance.chat.completions.create = create
    return mock_client_instance


@pytest.mark.asyncio
async def test_generate_text():
    mock_message = MagicMock()
    mock_message.content = "Hello there"
    mock_choice = MagicMock()
    mock_choice.message = mock_message
    mock_response = MagicMock()
    mock_response.choices = [mock_choice]
    create = AsyncMock(return_value=mock_response)

    with patch(
        "app.ai.llm_client.AsyncOpenAI", return_value=_mock_openai(create)
    ) as openai_cls:
        client = LLMClient(config=CONFIG, model_name="test-model")
        result = await client.generate_text("Say hi", system_prompt="Be nice")

    assert result == "Hello there"
    kwargs = create.call_args.kwargs
    assert kwargs["model"] == "test-model"
    assert kwargs["messages"] == [
        {"role": "system", "content": "Be nice"},
        {"role": "user", "content": "Say hi"},
    ]
    assert kwargs["max_tokens"] == CONFIG.LLM_MAX_TOKENS
    assert openai_cls.call_args.kwargs["default_headers"]["X-Title"] == CONFIG.LLM_APP_TITLE


@pytest.mark.asyncio
async def test_missing_key_raises_configuration_error():
    client = LLMClient(config=settings.model_copy(update={"LLM_API_KEY": None}))
    assert client.configured is False
    with pytest.raises(LLMConfigurationError):
        await client.generate_text("Say hi")


@pytest.mark.asyncio
async def test_provider_status_is_preserved():
    create = AsyncMock(side_effect=_status_error(429))
    with patch("app.ai.llm_client.AsyncOpenAI", return_value=_mock_openai(create)):
        client = LLMClient(config=CONFIG)
        with pytest.raises(LLMProviderError) as exc_info:
            await client.generate_text("Say hi")
    assert exc_info.value.status_code == 429


@pytest.mark.asyncio
async def test_empty_choices_is_provider_error():
    create = AsyncMock(return_value=MagicMock(choices=[]))
    with patch("app.ai.llm_client.AsyncOpenAI", return_value=_mock_openai(create)):
        client = LLMClient(config=CONFIG)
        with pytest.raises(LLMProviderError):
            await client.generate_text("Say hi")


@pytest.mark.asyncio
async def test_stream_chat_yields_content_and_closes():
    stream = FakeStream([_chunk("Hel"), _chunk(None), _chunk("lo")])
    create = AsyncMock(return_value=stream)
    with patch("app.ai.llm_client.AsyncOpenAI", return_value=_mock_openai(create)):
        client = LLMClient(config=CONFIG)
        parts = [part async for part in client.stream_chat([{"role": "user", "content": "Hi"}])]

    assert parts == ["Hel", "lo"]
    assert create.call_args.kwargs["stream"] is True
    stream.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_stream_chat_times_out():
    stream = FakeStream([], hang=True)
    create = AsyncMock(return_value=stream)
    with patch("app.ai.llm_client.AsyncOpenAI", return_value=_mock_openai(create)):
        client = LLMClient(config=CONFIG)
        with pytest.raises(LLMStreamTimeout):
            async for _ in client.stream_chat(
                [{"role": "user", "content": "Hi"}], timeout=0.05
            ):
                pass
    stream.close.assert_awaited_once()
