import asyncio
import logging
from collections.abc import AsyncIterator

from openai import APIConnectionError, APIStatusError, AsyncOpenAI

from app.core.config import Settings, settings

logger = logging.getLogger(__name__)

ChatMessages = list[dict[str, str]]


class LLMError(Exception):
    pass


class LLMConfigurationError(LLMError):
    """The provider cannot be called because no API key is configured."""


class LLMProviderError(LLMError):
    def __init__(self, status_code: int | None, message: str = "") -> None:
        super().__init__(message or f"AI provider error: {status_code}")
        self.status_code = status_code


class LLMStreamTimeout(LLMError):
    pass


class LLMClient:
    """Thin client for an OpenAI-compatible chat-completions provider (OpenRouter by default)."""

    def __init__(
        self,
        *,
        config: Settings = settings,
        model_name: str | None = None,
    ):
        self.config = config
        self.model_name = model_name or config.MODEL_DEFAULT
        self._client: AsyncOpenAI | None = None

    @property
    def configured(self) -> bool:
        return bool(self.config.LLM_API_KEY)

    def _default_headers(self) -> dict[str, str]:
        headers = {"X-Title": self.config.LLM_APP_TITLE}
        if self.config.LLM_APP_URL:
            headers["HTTP-Referer"] = self.config.LLM_APP_URL
        return headers

    def _get_client(self) -> AsyncOpenAI:
        if not self.configured:
            raise LLMConfigurationError("AI API key not configured")
        if self._client is None:
            self._client = AsyncOpenAI(
                base_url=self.config.LLM_BASE_URL,
                api_key=self.config.LLM_API_KEY,
                default_headers=self._default_headers(),
            )
        return self._client

    def ensure_configured(self) -> None:
        self._get_client()

    async def generate_text(
        self,
        prompt: str,
        *,
        system_prompt: str | None = None,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> str:
        """Return the full completion text for a single-turn prompt."""
        client = self._get_client()
        messages: ChatMessages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        logger.info("Issuing text request to model %s...", self.model_name)
        try:
            response = await client.chat.completions.create(
                model=self.model_name,
                messages=messages,  # type: ignore[arg-type]
                max_tokens=max_tokens or self.config.LLM_MAX_TOKENS,
                temperature=(
                    self.config.LLM_TEMPERATURE if temperature is None else temperature
                ),
            )
        except APIStatusError as e:
            logger.error(
                "Provider returned %s for model %s: %s",
                e.status_code,
                self.model_name,
                e.message,
            )
            raise LLMProviderError(e.status_code) from e
        except APIConnectionError as e:
            logger.error("Could not reach provider for model %s: %s", self.model_name, e)
            raise LLMProviderError(None, "AI provider unreachable") from e

        if not getattr(response, "choices", None):
            logger.error("Received 0 choices from %s: %s", self.model_name, response)
            raise LLMProviderError(None, "AI provider returned no output")
        text_response = response.choices[0].message.content or ""
        logger.info("Received text response from %s.", self.model_name)
        return text_response

    async def stream_chat(
        self,
        messages: ChatMessages,
        *,
        max_tokens: int | None = None,
        temperature: float | None = None,
        timeout: float | None = None,
    ) -> AsyncIterator[str]:
        """Yield content deltas until the provider ends the stream.

        The whole stream, connection included, is bounded by ``timeout``
        seconds. The upstream response is closed however the iteration ends.
        """
        client = self._get_client()
        loop = asyncio.get_running_loop()
        deadline = loop.time() + (timeout or self.config.CHAT_STREAM_TIMEOUT_SECONDS)

        def remaining() -> float:
            left = deadline - loop.time()
            if left <= 0:
                raise LLMStreamTimeout("Stream timed out")
            return left

        try:
            stream = await asyncio.wait_for(
                client.chat.completions.create(
                    model=self.model_name,
                    messages=messages,  # type: ignore[arg-type]
                    max_tokens=max_tokens or self.config.CHAT_MAX_TOKENS,
                    temperature=(
                        self.config.LLM_TEMPERATURE if temperature is None else temperature
                    ),
                    stream=True,
                ),
                remaining(),
            )
        except asyncio.TimeoutError as e:
            raise LLMStreamTimeout("Stream timed out") from e
        except APIStatusError as e:
            logger.error("Provider returned %s opening chat stream", e.status_code)
            raise LLMProviderError(e.status_code) from e
        except APIConnectionError as e:
            logger.error("Could not reach provider for chat stream: %s", e)
            raise LLMProviderError(None, "AI provider unreachable") from e

        iterator = stream.__aiter__()
        try:
            while True:
                left = remaining()
                try:
                    chunk = await asyncio.wait_for(iterator.__anext__(), left)
                except StopAsyncIteration:
                    return
                except asyncio.TimeoutError as e:
                    raise LLMStreamTimeout("Stream timed out") from e
                except APIStatusError as e:
                    raise LLMProviderError(e.status_code) from e
                except APIConnectionError as e:
                    raise LLMProviderError(None, "Stream interrupted") from e
                if not chunk.choices:
                    continue
                content = chunk.choices[0].delta.content
                if content:
                    yield content
        finally:
            await stream.close()
