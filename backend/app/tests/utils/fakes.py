from collections.abc import AsyncIterator
from typing import Any

from app.ai.llm_client import LLMConfigurationError, LLMError
from app.email_tasks import EmailJob


class RecordingOutbox:
    """Stands in for enqueue_email_job; keeps queued jobs for inspection."""

    def __init__(self, accept: bool = True) -> None:
        self.accept = accept
        self.jobs: list[EmailJob] = []

    def __call__(self, job: EmailJob) -> bool:
        self.jobs.append(job)
        return self.accept


class FakeLLM:
    def __init__(
        self,
        text: str = "generated text",
        *,
        configured: bool = True,
        error: LLMError | None = None,
        chunks: list[str] | None = None,
        stream_error: LLMError | None = None,
    ) -> None:
        self.text = text
        self.configured = configured
        self.error = error
        self.chunks = chunks or []
        self.stream_error = stream_error
        self.prompts: list[str] = []
        self.streamed_messages: list[list[dict[str, str]]] = []

    def ensure_configured(self) -> None:
        if not self.configured:
            raise LLMConfigurationError("AI API key not configured")

    async def generate_text(self, prompt: str, **kwargs: Any) -> str:
        self.ensure_configured()
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.text

    async def stream_chat(
        self, messages: list[dict[str, str]], **kwargs: Any
    ) -> AsyncIterator[str]:
        self.ensure_configured()
        self.streamed_messages.append(messages)
        for chunk in self.chunks:
            yield chunk
        if self.stream_error is not None:
            raise self.stream_error
