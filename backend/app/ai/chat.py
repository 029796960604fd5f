import json
import logging
from collections.abc import AsyncIterator
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from app.ai.llm_client import (
    ChatMessages,
    LLMClient,
    LLMProviderError,
    LLMStreamTimeout,
)
from app.ai.prompts import CHAT_SYSTEM_PROMPT

logger = logging.getLogger(__name__)


class ChatMessage(BaseModel):
    role: Literal["system", "user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    messages: list[ChatMessage] = Field(default_factory=list)
    message: str = Field(min_length=1, max_length=20000)

    @field_validator("message", mode="before")
    @classmethod
    def _strip_message(cls, value: object) -> object:
        return value.strip() if isinstance(value, str) else value


def build_chat_messages(request: ChatRequest) -> ChatMessages:
    """System preamble, then the prior turns the client sent, then the new message."""
    conversation = [{"role": "system", "content": CHAT_SYSTEM_PROMPT}]
    conversation.extend(
        {"role": m.role, "content": m.content}
        for m in request.messages
        if m.content.strip()
    )
    conversation.append({"role": "user", "content": request.message})
    return conversation


async def stream_chat_events(
    llm: LLMClient, messages: ChatMessages, *, timeout: float | None = None
) -> AsyncIterator[str]:
    """Yield SSE payloads: content chunks, then a done marker or one error."""
    parts: list[str] = []
    try:
        async for delta in llm.stream_chat(messages, timeout=timeout):
            parts.append(delta)
            yield json.dumps({"content": delta})
    except LLMStreamTimeout:
        logger.warning("Chat stream timed out after %d chunk(s)", len(parts))
        yield json.dumps({"error": "Stream timed out"})
        return
    except LLMProviderError as e:
        logger.warning("Chat stream failed: %s", e)
        if e.status_code is not None:
            yield json.dumps({"error": f"API error: {e.status_code}"})
        else:
            yield json.dumps({"error": "Stream interrupted"})
        return
    yield json.dumps({"done": True, "full_content": "".join(parts)})
