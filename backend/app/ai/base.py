from abc import ABC, abstractmethod
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, field_validator

from app.ai.llm_client import LLMClient

InType = TypeVar("InType", bound=BaseModel)
OutType = TypeVar("OutType", bound=BaseModel)


class ToolRequest(BaseModel):
    """Tool inputs arrive trimmed."""

    @field_validator("*", mode="before")
    @classmethod
    def _strip_strings(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip()
        return value


class BaseTool(ABC, Generic[InType, OutType]):
    """A single prompt-in, text-out content tool."""

    def __init__(self, llm: LLMClient):
        self.llm = llm

    @abstractmethod
    async def run(self, request: InType) -> OutType:
        """Build the prompt for ``request``, call the model and shape the reply."""
        pass
