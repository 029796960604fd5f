import logging
from typing import Any, NoReturn

from fastapi import APIRouter, HTTPException
from sse_starlette.sse import EventSourceResponse

from app.ai.base import BaseTool
from app.ai.chat import ChatRequest, build_chat_messages, stream_chat_events
from app.ai.llm_client import LLMConfigurationError, LLMError, LLMProviderError
from app.ai.tools import (
    BusinessIdeaRequest,
    BusinessIdeaResult,
    BusinessIdeaValidatorTool,
    BusinessPlanExport,
    BusinessPlanExportRequest,
    BusinessPlanRequest,
    BusinessPlanResult,
    BusinessPlanTool,
    EmailReplyRequest,
    EmailReplyResult,
    EmailReplyTool,
    LinkedInPostRequest,
    LinkedInPostResult,
    LinkedInPostTool,
    ProjectIdeasRequest,
    ProjectIdeasResult,
    ProjectIdeasTool,
    StartupNameRequest,
    StartupNameResult,
    StartupNameTool,
    ToolResponse,
    export_business_plan,
)
from app.api.deps import LLMClientDep
from app.core.config import settings

router = APIRouter(prefix="/ai", tags=["ai"])
logger = logging.getLogger(__name__)


def _raise_for_llm_error(exc: LLMError) -> NoReturn:
    if isinstance(exc, LLMConfigurationError):
        logger.error("AI request rejected: LLM_API_KEY is not set")
        raise HTTPException(status_code=500, detail="AI API key not configured") from exc
    if isinstance(exc, LLMProviderError):
        reason = exc.status_code if exc.status_code is not None else "unavailable"
        raise HTTPException(status_code=502, detail=f"AI provider error: {reason}") from exc
    raise HTTPException(status_code=502, detail="AI provider error") from exc


async def _run_tool(tool: BaseTool, request: Any) -> dict[str, Any]:
    try:
        result = await tool.run(request)
    except LLMError as e:
        _raise_for_llm_error(e)
    return {"success": True, "data": result}


@router.post("/email-reply", response_model=ToolResponse[EmailReplyResult])
async def generate_email_reply(body: EmailReplyRequest, llm: LLMClientDep) -> Any:
    return await _run_tool(EmailReplyTool(llm), body)


@router.post("/linkedin-post", response_model=ToolResponse[LinkedInPostResult])
async def generate_linkedin_post(body: LinkedInPostRequest, llm: LLMClientDep) -> Any:
    return await _run_tool(LinkedInPostTool(llm), body)


@router.post("/project-ideas", response_model=ToolResponse[ProjectIdeasResult])
async def generate_project_ideas(body: ProjectIdeasRequest, llm: LLMClientDep) -> Any:
    return await _run_tool(ProjectIdeasTool(llm), body)


@router.post(
    "/business-idea-validator", response_model=ToolResponse[BusinessIdeaResult]
)
async def validate_business_idea(body: BusinessIdeaRequest, llm: LLMClientDep) -> Any:
    return await _run_tool(BusinessIdeaValidatorTool(llm), body)


@router.post("/startup-name-generator", response_model=ToolResponse[StartupNameResult])
async def generate_startup_names(body: StartupNameRequest, llm: LLMClientDep) -> Any:
    return await _run_tool(StartupNameTool(llm), body)


@router.post(
    "/business-plan-generator", response_model=ToolResponse[BusinessPlanResult]
)
async def generate_business_plan(body: BusinessPlanRequest, llm: LLMClientDep) -> Any:
    return await _run_tool(BusinessPlanTool(llm), body)


@router.post("/business-plan-pdf", response_model=ToolResponse[BusinessPlanExport])
def export_business_plan_file(body: BusinessPlanExportRequest) -> Any:
    """
    Package a generated plan as a downloadable text file. No model call.
    """
    return {"success": True, "data": export_business_plan(body)}


@router.post("/chat")
async def chat(body: ChatRequest, llm: LLMClientDep) -> EventSourceResponse:
    """
    Stream a chat completion as server-sent events.

    Each event carries JSON: ``{"content": ...}`` chunks, then
    ``{"done": true, "full_content": ...}``, or a single ``{"error": ...}``.
    """
    try:
        llm.ensure_configured()
    except LLMConfigurationError as e:
        _raise_for_llm_error(e)
    messages = build_chat_messages(body)
    return EventSourceResponse(
        stream_chat_events(
            llm, messages, timeout=settings.CHAT_STREAM_TIMEOUT_SECONDS
        )
    )
