import re
from datetime import date
from typing import Any, Generic, Literal, TypeVar

from pydantic import BaseModel, Field, field_validator

from app.ai import prompts
from app.ai.base import BaseTool, ToolRequest
from app.ai.parsers import ProjectIdea, ProjectIdeaParser, StartupName, StartupNameParser

ResultType = TypeVar("ResultType", bound=BaseModel)

UNSAFE_FILENAME_RE = re.compile(r'[\\/:*?"<>|]+')


def clamp_count(value: Any, *, default: int, low: int, high: int) -> int:
    try:
        count = int(value)
    except (TypeError, ValueError):
        count = 0
    if count == 0:
        count = default
    return min(max(count, low), high)


class ToolResponse(BaseModel, Generic[ResultType]):
    success: bool = True
    data: ResultType


# Email reply
class EmailReplyRequest(ToolRequest):
    original_email: str = Field(min_length=1, max_length=10000)
    tone: Literal["Professional", "Friendly", "Formal", "Apology", "Follow-up"]
    length: Literal["Short", "Medium", "Long"] = "Medium"


class EmailReplyResult(BaseModel):
    reply: str
    tone: str
    length: str


class EmailReplyTool(BaseTool[EmailReplyRequest, EmailReplyResult]):
    async def run(self, request: EmailReplyRequest) -> EmailReplyResult:
        prompt = prompts.EMAIL_REPLY_PROMPT.format(
            tone=request.tone,
            tone_lower=request.tone.lower(),
            original_email=request.original_email,
            length_hint=prompts.EMAIL_REPLY_LENGTHS[request.length],
        )
        reply = await self.llm.generate_text(prompt)
        return EmailReplyResult(
            reply=reply.strip(), tone=request.tone, length=request.length
        )


# LinkedIn post
class LinkedInPostRequest(ToolRequest):
    topic: str = Field(min_length=1, max_length=500)
    experience_level: Literal["Student", "Junior", "Mid", "Senior"]
    post_type: Literal["Educational", "Storytelling", "Achievement", "Hiring", "Opinion"]
    include_hashtags: bool = False


class LinkedInPostResult(BaseModel):
    post: str
    hashtags: list[str]
    metadata: dict[str, Any]


class LinkedInPostTool(BaseTool[LinkedInPostRequest, LinkedInPostResult]):
    HASHTAG_RE = re.compile(r"#[\w-]+")

    async def run(self, request: LinkedInPostRequest) -> LinkedInPostResult:
        hashtags_hint = (
            "Include 3-5 relevant hashtags at the end."
            if request.include_hashtags
            else "Do not include hashtags."
        )
        prompt = prompts.LINKEDIN_POST_PROMPT.format(
            topic=request.topic,
            experience_level=request.experience_level,
            post_type=request.post_type,
            hashtags_hint=hashtags_hint,
        )
        post = await self.llm.generate_text(prompt)
        hashtags = self.HASHTAG_RE.findall(post) if request.include_hashtags else []
        return LinkedInPostResult(
            post=post.strip(), hashtags=hashtags, metadata=request.model_dump()
        )


# Project ideas
class ProjectIdeasRequest(ToolRequest):
    technology: str = Field(min_length=1, max_length=200)
    difficulty_level: Literal["Beginner", "Intermediate", "Advanced"]
    project_type: Literal["Web App", "Mobile App", "AI Tool", "SaaS", "Automation"]
    number_of_ideas: int = 3

    @field_validator("number_of_ideas", mode="before")
    @classmethod
    def _clamp(cls, value: Any) -> int:
        return clamp_count(value, default=3, low=1, high=5)


class ProjectIdeasResult(BaseModel):
    projects: list[ProjectIdea]
    count: int
    metadata: dict[str, Any]


class ProjectIdeasTool(BaseTool[ProjectIdeasRequest, ProjectIdeasResult]):
    async def run(self, request: ProjectIdeasRequest) -> ProjectIdeasResult:
        prompt = prompts.PROJECT_IDEAS_PROMPT.format(
            count=request.number_of_ideas,
            technology=request.technology,
            difficulty_level=request.difficulty_level,
            project_type=request.project_type,
        )
        raw = await self.llm.generate_text(prompt)
        parser = ProjectIdeaParser(
            expected_count=request.number_of_ideas, technology=request.technology
        )
        projects = parser.parse(raw)
        return ProjectIdeasResult(
            projects=projects, count=len(projects), metadata=request.model_dump()
        )


# Business idea validation
class BusinessIdeaRequest(ToolRequest):
    business_idea: str = Field(min_length=1, max_length=5000)
    location: str = Field(min_length=1, max_length=200)
    target_audience: str = Field(min_length=1, max_length=500)
    budget: str = Field(min_length=1, max_length=200)
    industry_type: str = Field(min_length=1, max_length=200)
    revenue_model: str | None = Field(default=None, max_length=500)


class BusinessIdeaResult(BaseModel):
    validation: str
    metadata: dict[str, Any]


class BusinessIdeaValidatorTool(BaseTool[BusinessIdeaRequest, BusinessIdeaResult]):
    async def run(self, request: BusinessIdeaRequest) -> BusinessIdeaResult:
        prompt = prompts.BUSINESS_IDEA_PROMPT.format(
            business_idea=request.business_idea,
            location=request.location,
            target_audience=request.target_audience,
            budget=request.budget,
            industry_type=request.industry_type,
            revenue_model=request.revenue_model or "Not specified",
        )
        validation = await self.llm.generate_text(prompt)
        return BusinessIdeaResult(
            validation=validation.strip(), metadata=request.model_dump()
        )


# Startup names
class StartupNameRequest(ToolRequest):
    industry: str = Field(min_length=1, max_length=200)
    brand_personality: str = Field(min_length=1, max_length=200)
    target_audience: str = Field(min_length=1, max_length=500)
    name_preference: str = Field(default="Two-word", max_length=100)
    check_domain: bool = False
    number_of_names: int = 10

    @field_validator("name_preference")
    @classmethod
    def _default_preference(cls, value: str) -> str:
        return value or "Two-word"

    @field_validator("number_of_names", mode="before")
    @classmethod
    def _clamp(cls, value: Any) -> int:
        return clamp_count(value, default=10, low=1, high=30)


class StartupNameResult(BaseModel):
    names: list[StartupName]
    count: int
    metadata: dict[str, Any]


class StartupNameTool(BaseTool[StartupNameRequest, StartupNameResult]):
    async def run(self, request: StartupNameRequest) -> StartupNameResult:
        prompt = prompts.STARTUP_NAMES_PROMPT.format(
            count=request.number_of_names,
            industry=request.industry,
            brand_personality=request.brand_personality,
            brand_personality_lower=request.brand_personality.lower(),
            target_audience=request.target_audience,
            name_preference=request.name_preference,
        )
        raw = await self.llm.generate_text(prompt)
        names = StartupNameParser().parse(raw)
        return StartupNameResult(
            names=names, count=len(names), metadata=request.model_dump()
        )


# Business plan
class BusinessPlanRequest(ToolRequest):
    business_name: str = Field(min_length=1, max_length=200)
    industry: str = Field(min_length=1, max_length=200)
    location: str = Field(min_length=1, max_length=200)
    funding_required: str = Field(min_length=1, max_length=200)
    target_market: str = Field(min_length=1, max_length=500)
    revenue_model: str | None = Field(default=None, max_length=500)
    business_description: str = Field(min_length=1, max_length=5000)


class BusinessPlanResult(BaseModel):
    business_plan: str
    metadata: dict[str, Any]


class BusinessPlanTool(BaseTool[BusinessPlanRequest, BusinessPlanResult]):
    async def run(self, request: BusinessPlanRequest) -> BusinessPlanResult:
        prompt = prompts.BUSINESS_PLAN_PROMPT.format(
            business_name=request.business_name,
            industry=request.industry,
            location=request.location,
            funding_required=request.funding_required,
            target_market=request.target_market,
            revenue_model=request.revenue_model or "To be defined",
            business_description=request.business_description,
        )
        plan = await self.llm.generate_text(prompt)
        return BusinessPlanResult(business_plan=plan.strip(), metadata=request.model_dump())


# Business plan export (no model call)
class BusinessPlanExportRequest(ToolRequest):
    business_plan: str = Field(min_length=1)
    business_name: str | None = Field(default=None, max_length=200)


class BusinessPlanExport(BaseModel):
    content: str
    file_name: str


def export_business_plan(
    request: BusinessPlanExportRequest, *, today: date | None = None
) -> BusinessPlanExport:
    stem = UNSAFE_FILENAME_RE.sub("-", request.business_name or "") or "business-plan"
    day = (today or date.today()).isoformat()
    return BusinessPlanExport(content=request.business_plan, file_name=f"{stem}-{day}.txt")
