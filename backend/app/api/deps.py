from collections.abc import Callable, Generator
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jwt.exceptions import InvalidTokenError
from pydantic import ValidationError
from sqlmodel import Session

from app.ai.llm_client import LLMClient
from app.core.config import settings
from app.core.db import engine
from app.core.security import decode_access_token
from app.email_tasks import EmailJob, enqueue_email_job
from app.models import TokenPayload

bearer_scheme = HTTPBearer(auto_error=False)


def get_db() -> Generator[Session, None, None]:
    with Session(engine) as session:
        yield session


SessionDep = Annotated[Session, Depends(get_db)]
BearerDep = Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)]


def get_current_admin(credentials: BearerDep) -> str:
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        payload = decode_access_token(credentials.credentials)
        token_data = TokenPayload(**payload)
    except (InvalidTokenError, ValidationError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if token_data.sub != str(settings.ADMIN_EMAIL).lower():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return token_data.sub


AdminUser = Annotated[str, Depends(get_current_admin)]


def get_email_queue() -> Callable[[EmailJob], bool]:
    return enqueue_email_job


EmailQueueDep = Annotated[Callable[[EmailJob], bool], Depends(get_email_queue)]


def get_llm_client() -> LLMClient:
    return LLMClient(config=settings)


LLMClientDep = Annotated[LLMClient, Depends(get_llm_client)]
