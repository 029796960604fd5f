from typing import Any

from fastapi import APIRouter, HTTPException, status
from pydantic import EmailStr

from app.api.deps import AdminUser, EmailQueueDep
from app.core.config import settings
from app.email_tasks import EmailJob
from app.models import Message, get_datetime_utc
from app.utils import generate_test_email

router = APIRouter(prefix="/utils", tags=["utils"])


@router.get("/health-check/")
def health_check() -> Any:
    return {
        "success": True,
        "status": "OK",
        "environment": settings.ENVIRONMENT,
        "timestamp": get_datetime_utc().isoformat(),
    }


@router.post("/test-email/", status_code=status.HTTP_202_ACCEPTED, response_model=Message)
def test_email(
    email_to: EmailStr, queue_email: EmailQueueDep, _admin: AdminUser
) -> Message:
    """
    Queue a test email.
    """
    email_data = generate_test_email(email_to=email_to)
    job = EmailJob.single("test email", email_to=email_to, data=email_data)
    if not queue_email(job):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Email delivery is not available",
        )
    return Message(message="Test email queued")
