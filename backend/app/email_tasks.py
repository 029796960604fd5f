"""Background email delivery on Celery.

Routes build an :class:`EmailJob` and hand it to :func:`enqueue_email_job`.
Each message becomes one ``send_email_task`` and the job's follow-up
(``email_sent`` / ``email_count`` bookkeeping) is chained after the last one,
so it only runs once every message went out.

Run a worker with::

    celery -A app.email_tasks:celery_app worker --loglevel=INFO
"""

import asyncio
import uuid
from dataclasses import dataclass

import aiosmtplib
from celery import Celery, chain
from celery.canvas import Signature
from celery.utils.log import get_task_logger
from kombu.exceptions import OperationalError
from sqlmodel import Session

from app import crud
from app.core.config import settings
from app.core.db import engine
from app.utils import EmailData, send_email

logger = get_task_logger(__name__)

celery_app = Celery("portfolio")
celery_app.conf.update(
    {
        "broker_url": settings.CELERY_BROKER_URL,
        "task_serializer": "json",
        "accept_content": ["json"],
        "timezone": "UTC",
        "enable_utc": True,
        "task_acks_late": True,
        "task_reject_on_worker_lost": True,
        "task_ignore_result": True,
        "worker_prefetch_multiplier": 1,
        "worker_hijack_root_logger": False,
        "task_always_eager": settings.CELERY_TASK_ALWAYS_EAGER,
    }
)


@dataclass
class OutgoingEmail:
    email_to: str
    data: EmailData


@dataclass
class EmailJob:
    label: str
    messages: list[OutgoingEmail]
    # Chained after the last message; skipped if any message fails for good.
    follow_up: Signature | None = None

    @classmethod
    def single(
        cls,
        label: str,
        *,
        email_to: str,
        data: EmailData,
        follow_up: Signature | None = None,
    ) -> "EmailJob":
        return cls(
            label=label,
            messages=[OutgoingEmail(email_to=email_to, data=data)],
            follow_up=follow_up,
        )

    def signatures(self) -> list[Signature]:
        steps = [
            send_email_task.si(m.email_to, m.data.subject, m.data.html_content)
            for m in self.messages
        ]
        if self.follow_up is not None:
            steps.append(self.follow_up)
        return steps


def retry_countdown(retries: int) -> float:
    delay = settings.EMAIL_RETRY_BACKOFF_SECONDS * 2**retries
    return min(settings.EMAIL_RETRY_MAX_DELAY_SECONDS, delay)


@celery_app.task(bind=True, name="email.send")
def send_email_task(self, email_to: str, subject: str, html_content: str) -> None:
    try:
        asyncio.run(
            send_email(
                email_to=email_to,
                subject=subject,
                html_content=html_content,
                config=settings,
            )
        )
    except (aiosmtplib.SMTPException, OSError) as exc:
        countdown = retry_countdown(self.request.retries)
        logger.warning(
            "Sending %r to %s failed (attempt %d): %s. Retrying in %.0fs",
            subject,
            email_to,
            self.request.retries + 1,
            exc,
            countdown,
        )
        raise self.retry(
            exc=exc,
            countdown=countdown,
            max_retries=max(0, settings.EMAIL_MAX_ATTEMPTS - 1),
        )


@celery_app.task(name="email.mark_contact_sent")
def mark_contact_email_sent_task(contact_id: str) -> None:
    with Session(engine) as session:
        crud.mark_contact_email_sent(session=session, contact_id=uuid.UUID(contact_id))


@celery_app.task(name="email.record_subscription_sent")
def record_subscription_email_task(subscription_id: str) -> None:
    with Session(engine) as session:
        crud.record_email_sent(
            session=session, subscription_id=uuid.UUID(subscription_id)
        )


def enqueue_email_job(job: EmailJob) -> bool:
    """Hand a job to the broker. False when email is off or the broker is down."""
    if not settings.emails_enabled:
        logger.info("Email disabled, skipping %s", job.label)
        return False
    try:
        chain(*job.signatures()).apply_async()
    except OperationalError as exc:
        logger.error("Could not queue %s: %s", job.label, exc)
        return False
    logger.debug("Queued %s (%d message(s))", job.label, len(job.messages))
    return True
