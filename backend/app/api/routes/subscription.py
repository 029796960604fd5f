import logging
import uuid
from typing import Any

from fastapi import APIRouter, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from app import crud
from app.api.deps import AdminUser, EmailQueueDep, SessionDep
from app.email_tasks import EmailJob, record_subscription_email_task
from app.models import (
    Message,
    NewsletterQueued,
    NewsletterRequest,
    Subscription,
    SubscriptionCreate,
    SubscriptionResponse,
    SubscriptionsResponse,
    SubscriptionStatsResponse,
    SubscriptionStatus,
    UnsubscribeRequest,
)
from app.utils import generate_newsletter_email, generate_subscription_welcome_email

router = APIRouter(prefix="/subscription", tags=["subscription"])
logger = logging.getLogger(__name__)


def _get_subscription_or_404(session: Session, id: uuid.UUID) -> Subscription:
    subscription = session.get(Subscription, id)
    if not subscription:
        raise HTTPException(status_code=404, detail="Subscription not found")
    return subscription


@router.post(
    "/", status_code=status.HTTP_201_CREATED, response_model=SubscriptionResponse
)
def subscribe(
    *,
    session: SessionDep,
    queue_email: EmailQueueDep,
    subscription_in: SubscriptionCreate,
) -> Any:
    """
    Subscribe an email, reactivating a previous subscription when one exists.
    """
    existing = crud.get_subscription_by_email(
        session=session, email=subscription_in.email
    )
    if existing and existing.status == SubscriptionStatus.ACTIVE:
        raise HTTPException(status_code=409, detail="Email is already subscribed")
    if existing:
        subscription = crud.reactivate_subscription(
            session=session, db_subscription=existing, subscription_in=subscription_in
        )
        message = "Subscription reactivated successfully"
    else:
        try:
            subscription = crud.create_subscription(
                session=session, subscription_in=subscription_in
            )
        except IntegrityError:
            session.rollback()
            raise HTTPException(status_code=409, detail="Email is already subscribed")
        message = "Successfully subscribed to newsletter"
    logger.info("Subscription %s active (source=%s)", subscription.id, subscription.source)

    job = EmailJob.single(
        f"welcome email for subscription {subscription.id}",
        email_to=subscription.email,
        data=generate_subscription_welcome_email(subscription),
        follow_up=record_subscription_email_task.si(str(subscription.id)),
    )
    queue_email(job)
    return {"success": True, "message": message, "subscription": subscription}


@router.get("/", response_model=SubscriptionsResponse)
def read_subscriptions(session: SessionDep, _admin: AdminUser) -> Any:
    subscriptions = crud.get_subscriptions(session=session)
    return {
        "success": True,
        "subscriptions": subscriptions,
        "count": len(subscriptions),
    }


@router.get("/stats", response_model=SubscriptionStatsResponse)
def read_subscription_stats(session: SessionDep, _admin: AdminUser) -> Any:
    stats = crud.get_subscription_stats(session=session)
    active_count = sum(
        count for s, count in stats if s == SubscriptionStatus.ACTIVE
    )
    return {
        "success": True,
        "stats": [{"status": s.value, "count": count} for s, count in stats],
        "active_count": active_count,
    }


@router.post(
    "/newsletter",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=NewsletterQueued,
)
def send_newsletter(
    *,
    session: SessionDep,
    queue_email: EmailQueueDep,
    _admin: AdminUser,
    body: NewsletterRequest,
) -> Any:
    """
    Queue one newsletter email per active subscriber.
    """
    subscribers = crud.get_active_subscribers(session=session, preference=body.preference)
    queued = 0
    for subscriber in subscribers:
        data = generate_newsletter_email(
            email_to=subscriber.email,
            subject=body.subject,
            html_content=body.html_content,
        )
        job = EmailJob.single(
            f"newsletter for subscription {subscriber.id}",
            email_to=subscriber.email,
            data=data,
            follow_up=record_subscription_email_task.si(str(subscriber.id)),
        )
        if queue_email(job):
            queued += 1
    logger.info("Newsletter %r queued for %d/%d subscriber(s)", body.subject, queued, len(subscribers))
    return {
        "success": True,
        "message": f"Newsletter queued for {queued} subscriber(s)",
        "queued": queued,
    }


@router.patch("/{id}/unsubscribe", response_model=SubscriptionResponse)
def unsubscribe(
    *,
    id: uuid.UUID,
    session: SessionDep,
    _admin: AdminUser,
    body: UnsubscribeRequest | None = None,
) -> Any:
    subscription = _get_subscription_or_404(session, id)
    subscription = crud.unsubscribe(
        session=session,
        db_subscription=subscription,
        reason=body.reason if body else None,
    )
    return {
        "success": True,
        "message": "Successfully unsubscribed",
        "subscription": subscription,
    }


@router.patch("/{id}/reactivate", response_model=SubscriptionResponse)
def reactivate(id: uuid.UUID, session: SessionDep, _admin: AdminUser) -> Any:
    subscription = _get_subscription_or_404(session, id)
    subscription = crud.reactivate_subscription(
        session=session, db_subscription=subscription
    )
    return {
        "success": True,
        "message": "Subscription reactivated successfully",
        "subscription": subscription,
    }


@router.delete("/{id}", response_model=Message)
def delete_subscription(id: uuid.UUID, session: SessionDep, _admin: AdminUser) -> Message:
    subscription = _get_subscription_or_404(session, id)
    session.delete(subscription)
    session.commit()
    return Message(message="Subscription deleted successfully")
