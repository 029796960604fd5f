import logging
import uuid
from typing import Any

from fastapi import APIRouter, HTTPException, status
from sqlmodel import Session

from app import crud
from app.api.deps import AdminUser, EmailQueueDep, SessionDep
from app.core.config import settings
from app.email_tasks import EmailJob, OutgoingEmail, mark_contact_email_sent_task
from app.models import (
    Contact,
    ContactCreate,
    ContactResponse,
    ContactsResponse,
    ContactStatsResponse,
    ContactUpdate,
    Message,
)
from app.utils import (
    generate_contact_confirmation_email,
    generate_contact_notification_email,
)

router = APIRouter(prefix="/contact", tags=["contact"])
logger = logging.getLogger(__name__)


def build_contact_email_job(contact: Contact) -> EmailJob:
    """Admin notification plus submitter confirmation; marks the contact on success."""
    messages = []
    notify_to = settings.ADMIN_NOTIFY_EMAIL or settings.SMTP_USER
    if notify_to:
        messages.append(
            OutgoingEmail(
                email_to=str(notify_to),
                data=generate_contact_notification_email(contact),
            )
        )
    else:
        logger.warning("No ADMIN_NOTIFY_EMAIL configured, skipping contact notification")
    messages.append(
        OutgoingEmail(
            email_to=contact.email, data=generate_contact_confirmation_email(contact)
        )
    )
    return EmailJob(
        label=f"contact {contact.id} emails",
        messages=messages,
        follow_up=mark_contact_email_sent_task.si(str(contact.id)),
    )


def _get_contact_or_404(session: Session, id: uuid.UUID) -> Contact:
    contact = session.get(Contact, id)
    if not contact:
        raise HTTPException(status_code=404, detail="Contact not found")
    return contact


@router.post("/", status_code=status.HTTP_201_CREATED, response_model=ContactResponse)
def create_contact(
    *, session: SessionDep, queue_email: EmailQueueDep, contact_in: ContactCreate
) -> Any:
    """
    Store a contact form submission and queue the emails.
    """
    contact = crud.create_contact(session=session, contact_in=contact_in)
    logger.info("Contact %s received", contact.id)
    queue_email(build_contact_email_job(contact))
    return {
        "success": True,
        "message": "Thank you for your message! You will hear back soon.",
        "contact": contact,
    }


@router.get("/", response_model=ContactsResponse)
def read_contacts(session: SessionDep, _admin: AdminUser) -> Any:
    contacts = crud.get_contacts(session=session)
    return {"success": True, "contacts": contacts, "count": len(contacts)}


@router.get("/stats", response_model=ContactStatsResponse)
def read_contact_stats(session: SessionDep, _admin: AdminUser) -> Any:
    stats = crud.get_contact_stats(session=session)
    return {
        "success": True,
        "stats": [{"status": s.value, "count": count} for s, count in stats],
    }


@router.get("/{id}", response_model=ContactResponse)
def read_contact(id: uuid.UUID, session: SessionDep, _admin: AdminUser) -> Any:
    contact = _get_contact_or_404(session, id)
    return {"success": True, "contact": contact}


@router.patch("/{id}", response_model=ContactResponse)
def update_contact(
    *, id: uuid.UUID, session: SessionDep, _admin: AdminUser, contact_in: ContactUpdate
) -> Any:
    """
    Update status, priority or admin notes.
    """
    contact = _get_contact_or_404(session, id)
    contact = crud.update_contact(
        session=session, db_contact=contact, contact_in=contact_in
    )
    return {"success": True, "message": "Contact updated successfully", "contact": contact}


@router.delete("/{id}", response_model=Message)
def delete_contact(id: uuid.UUID, session: SessionDep, _admin: AdminUser) -> Message:
    contact = _get_contact_or_404(session, id)
    session.delete(contact)
    session.commit()
    return Message(message="Contact deleted successfully")
