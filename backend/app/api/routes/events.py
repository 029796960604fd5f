import logging
import uuid
from typing import Any

from fastapi import APIRouter, HTTPException, Query, status
from pydantic import EmailStr
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from app import crud
from app.api.deps import AdminUser, SessionDep
from app.models import (
    Event,
    EventCreate,
    EventFiltersResponse,
    EventRegistration,
    EventRegistrationCreate,
    EventResponse,
    EventsResponse,
    EventType,
    EventUpdate,
    Message,
    Pagination,
    RegistrationCheckResponse,
    RegistrationResponse,
    RegistrationsResponse,
    RegistrationStatus,
    RegistrationStatusUpdate,
)

router = APIRouter(prefix="/events", tags=["events"])
logger = logging.getLogger(__name__)

SLUG_TAKEN = "Event with this slug already exists"


def _get_event_or_404(session: Session, id: uuid.UUID) -> Event:
    event = session.get(Event, id)
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")
    return event


def _get_registration_or_404(session: Session, id: uuid.UUID) -> EventRegistration:
    registration = session.get(EventRegistration, id)
    if not registration:
        raise HTTPException(status_code=404, detail="Registration not found")
    return registration


def _available_slug(
    session: Session, source: str, *, exclude_id: uuid.UUID | None = None
) -> str:
    slug = crud.slugify(source)
    if not slug:
        raise HTTPException(status_code=400, detail="Slug cannot be empty")
    existing = crud.get_event_by_slug(session=session, slug=slug)
    if existing and existing.id != exclude_id:
        raise HTTPException(status_code=400, detail=SLUG_TAKEN)
    return slug


# Public


@router.get("/", response_model=EventsResponse)
def read_events(
    session: SessionDep,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=50),
    event_type: EventType | None = None,
    category: str | None = None,
    featured: bool | None = None,
    upcoming: bool = False,
    past: bool = False,
    search: str | None = Query(default=None, max_length=200),
) -> Any:
    """
    Published events in date order.
    """
    events, total = crud.get_events(
        session=session,
        page=page,
        limit=limit,
        event_type=event_type,
        category=category,
        featured=featured,
        upcoming=upcoming,
        past=past,
        search=search,
    )
    return {
        "success": True,
        "data": events,
        "pagination": Pagination.build(page=page, limit=limit, total=total),
    }


@router.get("/slug/{slug}", response_model=EventResponse)
def read_event_by_slug(slug: str, session: SessionDep) -> Any:
    event = crud.get_event_by_slug(session=session, slug=slug, published_only=True)
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")
    return {"success": True, "data": event}


@router.get("/upcoming", response_model=EventsResponse)
def read_upcoming_events(
    session: SessionDep, limit: int = Query(default=5, ge=1, le=20)
) -> Any:
    return {"success": True, "data": crud.get_upcoming_events(session=session, limit=limit)}


@router.get("/featured", response_model=EventsResponse)
def read_featured_events(
    session: SessionDep, limit: int = Query(default=5, ge=1, le=20)
) -> Any:
    return {"success": True, "data": crud.get_featured_events(session=session, limit=limit)}


@router.get("/filters", response_model=EventFiltersResponse)
def read_event_filters(session: SessionDep) -> Any:
    event_types, categories = crud.get_event_filters(session=session)
    return {
        "success": True,
        "data": {"event_types": event_types, "categories": categories},
    }


@router.post(
    "/register/{event_id}",
    status_code=status.HTTP_201_CREATED,
    response_model=RegistrationResponse,
)
def register_for_event(
    *,
    event_id: uuid.UUID,
    session: SessionDep,
    registration_in: EventRegistrationCreate,
) -> Any:
    """
    Register for a published event while seats remain.
    """
    try:
        registration = crud.register_for_event(
            session=session, event_id=event_id, registration_in=registration_in
        )
    except crud.RegistrationError as e:
        logger.info("Registration for event %s rejected: %s", event_id, e.message)
        raise HTTPException(status_code=e.status_code, detail=e.message)
    logger.info("Registration %s created for event %s", registration.id, event_id)
    return {
        "success": True,
        "message": "Successfully registered for the event",
        "data": registration,
    }


@router.get("/register/check/{event_id}", response_model=RegistrationCheckResponse)
def check_registration(event_id: uuid.UUID, email: EmailStr, session: SessionDep) -> Any:
    registration = crud.get_registration(session=session, event_id=event_id, email=email)
    return {
        "success": True,
        "data": {
            "is_registered": registration is not None,
            "registration": registration,
        },
    }


# Admin


@router.get("/admin/all", response_model=EventsResponse)
def read_all_events(
    session: SessionDep,
    _admin: AdminUser,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    published: bool | None = None,
    event_type: EventType | None = None,
) -> Any:
    events, total = crud.get_admin_events(
        session=session,
        page=page,
        limit=limit,
        published=published,
        event_type=event_type,
    )
    return {
        "success": True,
        "data": events,
        "pagination": Pagination.build(page=page, limit=limit, total=total),
    }


@router.post("/admin", status_code=status.HTTP_201_CREATED, response_model=EventResponse)
def create_event(*, session: SessionDep, _admin: AdminUser, event_in: EventCreate) -> Any:
    slug = _available_slug(session, event_in.slug or event_in.title)
    try:
        event = crud.create_event(session=session, event_in=event_in, slug=slug)
    except IntegrityError:
        session.rollback()
        raise HTTPException(status_code=400, detail=SLUG_TAKEN)
    logger.info("Event %s created with slug %s", event.id, event.slug)
    return {"success": True, "message": "Event created successfully", "data": event}


@router.patch("/admin/registrations/{id}", response_model=RegistrationResponse)
def update_registration_status(
    *,
    id: uuid.UUID,
    session: SessionDep,
    _admin: AdminUser,
    body: RegistrationStatusUpdate,
) -> Any:
    registration = _get_registration_or_404(session, id)
    registration = crud.update_registration_status(
        session=session, db_registration=registration, status=body.status
    )
    return {
        "success": True,
        "message": "Registration status updated",
        "data": registration,
    }


@router.delete("/admin/registrations/{id}", response_model=Message)
def delete_registration(id: uuid.UUID, session: SessionDep, _admin: AdminUser) -> Message:
    registration = _get_registration_or_404(session, id)
    crud.delete_registration(session=session, db_registration=registration)
    return Message(message="Registration deleted successfully")


@router.get("/admin/{event_id}/registrations", response_model=RegistrationsResponse)
def read_event_registrations(
    event_id: uuid.UUID,
    session: SessionDep,
    _admin: AdminUser,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=50, ge=1, le=200),
    status: RegistrationStatus | None = None,
) -> Any:
    _get_event_or_404(session, event_id)
    registrations, total = crud.get_event_registrations(
        session=session, event_id=event_id, page=page, limit=limit, status=status
    )
    return {
        "success": True,
        "data": registrations,
        "pagination": Pagination.build(page=page, limit=limit, total=total),
    }


@router.get("/admin/{id}", response_model=EventResponse)
def read_event(id: uuid.UUID, session: SessionDep, _admin: AdminUser) -> Any:
    return {"success": True, "data": _get_event_or_404(session, id)}


@router.put("/admin/{id}", response_model=EventResponse)
def update_event(
    *, id: uuid.UUID, session: SessionDep, _admin: AdminUser, event_in: EventUpdate
) -> Any:
    event = _get_event_or_404(session, id)
    slug = None
    if event_in.slug:
        slug = _available_slug(session, event_in.slug, exclude_id=event.id)
    elif event_in.title and event_in.title != event.title:
        slug = _available_slug(session, event_in.title, exclude_id=event.id)
    try:
        event = crud.update_event(session=session, db_event=event, event_in=event_in, slug=slug)
    except IntegrityError:
        session.rollback()
        raise HTTPException(status_code=400, detail=SLUG_TAKEN)
    except crud.CapacityError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return {"success": True, "message": "Event updated successfully", "data": event}


@router.delete("/admin/{id}", response_model=Message)
def delete_event(id: uuid.UUID, session: SessionDep, _admin: AdminUser) -> Message:
    event = _get_event_or_404(session, id)
    crud.delete_event(session=session, db_event=event)
    logger.info("Event %s deleted with its registrations", id)
    return Message(message="Event deleted successfully")


@router.patch("/admin/{id}/toggle-publish", response_model=EventResponse)
def toggle_publish(id: uuid.UUID, session: SessionDep, _admin: AdminUser) -> Any:
    event = crud.toggle_event_published(
        session=session, db_event=_get_event_or_404(session, id)
    )
    state = "published" if event.published else "unpublished"
    return {"success": True, "message": f"Event {state} successfully", "data": event}


@router.patch("/admin/{id}/toggle-featured", response_model=EventResponse)
def toggle_featured(id: uuid.UUID, session: SessionDep, _admin: AdminUser) -> Any:
    event = crud.toggle_event_featured(
        session=session, db_event=_get_event_or_404(session, id)
    )
    state = "featured" if event.featured else "unfeatured"
    return {"success": True, "message": f"Event {state} successfully", "data": event}
