import logging
import re
import uuid
from collections.abc import Sequence
from typing import Any

from sqlalchemy import String, case, cast, delete, func, or_, update
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, col, select

from app.models import (
    Blog,
    BlogCreate,
    BlogUpdate,
    Contact,
    ContactCreate,
    ContactStatus,
    ContactUpdate,
    Event,
    EventCreate,
    EventRegistration,
    EventRegistrationCreate,
    EventType,
    EventUpdate,
    RegistrationStatus,
    Subscription,
    SubscriptionCreate,
    SubscriptionPreferences,
    SubscriptionStatus,
    get_datetime_utc,
)

logger = logging.getLogger(__name__)

SLUG_SEPARATOR_RE = re.compile(r"[^a-z0-9]+")
MAX_SEARCH_TERMS = 10


class RegistrationError(Exception):
    """Raised when a registration cannot be accepted."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message


class CapacityError(Exception):
    """Raised when max_attendees would drop below the seats already taken."""


def slugify(text: str) -> str:
    return SLUG_SEPARATOR_RE.sub("-", text.lower()).strip("-")


def _offset(page: int, limit: int) -> int:
    return (page - 1) * limit


def _count(session: Session, model: Any, conditions: Sequence[Any]) -> int:
    count_statement = select(func.count()).select_from(model).where(*conditions)
    return session.exec(count_statement).one()


# ---------------------------------------------------------------------------
# Contacts
# ---------------------------------------------------------------------------


def create_contact(*, session: Session, contact_in: ContactCreate) -> Contact:
    db_contact = Contact.model_validate(contact_in)
    session.add(db_contact)
    session.commit()
    session.refresh(db_contact)
    return db_contact


def get_contacts(*, session: Session) -> list[Contact]:
    statement = select(Contact).order_by(col(Contact.created_at).desc())
    return list(session.exec(statement).all())


def update_contact(
    *, session: Session, db_contact: Contact, contact_in: ContactUpdate
) -> Contact:
    contact_data = contact_in.model_dump(exclude_unset=True)
    for field in ("status", "priority"):
        if contact_data.get(field, ...) is None:
            contact_data.pop(field)
    now = get_datetime_utc()
    new_status = contact_data.get("status")
    # Stamps are only set on the transition into the status.
    if new_status is not None and new_status != db_contact.status:
        if new_status == ContactStatus.REVIEW:
            contact_data["responded_at"] = now
        elif new_status == ContactStatus.DONE:
            contact_data["completed_at"] = now
    contact_data["updated_at"] = now
    db_contact.sqlmodel_update(contact_data)
    session.add(db_contact)
    session.commit()
    session.refresh(db_contact)
    return db_contact


def mark_contact_email_sent(*, session: Session, contact_id: uuid.UUID) -> None:
    db_contact = session.get(Contact, contact_id)
    if not db_contact:
        logger.warning("Contact %s vanished before email status update", contact_id)
        return
    db_contact.email_sent = True
    db_contact.email_sent_at = get_datetime_utc()
    session.add(db_contact)
    session.commit()


def get_contact_stats(*, session: Session) -> list[tuple[ContactStatus, int]]:
    statement = (
        select(Contact.status, func.count())
        .group_by(Contact.status)
        .order_by(Contact.status)
    )
    return [(status, count) for status, count in session.exec(statement).all()]


# ---------------------------------------------------------------------------
# Subscriptions
# ---------------------------------------------------------------------------


def get_subscription_by_email(*, session: Session, email: str) -> Subscription | None:
    statement = select(Subscription).where(Subscription.email == email.strip().lower())
    return session.exec(statement).first()


def create_subscription(
    *, session: Session, subscription_in: SubscriptionCreate
) -> Subscription:
    data = subscription_in.model_dump(exclude={"preferences"})
    preferences = subscription_in.preferences or SubscriptionPreferences()
    db_subscription = Subscription.model_validate(
        data, update={"preferences": preferences.model_dump()}
    )
    session.add(db_subscription)
    session.commit()
    session.refresh(db_subscription)
    return db_subscription


def reactivate_subscription(
    *,
    session: Session,
    db_subscription: Subscription,
    subscription_in: SubscriptionCreate | None = None,
) -> Subscription:
    """Bring an existing row back to active, keeping its id."""
    update_data: dict[str, Any] = {
        "status": SubscriptionStatus.ACTIVE,
        "unsubscribed_at": None,
        "unsubscribed_reason": None,
        "updated_at": get_datetime_utc(),
    }
    if subscription_in is not None:
        if subscription_in.first_name:
            update_data["first_name"] = subscription_in.first_name
        if subscription_in.last_name:
            update_data["last_name"] = subscription_in.last_name
        if subscription_in.preferences is not None:
            update_data["preferences"] = subscription_in.preferences.model_dump()
    db_subscription.sqlmodel_update(update_data)
    session.add(db_subscription)
    session.commit()
    session.refresh(db_subscription)
    return db_subscription


def unsubscribe(
    *, session: Session, db_subscription: Subscription, reason: str | None = None
) -> Subscription:
    now = get_datetime_utc()
    db_subscription.sqlmodel_update(
        {
            "status": SubscriptionStatus.UNSUBSCRIBED,
            "unsubscribed_at": now,
            "unsubscribed_reason": reason,
            "updated_at": now,
        }
    )
    session.add(db_subscription)
    session.commit()
    session.refresh(db_subscription)
    return db_subscription


def get_subscriptions(*, session: Session) -> list[Subscription]:
    statement = select(Subscription).order_by(col(Subscription.created_at).desc())
    return list(session.exec(statement).all())


def get_subscription_stats(
    *, session: Session
) -> list[tuple[SubscriptionStatus, int]]:
    statement = (
        select(Subscription.status, func.count())
        .group_by(Subscription.status)
        .order_by(Subscription.status)
    )
    return [(status, count) for status, count in session.exec(statement).all()]


def get_active_subscribers(
    *, session: Session, preference: str | None = None
) -> list[Subscription]:
    statement = select(Subscription).where(
        Subscription.status == SubscriptionStatus.ACTIVE
    )
    subscribers = session.exec(statement).all()
    if preference is None:
        return list(subscribers)
    return [s for s in subscribers if (s.preferences or {}).get(preference, True)]


def record_email_sent(*, session: Session, subscription_id: uuid.UUID) -> None:
    statement = (
        update(Subscription)
        .where(col(Subscription.id) == subscription_id)
        .values(
            email_count=col(Subscription.email_count) + 1,
            last_email_sent=get_datetime_utc(),
        )
    )
    session.connection().execute(statement)
    session.commit()


# ---------------------------------------------------------------------------
# Blogs
# ---------------------------------------------------------------------------


def get_blog_by_slug(
    *, session: Session, slug: str, published_only: bool = False
) -> Blog | None:
    statement = select(Blog).where(Blog.slug == slug)
    if published_only:
        statement = statement.where(col(Blog.published).is_(True))
    return session.exec(statement).first()


def _blog_search_score(terms: list[str]) -> Any:
    """Weighted term-match relevance: title > tags > excerpt > content."""
    tags_text = cast(Blog.tags, String)
    score: Any = None
    for term in terms:
        term_score = (
            case((col(Blog.title).icontains(term, autoescape=True), 10), else_=0)
            + case((tags_text.icontains(term, autoescape=True), 5), else_=0)
            + case((col(Blog.excerpt).icontains(term, autoescape=True), 3), else_=0)
            + case((col(Blog.content).icontains(term, autoescape=True), 1), else_=0)
        )
        score = term_score if score is None else score + term_score
    return score


def search_terms(search: str | None) -> list[str]:
    if not search:
        return []
    return search.split()[:MAX_SEARCH_TERMS]


def get_blogs(
    *,
    session: Session,
    page: int,
    limit: int,
    category: str | None = None,
    featured: bool | None = None,
    search: str | None = None,
    published_only: bool = True,
) -> tuple[list[Blog], int]:
    conditions: list[Any] = []
    if published_only:
        conditions.append(col(Blog.published).is_(True))
    if category:
        conditions.append(Blog.category == category)
    if featured is not None:
        conditions.append(col(Blog.featured).is_(featured))

    terms = search_terms(search)
    statement = select(Blog)
    if terms:
        score = _blog_search_score(terms)
        conditions.append(score > 0)
        statement = statement.order_by(
            score.desc(), col(Blog.published_at).desc()
        )
    elif published_only:
        statement = statement.order_by(col(Blog.published_at).desc())
    else:
        statement = statement.order_by(col(Blog.created_at).desc())

    total = _count(session, Blog, conditions)
    statement = statement.where(*conditions).offset(_offset(page, limit)).limit(limit)
    return list(session.exec(statement).all()), total


def get_featured_blogs(*, session: Session, limit: int = 3) -> list[Blog]:
    statement = (
        select(Blog)
        .where(col(Blog.published).is_(True), col(Blog.featured).is_(True))
        .order_by(col(Blog.published_at).desc())
        .limit(limit)
    )
    return list(session.exec(statement).all())


def get_latest_blog(*, session: Session) -> Blog | None:
    statement = (
        select(Blog)
        .where(col(Blog.published).is_(True))
        .order_by(col(Blog.published_at).desc())
    )
    return session.exec(statement).first()


def get_blog_stats(*, session: Session) -> list[tuple[bool, int]]:
    statement = (
        select(Blog.published, func.count())
        .group_by(Blog.published)
        .order_by(Blog.published)
    )
    return [(bool(published), count) for published, count in session.exec(statement)]


def get_blog_categories(*, session: Session) -> list[tuple[str, int]]:
    count = func.count().label("count")
    statement = (
        select(Blog.category, count)
        .where(col(Blog.published).is_(True))
        .group_by(Blog.category)
        .order_by(count.desc(), Blog.category)
    )
    return [(category, total) for category, total in session.exec(statement).all()]


def create_blog(
    *, session: Session, blog_in: BlogCreate, slug: str, default_author: str
) -> Blog:
    now = get_datetime_utc()
    blog_data = blog_in.model_dump()
    blog_data.update(
        slug=slug,
        author=blog_in.author or default_author,
        seo_title=blog_in.seo_title or blog_in.title[:60],
        seo_description=blog_in.seo_description or blog_in.excerpt[:160],
        published_at=now if blog_in.published else None,
    )
    db_blog = Blog.model_validate(blog_data)
    session.add(db_blog)
    session.commit()
    session.refresh(db_blog)
    return db_blog


def update_blog(
    *, session: Session, db_blog: Blog, blog_in: BlogUpdate, slug: str | None = None
) -> Blog:
    blog_data = blog_in.model_dump(exclude_unset=True, exclude_none=True)
    blog_data.pop("slug", None)
    if slug is not None:
        blog_data["slug"] = slug
    now = get_datetime_utc()
    blog_data["updated_at"] = now
    db_blog.sqlmodel_update(blog_data)
    if not db_blog.seo_title:
        db_blog.seo_title = db_blog.title[:60]
    if not db_blog.seo_description:
        db_blog.seo_description = db_blog.excerpt[:160]
    if db_blog.published and db_blog.published_at is None:
        db_blog.published_at = now
    session.add(db_blog)
    session.commit()
    session.refresh(db_blog)
    return db_blog


def increment_blog_views(*, session: Session, db_blog: Blog) -> Blog:
    statement = (
        update(Blog)
        .where(col(Blog.id) == db_blog.id)
        .values(views=col(Blog.views) + 1)
    )
    session.connection().execute(statement)
    session.commit()
    session.refresh(db_blog)
    return db_blog


def like_blog(*, session: Session, db_blog: Blog) -> Blog:
    statement = (
        update(Blog)
        .where(col(Blog.id) == db_blog.id)
        .values(likes=col(Blog.likes) + 1)
    )
    session.connection().execute(statement)
    session.commit()
    session.refresh(db_blog)
    return db_blog


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


def get_event_by_slug(
    *, session: Session, slug: str, published_only: bool = False
) -> Event | None:
    statement = select(Event).where(Event.slug == slug)
    if published_only:
        statement = statement.where(col(Event.published).is_(True))
    return session.exec(statement).first()


def get_events(
    *,
    session: Session,
    page: int,
    limit: int,
    event_type: EventType | None = None,
    category: str | None = None,
    featured: bool | None = None,
    upcoming: bool = False,
    past: bool = False,
    search: str | None = None,
) -> tuple[list[Event], int]:
    conditions: list[Any] = [col(Event.published).is_(True)]
    if event_type is not None:
        conditions.append(Event.event_type == event_type)
    if category:
        conditions.append(Event.category == category)
    if featured is not None:
        conditions.append(col(Event.featured).is_(featured))
    now = get_datetime_utc()
    if upcoming:
        conditions.append(col(Event.date) >= now)
    elif past:
        conditions.append(col(Event.date) < now)
    tags_text = cast(Event.tags, String)
    for term in search_terms(search):
        conditions.append(
            or_(
                col(Event.title).icontains(term, autoescape=True),
                col(Event.description).icontains(term, autoescape=True),
                tags_text.icontains(term, autoescape=True),
            )
        )

    total = _count(session, Event, conditions)
    statement = (
        select(Event)
        .where(*conditions)
        .order_by(col(Event.date).asc())
        .offset(_offset(page, limit))
        .limit(limit)
    )
    return list(session.exec(statement).all()), total


def get_upcoming_events(*, session: Session, limit: int) -> list[Event]:
    statement = (
        select(Event)
        .where(col(Event.published).is_(True), col(Event.date) >= get_datetime_utc())
        .order_by(col(Event.date).asc())
        .limit(limit)
    )
    return list(session.exec(statement).all())


def get_featured_events(*, session: Session, limit: int) -> list[Event]:
    statement = (
        select(Event)
        .where(col(Event.published).is_(True), col(Event.featured).is_(True))
        .order_by(col(Event.date).asc())
        .limit(limit)
    )
    return list(session.exec(statement).all())


def get_event_filters(*, session: Session) -> tuple[list[EventType], list[str]]:
    published = col(Event.published).is_(True)
    event_types = session.exec(
        select(Event.event_type).where(published).distinct()
    ).all()
    categories = session.exec(select(Event.category).where(published).distinct()).all()
    return sorted(event_types, key=lambda t: t.value), sorted(categories)


def get_admin_events(
    *,
    session: Session,
    page: int,
    limit: int,
    published: bool | None = None,
    event_type: EventType | None = None,
) -> tuple[list[Event], int]:
    conditions: list[Any] = []
    if published is not None:
        conditions.append(col(Event.published).is_(published))
    if event_type is not None:
        conditions.append(Event.event_type == event_type)
    total = _count(session, Event, conditions)
    statement = (
        select(Event)
        .where(*conditions)
        .order_by(col(Event.date).desc())
        .offset(_offset(page, limit))
        .limit(limit)
    )
    return list(session.exec(statement).all()), total


def create_event(*, session: Session, event_in: EventCreate, slug: str) -> Event:
    now = get_datetime_utc()
    event_data = event_in.model_dump()
    event_data.update(
        slug=slug,
        host=event_data.get("host") or {},
        is_free=event_in.price == 0,
        published_at=now if event_in.published else None,
    )
    db_event = Event.model_validate(event_data)
    session.add(db_event)
    session.commit()
    session.refresh(db_event)
    return db_event


def update_event(
    *, session: Session, db_event: Event, event_in: EventUpdate, slug: str | None = None
) -> Event:
    event_data = event_in.model_dump(exclude_unset=True, exclude_none=True)
    event_data.pop("slug", None)
    if slug is not None:
        event_data["slug"] = slug
    max_attendees = event_data.get("max_attendees")
    if max_attendees:
        # Checked in the database so a concurrent registration cannot slip past.
        shrink = (
            update(Event)
            .where(
                col(Event.id) == db_event.id,
                col(Event.current_attendees) <= max_attendees,
            )
            .values(max_attendees=max_attendees)
        )
        if session.connection().execute(shrink).rowcount != 1:
            session.rollback()
            raise CapacityError("Max attendees cannot be lower than current attendees")
    now = get_datetime_utc()
    event_data["updated_at"] = now
    db_event.sqlmodel_update(event_data)
    db_event.is_free = db_event.price == 0
    if db_event.published and db_event.published_at is None:
        db_event.published_at = now
    session.add(db_event)
    session.commit()
    session.refresh(db_event)
    return db_event


def toggle_event_published(*, session: Session, db_event: Event) -> Event:
    now = get_datetime_utc()
    db_event.published = not db_event.published
    if db_event.published and db_event.published_at is None:
        db_event.published_at = now
    db_event.updated_at = now
    session.add(db_event)
    session.commit()
    session.refresh(db_event)
    return db_event


def toggle_event_featured(*, session: Session, db_event: Event) -> Event:
    db_event.featured = not db_event.featured
    db_event.updated_at = get_datetime_utc()
    session.add(db_event)
    session.commit()
    session.refresh(db_event)
    return db_event


def delete_event(*, session: Session, db_event: Event) -> None:
    session.connection().execute(
        delete(EventRegistration).where(col(EventRegistration.event_id) == db_event.id)
    )
    session.delete(db_event)
    session.commit()


# ---------------------------------------------------------------------------
# Event registrations
# ---------------------------------------------------------------------------


def get_registration(
    *, session: Session, event_id: uuid.UUID, email: str
) -> EventRegistration | None:
    statement = select(EventRegistration).where(
        EventRegistration.event_id == event_id,
        EventRegistration.email == email.strip().lower(),
    )
    return session.exec(statement).first()


def register_for_event(
    *,
    session: Session,
    event_id: uuid.UUID,
    registration_in: EventRegistrationCreate,
) -> EventRegistration:
    db_event = session.get(Event, event_id)
    if not db_event:
        raise RegistrationError(404, "Event not found")
    if not db_event.published:
        raise RegistrationError(400, "Event is not available for registration")
    if get_registration(session=session, event_id=event_id, email=registration_in.email):
        raise RegistrationError(400, "You are already registered for this event")

    # Capacity is claimed by a single conditional increment so concurrent
    # registrations cannot push current_attendees past max_attendees.
    claim = (
        update(Event)
        .where(
            col(Event.id) == event_id,
            col(Event.published).is_(True),
            or_(
                col(Event.max_attendees) == 0,
                col(Event.current_attendees) < col(Event.max_attendees),
            ),
        )
        .values(current_attendees=col(Event.current_attendees) + 1)
    )
    result = session.connection().execute(claim)
    if result.rowcount != 1:
        session.rollback()
        raise RegistrationError(400, "Event is full")

    db_registration = EventRegistration.model_validate(
        registration_in,
        update={"event_id": event_id, "status": RegistrationStatus.CONFIRMED},
    )
    session.add(db_registration)
    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        raise RegistrationError(400, "You are already registered for this event")
    session.refresh(db_registration)
    return db_registration


def get_event_registrations(
    *,
    session: Session,
    event_id: uuid.UUID,
    page: int,
    limit: int,
    status: RegistrationStatus | None = None,
) -> tuple[list[EventRegistration], int]:
    conditions: list[Any] = [EventRegistration.event_id == event_id]
    if status is not None:
        conditions.append(EventRegistration.status == status)
    total = _count(session, EventRegistration, conditions)
    statement = (
        select(EventRegistration)
        .where(*conditions)
        .order_by(col(EventRegistration.registered_at).desc())
        .offset(_offset(page, limit))
        .limit(limit)
    )
    return list(session.exec(statement).all()), total


def update_registration_status(
    *,
    session: Session,
    db_registration: EventRegistration,
    status: RegistrationStatus,
) -> EventRegistration:
    db_registration.status = status
    session.add(db_registration)
    session.commit()
    session.refresh(db_registration)
    return db_registration


def delete_registration(
    *, session: Session, db_registration: EventRegistration
) -> None:
    release = (
        update(Event)
        .where(
            col(Event.id) == db_registration.event_id,
            col(Event.current_attendees) > 0,
        )
        .values(current_attendees=col(Event.current_attendees) - 1)
    )
    session.connection().execute(release)
    session.delete(db_registration)
    session.commit()
