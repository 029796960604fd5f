import math
import re
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal

from pydantic import EmailStr, computed_field, field_validator
from sqlalchemy import JSON, DateTime, Text, UniqueConstraint
from sqlmodel import Field, SQLModel

HTTP_URL_RE = re.compile(r"^https?://.+", re.IGNORECASE)


def get_datetime_utc() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    """SQLite returns naive datetimes; every stored timestamp is UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _check_http_url(value: str | None, *, required: bool, label: str) -> str | None:
    if not value:
        if required:
            raise ValueError(f"{label} is required")
        return value
    if not HTTP_URL_RE.match(value):
        raise ValueError(f"{label} must be a valid URL")
    return value


def _normalize_tags(tags: list[str] | None) -> list[str] | None:
    if tags is None:
        return None
    return [tag.strip().lower() for tag in tags if tag and tag.strip()]


# Request payloads: string values arrive trimmed, like the form validators did.
class InputModel(SQLModel):
    @field_validator("*", mode="before")
    @classmethod
    def _strip_strings(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip()
        return value


# Generic message
class Message(SQLModel):
    success: bool = True
    message: str


class Pagination(SQLModel):
    page: int
    limit: int
    total: int
    pages: int
    has_next: bool
    has_prev: bool

    @classmethod
    def build(cls, *, page: int, limit: int, total: int) -> "Pagination":
        pages = math.ceil(total / limit) if limit else 0
        return cls(
            page=page,
            limit=limit,
            total=total,
            pages=pages,
            has_next=page < pages,
            has_prev=page > 1,
        )


class StatusCount(SQLModel):
    status: str
    count: int


# Admin auth
class AdminLogin(InputModel):
    email: EmailStr
    password: str = Field(min_length=1, max_length=128)


# JSON payload containing access token
class Token(SQLModel):
    success: bool = True
    access_token: str
    token_type: str = "bearer"


# Contents of JWT token
class TokenPayload(SQLModel):
    sub: str | None = None


# ---------------------------------------------------------------------------
# Contact
# ---------------------------------------------------------------------------


class ContactStatus(str, Enum):
    PENDING = "pending"
    REVIEW = "review"
    WORKED = "worked"
    DONE = "done"
    REJECTED = "rejected"


class ContactPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


CONTACT_STATUS_COLORS = {
    ContactStatus.PENDING: "yellow",
    ContactStatus.REVIEW: "blue",
    ContactStatus.WORKED: "purple",
    ContactStatus.DONE: "green",
    ContactStatus.REJECTED: "red",
}


class ContactBase(SQLModel):
    name: str = Field(min_length=1, max_length=100)
    email: EmailStr = Field(max_length=255, index=True)
    mobile: str | None = Field(default=None, max_length=20)
    subject: str = Field(min_length=1, max_length=200)
    message: str = Field(min_length=1, max_length=2000)


class ContactCreate(InputModel, ContactBase):
    @field_validator("email")
    @classmethod
    def _lower_email(cls, value: str) -> str:
        return value.lower()

    @field_validator("mobile")
    @classmethod
    def _blank_mobile(cls, value: str | None) -> str | None:
        return value or None


class ContactUpdate(InputModel):
    status: ContactStatus | None = None
    admin_notes: str | None = Field(default=None, max_length=1000)
    priority: ContactPriority | None = None


class Contact(ContactBase, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    status: ContactStatus = Field(default=ContactStatus.PENDING, index=True)
    priority: ContactPriority = Field(default=ContactPriority.MEDIUM, index=True)
    admin_notes: str | None = Field(default=None, max_length=1000)
    email_sent: bool = False
    email_sent_at: datetime | None = Field(
        default=None, sa_type=DateTime(timezone=True)  # type: ignore
    )
    responded_at: datetime | None = Field(
        default=None, sa_type=DateTime(timezone=True)  # type: ignore
    )
    completed_at: datetime | None = Field(
        default=None, sa_type=DateTime(timezone=True)  # type: ignore
    )
    created_at: datetime | None = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
        index=True,
    )
    updated_at: datetime | None = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
    )


class ContactPublic(ContactBase):
    id: uuid.UUID
    status: ContactStatus
    priority: ContactPriority
    admin_notes: str | None = None
    email_sent: bool = False
    email_sent_at: datetime | None = None
    responded_at: datetime | None = None
    completed_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def status_color(self) -> str:
        return CONTACT_STATUS_COLORS.get(self.status, "gray")


class ContactResponse(SQLModel):
    success: bool = True
    message: str | None = None
    contact: ContactPublic


class ContactsResponse(SQLModel):
    success: bool = True
    contacts: list[ContactPublic]
    count: int


class ContactStatsResponse(SQLModel):
    success: bool = True
    stats: list[StatusCount]


# ---------------------------------------------------------------------------
# Subscription
# ---------------------------------------------------------------------------


class SubscriptionStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    UNSUBSCRIBED = "unsubscribed"


class SubscriptionSource(str, Enum):
    FOOTER = "footer"
    CONTACT = "contact"
    MANUAL = "manual"
    OTHER = "other"


class SubscriptionPreferences(SQLModel):
    newsletters: bool = True
    project_updates: bool = True
    tech_insights: bool = True


class SubscriptionBase(SQLModel):
    email: EmailStr = Field(max_length=255)
    first_name: str | None = Field(default=None, max_length=50)
    last_name: str | None = Field(default=None, max_length=50)
    source: SubscriptionSource = SubscriptionSource.FOOTER


class SubscriptionCreate(InputModel, SubscriptionBase):
    preferences: SubscriptionPreferences | None = None

    @field_validator("email")
    @classmethod
    def _lower_email(cls, value: str) -> str:
        return value.lower()


class Subscription(SubscriptionBase, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    email: EmailStr = Field(unique=True, index=True, max_length=255)
    status: SubscriptionStatus = Field(default=SubscriptionStatus.ACTIVE, index=True)
    preferences: dict = Field(
        default_factory=lambda: SubscriptionPreferences().model_dump(), sa_type=JSON
    )
    last_email_sent: datetime | None = Field(
        default=None, sa_type=DateTime(timezone=True)  # type: ignore
    )
    email_count: int = 0
    unsubscribed_at: datetime | None = Field(
        default=None, sa_type=DateTime(timezone=True)  # type: ignore
    )
    unsubscribed_reason: str | None = Field(default=None, max_length=500)
    created_at: datetime | None = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
        index=True,
    )
    updated_at: datetime | None = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
    )


class SubscriptionPublic(SubscriptionBase):
    id: uuid.UUID
    status: SubscriptionStatus
    preferences: SubscriptionPreferences
    last_email_sent: datetime | None = None
    email_count: int = 0
    unsubscribed_at: datetime | None = None
    unsubscribed_reason: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def full_name(self) -> str:
        if self.first_name and self.last_name:
            return f"{self.first_name} {self.last_name}"
        return self.first_name or self.last_name or "Subscriber"


class UnsubscribeRequest(InputModel):
    reason: str | None = Field(default=None, max_length=500)


class NewsletterRequest(InputModel):
    subject: str = Field(min_length=1, max_length=200)
    html_content: str = Field(min_length=1)
    preference: Literal["newsletters", "project_updates", "tech_insights"] | None = None


class SubscriptionResponse(SQLModel):
    success: bool = True
    message: str | None = None
    subscription: SubscriptionPublic


class SubscriptionsResponse(SQLModel):
    success: bool = True
    subscriptions: list[SubscriptionPublic]
    count: int


class SubscriptionStatsResponse(SQLModel):
    success: bool = True
    stats: list[StatusCount]
    active_count: int


class NewsletterQueued(SQLModel):
    success: bool = True
    message: str
    queued: int


# ---------------------------------------------------------------------------
# Blog
# ---------------------------------------------------------------------------


class ContentSection(SQLModel):
    title: str | None = Field(default=None, max_length=200)
    content: str | None = None
    image: str | None = None
    code: str | None = None
    order: int = 0

    @field_validator("image")
    @classmethod
    def _check_image(cls, value: str | None) -> str | None:
        return _check_http_url(value, required=False, label="Section image")


class BlogBase(SQLModel):
    title: str = Field(min_length=1, max_length=200)
    excerpt: str = Field(min_length=1, max_length=1000)
    image: str = Field(min_length=1, max_length=500)
    author_profile: str | None = None
    author_profile_pic: str | None = Field(default=None, max_length=500)
    category: str = Field(min_length=1, max_length=50, index=True)
    read_time: str = Field(default="5 min read", max_length=50)
    featured: bool = Field(default=False, index=True)
    published: bool = Field(default=True, index=True)
    seo_title: str | None = Field(default=None, max_length=60)
    seo_description: str | None = Field(default=None, max_length=160)
    seo_keywords: str | None = Field(default=None, max_length=200)


class BlogCreate(InputModel, BlogBase):
    slug: str | None = Field(default=None, max_length=220)
    content: str = Field(min_length=1)
    content_sections: list[ContentSection] = Field(default_factory=list)
    author: str | None = Field(default=None, max_length=100)
    tags: list[str] = Field(default_factory=list)

    @field_validator("image")
    @classmethod
    def _check_image(cls, value: str) -> str:
        return _check_http_url(value, required=True, label="Image")  # type: ignore[return-value]

    @field_validator("author_profile_pic")
    @classmethod
    def _check_profile_pic(cls, value: str | None) -> str | None:
        return _check_http_url(value, required=False, label="Author profile picture")

    @field_validator("tags")
    @classmethod
    def _lower_tags(cls, value: list[str]) -> list[str]:
        return _normalize_tags(value) or []


class BlogUpdate(InputModel):
    title: str | None = Field(default=None, min_length=1, max_length=200)
    slug: str | None = Field(default=None, max_length=220)
    excerpt: str | None = Field(default=None, min_length=1, max_length=1000)
    content: str | None = Field(default=None, min_length=1)
    content_sections: list[ContentSection] | None = None
    image: str | None = Field(default=None, max_length=500)
    author: str | None = Field(default=None, max_length=100)
    author_profile: str | None = None
    author_profile_pic: str | None = Field(default=None, max_length=500)
    category: str | None = Field(default=None, min_length=1, max_length=50)
    tags: list[str] | None = None
    read_time: str | None = Field(default=None, max_length=50)
    featured: bool | None = None
    published: bool | None = None
    seo_title: str | None = Field(default=None, max_length=60)
    seo_description: str | None = Field(default=None, max_length=160)
    seo_keywords: str | None = Field(default=None, max_length=200)

    @field_validator("image")
    @classmethod
    def _check_image(cls, value: str | None) -> str | None:
        return _check_http_url(value, required=False, label="Image")

    @field_validator("author_profile_pic")
    @classmethod
    def _check_profile_pic(cls, value: str | None) -> str | None:
        return _check_http_url(value, required=False, label="Author profile picture")

    @field_validator("tags")
    @classmethod
    def _lower_tags(cls, value: list[str] | None) -> list[str] | None:
        return _normalize_tags(value)


class Blog(BlogBase, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    slug: str = Field(unique=True, index=True, max_length=220)
    content: str = Field(sa_type=Text)
    content_sections: list[dict] = Field(default_factory=list, sa_type=JSON)
    author: str = Field(max_length=100)
    tags: list[str] = Field(default_factory=list, sa_type=JSON)
    published_at: datetime | None = Field(
        default=None, sa_type=DateTime(timezone=True), index=True  # type: ignore
    )
    views: int = 0
    likes: int = 0
    created_at: datetime | None = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
    )
    updated_at: datetime | None = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
    )


# List views leave out the full content.
class BlogSummary(BlogBase):
    id: uuid.UUID
    slug: str
    content_sections: list[ContentSection] = []
    author: str
    tags: list[str] = []
    published_at: datetime | None = None
    views: int = 0
    likes: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None


class BlogPublic(BlogSummary):
    content: str


class BlogResponse(SQLModel):
    success: bool = True
    message: str | None = None
    blog: BlogPublic


class BlogsResponse(SQLModel):
    success: bool = True
    blogs: list[BlogSummary]
    pagination: Pagination | None = None


class BlogLikeResponse(SQLModel):
    success: bool = True
    message: str
    likes: int


class PublishedCount(SQLModel):
    published: bool
    count: int


class BlogStatsResponse(SQLModel):
    success: bool = True
    stats: list[PublishedCount]
    total_count: int
    published_count: int


class CategoryCount(SQLModel):
    category: str
    count: int


class BlogCategoriesResponse(SQLModel):
    success: bool = True
    categories: list[CategoryCount]


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


class EventType(str, Enum):
    WEBINAR = "webinar"
    WORKSHOP = "workshop"
    OFFICE_HOURS = "office-hours"
    CONFERENCE = "conference"


class EventHost(SQLModel):
    name: str = ""
    title: str = ""
    image: str = ""


class AgendaItem(SQLModel):
    time: str | None = None
    title: str | None = None
    description: str | None = None
    speaker: str | None = None


class EventBase(SQLModel):
    title: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=1, max_length=2000)
    short_description: str = Field(min_length=1, max_length=500)
    event_type: EventType = Field(index=True)
    category: str = Field(default="General", max_length=100, index=True)
    image: str = Field(default="", max_length=500)
    video_url: str = Field(default="", max_length=500)
    date: datetime = Field(sa_type=DateTime(timezone=True), index=True)  # type: ignore
    end_date: datetime | None = Field(
        default=None, sa_type=DateTime(timezone=True)  # type: ignore
    )
    # Minutes.
    duration: int = Field(ge=1)
    timezone: str = Field(default="UTC", max_length=64)
    location: str = Field(default="Online", max_length=255)
    meeting_link: str = Field(default="", max_length=500)
    registration_link: str = Field(default="", max_length=500)
    price: float = Field(default=0, ge=0)
    currency: str = Field(default="USD", max_length=10)
    # 0 means unlimited.
    max_attendees: int = Field(default=0, ge=0)
    published: bool = Field(default=False, index=True)
    featured: bool = Field(default=False, index=True)


class EventCreate(InputModel, EventBase):
    slug: str | None = Field(default=None, max_length=220)
    host: EventHost | None = None
    tags: list[str] = Field(default_factory=list)
    agenda: list[AgendaItem] = Field(default_factory=list)
    prerequisites: list[str] = Field(default_factory=list)
    what_you_will_learn: list[str] = Field(default_factory=list)


class EventUpdate(InputModel):
    title: str | None = Field(default=None, min_length=1, max_length=200)
    slug: str | None = Field(default=None, max_length=220)
    description: str | None = Field(default=None, min_length=1, max_length=2000)
    short_description: str | None = Field(default=None, min_length=1, max_length=500)
    event_type: EventType | None = None
    category: str | None = Field(default=None, max_length=100)
    image: str | None = Field(default=None, max_length=500)
    video_url: str | None = Field(default=None, max_length=500)
    host: EventHost | None = None
    date: datetime | None = None
    end_date: datetime | None = None
    duration: int | None = Field(default=None, ge=1)
    timezone: str | None = Field(default=None, max_length=64)
    location: str | None = Field(default=None, max_length=255)
    meeting_link: str | None = Field(default=None, max_length=500)
    registration_link: str | None = Field(default=None, max_length=500)
    price: float | None = Field(default=None, ge=0)
    currency: str | None = Field(default=None, max_length=10)
    max_attendees: int | None = Field(default=None, ge=0)
    published: bool | None = None
    featured: bool | None = None
    tags: list[str] | None = None
    agenda: list[AgendaItem] | None = None
    prerequisites: list[str] | None = None
    what_you_will_learn: list[str] | None = None


class Event(EventBase, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    slug: str = Field(unique=True, index=True, max_length=220)
    host: dict = Field(default_factory=dict, sa_type=JSON)
    tags: list[str] = Field(default_factory=list, sa_type=JSON)
    agenda: list[dict] = Field(default_factory=list, sa_type=JSON)
    prerequisites: list[str] = Field(default_factory=list, sa_type=JSON)
    what_you_will_learn: list[str] = Field(default_factory=list, sa_type=JSON)
    current_attendees: int = 0
    is_free: bool = True
    published_at: datetime | None = Field(
        default=None, sa_type=DateTime(timezone=True)  # type: ignore
    )
    created_at: datetime | None = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
    )
    updated_at: datetime | None = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
    )


class EventPublic(EventBase):
    id: uuid.UUID
    slug: str
    host: EventHost = Field(default_factory=EventHost)
    tags: list[str] = []
    agenda: list[AgendaItem] = []
    prerequisites: list[str] = []
    what_you_will_learn: list[str] = []
    current_attendees: int = 0
    is_free: bool = True
    published_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_upcoming(self) -> bool:
        return as_utc(self.date) > get_datetime_utc()  # type: ignore[operator]

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_sold_out(self) -> bool:
        return self.max_attendees > 0 and self.current_attendees >= self.max_attendees


class EventResponse(SQLModel):
    success: bool = True
    message: str | None = None
    data: EventPublic


class EventsResponse(SQLModel):
    success: bool = True
    data: list[EventPublic]
    pagination: Pagination | None = None


class EventFilters(SQLModel):
    event_types: list[EventType]
    categories: list[str]


class EventFiltersResponse(SQLModel):
    success: bool = True
    data: EventFilters


# ---------------------------------------------------------------------------
# Event registrations
# ---------------------------------------------------------------------------


class RegistrationStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    ATTENDED = "attended"


class EventRegistrationBase(SQLModel):
    full_name: str = Field(min_length=1, max_length=100)
    email: EmailStr = Field(max_length=255, index=True)
    phone: str | None = Field(default=None, max_length=20)
    company: str | None = Field(default=None, max_length=100)
    job_title: str | None = Field(default=None, max_length=100)
    notes: str | None = Field(default=None, max_length=500)


class EventRegistrationCreate(InputModel, EventRegistrationBase):
    @field_validator("email")
    @classmethod
    def _lower_email(cls, value: str) -> str:
        return value.lower()


class EventRegistration(EventRegistrationBase, table=True):
    __table_args__ = (
        UniqueConstraint("event_id", "email", name="uq_eventregistration_event_email"),
    )

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    event_id: uuid.UUID = Field(
        foreign_key="event.id", nullable=False, index=True, ondelete="CASCADE"
    )
    status: RegistrationStatus = Field(default=RegistrationStatus.CONFIRMED, index=True)
    registered_at: datetime | None = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
    )
    confirmation_sent: bool = False
    created_at: datetime | None = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
    )


class EventRegistrationPublic(EventRegistrationBase):
    id: uuid.UUID
    event_id: uuid.UUID
    status: RegistrationStatus
    registered_at: datetime | None = None
    confirmation_sent: bool = False
    created_at: datetime | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_registered(self) -> bool:
        return self.status in (RegistrationStatus.CONFIRMED, RegistrationStatus.PENDING)


class RegistrationStatusUpdate(SQLModel):
    status: RegistrationStatus


class RegistrationResponse(SQLModel):
    success: bool = True
    message: str | None = None
    data: EventRegistrationPublic


class RegistrationsResponse(SQLModel):
    success: bool = True
    data: list[EventRegistrationPublic]
    pagination: Pagination


class RegistrationCheck(SQLModel):
    is_registered: bool
    registration: EventRegistrationPublic | None = None


class RegistrationCheckResponse(SQLModel):
    success: bool = True
    data: RegistrationCheck
