import logging
import re
from dataclasses import dataclass
from email.message import EmailMessage
from email.utils import formataddr
from pathlib import Path
from typing import Any

import aiosmtplib
from jinja2 import Environment, FileSystemLoader, select_autoescape
from markupsafe import Markup, escape

from app.core.config import Settings, settings
from app.models import Contact, Subscription, get_datetime_utc

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).parent / "email-templates"
TAG_RE = re.compile(r"<[^>]+>")
BLANK_LINES_RE = re.compile(r"\n\s*\n+")


@dataclass
class EmailData:
    html_content: str
    subject: str


def nl2br(value: Any) -> Markup:
    return Markup("<br>").join(escape(str(value)).split("\n"))


_environment = Environment(
    loader=FileSystemLoader(TEMPLATES_DIR),
    autoescape=select_autoescape(["html", "xml"]),
)
_environment.filters["nl2br"] = nl2br


def render_email_template(*, template_name: str, context: dict[str, Any]) -> str:
    template = _environment.get_template(template_name)
    return template.render(**context)


def html_to_text(html_content: str) -> str:
    text = TAG_RE.sub("", html_content)
    return BLANK_LINES_RE.sub("\n\n", text).strip()


def generate_contact_notification_email(contact: Contact) -> EmailData:
    subject = f"New Contact Form Submission: {contact.subject}"
    html_content = render_email_template(
        template_name="contact_notification.html",
        context={
            "project_name": settings.PROJECT_NAME,
            "name": contact.name,
            "email": contact.email,
            "mobile": contact.mobile,
            "subject": contact.subject,
            "message": contact.message,
            "submitted_at": (contact.created_at or get_datetime_utc()).strftime(
                "%Y-%m-%d %H:%M UTC"
            ),
        },
    )
    return EmailData(html_content=html_content, subject=subject)


def generate_contact_confirmation_email(contact: Contact) -> EmailData:
    subject = f"Thank you for getting in touch - {contact.subject}"
    html_content = render_email_template(
        template_name="contact_confirmation.html",
        context={
            "name": contact.name,
            "subject": contact.subject,
            "message": contact.message,
            "owner_name": settings.SITE_OWNER_NAME,
        },
    )
    return EmailData(html_content=html_content, subject=subject)


def generate_subscription_welcome_email(subscription: Subscription) -> EmailData:
    subject = f"Welcome to the {settings.PROJECT_NAME} newsletter!"
    html_content = render_email_template(
        template_name="subscription_welcome.html",
        context={
            "first_name": subscription.first_name,
            "owner_name": settings.SITE_OWNER_NAME,
        },
    )
    return EmailData(html_content=html_content, subject=subject)


def generate_newsletter_email(
    *, email_to: str, subject: str, html_content: str
) -> EmailData:
    html = render_email_template(
        template_name="newsletter.html",
        context={
            "project_name": settings.PROJECT_NAME,
            "email": email_to,
            "html_content": html_content,
        },
    )
    return EmailData(html_content=html, subject=subject)


def generate_test_email(email_to: str) -> EmailData:
    subject = f"{settings.PROJECT_NAME} - Test email"
    html_content = render_email_template(
        template_name="test_email.html",
        context={"project_name": settings.PROJECT_NAME, "email": email_to},
    )
    return EmailData(html_content=html_content, subject=subject)


def build_message(
    *, email_to: str, subject: str, html_content: str, config: Settings = settings
) -> EmailMessage:
    message = EmailMessage()
    message["From"] = formataddr(
        (config.EMAILS_FROM_NAME or config.PROJECT_NAME, str(config.EMAILS_FROM_EMAIL))
    )
    message["To"] = email_to
    message["Subject"] = subject
    message.set_content(html_to_text(html_content))
    message.add_alternative(html_content, subtype="html")
    return message


async def send_email(
    *,
    email_to: str,
    subject: str = "",
    html_content: str = "",
    config: Settings = settings,
) -> None:
    if not config.emails_enabled:
        raise RuntimeError("Email is not configured: set SMTP_HOST and EMAILS_FROM_EMAIL")
    message = build_message(
        email_to=email_to, subject=subject, html_content=html_content, config=config
    )
    await aiosmtplib.send(
        message,
        hostname=config.SMTP_HOST,
        port=config.SMTP_PORT,
        username=config.SMTP_USER,
        password=config.SMTP_PASSWORD,
        start_tls=config.SMTP_TLS and not config.SMTP_SSL,
        use_tls=config.SMTP_SSL,
        timeout=config.SMTP_TIMEOUT,
    )
    logger.info("Sent email %r to %s", subject, email_to)
