from unittest.mock import AsyncMock, patch

import pytest

from app.core.config import settings
from app.models import Contact, Subscription
from app.utils import (
    build_message,
    generate_contact_notification_email,
    generate_newsletter_email,
    generate_subscription_welcome_email,
    html_to_text,
    nl2br,
    send_email,
)

SMTP_CONFIG = settings.model_copy(
    update={
        "SMTP_HOST": "smtp.example.com",
        "SMTP_USER": "mailer",
        "SMTP_PASSWORD": "secret",
        "EMAILS_FROM_EMAIL": "noreply@example.com",
        "EMAILS_FROM_NAME": "Portfolio",
    }
)


def test_nl2br_escapes_before_joining():
    assert str(nl2br("a<b>\nc")) == "a&lt;b&gt;<br>c"


def test_contact_notification_escapes_user_input():
    contact = Contact(
        name="<script>alert(1)</script>",
        email="ada@example.com",
        subject="Hello",
        message="line one\nline two",
    )
    email = generate_contact_notification_email(contact)
    assert email.subject == "New Contact Form Submission: Hello"
    assert "<script>" not in email.html_content
    assert "&lt;script&gt;" in email.html_content
    assert "line one<br>line two" in email.html_content


def test_welcome_email_greets_by_first_name():
    subscription = Subscription(email="ada@example.com", first_name="Ada")
    assert "Hi Ada," in generate_subscription_welcome_email(subscription).html_content
    anonymous = Subscription(email="x@example.com")
    assert "Hi there," in generate_subscription_welcome_email(anonymous).html_content


def test_newsletter_keeps_admin_html():
    email = generate_newsletter_email(
        email_to="ada@example.com", subject="News", html_content="<h1>Update</h1>"
    )
    assert "<h1>Update</h1>" in email.html_content
    assert "ada@example.com" in email.html_content


def test_build_message_has_text_and_html_parts():
    message = build_message(
        email_to="ada@example.com",
        subject="Hi",
        html_content="<p>Hello</p>\n\n\n<p>World</p>",
        config=SMTP_CONFIG,
    )
    assert message["From"] == "Portfolio <noreply@example.com>"
    assert message["To"] == "ada@example.com"
    plain = message.get_body(preferencelist=("plain",))
    html = message.get_body(preferencelist=("html",))
    assert plain.get_content().strip() == "Hello\n\nWorld"
    assert "<p>Hello</p>" in html.get_content()


def test_html_to_text():
    assert html_to_text("<div><b>Hi</b></div>") == "Hi"


@pytest.mark.asyncio
async def test_send_email_uses_starttls_by_default():
    with patch("app.utils.aiosmtplib.send", new_callable=AsyncMock) as smtp_send:
        await send_email(
            email_to="ada@example.com",
            subject="Hi",
            html_content="<p>Hi</p>",
            config=SMTP_CONFIG,
        )
    kwargs = smtp_send.await_args.kwargs
    assert kwargs["hostname"] == "smtp.example.com"
    assert kwargs["username"] == "mailer"
    assert kwargs["start_tls"] is True
    assert kwargs["use_tls"] is False


@pytest.mark.asyncio
async def test_send_email_implicit_tls():
    config = SMTP_CONFIG.model_copy(update={"SMTP_SSL": True, "SMTP_PORT": 465})
    with patch("app.utils.aiosmtplib.send", new_callable=AsyncMock) as smtp_send:
        await send_email(email_to="ada@example.com", config=config)
    kwargs = smtp_send.await_args.kwargs
    assert kwargs["start_tls"] is False
    assert kwargs["use_tls"] is True
    assert kwargs["port"] == 465


@pytest.mark.asyncio
async def test_send_email_requires_smtp_config():
    config = SMTP_CONFIG.model_copy(update={"SMTP_HOST": None})
    with patch("app.utils.aiosmtplib.send", new_callable=AsyncMock) as smtp_send:
        with pytest.raises(RuntimeError, match="Email is not configured"):
            await send_email(email_to="ada@example.com", config=config)
    smtp_send.assert_not_awaited()
