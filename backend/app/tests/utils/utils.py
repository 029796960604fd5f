import random
import string
from datetime import datetime, timedelta, timezone
from typing import Any


def random_lower_string(length: int = 16) -> str:
    return "".join(random.choices(string.ascii_lowercase, k=length))


def random_email() -> str:
    return f"{random_lower_string()}@{random_lower_string(8)}.com"


def blog_payload(**overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "title": f"Post {random_lower_string(8)}",
        "excerpt": "A short summary of the post.",
        "content": "The full body of the post.",
        "image": "https://example.com/cover.png",
        "category": "engineering",
        "tags": ["Python", "FastAPI"],
    }
    payload.update(overrides)
    return payload


def event_payload(**overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "title": f"Event {random_lower_string(8)}",
        "description": "A long description of the event.",
        "short_description": "Short description.",
        "event_type": "webinar",
        "date": (datetime.now(timezone.utc) + timedelta(days=7)).isoformat(),
        "duration": 60,
        "published": True,
    }
    payload.update(overrides)
    return payload
