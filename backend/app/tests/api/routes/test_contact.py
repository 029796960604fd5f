import uuid
from unittest.mock import patch

from fastapi.testclient import TestClient
from sqlalchemy.engine import Engine

from app.core.config import settings
from app.tests.utils.fakes import RecordingOutbox

CONTACT_URL = f"{settings.API_V1_STR}/contact/"


def _contact_payload(**overrides):
    payload = {
        "name": "  Ada Lovelace  ",
        "email": "Ada@Example.COM",
        "subject": "Project enquiry",
        "message": "Hello,\nI would like to talk about a project.",
    }
    payload.update(overrides)
    return payload


def _create_contact(client: TestClient) -> dict:
    r = client.post(CONTACT_URL, json=_contact_payload())
    assert r.status_code == 201
    return r.json()["contact"]


def test_create_contact(client: TestClient, outbox: RecordingOutbox) -> None:
    r = client.post(CONTACT_URL, json=_contact_payload(mobile="+1 555 0100"))
    assert r.status_code == 201
    body = r.json()
    assert body["success"] is True
    contact = body["contact"]
    assert contact["name"] == "Ada Lovelace"
    assert contact["email"] == "ada@example.com"
    assert contact["status"] == "pending"
    assert contact["priority"] == "medium"
    assert contact["email_sent"] is False
    assert contact["status_color"] == "yellow"

    assert len(outbox.jobs) == 1
    job = outbox.jobs[0]
    assert job.messages[-1].email_to == "ada@example.com"
    assert job.follow_up.task == "email.mark_contact_sent"
    assert job.follow_up.args == (contact["id"],)


def test_create_contact_succeeds_when_email_is_unavailable(
    client: TestClient, outbox: RecordingOutbox
) -> None:
    outbox.accept = False
    r = client.post(CONTACT_URL, json=_contact_payload())
    assert r.status_code == 201
    assert r.json()["contact"]["email_sent"] is False


def test_create_contact_missing_email(client: TestClient) -> None:
    payload = _contact_payload()
    del payload["email"]
    r = client.post(CONTACT_URL, json=payload)
    assert r.status_code == 400
    body = r.json()
    assert body["success"] is False
    assert body["message"] == "Validation failed"
    assert any(error["field"] == "email" for error in body["errors"])


def test_create_contact_rejects_blank_and_oversized_fields(client: TestClient) -> None:
    r = client.post(CONTACT_URL, json=_contact_payload(name="   "))
    assert r.status_code == 400
    r = client.post(CONTACT_URL, json=_contact_payload(message="x" * 2001))
    assert r.status_code == 400
    r = client.post(CONTACT_URL, json=_contact_payload(email="not-an-email"))
    assert r.status_code == 400


def test_email_success_marks_contact(
    client: TestClient,
    engine: Engine,
    outbox: RecordingOutbox,
    admin_headers: dict[str, str],
) -> None:
    contact = _create_contact(client)
    with patch("app.email_tasks.engine", engine):
        outbox.jobs[0].follow_up.apply().get()

    r = client.get(f"{CONTACT_URL}{contact['id']}", headers=admin_headers)
    assert r.status_code == 200
    updated = r.json()["contact"]
    assert updated["email_sent"] is True
    assert updated["email_sent_at"] is not None


def test_admin_routes_require_token(client: TestClient) -> None:
    r = client.get(CONTACT_URL)
    assert r.status_code == 401
    assert r.json() == {"success": False, "message": "Not authenticated"}

    r = client.get(CONTACT_URL, headers={"Authorization": "Bearer not-a-token"})
    assert r.status_code == 401


def test_read_contacts(client: TestClient, admin_headers: dict[str, str]) -> None:
    first = _create_contact(client)
    second = _create_contact(client)
    r = client.get(CONTACT_URL, headers=admin_headers)
    assert r.status_code == 200
    body = r.json()
    assert body["count"] == 2
    assert {c["id"] for c in body["contacts"]} == {first["id"], second["id"]}


def test_read_contact_not_found(client: TestClient, admin_headers: dict[str, str]) -> None:
    r = client.get(f"{CONTACT_URL}{uuid.uuid4()}", headers=admin_headers)
    assert r.status_code == 404
    assert r.json() == {"success": False, "message": "Contact not found"}


def test_status_transitions_stamp_once(
    client: TestClient, admin_headers: dict[str, str]
) -> None:
    contact = _create_contact(client)
    url = f"{CONTACT_URL}{contact['id']}"

    r = client.patch(url, json={"status": "review"}, headers=admin_headers)
    assert r.status_code == 200
    reviewed = r.json()["contact"]
    assert reviewed["status"] == "review"
    assert reviewed["responded_at"] is not None
    assert reviewed["completed_at"] is None

    r = client.patch(
        url, json={"status": "review", "admin_notes": "called back"}, headers=admin_headers
    )
    again = r.json()["contact"]
    assert again["responded_at"] == reviewed["responded_at"]
    assert again["admin_notes"] == "called back"

    r = client.patch(url, json={"status": "done", "priority": "high"}, headers=admin_headers)
    done = r.json()["contact"]
    assert done["status"] == "done"
    assert done["priority"] == "high"
    assert done["completed_at"] is not None
    assert done["responded_at"] == reviewed["responded_at"]


def test_update_contact_rejects_unknown_status(
    client: TestClient, admin_headers: dict[str, str]
) -> None:
    contact = _create_contact(client)
    r = client.patch(
        f"{CONTACT_URL}{contact['id']}", json={"status": "archived"}, headers=admin_headers
    )
    assert r.status_code == 400


def test_contact_stats_and_delete(
    client: TestClient, admin_headers: dict[str, str]
) -> None:
    first = _create_contact(client)
    _create_contact(client)
    client.patch(
        f"{CONTACT_URL}{first['id']}", json={"status": "done"}, headers=admin_headers
    )

    r = client.get(f"{CONTACT_URL}stats", headers=admin_headers)
    assert r.status_code == 200
    stats = {s["status"]: s["count"] for s in r.json()["stats"]}
    assert stats == {"pending": 1, "done": 1}

    r = client.delete(f"{CONTACT_URL}{first['id']}", headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["success"] is True
    r = client.get(f"{CONTACT_URL}{first['id']}", headers=admin_headers)
    assert r.status_code == 404
