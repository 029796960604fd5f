from fastapi.testclient import TestClient

from app.core.config import settings
from app.tests.utils.fakes import RecordingOutbox

UTILS_URL = f"{settings.API_V1_STR}/utils"


def test_health_check(client: TestClient) -> None:
    r = client.get(f"{UTILS_URL}/health-check/")
    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    assert body["status"] == "OK"
    assert body["environment"] == settings.ENVIRONMENT
    assert body["timestamp"]


def test_security_headers(client: TestClient) -> None:
    r = client.get(f"{UTILS_URL}/health-check/")
    assert r.headers["x-content-type-options"] == "nosniff"
    assert r.headers["x-frame-options"] == "DENY"


def test_unknown_route_uses_envelope(client: TestClient) -> None:
    r = client.get(f"{settings.API_V1_STR}/nope")
    assert r.status_code == 404
    assert r.json()["success"] is False


def test_test_email_queues_job(
    client: TestClient, admin_headers: dict[str, str], outbox: RecordingOutbox
) -> None:
    r = client.post(
        f"{UTILS_URL}/test-email/",
        params={"email_to": "someone@example.com"},
        headers=admin_headers,
    )
    assert r.status_code == 202
    assert r.json() == {"success": True, "message": "Test email queued"}
    (job,) = outbox.jobs
    assert job.messages[0].email_to == "someone@example.com"


def test_test_email_unavailable(
    client: TestClient, admin_headers: dict[str, str], outbox: RecordingOutbox
) -> None:
    outbox.accept = False
    r = client.post(
        f"{UTILS_URL}/test-email/",
        params={"email_to": "someone@example.com"},
        headers=admin_headers,
    )
    assert r.status_code == 503


def test_test_email_requires_admin(client: TestClient) -> None:
    r = client.post(
        f"{UTILS_URL}/test-email/", params={"email_to": "someone@example.com"}
    )
    assert r.status_code == 401
