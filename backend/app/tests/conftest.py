import os

# Point the module-level engine at SQLite before the app is imported.
os.environ.setdefault("DATABASE_URL", "sqlite://")

from collections.abc import Generator  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.engine import Engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from sqlmodel import Session, SQLModel, create_engine  # noqa: E402

from app.api.deps import get_db, get_email_queue, get_llm_client  # noqa: E402
from app.core.config import settings  # noqa: E402
from app.core.db import init_db  # noqa: E402
from app.main import app  # noqa: E402
from app.tests.utils.fakes import FakeLLM, RecordingOutbox  # noqa: E402


@pytest.fixture
def engine() -> Generator[Engine, None, None]:
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(test_engine)
    yield test_engine
    SQLModel.metadata.drop_all(test_engine)
    test_engine.dispose()


@pytest.fixture
def db(engine: Engine) -> Generator[Session, None, None]:
    with Session(engine) as session:
        yield session


@pytest.fixture
def outbox() -> RecordingOutbox:
    return RecordingOutbox()


@pytest.fixture
def fake_llm() -> FakeLLM:
    return FakeLLM()


@pytest.fixture
def client(
    engine: Engine, outbox: RecordingOutbox, fake_llm: FakeLLM
) -> Generator[TestClient, None, None]:
    def get_test_db() -> Generator[Session, None, None]:
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_db] = get_test_db
    app.dependency_overrides[get_email_queue] = lambda: outbox
    app.dependency_overrides[get_llm_client] = lambda: fake_llm
    # No context manager: the lifespan (real DB init) stays off.
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers(client: TestClient) -> dict[str, str]:
    r = client.post(
        f"{settings.API_V1_STR}/admin/login",
        json={"email": str(settings.ADMIN_EMAIL), "password": settings.ADMIN_PASSWORD},
    )
    tokens = r.json()
    return {"Authorization": f"Bearer {tokens['access_token']}"}
