from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, create_engine

from app.core.config import settings


def _engine_kwargs(url: str) -> dict:
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True}


engine = create_engine(
    settings.SQLALCHEMY_DATABASE_URI,
    **_engine_kwargs(settings.SQLALCHEMY_DATABASE_URI),
)


def init_db(db_engine: Engine = engine) -> None:
    # Tables should be managed with migrations for real deployments; create_all
    # is enough for a single-owner portfolio backend.
    from app import models  # noqa: F401

    SQLModel.metadata.create_all(db_engine)
