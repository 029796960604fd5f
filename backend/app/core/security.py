import secrets
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt

from app.core.config import Settings, settings

ALGORITHM = "HS256"


def create_access_token(
    subject: str | Any, expires_delta: timedelta, *, config: Settings = settings
) -> str:
    expire = datetime.now(timezone.utc) + expires_delta
    to_encode = {"exp": expire, "sub": str(subject)}
    encoded_jwt = jwt.encode(to_encode, config.SECRET_KEY, algorithm=ALGORITHM)
    return encoded_jwt


def decode_access_token(token: str, *, config: Settings = settings) -> dict[str, Any]:
    """Raises jwt.InvalidTokenError (incl. expiry) when the token is not usable."""
    return jwt.decode(token, config.SECRET_KEY, algorithms=[ALGORITHM])


def verify_admin_credentials(
    email: str, password: str, *, config: Settings = settings
) -> bool:
    # Both comparisons always run so timing does not reveal which one failed.
    email_ok = secrets.compare_digest(
        email.strip().lower().encode("utf-8"),
        str(config.ADMIN_EMAIL).lower().encode("utf-8"),
    )
    password_ok = secrets.compare_digest(
        password.encode("utf-8"), config.ADMIN_PASSWORD.encode("utf-8")
    )
    return email_ok and password_ok
