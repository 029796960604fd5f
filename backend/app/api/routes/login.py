import logging
from datetime import timedelta
from typing import Any

from fastapi import APIRouter, HTTPException

from app.core import security
from app.core.config import settings
from app.models import AdminLogin, Token

router = APIRouter(prefix="/admin", tags=["login"])
logger = logging.getLogger(__name__)


@router.post("/login", response_model=Token)
def login_access_token(body: AdminLogin) -> Any:
    """
    Exchange the configured admin credentials for a bearer token.
    """
    if not security.verify_admin_credentials(body.email, body.password):
        logger.warning("Failed admin login for %s", body.email)
        raise HTTPException(status_code=401, detail="Incorrect email or password")
    access_token_expires = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    return Token(
        access_token=security.create_access_token(
            str(settings.ADMIN_EMAIL).lower(), expires_delta=access_token_expires
        )
    )
