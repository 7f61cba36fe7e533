"""Auth dependencies — bearer JWT verification and the acting user.

Tokens are issued elsewhere; this module only verifies them with the
settings injected into the application and loads the matching ``User``.
"""

from __future__ import annotations

import uuid
from typing import Callable

from fastapi import Depends, Request
from fastapi.exceptions import HTTPException
from jose import ExpiredSignatureError, JWTError, jwt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from vacation_scheduler.common.exceptions import ForbiddenException
from vacation_scheduler.config import Settings
from vacation_scheduler.database import get_db
from vacation_scheduler.org.models import User


def get_app_settings(request: Request) -> Settings:
    """Settings the application was created with."""
    return request.app.state.settings


def _extract_bearer(request: Request) -> str:
    """Extract Bearer token from Authorization header."""
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Missing or invalid Authorization header.")
    return auth_header[7:]


def decode_access_token(token: str, settings: Settings) -> uuid.UUID:
    """Verify *token* and return the user id from its ``sub`` claim."""
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
        )
    except ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token has expired.")
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid token.")

    if payload.get("type", "access") != "access":
        raise HTTPException(status_code=401, detail="Invalid token type.")

    try:
        return uuid.UUID(str(payload["sub"]))
    except (KeyError, ValueError):
        raise HTTPException(status_code=401, detail="Invalid token subject.")


# ── Core dependency ─────────────────────────────────────────────────

async def get_current_user(
    request: Request,
    settings: Settings = Depends(get_app_settings),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Validate JWT and return the authenticated User."""
    token = _extract_bearer(request)
    user_id = decode_access_token(token, settings)

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalars().first()
    if user is None:
        raise HTTPException(status_code=401, detail="User account not found.")
    return user


# ── Capability dependency ───────────────────────────────────────────

def require_admin() -> Callable:
    """Return a FastAPI dependency that only lets administrators through."""

    async def _check(user: User = Depends(get_current_user)) -> User:
        if not user.is_admin:
            raise ForbiddenException(detail="Administrator rights are required.")
        return user

    return _check
