"""Bearer token handling for the external identity provider.

Users sign in with the identity provider, which issues HS256 JWTs whose ``sub``
claim is the user's profile id. This service only validates those tokens and
resolves the caller's profile; it never stores passwords.
"""

import logging
from datetime import timedelta
from typing import Optional
from uuid import UUID

from jose import JWTError, jwt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.models.profile import Profile
from app.schemas.auth import ActingUser
from app.utils.clock import utcnow

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = 60


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Sign a token the way the identity provider does. Used by tests and local tooling."""
    to_encode = data.copy()
    expire = utcnow() + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire, "aud": settings.JWT_AUDIENCE})
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=ALGORITHM)


def decode_access_token(token: str) -> Optional[dict]:
    """Decode and validate a bearer token. Returns None when it is not acceptable."""
    if not settings.JWT_SECRET_KEY:
        return None
    try:
        return jwt.decode(
            token,
            settings.JWT_SECRET_KEY,
            algorithms=[ALGORITHM],
            audience=settings.JWT_AUDIENCE,
        )
    except JWTError as e:
        logger.warning("JWT decode error: %s", e)
        return None


async def get_profile(db: AsyncSession, user_id: UUID) -> Optional[Profile]:
    result = await db.execute(select(Profile).where(Profile.id == user_id))
    return result.scalar_one_or_none()


def acting_user_for(profile: Profile) -> ActingUser:
    return ActingUser(user_id=profile.id, role=profile.role, email=profile.email)
