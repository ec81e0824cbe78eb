"""FastAPI dependencies for authentication and authorization."""

from typing import Optional
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.database import async_session, get_db
from app.models.profile import UserRole
from app.schemas.auth import ActingUser
from app.services.assignment_service import LeadAssignmentService
from app.services.auth import acting_user_for, decode_access_token, get_profile
from app.services.notification_service import ContractorNotifier, EmailContractorNotifier

security = HTTPBearer()


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> ActingUser:
    """Resolve the bearer token to the caller's profile.

    Raises 401 if the token is invalid or names an unknown profile.
    """
    payload = decode_access_token(credentials.credentials)
    if not payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_id: Optional[str] = payload.get("sub")
    try:
        profile_id = UUID(user_id) if user_id else None
    except ValueError:
        profile_id = None
    if profile_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
        )

    profile = await get_profile(db, profile_id)
    if profile is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )

    return acting_user_for(profile)


def require_role(*roles: UserRole):
    """Dependency factory that checks the caller has one of the given roles.

    Usage:
        @router.get("/admin-only")
        async def admin_route(user: ActingUser = Depends(require_admin)):
            ...
    """
    async def role_checker(current_user: ActingUser = Depends(get_current_user)) -> ActingUser:
        if current_user.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied. Required role: {', '.join(r.value for r in roles)}",
            )
        return current_user

    return role_checker


require_admin = require_role(UserRole.ADMIN)
require_contractor = require_role(UserRole.CONTRACTOR)


def get_session_factory() -> async_sessionmaker:
    """Factory for the extra sessions opened by concurrent per-lead work."""
    return async_session


def get_notifier() -> ContractorNotifier:
    return EmailContractorNotifier()


def get_assignment_service(
    db: AsyncSession = Depends(get_db),
    session_factory: async_sessionmaker = Depends(get_session_factory),
    notifier: ContractorNotifier = Depends(get_notifier),
) -> LeadAssignmentService:
    return LeadAssignmentService(db, session_factory=session_factory, notifier=notifier)
