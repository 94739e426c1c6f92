"""Shared FastAPI dependencies: auth, ownership, store and HTTP client."""
from typing import AsyncGenerator, Optional

import httpx
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from sitepub.config import settings
from sitepub.core.artifacts.store import ArtifactStore
from sitepub.core.exceptions import NotFound
from sitepub.database import get_db_session
from sitepub.models.project import Project
from sitepub.models.user import User
from sitepub.utils.security import TokenPayload

# HTTP Bearer security scheme; missing credentials are reported as 401 below
security = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    session: AsyncSession = Depends(get_db_session),
) -> User:
    """Get the current authenticated user from the session JWT.

    Raises:
        HTTPException: If the token is missing, invalid or the user is unknown
    """
    if credentials is None:
        raise _unauthorized("Unauthorized")

    payload = TokenPayload.from_token(credentials.credentials)
    if payload is None:
        raise _unauthorized("Invalid or expired token")
    if payload.is_expired():
        raise _unauthorized("Token has expired")

    user_id = payload.user_id
    if user_id is None:
        try:
            user_id = int(payload.sub)
        except (ValueError, TypeError):
            raise _unauthorized("Invalid token payload")

    result = await session.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if user is None:
        raise _unauthorized("User not found")

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is inactive",
        )

    return user


def get_artifact_store(session: AsyncSession = Depends(get_db_session)) -> ArtifactStore:
    return ArtifactStore(session)


async def get_owned_project(
    project_id: str,
    current_user: User = Depends(get_current_user),
    store: ArtifactStore = Depends(get_artifact_store),
) -> Project:
    """Load the path's project, treating someone else's project as missing."""
    project = await store.get_project(project_id, owner_id=current_user.id)
    if project is None:
        raise NotFound("Project not found")
    return project


async def get_http_client() -> AsyncGenerator[httpx.AsyncClient, None]:
    """Request-scoped HTTP client for outbound provider calls."""
    async with httpx.AsyncClient(timeout=settings.vercel_timeout_seconds) as client:
        yield client
