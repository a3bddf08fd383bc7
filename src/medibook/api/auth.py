"""Bearer-token identity resolution."""

import logging
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from medibook.api.users import get_user
from medibook.database import get_db
from medibook.models.user import User
from medibook.services.security import get_subject

logger = logging.getLogger(__name__)

# auto_error=False so both required and optional routes share one scheme
security = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def _resolve_user(
    credentials: Optional[HTTPAuthorizationCredentials], db: AsyncSession
) -> Optional[User]:
    if credentials is None:
        return None

    # tolerate tokens pasted with surrounding quotes
    token = credentials.credentials.strip().strip('"').strip("'")
    user_id = get_subject(token)
    if not user_id:
        return None

    user = await get_user(db, user_id)
    if user is None:
        logger.debug("Token subject %s has no matching user", user_id)
    return user


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Resolve the caller or reject the request with 401."""
    if credentials is None:
        raise _unauthorized("Authentication required")

    user = await _resolve_user(credentials, db)
    if user is None:
        raise _unauthorized("Invalid authentication credentials")
    return user


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> Optional[User]:
    """Resolve the caller if a valid token was sent, otherwise None (anonymous)."""
    return await _resolve_user(credentials, db)
