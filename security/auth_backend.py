from typing import Optional

from fastapi import Depends, HTTPException, Query, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from common.exceptions import ForbiddenError, http_unauthorized
from common.jwt import verify_token
from constants.roles import ADMIN
from models.base import get_db
from models.user import User

# OAuth2PasswordBearer expects a tokenUrl for the interactive docs to work.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/token", auto_error=True)
optional_oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/token", auto_error=False)


async def _load_user_from_token(token: str, db: AsyncSession) -> User:
    credentials_exception = http_unauthorized()
    try:
        payload = verify_token(token, expected_token_type="access")
        user_id: Optional[str] = payload.get("sub")
        if user_id is None:
            raise credentials_exception
    except JWTError:
        raise credentials_exception

    try:
        user: Optional[User] = await db.get(User, int(user_id))
    except ValueError:
        raise credentials_exception
    if not user or user.is_deleted:
        raise credentials_exception
    return user


async def get_current_user(token: str = Depends(oauth2_scheme), db: AsyncSession = Depends(get_db)) -> User:
    """
    Dependency to retrieve the current authenticated user from the JWT.
    Validates the access token and fetches the associated user from DB.
    """
    return await _load_user_from_token(token, db)


async def get_stream_user(
    header_token: Optional[str] = Depends(optional_oauth2_scheme),
    token: Optional[str] = Query(default=None),
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Same as get_current_user but also accepts ?token=... since browsers'
    EventSource cannot send an Authorization header.
    """
    raw = header_token or token
    if not raw:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token not provided")
    return await _load_user_from_token(raw, db)


def require_roles(*allowed_roles: str):
    """
    Dependency factory to enforce that the current user has one of the allowed roles.
    Usage:
      @router.get("/admin", dependencies=[Depends(require_roles(ADMIN))])
    """
    async def _dependency(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in allowed_roles:
            raise ForbiddenError()
        return current_user

    return _dependency


def is_admin(user: User) -> bool:
    return user.role == ADMIN


def ensure_admin(user: User, detail: str = "Access restricted to administrators") -> None:
    """
    Service-level role guard, independent of the router dependencies.
    """
    if not is_admin(user):
        raise ForbiddenError(detail)


def ensure_owner_or_admin(user: User, owner_id: int) -> None:
    if not is_admin(user) and user.id != owner_id:
        raise ForbiddenError("Access denied")
