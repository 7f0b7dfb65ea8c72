from typing import List

from fastapi import APIRouter, Depends, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.ext.asyncio import AsyncSession

from apps.users.schemas import (
    RefreshRequest,
    RequesterCreate,
    TokenPair,
    TokenResponse,
    UserCreate,
    UserDetailOut,
    UserLogin,
    UserOut,
)
from apps.users.service import (
    authenticate_user,
    create_user,
    list_users,
    refresh_tokens,
    sanitize_user,
    verify_credentials,
)
from common.jwt import create_access_refresh_tokens
from constants.roles import ADMIN, REQUESTER
from models.base import get_db
from models.user import User
from security.auth_backend import get_current_user, require_roles

router = APIRouter(prefix="/api/v1/auth", tags=["Auth"])
users_router = APIRouter(prefix="/api/v1", tags=["Users"])


@router.post("/login", response_model=TokenResponse)
async def login(payload: UserLogin, db: AsyncSession = Depends(get_db)):
    """
    Login with email and password to receive access + refresh tokens.
    """
    tokens, user_dict = await authenticate_user(db, payload)
    return {"token": tokens["token"], "refreshToken": tokens["refreshToken"], "user": user_dict}


@router.post("/refresh", response_model=TokenPair)
async def refresh(payload: RefreshRequest, db: AsyncSession = Depends(get_db)):
    """
    Refresh tokens using a valid refresh token.
    """
    tokens = await refresh_tokens(db, payload.refreshToken)
    return {"token": tokens["token"], "refreshToken": tokens["refreshToken"]}


# OAuth2 token endpoint for Swagger "Authorize" (password flow)
@router.post("/token")
async def issue_token(form_data: OAuth2PasswordRequestForm = Depends(), db: AsyncSession = Depends(get_db)):
    """
    OAuth2 password flow token endpoint used by the Swagger Authorize dialog.
    - 'username' field carries the email (OAuth2PasswordRequestForm naming)
    """
    user = await verify_credentials(db, form_data.username, form_data.password)
    tokens = create_access_refresh_tokens(str(user.id), user.role, extra_claims={"email": user.email})
    return {"access_token": tokens["token"], "token_type": "bearer"}


@router.get("/me", response_model=UserOut)
async def me(current_user: User = Depends(get_current_user)):
    return sanitize_user(current_user)


# -------------------------------
# User management (admin)
# -------------------------------

@users_router.get("/users", response_model=List[UserDetailOut], dependencies=[Depends(require_roles(ADMIN))])
async def get_users(db: AsyncSession = Depends(get_db)):
    users = await list_users(db)
    return [sanitize_user(u, include_timestamps=True) for u in users]


@users_router.post(
    "/users",
    response_model=UserOut,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_roles(ADMIN))],
)
async def post_user(payload: UserCreate, db: AsyncSession = Depends(get_db)):
    user = await create_user(db, payload)
    return sanitize_user(user)


@users_router.get("/requesters", response_model=List[UserDetailOut], dependencies=[Depends(require_roles(ADMIN))])
async def get_requesters(db: AsyncSession = Depends(get_db)):
    users = await list_users(db, role=REQUESTER)
    return [sanitize_user(u, include_timestamps=True) for u in users]


@users_router.post(
    "/requesters",
    response_model=UserOut,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_roles(ADMIN))],
)
async def post_requester(payload: RequesterCreate, db: AsyncSession = Depends(get_db)):
    user = await create_user(db, UserCreate(**payload.model_dump(), role=REQUESTER))
    return sanitize_user(user)
