from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, EmailStr, Field


class UserLogin(BaseModel):
    """
    Payload for user login.
    """
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)


class UserCreate(BaseModel):
    """
    Admin-created account. The password must satisfy the strength rules.
    """
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)
    sectorId: int = Field(..., gt=0)
    role: Literal["admin", "requester"] = "requester"


class RequesterCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)
    sectorId: int = Field(..., gt=0)


class UserOut(BaseModel):
    """
    Public user model returned to clients (no sensitive fields).
    """
    id: int
    name: str
    email: str
    role: str
    sectorId: int
    sectorName: Optional[str] = None


class UserDetailOut(UserOut):
    createdAt: Optional[datetime] = None


class TokenResponse(BaseModel):
    """
    Response model for token pair and user data.
    """
    token: str
    refreshToken: str
    user: UserOut


class RefreshRequest(BaseModel):
    """
    Payload for refreshing access tokens via refresh token.
    """
    refreshToken: str


class TokenPair(BaseModel):
    """
    Response model for just access and refresh tokens.
    Used by /api/v1/auth/refresh endpoint.
    """
    token: str
    refreshToken: str
