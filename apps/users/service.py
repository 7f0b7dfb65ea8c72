import logging
from typing import List, Optional, Tuple

from jose import JWTError
from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from apps.sectors.service import SectorService
from apps.users.schemas import UserCreate, UserLogin
from common.exceptions import ConflictError, ValidationError, http_unauthorized
from common.hashing import hash_password, password_needs_rehash, verify_password
from common.jwt import create_access_refresh_tokens, verify_token
from common.transactions import atomic
from constants.roles import ADMIN
from models.sector import Sector
from models.user import User
from security.password_rules import validate_password_strength
from settings.config import get_settings

logger = logging.getLogger(__name__)


def sanitize_user(user: User, include_timestamps: bool = False) -> dict:
    """
    Convert a User ORM object into a public-safe dict.
    """
    data = user.to_public_dict()
    if include_timestamps:
        data["createdAt"] = user.created_at
    return data


async def get_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    res = await db.execute(
        select(User).where(and_(func.lower(User.email) == email.lower(), User.deleted_at.is_(None)))
    )
    return res.scalar_one_or_none()


async def verify_credentials(db: AsyncSession, email: str, password: str) -> User:
    """
    Shared by the JSON login and the OAuth2 form. Failed attempts are logged;
    hashes made with an outdated bcrypt cost are upgraded on success.
    """
    user = await get_user_by_email(db, email)
    if not user or not verify_password(password, user.password_hash):
        logger.warning("Failed login attempt for %s", email)
        raise http_unauthorized("Invalid email or password.")
    if password_needs_rehash(user.password_hash):
        async with atomic(db):
            user.password_hash = hash_password(password)
        logger.info("Upgraded password hash cost for user %s", user.id)
    return user


async def authenticate_user(db: AsyncSession, payload: UserLogin) -> Tuple[dict, dict]:
    """
    Authenticate a user by email/password and return a token pair and user dict.
    """
    user = await verify_credentials(db, payload.email, payload.password)
    tokens = create_access_refresh_tokens(str(user.id), user.role)
    return tokens, sanitize_user(user)


async def refresh_tokens(db: AsyncSession, refresh_token: str) -> dict:
    """
    Issue a new access/refresh token pair from a valid refresh token.
    The role is re-read from the database, not copied from the old token.
    """
    try:
        claims = verify_token(refresh_token, expected_token_type="refresh")
        user = await db.get(User, int(claims.get("sub")))
    except (JWTError, TypeError, ValueError):
        raise http_unauthorized("Invalid or expired refresh token.")
    if not user or user.is_deleted:
        raise http_unauthorized("Invalid or expired refresh token.")
    return create_access_refresh_tokens(str(user.id), user.role)


async def create_user(db: AsyncSession, payload: UserCreate) -> User:
    valid, message = validate_password_strength(payload.password, email=payload.email)
    if not valid:
        raise ValidationError(message)
    if await get_user_by_email(db, payload.email):
        raise ConflictError("Email already in use.")
    await SectorService.get_sector(db, payload.sectorId)

    async with atomic(db):
        user = User(
            name=payload.name.strip(),
            email=payload.email.lower(),
            password_hash=hash_password(payload.password),
            role=payload.role,
            sector_id=payload.sectorId,
        )
        db.add(user)
    logger.info("User %s created with role %s", user.id, user.role)
    res = await db.execute(select(User).where(User.id == user.id).execution_options(populate_existing=True))
    return res.scalar_one()


async def list_users(db: AsyncSession, role: Optional[str] = None) -> List[User]:
    where_clause = [User.deleted_at.is_(None)]
    if role:
        where_clause.append(User.role == role)
    res = await db.execute(select(User).where(and_(*where_clause)).order_by(User.name, User.id))
    return list(res.scalars().all())


async def seed_admin(db: AsyncSession) -> Optional[User]:
    """
    Create the bootstrap admin and its sector when no admin exists yet.
    """
    settings = get_settings()
    res = await db.execute(select(func.count(User.id)).where(User.role == ADMIN))
    if res.scalar_one():
        return None

    async with atomic(db):
        sector = await SectorService.find_by_name(db, settings.ADMIN_SECTOR_NAME)
        if sector is None:
            sector = Sector(name=settings.ADMIN_SECTOR_NAME)
            db.add(sector)
            await db.flush()
        admin = User(
            name=settings.ADMIN_NAME,
            email=settings.ADMIN_EMAIL.lower(),
            password_hash=hash_password(settings.ADMIN_PASSWORD),
            role=ADMIN,
            sector_id=sector.id,
        )
        db.add(admin)
    logger.info("Seeded bootstrap admin %s", settings.ADMIN_EMAIL)
    return admin
