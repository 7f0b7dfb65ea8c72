from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from apps.sectors.schemas import SectorCreate, SectorUpdate
from common.exceptions import ConflictError, NotFoundError
from common.transactions import atomic
from models.product import Product
from models.sector import Sector
from models.user import User


class SectorService:
    @staticmethod
    async def find_by_name(db: AsyncSession, name: str) -> Optional[Sector]:
        res = await db.execute(select(Sector).where(func.lower(Sector.name) == name.lower()))
        return res.scalar_one_or_none()

    @staticmethod
    async def get_sector(db: AsyncSession, sector_id: int) -> Sector:
        res = await db.execute(
            select(Sector)
            .where(and_(Sector.id == sector_id, Sector.deleted_at.is_(None)))
            .execution_options(populate_existing=True)
        )
        sector = res.scalar_one_or_none()
        if not sector:
            raise NotFoundError("Sector not found.")
        return sector

    @staticmethod
    async def list_sectors(db: AsyncSession) -> List[Sector]:
        res = await db.execute(select(Sector).where(Sector.deleted_at.is_(None)).order_by(Sector.name))
        return list(res.scalars().all())

    @staticmethod
    async def create_sector(db: AsyncSession, payload: SectorCreate) -> Sector:
        # Names stay reserved after a soft delete (unique column)
        if await SectorService.find_by_name(db, payload.name):
            raise ConflictError("Sector name already exists.")
        async with atomic(db):
            sector = Sector(name=payload.name)
            db.add(sector)
        return await SectorService.get_sector(db, sector.id)

    @staticmethod
    async def update_sector(db: AsyncSession, sector_id: int, payload: SectorUpdate) -> Sector:
        sector = await SectorService.get_sector(db, sector_id)
        existing = await SectorService.find_by_name(db, payload.name)
        if existing and existing.id != sector.id:
            raise ConflictError("Sector name already exists.")
        async with atomic(db):
            sector.name = payload.name
        return await SectorService.get_sector(db, sector_id)

    @staticmethod
    async def delete_sector(db: AsyncSession, sector_id: int) -> None:
        sector = await SectorService.get_sector(db, sector_id)
        users = await db.execute(
            select(func.count(User.id)).where(and_(User.sector_id == sector.id, User.deleted_at.is_(None)))
        )
        products = await db.execute(
            select(func.count(Product.id)).where(and_(Product.sector_id == sector.id, Product.deleted_at.is_(None)))
        )
        if users.scalar_one() or products.scalar_one():
            raise ConflictError("Sector still has users or products assigned.")
        async with atomic(db):
            sector.deleted_at = datetime.now(timezone.utc)
