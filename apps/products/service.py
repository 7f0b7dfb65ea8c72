from datetime import datetime, timezone
from typing import List, Optional, Tuple

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from apps.products.schemas import ProductCreate, ProductUpdate
from apps.sectors.service import SectorService
from common.exceptions import NotFoundError
from common.pagination import paginate_select
from common.transactions import atomic
from constants.statuses import PRODUCT_AVAILABLE
from models.product import Product
from models.user import User
from security.auth_backend import is_admin


class ProductService:
    """
    Product catalogue. Requesters only ever see available products of their own sector.
    """

    @staticmethod
    def _visibility(user: User) -> list:
        where_clause = [Product.deleted_at.is_(None)]
        if not is_admin(user):
            where_clause.append(Product.sector_id == user.sector_id)
            where_clause.append(Product.status == PRODUCT_AVAILABLE)
        return where_clause

    @staticmethod
    async def get_product(db: AsyncSession, user: User, product_id: int) -> Product:
        where_clause = ProductService._visibility(user) + [Product.id == product_id]
        res = await db.execute(
            select(Product).where(and_(*where_clause)).execution_options(populate_existing=True)
        )
        product = res.scalar_one_or_none()
        if not product:
            raise NotFoundError("Product not found.")
        return product

    @staticmethod
    async def list_products(
        db: AsyncSession,
        user: User,
        page: int,
        size: int,
        search: Optional[str] = None,
        sector_id: Optional[int] = None,
        status_filter: Optional[str] = None,
    ) -> Tuple[List[Product], dict]:
        where_clause = ProductService._visibility(user)
        if search:
            where_clause.append(Product.name.ilike(f"%{search.strip()}%"))
        if sector_id:
            where_clause.append(Product.sector_id == sector_id)
        if status_filter:
            where_clause.append(Product.status == status_filter)
        stmt = select(Product).where(and_(*where_clause)).order_by(Product.name, Product.id)
        return await paginate_select(db, stmt, page, size)

    @staticmethod
    async def create_product(db: AsyncSession, payload: ProductCreate) -> Product:
        await SectorService.get_sector(db, payload.sectorId)
        async with atomic(db):
            product = Product(
                name=payload.name,
                description=payload.description,
                unit=payload.unit,
                sector_id=payload.sectorId,
                status=payload.status,
            )
            db.add(product)
        return await ProductService.get_product_for_admin(db, product.id)

    @staticmethod
    async def get_product_for_admin(db: AsyncSession, product_id: int) -> Product:
        res = await db.execute(
            select(Product)
            .where(and_(Product.id == product_id, Product.deleted_at.is_(None)))
            .execution_options(populate_existing=True)
        )
        product = res.scalar_one_or_none()
        if not product:
            raise NotFoundError("Product not found.")
        return product

    @staticmethod
    async def update_product(db: AsyncSession, product_id: int, payload: ProductUpdate) -> Product:
        product = await ProductService.get_product_for_admin(db, product_id)
        data = payload.model_dump(exclude_unset=True)
        if data.get("sectorId") is not None:
            await SectorService.get_sector(db, data["sectorId"])
        async with atomic(db):
            if "name" in data and data["name"] is not None:
                product.name = data["name"]
            if "description" in data:
                product.description = data["description"]
            if "unit" in data and data["unit"] is not None:
                product.unit = data["unit"]
            if data.get("sectorId") is not None:
                product.sector_id = data["sectorId"]
            if data.get("status") is not None:
                product.status = data["status"]
        return await ProductService.get_product_for_admin(db, product_id)

    @staticmethod
    async def delete_product(db: AsyncSession, product_id: int) -> None:
        product = await ProductService.get_product_for_admin(db, product_id)
        async with atomic(db):
            product.deleted_at = datetime.now(timezone.utc)
