from datetime import datetime, timezone
from typing import List, Optional, Tuple

from sqlalchemy import and_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from apps.suppliers.schemas import SupplierCreate, SupplierUpdate
from common.exceptions import NotFoundError
from common.pagination import paginate_select
from common.transactions import atomic
from models.supplier import Supplier


class SupplierService:
    @staticmethod
    async def get_supplier(db: AsyncSession, supplier_id: int) -> Supplier:
        res = await db.execute(
            select(Supplier)
            .where(and_(Supplier.id == supplier_id, Supplier.deleted_at.is_(None)))
            .execution_options(populate_existing=True)
        )
        supplier = res.scalar_one_or_none()
        if not supplier:
            raise NotFoundError("Supplier not found.")
        return supplier

    @staticmethod
    async def list_suppliers(
        db: AsyncSession, page: int, size: int, search: Optional[str] = None
    ) -> Tuple[List[Supplier], dict]:
        where_clause = [Supplier.deleted_at.is_(None)]
        if search:
            like = f"%{search.strip()}%"
            where_clause.append(or_(Supplier.name.ilike(like), Supplier.cnpj.ilike(like)))
        stmt = select(Supplier).where(and_(*where_clause)).order_by(Supplier.name, Supplier.id)
        return await paginate_select(db, stmt, page, size)

    @staticmethod
    async def create_supplier(db: AsyncSession, payload: SupplierCreate) -> Supplier:
        async with atomic(db):
            supplier = Supplier(**payload.model_dump())
            db.add(supplier)
        return await SupplierService.get_supplier(db, supplier.id)

    @staticmethod
    async def update_supplier(db: AsyncSession, supplier_id: int, payload: SupplierUpdate) -> Supplier:
        supplier = await SupplierService.get_supplier(db, supplier_id)
        async with atomic(db):
            for key, value in payload.model_dump(exclude_unset=True).items():
                setattr(supplier, key, value)
        return await SupplierService.get_supplier(db, supplier_id)

    @staticmethod
    async def delete_supplier(db: AsyncSession, supplier_id: int) -> None:
        # Soft delete keeps past budgets and receipts pointing at a real row
        supplier = await SupplierService.get_supplier(db, supplier_id)
        async with atomic(db):
            supplier.deleted_at = datetime.now(timezone.utc)
