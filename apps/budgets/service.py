import logging
from datetime import datetime, timezone
from typing import List

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from apps.budgets.schemas import BudgetCreate, BudgetUpdate
from apps.requests.service import RequestService
from common.exceptions import NotFoundError
from common.transactions import atomic
from models.item_budget import ItemBudget
from models.supplier import Supplier
from models.user import User
from security.auth_backend import ensure_admin

logger = logging.getLogger(__name__)


class BudgetService:
    """
    Supplier quotations per request item. Quoting never changes request or item status.
    """

    @staticmethod
    async def get_budget(db: AsyncSession, budget_id: int) -> ItemBudget:
        res = await db.execute(
            select(ItemBudget)
            .where(and_(ItemBudget.id == budget_id, ItemBudget.deleted_at.is_(None)))
            .execution_options(populate_existing=True)
        )
        budget = res.scalar_one_or_none()
        if not budget:
            raise NotFoundError("Budget not found.")
        return budget

    @staticmethod
    async def create_budget(
        db: AsyncSession, admin: User, request_id: int, item_id: int, payload: BudgetCreate
    ) -> ItemBudget:
        ensure_admin(admin)
        item = await RequestService.load_item(db, item_id, request_id)
        supplier = await db.get(Supplier, payload.supplierId)
        if not supplier or supplier.is_deleted:
            raise NotFoundError("Supplier not found.")

        async with atomic(db):
            budget = ItemBudget(
                purchase_request_id=item.purchase_request_id,
                request_item_id=item.id,
                supplier_id=supplier.id,
                unit_price=payload.unitPrice,
            )
            db.add(budget)
        logger.info("Budget %s added to item %s (supplier %s)", budget.id, item.id, supplier.id)
        return await BudgetService.get_budget(db, budget.id)

    @staticmethod
    async def list_request_budgets(db: AsyncSession, admin: User, request_id: int) -> List[ItemBudget]:
        ensure_admin(admin)
        await RequestService.load_request(db, request_id)
        res = await db.execute(
            select(ItemBudget)
            .where(and_(ItemBudget.purchase_request_id == request_id, ItemBudget.deleted_at.is_(None)))
            .order_by(ItemBudget.request_item_id, ItemBudget.unit_price)
        )
        return list(res.scalars().all())

    @staticmethod
    async def update_budget(db: AsyncSession, admin: User, budget_id: int, payload: BudgetUpdate) -> ItemBudget:
        ensure_admin(admin)
        async with atomic(db):
            budget = await BudgetService.get_budget(db, budget_id)
            budget.unit_price = payload.unitPrice
        return await BudgetService.get_budget(db, budget_id)

    @staticmethod
    async def delete_budget(db: AsyncSession, admin: User, budget_id: int) -> None:
        ensure_admin(admin)
        async with atomic(db):
            budget = await BudgetService.get_budget(db, budget_id)
            budget.deleted_at = datetime.now(timezone.utc)
        logger.info("Budget %s deleted by %s", budget_id, admin.id)
