from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from apps.budgets.schemas import BudgetCreate, BudgetOut, BudgetUpdate
from apps.budgets.service import BudgetService
from constants.roles import ADMIN
from models.base import get_db
from models.user import User
from security.auth_backend import require_roles


router = APIRouter(prefix="/api/v1", tags=["Budgets"])


@router.post(
    "/requests/{request_id}/items/{item_id}/budgets",
    response_model=BudgetOut,
    status_code=status.HTTP_201_CREATED,
)
async def create_budget(
    request_id: int,
    item_id: int,
    payload: BudgetCreate,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_roles(ADMIN)),
):
    budget = await BudgetService.create_budget(db, admin, request_id, item_id, payload)
    return BudgetOut.model_validate(budget)


@router.get("/requests/{request_id}/budgets", response_model=List[BudgetOut])
async def list_request_budgets(
    request_id: int,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_roles(ADMIN)),
):
    budgets = await BudgetService.list_request_budgets(db, admin, request_id)
    return [BudgetOut.model_validate(b) for b in budgets]


@router.patch("/budgets/{budget_id}", response_model=BudgetOut)
async def update_budget(
    budget_id: int,
    payload: BudgetUpdate,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_roles(ADMIN)),
):
    budget = await BudgetService.update_budget(db, admin, budget_id, payload)
    return BudgetOut.model_validate(budget)


@router.delete("/budgets/{budget_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_budget(
    budget_id: int,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_roles(ADMIN)),
):
    await BudgetService.delete_budget(db, admin, budget_id)
    return None
