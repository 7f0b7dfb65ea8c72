from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from apps.suppliers.schemas import SupplierCreate, SupplierOut, SupplierUpdate
from apps.suppliers.service import SupplierService
from common.responses import paginated_response
from constants.roles import ADMIN
from models.base import get_db
from security.auth_backend import get_current_user, require_roles


router = APIRouter(prefix="/api/v1/suppliers", tags=["Suppliers"])


@router.get("", dependencies=[Depends(get_current_user)])
async def list_suppliers(
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    search: Optional[str] = Query(default=None),
    db: AsyncSession = Depends(get_db),
):
    items, pagination = await SupplierService.list_suppliers(db, page, size, search)
    return paginated_response([SupplierOut.model_validate(s) for s in items], pagination)


@router.post(
    "",
    response_model=SupplierOut,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_roles(ADMIN))],
)
async def create_supplier(payload: SupplierCreate, db: AsyncSession = Depends(get_db)):
    supplier = await SupplierService.create_supplier(db, payload)
    return SupplierOut.model_validate(supplier)


@router.patch("/{supplier_id}", response_model=SupplierOut, dependencies=[Depends(require_roles(ADMIN))])
async def update_supplier(supplier_id: int, payload: SupplierUpdate, db: AsyncSession = Depends(get_db)):
    supplier = await SupplierService.update_supplier(db, supplier_id, payload)
    return SupplierOut.model_validate(supplier)


@router.delete(
    "/{supplier_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_roles(ADMIN))],
)
async def delete_supplier(supplier_id: int, db: AsyncSession = Depends(get_db)):
    await SupplierService.delete_supplier(db, supplier_id)
    return None
