from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from apps.products.schemas import ProductCreate, ProductOut, ProductUpdate
from apps.products.service import ProductService
from common.responses import paginated_response
from constants.roles import ADMIN
from models.base import get_db
from models.user import User
from security.auth_backend import get_current_user, require_roles


router = APIRouter(prefix="/api/v1/products", tags=["Products"])


@router.get("")
async def list_products(
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    search: Optional[str] = Query(default=None),
    sectorId: Optional[int] = Query(default=None),
    status_filter: Optional[str] = Query(default=None, alias="status"),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    items, pagination = await ProductService.list_products(
        db, current_user, page, size, search=search, sector_id=sectorId, status_filter=status_filter
    )
    return paginated_response([ProductOut.model_validate(p) for p in items], pagination)


@router.post(
    "",
    response_model=ProductOut,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_roles(ADMIN))],
)
async def create_product(payload: ProductCreate, db: AsyncSession = Depends(get_db)):
    product = await ProductService.create_product(db, payload)
    return ProductOut.model_validate(product)


@router.get("/{product_id}", response_model=ProductOut)
async def get_product(
    product_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    product = await ProductService.get_product(db, current_user, product_id)
    return ProductOut.model_validate(product)


@router.patch("/{product_id}", response_model=ProductOut, dependencies=[Depends(require_roles(ADMIN))])
async def update_product(product_id: int, payload: ProductUpdate, db: AsyncSession = Depends(get_db)):
    product = await ProductService.update_product(db, product_id, payload)
    return ProductOut.model_validate(product)


@router.delete(
    "/{product_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_roles(ADMIN))],
)
async def delete_product(product_id: int, db: AsyncSession = Depends(get_db)):
    await ProductService.delete_product(db, product_id)
    return None
