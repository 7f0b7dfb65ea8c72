from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from apps.sectors.schemas import SectorCreate, SectorOut, SectorUpdate
from apps.sectors.service import SectorService
from constants.roles import ADMIN
from models.base import get_db
from security.auth_backend import get_current_user, require_roles


router = APIRouter(prefix="/api/v1/sectors", tags=["Sectors"])


@router.get("", response_model=List[SectorOut], dependencies=[Depends(get_current_user)])
async def list_sectors(db: AsyncSession = Depends(get_db)):
    sectors = await SectorService.list_sectors(db)
    return [SectorOut.model_validate(s) for s in sectors]


@router.post(
    "",
    response_model=SectorOut,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_roles(ADMIN))],
)
async def create_sector(payload: SectorCreate, db: AsyncSession = Depends(get_db)):
    sector = await SectorService.create_sector(db, payload)
    return SectorOut.model_validate(sector)


@router.patch("/{sector_id}", response_model=SectorOut, dependencies=[Depends(require_roles(ADMIN))])
async def update_sector(sector_id: int, payload: SectorUpdate, db: AsyncSession = Depends(get_db)):
    sector = await SectorService.update_sector(db, sector_id, payload)
    return SectorOut.model_validate(sector)


@router.delete("/{sector_id}", status_code=status.HTTP_204_NO_CONTENT, dependencies=[Depends(require_roles(ADMIN))])
async def delete_sector(sector_id: int, db: AsyncSession = Depends(get_db)):
    await SectorService.delete_sector(db, sector_id)
    return None
