from typing import Any, List
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from homeease.db.database import get_db
from homeease.db.db_models import City, ServiceCategory
from homeease.models.service import CityResponse, CategoryResponse

router = APIRouter()


@router.get("", response_model=List[CityResponse])
async def list_cities(db: AsyncSession = Depends(get_db)) -> Any:
    """Cities offered on signup and search forms."""
    result = await db.execute(select(City).order_by(City.name))
    return result.scalars().all()


@router.get("/categories", response_model=List[CategoryResponse])
async def list_categories(db: AsyncSession = Depends(get_db)) -> Any:
    result = await db.execute(select(ServiceCategory).order_by(ServiceCategory.name))
    return result.scalars().all()
