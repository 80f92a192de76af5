from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.catalog.factories import build_catalog_service
from app.catalog.services import CatalogService
from app.commons.dependencies import get_db


async def get_catalog_service(db: AsyncSession = Depends(get_db)) -> CatalogService:
    return await build_catalog_service(db)
