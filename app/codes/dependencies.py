from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.codes.factories import build_code_service
from app.codes.services import CodeService
from app.commons.dependencies import get_db


async def get_code_service(db: AsyncSession = Depends(get_db)) -> CodeService:
    return await build_code_service(db)
