from fastapi import APIRouter, Depends, HTTPException, status

from app.auth.dependencies import require_admin
from app.codes.dependencies import get_code_service
from app.codes.enums import CodeType
from app.codes.exceptions import CodeNotFoundException, CodeQuotaExceededException
from app.codes.schemas import AccessCodeRead, AccessCodeToggle, CodeCreateRequest, InviteCodeRead, UserCodes
from app.codes.services import CodeService
from app.commons.schemas import SuccessResponse
from app.users.models import User

router = APIRouter()


@router.get("", response_model=UserCodes)
async def list_all_codes(_: User = Depends(require_admin), service: CodeService = Depends(get_code_service)):
    return await service.list_all_codes()


@router.post("", response_model=InviteCodeRead | AccessCodeRead, status_code=status.HTTP_201_CREATED)
async def create_code(
    code_in: CodeCreateRequest,
    admin: User = Depends(require_admin),
    service: CodeService = Depends(get_code_service),
):
    try:
        return await service.create_code(admin, code_in)
    except CodeQuotaExceededException as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.patch("/access/{code_id}", response_model=AccessCodeRead)
async def toggle_access_code(
    code_id: int,
    toggle_in: AccessCodeToggle,
    admin: User = Depends(require_admin),
    service: CodeService = Depends(get_code_service),
):
    try:
        return await service.set_access_code_active(code_id, admin, toggle_in.is_active)
    except CodeNotFoundException as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.delete("/{code_type}/{code_id}", response_model=SuccessResponse)
async def delete_code(
    code_type: CodeType,
    code_id: int,
    admin: User = Depends(require_admin),
    service: CodeService = Depends(get_code_service),
):
    try:
        await service.delete_code(code_type, code_id, admin)
        return SuccessResponse(message="Code deleted.")
    except CodeNotFoundException as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
