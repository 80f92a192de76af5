from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.auth.dependencies import require_auth, require_user
from app.codes.dependencies import get_code_service
from app.codes.enums import CodeType
from app.codes.exceptions import (
    CodeNotFoundException,
    CodePermissionDeniedException,
    CodeQuotaExceededException,
)
from app.codes.schemas import (
    AccessCodeRead,
    AccessCodeToggle,
    CodeCreateRequest,
    CodeValidation,
    InviteCodeRead,
    UserCodes,
)
from app.codes.services import CodeService
from app.commons.schemas import SuccessResponse
from app.users.models import User

router = APIRouter()


@router.get("", response_model=UserCodes)
async def list_my_codes(user: User = Depends(require_user), service: CodeService = Depends(get_code_service)):
    return await service.list_user_codes(user.id)


@router.post("", response_model=InviteCodeRead | AccessCodeRead, status_code=status.HTTP_201_CREATED)
async def create_code(
    code_in: CodeCreateRequest,
    user: User = Depends(require_auth),
    service: CodeService = Depends(get_code_service),
):
    try:
        return await service.create_code(user, code_in)
    except CodePermissionDeniedException as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except CodeQuotaExceededException as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("/validate", response_model=CodeValidation)
async def validate_code(
    type: CodeType = Query(),
    code: str = Query(min_length=1),
    service: CodeService = Depends(get_code_service),
):
    return await service.validate(type, code)


@router.patch("/access/{code_id}", response_model=AccessCodeRead)
async def toggle_access_code(
    code_id: int,
    toggle_in: AccessCodeToggle,
    user: User = Depends(require_user),
    service: CodeService = Depends(get_code_service),
):
    try:
        return await service.set_access_code_active(code_id, user, toggle_in.is_active)
    except CodeNotFoundException as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except CodePermissionDeniedException as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))


@router.delete("/{code_type}/{code_id}", response_model=SuccessResponse)
async def delete_code(
    code_type: CodeType,
    code_id: int,
    user: User = Depends(require_user),
    service: CodeService = Depends(get_code_service),
):
    try:
        await service.delete_code(code_type, code_id, user)
        return SuccessResponse(message="Code deleted.")
    except CodeNotFoundException as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except CodePermissionDeniedException as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
