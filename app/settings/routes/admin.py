from fastapi import APIRouter, Depends, HTTPException, status

from app.auth.dependencies import require_admin
from app.settings.dependencies import get_system_settings_service
from app.settings.exceptions import InvalidSettingValueException, SystemSettingNotFoundException
from app.settings.schemas import SystemSettingRead, SystemSettingsBulkUpdate, SystemSettingUpsert
from app.settings.services import SystemSettingsService

router = APIRouter(dependencies=[Depends(require_admin)])


@router.get("", response_model=list[SystemSettingRead])
async def list_system_settings(service: SystemSettingsService = Depends(get_system_settings_service)):
    return await service.list_settings()


@router.post("", response_model=SystemSettingRead)
async def upsert_system_setting(
    setting_in: SystemSettingUpsert,
    service: SystemSettingsService = Depends(get_system_settings_service),
):
    try:
        return await service.upsert_setting(setting_in)
    except InvalidSettingValueException as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.patch("", response_model=list[SystemSettingRead])
async def update_system_settings(
    update_in: SystemSettingsBulkUpdate,
    service: SystemSettingsService = Depends(get_system_settings_service),
):
    try:
        return await service.update_values(update_in.values)
    except SystemSettingNotFoundException as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except InvalidSettingValueException as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
