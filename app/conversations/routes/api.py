from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.auth.dependencies import require_auth
from app.commons.schemas import SuccessResponse
from app.conversations.dependencies import get_conversation_service
from app.conversations.exceptions import (
    ConversationNotFoundException,
    GuestHistoryNotAllowedException,
    MessageNotFoundException,
)
from app.conversations.schemas import (
    ConversationCreate,
    ConversationRead,
    ConversationUpdate,
    ConversationWithMessages,
    MessageCreate,
    MessageFilter,
    MessageRead,
    MessageUpdate,
)
from app.conversations.services import ConversationService
from app.users.models import User

router = APIRouter()


@router.get("", response_model=list[ConversationRead])
async def list_conversations(
    include_archived: bool = Query(default=False, alias="includeArchived"),
    user: User = Depends(require_auth),
    service: ConversationService = Depends(get_conversation_service),
):
    try:
        return await service.list_conversations(user, include_archived=include_archived)
    except GuestHistoryNotAllowedException as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))


@router.post("", response_model=ConversationRead, status_code=status.HTTP_201_CREATED)
async def create_conversation(
    conversation_in: ConversationCreate,
    user: User = Depends(require_auth),
    service: ConversationService = Depends(get_conversation_service),
):
    try:
        return await service.create_conversation(user, conversation_in)
    except GuestHistoryNotAllowedException as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))


@router.get("/search", response_model=list[MessageRead])
async def search_messages(
    q: str = Query(min_length=1),
    limit: int = Query(default=50, ge=1, le=200),
    user: User = Depends(require_auth),
    service: ConversationService = Depends(get_conversation_service),
):
    try:
        return await service.search_messages(user, q, limit=limit)
    except GuestHistoryNotAllowedException as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))


@router.get("/{conversation_id}", response_model=ConversationWithMessages)
async def get_conversation(
    conversation_id: int,
    user: User = Depends(require_auth),
    service: ConversationService = Depends(get_conversation_service),
):
    try:
        return await service.get_conversation_with_messages(user, conversation_id)
    except GuestHistoryNotAllowedException as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except ConversationNotFoundException as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.patch("/{conversation_id}", response_model=ConversationRead)
async def update_conversation(
    conversation_id: int,
    conversation_in: ConversationUpdate,
    user: User = Depends(require_auth),
    service: ConversationService = Depends(get_conversation_service),
):
    try:
        return await service.update_conversation(user, conversation_id, conversation_in)
    except GuestHistoryNotAllowedException as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except ConversationNotFoundException as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.delete("/{conversation_id}", response_model=SuccessResponse)
async def delete_conversation(
    conversation_id: int,
    user: User = Depends(require_auth),
    service: ConversationService = Depends(get_conversation_service),
):
    try:
        await service.delete_conversation(user, conversation_id)
        return SuccessResponse(message="Conversation deleted.")
    except GuestHistoryNotAllowedException as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except ConversationNotFoundException as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.get("/{conversation_id}/messages", response_model=list[MessageRead])
async def list_messages(
    conversation_id: int,
    limit: int = Query(default=50, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    include_deleted: bool = Query(default=False, alias="includeDeleted"),
    user: User = Depends(require_auth),
    service: ConversationService = Depends(get_conversation_service),
):
    filters = MessageFilter(limit=limit, offset=offset, include_deleted=include_deleted)
    try:
        return await service.list_messages(user, conversation_id, filters)
    except GuestHistoryNotAllowedException as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except ConversationNotFoundException as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.post("/{conversation_id}/messages", response_model=MessageRead, status_code=status.HTTP_201_CREATED)
async def create_message(
    conversation_id: int,
    message_in: MessageCreate,
    user: User = Depends(require_auth),
    service: ConversationService = Depends(get_conversation_service),
):
    try:
        return await service.add_message(user, conversation_id, message_in)
    except GuestHistoryNotAllowedException as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except ConversationNotFoundException as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.patch("/{conversation_id}/messages/{message_id}", response_model=MessageRead)
async def update_message(
    conversation_id: int,
    message_id: int,
    message_in: MessageUpdate,
    user: User = Depends(require_auth),
    service: ConversationService = Depends(get_conversation_service),
):
    try:
        return await service.update_message(user, conversation_id, message_id, message_in)
    except GuestHistoryNotAllowedException as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except (ConversationNotFoundException, MessageNotFoundException) as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.delete("/{conversation_id}/messages/{message_id}", response_model=SuccessResponse)
async def delete_message(
    conversation_id: int,
    message_id: int,
    user: User = Depends(require_auth),
    service: ConversationService = Depends(get_conversation_service),
):
    try:
        await service.delete_message(user, conversation_id, message_id)
        return SuccessResponse(message="Message deleted.")
    except GuestHistoryNotAllowedException as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except (ConversationNotFoundException, MessageNotFoundException) as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
