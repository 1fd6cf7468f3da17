from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from clinic.api.deps import get_current_user
from clinic.api.v1.messages.schemas import (
    InboxResponse,
    MessageCreate,
    MessageEnvelope,
    MessageListResponse,
    MessageResponse,
    ReadAllResponse,
    UnreadCountResponse,
)
from clinic.api.v1.schemas import ApiResponse, page_meta, page_offset
from clinic.core.config import settings
from clinic.domain.auth.models import User
from clinic.domain.messages.service import MessageService
from clinic.infrastructure.database import get_db

router = APIRouter(prefix="/messages", tags=["Messages"])

INBOX_PAGE_SIZE = 20
CONVERSATION_PAGE_SIZE = 50


@router.post("", response_model=MessageEnvelope, status_code=status.HTTP_201_CREATED)
async def send_message(
    message_in: MessageCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    service = MessageService(db)
    message = await service.send_message(current_user, message_in.model_dump())
    return {"message": "Message sent successfully", "data": MessageResponse.model_validate(message)}


@router.get("", response_model=InboxResponse)
@router.get("/inbox", response_model=InboxResponse)
async def get_inbox(
    page: int = Query(1, ge=1),
    limit: int = Query(INBOX_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    unread_only: bool = Query(False, alias="unreadOnly"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Messages received by the current user, newest first"""
    service = MessageService(db)
    messages, total, unread = await service.inbox(
        current_user, skip=page_offset(page, limit), limit=limit, unread_only=unread_only
    )
    return {
        "messages": [MessageResponse.model_validate(m) for m in messages],
        "unread_count": unread,
        **page_meta(total, page, limit),
    }


@router.get("/sent", response_model=MessageListResponse)
async def get_sent_messages(
    page: int = Query(1, ge=1),
    limit: int = Query(INBOX_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    service = MessageService(db)
    messages, total = await service.sent(current_user, skip=page_offset(page, limit), limit=limit)
    return {
        "messages": [MessageResponse.model_validate(m) for m in messages],
        **page_meta(total, page, limit),
    }


@router.get("/unread-count", response_model=UnreadCountResponse)
async def get_unread_count(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    service = MessageService(db)
    return {"unread_count": await service.unread_count(current_user)}


@router.get("/conversation/{user_id}", response_model=MessageListResponse)
async def get_conversation(
    user_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(CONVERSATION_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Thread with one user, oldest first"""
    service = MessageService(db)
    messages, total = await service.conversation(
        current_user, user_id, skip=page_offset(page, limit), limit=limit
    )
    return {
        "messages": [MessageResponse.model_validate(m) for m in messages],
        **page_meta(total, page, limit),
    }


@router.patch("/read-all", response_model=ReadAllResponse)
async def mark_all_read(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    service = MessageService(db)
    updated = await service.mark_all_read(current_user)
    return {"message": "All messages marked as read", "updated": updated}


@router.patch("/{message_id}/read", response_model=MessageEnvelope)
async def mark_read(
    message_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    service = MessageService(db)
    message = await service.mark_read(current_user, message_id)
    return {"message": "Message marked as read", "data": MessageResponse.model_validate(message)}


@router.delete("/{message_id}", response_model=ApiResponse)
async def delete_message(
    message_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    service = MessageService(db)
    await service.delete_message(current_user, message_id)
    return {"message": "Message deleted successfully"}
