from datetime import datetime
from typing import Optional, List

from pydantic import Field

from clinic.api.v1.schemas import ApiResponse, CamelModel, PaginatedResponse, UserSummary
from clinic.domain.messages.models import MessagePriority, MessageType


class MessageCreate(CamelModel):
    receiver_id: str
    subject: str = Field(..., min_length=1, max_length=200)
    message: str = Field(..., min_length=1, max_length=2000)
    message_type: MessageType = MessageType.GENERAL
    priority: MessagePriority = MessagePriority.NORMAL


class MessageResponse(CamelModel):
    id: str
    sender_id: str
    receiver_id: str
    sender: Optional[UserSummary] = None
    receiver: Optional[UserSummary] = None
    subject: str
    message: str
    read: bool = False
    read_at: Optional[datetime] = None
    message_type: MessageType
    priority: MessagePriority
    created_at: Optional[datetime] = None


class MessageEnvelope(ApiResponse):
    data: MessageResponse


class MessageListResponse(PaginatedResponse):
    messages: List[MessageResponse]


class InboxResponse(MessageListResponse):
    unread_count: int


class UnreadCountResponse(ApiResponse):
    unread_count: int


class ReadAllResponse(ApiResponse):
    updated: int
