from typing import Optional, List, Tuple, Dict, Any
from datetime import datetime
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, func, and_, or_
from sqlalchemy.orm import selectinload

from clinic.domain.messages.models import Message
from clinic.infrastructure.database import fetch_page


def _populate_options():
    return (selectinload(Message.sender), selectinload(Message.receiver))


class MessageRepository:
    """Repository for internal messages"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, message_data: Dict[str, Any]) -> Message:
        message = Message(**message_data)
        self.db.add(message)
        await self.db.commit()
        return await self.get_by_id(message.id)

    async def get_by_id(self, message_id: str) -> Optional[Message]:
        result = await self.db.execute(
            select(Message)
            .options(*_populate_options())
            .execution_options(populate_existing=True)
            .where(Message.id == message_id)
        )
        return result.scalar_one_or_none()

    async def list_received(
        self,
        user_id: str,
        skip: int = 0,
        limit: int = 20,
        unread_only: bool = False
    ) -> Tuple[List[Message], int]:
        query = select(Message).where(Message.receiver_id == user_id)
        if unread_only:
            query = query.where(Message.read.is_(False))
        query = query.order_by(Message.created_at.desc())
        return await fetch_page(self.db, query, skip, limit, *_populate_options())

    async def list_sent(self, user_id: str, skip: int = 0, limit: int = 20) -> Tuple[List[Message], int]:
        query = (
            select(Message)
            .where(Message.sender_id == user_id)
            .order_by(Message.created_at.desc())
        )
        return await fetch_page(self.db, query, skip, limit, *_populate_options())

    async def list_conversation(
        self,
        user_id: str,
        other_user_id: str,
        skip: int = 0,
        limit: int = 50
    ) -> Tuple[List[Message], int]:
        """Messages between two users, newest first"""
        query = (
            select(Message)
            .where(
                or_(
                    and_(Message.sender_id == user_id, Message.receiver_id == other_user_id),
                    and_(Message.sender_id == other_user_id, Message.receiver_id == user_id)
                )
            )
            .order_by(Message.created_at.desc())
        )
        return await fetch_page(self.db, query, skip, limit, *_populate_options())

    async def count_unread(self, user_id: str) -> int:
        return await self.db.scalar(
            select(func.count(Message.id)).where(
                Message.receiver_id == user_id,
                Message.read.is_(False)
            )
        ) or 0

    async def mark_read(self, message: Message) -> Message:
        message.read = True
        message.read_at = datetime.utcnow()
        await self.db.commit()
        return await self.get_by_id(message.id)

    async def mark_all_read(self, user_id: str) -> int:
        result = await self.db.execute(
            update(Message)
            .where(Message.receiver_id == user_id, Message.read.is_(False))
            .values(read=True, read_at=datetime.utcnow(), updated_at=datetime.utcnow())
        )
        await self.db.commit()
        return result.rowcount or 0

    async def delete(self, message: Message) -> None:
        await self.db.delete(message)
        await self.db.commit()
