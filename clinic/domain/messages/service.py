from typing import List, Dict, Any, Tuple
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from clinic.core.exceptions import AuthorizationError, NotFoundError
from clinic.domain.auth.models import User
from clinic.domain.auth.repository import UserRepository
from clinic.domain.messages.models import Message
from clinic.domain.messages.repository import MessageRepository


class MessageService:
    """Service layer for the user-to-user inbox"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.message_repo = MessageRepository(db)
        self.user_repo = UserRepository(db)

    async def send_message(self, sender: User, data: Dict[str, Any]) -> Message:
        receiver = await self.user_repo.get_by_id(data["receiver_id"])
        if not receiver:
            raise NotFoundError("Receiver not found")

        message_data = {
            "sender_id": sender.id,
            "receiver_id": receiver.id,
            "subject": data["subject"],
            "message": data["message"],
        }
        if data.get("message_type"):
            message_data["message_type"] = data["message_type"]
        if data.get("priority"):
            message_data["priority"] = data["priority"]

        message = await self.message_repo.create(message_data)
        logger.info(f"Message {message.id} sent from {sender.id} to {receiver.id}")
        return message

    async def inbox(
        self,
        user: User,
        skip: int = 0,
        limit: int = 20,
        unread_only: bool = False
    ) -> Tuple[List[Message], int, int]:
        """Received messages, their total and the caller's unread count"""
        messages, total = await self.message_repo.list_received(
            user.id, skip=skip, limit=limit, unread_only=unread_only
        )
        unread = await self.message_repo.count_unread(user.id)
        return messages, total, unread

    async def sent(self, user: User, skip: int = 0, limit: int = 20) -> Tuple[List[Message], int]:
        return await self.message_repo.list_sent(user.id, skip=skip, limit=limit)

    async def conversation(
        self,
        user: User,
        other_user_id: str,
        skip: int = 0,
        limit: int = 50
    ) -> Tuple[List[Message], int]:
        """One page of the thread with another user, oldest first"""
        other = await self.user_repo.get_by_id(other_user_id)
        if not other:
            raise NotFoundError("User not found")

        messages, total = await self.message_repo.list_conversation(
            user.id, other.id, skip=skip, limit=limit
        )
        messages.reverse()
        return messages, total

    async def mark_read(self, user: User, message_id: str) -> Message:
        message = await self.message_repo.get_by_id(message_id)
        if not message:
            raise NotFoundError("Message not found")
        if message.receiver_id != user.id:
            raise AuthorizationError("You can only mark messages sent to you as read")
        return await self.message_repo.mark_read(message)

    async def mark_all_read(self, user: User) -> int:
        updated = await self.message_repo.mark_all_read(user.id)
        logger.info(f"Marked {updated} message(s) read for user {user.id}")
        return updated

    async def delete_message(self, user: User, message_id: str) -> None:
        message = await self.message_repo.get_by_id(message_id)
        if not message:
            raise NotFoundError("Message not found")
        if message.sender_id != user.id:
            raise AuthorizationError("You can only delete messages you sent")
        await self.message_repo.delete(message)
        logger.info(f"Message {message_id} deleted by sender {user.id}")

    async def unread_count(self, user: User) -> int:
        return await self.message_repo.count_unread(user.id)
