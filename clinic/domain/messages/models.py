from sqlalchemy import Column, String, ForeignKey, Text, Boolean, DateTime, Enum, Index
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from clinic.infrastructure.database import Base, gen_uuid, enum_values


class MessageType(str, enum.Enum):
    GENERAL = "general"
    APPOINTMENT = "appointment"
    PRESCRIPTION = "prescription"
    EMERGENCY = "emergency"


class MessagePriority(str, enum.Enum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


class Message(Base):
    __tablename__ = "messages"

    id = Column(String(36), primary_key=True, default=gen_uuid)
    sender_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    receiver_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    subject = Column(String(200), nullable=False)
    message = Column(Text, nullable=False)
    read = Column(Boolean, default=False, nullable=False)
    read_at = Column(DateTime)
    message_type = Column(
        Enum(MessageType, values_callable=enum_values, native_enum=False, length=20),
        default=MessageType.GENERAL,
    )
    priority = Column(
        Enum(MessagePriority, values_callable=enum_values, native_enum=False, length=10),
        default=MessagePriority.NORMAL,
    )

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    sender = relationship("User", foreign_keys=[sender_id])
    receiver = relationship("User", foreign_keys=[receiver_id])

    __table_args__ = (
        Index("ix_messages_sender_created", "sender_id", "created_at"),
        Index("ix_messages_receiver_created", "receiver_id", "created_at"),
        Index("ix_messages_receiver_read", "receiver_id", "read"),
    )
