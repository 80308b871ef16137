"""Message model definitions."""

from sqlalchemy import Column, Index, String, Text
from taskboard.models.base import Base


class Message(Base):
    """Represents a direct message between two users."""
    __tablename__ = "messages"
    __table_args__ = (
        Index("idx_messages_participants", "senderId", "receiverId"),
        Index("idx_messages_timestamp", "timestamp"),
    )

    id = Column(String(255), primary_key=True)
    sender_id = Column("senderId", String(255), nullable=False)
    receiver_id = Column("receiverId", String(255), nullable=False)
    content = Column(Text, nullable=False)
    timestamp = Column(String(64), nullable=False)
