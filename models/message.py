from datetime import datetime

from sqlalchemy import BigInteger, DateTime, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from core.db import Base, BigIntPK, utcnow

MAX_MESSAGE_LENGTH = 2000


class Message(Base):
    """Chat message inside a match."""

    __tablename__ = "messages"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    match_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("matches.id", ondelete="CASCADE"), nullable=False)
    sender_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    body: Mapped[str] = mapped_column(String(MAX_MESSAGE_LENGTH), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    read_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    __table_args__ = (
        # Conversation replay order; id breaks timestamp ties
        Index("idx_messages_match_order", "match_id", "created_at", "id"),
    )

    def __repr__(self) -> str:
        return f"<Message(id={self.id}, match_id={self.match_id}, sender_id={self.sender_id})>"
