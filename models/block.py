"""Block model - read-side exclusion filter for discovery."""

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from core.db import Base, BigIntPK, utcnow


class Block(Base):
    """Directed block edge blocker -> target."""

    __tablename__ = "blocks"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    blocker_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    target_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("blocker_id", "target_id", name="uq_blocks_pair"),
        Index("idx_blocks_target", "target_id"),
    )

    def __repr__(self) -> str:
        return f"<Block(id={self.id}, blocker={self.blocker_id}, target={self.target_id})>"
