from datetime import datetime

from sqlalchemy import BigInteger, CheckConstraint, DateTime, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from core.db import Base, BigIntPK, utcnow


class Like(Base):
    """Directed statement of interest from one account toward another."""

    __tablename__ = "likes"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    from_user: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    to_user: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("from_user", "to_user", name="uq_likes_pair"),
        CheckConstraint("from_user <> to_user", name="chk_like_no_self"),
        # Reciprocity lookups go by target
        Index("idx_likes_to_user", "to_user"),
    )

    def __repr__(self) -> str:
        return f"<Like(id={self.id}, from_user={self.from_user}, to_user={self.to_user})>"
