from datetime import datetime

from sqlalchemy import BigInteger, CheckConstraint, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from core.db import Base, BigIntPK, utcnow


class Match(Base):
    """Symmetric match between two accounts who liked each other."""

    __tablename__ = "matches"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    # Canonical ordering: user_a = min(pair), user_b = max(pair)
    user_a: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_b: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    last_message_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    __table_args__ = (
        # One row per unordered pair; concurrent opposite-direction likes collide here
        UniqueConstraint("user_a", "user_b", name="uq_match_pair"),
        CheckConstraint("user_a < user_b", name="chk_match_ordered_pair"),
    )

    def has_member(self, user_id: int) -> bool:
        return user_id in (self.user_a, self.user_b)

    def __repr__(self) -> str:
        return f"<Match(id={self.id}, user_a={self.user_a}, user_b={self.user_b})>"
