from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import JSON, BigInteger, CheckConstraint, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.db import Base, utcnow

if TYPE_CHECKING:
    from models.user import User

INTENTS = ("dating", "friendship", "networking", "casual")
MAX_PHOTOS = 6


class Profile(Base):
    """Dating profile, at most one per account."""

    __tablename__ = "profiles"

    user_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True, nullable=False
    )
    display_name: Mapped[str | None] = mapped_column(String(64), nullable=True)
    bio: Mapped[str] = mapped_column(Text, nullable=False, default="")
    photos: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    faculty: Mapped[str | None] = mapped_column(String(128), nullable=True)
    year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    pronouns: Mapped[str | None] = mapped_column(String(32), nullable=True)
    gender: Mapped[str | None] = mapped_column(String(32), nullable=True)
    intent: Mapped[str | None] = mapped_column(String(16), nullable=True)  # dating|friendship|networking|casual

    # Preferences (stored, not used for discovery filtering)
    age_min: Mapped[int | None] = mapped_column(Integer, nullable=True)
    age_max: Mapped[int | None] = mapped_column(Integer, nullable=True)
    gender_preference: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    max_distance: Mapped[int | None] = mapped_column(Integer, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    # Relationships
    user: Mapped["User"] = relationship("User", back_populates="profile")

    __table_args__ = (
        CheckConstraint(
            "intent IS NULL OR intent IN ('dating','friendship','networking','casual')", name="chk_profile_intent"
        ),
        CheckConstraint(
            "age_min IS NULL OR age_max IS NULL OR age_min <= age_max", name="chk_profile_age_range"
        ),
        # Discovery feed orders by newest profile first
        Index("idx_profiles_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Profile(user_id={self.user_id}, display_name={self.display_name})>"
