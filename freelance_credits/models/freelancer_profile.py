from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, ForeignKey, Integer, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from freelance_credits.core.database import Base


class FreelancerProfile(Base):
    """Freelancer profile — holds the spendable credits balance."""

    __tablename__ = "freelancer_profiles"
    __table_args__ = (
        CheckConstraint("credits_balance >= 0", name="ck_freelancer_profiles_balance_non_negative"),
    )

    freelancer_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False, unique=True
    )
    credits_balance: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    total_credits_purchased: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default="0"
    )
    credits_used: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    signup_bonus_claimed: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default="false"
    )
    created_at: Mapped[datetime] = mapped_column(server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), onupdate=func.now()
    )

    user: Mapped["User"] = relationship(back_populates="freelancer_profile")

    def __repr__(self) -> str:
        return f"<FreelancerProfile user={self.user_id} balance={self.credits_balance}>"
