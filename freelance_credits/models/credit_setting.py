from datetime import datetime

from sqlalchemy import ForeignKey, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from freelance_credits.core.database import Base


class CreditSetting(Base):
    """Admin-editable credit configuration, one row per key."""

    __tablename__ = "credit_settings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    setting_key: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    setting_value: Mapped[str] = mapped_column(String(255), nullable=False)
    updated_by: Mapped[int | None] = mapped_column(Integer, ForeignKey("users.user_id"))
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), onupdate=func.now()
    )

    KEY_PRICE_PER_CREDIT = "price_per_credit"

    def __repr__(self) -> str:
        return f"<CreditSetting {self.setting_key}={self.setting_value}>"
