from datetime import datetime

from sqlalchemy import Boolean, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from freelance_credits.core.database import Base


class User(Base):
    __tablename__ = "users"

    user_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    role_name: Mapped[str] = mapped_column(String(50), nullable=False, server_default="CLIENT")
    is_active: Mapped[bool] = mapped_column(
        Boolean, default=True, server_default="true", nullable=False
    )
    is_admin: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default="false", nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), onupdate=func.now()
    )

    freelancer_profile: Mapped["FreelancerProfile | None"] = relationship(
        back_populates="user", uselist=False, cascade="all, delete-orphan"
    )

    ROLE_VIDEOGRAPHER = "VIDEOGRAPHER"
    ROLE_VIDEO_EDITOR = "VIDEO_EDITOR"
    ROLE_CLIENT = "CLIENT"
    ROLE_ADMIN = "ADMIN"
    ROLE_SUPER_ADMIN = "SUPER_ADMIN"
    FREELANCER_ROLES = {ROLE_VIDEOGRAPHER, ROLE_VIDEO_EDITOR}

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @property
    def is_freelancer(self) -> bool:
        return self.role_name.upper() in self.FREELANCER_ROLES

    def __repr__(self) -> str:
        return f"<User {self.email}>"
