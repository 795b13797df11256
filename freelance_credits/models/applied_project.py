from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from freelance_credits.core.database import Base


class AppliedProject(Base):
    """A freelancer's application to a project, with its credit spend and refund state."""

    __tablename__ = "applied_projects"
    __table_args__ = (
        Index("ix_applied_projects_user_id", "user_id"),
        Index("ix_applied_projects_projects_task_id", "projects_task_id"),
    )

    applied_projects_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    projects_task_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("projects_task.projects_task_id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False
    )
    status: Mapped[str] = mapped_column(String(30), nullable=False, server_default="pending")
    is_deleted: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default="false"
    )
    credits_spent: Mapped[int | None] = mapped_column(Integer, default=1, server_default="1")
    refunded: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default="false"
    )
    refund_amount: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    refund_reason: Mapped[str | None] = mapped_column(String(100))
    refunded_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), onupdate=func.now()
    )

    project: Mapped["ProjectTask"] = relationship(back_populates="applications")

    def __repr__(self) -> str:
        return f"<AppliedProject {self.applied_projects_id} refunded={self.refunded}>"
