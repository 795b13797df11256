from datetime import datetime

from sqlalchemy import Boolean, ForeignKey, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from freelance_credits.core.database import Base


class ProjectTask(Base):
    """Client project posting. Only the columns the credits flows read."""

    __tablename__ = "projects_task"

    projects_task_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    client_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.user_id"), nullable=False)
    project_title: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[str] = mapped_column(String(30), nullable=False, server_default="open")
    is_deleted: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default="false"
    )
    created_at: Mapped[datetime] = mapped_column(server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), onupdate=func.now()
    )

    applications: Mapped[list["AppliedProject"]] = relationship(back_populates="project")

    def __repr__(self) -> str:
        return f"<ProjectTask {self.projects_task_id} {self.project_title}>"
