"""Task model definitions."""

from sqlalchemy import Column, Index, String, Text
from taskboard.models.base import Base


class Task(Base):
    """Represents a task assigned to a student."""
    __tablename__ = "tasks"
    __table_args__ = (
        Index("idx_tasks_assigned_to", "assignedTo"),
        Index("idx_tasks_created_by", "createdBy"),
    )

    id = Column(String(255), primary_key=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    status = Column(String(50), nullable=False)
    assigned_to = Column("assignedTo", String(255), nullable=False)
    created_by = Column("createdBy", String(255), nullable=False)
    created_at = Column("createdAt", String(64), nullable=False)
