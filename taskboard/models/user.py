"""User model definitions."""

from sqlalchemy import Column, String
from taskboard.models.base import Base


class User(Base):
    """Represents an administrator or a student."""
    __tablename__ = "users"

    id = Column(String(255), primary_key=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, unique=True)
    password = Column(String(255), nullable=False)
    role = Column(String(50), nullable=False)  # admin/student
    student_id = Column("studentId", String(255))
