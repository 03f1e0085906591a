"""Task model definitions."""

from sqlalchemy import Boolean, Column, DateTime, Integer, String, func
from task_manager.database import Base


class Task(Base):
    """Represents a unit of work owned by a single user."""
    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True)
    description = Column(String, nullable=False)
    completed = Column(Boolean, nullable=False, default=False)
    # Ownership is enforced by the repositories, deleting a user removes its tasks there.
    owner_id = Column(Integer, nullable=False, index=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())
