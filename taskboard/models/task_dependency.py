"""
Task Dependency Model
"""
from sqlalchemy import CheckConstraint, Column, Integer, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from taskboard.database import Base


class TaskDependency(Base):
    """Directed edge: ``task`` stays blocked until ``depends_on`` is DONE."""

    __tablename__ = "task_dependencies"
    __table_args__ = (
        CheckConstraint("task_id != depends_on_id", name="no_self_dependency"),
    )

    task_id = Column(Integer, ForeignKey("tasks.id", ondelete="CASCADE"), primary_key=True)
    depends_on_id = Column(Integer, ForeignKey("tasks.id", ondelete="CASCADE"), primary_key=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # Relationships
    task = relationship("Task", back_populates="dependencies", foreign_keys=[task_id])
    depends_on = relationship("Task", back_populates="dependents", foreign_keys=[depends_on_id])
