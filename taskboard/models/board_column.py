"""
Board Column Model
"""
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from taskboard.database import Base


class BoardColumn(Base):
    """A workflow stage of a project board.

    ``order_index`` is the column's position in the workflow. When
    ``is_locked`` is set, tasks sitting at that position cannot change status
    until every task positioned before them is DONE.
    """

    __tablename__ = "board_columns"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(50), nullable=False)
    order_index = Column(Integer, default=0, nullable=False)
    is_locked = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    # Relationships
    project = relationship("Project", back_populates="columns")


DEFAULT_COLUMNS = (
    {"name": "Backlog", "order_index": 0, "is_locked": False},
    {"name": "Ready", "order_index": 1, "is_locked": True},
    {"name": "In Progress", "order_index": 2, "is_locked": True},
    {"name": "Review", "order_index": 3, "is_locked": True},
    {"name": "Done", "order_index": 4, "is_locked": False},
)
