"""Workflow stages.

The five stages form a fixed linear sequence, but the backend enforces no
adjacency rule: any stage may be requested from any other, subject only to
the gate (see :mod:`taskboard.workflow.gate`). DONE is not terminal.
"""
import enum
from typing import Optional


class TaskStatus(str, enum.Enum):
    BACKLOG = "BACKLOG"
    READY = "READY"
    IN_PROGRESS = "IN_PROGRESS"
    REVIEW = "REVIEW"
    DONE = "DONE"

    @property
    def position(self) -> int:
        return STATUS_SEQUENCE.index(self)


STATUS_SEQUENCE = (
    TaskStatus.BACKLOG,
    TaskStatus.READY,
    TaskStatus.IN_PROGRESS,
    TaskStatus.REVIEW,
    TaskStatus.DONE,
)


def next_status(status: TaskStatus) -> Optional[TaskStatus]:
    """Stage after ``status``, or None at the end. Client convenience only."""
    position = status.position + 1
    return STATUS_SEQUENCE[position] if position < len(STATUS_SEQUENCE) else None


def previous_status(status: TaskStatus) -> Optional[TaskStatus]:
    """Stage before ``status``, or None at the start. Client convenience only."""
    position = status.position - 1
    return STATUS_SEQUENCE[position] if position >= 0 else None
