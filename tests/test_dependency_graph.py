import pytest
from sqlalchemy.orm import Session

from taskboard.errors import ConflictError, NotFoundError, ValidationError
from taskboard.models import TaskDependency, TaskStatus
from taskboard.workflow.dependency_graph import (
    add_dependency,
    blocking_dependencies_of,
    remove_dependency,
)
from tests.utils import make_project, make_task, make_user


@pytest.fixture
def board(db_session: Session):
    owner = make_user(db_session, "alice")
    project = make_project(db_session, owner)
    return owner, project


def _edge_count(session: Session) -> int:
    return session.query(TaskDependency).count()


def test_self_dependency_is_rejected(db_session: Session, board):
    owner, project = board
    task = make_task(db_session, owner, project, "Solo")

    with pytest.raises(ValidationError):
        add_dependency(db_session, task.id, task.id)
    assert _edge_count(db_session) == 0


def test_duplicate_edge_is_a_conflict(db_session: Session, board):
    owner, project = board
    a = make_task(db_session, owner, project, "A")
    b = make_task(db_session, owner, project, "B")

    add_dependency(db_session, a.id, b.id)
    with pytest.raises(ConflictError):
        add_dependency(db_session, a.id, b.id)
    assert _edge_count(db_session) == 1


def test_reverse_edge_is_a_distinct_pair(db_session: Session, board):
    owner, project = board
    a = make_task(db_session, owner, project, "A")
    b = make_task(db_session, owner, project, "B")

    add_dependency(db_session, a.id, b.id)
    add_dependency(db_session, b.id, a.id)
    assert _edge_count(db_session) == 2


def test_cross_project_dependency_is_rejected(db_session: Session, board):
    owner, project = board
    other = make_project(db_session, owner, name="Other")
    a = make_task(db_session, owner, project, "A")
    b = make_task(db_session, owner, other, "B")

    with pytest.raises(ValidationError):
        add_dependency(db_session, a.id, b.id)
    assert _edge_count(db_session) == 0


def test_missing_endpoints_are_not_found(db_session: Session, board):
    owner, project = board
    a = make_task(db_session, owner, project, "A")

    with pytest.raises(NotFoundError):
        add_dependency(db_session, a.id, 9999)
    with pytest.raises(NotFoundError):
        add_dependency(db_session, 9999, a.id)


def test_remove_dependency(db_session: Session, board):
    owner, project = board
    a = make_task(db_session, owner, project, "A")
    b = make_task(db_session, owner, project, "B")
    add_dependency(db_session, a.id, b.id)

    remove_dependency(db_session, a.id, b.id)
    assert _edge_count(db_session) == 0

    with pytest.raises(NotFoundError):
        remove_dependency(db_session, a.id, b.id)


def test_blocking_dependencies_skip_done_targets(db_session: Session, board):
    owner, project = board
    a = make_task(db_session, owner, project, "A")
    open_dep = make_task(db_session, owner, project, "Open")
    done_dep = make_task(db_session, owner, project, "Finished", status=TaskStatus.DONE)
    add_dependency(db_session, a.id, open_dep.id)
    add_dependency(db_session, a.id, done_dep.id)

    blocking = blocking_dependencies_of(db_session, a.id)

    assert [edge.depends_on.title for edge in blocking] == ["Open"]


def test_blocking_dependencies_are_not_transitive(db_session: Session, board):
    owner, project = board
    a = make_task(db_session, owner, project, "A")
    b = make_task(db_session, owner, project, "B", status=TaskStatus.DONE)
    c = make_task(db_session, owner, project, "C")
    add_dependency(db_session, a.id, b.id)
    add_dependency(db_session, b.id, c.id)

    assert blocking_dependencies_of(db_session, a.id) == []


def test_deleting_either_endpoint_removes_incident_edges(db_session: Session, board):
    owner, project = board
    a = make_task(db_session, owner, project, "A")
    b = make_task(db_session, owner, project, "B")
    c = make_task(db_session, owner, project, "C")
    add_dependency(db_session, a.id, b.id)
    add_dependency(db_session, b.id, c.id)

    db_session.delete(b)
    db_session.commit()

    assert _edge_count(db_session) == 0


def test_cycles_are_allowed_by_default(db_session: Session, board):
    owner, project = board
    a = make_task(db_session, owner, project, "A")
    b = make_task(db_session, owner, project, "B")
    add_dependency(db_session, a.id, b.id)

    add_dependency(db_session, b.id, a.id)
    assert _edge_count(db_session) == 2


def test_cycle_check_rejects_closing_edge(db_session: Session, board):
    owner, project = board
    a = make_task(db_session, owner, project, "A")
    b = make_task(db_session, owner, project, "B")
    c = make_task(db_session, owner, project, "C")
    add_dependency(db_session, a.id, b.id)
    add_dependency(db_session, b.id, c.id)

    with pytest.raises(ValidationError):
        add_dependency(db_session, c.id, a.id, check_cycles=True)
    assert _edge_count(db_session) == 2


def test_cycle_check_is_depth_bounded(db_session: Session, board):
    owner, project = board
    a = make_task(db_session, owner, project, "A")
    b = make_task(db_session, owner, project, "B")
    c = make_task(db_session, owner, project, "C")
    add_dependency(db_session, a.id, b.id)
    add_dependency(db_session, b.id, c.id)

    # c -> a would close a three-edge loop; a one-level walk from a only sees b
    add_dependency(db_session, c.id, a.id, check_cycles=True, max_depth=1)
    assert _edge_count(db_session) == 3
