import pytest
from sqlalchemy import create_engine, update
from sqlalchemy.orm import Session, sessionmaker

import taskboard.api.v1.columns as column_routes
from taskboard.database import Base
from taskboard.errors import ConflictError, NotFoundError, TaskLockedError
from taskboard.models import BoardColumn, Task, TaskPriority, TaskStatus, User
from taskboard.schemas import ColumnUpdate
from taskboard.workflow import transitions
from taskboard.workflow.dependency_graph import add_dependency
from taskboard.workflow.ordering import set_task_order
from taskboard.workflow.revision import read_workflow_version
from taskboard.workflow.transitions import transition_task_status
from tests.utils import make_project, make_task, make_user


def test_allowed_transition_is_persisted_and_bumps_version(db_session: Session):
    owner = make_user(db_session, "alice")
    project = make_project(db_session, owner)
    task = make_task(db_session, owner, project, "Design")

    updated = transition_task_status(db_session, task.id, TaskStatus.READY)

    assert updated.status is TaskStatus.READY
    assert updated.version == 2


def test_denied_transition_raises_task_locked_with_reason(db_session: Session):
    owner = make_user(db_session, "alice")
    project = make_project(db_session, owner)
    make_task(db_session, owner, project, "Design")
    build = make_task(db_session, owner, project, "Build")

    with pytest.raises(TaskLockedError) as exc:
        transition_task_status(db_session, build.id, TaskStatus.IN_PROGRESS)

    assert exc.value.code == "TASK_LOCKED"
    assert exc.value.message == 'Must first complete "Design"'
    db_session.expire_all()
    stored = db_session.get(Task, build.id)
    assert stored.status is TaskStatus.BACKLOG
    assert stored.version == 1


def test_dependency_denial_lifts_once_dependency_is_done(db_session: Session):
    owner = make_user(db_session, "alice")
    project = make_project(db_session, owner)
    prerequisite = make_task(db_session, owner, project, "Prerequisite")
    follow_up = make_task(db_session, owner, project, "Follow-up", status=TaskStatus.READY)
    add_dependency(db_session, follow_up.id, prerequisite.id)

    with pytest.raises(TaskLockedError):
        transition_task_status(db_session, follow_up.id, TaskStatus.IN_PROGRESS)

    transition_task_status(db_session, prerequisite.id, TaskStatus.DONE)
    assert transition_task_status(db_session, follow_up.id, TaskStatus.IN_PROGRESS).status is TaskStatus.IN_PROGRESS


def test_same_status_request_writes_nothing(db_session: Session, monkeypatch):
    owner = make_user(db_session, "alice")
    project = make_project(db_session, owner)
    make_task(db_session, owner, project, "Design")
    build = make_task(db_session, owner, project, "Build")

    def fail(*args, **kwargs):
        raise AssertionError("gate must not run")

    monkeypatch.setattr(transitions, "evaluate_transition", fail)

    result = transition_task_status(db_session, build.id, TaskStatus.BACKLOG)
    assert result.status is TaskStatus.BACKLOG
    assert result.version == 1


def test_unknown_task_is_not_found(db_session: Session):
    with pytest.raises(NotFoundError):
        transition_task_status(db_session, 404, TaskStatus.DONE)


@pytest.fixture
def file_sessions(tmp_path):
    """Two independent connections to one on-disk database."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'race.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    try:
        yield factory
    finally:
        engine.dispose()


def _racing_gate(factory, calls, races, compete):
    """Wrap the gate so ``compete`` commits from another session after each of the first ``races`` evaluations."""
    evaluate = transitions.evaluate_transition
    competing = []

    def racing_evaluate(db, task, new_status):
        if competing:
            # The competing writer's own transitions see the real gate
            return evaluate(db, task, new_status)
        calls.append(task.version)
        decision = evaluate(db, task, new_status)
        if len(calls) <= races:
            other = factory()
            competing.append(other)
            try:
                compete(other, task.id)
            finally:
                competing.pop()
                other.close()
        return decision

    return racing_evaluate


def _raw_task_write(**values):
    def compete(other, task_id):
        other.execute(update(Task).where(Task.id == task_id).values(version=Task.version + 1, **values))
        other.commit()

    return compete


def test_concurrent_write_forces_reevaluation(file_sessions, monkeypatch):
    session = file_sessions()
    owner = make_user(session, "alice")
    project = make_project(session, owner)
    task_id = make_task(session, owner, project, "Design").id
    calls = []
    monkeypatch.setattr(
        transitions,
        "evaluate_transition",
        _racing_gate(file_sessions, calls, races=1, compete=_raw_task_write(status=TaskStatus.DONE)),
    )

    result = transition_task_status(session, task_id, TaskStatus.REVIEW)

    assert calls == [1, 2]
    assert result.status is TaskStatus.REVIEW
    assert result.version == 3
    session.close()


def test_reorder_after_allowed_decision_is_not_applied(file_sessions, monkeypatch):
    session = file_sessions()
    owner = make_user(session, "alice")
    project = make_project(session, owner)
    make_task(session, owner, project, "Design")
    build_id = make_task(session, owner, project, "Build", status=TaskStatus.READY).id
    calls = []

    def move_onto_ready(other, task_id):
        set_task_order(other, other.get(Task, task_id), 1)

    monkeypatch.setattr(
        transitions,
        "evaluate_transition",
        _racing_gate(file_sessions, calls, races=1, compete=move_onto_ready),
    )

    with pytest.raises(TaskLockedError) as exc:
        transition_task_status(session, build_id, TaskStatus.REVIEW)

    assert exc.value.message == 'Must first complete "Design"'
    assert len(calls) == 2
    session.expire_all()
    stored = session.get(Task, build_id)
    assert stored.status is TaskStatus.READY
    assert stored.order_index == 1
    session.close()


def test_reopened_predecessor_after_allowed_decision_is_not_applied(file_sessions, monkeypatch):
    session = file_sessions()
    owner = make_user(session, "alice")
    project = make_project(session, owner)
    design_id = make_task(session, owner, project, "Design").id
    build_id = make_task(session, owner, project, "Build").id
    transition_task_status(session, design_id, TaskStatus.DONE)
    calls = []

    def reopen_design(other, task_id):
        transition_task_status(other, design_id, TaskStatus.BACKLOG)

    monkeypatch.setattr(
        transitions,
        "evaluate_transition",
        _racing_gate(file_sessions, calls, races=1, compete=reopen_design),
    )

    with pytest.raises(TaskLockedError) as exc:
        transition_task_status(session, build_id, TaskStatus.READY)

    assert exc.value.message == 'Must first complete "Design"'
    assert len(calls) == 2
    session.expire_all()
    assert session.get(Task, build_id).status is TaskStatus.BACKLOG
    assert session.get(Task, design_id).status is TaskStatus.BACKLOG
    session.close()


def test_dependency_leaving_done_after_allowed_decision_is_not_applied(file_sessions, monkeypatch):
    session = file_sessions()
    owner = make_user(session, "alice")
    project = make_project(session, owner)
    prerequisite_id = make_task(session, owner, project, "Prerequisite").id
    follow_up_id = make_task(session, owner, project, "Follow-up", status=TaskStatus.READY).id
    transition_task_status(session, prerequisite_id, TaskStatus.DONE)
    add_dependency(session, follow_up_id, prerequisite_id)
    calls = []

    def reopen_prerequisite(other, task_id):
        transition_task_status(other, prerequisite_id, TaskStatus.REVIEW)

    monkeypatch.setattr(
        transitions,
        "evaluate_transition",
        _racing_gate(file_sessions, calls, races=1, compete=reopen_prerequisite),
    )

    with pytest.raises(TaskLockedError) as exc:
        transition_task_status(session, follow_up_id, TaskStatus.IN_PROGRESS)

    assert exc.value.message == 'Must first complete dependency "Prerequisite"'
    session.expire_all()
    assert session.get(Task, follow_up_id).status is TaskStatus.READY
    session.close()


def test_column_locked_after_allowed_decision_is_not_applied(file_sessions, monkeypatch):
    session = file_sessions()
    owner = make_user(session, "alice")
    project = make_project(session, owner)
    owner_id, project_id = owner.id, project.id
    make_task(session, owner, project, "Design")
    build_id = make_task(session, owner, project, "Build").id
    # Build sits at index 1; unlock "Ready" so the first evaluation passes
    ready = (
        session.query(BoardColumn)
        .filter(BoardColumn.project_id == project_id, BoardColumn.order_index == 1)
        .one()
    )
    ready_id = ready.id
    ready.is_locked = False
    session.commit()
    calls = []

    def lock_ready(other, task_id):
        column_routes.update_column(
            ready_id, ColumnUpdate(is_locked=True), other.get(User, owner_id), other
        )

    monkeypatch.setattr(
        transitions,
        "evaluate_transition",
        _racing_gate(file_sessions, calls, races=1, compete=lock_ready),
    )

    with pytest.raises(TaskLockedError) as exc:
        transition_task_status(session, build_id, TaskStatus.READY)

    assert exc.value.message == 'Must first complete "Design"'
    assert len(calls) == 2
    session.close()


def test_persistent_contention_ends_in_conflict(file_sessions, monkeypatch):
    session = file_sessions()
    owner = make_user(session, "alice")
    project = make_project(session, owner)
    task_id = make_task(session, owner, project, "Design").id
    calls = []
    monkeypatch.setattr(
        transitions,
        "evaluate_transition",
        _racing_gate(file_sessions, calls, races=100, compete=_raw_task_write(priority=TaskPriority.HIGH)),
    )

    with pytest.raises(ConflictError):
        transition_task_status(session, task_id, TaskStatus.DONE, max_retries=3)

    assert len(calls) == 3
    session.close()


def test_transition_bumps_project_workflow_version(db_session: Session):
    owner = make_user(db_session, "alice")
    project = make_project(db_session, owner)
    task = make_task(db_session, owner, project, "Design")
    before = read_workflow_version(db_session, project.id)

    transition_task_status(db_session, task.id, TaskStatus.READY)

    assert read_workflow_version(db_session, project.id) == before + 1
