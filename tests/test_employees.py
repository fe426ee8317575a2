import pytest

from tasktrack.errors import Forbidden, InvalidState, NotFound, ValidationError
from tasktrack.extensions import db
from tasktrack.models.task import Task
from tasktrack.models.user import User
from tasktrack.services.employees import EmployeeDirectory, generate_employee_id
from tasktrack.services.stats import employee_performance, organization_stats
from tasktrack.services.task_store import OrganizationScope, TaskStore

from .factories import actor_for, make_task


@pytest.fixture()
def directory(ctx):
    return EmployeeDirectory()


def test_generate_employee_id_is_six_digits():
    for _ in range(50):
        eid = generate_employee_id()
        assert len(eid) == 6 and eid.isdigit() and eid[0] != "0"


def test_approve_pending_employee(seed, directory):
    emp = directory.approve(OrganizationScope(seed.acme), seed.newbie)
    assert emp.status == "active"
    assert len(emp.employee_id) == 6 and emp.employee_id.isdigit()

    with pytest.raises(InvalidState):
        directory.approve(OrganizationScope(seed.acme), seed.newbie)


def test_approve_is_scoped_to_organization(seed, directory):
    with pytest.raises(NotFound):
        directory.approve(OrganizationScope(seed.globex), seed.newbie)


def test_reject(seed, directory):
    scope = OrganizationScope(seed.acme)
    assert directory.reject(scope, seed.newbie).status == "rejected"
    with pytest.raises(InvalidState):
        directory.reject(scope, seed.newbie)
    with pytest.raises(InvalidState):
        directory.approve(scope, seed.newbie)


def test_reject_active_employee_unassigns_tasks(seed, directory):
    tasks = [make_task(seed.acme, seed.admin, f"Task {i}", assignee_id=seed.emp1) for i in range(2)]
    other = make_task(seed.acme, seed.admin, "Carol's", assignee_id=seed.emp2)

    emp = directory.reject(OrganizationScope(seed.acme), seed.emp1)

    assert emp.status == "rejected"
    session = directory.session
    assert all(session.get(Task, t.id).assigned_to_id is None for t in tasks)
    assert session.get(Task, other.id).assigned_to_id == seed.emp2


def test_list_and_pending(seed, directory):
    scope = OrganizationScope(seed.acme)
    assert {u.id for u in directory.list_employees(scope)} == {seed.emp1, seed.emp2, seed.newbie}
    assert [u.id for u in directory.pending_approvals(scope)] == [seed.newbie]
    with pytest.raises(ValidationError):
        directory.list_employees(scope, status="retired")


def test_admins_are_not_employees(seed, directory):
    with pytest.raises(NotFound):
        directory.get_employee(OrganizationScope(seed.acme), seed.admin)


def test_ensure_can_view(seed, directory):
    directory.ensure_can_view(actor_for(seed.admin), seed.emp1)
    directory.ensure_can_view(actor_for(seed.emp1), seed.emp1)
    with pytest.raises(Forbidden):
        directory.ensure_can_view(actor_for(seed.emp2), seed.emp1)


def test_update_employee(seed, directory):
    scope = OrganizationScope(seed.acme)
    emp = directory.update(scope, seed.emp1, {"position": "Lead", "email": " Robert@Example.com "})
    assert emp.position == "Lead"
    assert emp.email == "robert@example.com"

    with pytest.raises(ValidationError):
        directory.update(scope, seed.emp1, {"firstName": "B"})
    with pytest.raises(ValidationError):
        directory.update(scope, seed.emp2, {"email": "robert@example.com"})
    with pytest.raises(ValidationError):
        directory.update(scope, seed.emp2, {"mobile": 5551234})


def test_delete_employee_unassigns_tasks(seed, directory):
    tasks = [make_task(seed.acme, seed.admin, f"Task {i}", assignee_id=seed.emp1) for i in range(3)]
    scope = OrganizationScope(seed.acme)

    assert directory.delete(scope, seed.emp1) == 3

    session = directory.session
    assert session.get(User, seed.emp1) is None
    for t in tasks:
        kept = session.get(Task, t.id)
        assert kept is not None
        assert kept.assigned_to_id is None


class _DeleteFails:
    """Session stand-in whose ``delete`` blows up; everything else passes through."""

    def __init__(self, session):
        self._session = session

    def __getattr__(self, name):
        return getattr(self._session, name)

    def delete(self, obj):
        raise RuntimeError("database went away")


def test_failed_delete_keeps_tasks_assigned(seed, ctx):
    task = make_task(seed.acme, seed.admin, "Keep me", assignee_id=seed.emp1)
    directory = EmployeeDirectory(session=_DeleteFails(db.session), store=TaskStore(db.session))

    with pytest.raises(RuntimeError):
        directory.delete(OrganizationScope(seed.acme), seed.emp1)
    db.session.rollback()

    assert db.session.get(Task, task.id).assigned_to_id == seed.emp1
    assert db.session.get(User, seed.emp1) is not None


def test_delete_other_organization_employee_is_not_found(seed, directory):
    with pytest.raises(NotFound):
        directory.delete(OrganizationScope(seed.acme), seed.emp_b)


def test_employee_performance(seed, ctx):
    make_task(seed.acme, seed.admin, "Done", assignee_id=seed.emp1, status="completed", priority="high")
    make_task(seed.acme, seed.admin, "Approved", assignee_id=seed.emp1, status="approved")
    make_task(seed.acme, seed.admin, "Open", assignee_id=seed.emp1)
    make_task(seed.acme, seed.admin, "Other", assignee_id=seed.emp2)

    metrics = employee_performance(TaskStore(), OrganizationScope(seed.acme), seed.emp1)
    assert metrics["totalTasks"] == 3
    assert metrics["completedTasks"] == 2
    assert metrics["pendingTasks"] == 1
    assert metrics["completionRate"] == 66.67
    assert metrics["tasksByPriority"] == {"low": 0, "medium": 2, "high": 1, "urgent": 0}


def test_organization_stats(seed, ctx):
    make_task(seed.acme, seed.admin, "Done", status="completed")
    make_task(seed.acme, seed.admin, "Late", status="overdue")
    make_task(seed.globex, seed.admin_b, "Elsewhere")

    stats = organization_stats(TaskStore(), OrganizationScope(seed.acme))
    assert stats["userStats"] == {"admin": 1, "employee": 3}
    assert stats["totalTasks"] == 2
    assert stats["completedTasks"] == 1
    assert stats["overdueTasks"] == 1
    assert stats["completionRate"] == 50.0
    assert stats["taskStats"]["todo"] == 0
