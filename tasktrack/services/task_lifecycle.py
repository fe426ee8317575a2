# tasktrack/services/task_lifecycle.py
"""Task lifecycle engine.

Every task mutation goes through here: who may touch which task, which
status moves are allowed, and the ``completed_at`` bookkeeping that goes
with them. Persistence is delegated to :class:`TaskStore`.
"""
import logging
from typing import Callable, Optional

from ..errors import Forbidden, InvalidState, ValidationError
from ..models.task import Task, COMPLETION_STATUSES
from ..utils import utcnow
from .employees import EmployeeDirectory
from .task_commands import (
    AdminTaskUpdate,
    CreateTaskCommand,
    TaskUpdate,
    clean_priority,
    clean_status,
    clean_user_ref,
)
from .task_store import TaskStore, TaskFilter, OrganizationScope

log = logging.getLogger(__name__)


# ---------------------
# Transition policies
# ---------------------

class PermissiveTransitions:
    """Any status may follow any other, except that only the overdue sweep
    moves a task into ``overdue``."""
    name = "permissive"

    def check(self, actor, current: str, target: str) -> None:
        if target == "overdue" and current != "overdue":
            raise InvalidState("Tasks become overdue automatically.", status=current)


class StrictTransitions:
    """Directed status graph.

    ``approved`` is only reachable through :meth:`TaskLifecycle.approve_task`
    and ``overdue`` only through the overdue sweep.
    """
    name = "strict"

    GRAPH = {
        "todo": {"inprogress", "completed"},
        "inprogress": {"todo", "completed"},
        "completed": {"inprogress"},
        "overdue": {"inprogress", "completed"},
        "approved": set(),
    }

    def check(self, actor, current: str, target: str) -> None:
        if target == "approved":
            raise InvalidState("Tasks are approved through the approve action.", status=current)
        if target == "overdue":
            raise InvalidState("Tasks become overdue automatically.", status=current)
        if target != current and target not in self.GRAPH.get(current, set()):
            raise InvalidState(f"Cannot move a task from '{current}' to '{target}'.", status=current)


def transition_policy(strict: bool = False):
    return StrictTransitions() if strict else PermissiveTransitions()


def completion_fields(current: str, target: str, now) -> dict:
    """``completed_at`` is set on entering completed/approved and cleared on
    leaving both; moving between the two keeps the original stamp."""
    if target in COMPLETION_STATUSES:
        if current not in COMPLETION_STATUSES:
            return {"completed_at": now}
        return {}
    return {"completed_at": None}


def visible_filter(actor, **criteria) -> TaskFilter:
    """Admins see the whole organization, employees their own tasks."""
    if actor.is_admin:
        return TaskFilter(**criteria)
    return TaskFilter(assigned_to=actor.id, **criteria)


class TaskLifecycle:
    def __init__(
        self,
        store: Optional[TaskStore] = None,
        directory: Optional[EmployeeDirectory] = None,
        policy=None,
        clock: Callable = utcnow,
    ):
        self.store = store or TaskStore()
        self.directory = directory or EmployeeDirectory(self.store.session, self.store)
        self.policy = policy or PermissiveTransitions()
        self.clock = clock

    # ---- guards ----

    @staticmethod
    def _require_admin(actor, message="Only admins can perform this action."):
        if not actor.is_admin:
            raise Forbidden(message)

    @staticmethod
    def _require_access(actor, task: Task, verb="access"):
        if actor.is_admin:
            return
        if task.assigned_to_id is None or task.assigned_to_id != actor.id:
            raise Forbidden(f"You do not have permission to {verb} this task.")

    def _load(self, actor, task_id, verb="access") -> Task:
        task = self.store.get(OrganizationScope.of(actor), task_id)
        self._require_access(actor, task, verb)
        return task

    def _status_fields(self, actor, task: Task, target: str) -> dict:
        self.policy.check(actor, task.status, target)
        out = {"status": target}
        out.update(completion_fields(task.status, target, self.clock()))
        return out

    # ---- reads ----

    def list_tasks(self, actor, status=None, priority=None, sort=None):
        criteria = {}
        if status:
            criteria["status"] = clean_status(status)
        if priority:
            criteria["priority"] = clean_priority(priority)
        return self.store.query(OrganizationScope.of(actor), visible_filter(actor, **criteria), sort)

    def list_my_tasks(self, actor):
        flt = TaskFilter(assigned_to=actor.id)
        return self.store.query(OrganizationScope.of(actor), flt)

    def list_employee_tasks(self, actor, employee_id, status=None):
        scope = OrganizationScope.of(actor)
        self.directory.ensure_can_view(actor, employee_id)
        emp = self.directory.get_employee(scope, employee_id)
        flt = TaskFilter(assigned_to=emp.id, status=clean_status(status) if status else None)
        return self.store.query(scope, flt)

    def get_task(self, actor, task_id) -> Task:
        return self._load(actor, task_id)

    # ---- mutations ----

    def create_task(self, actor, cmd: CreateTaskCommand) -> Task:
        self._require_admin(actor, "Only admins can create tasks.")
        scope = OrganizationScope.of(actor)
        assignee_id = None
        if cmd.assigned_to is not None:
            assignee_id = self.directory.resolve_assignee(scope, cmd.assigned_to).id

        task = self.store.create(
            title=cmd.title,
            description=cmd.description,
            priority=cmd.priority,
            status="todo",
            assigned_to_id=assignee_id,
            created_by_id=actor.id,
            organization_id=actor.organization_id,
            due_date=cmd.due_date,
            tags=list(cmd.tags),
            attachments=list(cmd.attachments),
            comments=[],
            checklist=list(cmd.checklist),
            watchers=list(cmd.watchers),
            estimated_hours=cmd.estimated_hours,
        )
        log.info("task %s created by %s in org %s", task.id, actor.id, actor.organization_id)
        return task

    def update_task(self, actor, task_id, cmd: TaskUpdate) -> Task:
        task = self._load(actor, task_id, "update")
        if isinstance(cmd, AdminTaskUpdate) and not actor.is_admin:
            raise Forbidden("Only admins can change assignment, status or due date.")

        changes = cmd.changes()
        if "assigned_to" in changes:
            assignee = changes.pop("assigned_to")
            if assignee is None:
                changes["assigned_to_id"] = None
            else:
                changes["assigned_to_id"] = self.directory.resolve_assignee(
                    OrganizationScope.of(actor), assignee
                ).id
        if "status" in changes:
            changes.update(self._status_fields(actor, task, changes["status"]))

        previous = task.status
        task = self.store.update(task, changes)
        if task.status != previous:
            log.info("task %s status %s -> %s by %s", task.id, previous, task.status, actor.id)
        return task

    def update_status(self, actor, task_id, status) -> Task:
        task = self._load(actor, task_id, "update")
        target = clean_status(status)
        previous = task.status
        task = self.store.update(task, self._status_fields(actor, task, target))
        log.info("task %s status %s -> %s by %s", task.id, previous, target, actor.id)
        return task

    def assign_task(self, actor, task_id, assigned_to) -> Task:
        self._require_admin(actor, "Only admins can assign tasks.")
        task = self._load(actor, task_id)
        user_id = clean_user_ref(assigned_to, "assignedTo")
        if user_id is None:
            raise ValidationError("Invalid employee ID. Please select an active employee.", field="assignedTo")
        assignee = self.directory.resolve_assignee(OrganizationScope.of(actor), user_id)
        task = self.store.update(task, {"assigned_to_id": assignee.id})
        log.info("task %s assigned to %s by %s", task.id, assignee.id, actor.id)
        return task

    def approve_task(self, actor, task_id) -> Task:
        self._require_admin(actor, "Only admins can approve tasks.")
        task = self._load(actor, task_id)
        if task.status != "completed":
            raise InvalidState("Only completed tasks can be approved.", status=task.status)
        changes = {"status": "approved"}
        changes.update(completion_fields(task.status, "approved", self.clock()))
        task = self.store.update(task, changes)
        log.info("task %s approved by %s", task.id, actor.id)
        return task

    def delete_task(self, actor, task_id) -> None:
        self._require_admin(actor, "Only admins can delete tasks.")
        task = self._load(actor, task_id)
        self.store.delete(task)
        log.info("task %s deleted by %s", task_id, actor.id)
