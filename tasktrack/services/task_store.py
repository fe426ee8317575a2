# tasktrack/services/task_store.py
"""Persistence for tasks.

Every call takes an explicit ``OrganizationScope``; the store never looks at
request globals. Validation of field values is the lifecycle engine's job,
the store only guards references it cannot do without.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional

from sqlalchemy import func

from ..errors import NotFound, ValidationError
from ..extensions import db
from ..models.task import Task, COMPLETION_STATUSES
from ..utils import utcnow

log = logging.getLogger(__name__)

# public sort key -> column
SORT_KEYS = {
    "createdAt": Task.created_at,
    "updatedAt": Task.updated_at,
    "dueDate": Task.due_date,
    "priority": Task.priority,
    "status": Task.status,
    "title": Task.title,
}
DEFAULT_SORT = "-createdAt"


@dataclass(frozen=True)
class OrganizationScope:
    organization_id: int

    @classmethod
    def of(cls, actor) -> "OrganizationScope":
        return cls(organization_id=actor.organization_id)


@dataclass(frozen=True)
class TaskFilter:
    assigned_to: Optional[int] = None
    status: Optional[str] = None
    status_not_in: tuple = ()
    priority: Optional[str] = None
    due_before: Optional[datetime] = None


def parse_sort(sort: Optional[str]) -> list:
    """``"-dueDate,priority"`` -> ORDER BY clauses. Unknown keys are rejected."""
    clauses = []
    for raw in (sort or DEFAULT_SORT).split(","):
        key = raw.strip()
        if not key:
            continue
        desc = key.startswith("-")
        col = SORT_KEYS.get(key.lstrip("-+"))
        if col is None:
            raise ValidationError(f"Cannot sort by '{key.lstrip('-+')}'.", allowed=sorted(SORT_KEYS))
        clauses.append(col.desc() if desc else col.asc())
    if not clauses:
        clauses.append(Task.created_at.desc())
    # stable order between rows sharing the sort values
    clauses.append(Task.id.desc())
    return clauses


class TaskStore:
    def __init__(self, session=None):
        self.session = session or db.session

    # ---- single task ----

    def create(self, **fields) -> Task:
        if not fields.get("organization_id"):
            raise ValidationError("A task must belong to an organization.")
        if not fields.get("created_by_id"):
            raise ValidationError("A task must have a creator.")
        now = utcnow()
        fields.setdefault("created_at", now)
        fields.setdefault("updated_at", now)
        task = Task(**fields)
        self.session.add(task)
        self.session.commit()
        return task

    def get(self, scope: OrganizationScope, task_id) -> Task:
        task = (
            self.session.query(Task)
            .filter(Task.id == task_id, Task.organization_id == scope.organization_id)
            .first()
        )
        if task is None:
            raise NotFound("No task found with that ID.")
        return task

    def update(self, task: Task, fields: dict) -> Task:
        for name, value in fields.items():
            setattr(task, name, value)
        task.updated_at = utcnow()
        self.session.commit()
        return task

    def delete(self, task: Task) -> None:
        self.session.delete(task)
        self.session.commit()

    # ---- collections ----

    def query(self, scope: OrganizationScope, flt: Optional[TaskFilter] = None, sort: Optional[str] = None):
        """Lazy query; iterating it (again) hits the database each time."""
        flt = flt or TaskFilter()
        q = self.session.query(Task).filter(Task.organization_id == scope.organization_id)
        if flt.assigned_to is not None:
            q = q.filter(Task.assigned_to_id == flt.assigned_to)
        if flt.status:
            q = q.filter(Task.status == flt.status)
        if flt.status_not_in:
            q = q.filter(Task.status.notin_(flt.status_not_in))
        if flt.priority:
            q = q.filter(Task.priority == flt.priority)
        if flt.due_before is not None:
            q = q.filter(Task.due_date.isnot(None), Task.due_date < flt.due_before)
        return q.order_by(*parse_sort(sort))

    def ids(self, scope: OrganizationScope, flt: Optional[TaskFilter] = None) -> list[int]:
        q = self.query(scope, flt).with_entities(Task.id)
        return [row.id for row in q]

    def bulk_set_status(
        self,
        scope: OrganizationScope,
        ids: Iterable[int],
        status: str,
        only_from: Optional[Iterable[str]] = None,
    ) -> int:
        """Single UPDATE that bypasses transition rules (system use only).

        Rows already at ``status`` are left alone; ``only_from`` further limits
        the rows to those still in one of the given statuses.
        """
        ids = list(ids)
        if not ids:
            return 0
        q = self.session.query(Task).filter(
            Task.organization_id == scope.organization_id,
            Task.id.in_(ids),
            Task.status != status,
        )
        if only_from is not None:
            q = q.filter(Task.status.in_(list(only_from)))
        now = utcnow()
        completed_at = now if status in COMPLETION_STATUSES else None
        updated = q.update(
            {Task.status: status, Task.completed_at: completed_at, Task.updated_at: now},
            synchronize_session=False,
        )
        self.session.commit()
        # loaded instances may hold the old status
        self.session.expire_all()
        log.info("bulk status -> %s: %s of %s task(s) in org %s", status, updated, len(ids), scope.organization_id)
        return updated

    def unassign_all(self, scope: OrganizationScope, user_id: int, commit: bool = True) -> int:
        """Clear ``user_id`` from every task in scope. With ``commit=False`` the
        UPDATE joins the caller's transaction."""
        updated = (
            self.session.query(Task)
            .filter(Task.organization_id == scope.organization_id, Task.assigned_to_id == user_id)
            .update({Task.assigned_to_id: None, Task.updated_at: utcnow()}, synchronize_session=False)
        )
        if commit:
            self.session.commit()
            self.session.expire_all()
        return updated

    def count_by(self, scope: OrganizationScope, column_name: str, flt: Optional[TaskFilter] = None) -> dict:
        col = getattr(Task, column_name)
        q = self.query(scope, flt).order_by(None).with_entities(col, func.count(Task.id)).group_by(col)
        return {value: count for value, count in q}
