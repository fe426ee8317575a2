# tasktrack/services/stats.py
from sqlalchemy import func

from ..extensions import db
from ..models.task import TASK_STATUSES, TASK_PRIORITIES, COMPLETION_STATUSES
from ..models.user import User
from .task_store import TaskStore, TaskFilter, OrganizationScope


def _completion(by_status: dict) -> tuple[int, int, float]:
    total = sum(by_status.values())
    done = sum(by_status.get(s, 0) for s in COMPLETION_STATUSES)
    rate = round(done * 100.0 / total, 2) if total else 0.0
    return total, done, rate


def _zero_filled(counts: dict, keys) -> dict:
    return {k: counts.get(k, 0) for k in keys}


def organization_stats(store: TaskStore, scope: OrganizationScope) -> dict:
    user_rows = (
        db.session.query(User.role, func.count(User.id))
        .filter(User.organization_id == scope.organization_id)
        .group_by(User.role)
        .all()
    )
    by_status = store.count_by(scope, "status")
    by_priority = store.count_by(scope, "priority")
    overdue_now = store.query(scope, TaskFilter(status="overdue")).count()
    total, done, rate = _completion(by_status)
    return {
        "userStats": {role: count for role, count in user_rows},
        "taskStats": _zero_filled(by_status, TASK_STATUSES),
        "priorityStats": _zero_filled(by_priority, TASK_PRIORITIES),
        "totalTasks": total,
        "completedTasks": done,
        "pendingTasks": total - done,
        "overdueTasks": overdue_now,
        "completionRate": rate,
    }


def employee_performance(store: TaskStore, scope: OrganizationScope, employee_id: int) -> dict:
    flt = TaskFilter(assigned_to=employee_id)
    by_status = store.count_by(scope, "status", flt)
    by_priority = store.count_by(scope, "priority", flt)
    total, done, rate = _completion(by_status)
    return {
        "totalTasks": total,
        "completedTasks": done,
        "pendingTasks": total - done,
        "completionRate": rate,
        "tasksByPriority": _zero_filled(by_priority, TASK_PRIORITIES),
        "tasksByStatus": _zero_filled(by_status, TASK_STATUSES),
    }
