# tasktrack/services/overdue.py
"""Overdue sweep.

Pull-based: clients poll ``GET /api/tasks/overdue`` and the sweep runs as
part of that call. Detection and promotion are separate steps so the
side-effecting half can be exercised on its own.
"""
import logging
from typing import Iterable

from ..models.task import COMPLETION_STATUSES, TASK_STATUSES
from ..utils import utcnow
from .task_lifecycle import visible_filter
from .task_store import TaskStore, TaskFilter, OrganizationScope

log = logging.getLogger(__name__)

# statuses the sweep may move to overdue
SWEEPABLE_STATUSES = tuple(s for s in TASK_STATUSES if s not in COMPLETION_STATUSES)


def overdue_filter(actor, now) -> TaskFilter:
    return visible_filter(actor, due_before=now, status_not_in=COMPLETION_STATUSES)


def detect_overdue(store: TaskStore, scope: OrganizationScope, flt: TaskFilter) -> list[int]:
    return store.ids(scope, flt)


def promote_overdue(store: TaskStore, scope: OrganizationScope, ids: Iterable[int]) -> int:
    # a task completed since detection keeps its status
    return store.bulk_set_status(scope, ids, "overdue", only_from=SWEEPABLE_STATUSES)


def sweep_overdue(store: TaskStore, actor, now=None) -> list:
    """Flag past-due tasks visible to ``actor`` and return them, refreshed."""
    now = now or utcnow()
    scope = OrganizationScope.of(actor)
    flt = overdue_filter(actor, now)

    ids = detect_overdue(store, scope, flt)
    if not ids:
        return []

    promoted = promote_overdue(store, scope, ids)
    if promoted:
        log.info("overdue sweep for user %s: %s task(s) promoted", actor.id, promoted)
    return store.query(scope, flt).all()
