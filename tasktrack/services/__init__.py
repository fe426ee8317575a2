from flask import current_app

from .employees import EmployeeDirectory
from .task_lifecycle import TaskLifecycle, transition_policy
from .task_store import TaskStore, OrganizationScope, TaskFilter


def get_lifecycle() -> TaskLifecycle:
    """Request-scoped engine wired to the app's session and configured policy."""
    store = TaskStore()
    return TaskLifecycle(
        store=store,
        directory=EmployeeDirectory(store.session, store),
        policy=transition_policy(current_app.config.get("STRICT_STATUS_TRANSITIONS", False)),
    )
