from .organization import Organization
from .user import User
from .task import Task, TASK_STATUSES, TASK_PRIORITIES, COMPLETION_STATUSES
