# tasktrack/services/task_commands.py
"""Typed task commands built from request payloads.

Each role gets its own update command, so the fields an employee may not
touch are never carried into the lifecycle engine at all.
"""
from dataclasses import dataclass, fields
from typing import Any, Optional, Union

from ..errors import ValidationError
from ..models.task import TASK_STATUSES, TASK_PRIORITIES
from ..utils import parse_datetime


class _Unset:
    def __repr__(self):
        return "UNSET"

    def __bool__(self):
        return False


UNSET: Any = _Unset()


# ---------------------
# Field validators
# ---------------------

def clean_title(val) -> str:
    if not isinstance(val, str) or not val.strip():
        raise ValidationError("A task must have a title.", field="title")
    title = val.strip()
    if len(title) < 3:
        raise ValidationError("Task title must be at least 3 characters long.", field="title")
    if len(title) > 100:
        raise ValidationError("Task title cannot exceed 100 characters.", field="title")
    return title


def clean_description(val) -> Optional[str]:
    if val is None:
        return None
    if not isinstance(val, str):
        raise ValidationError("Task description must be text.", field="description")
    desc = val.strip()
    if len(desc) > 1000:
        raise ValidationError("Task description cannot exceed 1000 characters.", field="description")
    return desc


def clean_status(val) -> str:
    if val not in TASK_STATUSES:
        raise ValidationError("Invalid status value.", field="status", allowed=list(TASK_STATUSES))
    return val


def clean_priority(val) -> str:
    if val not in TASK_PRIORITIES:
        raise ValidationError("Invalid priority value.", field="priority", allowed=list(TASK_PRIORITIES))
    return val


def clean_due_date(val):
    try:
        return parse_datetime(val)
    except (TypeError, ValueError):
        raise ValidationError("Invalid due date. Use an ISO 8601 date or datetime.", field="dueDate")


def clean_user_ref(val, field: str) -> Optional[int]:
    if val is None or val == "":
        return None
    if isinstance(val, bool):
        raise ValidationError("Invalid employee ID.", field=field)
    try:
        return int(val)
    except (TypeError, ValueError):
        raise ValidationError("Invalid employee ID.", field=field)


def clean_tags(val) -> list:
    if val is None:
        return []
    if not isinstance(val, list) or not all(isinstance(t, str) for t in val):
        raise ValidationError("Tags must be a list of strings.", field="tags")
    return [t.strip() for t in val if t.strip()]


def clean_list(val, field: str) -> list:
    if val is None:
        return []
    if not isinstance(val, list):
        raise ValidationError(f"{field} must be a list.", field=field)
    return val


def clean_hours(val) -> Optional[float]:
    if val is None or val == "":
        return None
    try:
        hours = float(val)
    except (TypeError, ValueError):
        raise ValidationError("Estimated hours must be a number.", field="estimatedHours")
    if hours < 0:
        raise ValidationError("Estimated hours cannot be negative.", field="estimatedHours")
    return hours


# ---------------------
# Commands
# ---------------------

@dataclass(frozen=True)
class CreateTaskCommand:
    title: str
    description: Optional[str] = None
    priority: str = "medium"
    assigned_to: Optional[int] = None
    due_date: Any = None
    tags: tuple = ()
    attachments: tuple = ()
    checklist: tuple = ()
    watchers: tuple = ()
    estimated_hours: Optional[float] = None

    @classmethod
    def from_payload(cls, payload: dict) -> "CreateTaskCommand":
        return cls(
            title=clean_title(payload.get("title")),
            description=clean_description(payload.get("description")),
            priority=clean_priority(payload.get("priority") or "medium"),
            assigned_to=clean_user_ref(payload.get("assignedTo"), "assignedTo"),
            due_date=clean_due_date(payload.get("dueDate")),
            tags=tuple(clean_tags(payload.get("tags"))),
            attachments=tuple(clean_list(payload.get("attachments"), "attachments")),
            checklist=tuple(clean_list(payload.get("checklist"), "checklist")),
            watchers=tuple(clean_list(payload.get("watchers"), "watchers")),
            estimated_hours=clean_hours(payload.get("estimatedHours")),
        )


@dataclass(frozen=True)
class EmployeeTaskUpdate:
    """What the assignee may change on their own task."""
    title: Any = UNSET
    description: Any = UNSET
    priority: Any = UNSET
    tags: Any = UNSET
    comments: Any = UNSET

    def changes(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self) if getattr(self, f.name) is not UNSET}


@dataclass(frozen=True)
class AdminTaskUpdate(EmployeeTaskUpdate):
    assigned_to: Any = UNSET
    status: Any = UNSET
    due_date: Any = UNSET


TaskUpdate = Union[AdminTaskUpdate, EmployeeTaskUpdate]


def _common_fields(payload: dict) -> dict:
    out = {}
    if "title" in payload:
        out["title"] = clean_title(payload["title"])
    if "description" in payload:
        out["description"] = clean_description(payload["description"])
    if "priority" in payload:
        out["priority"] = clean_priority(payload["priority"])
    if "tags" in payload:
        out["tags"] = clean_tags(payload["tags"])
    if "comments" in payload:
        out["comments"] = clean_list(payload["comments"], "comments")
    return out


def build_update_command(actor, payload: dict) -> TaskUpdate:
    """Turn a request body into the caller's update command.

    Keys outside the caller's command (e.g. ``assignedTo`` from an employee)
    are dropped here, not reported.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object.")
    common = _common_fields(payload)
    if not actor.is_admin:
        return EmployeeTaskUpdate(**common)

    extra = {}
    if "assignedTo" in payload:
        extra["assigned_to"] = clean_user_ref(payload["assignedTo"], "assignedTo")
    if "status" in payload:
        extra["status"] = clean_status(payload["status"])
    if "dueDate" in payload:
        extra["due_date"] = clean_due_date(payload["dueDate"])
    return AdminTaskUpdate(**common, **extra)
