# tasktrack/blueprints/tasks/routes.py
from flask import request
from flask_login import login_required

from ...security import active_required, roles_required, current_actor
from ...services import get_lifecycle
from ...services.notifications import notify_task_assigned
from ...services.overdue import sweep_overdue
from ...services.task_commands import CreateTaskCommand, build_update_command
from ..utils import json_payload, ok, ok_list
from . import tasks_bp


# ---- reads ----

@tasks_bp.get("")
@login_required
@active_required
def list_tasks():
    tasks = get_lifecycle().list_tasks(
        current_actor(),
        status=request.args.get("status") or None,
        priority=request.args.get("priority") or None,
        sort=request.args.get("sort") or None,
    )
    return ok_list("tasks", tasks)


@tasks_bp.get("/my-tasks")
@login_required
@active_required
def my_tasks():
    return ok_list("tasks", get_lifecycle().list_my_tasks(current_actor()))


@tasks_bp.get("/overdue")
@login_required
@active_required
def overdue_tasks():
    lifecycle = get_lifecycle()
    return ok_list("tasks", sweep_overdue(lifecycle.store, current_actor()))


@tasks_bp.get("/<int:task_id>")
@login_required
@active_required
def get_task(task_id):
    return ok(task=get_lifecycle().get_task(current_actor(), task_id).to_dict())


# ---- mutations ----

@tasks_bp.post("")
@login_required
@active_required
@roles_required("admin")
def create_task():
    cmd = CreateTaskCommand.from_payload(json_payload())
    task = get_lifecycle().create_task(current_actor(), cmd)
    if task.assigned_to_id:
        notify_task_assigned(task)
    return ok(201, task=task.to_dict())


@tasks_bp.put("/<int:task_id>")
@login_required
@active_required
def update_task(task_id):
    actor = current_actor()
    lifecycle = get_lifecycle()
    # ownership before payload validation
    before = lifecycle.get_task(actor, task_id).assigned_to_id
    cmd = build_update_command(actor, json_payload())
    task = lifecycle.update_task(actor, task_id, cmd)
    if task.assigned_to_id and task.assigned_to_id != before:
        notify_task_assigned(task)
    return ok(task=task.to_dict())


@tasks_bp.patch("/<int:task_id>/status")
@login_required
@active_required
def update_task_status(task_id):
    payload = json_payload()
    task = get_lifecycle().update_status(current_actor(), task_id, payload.get("status"))
    return ok(task=task.to_dict())


@tasks_bp.patch("/<int:task_id>/assign")
@login_required
@active_required
@roles_required("admin")
def assign_task(task_id):
    payload = json_payload()
    task = get_lifecycle().assign_task(current_actor(), task_id, payload.get("assignedTo"))
    notify_task_assigned(task)
    return ok(task=task.to_dict())


@tasks_bp.patch("/<int:task_id>/approve")
@login_required
@active_required
@roles_required("admin")
def approve_task(task_id):
    task = get_lifecycle().approve_task(current_actor(), task_id)
    return ok(task=task.to_dict())


@tasks_bp.delete("/<int:task_id>")
@login_required
@active_required
@roles_required("admin")
def delete_task(task_id):
    get_lifecycle().delete_task(current_actor(), task_id)
    return "", 204
