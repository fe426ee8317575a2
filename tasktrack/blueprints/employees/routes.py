# tasktrack/blueprints/employees/routes.py
from flask import current_app, request
from flask_login import login_required

from ...security import active_required, roles_required, current_actor
from ...services import get_lifecycle, OrganizationScope
from ...services.notifications import notify_employee_approved
from ...services.stats import employee_performance
from ..utils import json_payload, ok, ok_list
from . import employees_bp


@employees_bp.get("")
@login_required
@active_required
@roles_required("admin")
def list_employees():
    directory = get_lifecycle().directory
    employees = directory.list_employees(
        OrganizationScope.of(current_actor()),
        status=request.args.get("status") or None,
    )
    return ok_list("employees", employees)


@employees_bp.get("/<int:user_id>")
@login_required
@active_required
def get_employee(user_id):
    actor = current_actor()
    directory = get_lifecycle().directory
    directory.ensure_can_view(actor, user_id)
    emp = directory.get_employee(OrganizationScope.of(actor), user_id)
    return ok(employee=emp.to_dict())


@employees_bp.put("/<int:user_id>")
@login_required
@active_required
@roles_required("admin")
def update_employee(user_id):
    directory = get_lifecycle().directory
    emp = directory.update(OrganizationScope.of(current_actor()), user_id, json_payload())
    return ok(employee=emp.to_dict())


@employees_bp.delete("/<int:user_id>")
@login_required
@active_required
@roles_required("admin")
def delete_employee(user_id):
    get_lifecycle().directory.delete(OrganizationScope.of(current_actor()), user_id)
    return "", 204


# ---- approvals ----

@employees_bp.put("/<int:user_id>/approve")
@login_required
@active_required
@roles_required("admin")
def approve_employee(user_id):
    emp = get_lifecycle().directory.approve(OrganizationScope.of(current_actor()), user_id)
    if not notify_employee_approved(emp):
        current_app.logger.warning("approval email for user %s was not sent", emp.id)
    return ok(employee=emp.to_dict())


@employees_bp.put("/<int:user_id>/reject")
@login_required
@active_required
@roles_required("admin")
def reject_employee(user_id):
    emp = get_lifecycle().directory.reject(OrganizationScope.of(current_actor()), user_id)
    return ok(employee=emp.to_dict())


# ---- per-employee task views ----

@employees_bp.get("/<int:user_id>/performance")
@login_required
@active_required
def employee_metrics(user_id):
    actor = current_actor()
    lifecycle = get_lifecycle()
    scope = OrganizationScope.of(actor)
    lifecycle.directory.ensure_can_view(actor, user_id)
    emp = lifecycle.directory.get_employee(scope, user_id)
    return ok(metrics=employee_performance(lifecycle.store, scope, emp.id))


@employees_bp.get("/<int:user_id>/tasks")
@login_required
@active_required
def employee_tasks(user_id):
    tasks = get_lifecycle().list_employee_tasks(
        current_actor(), user_id, status=request.args.get("status") or None
    )
    return ok_list("tasks", tasks)
