# tasktrack/services/employees.py
import logging
import secrets

from ..errors import NotFound, ValidationError, InvalidState, Forbidden
from ..extensions import db
from ..models.user import User
from .task_store import TaskStore, OrganizationScope

log = logging.getLogger(__name__)

# Fields an admin may edit on an employee (camelCase -> column)
EMPLOYEE_ADMIN_FIELDS = {
    "firstName": "first_name",
    "lastName": "last_name",
    "email": "email",
    "mobile": "mobile",
    "position": "position",
    "photo": "photo",
}


def generate_employee_id() -> str:
    return str(100000 + secrets.randbelow(900000))


class EmployeeDirectory:
    """Organization-scoped view of employees.

    Answers "may this user be assigned work?" for the lifecycle engine and
    carries the admin actions on employee accounts.
    """

    def __init__(self, session=None, store: TaskStore | None = None):
        self.session = session or db.session
        self.store = store or TaskStore(self.session)

    def _employees(self, scope: OrganizationScope):
        return self.session.query(User).filter(
            User.organization_id == scope.organization_id,
            User.role == "employee",
        )

    # ---- lookups ----

    def get_employee(self, scope: OrganizationScope, user_id) -> User:
        emp = self._employees(scope).filter(User.id == user_id).first()
        if emp is None:
            raise NotFound("No employee found with that ID.")
        return emp

    def list_employees(self, scope: OrganizationScope, status: str | None = None) -> list[User]:
        q = self._employees(scope)
        if status:
            if status not in User.STATUSES:
                raise ValidationError("Invalid employee status.", allowed=list(User.STATUSES))
            q = q.filter(User.status == status)
        return q.order_by(User.created_at.desc(), User.id.desc()).all()

    def pending_approvals(self, scope: OrganizationScope) -> list[User]:
        return self.list_employees(scope, status="pending")

    def resolve_assignee(self, scope: OrganizationScope, user_id) -> User:
        emp = self._employees(scope).filter(User.id == user_id, User.status == "active").first()
        if emp is None:
            raise ValidationError(
                "Invalid employee ID. Please select an active employee.",
                field="assignedTo",
            )
        return emp

    def ensure_can_view(self, actor, user_id) -> None:
        if not actor.is_admin and actor.id != user_id:
            raise Forbidden("You do not have permission to access this employee.")

    # ---- approvals ----

    def approve(self, scope: OrganizationScope, user_id) -> User:
        emp = self.get_employee(scope, user_id)
        if emp.status != "pending":
            raise InvalidState("Employee is already approved or rejected.", status=emp.status)

        employee_id = generate_employee_id()
        while self.session.query(User.id).filter(User.employee_id == employee_id).first() is not None:
            employee_id = generate_employee_id()

        emp.status = "active"
        emp.employee_id = employee_id
        self.session.commit()
        log.info("employee %s approved in org %s (employeeId=%s)", emp.id, scope.organization_id, employee_id)
        return emp

    def reject(self, scope: OrganizationScope, user_id) -> User:
        emp = self.get_employee(scope, user_id)
        if emp.status == "rejected":
            raise InvalidState("Employee is already rejected.", status=emp.status)
        # only active employees may hold tasks
        unassigned = self.store.unassign_all(scope, emp.id, commit=False)
        emp.status = "rejected"
        self.session.commit()
        log.info("employee %s rejected in org %s; %s task(s) unassigned", emp.id, scope.organization_id, unassigned)
        return emp

    # ---- edits ----

    def update(self, scope: OrganizationScope, user_id, payload: dict) -> User:
        emp = self.get_employee(scope, user_id)
        changes = {}
        for key, column in EMPLOYEE_ADMIN_FIELDS.items():
            if key in payload:
                changes[column] = payload[key]

        for column in ("first_name", "last_name"):
            if column in changes:
                val = changes[column].strip() if isinstance(changes[column], str) else ""
                if not 2 <= len(val) <= 30:
                    raise ValidationError("Names must be 2-30 characters long.", field=column)
                changes[column] = val

        if "email" in changes:
            email = (changes["email"] or "").strip().lower() if isinstance(changes["email"], str) else ""
            if "@" not in email:
                raise ValidationError("Please provide a valid email address.", field="email")
            taken = self.session.query(User.id).filter(User.email == email, User.id != emp.id).first()
            if taken is not None:
                raise ValidationError("Email is already registered.", field="email")
            changes["email"] = email

        for column in ("mobile", "position", "photo"):
            if column in changes and changes[column] is not None and not isinstance(changes[column], str):
                raise ValidationError(f"{column} must be text.", field=column)

        for column, value in changes.items():
            setattr(emp, column, value)
        self.session.commit()
        return emp

    def delete(self, scope: OrganizationScope, user_id) -> int:
        """Hard-delete the employee; their tasks stay, unassigned."""
        emp = self.get_employee(scope, user_id)
        unassigned = self.store.unassign_all(scope, emp.id, commit=False)
        self.session.delete(emp)
        self.session.commit()
        log.info("employee %s deleted from org %s; %s task(s) unassigned", user_id, scope.organization_id, unassigned)
        return unassigned
