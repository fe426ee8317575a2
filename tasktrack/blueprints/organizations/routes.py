# tasktrack/blueprints/organizations/routes.py
from flask import current_app
from flask_login import login_required

from ...errors import NotFound, ValidationError
from ...extensions import db
from ...models.organization import Organization
from ...security import active_required, roles_required, current_actor
from ...services import TaskStore, OrganizationScope
from ...services.stats import organization_stats
from ..utils import json_payload, ok
from . import organizations_bp


def _own_organization() -> Organization:
    org = db.session.get(Organization, current_actor().organization_id)
    if org is None:
        raise NotFound("No organization found.")
    return org


@organizations_bp.get("/available")
def available_organizations():
    # public: the registration form needs names and slugs
    orgs = Organization.query.order_by(Organization.name.asc()).all()
    return ok(organizations=[o.to_public_dict() for o in orgs])


@organizations_bp.get("")
@login_required
@active_required
def get_organization():
    return ok(organization=_own_organization().to_dict())


@organizations_bp.put("")
@login_required
@active_required
@roles_required("admin")
def update_organization():
    org = _own_organization()
    payload = json_payload()

    changes = {col: payload[key] for key, col in Organization.EDITABLE_FIELDS.items() if key in payload}
    if "name" in changes:
        name = (changes["name"] or "").strip() if isinstance(changes["name"], str) else ""
        if not 2 <= len(name) <= 100:
            raise ValidationError("Organization name must be 2-100 characters long.", field="name")
        clash = Organization.query.filter(Organization.name == name, Organization.id != org.id).first()
        if clash is not None:
            raise ValidationError("Organization name is already taken.", field="name")
        changes["name"] = name
    for key, col in Organization.EDITABLE_FIELDS.items():
        if col in changes and changes[col] is not None and not isinstance(changes[col], str):
            raise ValidationError(f"{key} must be text.", field=key)
    if len(changes.get("description") or "") > 500:
        raise ValidationError("Organization description cannot exceed 500 characters.", field="description")

    for col, value in changes.items():
        setattr(org, col, value)
    db.session.commit()
    current_app.logger.info("organization %s updated (%s)", org.id, ", ".join(sorted(changes)) or "no changes")
    return ok(organization=org.to_dict())


@organizations_bp.get("/stats")
@login_required
@active_required
@roles_required("admin")
def organization_statistics():
    scope = OrganizationScope.of(current_actor())
    return ok(**organization_stats(TaskStore(), scope))
