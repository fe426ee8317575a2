# tasktrack/models/user.py
from werkzeug.security import generate_password_hash, check_password_hash
from flask_login import UserMixin
from ..extensions import db
from ..utils import utcnow, isoformat


class User(UserMixin, db.Model):
    __tablename__ = "user"

    ROLES = ("admin", "employee")
    STATUSES = ("pending", "active", "rejected")

    id = db.Column(db.Integer, primary_key=True)
    first_name = db.Column(db.String(30), nullable=False)
    last_name = db.Column(db.String(30), nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    mobile = db.Column(db.String(20))
    position = db.Column(db.String(120))
    photo = db.Column(db.String(255), default="default.jpg")

    password_hash = db.Column(db.String(255))
    password_changed_at = db.Column(db.DateTime)

    # admin|employee
    role = db.Column(db.String(20), nullable=False, default="employee", index=True)
    # pending|active|rejected
    status = db.Column(db.String(20), nullable=False, default="pending", index=True)

    organization_id = db.Column(db.Integer, db.ForeignKey("organization.id"), nullable=False, index=True)
    # 6-digit staff number, issued on approval (NULLs don't collide)
    employee_id = db.Column(db.String(6), unique=True, index=True)

    created_at = db.Column(db.DateTime, default=utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    organization = db.relationship("Organization", back_populates="users")

    # Profile fields a user may edit on themselves
    PROFILE_FIELDS = {
        "firstName": "first_name",
        "lastName": "last_name",
        "mobile": "mobile",
        "photo": "photo",
    }

    # --- Auth helpers ---
    def set_password(self, password: str):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        if not self.password_hash:
            return False
        return check_password_hash(self.password_hash, password)

    # --- Convenience flags ---
    @property
    def name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    @property
    def is_active_account(self) -> bool:
        return self.status == "active"

    def to_summary(self) -> dict:
        return {"id": self.id, "name": self.name, "email": self.email}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "name": self.name,
            "email": self.email,
            "mobile": self.mobile or "",
            "position": self.position,
            "photo": self.photo,
            "role": self.role,
            "status": self.status,
            "employeeId": self.employee_id,
            "organizationId": self.organization_id,
            "organizationName": self.organization.name if self.organization else "",
            "createdAt": isoformat(self.created_at),
            "updatedAt": isoformat(self.updated_at),
        }
