# tasktrack/models/organization.py
import secrets
import string
from ..extensions import db
from ..utils import utcnow, isoformat

_SLUG_ALPHABET = string.ascii_lowercase + string.digits


def generate_slug() -> str:
    return "org-" + "".join(secrets.choice(_SLUG_ALPHABET) for _ in range(8))


class Organization(db.Model):
    __tablename__ = "organization"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), unique=True, nullable=False, index=True)
    # public handle employees use when registering
    slug = db.Column(db.String(40), unique=True, nullable=False, index=True, default=generate_slug)

    description = db.Column(db.String(500))
    industry = db.Column(db.String(120))
    website = db.Column(db.String(255))
    contact_email = db.Column(db.String(255))
    contact_phone = db.Column(db.String(50))
    logo = db.Column(db.String(255), default="default-org.png")

    created_at = db.Column(db.DateTime, default=utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    users = db.relationship("User", back_populates="organization", lazy="dynamic")
    tasks = db.relationship("Task", back_populates="organization", lazy="dynamic")

    # Fields an admin may edit through the API (camelCase -> column)
    EDITABLE_FIELDS = {
        "name": "name",
        "description": "description",
        "industry": "industry",
        "website": "website",
        "contactEmail": "contact_email",
        "contactPhone": "contact_phone",
        "logo": "logo",
    }

    def to_public_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "slug": self.slug}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "slug": self.slug,
            "description": self.description,
            "industry": self.industry,
            "website": self.website,
            "contactEmail": self.contact_email,
            "contactPhone": self.contact_phone,
            "logo": self.logo,
            "createdAt": isoformat(self.created_at),
            "updatedAt": isoformat(self.updated_at),
        }
