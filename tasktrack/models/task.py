# tasktrack/models/task.py
from ..extensions import db
from ..utils import utcnow, isoformat

TASK_STATUSES = ("todo", "inprogress", "completed", "approved", "overdue")
TASK_PRIORITIES = ("low", "medium", "high", "urgent")
# statuses that carry a completed_at timestamp
COMPLETION_STATUSES = ("completed", "approved")


class Task(db.Model):
    __tablename__ = "task"
    __table_args__ = (
        db.Index("ix_task_org_status", "organization_id", "status"),
        db.Index("ix_task_assignee_status", "assigned_to_id", "status"),
    )

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(100), nullable=False)
    description = db.Column(db.String(1000))

    status = db.Column(db.String(20), nullable=False, default="todo")        # todo|inprogress|completed|approved|overdue
    priority = db.Column(db.String(20), nullable=False, default="medium", index=True)  # low|medium|high|urgent

    assigned_to_id = db.Column(db.Integer, db.ForeignKey("user.id"))
    created_by_id = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=False, index=True)
    organization_id = db.Column(db.Integer, db.ForeignKey("organization.id"), nullable=False)

    due_date = db.Column(db.DateTime, index=True)
    completed_at = db.Column(db.DateTime)

    # Auxiliary metadata, stored as-is
    tags = db.Column(db.JSON, default=list)
    attachments = db.Column(db.JSON, default=list)
    comments = db.Column(db.JSON, default=list)
    checklist = db.Column(db.JSON, default=list)
    watchers = db.Column(db.JSON, default=list)
    estimated_hours = db.Column(db.Float)

    created_at = db.Column(db.DateTime, default=utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    assignee = db.relationship(
        "User",
        foreign_keys=[assigned_to_id],
        backref=db.backref("assigned_tasks", lazy="dynamic"),
    )
    creator = db.relationship(
        "User",
        foreign_keys=[created_by_id],
        backref=db.backref("created_tasks", lazy="dynamic"),
    )
    organization = db.relationship("Organization", back_populates="tasks")

    def is_overdue_at(self, now) -> bool:
        if not self.due_date:
            return False
        return self.completed_at is None and now > self.due_date

    @property
    def is_overdue(self) -> bool:
        return self.is_overdue_at(utcnow())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "status": self.status,
            "priority": self.priority,
            "assignedTo": self.assigned_to_id,
            "assignee": self.assignee.to_summary() if self.assignee else None,
            "createdBy": self.created_by_id,
            "creator": self.creator.to_summary() if self.creator else None,
            "organization": self.organization_id,
            "dueDate": isoformat(self.due_date),
            "completedAt": isoformat(self.completed_at),
            "isOverdue": self.is_overdue,
            "tags": list(self.tags or []),
            "attachments": list(self.attachments or []),
            "comments": list(self.comments or []),
            "checklist": list(self.checklist or []),
            "watchers": list(self.watchers or []),
            "estimatedHours": self.estimated_hours,
            "createdAt": isoformat(self.created_at),
            "updatedAt": isoformat(self.updated_at),
        }
