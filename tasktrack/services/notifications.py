# tasktrack/services/notifications.py
"""Outbound email for account and task events.

Delivery problems are logged and swallowed: a lost email must never undo
an approval or an assignment that has already been committed.
"""
import logging

from flask import current_app, render_template
from flask_mail import Message

from ..extensions import mail

log = logging.getLogger(__name__)


def send_email(*, to, subject, template, **ctx) -> bool:
    try:
        if not to:
            log.warning("send_email: missing recipient")
            return False
        recipients = [to] if isinstance(to, str) else list(to)
        html = render_template(f"email/{template}", **ctx)

        sender = current_app.config.get("MAIL_DEFAULT_SENDER") or current_app.config.get("MAIL_USERNAME")
        if not sender:
            log.error("send_email: no sender configured")
            return False

        msg = Message(subject=subject, recipients=recipients, sender=sender)
        msg.html = html

        if current_app.config.get("MAIL_SUPPRESS_SEND"):
            log.info("[MAIL_SUPPRESS_SEND=1] would send: %s | %s", recipients, subject)
            return True

        mail.send(msg)
        log.info("Email sent to %s | subject=%s", recipients, subject)
        return True
    except Exception as e:
        log.exception("send_email failed: %s", e)
        return False


def _base_url() -> str:
    return current_app.config.get("EXTERNAL_BASE_URL", "http://localhost:5000").rstrip("/")


def notify_employee_approved(employee) -> bool:
    return send_email(
        to=employee.email,
        subject="Your TaskTrack account has been approved",
        template="employee_approved.html",
        employee=employee,
        login_url=f"{_base_url()}/login",
    )


def notify_task_assigned(task) -> bool:
    if task.assignee is None:
        return False
    return send_email(
        to=task.assignee.email,
        subject=f"New TaskTrack task: {task.title}",
        template="task_assigned.html",
        task=task,
        assignee=task.assignee,
    )


def send_password_reset(user, token: str) -> bool:
    return send_email(
        to=user.email,
        subject="Reset your TaskTrack password",
        template="password_reset.html",
        user=user,
        link=f"{_base_url()}/reset-password/{token}",
    )
