from flask import current_app, jsonify, request
from werkzeug.exceptions import HTTPException
from ...errors import TaskTrackError
from ...extensions import db
from . import errors_bp


# Business errors raised by the services (400/403/404/409)
@errors_bp.app_errorhandler(TaskTrackError)
def err_business(e: TaskTrackError):
    # a failed mutation must not leave the session half-flushed
    db.session.rollback()
    current_app.logger.warning(
        "%s %s -> %s: %s", request.method, request.path, e.kind, e.message
    )
    return jsonify(e.to_dict()), e.http_status


# Any werkzeug HTTPException (404 route, 405, 413, ...)
@errors_bp.app_errorhandler(HTTPException)
def err_http(e: HTTPException):
    return jsonify({"status": "fail", "error": e.name, "message": e.description}), e.code


# Last-resort: any other Exception
@errors_bp.app_errorhandler(Exception)
def err_unexpected(e):
    try:
        db.session.rollback()
    except Exception:
        current_app.logger.exception("rollback after unexpected error failed")
    current_app.logger.exception("Unhandled error on %s %s", request.method, request.path)
    # Don't leak internals, just a generic 500
    return jsonify({"status": "error", "message": "Something went wrong"}), 500
