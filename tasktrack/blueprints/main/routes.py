from flask import current_app, jsonify
from ...extensions import db
from ...utils import utcnow, isoformat
from . import main_bp


# ---- Tiny JSON health route (DB ping + version) ----
@main_bp.route("/status")
def status():
    ok_db = True
    try:
        db.session.execute(db.text("SELECT 1"))
    except Exception as e:
        current_app.logger.error(f"DB health failed: {e}")
        ok_db = False

    payload = {
        "service": "tasktrack",
        "version": current_app.config.get("APP_VERSION"),
        "time_utc": isoformat(utcnow()),
        "checks": {"database": "ok" if ok_db else "fail"},
    }
    return jsonify(payload), 200 if ok_db else 503
