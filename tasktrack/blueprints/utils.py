# tasktrack/blueprints/utils.py
from flask import jsonify, request
from werkzeug.datastructures import MultiDict

from ..errors import ValidationError


def json_payload() -> dict:
    """Request body as a dict; an empty body counts as ``{}``."""
    if not request.data:
        return {}
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object.")
    return data


def ok(code=200, **data):
    return jsonify({"status": "success", "data": data}), code


def ok_list(key: str, items, code=200):
    items = list(items)
    return jsonify({
        "status": "success",
        "results": len(items),
        "data": {key: [i.to_dict() for i in items]},
    }), code


def form_errors(form) -> ValidationError:
    """Collapse WTForms errors into a single ValidationError."""
    messages = []
    for field, errs in form.errors.items():
        for err in errs:
            messages.append(f"{field}: {err}")
    return ValidationError("Invalid input data. " + " ".join(messages), fields=form.errors)


def bind_form(form_cls, payload: dict):
    """Feed a JSON body into a Flask-WTF form."""
    flat = MultiDict()
    for key, val in payload.items():
        if isinstance(val, bool) or val is None:
            continue
        if isinstance(val, (str, int, float)):
            flat.add(key, str(val))
    return form_cls(formdata=flat, meta={"csrf": False})
