"""Response envelope: every body is {success, data?, message?}."""
from flask import jsonify, request

from splitledger.errors import ValidationError


def ok(data=None, message=None, status=200, **extra):
    body = {"success": True}
    if data is not None:
        body["data"] = data
    if message:
        body["message"] = message
    body.update(extra)
    return jsonify(body), status


def created(data=None, message=None):
    return ok(data, message, status=201)


def json_body():
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def query_bool(name):
    value = request.args.get(name)
    if value is None:
        return None
    return value.lower() == "true"


def query_page(default_limit=10, max_limit=100):
    try:
        page = int(request.args.get("page", 1))
        limit = int(request.args.get("limit", default_limit))
    except ValueError:
        raise ValidationError("page and limit must be integers")
    return max(page, 1), min(max(limit, 1), max_limit)
