# dental_app_pkg/notices.py
from flask import jsonify


def notice(title, description, variant='default'):
    """Toast-style message the frontend shows as a transient notification."""
    return {"title": title, "description": description, "variant": variant}


def error_notice(error):
    """Turns a DentalAppError into a destructive notice response."""
    return jsonify({"notice": notice(error.title, error.description, 'destructive')}), error.status_code


def success_response(title, description, status_code=200, **payload):
    body = dict(payload)
    body["notice"] = notice(title, description)
    return jsonify(body), status_code
