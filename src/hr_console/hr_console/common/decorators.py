from __future__ import annotations

from functools import wraps

from flask import jsonify, session


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return jsonify({"success": False, "message": "Not authorized, please log in."}), 401
        return view(*args, **kwargs)

    return wrapper


def roles_required(*roles):
    allowed = {getattr(r, "value", r) for r in roles}

    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            if "user_id" not in session:
                return jsonify({"success": False, "message": "Not authorized, please log in."}), 401
            if session.get("role") not in allowed:
                return jsonify({"success": False, "message": "You do not have permission for this action."}), 403
            return view(*args, **kwargs)

        return wrapper

    return decorator
