"""
api.auth - Request-side view of the authenticated user.

Login itself happens elsewhere (OAuth provider); by the time a request
reaches this app the session cookie carries profissional_id, usf_id
and is_gestor.  This module only reads them.
"""

from __future__ import annotations

from functools import wraps
from typing import Optional

from flask import abort, g, session


def current_user() -> Optional[dict]:
    """Return {profissional_id, usf_id, is_gestor} or None when anonymous."""
    profissional_id = session.get("profissional_id")
    if profissional_id is None:
        return None
    return {
        "profissional_id": profissional_id,
        "usf_id": session.get("usf_id"),
        "is_gestor": bool(session.get("is_gestor")),
    }


def login_required(f):
    """401 unless the session carries an authenticated professional."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        user = current_user()
        if user is None:
            abort(401)
        g.user = user
        return f(*args, **kwargs)
    return decorated_function


def manager_required(f):
    """401 without a user, 403 unless the user is a manager (gestor)."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        user = current_user()
        if user is None:
            abort(401)
        if not user["is_gestor"]:
            abort(403)
        g.user = user
        return f(*args, **kwargs)
    return decorated_function
