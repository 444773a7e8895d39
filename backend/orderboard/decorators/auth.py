from functools import wraps
from flask import abort, request
from flask_jwt_extended import get_jwt, get_jwt_identity, verify_jwt_in_request

from orderboard.services.context import ALL_VIEWS, VIEW_DASHBOARD, ActorContext
from orderboard.services.policy import has_capabilities


def require_capabilities(*codes: str):
    def outer(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            verify_jwt_in_request()
            if not has_capabilities(*codes):
                abort(403, description='Missing capability')
            return fn(*args, **kwargs)
        return wrapper
    return outer


def current_actor() -> ActorContext:
    """Build the explicit actor context from the verified token and view query args."""
    claims = get_jwt()
    view = request.args.get('view') or VIEW_DASHBOARD
    if view not in ALL_VIEWS:
        abort(400, description='view invalid')
    return ActorContext(
        user_id=get_jwt_identity(),
        email=claims.get('email', ''),
        role=claims.get('role', ''),
        capabilities=frozenset(claims.get('caps', [])),
        view=view,
        selected_account_id=request.args.get('account') or None,
    )
