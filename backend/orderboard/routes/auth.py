from flask import Blueprint, request, abort, current_app
from flask_jwt_extended import create_access_token, jwt_required, get_jwt_identity

from orderboard.services.accounts import (
    InvalidCredentials, authenticate, get_user, register_user, request_password_reset, update_profile, user_json,
)
from orderboard.services.policy import effective_capabilities

auth_bp = Blueprint('auth', __name__)

RESET_REQUESTED = 'Se este e-mail existir, enviaremos instruções de recuperação.'


def _issue_token(user):
    caps = sorted(effective_capabilities(user.role))
    claims = {
        'role': user.role,
        'email': user.email,
        'caps': caps,
    }
    return create_access_token(identity=user.id, additional_claims=claims)


def _session_payload(user):
    body = user_json(user)
    body['capabilities'] = sorted(effective_capabilities(user.role))
    return {'access_token': _issue_token(user), 'user': body}


@auth_bp.post('/register')
def register():
    data = request.json or {}
    user = register_user(
        name=(data.get('name') or '').strip(),
        email=data.get('email') or '',
        password=data.get('password') or '',
        role=data.get('role') or 'CLIENT',
    )
    return _session_payload(user), 201


@auth_bp.post('/login')
def login():
    data = request.json or {}
    email = data.get('email'); password = data.get('password')
    if not email or not password:
        abort(400, description='email & password required')
    try:
        user = authenticate(email, password, seed_demo_users=current_app.config.get('SEED_DEMO_USERS_ON_LOGIN', False))
    except InvalidCredentials as e:
        abort(401, description=str(e))
    return _session_payload(user)


@auth_bp.get('/me')
@jwt_required()
def me():
    user = get_user(get_jwt_identity())
    body = user_json(user)
    body['capabilities'] = sorted(effective_capabilities(user.role))
    return body


@auth_bp.post('/password-reset')
def password_reset():
    data = request.json or {}
    email = data.get('email')
    if not email:
        abort(400, description='email required')
    request_password_reset(email)
    return {'detail': RESET_REQUESTED}, 202


@auth_bp.put('/profile')
@jwt_required()
def profile():
    data = request.json or {}
    fields = {k: data[k] for k in ('display_name', 'photo_base64') if k in data}
    user = update_profile(get_jwt_identity(), **fields)
    return user_json(user)
