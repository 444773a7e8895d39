"""Identity store plumbing around the order table: registration, login lookup,
password-reset requests, profile edits and MASTER account management.

Roles never change after creation. Deleting an account removes it from the roster
only; orders it owned keep their owner id and snapshot.
"""
from __future__ import annotations
import logging
from typing import Iterable
from sqlalchemy import select

from orderboard import get_db
from orderboard.constants.permissions import ROLE_MASTER, SELF_REGISTRABLE_ROLES
from orderboard.constants.seeds import DEMO_USERS
from orderboard.errors import NotFoundError, PermissionDenied, ValidationError
from orderboard.models.identity import PasswordReset, User
from orderboard.services.owner_resolver import find_user_by_email, normalize_email
from orderboard.services.policy import assert_capability

logger = logging.getLogger(__name__)

USER_NOT_FOUND = 'Usuário não encontrado.'
INVALID_PASSWORD = 'Senha inválida.'
MASTER_NOT_REGISTRABLE = 'A conta MASTER é fixa e não pode ser criada via cadastro.'
EMAIL_TAKEN = 'Já existe um usuário com este e-mail.'


class InvalidCredentials(Exception):
    pass


def user_json(u: User):
    return {
        'id': u.id,
        'name': u.name,
        'email': u.email,
        'role': u.role,
        'display_name': u.display_name,
        'photo_base64': u.photo_base64,
    }


def ensure_seed_users(session=None, users: Iterable[dict] = DEMO_USERS) -> int:
    """Create any missing demo account; existing e-mails are left untouched."""
    session = session or get_db()
    users = list(users)
    emails = [normalize_email(u['email']) for u in users]
    existing = set(session.execute(select(User.email).where(User.email.in_(emails))).scalars())
    created = 0
    for u in users:
        email = normalize_email(u['email'])
        if email in existing:
            continue
        user = User(name=u['name'], email=email, role=u['role'])
        user.set_password(u['password'])
        session.add(user)
        created += 1
    session.commit()
    if created:
        logger.info('Seeded %d demo user(s)', created)
    return created


def register_user(name: str, email: str, password: str, role: str) -> User:
    if role == ROLE_MASTER:
        raise ValidationError(MASTER_NOT_REGISTRABLE)
    if role not in SELF_REGISTRABLE_ROLES:
        raise ValidationError('role invalid')
    if not name or not password:
        raise ValidationError('name, email & password required')
    email = normalize_email(email)
    if not email:
        raise ValidationError('name, email & password required')
    session = get_db()
    if find_user_by_email(email, session) is not None:
        raise ValidationError(EMAIL_TAKEN)
    user = User(name=name, email=email, role=role)
    user.set_password(password)
    session.add(user)
    session.commit()
    logger.info('Registered %s account %s', role, email)
    return user


def authenticate(email: str, password: str, seed_demo_users: bool = False) -> User:
    session = get_db()
    if seed_demo_users:
        ensure_seed_users(session)
    user = find_user_by_email(email, session)
    if user is None:
        raise NotFoundError(USER_NOT_FOUND)
    if not user.verify_password(password or ''):
        raise InvalidCredentials(INVALID_PASSWORD)
    return user


def get_user(user_id: str) -> User:
    user = get_db().get(User, user_id)
    if user is None:
        raise NotFoundError(USER_NOT_FOUND)
    return user


def request_password_reset(email: str) -> None:
    """Record the request; the answer never reveals whether the e-mail exists."""
    session = get_db()
    session.add(PasswordReset(email=normalize_email(email)))
    session.commit()


_UNSET = object()


def update_profile(user_id: str, display_name=_UNSET, photo_base64=_UNSET) -> User:
    """Edit display fields. None or '' clears a field; omitted fields stay as they are.

    Orders already resolved to this user keep their old snapshot until rewritten.
    """
    session = get_db()
    user = session.get(User, user_id)
    if user is None:
        raise NotFoundError(USER_NOT_FOUND)
    if display_name is not _UNSET:
        user.display_name = display_name or None
    if photo_base64 is not _UNSET:
        if photo_base64 and not str(photo_base64).startswith('data:image/'):
            raise ValidationError('Selecione uma imagem (JPG, PNG ou GIF).')
        user.photo_base64 = photo_base64 or None
    session.commit()
    return user


def list_users_query(actor):
    assert_capability(actor, 'ACCOUNTS.MANAGE')
    return get_db().query(User).order_by(User.created_at.asc(), User.id.asc())


def delete_user(actor, user_id: str) -> User:
    assert_capability(actor, 'ACCOUNTS.MANAGE')
    if user_id == actor.user_id:
        raise PermissionDenied('Não é possível excluir sua própria conta')
    session = get_db()
    user = session.get(User, user_id)
    if user is None:
        raise NotFoundError(USER_NOT_FOUND)
    session.delete(user)
    session.commit()
    logger.info('Account %s (%s) deleted by %s', user_id, user.email, actor.user_id)
    return user


__all__ = [
    'InvalidCredentials', 'user_json', 'ensure_seed_users', 'register_user', 'authenticate', 'get_user',
    'request_password_reset', 'update_profile', 'list_users_query', 'delete_user',
]
