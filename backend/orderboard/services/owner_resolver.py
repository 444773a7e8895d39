"""Map the free-text e-mail in an order's first column to an identity record.

The result is a point-in-time snapshot copied onto the order. Later profile edits on
the identity do not reach orders resolved earlier; only the next write of that row
re-resolves it.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Optional
from sqlalchemy import select

from orderboard import get_db
from orderboard.models.identity import User


@dataclass(frozen=True)
class OwnerSnapshot:
    owner_id: str
    owner_email: str
    owner_display_name: Optional[str] = None
    owner_photo_base64: Optional[str] = None

    @property
    def resolved(self) -> bool:
        return bool(self.owner_id)

    def to_json(self):
        return {
            'owner_id': self.owner_id,
            'owner_email': self.owner_email,
            'owner_display_name': self.owner_display_name,
            'owner_photo_base64': self.owner_photo_base64,
        }


def normalize_email(raw: Optional[str]) -> str:
    return (raw or '').strip().lower()


def find_user_by_email(email: str, session=None) -> Optional[User]:
    session = session or get_db()
    return session.execute(select(User).where(User.email == normalize_email(email))).scalars().first()


def resolve_owner(email_raw: Optional[str], actor) -> OwnerSnapshot:
    """Resolve email_raw to an owner snapshot.

    Blank input resolves to the acting identity. An address with no identity yields
    owner_id '' (the order exists but no CLIENT can see it).
    """
    email = normalize_email(email_raw)
    if not email:
        return OwnerSnapshot(owner_id=actor.user_id, owner_email=actor.email)
    user = find_user_by_email(email)
    if user is None:
        return OwnerSnapshot(owner_id='', owner_email=email)
    return OwnerSnapshot(
        owner_id=user.id,
        owner_email=email,
        owner_display_name=user.display_name,
        owner_photo_base64=user.photo_base64,
    )


__all__ = ['OwnerSnapshot', 'normalize_email', 'find_user_by_email', 'resolve_owner']
