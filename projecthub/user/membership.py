# projecthub/user/membership.py
#
# Follow, message and collaborator actions are only allowed between two
# users of the same (non-null) organization. Checked at write time.

from __future__ import annotations

from sqlalchemy.orm import Session

from projecthub.models.user import User
from projecthub.responses import fail


def same_organization(a: User, b: User) -> bool:
    return bool(a.organization) and a.organization == b.organization


def load_pair(db: Session, first_id: int, second_id: int) -> tuple[User, User]:
    first = db.get(User, first_id)
    second = db.get(User, second_id)
    if not first or not second:
        raise fail(404, "One or both users not found")
    return first, second


def require_same_organization(a: User, b: User, action: str) -> None:
    if not same_organization(a, b):
        raise fail(403, f"Users must be in the same organization to {action}")
