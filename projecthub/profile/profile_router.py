# projecthub/profile/profile_router.py

import logging

from fastapi import APIRouter, Depends
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from projecthub.auth.auth_router import (
    Principal,
    create_access_token,
    get_current_user,
    hash_password,
    user_payload,
)
from projecthub.database import get_db
from projecthub.models.user import User
from projecthub.responses import fail, ok
from projecthub.schemas.user_schema import ProfileCreate, ProfileRead, ProfileUpdate

logger = logging.getLogger("projecthub.profile")

router = APIRouter(prefix="/profile", tags=["profile"])


def _identity_taken(db: Session, username: str, email: str) -> bool:
    return (
        db.query(User.id)
        .filter(or_(User.username == username, User.email == email))
        .first()
        is not None
    )


def _require_self(user_id: int, principal: Principal, action: str) -> None:
    if principal.user_id != user_id:
        raise fail(403, f"You can only {action} your own profile")


@router.get("/{user_id}")
def get_profile(user_id: int, db: Session = Depends(get_db)):
    user = db.get(User, user_id)
    if not user:
        raise fail(404, "User not found")
    return ok(ProfileRead.model_validate(user))


# registration, no token needed
@router.post("", status_code=201)
def create_profile(data: ProfileCreate, db: Session = Depends(get_db)):
    if _identity_taken(db, data.username, data.email):
        raise fail(409, "Username or email already exists")

    user = User(
        username=data.username,
        name=data.name,
        email=data.email,
        password=hash_password(data.password),
        phone=data.phone,
        position=data.position,
        organization=data.organization or None,
        github_url=data.github_url,
        linkedin_url=data.linkedin_url,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # lost a race with a concurrent registration
        db.rollback()
        raise fail(409, "Username or email already exists")
    db.refresh(user)

    logger.info("user_registered", extra={"user_id": user.id})
    token = create_access_token(user.id, user.username, user.email)
    return ok(user_payload(user), "Profile created successfully", token=token)


@router.patch("/{user_id}")
def update_profile(
    user_id: int,
    data: ProfileUpdate,
    principal: Principal = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    _require_self(user_id, principal, "update")

    user = db.get(User, user_id)
    if not user:
        raise fail(404, "User not found")

    changes = data.model_dump(exclude_unset=True)
    if not changes:
        raise fail(400, "No valid fields to update")

    for field in ("username", "email"):
        if field in changes:
            column = getattr(User, field)
            taken = db.query(User.id).filter(column == changes[field], User.id != user_id).first()
            if taken:
                raise fail(409, f"{field.capitalize()} already exists")

    if "password" in changes:
        changes["password"] = hash_password(changes["password"])

    for field, value in changes.items():
        setattr(user, field, value)

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise fail(409, "Username or email already exists")
    return ok(message="Profile updated successfully")


@router.delete("/{user_id}")
def delete_profile(
    user_id: int,
    principal: Principal = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    _require_self(user_id, principal, "delete")

    user = db.get(User, user_id)
    if not user:
        raise fail(404, "User not found")

    # projects, comments, likes, messages... go with it (ON DELETE CASCADE)
    db.delete(user)
    db.commit()

    logger.info("user_deleted", extra={"user_id": user_id})
    return ok(message="Profile and all associated projects deleted successfully")
