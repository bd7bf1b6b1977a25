# projecthub/user/user_router.py

import logging

from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from projecthub.auth.auth_router import Principal, get_current_user
from projecthub.database import get_db
from projecthub.models.social import UserFollow
from projecthub.models.user import User
from projecthub.responses import fail, ok
from projecthub.user.membership import load_pair, require_same_organization

logger = logging.getLogger("projecthub.user")

router = APIRouter(prefix="/users", tags=["users"])


def _public_user(user: User) -> dict:
    return {
        "id": user.id,
        "username": user.username,
        "name": user.name,
        "position": user.position,
        "organization": user.organization,
        "email": user.email,
    }


# ==========================
#  FOLLOW / UNFOLLOW
# ==========================
@router.post("/{user_id}/follow", status_code=201)
def follow_user(
    user_id: int,
    principal: Principal = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if user_id == principal.user_id:
        raise fail(400, "You cannot follow yourself")

    follower, following = load_pair(db, principal.user_id, user_id)
    require_same_organization(follower, following, "follow")

    db.add(UserFollow(follower_id=follower.id, following_id=following.id))
    try:
        db.commit()
    except IntegrityError:
        # unique (follower_id, following_id)
        db.rollback()
        raise fail(409, "You are already following this user")

    logger.info("user_followed", extra={"follower_id": follower.id, "following_id": following.id})
    return ok(message="User followed successfully")


@router.post("/{user_id}/unfollow")
def unfollow_user(
    user_id: int,
    principal: Principal = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    deleted = (
        db.query(UserFollow)
        .filter(UserFollow.follower_id == principal.user_id, UserFollow.following_id == user_id)
        .delete(synchronize_session=False)
    )
    if not deleted:
        raise fail(404, "Follow relationship not found")

    db.commit()
    return ok(message="User unfollowed successfully")


# ==========================
#  LISTS
# ==========================
@router.get("/{user_id}/followers")
def get_followers(user_id: int, db: Session = Depends(get_db)):
    users = (
        db.query(User)
        .join(UserFollow, User.id == UserFollow.follower_id)
        .filter(UserFollow.following_id == user_id)
        .order_by(UserFollow.created_at.desc(), UserFollow.id.desc())
        .all()
    )
    return ok([_public_user(u) for u in users], count=len(users))


@router.get("/{user_id}/following")
def get_following(user_id: int, db: Session = Depends(get_db)):
    users = (
        db.query(User)
        .join(UserFollow, User.id == UserFollow.following_id)
        .filter(UserFollow.follower_id == user_id)
        .order_by(UserFollow.created_at.desc(), UserFollow.id.desc())
        .all()
    )
    return ok([_public_user(u) for u in users], count=len(users))


@router.get("/{user_id}/is-following")
def is_following(
    user_id: int,
    principal: Principal = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    count = (
        db.query(func.count(UserFollow.id))
        .filter(UserFollow.follower_id == principal.user_id, UserFollow.following_id == user_id)
        .scalar()
    )
    return ok(isFollowing=bool(count))


@router.get("/organization/{organization}/members")
def get_organization_members(
    organization: str,
    principal: Principal = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    following = (
        select(func.count(UserFollow.id))
        .where(UserFollow.follower_id == principal.user_id, UserFollow.following_id == User.id)
        .correlate(User)
        .scalar_subquery()
        .label("is_following")
    )
    rows = (
        db.query(User, following)
        .filter(User.organization == organization, User.id != principal.user_id)
        .order_by(User.name.asc())
        .all()
    )

    data = []
    for user, is_following_count in rows:
        item = _public_user(user)
        item.pop("organization")
        item["is_following"] = is_following_count
        data.append(item)

    return ok(data, count=len(data))
