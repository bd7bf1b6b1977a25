# projecthub/project/project_router.py

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import case, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, aliased

from projecthub.auth.auth_router import Principal, get_current_user, get_optional_user
from projecthub.database import get_db, unit_of_work
from projecthub.models.comment import Comment
from projecthub.models.project import Project
from projecthub.models.social import CommentLike, ProjectLike
from projecthub.models.user import User
from projecthub.notification import fanout
from projecthub.project import feed_query
from projecthub.project.feed_query import FeedQueryError, ProjectFilters
from projecthub.responses import fail, ok, pagination
from projecthub.schemas.project_schema import CommentCreate, CommentRead, ProjectCreate, ProjectRead, ProjectUpdate

logger = logging.getLogger("projecthub.project")

router = APIRouter(prefix="/projects", tags=["projects"])


def _decrement(column):
    # counters never go below zero
    return case((column > 0, column - 1), else_=0)


def _get_project_or_404(db: Session, project_id: int) -> Project:
    project = db.get(Project, project_id)
    if not project:
        raise fail(404, "Project not found")
    return project


def _require_owner(project: Project, principal: Principal) -> None:
    if project.user_id != principal.user_id:
        raise fail(403, "Forbidden. You are not the owner of this project.")


def _existing_like(db: Session, project_id: int, user_id: int) -> Optional[ProjectLike]:
    return (
        db.query(ProjectLike)
        .filter(ProjectLike.project_id == project_id, ProjectLike.user_id == user_id)
        .first()
    )


def _viewer(user_id: Optional[int], principal: Optional[Principal]) -> Optional[int]:
    if user_id is not None:
        return user_id
    return principal.user_id if principal else None


def _comment_with_author(db: Session, comment_id: int) -> dict:
    comment, username, user_name = (
        db.query(Comment, User.username, User.name)
        .join(User, Comment.user_id == User.id)
        .filter(Comment.id == comment_id)
        .one()
    )
    item = CommentRead.model_validate(comment).model_dump(mode="json")
    item.update(username=username, user_name=user_name)
    return item


# ==========================
#  FEED
# ==========================
@router.get("")
def get_all_projects(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    privacy: str = "all",
    organization: Optional[str] = None,
    tag: Optional[str] = None,
    user_id: Optional[int] = Query(None, alias="userId"),
    user_organization: Optional[str] = Query(None, alias="userOrganization"),
    principal: Optional[Principal] = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    filters = ProjectFilters(
        page=page,
        limit=limit,
        privacy=privacy,
        organization=organization,
        user_organization=user_organization,
        tag=tag,
        viewer_id=_viewer(user_id, principal),
    )
    try:
        result = feed_query.list_projects(db, filters)
    except FeedQueryError as exc:
        raise fail(400, str(exc))

    return ok(result.items, pagination=pagination(page, limit))


@router.get("/search")
def search_projects(
    q: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    privacy: str = "public",
    user_id: Optional[int] = Query(None, alias="userId"),
    principal: Optional[Principal] = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    filters = ProjectFilters(page=page, limit=limit, privacy=privacy, viewer_id=_viewer(user_id, principal))
    try:
        result = feed_query.search_projects(db, q, filters)
    except FeedQueryError as exc:
        raise fail(400, str(exc))

    return ok(
        result.items,
        pagination=pagination(page, limit, result.total),
        searchQuery=q.strip(),
    )


@router.get("/organizations")
def get_organizations(db: Session = Depends(get_db)):
    return ok(feed_query.list_organizations(db))


@router.get("/tags")
def get_tags(db: Session = Depends(get_db)):
    return ok(feed_query.list_tags(db))


@router.get("/user/{user_id}")
def get_user_projects(
    user_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
):
    projects = (
        db.query(Project)
        .filter(Project.user_id == user_id)
        .order_by(Project.created_at.desc(), Project.id.desc())
        .limit(limit)
        .offset((page - 1) * limit)
        .all()
    )
    return ok([ProjectRead.model_validate(p) for p in projects], pagination=pagination(page, limit))


# ==========================
#  COMMENTS (comment-id routes)
# ==========================
@router.get("/comments/{comment_id}/replies")
def get_comment_replies(
    comment_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    user_id: Optional[int] = Query(None, alias="userId"),
    principal: Optional[Principal] = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    user_id = _viewer(user_id, principal)
    if not db.get(Comment, comment_id):
        raise fail(404, "Comment not found")

    columns = [Comment, User.username, User.name.label("user_name")]
    if user_id is not None:
        columns.append(
            select(func.count(CommentLike.id))
            .where(CommentLike.comment_id == Comment.id, CommentLike.user_id == user_id)
            .correlate(Comment)
            .scalar_subquery()
            .label("user_liked_comment")
        )

    rows = (
        db.query(*columns)
        .join(User, Comment.user_id == User.id)
        .filter(Comment.parent_comment_id == comment_id)
        .order_by(Comment.created_at.asc(), Comment.id.asc())
        .limit(limit)
        .offset((page - 1) * limit)
        .all()
    )

    data = []
    for row in rows:
        item = CommentRead.model_validate(row[0]).model_dump(mode="json")
        item.update(username=row.username, user_name=row.user_name)
        if user_id is not None:
            item["user_liked_comment"] = row.user_liked_comment
        data.append(item)

    return ok(data, pagination=pagination(page, limit))


@router.post("/comments/{comment_id}/like")
def toggle_comment_like(
    comment_id: int,
    principal: Principal = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if not db.get(Comment, comment_id):
        raise fail(404, "Comment not found")
    if not db.get(User, principal.user_id):
        raise fail(404, "User not found")

    existing = (
        db.query(CommentLike)
        .filter(CommentLike.comment_id == comment_id, CommentLike.user_id == principal.user_id)
        .first()
    )

    try:
        with unit_of_work(db):
            if existing:
                db.delete(existing)
                db.execute(
                    update(Comment)
                    .where(Comment.id == comment_id)
                    .values(likes_count=_decrement(Comment.likes_count))
                    .execution_options(synchronize_session=False)
                )
                liked = False
            else:
                db.add(CommentLike(comment_id=comment_id, user_id=principal.user_id))
                db.execute(
                    update(Comment)
                    .where(Comment.id == comment_id)
                    .values(likes_count=Comment.likes_count + 1)
                    .execution_options(synchronize_session=False)
                )
                liked = True
    except IntegrityError:
        raise fail(409, "Comment already liked")

    likes_count = db.query(Comment.likes_count).filter(Comment.id == comment_id).scalar()
    return ok(
        {"liked": liked, "likesCount": likes_count},
        "Comment liked" if liked else "Comment unliked",
    )


# ==========================
#  GET PROJECT BY ID
# ==========================
@router.get("/{project_id}")
def get_project(project_id: int, db: Session = Depends(get_db)):
    row = (
        db.query(Project, User.username, User.name, User.email)
        .join(User, Project.user_id == User.id)
        .filter(Project.id == project_id)
        .first()
    )
    if not row:
        raise fail(404, "Project not found")

    project, username, user_name, user_email = row
    item = ProjectRead.model_validate(project).model_dump(mode="json")
    item.update(username=username, user_name=user_name, user_email=user_email)
    return ok(item)


# ==========================
#  CREATE PROJECT
# ==========================
@router.post("", status_code=201)
def create_project(
    data: ProjectCreate,
    principal: Principal = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    project = Project(
        user_id=principal.user_id,
        name=data.name,
        description=data.description,
        link=data.link,
        organization=data.organization,
        tags=data.tags,
        privacy=data.privacy,
    )

    # project row and owner counter land together or not at all
    with unit_of_work(db):
        db.add(project)
        db.execute(
            update(User)
            .where(User.id == principal.user_id)
            .values(total_projects=User.total_projects + 1)
            .execution_options(synchronize_session=False)
        )
    db.refresh(project)
    logger.info("project_created", extra={"project_id": project.id, "user_id": principal.user_id})

    if project.organization and project.privacy in ("public", "organization"):
        try:
            fanout.organization_project_created(db, project.id, principal.user_id)
        except Exception:
            logger.exception("organization_notification_failed", extra={"project_id": project.id})

    return ok({"projectId": project.id}, "Project created successfully")


# ==========================
#  UPDATE PROJECT (PATCH)
# ==========================
@router.patch("/{project_id}")
def update_project(
    project_id: int,
    data: ProjectUpdate,
    principal: Principal = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    project = _get_project_or_404(db, project_id)
    _require_owner(project, principal)

    # only fields the client actually sent
    changes = data.model_dump(exclude_unset=True)
    if not changes:
        raise fail(400, "No valid fields to update")

    for field, value in changes.items():
        setattr(project, field, value)

    db.commit()
    return ok(message="Project updated successfully")


# ==========================
#  DELETE PROJECT
# ==========================
@router.delete("/{project_id}")
def delete_project(
    project_id: int,
    principal: Principal = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    project = _get_project_or_404(db, project_id)
    _require_owner(project, principal)
    owner_id = project.user_id

    with unit_of_work(db):
        db.delete(project)
        db.execute(
            update(User)
            .where(User.id == owner_id)
            .values(total_projects=_decrement(User.total_projects))
            .execution_options(synchronize_session=False)
        )

    logger.info("project_deleted", extra={"project_id": project_id, "user_id": owner_id})
    return ok(message="Project deleted successfully")


# ==========================
#  LIKES
# ==========================
@router.post("/{project_id}/like")
def toggle_like(
    project_id: int,
    principal: Principal = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    _get_project_or_404(db, project_id)

    existing = _existing_like(db, project_id, principal.user_id)

    try:
        with unit_of_work(db):
            if existing:
                db.delete(existing)
                db.execute(
                    update(Project)
                    .where(Project.id == project_id)
                    .values(likes_count=_decrement(Project.likes_count))
                    .execution_options(synchronize_session=False)
                )
                liked = False
            else:
                db.add(ProjectLike(project_id=project_id, user_id=principal.user_id))
                db.execute(
                    update(Project)
                    .where(Project.id == project_id)
                    .values(likes_count=Project.likes_count + 1)
                    .execution_options(synchronize_session=False)
                )
                liked = True
    except IntegrityError:
        # same like recorded concurrently; the counter update rolls back with it
        raise fail(409, "Project already liked")

    if liked:
        try:
            fanout.project_liked(db, project_id, principal.user_id)
        except Exception:
            logger.exception("like_notification_failed", extra={"project_id": project_id})

    likes_count = db.query(Project.likes_count).filter(Project.id == project_id).scalar()
    return ok(
        {"liked": liked, "likesCount": likes_count},
        "Project liked" if liked else "Project unliked",
    )


# ==========================
#  COMMENTS
# ==========================
@router.get("/{project_id}/comments")
def get_comments(
    project_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    user_id: Optional[int] = Query(None, alias="userId"),
    principal: Optional[Principal] = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    _get_project_or_404(db, project_id)
    user_id = _viewer(user_id, principal)

    Reply = aliased(Comment)
    replies = (
        select(func.count(Reply.id))
        .where(Reply.parent_comment_id == Comment.id)
        .correlate(Comment)
        .scalar_subquery()
        .label("replies_count")
    )
    columns = [Comment, User.username, User.name.label("user_name"), replies]
    if user_id is not None:
        columns.append(
            select(func.count(CommentLike.id))
            .where(CommentLike.comment_id == Comment.id, CommentLike.user_id == user_id)
            .correlate(Comment)
            .scalar_subquery()
            .label("user_liked_comment")
        )

    rows = (
        db.query(*columns)
        .join(User, Comment.user_id == User.id)
        .filter(Comment.project_id == project_id, Comment.parent_comment_id.is_(None))
        .order_by(Comment.created_at.desc(), Comment.id.desc())
        .limit(limit)
        .offset((page - 1) * limit)
        .all()
    )

    data = []
    for row in rows:
        item = CommentRead.model_validate(row[0]).model_dump(mode="json")
        item.update(username=row.username, user_name=row.user_name, replies_count=row.replies_count)
        if user_id is not None:
            item["user_liked_comment"] = row.user_liked_comment
        data.append(item)

    return ok(data, pagination=pagination(page, limit))


@router.post("/{project_id}/comments", status_code=201)
def add_comment(
    project_id: int,
    data: CommentCreate,
    principal: Principal = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    _get_project_or_404(db, project_id)

    parent = None
    if data.parent_comment_id:
        parent = (
            db.query(Comment)
            .filter(Comment.id == data.parent_comment_id, Comment.project_id == project_id)
            .first()
        )
        if not parent:
            raise fail(404, "Parent comment not found")

    comment = Comment(
        project_id=project_id,
        user_id=principal.user_id,
        content=data.content,
        parent_comment_id=parent.id if parent else None,
    )

    with unit_of_work(db):
        db.add(comment)
        # replies do not count towards the project's comment total
        if parent is None:
            db.execute(
                update(Project)
                .where(Project.id == project_id)
                .values(comments_count=Project.comments_count + 1)
                .execution_options(synchronize_session=False)
            )
    db.refresh(comment)

    try:
        # the parent author gets a reply notice instead of the generic one
        exclude_user_id = parent.user_id if parent else None
        fanout.project_commented(db, project_id, comment.id, principal.user_id, exclude_user_id)
        if parent:
            fanout.comment_replied(db, project_id, comment.id, parent.id, principal.user_id)
    except Exception:
        logger.exception("comment_notification_failed", extra={"project_id": project_id, "comment_id": comment.id})

    return ok(_comment_with_author(db, comment.id), "Comment added successfully")
