# projecthub/collaborator/collaborator_router.py

import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from projecthub.auth.auth_router import Principal, get_current_user
from projecthub.database import get_db
from projecthub.models.project import Project
from projecthub.models.social import ProjectCollaborator
from projecthub.models.user import User
from projecthub.responses import fail, ok
from projecthub.user.membership import load_pair, require_same_organization

logger = logging.getLogger("projecthub.collaborator")

router = APIRouter(prefix="/collaborators", tags=["collaborators"])


class CollaboratorAdd(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: int | None = Field(None, alias="userId")
    role: str = "collaborator"


def _member(user: User) -> dict:
    return {
        "id": user.id,
        "username": user.username,
        "name": user.name,
        "email": user.email,
        "position": user.position,
    }


def _owned_project_or_403(db: Session, project_id: int, principal: Principal) -> Project:
    project = (
        db.query(Project)
        .filter(Project.id == project_id, Project.user_id == principal.user_id)
        .first()
    )
    if not project:
        raise fail(403, "Project not found or you do not have permission")
    return project


@router.post("/project/{project_id}/add", status_code=201)
def add_collaborator(
    project_id: int,
    data: CollaboratorAdd,
    principal: Principal = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if not data.user_id:
        raise fail(400, "User ID is required")
    if data.user_id == principal.user_id:
        raise fail(400, "You cannot add yourself as a collaborator")

    project = _owned_project_or_403(db, project_id, principal)

    owner, user = load_pair(db, principal.user_id, data.user_id)
    require_same_organization(owner, user, "collaborate")

    db.add(ProjectCollaborator(project_id=project.id, user_id=user.id, role=data.role))
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise fail(409, "User is already a collaborator")

    logger.info("collaborator_added", extra={"project_id": project.id, "user_id": user.id})
    return ok(message="Collaborator added successfully")


@router.delete("/project/{project_id}/remove/{user_id}")
def remove_collaborator(
    project_id: int,
    user_id: int,
    principal: Principal = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    _owned_project_or_403(db, project_id, principal)

    deleted = (
        db.query(ProjectCollaborator)
        .filter(ProjectCollaborator.project_id == project_id, ProjectCollaborator.user_id == user_id)
        .delete(synchronize_session=False)
    )
    if not deleted:
        raise fail(404, "Collaborator not found")

    db.commit()
    return ok(message="Collaborator removed successfully")


@router.get("/project/{project_id}/collaborators")
def get_project_collaborators(
    project_id: int,
    principal: Principal = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    rows = (
        db.query(ProjectCollaborator, User)
        .join(User, ProjectCollaborator.user_id == User.id)
        .filter(ProjectCollaborator.project_id == project_id)
        .order_by(ProjectCollaborator.created_at.desc(), ProjectCollaborator.id.desc())
        .all()
    )

    data = []
    for collab, user in rows:
        item = _member(user)
        item.update(
            id=collab.id,
            project_id=collab.project_id,
            user_id=user.id,
            role=collab.role,
            created_at=collab.created_at,
        )
        data.append(item)

    return ok(data, count=len(data))


@router.get("/project/{project_id}/available-members")
def get_available_members(
    project_id: int,
    principal: Principal = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    project = db.get(Project, project_id)
    if not project:
        raise fail(404, "Project not found")

    already = select(ProjectCollaborator.user_id).where(ProjectCollaborator.project_id == project_id)
    members = (
        db.query(User)
        .filter(
            User.organization == project.organization,
            User.id.not_in(already),
            User.id != project.user_id,
        )
        .order_by(User.name.asc())
        .all()
    )
    return ok([_member(u) for u in members], count=len(members))
