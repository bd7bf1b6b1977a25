# projecthub/todo/todo_router.py

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import case
from sqlalchemy.orm import Session

from projecthub.auth.auth_router import Principal, get_current_user
from projecthub.database import get_db
from projecthub.models.project import Project
from projecthub.models.todo import TodoItem
from projecthub.responses import fail, ok
from projecthub.schemas.todo_schema import TodoCreate, TodoRead, TodoUpdate

router = APIRouter(prefix="/todos", tags=["todos"])

# high before medium before low
_PRIORITY_RANK = case({"high": 3, "medium": 2, "low": 1}, value=TodoItem.priority, else_=0)

# soonest due first, undated last, then priority, then newest
TODO_ORDER = (
    TodoItem.due_date.is_(None),
    TodoItem.due_date.asc(),
    _PRIORITY_RANK.desc(),
    TodoItem.created_at.desc(),
    TodoItem.id.desc(),
)


def _owned_project_or_403(db: Session, project_id: int, principal: Principal) -> Project:
    project = (
        db.query(Project)
        .filter(Project.id == project_id, Project.user_id == principal.user_id)
        .first()
    )
    if not project:
        raise fail(403, "Project not found or you do not have permission")
    return project


@router.post("", status_code=201)
def create_todo(
    data: TodoCreate,
    principal: Principal = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if not data.project_id or not data.title:
        raise fail(400, "Project ID and title are required")

    # to-dos only hang off the caller's own projects
    _owned_project_or_403(db, data.project_id, principal)

    todo = TodoItem(
        user_id=principal.user_id,
        project_id=data.project_id,
        title=data.title,
        description=data.description or None,
        priority=data.priority,
        due_date=data.due_date,
    )
    db.add(todo)
    db.commit()
    db.refresh(todo)
    return ok({"todoId": todo.id}, "To-do item created successfully")


@router.get("")
def get_user_todos(
    project_id: Optional[int] = Query(None, alias="projectId"),
    status: Optional[str] = None,
    principal: Principal = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    q = (
        db.query(TodoItem, Project.name)
        .join(Project, TodoItem.project_id == Project.id)
        .filter(TodoItem.user_id == principal.user_id)
    )
    if project_id:
        q = q.filter(TodoItem.project_id == project_id)
    if status:
        q = q.filter(TodoItem.status == status)

    data = []
    for todo, project_name in q.order_by(*TODO_ORDER).all():
        item = TodoRead.model_validate(todo).model_dump(mode="json")
        item["project_name"] = project_name
        data.append(item)

    return ok(data, count=len(data))


@router.get("/project/{project_id}")
def get_project_todos(
    project_id: int,
    principal: Principal = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    _owned_project_or_403(db, project_id, principal)

    todos = (
        db.query(TodoItem)
        .filter(TodoItem.user_id == principal.user_id, TodoItem.project_id == project_id)
        .order_by(*TODO_ORDER)
        .all()
    )
    return ok([TodoRead.model_validate(t) for t in todos], count=len(todos))


@router.patch("/{todo_id}")
def update_todo(
    todo_id: int,
    data: TodoUpdate,
    principal: Principal = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    todo = db.get(TodoItem, todo_id)
    if not todo or todo.user_id != principal.user_id:
        raise fail(403, "To-do item not found or you do not have permission")

    changes = data.model_dump(exclude_unset=True)
    if not changes:
        raise fail(400, "No fields to update")

    for field, value in changes.items():
        setattr(todo, field, value)

    db.commit()
    return ok(message="To-do item updated successfully")


@router.delete("/{todo_id}")
def delete_todo(
    todo_id: int,
    principal: Principal = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    deleted = (
        db.query(TodoItem)
        .filter(TodoItem.id == todo_id, TodoItem.user_id == principal.user_id)
        .delete(synchronize_session=False)
    )
    if not deleted:
        raise fail(404, "To-do item not found or you do not have permission")

    db.commit()
    return ok(message="To-do item deleted successfully")
