"""
Shared fixtures: one in-memory SQLite database, rebuilt for every test.

Environment is set before anything from ``projecthub`` is imported, because
config and the engine are read at import time.
"""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("APP_ENV", "development")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from projecthub.main import app  # noqa: E402
from projecthub.auth.auth_router import create_access_token  # noqa: E402
from projecthub.database import Base, SessionLocal, engine  # noqa: E402
from projecthub.models.comment import Comment  # noqa: E402
from projecthub.models.project import Project  # noqa: E402
from projecthub.models.user import User  # noqa: E402


@pytest.fixture(autouse=True)
def fresh_schema():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


@pytest.fixture
def make_user(db):
    """Insert a user directly; the password column is not a real hash here."""

    def _make(username, organization=None, name=None, position="student"):
        user = User(
            username=username,
            name=name or username.capitalize(),
            email=f"{username}@example.com",
            password="not-a-hash",
            position=position,
            organization=organization,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def make_project(db):
    def _make(owner, name="Project", **fields):
        fields.setdefault("privacy", "public")
        project = Project(user_id=owner.id, name=name, **fields)
        db.add(project)
        db.commit()
        db.refresh(project)
        return project

    return _make


@pytest.fixture
def make_comment(db):
    def _make(project, author, content="nice", parent=None):
        comment = Comment(
            project_id=project.id,
            user_id=author.id,
            content=content,
            parent_comment_id=parent.id if parent else None,
        )
        db.add(comment)
        db.commit()
        db.refresh(comment)
        return comment

    return _make


@pytest.fixture
def auth():
    def _headers(user):
        token = create_access_token(user.id, user.username, user.email)
        return {"Authorization": f"Bearer {token}"}

    return _headers
