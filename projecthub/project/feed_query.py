# projecthub/project/feed_query.py
#
# Read side of the project feed: filtered / paginated listing and ranked
# text search. Filters are collected as a list of SQLAlchemy predicates, so
# every user-supplied value travels as a bound parameter.

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import case, func, literal, or_, select
from sqlalchemy.orm import Session

from projecthub.config import FEED_ALWAYS_INCLUDE_USER_LIKED
from projecthub.models.comment import Comment
from projecthub.models.project import Project
from projecthub.models.social import ProjectLike
from projecthub.models.user import User
from projecthub.schemas.project_schema import ProjectRead

VISIBLE = ("public", "organization")

# field -> weight; the first matching field decides the score
RELEVANCE_WEIGHTS = (
    (Project.name, 5),
    (Project.tags, 4),
    (Project.organization, 3),
    (Project.description, 2),
    (User.name, 1),
)


class FeedQueryError(ValueError):
    pass


@dataclass
class ProjectFilters:
    page: int = 1
    limit: int = 10
    privacy: str = "all"  # public | organization | all
    organization: Optional[str] = None
    user_organization: Optional[str] = None
    tag: Optional[str] = None
    viewer_id: Optional[int] = None

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass
class ProjectPage:
    items: list[dict]
    page: int
    limit: int
    total: Optional[int] = None

    @property
    def total_pages(self) -> Optional[int]:
        if self.total is None:
            return None
        return math.ceil(self.total / self.limit) if self.limit else 0


class FeedQuery:
    """Accumulates predicates and renders the page and count selects from them."""

    def __init__(self):
        self.predicates = []

    def where(self, *clauses) -> "FeedQuery":
        self.predicates.extend(clauses)
        return self

    # -------------------------
    # Filters
    # -------------------------

    def privacy_scope(self, privacy: str) -> "FeedQuery":
        if privacy == "public":
            return self.where(Project.privacy == "public")
        if privacy in ("organization", "all"):
            return self.where(Project.privacy.in_(VISIBLE))
        raise FeedQueryError("Privacy must be either public, organization, or all")

    def privacy_equals(self, privacy: str) -> "FeedQuery":
        if privacy not in VISIBLE:
            raise FeedQueryError("Privacy must be either public or organization")
        return self.where(Project.privacy == privacy)

    def organization(self, organization: Optional[str]) -> "FeedQuery":
        if organization:
            self.where(Project.organization == organization)
        return self

    def tag(self, tag: Optional[str]) -> "FeedQuery":
        if tag:
            self.where(Project.tags.contains(tag, autoescape=True))
        return self

    def text(self, term: str) -> "FeedQuery":
        return self.where(or_(*(column.icontains(term, autoescape=True) for column, _ in RELEVANCE_WEIGHTS)))

    # -------------------------
    # Rendering
    # -------------------------

    def page_select(self, viewer_id: Optional[int], *extra_columns):
        total_comments = (
            select(func.count(Comment.id))
            .where(Comment.project_id == Project.id)
            .correlate(Project)
            .scalar_subquery()
            .label("total_comments")
        )
        columns = [Project, User.username, User.name.label("user_name"), total_comments]

        if viewer_id is not None:
            user_liked = (
                select(func.count(ProjectLike.id))
                .where(ProjectLike.project_id == Project.id, ProjectLike.user_id == viewer_id)
                .correlate(Project)
                .scalar_subquery()
                .label("user_liked")
            )
            columns.append(user_liked)
        elif FEED_ALWAYS_INCLUDE_USER_LIKED:
            columns.append(literal(0).label("user_liked"))

        columns.extend(extra_columns)
        return select(*columns).join(User, Project.user_id == User.id).where(*self.predicates)

    def count_select(self):
        return (
            select(func.count(Project.id))
            .select_from(Project)
            .join(User, Project.user_id == User.id)
            .where(*self.predicates)
        )


def relevance_score(term: str):
    return case(
        *((column.icontains(term, autoescape=True), weight) for column, weight in RELEVANCE_WEIGHTS),
        else_=0,
    ).label("relevance_score")


def _row_to_dict(row) -> dict:
    mapping = row._mapping
    item = ProjectRead.model_validate(mapping[Project]).model_dump(mode="json")
    item["username"] = mapping["username"]
    item["user_name"] = mapping["user_name"]
    item["total_comments"] = mapping["total_comments"]
    if "user_liked" in mapping:
        item["user_liked"] = mapping["user_liked"]
    if "relevance_score" in mapping:
        item["relevance_score"] = mapping["relevance_score"]
    return item


# -------------------------
# Operations
# -------------------------

def list_projects(db: Session, filters: ProjectFilters) -> ProjectPage:
    q = (
        FeedQuery()
        .privacy_scope(filters.privacy)
        .organization(filters.organization)
        .organization(filters.user_organization)
        .tag(filters.tag)
    )
    stmt = (
        q.page_select(filters.viewer_id)
        .order_by(Project.created_at.desc(), Project.id.desc())
        .limit(filters.limit)
        .offset(filters.offset)
    )
    rows = db.execute(stmt).all()
    return ProjectPage([_row_to_dict(r) for r in rows], filters.page, filters.limit)


def search_projects(db: Session, query: Optional[str], filters: ProjectFilters) -> ProjectPage:
    """Ranked substring search; ``filters.privacy`` defaults to ``public`` here."""
    if query is None or not query.strip():
        raise FeedQueryError("Search query is required")
    term = query.strip()

    privacy = "public" if filters.privacy == "all" else filters.privacy
    q = (
        FeedQuery()
        .privacy_equals(privacy)
        .organization(filters.organization)
        .organization(filters.user_organization)
        .tag(filters.tag)
        .text(term)
    )

    score = relevance_score(term)
    stmt = (
        q.page_select(filters.viewer_id, score)
        .order_by(score.desc(), Project.created_at.desc(), Project.id.desc())
        .limit(filters.limit)
        .offset(filters.offset)
    )
    rows = db.execute(stmt).all()
    total = db.execute(q.count_select()).scalar_one()

    return ProjectPage([_row_to_dict(r) for r in rows], filters.page, filters.limit, total=int(total))


def list_organizations(db: Session) -> list[str]:
    rows = (
        db.query(Project.organization)
        .filter(
            Project.organization.isnot(None),
            Project.organization != "",
            Project.privacy.in_(VISIBLE),
        )
        .distinct()
        .order_by(Project.organization.asc())
        .all()
    )
    return [organization for (organization,) in rows]


def list_tags(db: Session) -> list[str]:
    rows = (
        db.query(Project.tags)
        .filter(Project.tags.isnot(None), Project.tags != "", Project.privacy.in_(VISIBLE))
        .distinct()
        .all()
    )
    tags = set()
    for (joined,) in rows:
        tags.update(t.strip() for t in joined.split(",") if t.strip())
    return sorted(tags)
