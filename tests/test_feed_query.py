from datetime import datetime

import pytest

from projecthub.models.social import ProjectLike
from projecthub.project.feed_query import (
    FeedQueryError,
    ProjectFilters,
    list_organizations,
    list_projects,
    list_tags,
    search_projects,
)


def _ids(page):
    return [item["id"] for item in page.items]


def test_tag_match_ranks_above_description_match(db, make_user, make_project):
    owner = make_user("owner", name="Owner")
    when = datetime(2024, 5, 1, 12, 0, 0)
    described = make_project(owner, "Alpha", description="a robotics thing", created_at=when)
    tagged = make_project(owner, "Beta", tags="robotics,ai", created_at=when)
    make_project(owner, "Gamma", description="unrelated", created_at=when)

    page = search_projects(db, "robotics", ProjectFilters())

    assert _ids(page) == [tagged.id, described.id]
    assert [i["relevance_score"] for i in page.items] == [4, 2]
    assert page.total == 2
    assert page.total_pages == 1


def test_search_is_case_insensitive_and_name_wins(db, make_user, make_project):
    owner = make_user("owner", name="Owner")
    when = datetime(2024, 5, 1)
    by_org = make_project(owner, "One", organization="Robotics Club", created_at=when)
    by_name = make_project(owner, "ROBOTICS arm", created_at=when)

    page = search_projects(db, "robotics", ProjectFilters())

    assert _ids(page) == [by_name.id, by_org.id]


def test_search_matches_author_name(db, make_user, make_project):
    owner = make_user("owner", name="Ada Lovelace")
    project = make_project(owner, "Engine")

    page = search_projects(db, "lovelace", ProjectFilters())

    assert _ids(page) == [project.id]
    assert page.items[0]["relevance_score"] == 1


def test_search_wildcards_are_literal(db, make_user, make_project):
    owner = make_user("owner")
    make_project(owner, "plain name")
    percent = make_project(owner, "100% done")

    assert _ids(search_projects(db, "%", ProjectFilters())) == [percent.id]


@pytest.mark.parametrize("query", [None, "", "   "])
def test_search_requires_a_query(db, query):
    with pytest.raises(FeedQueryError):
        search_projects(db, query, ProjectFilters())


def test_search_defaults_to_public(db, make_user, make_project):
    owner = make_user("owner")
    public = make_project(owner, "robot one")
    make_project(owner, "robot two", privacy="organization")
    make_project(owner, "robot three", privacy="private")

    assert _ids(search_projects(db, "robot", ProjectFilters())) == [public.id]


def test_pages_are_disjoint_and_concatenate(db, make_user, make_project):
    owner = make_user("owner")
    for i in range(25):
        make_project(owner, f"p{i}")

    first = list_projects(db, ProjectFilters(page=1, limit=10))
    second = list_projects(db, ProjectFilters(page=2, limit=10))
    both = list_projects(db, ProjectFilters(page=1, limit=20))

    assert not set(_ids(first)) & set(_ids(second))
    assert _ids(first) + _ids(second) == _ids(both)


def test_feed_hides_private_projects(db, make_user, make_project):
    owner = make_user("owner")
    public = make_project(owner, "pub")
    org = make_project(owner, "org", privacy="organization")
    make_project(owner, "mine", privacy="private")

    assert sorted(_ids(list_projects(db, ProjectFilters()))) == sorted([public.id, org.id])
    assert _ids(list_projects(db, ProjectFilters(privacy="public"))) == [public.id]


def test_feed_rejects_unknown_privacy(db):
    with pytest.raises(FeedQueryError):
        list_projects(db, ProjectFilters(privacy="private"))


def test_feed_filters_by_organization_and_tag(db, make_user, make_project):
    owner = make_user("owner")
    match = make_project(owner, "a", organization="UBB", tags="web,python")
    make_project(owner, "b", organization="UBB", tags="java")
    make_project(owner, "c", organization="Other", tags="python")

    page = list_projects(db, ProjectFilters(organization="UBB", tag="python"))

    assert _ids(page) == [match.id]


def test_total_comments_always_user_liked_only_with_viewer(db, make_user, make_project, make_comment):
    owner, viewer = make_user("owner"), make_user("viewer")
    project = make_project(owner)
    make_comment(project, viewer)
    db.add(ProjectLike(project_id=project.id, user_id=viewer.id))
    db.commit()

    (anonymous,) = list_projects(db, ProjectFilters()).items
    assert anonymous["total_comments"] == 1
    assert anonymous["username"] == "owner"
    assert "user_liked" not in anonymous

    (seen,) = list_projects(db, ProjectFilters(viewer_id=viewer.id)).items
    assert seen["user_liked"] == 1

    (other,) = list_projects(db, ProjectFilters(viewer_id=owner.id)).items
    assert other["user_liked"] == 0


def test_organizations_and_tags_skip_private(db, make_user, make_project):
    owner = make_user("owner")
    make_project(owner, "a", organization="UBB", tags="web, python")
    make_project(owner, "b", organization="Acme", tags="python,ml")
    make_project(owner, "c", organization="Secret", tags="hidden", privacy="private")

    assert list_organizations(db) == ["Acme", "UBB"]
    assert list_tags(db) == ["ml", "python", "web"]
