from projecthub.models.notification import Notification
from projecthub.notification import fanout
from projecthub.notification.notification_service import notify


def _inbox(db, user):
    return db.query(Notification).filter(Notification.user_id == user.id).all()


def test_notify_skips_self(db, make_user):
    alice = make_user("alice")

    assert notify(db, recipient_id=alice.id, actor_id=alice.id, type="like", title="t") is None
    assert db.query(Notification).count() == 0


def test_notify_writes_unread_row(db, make_user):
    alice, bob = make_user("alice"), make_user("bob")

    n = notify(db, recipient_id=bob.id, actor_id=alice.id, type="like", title="hi", message="m")

    assert n.id is not None
    assert n.is_read is False
    assert n.user_id == bob.id and n.actor_user_id == alice.id


def test_like_notifies_owner(db, make_user, make_project):
    owner, fan = make_user("owner"), make_user("fan", name="Fan")
    project = make_project(owner, "Rover")

    results = fanout.project_liked(db, project.id, fan.id)

    assert [r.recipient_id for r in results] == [owner.id]
    (n,) = _inbox(db, owner)
    assert n.type == "like"
    assert n.message == 'Fan liked your project "Rover"'


def test_owner_liking_own_project_is_silent(db, make_user, make_project):
    owner = make_user("owner")
    project = make_project(owner)

    assert fanout.project_liked(db, project.id, owner.id) == []
    assert db.query(Notification).count() == 0


def test_comment_reaches_owner_and_prior_commenters_once(db, make_user, make_project, make_comment):
    a, b, c, d = (make_user(n) for n in ("a", "b", "c", "d"))
    project = make_project(b)
    make_comment(project, c)
    make_comment(project, c)
    make_comment(project, d)
    comment = make_comment(project, a)

    results = fanout.project_commented(db, project.id, comment.id, a.id)

    assert sorted(r.recipient_id for r in results) == sorted([b.id, c.id, d.id])
    assert all(r.delivered for r in results)
    for user in (b, c, d):
        assert len(_inbox(db, user)) == 1
    assert _inbox(db, a) == []


def test_owner_who_also_commented_gets_one_notice(db, make_user, make_project, make_comment):
    a, b = make_user("a"), make_user("b")
    project = make_project(b)
    make_comment(project, b)
    comment = make_comment(project, a)

    fanout.project_commented(db, project.id, comment.id, a.id)

    (n,) = _inbox(db, b)
    assert n.title == "New comment on your project"


def test_reply_excludes_parent_author_from_commenters(db, make_user, make_project, make_comment):
    a, b, c = make_user("a"), make_user("b"), make_user("c")
    project = make_project(b)
    parent = make_comment(project, c)
    reply = make_comment(project, a, parent=parent)

    fanout.project_commented(db, project.id, reply.id, a.id, exclude_user_id=c.id)
    fanout.comment_replied(db, project.id, reply.id, parent.id, a.id)

    (n,) = _inbox(db, c)
    assert n.title == "New reply to your comment"
    assert n.comment_id == reply.id
    assert len(_inbox(db, b)) == 1


def test_reply_to_own_comment_sends_no_reply_notice(db, make_user, make_project, make_comment):
    a, b = make_user("a"), make_user("b")
    project = make_project(b)
    parent = make_comment(project, a)
    reply = make_comment(project, a, parent=parent)

    assert fanout.comment_replied(db, project.id, reply.id, parent.id, a.id) == []


def test_one_failed_recipient_does_not_stop_the_rest(db, make_user, make_project, make_comment, monkeypatch):
    a, b, c, d = (make_user(n) for n in ("a", "b", "c", "d"))
    project = make_project(b)
    make_comment(project, c)
    make_comment(project, d)
    comment = make_comment(project, a)

    real_notify = fanout.notify

    def flaky(session, **kwargs):
        if kwargs["recipient_id"] == c.id:
            raise RuntimeError("disk full")
        return real_notify(session, **kwargs)

    monkeypatch.setattr(fanout, "notify", flaky)

    results = fanout.project_commented(db, project.id, comment.id, a.id)

    by_id = {r.recipient_id: r for r in results}
    assert by_id[c.id].delivered is False
    assert by_id[c.id].error == "disk full"
    assert by_id[b.id].delivered and by_id[d.id].delivered
    assert len(_inbox(db, b)) == 1
    assert len(_inbox(db, d)) == 1
    assert _inbox(db, c) == []


def test_organization_project_reaches_members_only(db, make_user, make_project):
    creator = make_user("creator", organization="UBB", name="Creator")
    mate = make_user("mate", organization="UBB")
    make_user("stranger", organization="Other")
    project = make_project(creator, "Lab", organization="UBB")

    results = fanout.organization_project_created(db, project.id, creator.id)

    assert [r.recipient_id for r in results] == [mate.id]
    (n,) = _inbox(db, mate)
    assert n.type == "organization_project"
    assert n.message == 'Creator created a new project "Lab" in UBB'


def test_message_notice_carries_content(db, make_user):
    a = make_user("a", name="Ana")
    b = make_user("b")

    fanout.message_sent(db, a.id, b.id, "hello there")

    (n,) = _inbox(db, b)
    assert n.type == "message"
    assert n.title == "Ana has sent a new message"
    assert n.message == "hello there"


def test_reply_to_owners_own_comment_is_one_reply_notice(db, make_user, make_project, make_comment):
    a, b = make_user("a"), make_user("b")
    project = make_project(b)
    parent = make_comment(project, b)
    reply = make_comment(project, a, parent=parent)

    fanout.project_commented(db, project.id, reply.id, a.id, exclude_user_id=b.id)
    fanout.comment_replied(db, project.id, reply.id, parent.id, a.id)

    assert [n.title for n in _inbox(db, b)] == ["New reply to your comment"]
