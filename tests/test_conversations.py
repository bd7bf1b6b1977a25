from projecthub.message.conversation_service import list_conversations, list_thread
from projecthub.models.message import Message


def _send(db, sender, recipient, content, is_read=False):
    m = Message(sender_id=sender.id, recipient_id=recipient.id, content=content, is_read=is_read)
    db.add(m)
    db.commit()
    return m


def test_summary_has_latest_message_and_unread_count(db, make_user):
    a, b = make_user("a"), make_user("b")
    _send(db, a, b, "one", is_read=True)
    _send(db, b, a, "two")
    _send(db, a, b, "three")

    (summary,) = list_conversations(db, b.id)

    assert summary.other_user_id == a.id
    assert summary.last_message == "three"
    assert summary.is_read is False
    assert summary.unread_count == 1

    (summary,) = list_conversations(db, a.id)
    assert summary.other_user_id == b.id
    assert summary.unread_count == 1


def test_reading_thread_clears_unread(db, make_user):
    a, b = make_user("a"), make_user("b")
    _send(db, a, b, "one")
    _send(db, b, a, "two")
    _send(db, a, b, "three")

    thread = list_thread(db, b.id, a.id)

    assert [m.content for m in thread] == ["one", "two", "three"]
    assert thread[0].sender_username == "a"
    # the page shows the state before it was read
    assert thread[0].is_read is False

    (summary,) = list_conversations(db, b.id)
    assert summary.unread_count == 0
    # a's own message to b stays unread from a's side
    (summary,) = list_conversations(db, a.id)
    assert summary.unread_count == 1


def test_conversations_ordered_by_latest_message(db, make_user):
    a, b, c = make_user("a"), make_user("b"), make_user("c")
    _send(db, b, a, "from b")
    _send(db, c, a, "from c")

    summaries = list_conversations(db, a.id)

    assert [s.other_user_id for s in summaries] == [c.id, b.id]


def test_no_messages_no_conversations(db, make_user):
    a = make_user("a")
    assert list_conversations(db, a.id) == []


def test_thread_paging_returns_newest_page_oldest_first(db, make_user):
    a, b = make_user("a"), make_user("b")
    for i in range(5):
        _send(db, a, b, f"m{i}")

    thread = list_thread(db, b.id, a.id, limit=2)

    assert [m.content for m in thread] == ["m3", "m4"]
