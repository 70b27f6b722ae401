# tests/services/test_concurrent_reads.py
"""Read markers recorded by another session while a store is mid-request.

These run against a file-backed database so that each session has its own
pooled connection and a competing insert is genuinely committed first.
"""

import pytest
from sqlalchemy import event
from sqlalchemy.orm import sessionmaker

from projectflow_chat.models import MessageRead, User
from projectflow_chat.services.messages import MessageStore


@pytest.fixture()
def file_sessions(file_engine):
    return sessionmaker(bind=file_engine, autoflush=False, expire_on_commit=False)


def _seed_users(session_factory, *names: str) -> list[int]:
    with session_factory() as db:
        users = [User(name=name, email=f"{name.lower()}@example.com") for name in names]
        db.add_all(users)
        db.commit()
        return [user.id for user in users]


def _record_read_elsewhere(session_factory, message_id: int, user_id: int) -> None:
    with session_factory() as other:
        other.add(MessageRead(message_id=message_id, user_id=user_id))
        other.commit()


def _marker_counts(message) -> dict[int, int]:
    counts: dict[int, int] = {}
    for marker in message.read_markers:
        counts[marker.user_id] = counts.get(marker.user_id, 0) + 1
    return counts


def test_list_recent_recovers_when_a_marker_lands_first(file_sessions, cipher) -> None:
    alice_id, bob_id, carol_id = _seed_users(file_sessions, "Alice", "Bob", "Carol")
    with file_sessions() as db:
        store = MessageStore(db, cipher)
        first_id = store.create_message(alice_id, "first").id
        second_id = store.create_message(alice_id, "second").id

    with file_sessions() as db:
        store = MessageStore(db, cipher)
        event.listen(
            db,
            "before_commit",
            lambda _session: _record_read_elsewhere(file_sessions, second_id, bob_id),
            once=True,
        )

        listed = store.list_recent(bob_id)

        assert [message.id for message in listed] == [second_id, first_id]
        for message in listed:
            assert _marker_counts(message) == {alice_id: 1, bob_id: 1}
        assert store.count_unread(bob_id) == 0
        assert store.count_unread(carol_id) == 2


def test_mark_read_tolerates_a_duplicate_marker(file_sessions, cipher) -> None:
    alice_id, bob_id, carol_id = _seed_users(file_sessions, "Alice", "Bob", "Carol")
    with file_sessions() as db:
        message_id = MessageStore(db, cipher).create_message(alice_id, "read me").id

    with file_sessions() as db:
        store = MessageStore(db, cipher)
        event.listen(
            db,
            "before_commit",
            lambda _session: _record_read_elsewhere(file_sessions, message_id, bob_id),
            once=True,
        )

        message = store.mark_read(message_id, bob_id)

        assert _marker_counts(message) == {alice_id: 1, bob_id: 1}
        assert store.count_unread(bob_id) == 0
        assert store.count_unread(carol_id) == 1


def test_mark_read_for_different_users_commutes(file_sessions, cipher) -> None:
    alice_id, bob_id, carol_id = _seed_users(file_sessions, "Alice", "Bob", "Carol")
    with file_sessions() as db:
        message_id = MessageStore(db, cipher).create_message(alice_id, "both of you").id

    with file_sessions() as bob_db, file_sessions() as carol_db:
        bob_store = MessageStore(bob_db, cipher)
        carol_store = MessageStore(carol_db, cipher)
        # Both sessions see the message before either marker is written.
        assert bob_store.get_message(message_id).read_by_ids == {alice_id}
        assert carol_store.get_message(message_id).read_by_ids == {alice_id}

        carol_store.mark_read(message_id, carol_id)
        bob_store.mark_read(message_id, bob_id)

    with file_sessions() as db:
        store = MessageStore(db, cipher)
        assert store.get_message(message_id).read_by_ids == {alice_id, bob_id, carol_id}
        assert store.count_unread(bob_id) == 0
        assert store.count_unread(carol_id) == 0
