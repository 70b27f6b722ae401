# tests/test_manage.py
"""Tests for the administrative command line."""

import pytest
from sqlalchemy.orm import sessionmaker

from projectflow_chat.core.security import decode_user_id
from projectflow_chat.models import User
from projectflow_chat.scripts import manage


@pytest.fixture()
def cli_session(engine, monkeypatch):
    """Point the CLI at the test database."""
    monkeypatch.setattr(
        manage,
        "SessionLocal",
        sessionmaker(bind=engine, autocommit=False, autoflush=False),
    )


def test_init_db(cli_session, monkeypatch, capsys) -> None:
    calls = []
    monkeypatch.setattr(manage, "create_tables", lambda: calls.append(True))

    assert manage.main(["init-db"]) == 0
    assert calls == [True]
    assert "tables created" in capsys.readouterr().out


def test_create_user(cli_session, db_session, capsys) -> None:
    assert manage.main(["create-user", "Dana", "Dana@Example.com"]) == 0

    user = db_session.query(User).filter_by(email="dana@example.com").one()
    assert user.name == "Dana"
    assert user.role == "user"
    assert "created user" in capsys.readouterr().out


def test_create_admin_user(cli_session, db_session) -> None:
    assert manage.main(["create-user", "Root", "root@example.com", "--admin"]) == 0
    assert db_session.query(User).filter_by(email="root@example.com").one().is_admin


def test_create_duplicate_user_fails(cli_session, alice, capsys) -> None:
    assert manage.main(["create-user", "Alice", "alice@example.com"]) == 1
    assert "already exists" in capsys.readouterr().err


def test_make_admin(cli_session, db_session, alice) -> None:
    assert manage.main(["make-admin", "alice@example.com"]) == 0

    db_session.expire_all()
    assert db_session.get(User, alice.id).is_admin


def test_make_admin_unknown_user(cli_session, capsys) -> None:
    assert manage.main(["make-admin", "nobody@example.com"]) == 1
    assert "no user with email" in capsys.readouterr().err


def test_issue_token(cli_session, bob, capsys) -> None:
    assert manage.main(["issue-token", "bob@example.com"]) == 0

    token = capsys.readouterr().out.strip()
    assert decode_user_id(token) == bob.id


def test_unknown_command_exits() -> None:
    with pytest.raises(SystemExit):
        manage.main(["launch-rockets"])
