# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Generator, Iterator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("ENCRYPTION_SECRET", "test-encryption-secret")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("AUTO_CREATE_TABLES", "false")

from projectflow_chat.core.security import create_access_token
from projectflow_chat.db.session import Base
from projectflow_chat.db.session import get_db as app_get_session
from projectflow_chat.db.session import get_session_factory
from projectflow_chat.main import app as fastapi_app
from projectflow_chat.models import ROLE_ADMIN, ROLE_USER, User
from projectflow_chat.realtime.registry import ConnectionRegistry, get_connection_registry
from projectflow_chat.services.crypto import MessageCipher
from projectflow_chat.services.messages import MessageStore

TEST_DB_URL = "sqlite://"
TEST_ENCRYPTION_SECRET = "test-encryption-secret"


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    SessionLocal = sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()

        # Ensure each test sees a clean database even if commits occurred.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture()
def file_engine(tmp_path) -> Generator[Engine, None, None]:
    """A file-backed database behind a small real connection pool."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'chat.db'}",
        connect_args={"check_same_thread": False},
        poolclass=QueuePool,
        pool_size=2,
        max_overflow=0,
        pool_timeout=1,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture()
def registry() -> ConnectionRegistry:
    """Provide an empty connection registry for each test."""
    return ConnectionRegistry()


@pytest.fixture(autouse=True)
def override_dependencies(
    app: FastAPI,
    engine: Engine,
    db_session: Session,
    registry: ConnectionRegistry,
) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    app.dependency_overrides[get_connection_registry] = lambda: registry
    app.dependency_overrides[get_session_factory] = lambda: sessionmaker(
        bind=engine, autoflush=False, expire_on_commit=False
    )
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)
        app.dependency_overrides.pop(get_connection_registry, None)
        app.dependency_overrides.pop(get_session_factory, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def cipher() -> MessageCipher:
    return MessageCipher(TEST_ENCRYPTION_SECRET)


@pytest.fixture()
def store(db_session: Session, cipher: MessageCipher) -> MessageStore:
    return MessageStore(db_session, cipher)


def _make_user(db: Session, name: str, email: str, role: str = ROLE_USER) -> User:
    user = User(name=name, email=email, role=role)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture()
def make_user(db_session: Session):
    """Factory for extra directory users."""

    def _factory(name: str, email: str | None = None, role: str = ROLE_USER) -> User:
        return _make_user(db_session, name, email or f"{name.lower()}@example.com", role)

    return _factory


@pytest.fixture()
def alice(db_session: Session) -> User:
    return _make_user(db_session, "Alice", "alice@example.com")


@pytest.fixture()
def bob(db_session: Session) -> User:
    return _make_user(db_session, "Bob", "bob@example.com")


@pytest.fixture()
def carol(db_session: Session) -> User:
    return _make_user(db_session, "Carol", "carol@example.com")


@pytest.fixture()
def admin(db_session: Session) -> User:
    return _make_user(db_session, "Admin", "admin@example.com", ROLE_ADMIN)


def auth_headers(user: User) -> dict[str, str]:
    """Return authorization headers for ``user``."""
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


def ws_url(user: User) -> str:
    """Return the WebSocket URL authenticated as ``user``."""
    return f"/ws?token={create_access_token(user.id)}"
