# ruff: noqa: E402
import os
from typing import Any

import pytest
from sqlalchemy import create_engine, text
from sqlalchemy.engine import make_url
from sqlalchemy.orm import sessionmaker

# Set testing environment flags before importing the app or settings
os.environ["APP_ENV"] = "test"
os.environ["REDIS_URL"] = ""
os.environ["LOG_DIR"] = ""
os.environ["USE_JSON_LOGS"] = "0"
os.environ.setdefault("TEST_DATABASE_URL", "sqlite:///./tests/test.db")

import twitter_clone.models.registry  # noqa: F401 - populate Base.metadata
from twitter_clone.core.cache.redis_cache import cache_manager
from twitter_clone.core.config import settings
from twitter_clone.core.database import Base, get_db
from twitter_clone.main import app
from twitter_clone.modules.notifications.realtime import manager
from twitter_clone.modules.users.models import User
from twitter_clone.modules.utils import security
from twitter_clone.oauth2 import create_access_token
from tests.testclient import TestClient


class AttrDict(dict):
    """Dict with attribute-style access for fixtures."""

    def __getattr__(self, item: str) -> Any:
        try:
            return self[item]
        except KeyError as exc:
            raise AttributeError(item) from exc


object.__setattr__(settings, "environment", "test")

test_db_url = settings.get_database_url(use_test=True)

# Safety: never run tests against a non-test Postgres database.
parsed_url = make_url(test_db_url)
if parsed_url.drivername.startswith("postgresql") and parsed_url.database:
    if not parsed_url.database.endswith("_test"):
        raise RuntimeError(
            f"Refusing to run tests against non-test database '{parsed_url.database}'."
        )


def _init_test_engine():
    engine_kwargs = {"echo": False}
    if parsed_url.drivername.startswith("sqlite"):
        engine_kwargs["connect_args"] = {"check_same_thread": False}
    return create_engine(test_db_url, **engine_kwargs)


engine = _init_test_engine()
Base.metadata.drop_all(bind=engine)
Base.metadata.create_all(bind=engine)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def _clear_tables() -> None:
    with engine.begin() as connection:
        if engine.dialect.name == "postgresql":
            table_names = ", ".join(f'"{tbl.name}"' for tbl in Base.metadata.sorted_tables)
            if table_names:
                connection.execute(text(f"TRUNCATE {table_names} RESTART IDENTITY CASCADE"))
        else:
            for table in reversed(Base.metadata.sorted_tables):
                connection.execute(table.delete())


@pytest.fixture(scope="function")
def session():
    """Fresh database session over emptied tables."""
    _clear_tables()
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(autouse=True, scope="function")
def _reset_shared_state():
    """Keep the hub registry and the cache isolated across tests."""
    manager.reset()
    cache_manager.redis = None
    cache_manager.enabled = False
    yield
    manager.reset()


@pytest.fixture(scope="function")
def client(session):
    def override_get_db():
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        try:
            yield test_client
        finally:
            app.dependency_overrides.clear()


def _register(client, username: str, email: str, password: str = "password123") -> AttrDict:
    res = client.post(
        "/users", json={"username": username, "email": email, "password": password}
    )
    assert res.status_code == 201, res.text
    user = res.json()
    user["password"] = password
    return AttrDict(user)


@pytest.fixture(scope="function")
def test_user(client):
    return _register(client, "alice", "alice@example.com")


@pytest.fixture(scope="function")
def test_user2(client):
    return _register(client, "bob", "bob@example.com")


@pytest.fixture(scope="function")
def test_user3(client):
    return _register(client, "carol", "carol@example.com")


def auth_headers(user) -> dict:
    token = create_access_token({"user_id": user["id"]})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(scope="function")
def token(test_user):
    return create_access_token({"user_id": test_user["id"]})


@pytest.fixture(scope="function")
def authorized_client(client, token):
    client.headers.update({"Authorization": f"Bearer {token}"})
    return client


@pytest.fixture(scope="function")
def make_user(session):
    """Insert users straight through the ORM (services tests skip the HTTP layer)."""
    hashed = security.hash("password123")

    def _make(username: str) -> User:
        user = User(
            username=username,
            email=f"{username}@example.com",
            hashed_password=hashed,
        )
        session.add(user)
        session.commit()
        session.refresh(user)
        return user

    return _make


class RecordingHub:
    """Hub double that records every event instead of writing to sockets."""

    def __init__(self, fail: bool = False):
        self.sent = []
        self.broadcasts = []
        self.fail = fail

    async def send_event(self, user_id, event, payload):
        if self.fail:
            raise RuntimeError("socket gone")
        self.sent.append((user_id, event, payload))
        return 1

    async def broadcast_event(self, event, payload):
        if self.fail:
            raise RuntimeError("socket gone")
        self.broadcasts.append((event, payload))
        return 1


@pytest.fixture(scope="function")
def hub():
    return RecordingHub()
