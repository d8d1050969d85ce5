"""Shared fixtures: throwaway SQLite database and API clients."""

import os

from cryptography.fernet import Fernet

# Must be set before tradevault.config is imported anywhere
os.environ.setdefault("TV_DATABASE_URL", "sqlite://")
os.environ.setdefault("TV_ENCRYPTION_KEY", Fernet.generate_key().decode())
os.environ.setdefault("TV_AUTO_SYNC_MINUTES", "0")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from sqlmodel import SQLModel, Session, create_engine  # noqa: E402

import tradevault.models  # noqa: E402,F401
from tradevault.models.user import User  # noqa: E402


@pytest.fixture
def db_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(db_engine):
    with Session(db_engine) as session:
        yield session


@pytest.fixture
def user(session) -> User:
    user = User(email="trader@example.com", name="Trader", hashed_password="not-a-hash")
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


@pytest.fixture
def anon_client(session):
    """API client with the test database but real authentication."""
    from tradevault.main import app
    from tradevault.database import get_session

    app.dependency_overrides[get_session] = lambda: session
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def client(anon_client, user):
    """API client already logged in as `user`."""
    from tradevault.main import app
    from tradevault.api.deps import get_current_user

    app.dependency_overrides[get_current_user] = lambda: user
    return anon_client
