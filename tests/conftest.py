import os
from datetime import datetime, timedelta, timezone
from typing import Any, List, Optional

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, create_engine

os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("JWT_SECRET", "tests-secret-key")
os.environ.setdefault("JWT_ALGORITHM", "HS256")
os.environ.pop("IDENTITY_API_URL", None)

from expense_tracker.config import settings
from expense_tracker.core.cache import ViewCache, get_view_cache
from expense_tracker.core.directory import DirectoryError, DirectoryProfile, get_directory
from expense_tracker.database import get_session, init_db
from expense_tracker.main import app


def create_session_token(subject: str, expires_minutes: int = 60, **claims: Any) -> str:
    """Session token as the identity provider would issue it."""
    now = datetime.now(timezone.utc)
    expire = now + timedelta(minutes=expires_minutes)
    to_encode = dict(claims)
    to_encode.update({"sub": subject, "iat": int(now.timestamp()), "exp": int(expire.timestamp())})
    return jwt.encode(to_encode, settings.jwt_secret, algorithm=settings.jwt_algorithm)


class FakeDirectory:
    """Stands in for the identity provider directory."""

    def __init__(self, profile: Optional[DirectoryProfile] = None, error: Optional[Exception] = None):
        self.profile = profile
        self.error = error
        self.calls: List[str] = []

    def get_profile(self, external_id: str) -> DirectoryProfile:
        self.calls.append(external_id)
        if self.error is not None:
            raise self.error
        if self.profile is None:
            raise DirectoryError("no profile configured")
        return self.profile


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture()
def profile() -> DirectoryProfile:
    return DirectoryProfile(
        id="user_abc",
        email_addresses=[
            {"id": "idn_1", "email_address": "secondary@example.org"},
            {"id": "idn_2", "email_address": "ada@example.org"},
        ],
        primary_email_address_id="idn_2",
        first_name="Ada",
        last_name="Lovelace",
        image_url="https://img.example.org/ada.png",
    )


@pytest.fixture()
def directory(profile) -> FakeDirectory:
    return FakeDirectory(profile=profile)


@pytest.fixture()
def cache() -> ViewCache:
    return ViewCache()


@pytest.fixture()
def client(engine, directory, cache):
    def _session_override():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = _session_override
    app.dependency_overrides[get_directory] = lambda: directory
    app.dependency_overrides[get_view_cache] = lambda: cache
    try:
        with TestClient(app) as client:
            yield client
    finally:
        app.dependency_overrides.clear()
