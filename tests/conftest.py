"""Shared fixtures: an isolated in-memory database and an API client bound to it.

``DATABASE_URL`` is set before any ``ticketdesk`` import so the module-level
engine never touches the on-disk database. Every test then gets its own
StaticPool engine; the single shared connection lets the TestClient worker
threads and the fixture session see the same in-memory schema.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test-secret")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from ticketdesk.main import app
from ticketdesk.core.security import create_access_token
from ticketdesk.crud.users import create_user
from ticketdesk.db.session import Base, enable_sqlite_foreign_keys, get_db


@pytest.fixture()
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)
    Base.metadata.create_all(bind=engine)
    try:
        yield sessionmaker(bind=engine, autocommit=False, autoflush=False)
    finally:
        engine.dispose()


@pytest.fixture()
def db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client(session_factory):
    def _override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = _override_get_db
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.pop(get_db, None)


@pytest.fixture()
def make_user(db_session):
    counter = {"n": 0}

    def _make(username: str | None = None, *, role: str = "DEVELOPER", password: str = "secret123"):
        counter["n"] += 1
        name = username or f"user{counter['n']}"
        return create_user(
            db_session,
            {
                "email": f"{name}@example.com",
                "username": name,
                "password": password,
                "first_name": name.title(),
                "last_name": "Tester",
                "role": role,
            },
        )

    return _make


def auth_headers(user) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


@pytest.fixture()
def headers_for():
    return auth_headers
