"""
Shared fixtures for the access control test suite.

Each test gets a fresh in-memory SQLite database seeded with one account per
role; the app's session dependency is overridden to use it.
"""
import os

os.environ["ACCESS_DATABASE_URL"] = "sqlite://"
os.environ.setdefault("ACCESS_BCRYPT_ROUNDS", "4")
os.environ.setdefault("ACCESS_JWT_SECRET", "test-secret")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from access_control.app import app  # noqa: E402
from access_control.database import Base, get_db_session  # noqa: E402
from access_control.models import User  # noqa: E402
from access_control.roles import UserRole  # noqa: E402
from access_control.security import create_access_token  # noqa: E402
from access_control.services import seed_default_users  # noqa: E402


SEED_USERNAMES = {
    UserRole.SUPER_ADMIN: "superadmin",
    UserRole.ADMIN: "admin",
    UserRole.TEACHER: "teacher",
    UserRole.STUDENT: "student",
    UserRole.PARENT: "parent",
}


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)

    db = factory()
    try:
        seed_default_users(db)
    finally:
        db.close()

    yield factory
    engine.dispose()


@pytest.fixture
def client(session_factory):
    def _get_db_session():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db_session] = _get_db_session
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def seeded_users(session_factory) -> dict[UserRole, int]:
    db = session_factory()
    try:
        return {
            role: db.query(User).filter(User.username == username).one().id
            for role, username in SEED_USERNAMES.items()
        }
    finally:
        db.close()


@pytest.fixture
def auth_headers(seeded_users):
    def _headers(role: UserRole) -> dict[str, str]:
        token = create_access_token(user_id=seeded_users[role], role=role.value)
        return {"Authorization": f"Bearer {token}"}

    return _headers
