from __future__ import annotations

import os

os.environ["JWT_SECRET"] = "test-signing-secret"
os.environ["DATABASE_URL"] = "sqlite+pysqlite://"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from schoolportal.core.security import get_password_hash  # noqa: E402
from schoolportal.db.base import Base  # noqa: E402
from schoolportal.db.session import get_db  # noqa: E402
from schoolportal.main import app  # noqa: E402
from schoolportal.models.enums import RegistrationStatus, Role  # noqa: E402
from schoolportal.models.user import User  # noqa: E402

PASSWORD = "correct-horse"
_PASSWORD_HASH = get_password_hash(PASSWORD)

IPHONE_UA = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) "
    "AppleWebKit/605.1.15 (KHTML, like Gecko) Version/17.0 Mobile/15E148 Safari/604.1"
)
WINDOWS_UA = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


@pytest.fixture()
def db():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def client(db):
    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    client_instance = TestClient(app)
    try:
        yield client_instance
    finally:
        client_instance.close()
        app.dependency_overrides.clear()


@pytest.fixture()
def make_user(db):
    counter = {"n": 0}

    def _make_user(
        role: Role = Role.STUDENT,
        *,
        registration_status: RegistrationStatus = RegistrationStatus.APPROVED,
        is_active: bool = True,
        email: str | None = None,
    ) -> User:
        counter["n"] += 1
        user = User(
            email=email or f"{role.value}{counter['n']}@school.test",
            hashed_password=_PASSWORD_HASH,
            first_name=role.value.title(),
            last_name=str(counter["n"]),
            role=role,
            registration_status=registration_status,
            is_active=is_active,
        )
        db.add(user)
        db.commit()
        return user

    return _make_user


def login(client: TestClient, user: User, *, user_agent: str = WINDOWS_UA):
    return client.post(
        "/api/auth/login",
        data={"username": user.email, "password": PASSWORD},
        headers={"User-Agent": user_agent},
    )


def login_token(client: TestClient, user: User, **kwargs) -> str:
    response = login(client, user, **kwargs)
    assert response.status_code == 200, response.text
    return response.json()["data"]["token"]


def auth_headers(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
