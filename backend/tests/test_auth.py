from __future__ import annotations

from conftest import IPHONE_UA, PASSWORD, auth_headers, login, login_token
from schoolportal.models.enums import RegistrationStatus, Role


def test_login_registers_device_session(client, make_user):
    student = make_user(Role.STUDENT)
    response = login(client, student, user_agent=IPHONE_UA)
    assert response.status_code == 200, response.text

    body = response.json()
    assert body["status"] == "success"
    assert body["message"] == "Login successful"
    data = body["data"]
    assert data["token_type"] == "bearer"
    assert data["device_name"] == "iPhone"
    assert data["evicted_sessions"] == []
    assert data["user"]["email"] == student.email
    assert data["user"]["role"] == "student"
    assert "hashed_password" not in data["user"]

    me = client.get("/api/auth/me", headers=auth_headers(data["token"]))
    assert me.status_code == 200
    assert me.json()["data"]["user"]["id"] == student.id


def test_login_rejects_bad_credentials(client, make_user):
    student = make_user(Role.STUDENT)
    response = client.post(
        "/api/auth/login",
        data={"username": student.email, "password": "wrong"},
    )
    assert response.status_code == 401
    assert response.json() == {"status": "error", "message": "Invalid credentials"}

    unknown = client.post(
        "/api/auth/login",
        data={"username": "nobody@school.test", "password": PASSWORD},
    )
    assert unknown.status_code == 401


def test_login_blocks_unapproved_students(client, make_user):
    pending = make_user(Role.STUDENT, registration_status=RegistrationStatus.PENDING)
    rejected = make_user(Role.STUDENT, registration_status=RegistrationStatus.REJECTED)

    pending_response = login(client, pending)
    assert pending_response.status_code == 403
    assert pending_response.json()["message"] == "Your registration is pending approval"

    rejected_response = login(client, rejected)
    assert rejected_response.status_code == 403
    assert "rejected" in rejected_response.json()["message"]


def test_login_blocks_deactivated_accounts(client, make_user):
    user = make_user(Role.TEACHER, is_active=False)
    response = login(client, user)
    assert response.status_code == 401
    assert response.json()["message"] == "Account has been deactivated"


def test_logout_revokes_token(client, make_user):
    teacher = make_user(Role.TEACHER)
    token = login_token(client, teacher)

    response = client.post("/api/auth/logout", headers=auth_headers(token))
    assert response.status_code == 200

    after = client.get("/api/auth/me", headers=auth_headers(token))
    assert after.status_code == 401
    assert after.json()["message"] == "Session has been revoked. Please log in again."


def test_missing_or_malformed_bearer(client):
    missing = client.get("/api/auth/me")
    assert missing.status_code == 401
    assert missing.headers["www-authenticate"] == "Bearer"

    malformed = client.get("/api/auth/me", headers=auth_headers("not-a-jwt"))
    assert malformed.status_code == 401
    assert malformed.json() == {"status": "error", "message": "Not authorized to access this route"}


def test_deactivated_user_token_rejected(client, db, make_user):
    teacher = make_user(Role.TEACHER)
    token = login_token(client, teacher)

    teacher.is_active = False
    db.commit()

    response = client.get("/api/auth/me", headers=auth_headers(token))
    assert response.status_code == 401
    assert response.json()["message"] == "User account has been deactivated"


def test_health_and_metrics(client):
    health = client.get("/healthz")
    assert health.status_code == 200
    assert health.json()["status"] == "ok"

    metrics = client.get("/metrics")
    assert metrics.status_code == 200
    assert "attendance_checkins_total" in metrics.text
