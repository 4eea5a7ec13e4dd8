from __future__ import annotations

from datetime import datetime, timezone

from conftest import IPHONE_UA, WINDOWS_UA, auth_headers, login, login_token
from schoolportal.models.enums import RegistrationStatus, Role


def test_student_second_device_revokes_first(client, make_user):
    student = make_user(Role.STUDENT)
    first_token = login_token(client, student, user_agent=WINDOWS_UA)

    second = login(client, student, user_agent=IPHONE_UA)
    assert second.status_code == 200
    second_data = second.json()["data"]
    assert len(second_data["evicted_sessions"]) == 1

    revoked = client.get("/api/sessions", headers=auth_headers(first_token))
    assert revoked.status_code == 401
    assert revoked.json()["message"] == "Session has been revoked. Please log in again."

    sessions = client.get("/api/sessions", headers=auth_headers(second_data["token"]))
    assert sessions.status_code == 200
    listed = sessions.json()["data"]["sessions"]
    assert len(listed) == 1
    assert listed[0]["device_name"] == "iPhone"
    assert listed[0]["is_current"] is True


def test_session_stats(client, make_user):
    teacher = make_user(Role.TEACHER)
    token = login_token(client, teacher)
    login_token(client, teacher)

    stats = client.get("/api/sessions/stats", headers=auth_headers(token))
    assert stats.status_code == 200
    assert stats.json()["data"] == {
        "active_sessions": 2,
        "max_sessions": 999,
        "remaining_sessions": 997,
        "user_role": "teacher",
    }


def test_deactivate_own_session(client, make_user):
    teacher = make_user(Role.TEACHER)
    current = login_token(client, teacher)
    other = login(client, teacher).json()["data"]

    response = client.delete(f"/api/sessions/{other['session_id']}", headers=auth_headers(current))
    assert response.status_code == 200
    assert response.json()["message"] == "Session deactivated successfully"

    assert client.get("/api/auth/me", headers=auth_headers(other["token"])).status_code == 401
    assert client.get("/api/auth/me", headers=auth_headers(current)).status_code == 200


def test_cannot_deactivate_someone_elses_session(client, make_user):
    alice = make_user(Role.TEACHER)
    bob = make_user(Role.TEACHER)
    alice_token = login_token(client, alice)
    bob_login = login(client, bob).json()["data"]

    response = client.delete(f"/api/sessions/{bob_login['session_id']}", headers=auth_headers(alice_token))
    assert response.status_code == 404
    assert response.json()["message"] == "Session not found or access denied"
    assert client.get("/api/auth/me", headers=auth_headers(bob_login["token"])).status_code == 200


def test_deactivate_all_other_sessions(client, make_user):
    teacher = make_user(Role.TEACHER)
    tokens = [login_token(client, teacher) for _ in range(3)]
    current = tokens[-1]

    response = client.delete("/api/sessions/all", headers=auth_headers(current))
    assert response.status_code == 200
    assert response.json()["message"] == "2 other sessions deactivated successfully"

    for token in tokens[:-1]:
        assert client.get("/api/auth/me", headers=auth_headers(token)).status_code == 401
    assert client.get("/api/auth/me", headers=auth_headers(current)).status_code == 200


def test_teacher_overview_of_student_sessions(client, db, make_user):
    teacher = make_user(Role.TEACHER)
    early = make_user(Role.STUDENT)
    late = make_user(Role.STUDENT)
    idle = make_user(Role.STUDENT)
    teacher_token = login_token(client, teacher)
    login_token(client, early)
    login_token(client, late)

    early.last_login_at = datetime(2026, 10, 1, tzinfo=timezone.utc)
    late.last_login_at = datetime(2026, 10, 2, tzinfo=timezone.utc)
    db.commit()

    overview = client.get("/api/teacher/sessions/students", headers=auth_headers(teacher_token))
    assert overview.status_code == 200
    data = overview.json()["data"]
    assert data["total_students"] == 3
    assert data["students_with_active_sessions"] == 2
    assert [s["id"] for s in data["students"]] == [late.id, early.id, idle.id]
    assert data["students"][2]["active_session_count"] == 0

    stats = client.get("/api/teacher/sessions/stats", headers=auth_headers(teacher_token))
    assert stats.status_code == 200
    assert stats.json()["data"] == {
        "total_students": 3,
        "total_active_sessions": 2,
        "students_with_sessions": 2,
        "students_without_sessions": 1,
        "average_sessions_per_student": 0.67,
    }


def test_teacher_forces_student_logout(client, make_user):
    teacher = make_user(Role.TEACHER)
    student = make_user(Role.STUDENT)
    teacher_token = login_token(client, teacher)
    student_login = login(client, student).json()["data"]

    single = client.delete(
        f"/api/teacher/sessions/students/{student.id}/{student_login['session_id']}",
        headers=auth_headers(teacher_token),
    )
    assert single.status_code == 200
    assert client.get("/api/auth/me", headers=auth_headers(student_login["token"])).status_code == 401

    again = login_token(client, student)
    bulk = client.delete(
        f"/api/teacher/sessions/students/{student.id}/all",
        headers=auth_headers(teacher_token),
    )
    assert bulk.status_code == 200
    assert bulk.json()["message"] == "1 student sessions deactivated successfully"
    assert client.get("/api/auth/me", headers=auth_headers(again)).status_code == 401


def test_teacher_endpoints_reject_non_students_and_non_staff(client, make_user):
    teacher = make_user(Role.TEACHER)
    colleague = make_user(Role.TEACHER)
    student = make_user(Role.STUDENT)
    teacher_token = login_token(client, teacher)
    colleague_session = login(client, colleague).json()["data"]["session_id"]
    student_token = login_token(client, student)

    not_a_student = client.delete(
        f"/api/teacher/sessions/students/{colleague.id}/{colleague_session}",
        headers=auth_headers(teacher_token),
    )
    assert not_a_student.status_code == 404
    assert not_a_student.json()["message"] == "Student not found"

    forbidden = client.get("/api/teacher/sessions/students", headers=auth_headers(student_token))
    assert forbidden.status_code == 403


def test_pending_student_token_is_refused(client, db, make_user):
    student = make_user(Role.STUDENT)
    token = login_token(client, student)

    student.registration_status = RegistrationStatus.PENDING
    db.commit()

    response = client.get("/api/sessions", headers=auth_headers(token))
    assert response.status_code == 403
    assert response.json()["message"] == "Account pending approval or rejected"
