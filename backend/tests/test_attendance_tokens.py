from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from schoolportal.core.errors import InvalidOrExpiredToken, ValidationError, WrongTokenType
from schoolportal.core.security import create_access_token, encode_token
from schoolportal.core.settings import settings
from schoolportal.services import attendance


def test_issued_token_carries_occurrence_claims():
    now = datetime(2026, 10, 19, 9, 0, tzinfo=timezone.utc)
    token = attendance.issue_session_token(
        "monday", "09:00", "10:30", session_type="lab", topic="Optics", now=now
    )

    claims = jwt.get_unverified_claims(token)
    assert claims["kind"] == "attendance"
    assert claims["day"] == "Monday"
    assert claims["start_time"] == "09:00"
    assert claims["end_time"] == "10:30"
    assert claims["type"] == "lab"
    assert claims["topic"] == "Optics"
    assert claims["exp"] - claims["iat"] == settings.attendance_token_ttl_minutes * 60


def test_optional_claims_are_omitted_when_not_given():
    token = attendance.issue_session_token("Friday", "13:00", "14:00")
    claims = jwt.get_unverified_claims(token)
    assert "type" not in claims
    assert "topic" not in claims


@pytest.mark.parametrize(
    "day,start,end",
    [
        (None, "09:00", "10:00"),
        ("Monday", None, "10:00"),
        ("Monday", "09:00", ""),
    ],
)
def test_missing_fields_rejected(day, start, end):
    with pytest.raises(ValidationError) as exc:
        attendance.issue_session_token(day, start, end)
    assert exc.value.message == "Missing day/start/end"


@pytest.mark.parametrize(
    "day,start,end",
    [
        ("Funday", "09:00", "10:00"),
        ("Monday", "9am", "10:00"),
        ("Monday", "09:00", "25:00"),
        ("Monday", "10:00", "09:00"),
        ("Monday", "10:00", "10:00"),
    ],
)
def test_malformed_occurrence_rejected(day, start, end):
    with pytest.raises(ValidationError):
        attendance.issue_session_token(day, start, end)


def test_token_valid_until_ttl_elapses():
    ttl = timedelta(minutes=settings.attendance_token_ttl_minutes)
    issued = datetime.now(timezone.utc) - ttl + timedelta(seconds=30)
    token = attendance.issue_session_token("Tuesday", "11:00", "12:00", now=issued)

    payload = attendance.decode_session_token(token)
    assert payload["day"] == "Tuesday"


def test_token_rejected_after_ttl():
    ttl = timedelta(minutes=settings.attendance_token_ttl_minutes)
    issued = datetime.now(timezone.utc) - ttl - timedelta(seconds=30)
    token = attendance.issue_session_token("Tuesday", "11:00", "12:00", now=issued)

    with pytest.raises(InvalidOrExpiredToken):
        attendance.decode_session_token(token)


def test_access_token_is_not_an_attendance_token():
    token = create_access_token({"sub": "1", "role": "student"})
    with pytest.raises(WrongTokenType):
        attendance.decode_session_token(token)


def test_other_kind_rejected():
    now = int(datetime.now(timezone.utc).timestamp())
    token = encode_token(
        {
            "kind": "reset",
            "day": "Monday",
            "start_time": "09:00",
            "end_time": "10:00",
            "iat": now,
            "exp": now + 600,
        }
    )
    with pytest.raises(WrongTokenType):
        attendance.decode_session_token(token)


def test_token_signed_with_other_key_rejected():
    now = int(datetime.now(timezone.utc).timestamp())
    forged = jwt.encode(
        {
            "kind": "attendance",
            "day": "Monday",
            "start_time": "09:00",
            "end_time": "10:00",
            "iat": now,
            "exp": now + 600,
        },
        "not-the-server-secret",
        algorithm="HS256",
    )
    with pytest.raises(InvalidOrExpiredToken):
        attendance.decode_session_token(forged)


def test_garbage_token_rejected():
    with pytest.raises(InvalidOrExpiredToken):
        attendance.decode_session_token("not-a-jwt")


def test_signing_without_secret_fails_closed(monkeypatch):
    from schoolportal.core.security import MissingSigningKey

    monkeypatch.setattr(settings, "jwt_secret", None)
    with pytest.raises(MissingSigningKey):
        attendance.issue_session_token("Monday", "09:00", "10:00")
