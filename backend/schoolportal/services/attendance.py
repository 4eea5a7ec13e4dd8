"""QR attendance: capability tokens issued by staff, idempotent self check-in.

Tokens are stateless (nothing is written when one is issued). The only
concurrency control is the unique occurrence constraint on
``user_attendance`` together with :func:`upsert_if_absent`.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple

from jose import JWTError
from sqlalchemy import and_, insert
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from schoolportal.core.errors import InvalidOrExpiredToken, StoreError, ValidationError, WrongTokenType
from schoolportal.core.observability import attendance_checkins_total, attendance_tokens_issued_total
from schoolportal.core.security import decode_token, encode_token
from schoolportal.core.settings import settings
from schoolportal.models.attendance import OCCURRENCE_COLUMNS, UserAttendance
from schoolportal.models.enums import AttendanceStatus

logger = logging.getLogger(__name__)

TOKEN_KIND = "attendance"
ALREADY_MARKED_MESSAGE = "Attendance already marked for this session."
DEFAULT_SESSION_TYPE = "theory"
DEFAULT_SESSION_TOPIC = "Session"

WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")
_TIME_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")

_ON_CONFLICT_INSERTS = {
    "sqlite": sqlite_insert,
    "postgresql": postgresql_insert,
}


@dataclass
class CheckInResult:
    attendance: UserAttendance
    created: bool


def _normalize_day(day: str) -> str:
    normalized = day.strip().capitalize()
    if normalized not in WEEKDAYS:
        raise ValidationError(f"Invalid day '{day}'")
    return normalized


def _normalize_time(value: str, label: str) -> str:
    value = value.strip()
    if not _TIME_RE.match(value):
        raise ValidationError(f"Invalid {label} time '{value}', expected HH:MM")
    return value


def issue_session_token(
    day: Optional[str],
    start_time: Optional[str],
    end_time: Optional[str],
    *,
    session_type: Optional[str] = None,
    topic: Optional[str] = None,
    now: Optional[datetime] = None,
) -> str:
    """Sign a short-lived token describing one occurrence of a scheduled session."""
    if not day or not start_time or not end_time:
        raise ValidationError("Missing day/start/end")

    day = _normalize_day(day)
    start_time = _normalize_time(start_time, "start")
    end_time = _normalize_time(end_time, "end")
    if start_time >= end_time:
        raise ValidationError("Session start must be before its end")

    issued_at = now or datetime.now(timezone.utc)
    claims: Dict[str, Any] = {
        "kind": TOKEN_KIND,
        "day": day,
        "start_time": start_time,
        "end_time": end_time,
        "iat": int(issued_at.timestamp()),
        "exp": int((issued_at + timedelta(minutes=settings.attendance_token_ttl_minutes)).timestamp()),
    }
    if session_type:
        claims["type"] = session_type
    if topic:
        claims["topic"] = topic

    token = encode_token(claims)
    attendance_tokens_issued_total.inc()
    return token


def decode_session_token(token: str) -> Dict[str, Any]:
    try:
        payload = decode_token(token)
    except JWTError:
        raise InvalidOrExpiredToken()

    if payload.get("kind") != TOKEN_KIND:
        raise WrongTokenType()
    if not all(payload.get(key) for key in ("day", "start_time", "end_time")):
        raise InvalidOrExpiredToken()
    return payload


def _find_occurrence(db: Session, values: Dict[str, Any]) -> Optional[UserAttendance]:
    return (
        db.query(UserAttendance)
        .filter(and_(*[getattr(UserAttendance, column) == values[column] for column in OCCURRENCE_COLUMNS]))
        .first()
    )


def upsert_if_absent(db: Session, values: Dict[str, Any]) -> Tuple[UserAttendance, bool]:
    """Insert the attendance row unless its occurrence already exists.

    Returns ``(row, created)``. Concurrent callers with the same occurrence key
    collapse onto a single row; exactly one of them sees ``created=True``.
    """
    dialect = db.get_bind().dialect.name
    dialect_insert = _ON_CONFLICT_INSERTS.get(dialect)

    if dialect_insert is not None:
        stmt = (
            dialect_insert(UserAttendance)
            .values(**values)
            .on_conflict_do_nothing(index_elements=list(OCCURRENCE_COLUMNS))
        )
        result = db.execute(stmt)
        created = result.rowcount == 1
    else:
        try:
            with db.begin_nested():
                db.execute(insert(UserAttendance).values(**values))
            created = True
        except IntegrityError:
            # Only an existing occurrence row makes this a repeat; anything else is a real failure.
            if _find_occurrence(db, values) is None:
                raise
            created = False

    row = _find_occurrence(db, values)
    if row is None:
        logger.error("attendance_row_missing_after_upsert", extra={"user_id": values["user_id"]})
        raise StoreError()
    return row, created


def check_in(
    db: Session,
    *,
    token: Optional[str],
    user_id: int,
    today: Optional[date] = None,
) -> CheckInResult:
    """Record the caller as present for the occurrence described by *token*."""
    if not token:
        raise ValidationError("Missing token")

    payload = decode_session_token(token)

    values = {
        "user_id": user_id,
        "date": today or date.today(),
        "session_day": payload["day"],
        "session_start_time": payload["start_time"],
        "session_end_time": payload["end_time"],
        "session_type": payload.get("type") or DEFAULT_SESSION_TYPE,
        "session_topic": payload.get("topic") or DEFAULT_SESSION_TOPIC,
        "status": AttendanceStatus.PRESENT,
        "marked_by_user_id": user_id,
    }
    attendance, created = upsert_if_absent(db, values)

    outcome = "created" if created else "already_marked"
    attendance_checkins_total.labels(outcome=outcome).inc()
    logger.info(
        "attendance_check_in",
        extra={"user_id": user_id, "event": outcome},
    )
    return CheckInResult(attendance=attendance, created=created)


def list_for_user(db: Session, user_id: int, limit: int = 200) -> List[UserAttendance]:
    return (
        db.query(UserAttendance)
        .filter(UserAttendance.user_id == user_id)
        .order_by(UserAttendance.date.desc(), UserAttendance.created_at.desc(), UserAttendance.id.desc())
        .limit(limit)
        .all()
    )
