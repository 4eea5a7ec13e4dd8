"""Device session registry and per-role concurrency cap.

Functions here only flush; committing is left to the caller so that a login
can evict old sessions and register the new one in the same unit of work.
The cap is advisory: two logins racing at the same instant may both pass
``enforce_limit`` before either inserts.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from sqlalchemy.orm import Query, Session

from schoolportal.core import rbac
from schoolportal.core.observability import device_sessions_evicted_total
from schoolportal.core.security import hash_token
from schoolportal.core.settings import settings
from schoolportal.models.device_session import DeviceSession
from schoolportal.models.user import User
from schoolportal.services.devices import DeviceInfo

logger = logging.getLogger(__name__)


@dataclass
class CreatedSession:
    session: DeviceSession
    evicted: List[DeviceSession] = field(default_factory=list)


def retention_cutoff(now: Optional[datetime] = None) -> datetime:
    now = now or datetime.now(timezone.utc)
    return now - timedelta(days=settings.session_retention_days)


def _active_query(db: Session, user_id: int) -> Query:
    # Rows past retention count as gone even before the purge job deletes them.
    return db.query(DeviceSession).filter(
        DeviceSession.user_id == user_id,
        DeviceSession.is_active.is_(True),
        DeviceSession.created_at >= retention_cutoff(),
    )


def count_active(db: Session, user_id: int) -> int:
    return _active_query(db, user_id).count()


def list_active(db: Session, user_id: int) -> List[DeviceSession]:
    """Active sessions, most recently used first."""
    return (
        _active_query(db, user_id)
        .order_by(DeviceSession.last_activity.desc(), DeviceSession.id.desc())
        .all()
    )


def enforce_limit(db: Session, user_id: int, max_sessions: int) -> List[DeviceSession]:
    """Deactivate the least recently used sessions so one more fits under *max_sessions*.

    Returns the sessions that were deactivated.
    """
    active = (
        _active_query(db, user_id)
        .order_by(DeviceSession.last_activity.asc(), DeviceSession.id.asc())
        .all()
    )
    if len(active) < max_sessions:
        return []

    evicted = active[: len(active) - max_sessions + 1]
    for session in evicted:
        session.is_active = False
    db.flush()

    device_sessions_evicted_total.inc(len(evicted))
    logger.info(
        "device_sessions_evicted",
        extra={"user_id": user_id, "event": "evicted", "session_id": [s.id for s in evicted]},
    )
    return evicted


def deactivate(db: Session, session_id: int, user_id: int) -> bool:
    """Deactivate *session_id* if, and only if, it belongs to *user_id*."""
    session = db.get(DeviceSession, session_id)
    if session is None or session.user_id != user_id:
        return False
    session.is_active = False
    db.flush()
    return True


def deactivate_all(db: Session, user_id: int, *, except_session_id: Optional[int] = None) -> int:
    """Deactivate every active session of *user_id*; returns how many changed."""
    query = db.query(DeviceSession).filter(
        DeviceSession.user_id == user_id,
        DeviceSession.is_active.is_(True),
    )
    if except_session_id is not None:
        query = query.filter(DeviceSession.id != except_session_id)
    count = query.update({DeviceSession.is_active: False}, synchronize_session="fetch")
    db.flush()
    return count


def create_session(db: Session, user: User, token: str, device: DeviceInfo) -> CreatedSession:
    """Register a login, evicting older sessions first when the role cap is reached."""
    evicted = enforce_limit(db, user.id, rbac.max_sessions_for(user.role))

    now = datetime.now(timezone.utc)
    session = DeviceSession(
        user_id=user.id,
        token_hash=hash_token(token),
        device_id=device.device_id,
        device_name=device.device_name,
        user_agent=device.user_agent,
        ip_address=device.ip_address,
        location=device.location,
        created_at=now,
        last_activity=now,
        is_active=True,
    )
    db.add(session)
    db.flush()
    return CreatedSession(session=session, evicted=evicted)


def get_by_token(db: Session, token: str) -> Optional[DeviceSession]:
    """The active, unexpired session registered for *token*."""
    return (
        db.query(DeviceSession)
        .filter(
            DeviceSession.token_hash == hash_token(token),
            DeviceSession.is_active.is_(True),
            DeviceSession.created_at >= retention_cutoff(),
        )
        .first()
    )


def touch(db: Session, session: DeviceSession) -> None:
    session.last_activity = datetime.now(timezone.utc)
    db.flush()


def purge_expired(db: Session, now: Optional[datetime] = None) -> int:
    """Delete sessions created before the retention window. Returns rows deleted."""
    count = (
        db.query(DeviceSession)
        .filter(DeviceSession.created_at < retention_cutoff(now))
        .delete(synchronize_session=False)
    )
    db.flush()
    return count
