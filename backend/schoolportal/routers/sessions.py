"""Self-service device session management."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from schoolportal.core import rbac
from schoolportal.core.deps import get_current_session
from schoolportal.core.errors import NotFoundError
from schoolportal.core.logging import log_security_event
from schoolportal.db.session import get_db
from schoolportal.models.device_session import DeviceSession
from schoolportal.schemas.session import DeviceSessionRead, SessionStats
from schoolportal.services import device_sessions

router = APIRouter(prefix="/api/sessions", tags=["sessions"])


def serialize_session(session: DeviceSession, current_session_id: int | None = None) -> DeviceSessionRead:
    read = DeviceSessionRead.model_validate(session)
    read.is_current = session.id == current_session_id
    return read


@router.get("")
def list_my_sessions(
    current_session: DeviceSession = Depends(get_current_session),
    db: Session = Depends(get_db),
) -> dict:
    sessions = device_sessions.list_active(db, current_session.user_id)
    return {
        "status": "success",
        "data": {"sessions": [serialize_session(s, current_session.id) for s in sessions]},
    }


@router.get("/stats")
def my_session_stats(
    current_session: DeviceSession = Depends(get_current_session),
    db: Session = Depends(get_db),
) -> dict:
    user = current_session.user
    active = device_sessions.count_active(db, user.id)
    max_sessions = rbac.max_sessions_for(user.role)
    stats = SessionStats(
        active_sessions=active,
        max_sessions=max_sessions,
        remaining_sessions=max(0, max_sessions - active),
        user_role=user.role,
    )
    return {"status": "success", "data": stats}


# Declared before "/{session_id}" so "all" is not parsed as an id.
@router.delete("/all")
def deactivate_other_sessions(
    request: Request,
    current_session: DeviceSession = Depends(get_current_session),
    db: Session = Depends(get_db),
) -> dict:
    count = device_sessions.deactivate_all(
        db,
        current_session.user_id,
        except_session_id=current_session.id,
    )
    db.commit()
    log_security_event(
        "sessions_deactivated_others",
        request=request,
        user_id=current_session.user_id,
        count=count,
    )
    return {"status": "success", "message": f"{count} other sessions deactivated successfully"}


@router.delete("/{session_id}")
def deactivate_session(
    session_id: int,
    request: Request,
    current_session: DeviceSession = Depends(get_current_session),
    db: Session = Depends(get_db),
) -> dict:
    if not device_sessions.deactivate(db, session_id, current_session.user_id):
        raise NotFoundError("Session not found or access denied")
    db.commit()
    log_security_event(
        "session_deactivated",
        request=request,
        user_id=current_session.user_id,
        session_id=session_id,
    )
    return {"status": "success", "message": "Session deactivated successfully"}
