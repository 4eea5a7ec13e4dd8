"""Staff monitoring and forced logout of student device sessions."""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from schoolportal.core.deps import require_staff_user
from schoolportal.core.errors import NotFoundError
from schoolportal.core.logging import log_security_event
from schoolportal.db.session import get_db
from schoolportal.models.enums import Role
from schoolportal.models.user import User
from schoolportal.routers.sessions import serialize_session
from schoolportal.schemas.session import StudentSessionOverview, StudentSessions, StudentSessionStats
from schoolportal.services import device_sessions

router = APIRouter(prefix="/api/teacher/sessions", tags=["teacher-sessions"])

_NEVER = datetime.min.replace(tzinfo=timezone.utc)


def _active_students(db: Session) -> list[User]:
    return (
        db.query(User)
        .filter(User.role == Role.STUDENT, User.is_active.is_(True))
        .order_by(User.id.asc())
        .all()
    )


def _get_student_or_404(db: Session, student_id: int) -> User:
    student = db.get(User, student_id)
    if not student or student.role != Role.STUDENT:
        raise NotFoundError("Student not found")
    return student


def _login_sort_key(student: StudentSessions) -> datetime:
    if student.last_login_at is None:
        return _NEVER
    # SQLite hands back naive datetimes; they are stored as UTC.
    if student.last_login_at.tzinfo is None:
        return student.last_login_at.replace(tzinfo=timezone.utc)
    return student.last_login_at


@router.get("/students")
def list_student_sessions(
    db: Session = Depends(get_db),
    _staff: User = Depends(require_staff_user),
) -> dict:
    students = []
    for student in _active_students(db):
        sessions = device_sessions.list_active(db, student.id)
        students.append(
            StudentSessions(
                id=student.id,
                first_name=student.first_name,
                last_name=student.last_name,
                email=student.email,
                registration_status=student.registration_status,
                last_login_at=student.last_login_at,
                active_session_count=len(sessions),
                sessions=[serialize_session(s) for s in sessions],
            )
        )
    students.sort(key=_login_sort_key, reverse=True)

    overview = StudentSessionOverview(
        students=students,
        total_students=len(students),
        students_with_active_sessions=sum(1 for s in students if s.active_session_count > 0),
    )
    return {"status": "success", "data": overview}


@router.get("/stats")
def student_session_stats(
    db: Session = Depends(get_db),
    _staff: User = Depends(require_staff_user),
) -> dict:
    counts = [device_sessions.count_active(db, student.id) for student in _active_students(db)]
    total_students = len(counts)
    total_active = sum(counts)
    with_sessions = sum(1 for count in counts if count > 0)

    stats = StudentSessionStats(
        total_students=total_students,
        total_active_sessions=total_active,
        students_with_sessions=with_sessions,
        students_without_sessions=total_students - with_sessions,
        average_sessions_per_student=round(total_active / total_students, 2) if total_students else 0.0,
    )
    return {"status": "success", "data": stats}


@router.delete("/students/{student_id}/all")
def deactivate_all_student_sessions(
    student_id: int,
    request: Request,
    db: Session = Depends(get_db),
    staff: User = Depends(require_staff_user),
) -> dict:
    student = _get_student_or_404(db, student_id)
    count = device_sessions.deactivate_all(db, student.id)
    db.commit()
    log_security_event(
        "student_sessions_revoked",
        request=request,
        user_id=staff.id,
        student_id=student.id,
        count=count,
    )
    return {"status": "success", "message": f"{count} student sessions deactivated successfully"}


@router.delete("/students/{student_id}/{session_id}")
def deactivate_student_session(
    student_id: int,
    session_id: int,
    request: Request,
    db: Session = Depends(get_db),
    staff: User = Depends(require_staff_user),
) -> dict:
    student = _get_student_or_404(db, student_id)
    if not device_sessions.deactivate(db, session_id, student.id):
        raise NotFoundError("Session not found or access denied")
    db.commit()
    log_security_event(
        "student_session_revoked",
        request=request,
        user_id=staff.id,
        student_id=student.id,
        session_id=session_id,
    )
    return {"status": "success", "message": "Student session deactivated successfully"}
