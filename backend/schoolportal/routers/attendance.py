"""QR attendance router: staff issue session tokens, students check in."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Body, Depends, Query, Request
from sqlalchemy.orm import Session

from schoolportal.core.deps import require_staff_user, require_student_user
from schoolportal.core.errors import NotFoundError
from schoolportal.core.logging import log_security_event
from schoolportal.db.session import get_db
from schoolportal.models.enums import AttendanceStatus, Role
from schoolportal.models.user import User
from schoolportal.schemas.attendance import AttendanceRead, AttendanceSummary, CheckInRequest
from schoolportal.services import attendance as attendance_service

router = APIRouter(tags=["attendance"])


@router.get("/api/teacher/schedule/qr")
def issue_session_qr(
    request: Request,
    day: Optional[str] = Query(None),
    start: Optional[str] = Query(None),
    end: Optional[str] = Query(None),
    session_type: Optional[str] = Query(None, alias="type"),
    topic: Optional[str] = Query(None),
    staff: User = Depends(require_staff_user),
) -> dict:
    """Issue a signed QR token for one occurrence of a scheduled session."""
    token = attendance_service.issue_session_token(
        day,
        start,
        end,
        session_type=session_type,
        topic=topic,
    )
    log_security_event(
        "attendance_token_issued",
        request=request,
        user_id=staff.id,
        day=day,
        start=start,
        end=end,
    )
    return {"status": "success", "data": {"token": token}}


@router.post("/api/student/attendance/check")
def check_in_attendance(
    body: Optional[CheckInRequest] = Body(None),
    db: Session = Depends(get_db),
    student: User = Depends(require_student_user),
) -> dict:
    """Mark the caller present for the session encoded in a scanned QR token.

    Scanning the same code twice is not an error.
    """
    result = attendance_service.check_in(db, token=body.token if body else None, user_id=student.id)
    db.commit()
    if not result.created:
        return {"status": "success", "message": attendance_service.ALREADY_MARKED_MESSAGE}
    return {"status": "success", "data": {"attendance": AttendanceRead.model_validate(result.attendance)}}


@router.get("/api/student/attendance")
def my_attendance(
    db: Session = Depends(get_db),
    student: User = Depends(require_student_user),
) -> dict:
    records = attendance_service.list_for_user(db, student.id)
    return {
        "status": "success",
        "data": {"attendance": [AttendanceRead.model_validate(r) for r in records]},
    }


@router.get("/api/teacher/students/{student_id}/attendance")
def student_attendance(
    student_id: int,
    db: Session = Depends(get_db),
    _staff: User = Depends(require_staff_user),
) -> dict:
    student = db.get(User, student_id)
    if not student or student.role != Role.STUDENT:
        raise NotFoundError("Student not found")
    records = attendance_service.list_for_user(db, student.id)
    # Records are newest first, so the head carries the latest date.
    summary = AttendanceSummary(
        total=len(records),
        present=sum(1 for r in records if r.status == AttendanceStatus.PRESENT),
        latest_date=records[0].date if records else None,
    )
    return {
        "status": "success",
        "data": {
            "summary": summary,
            "records": [AttendanceRead.model_validate(r) for r in records],
        },
    }
