"""Schemas for QR attendance endpoints."""

from __future__ import annotations

from datetime import date as date_type, datetime
from typing import Optional

from pydantic import BaseModel

from schoolportal.models.enums import AttendanceStatus
from schoolportal.schemas.base import ORMModel


class SessionDescriptor(ORMModel):
    day: str
    start_time: str
    end_time: str
    type: str
    topic: str


class AttendanceRead(ORMModel):
    id: int
    user_id: int
    date: date_type
    session: SessionDescriptor
    status: AttendanceStatus
    marked_by_user_id: Optional[int] = None
    created_at: datetime


class AttendanceSummary(BaseModel):
    total: int
    present: int
    latest_date: Optional[date_type] = None


class CheckInRequest(BaseModel):
    # Optional so that a missing token is reported as "Missing token", not a schema error.
    token: Optional[str] = None
