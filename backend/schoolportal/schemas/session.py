"""Schemas for device session endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from schoolportal.models.enums import RegistrationStatus, Role
from schoolportal.schemas.base import ORMModel


class DeviceSessionRead(ORMModel):
    id: int
    device_name: str
    user_agent: str
    ip_address: str
    location: str
    last_activity: datetime
    created_at: datetime
    is_current: bool = False


class SessionStats(ORMModel):
    active_sessions: int
    max_sessions: int
    remaining_sessions: int
    user_role: Role


class StudentSessions(ORMModel):
    id: int
    first_name: str
    last_name: str
    email: str
    registration_status: RegistrationStatus
    last_login_at: Optional[datetime] = None
    active_session_count: int
    sessions: List[DeviceSessionRead]


class StudentSessionOverview(ORMModel):
    students: List[StudentSessions]
    total_students: int
    students_with_active_sessions: int


class StudentSessionStats(ORMModel):
    total_students: int
    total_active_sessions: int
    students_with_sessions: int
    students_without_sessions: int
    average_sessions_per_student: float
