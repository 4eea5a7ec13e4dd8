"""Attendance recorded through QR self check-in."""

from __future__ import annotations

from datetime import date as date_type
from typing import Optional

from sqlalchemy import Date, Enum, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from schoolportal.db.base import Base, IDMixin, TimestampMixin
from schoolportal.models.enums import AttendanceStatus

OCCURRENCE_COLUMNS = ("user_id", "date", "session_day", "session_start_time", "session_end_time")


class UserAttendance(IDMixin, TimestampMixin, Base):
    __tablename__ = "user_attendance"
    __table_args__ = (
        UniqueConstraint(*OCCURRENCE_COLUMNS, name="uq_user_attendance_occurrence"),
    )

    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    date: Mapped[date_type] = mapped_column(Date, nullable=False, index=True)
    session_day: Mapped[str] = mapped_column(String(10), nullable=False)
    session_start_time: Mapped[str] = mapped_column(String(5), nullable=False)
    session_end_time: Mapped[str] = mapped_column(String(5), nullable=False)
    session_type: Mapped[str] = mapped_column(String(32), nullable=False, default="theory")
    session_topic: Mapped[str] = mapped_column(String(255), nullable=False, default="Session")
    status: Mapped[AttendanceStatus] = mapped_column(
        Enum(AttendanceStatus, name="attendance_status"),
        nullable=False,
        default=AttendanceStatus.PRESENT,
    )
    marked_by_user_id: Mapped[Optional[int]] = mapped_column(ForeignKey("users.id"), nullable=True)

    user: Mapped["User"] = relationship(back_populates="attendance_records", foreign_keys=[user_id])

    @property
    def session(self) -> dict[str, str]:
        return {
            "day": self.session_day,
            "start_time": self.session_start_time,
            "end_time": self.session_end_time,
            "type": self.session_type,
            "topic": self.session_topic,
        }
