"""DeviceSession model: one row per logged-in device."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from schoolportal.db.base import Base, IDMixin, TimestampMixin, utcnow


class DeviceSession(IDMixin, TimestampMixin, Base):
    __tablename__ = "device_sessions"

    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    token_hash: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    device_id: Mapped[str] = mapped_column(String(64), nullable=False)
    device_name: Mapped[str] = mapped_column(String(100), nullable=False, default="Unknown Device")
    user_agent: Mapped[str] = mapped_column(Text, nullable=False, default="Unknown")
    ip_address: Mapped[str] = mapped_column(String(64), nullable=False, default="Unknown")
    location: Mapped[str] = mapped_column(String(255), nullable=False, default="Unknown")
    last_activity: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    user: Mapped["User"] = relationship(back_populates="device_sessions")

    __table_args__ = (
        Index("ix_device_sessions_user_active", "user_id", "is_active"),
        Index("ix_device_sessions_device_user", "device_id", "user_id"),
        Index("ix_device_sessions_created_at", "created_at"),
    )
