"""Attendance ORM model: one record per user per calendar date."""

from __future__ import annotations

import datetime as dt
from typing import TYPE_CHECKING, Optional

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship

from leavedesk.database import Base

if TYPE_CHECKING:
    from leavedesk.users.models import User


class AttendanceRecord(Base):
    __tablename__ = "attendance"
    __table_args__ = (
        sa.UniqueConstraint("user_id", "date", name="uq_attendance_user_date"),
        sa.Index("ix_attendance_date", "date"),
    )

    id: Mapped[int] = mapped_column(sa.Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        sa.Integer, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    date: Mapped[dt.date] = mapped_column(sa.Date, nullable=False)
    # Stored as the wire identifier (e.g. "연차"); validated against AttendanceType
    type: Mapped[str] = mapped_column(sa.String(20), nullable=False)
    reason: Mapped[Optional[str]] = mapped_column(sa.Text)
    start_time: Mapped[Optional[str]] = mapped_column(sa.String(5))
    end_time: Mapped[Optional[str]] = mapped_column(sa.String(5))
    created_at: Mapped[dt.datetime] = mapped_column(
        sa.DateTime(timezone=True), server_default=sa.func.now()
    )

    # Relationships
    user: Mapped[User] = relationship(back_populates="attendance")

    @property
    def window_label(self) -> Optional[str]:
        if self.start_time and self.end_time:
            return f"{self.start_time}-{self.end_time}"
        return None
