"""Attendance ORM model — existence of a row is the sole "checked in" signal."""
import uuid
import enum
from sqlalchemy import Column, String, DateTime, Float, ForeignKey, UniqueConstraint, Enum as SAEnum
from sqlalchemy.sql import func
from attendance.database import Base


class CheckinMethod(str, enum.Enum):
    onsite = "onsite"
    qr = "qr"
    manual = "manual"


class Attendance(Base):
    __tablename__ = "attendances"
    __table_args__ = (
        UniqueConstraint("event_id", "user_id", name="uq_attendance_event_user"),
    )

    attendance_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    event_id = Column(String(36), ForeignKey("events.event_id"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("users.user_id"), nullable=False)
    type = Column(SAEnum(CheckinMethod), nullable=False)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    checked_in_at = Column(DateTime(timezone=True), server_default=func.now())
    recorded_by = Column(String(36), ForeignKey("users.user_id"), nullable=True)
