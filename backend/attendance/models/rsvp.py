"""RsvpResponse ORM model — at most one response per (event, user)."""
import uuid
import enum
from sqlalchemy import Column, String, DateTime, ForeignKey, UniqueConstraint, Enum as SAEnum
from sqlalchemy.sql import func
from attendance.database import Base


class RsvpStatus(str, enum.Enum):
    attending = "attending"
    not_attending = "not_attending"
    no_response = "no_response"


class RsvpResponse(Base):
    __tablename__ = "rsvp_responses"
    __table_args__ = (
        UniqueConstraint("event_id", "user_id", name="uq_rsvp_event_user"),
    )

    rsvp_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    event_id = Column(String(36), ForeignKey("events.event_id"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("users.user_id"), nullable=False)
    response = Column(SAEnum(RsvpStatus), nullable=False, default=RsvpStatus.no_response)
    responded_at = Column(DateTime(timezone=True), server_default=func.now())
