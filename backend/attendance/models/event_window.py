"""EventWindow ORM model — one offset rule for an RSVP or check-in boundary."""
import uuid
import enum
from sqlalchemy import Column, String, Integer, ForeignKey, UniqueConstraint, Enum as SAEnum
from sqlalchemy.orm import relationship
from attendance.database import Base


class WindowType(str, enum.Enum):
    rsvp = "rsvp"
    checkin = "checkin"


class OpenRole(str, enum.Enum):
    open = "open"
    close = "close"


class WindowUnit(str, enum.Enum):
    minutes = "minutes"
    hours = "hours"
    days = "days"


class WindowDirection(str, enum.Enum):
    before = "before"
    after = "after"


class EventWindow(Base):
    __tablename__ = "event_windows"
    __table_args__ = (
        UniqueConstraint("event_id", "window_type", "open_role", name="uq_event_window_slot"),
    )

    window_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    event_id = Column(String(36), ForeignKey("events.event_id"), nullable=False, index=True)
    window_type = Column(SAEnum(WindowType), nullable=False)
    open_role = Column(SAEnum(OpenRole), nullable=False)
    amount = Column(Integer, nullable=False)
    unit = Column(SAEnum(WindowUnit), nullable=False)
    direction = Column(SAEnum(WindowDirection), nullable=False)

    event = relationship("Event", back_populates="windows")
