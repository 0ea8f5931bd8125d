"""Event ORM model — a practice, game or tournament with an optional geofence."""
import uuid
import enum
from sqlalchemy import Column, String, Text, DateTime, Float, ForeignKey, Enum as SAEnum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from attendance.database import Base


class EventType(str, enum.Enum):
    practice = "practice"
    game = "game"
    tournament = "tournament"
    other = "other"


class Event(Base):
    __tablename__ = "events"

    event_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    team_id = Column(String(36), ForeignKey("teams.team_id"), nullable=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    event_type = Column(SAEnum(EventType), nullable=False, default=EventType.practice)
    start_time_utc = Column(DateTime(timezone=True), nullable=False)
    end_time_utc = Column(DateTime(timezone=True), nullable=False)
    location_name = Column(String(500), nullable=False)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    checkin_radius_m = Column(Float, nullable=True)  # None -> settings default
    opponent_team = Column(String(255), nullable=True)
    organizer_id = Column(String(36), ForeignKey("users.user_id"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    windows = relationship("EventWindow", back_populates="event", cascade="all, delete-orphan")

    @property
    def has_geofence(self) -> bool:
        return self.latitude is not None and self.longitude is not None
