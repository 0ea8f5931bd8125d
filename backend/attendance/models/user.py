"""User ORM model — parents, players and staff share one table keyed by role."""
import uuid
import enum
from sqlalchemy import Column, String, DateTime, Enum as SAEnum
from sqlalchemy.sql import func
from attendance.database import Base


class UserRole(str, enum.Enum):
    admin = "admin"
    coach = "coach"
    player = "player"
    parent = "parent"


PRIVILEGED_ROLES = frozenset({UserRole.admin, UserRole.coach})


class User(Base):
    __tablename__ = "users"

    user_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    display_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=True, unique=True)
    role = Column(SAEnum(UserRole), nullable=False, default=UserRole.player)
    default_timezone = Column(String(50), nullable=False, default="UTC")  # IANA tz
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    @property
    def is_privileged(self) -> bool:
        return self.role in PRIVILEGED_ROLES
