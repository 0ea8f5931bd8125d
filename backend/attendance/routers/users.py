"""User API routes."""
import logging
import pytz
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from attendance.database import get_db
from attendance.models.user import User, UserRole
from attendance.schemas.user import UserCreate, UserUpdate, UserOut

logger = logging.getLogger(__name__)
router = APIRouter()


def _validate(fields: dict) -> dict:
    """Coerce role and reject unknown IANA timezones."""
    if fields.get("role") is not None:
        try:
            fields["role"] = UserRole(fields["role"])
        except ValueError:
            raise HTTPException(status_code=400, detail=f"Invalid role: {fields['role']}")
    if fields.get("default_timezone") is not None and fields["default_timezone"] not in pytz.all_timezones_set:
        raise HTTPException(status_code=400, detail=f"Unknown timezone: {fields['default_timezone']}")
    return fields


@router.post("/", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def create_user(payload: UserCreate, db: Session = Depends(get_db)):
    """Create a new user with a role and home timezone."""
    user = User(**_validate(payload.model_dump()))
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Email already registered")
    db.refresh(user)
    logger.info("Created user %s (%s, %s)", user.user_id, user.display_name, user.role.value)
    return user


@router.get("/", response_model=list[UserOut])
def list_users(db: Session = Depends(get_db)):
    """List all users."""
    return db.query(User).order_by(User.display_name).all()


@router.get("/{user_id}", response_model=UserOut)
def get_user(user_id: str, db: Session = Depends(get_db)):
    """Fetch a single user by ID."""
    user = db.query(User).filter(User.user_id == user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.patch("/{user_id}", response_model=UserOut)
def update_user(user_id: str, payload: UserUpdate, db: Session = Depends(get_db)):
    """Update user profile fields (partial update)."""
    user = db.query(User).filter(User.user_id == user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    for field, value in _validate(payload.model_dump(exclude_unset=True)).items():
        setattr(user, field, value)
    db.commit()
    db.refresh(user)
    logger.info("Updated user %s", user_id)
    return user
