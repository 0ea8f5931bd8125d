"""Team roster API routes."""
import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from attendance.database import get_db
from attendance.models.team import Team, TeamMember, TeamRole
from attendance.models.user import User
from attendance.schemas.team import TeamCreate, TeamMemberAdd, TeamOut, TeamMemberOut

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/", response_model=TeamOut, status_code=status.HTTP_201_CREATED)
def create_team(payload: TeamCreate, db: Session = Depends(get_db)):
    """Create a new team. The creator is added to the roster as coach."""
    creator = db.query(User).filter(User.user_id == payload.created_by).first()
    if not creator:
        raise HTTPException(status_code=404, detail="Creator user not found")
    if not creator.is_privileged:
        raise HTTPException(status_code=403, detail="Only admins and coaches can create teams")

    team = Team(name=payload.name, created_by=payload.created_by)
    db.add(team)
    db.flush()

    db.add(TeamMember(team_id=team.team_id, user_id=payload.created_by, role=TeamRole.coach))
    db.commit()
    db.refresh(team)
    logger.info("Created team '%s' (%s) by user %s", team.name, team.team_id, payload.created_by)
    return team


@router.get("/{team_id}", response_model=TeamOut)
def get_team(team_id: str, db: Session = Depends(get_db)):
    """Fetch a single team with its roster."""
    team = db.query(Team).filter(Team.team_id == team_id).first()
    if not team:
        raise HTTPException(status_code=404, detail="Team not found")
    return team


@router.post("/{team_id}/members", response_model=TeamMemberOut, status_code=status.HTTP_201_CREATED)
def add_member(team_id: str, payload: TeamMemberAdd, db: Session = Depends(get_db)):
    """Add a user to a team roster."""
    team = db.query(Team).filter(Team.team_id == team_id).first()
    if not team:
        raise HTTPException(status_code=404, detail="Team not found")

    user = db.query(User).filter(User.user_id == payload.user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    existing = (
        db.query(TeamMember)
        .filter(TeamMember.team_id == team_id, TeamMember.user_id == payload.user_id)
        .first()
    )
    if existing:
        raise HTTPException(status_code=409, detail="User is already on this team")

    try:
        role = TeamRole(payload.role)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid team role: {payload.role}")

    member = TeamMember(team_id=team_id, user_id=payload.user_id, role=role)
    db.add(member)
    db.commit()
    db.refresh(member)
    logger.info("Added user %s to team %s as %s", payload.user_id, team_id, payload.role)
    return member


@router.delete("/{team_id}/members/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_member(team_id: str, user_id: str, db: Session = Depends(get_db)):
    """Remove a user from a team roster."""
    member = (
        db.query(TeamMember)
        .filter(TeamMember.team_id == team_id, TeamMember.user_id == user_id)
        .first()
    )
    if not member:
        raise HTTPException(status_code=404, detail="Membership not found")
    db.delete(member)
    db.commit()
    logger.info("Removed user %s from team %s", user_id, team_id)
