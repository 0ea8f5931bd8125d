"""Pydantic schemas for Teams."""
from __future__ import annotations
from datetime import datetime
from pydantic import BaseModel

from attendance.models.team import TeamRole


class TeamCreate(BaseModel):
    name: str
    created_by: str


class TeamOut(BaseModel):
    team_id: str
    name: str
    created_by: str
    created_at: datetime
    members: list[TeamMemberOut] = []

    model_config = {"from_attributes": True}


class TeamMemberAdd(BaseModel):
    user_id: str
    role: str = "player"


class TeamMemberOut(BaseModel):
    user_id: str
    role: TeamRole
    joined_at: datetime

    model_config = {"from_attributes": True}


# Rebuild TeamOut now that TeamMemberOut is defined
TeamOut.model_rebuild()
