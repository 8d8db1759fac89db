"""
Admin API Router

Oversight of all teams and users, direct membership management, and the team
distance leaderboard used for the one-time team insignia.
"""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from core.auth import require_admin
from core.database import get_db
from models import Profile
from routers.teams import team_payload
from schemas import (
    AdminMemberAdd,
    LeaveTeamResponse,
    TeamDistanceResponse,
    TeamResponse,
    UserWithStatsResponse,
)
from services import admin_service, team_matching, team_service

router = APIRouter(prefix="/v1/admin", tags=["Admin"])


@router.get("/users", response_model=List[UserWithStatsResponse])
def list_users_with_stats(
    admin: Profile = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """All profiles, newest first, with email, total points and kilometers walked."""
    return admin_service.get_all_users_with_stats(db)


@router.get("/teams", response_model=List[TeamResponse])
def list_all_teams(
    admin: Profile = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return [team_payload(db, t, with_distance=True) for t in team_matching.get_all_teams(db)]


@router.get("/teams/leaderboard", response_model=List[TeamDistanceResponse])
def team_leaderboard(
    limit: Optional[int] = Query(None, ge=1, le=500),
    admin: Profile = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Teams ranked by total kilometers walked by their current members."""
    return team_matching.team_distance_leaderboard(db, limit=limit)


@router.post("/teams/{team_id}/members", response_model=TeamResponse, status_code=status.HTTP_201_CREATED)
def add_team_member(
    team_id: UUID,
    body: AdminMemberAdd,
    admin: Profile = Depends(require_admin),
    db: Session = Depends(get_db),
):
    team = team_service.admin_add_member(db, team_id=team_id, user_id=body.user_id)
    return team_payload(db, team)


@router.delete("/teams/{team_id}/members/{user_id}", response_model=LeaveTeamResponse)
def remove_team_member(
    team_id: UUID,
    user_id: UUID,
    admin: Profile = Depends(require_admin),
    db: Session = Depends(get_db),
):
    team_deleted = team_service.admin_remove_member(db, team_id=team_id, user_id=user_id)
    return LeaveTeamResponse(team_deleted=team_deleted)


@router.delete("/teams/{team_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_team(
    team_id: UUID,
    admin: Profile = Depends(require_admin),
    db: Session = Depends(get_db),
):
    team_service.admin_delete_team(db, team_id=team_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
