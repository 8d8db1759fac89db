"""
Teams API Router

Nearby pilgrims, open teams and the team lifecycle (create, join, leave,
delete, edit). Invitation and join-request workflows live in
``routers.team_invitations``.
"""

import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from core.auth import get_current_user
from core.database import get_db
from models import Profile, Team
from schemas import (
    LeaveTeamResponse,
    MemberEmailResponse,
    NearbyUserResponse,
    TeamCreate,
    TeamDistanceResponse,
    TeamMemberResponse,
    TeamNameUpdate,
    TeamResponse,
    TeamWhatsAppLinkUpdate,
)
from services import team_matching, team_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/teams", tags=["Teams"])


def team_payload(db: Session, team: Team, with_distance: bool = False) -> TeamResponse:
    payload = TeamResponse.model_validate(team, from_attributes=True)
    if with_distance:
        payload.total_distance_km = team_matching.team_total_distance(db, team.id)
    return payload


@router.get("/nearby-users", response_model=List[NearbyUserResponse])
def nearby_users(
    radius_miles: Optional[float] = Query(None, gt=0),
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Other pilgrims within the radius, nearest first. Addresses are never included."""
    return team_matching.find_nearby_users(db, current_user, radius_miles)


@router.get("/available", response_model=List[TeamResponse])
def available_teams(
    radius_miles: Optional[float] = Query(None, gt=0),
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    teams = team_matching.find_available_teams(db, current_user, radius_miles)
    return [team_payload(db, t) for t in teams]


@router.get("/mine", response_model=List[TeamResponse])
def my_teams(
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    teams = team_matching.get_user_teams(db, current_user.id)
    return [team_payload(db, t, with_distance=True) for t in teams]


@router.get("/mine/current", response_model=Optional[TeamResponse])
def my_current_team(
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """The first team joined, for the single-team dashboard card."""
    team = team_matching.get_user_team(db, current_user.id)
    return team_payload(db, team, with_distance=True) if team else None


@router.post("", response_model=TeamResponse, status_code=status.HTTP_201_CREATED)
def create_team(
    request: TeamCreate,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    team = team_service.create_team(
        db,
        user_id=current_user.id,
        name=request.name,
        max_members=request.max_members,
        whatsapp_link=request.whatsapp_link,
    )
    return team_payload(db, team)


@router.get("/{team_id}", response_model=TeamResponse)
def get_team(
    team_id: UUID,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return team_payload(db, team_matching.get_team(db, team_id), with_distance=True)


@router.post("/{team_id}/join", response_model=TeamResponse)
def join_team(
    team_id: UUID,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    team = team_service.join_team(db, user_id=current_user.id, team_id=team_id)
    return team_payload(db, team)


@router.post("/{team_id}/leave", response_model=LeaveTeamResponse)
def leave_team(
    team_id: UUID,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    deleted = team_service.leave_team(db, user_id=current_user.id, team_id=team_id)
    return LeaveTeamResponse(team_deleted=deleted)


@router.delete("/{team_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_team(
    team_id: UUID,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    team_service.delete_team(db, user_id=current_user.id, team_id=team_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.patch("/{team_id}/name", response_model=TeamResponse)
def update_team_name(
    team_id: UUID,
    request: TeamNameUpdate,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    team = team_service.update_team_name(db, user_id=current_user.id, team_id=team_id, name=request.name)
    return team_payload(db, team)


@router.patch("/{team_id}/whatsapp-link", response_model=TeamResponse)
def update_team_whatsapp_link(
    team_id: UUID,
    request: TeamWhatsAppLinkUpdate,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    team = team_service.update_team_whatsapp_link(
        db,
        user_id=current_user.id,
        team_id=team_id,
        whatsapp_link=request.whatsapp_link,
    )
    return team_payload(db, team)


@router.get("/{team_id}/members", response_model=List[TeamMemberResponse])
def team_members(
    team_id: UUID,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return team_matching.get_team_members(db, team_id)


@router.get("/{team_id}/member-emails", response_model=List[MemberEmailResponse])
def team_member_emails(
    team_id: UUID,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Contact emails of the team. Members only."""
    return team_matching.get_team_member_emails(db, team_id, current_user.id)


@router.get("/{team_id}/total-distance", response_model=TeamDistanceResponse)
def team_total_distance(
    team_id: UUID,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    team = team_matching.get_team(db, team_id)
    return TeamDistanceResponse(
        team_id=team.id,
        team_name=team.name,
        member_count=team.member_count,
        total_distance_km=team_matching.team_total_distance(db, team.id),
    )
