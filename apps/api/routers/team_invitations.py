"""
Team Invitations & Join Requests API Router

Invitations are sent by a team member and resolved by the invitee.
Join requests are sent by the applicant and resolved by a team leader.
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from core.auth import get_current_user
from core.database import get_db
from models import Profile
from routers.teams import team_payload
from schemas import InvitationCreate, InvitationResponse, JoinRequestResponse, TeamResponse
from services import team_invitations, team_matching

router = APIRouter(prefix="/v1", tags=["Team Invitations"])


# --- INVITATIONS ---

@router.post(
    "/teams/{team_id}/invitations",
    response_model=InvitationResponse,
    status_code=status.HTTP_201_CREATED,
)
def send_invitation(
    team_id: UUID,
    request: InvitationCreate,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return team_invitations.send_invitation(
        db,
        inviter_id=current_user.id,
        team_id=team_id,
        invited_user_id=request.invited_user_id,
    )


@router.get("/invitations", response_model=List[InvitationResponse])
def my_invitations(
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Pending invitations addressed to the current user."""
    return team_invitations.get_user_invitations(db, current_user.id)


@router.post("/invitations/{invitation_id}/accept", response_model=TeamResponse)
def accept_invitation(
    invitation_id: UUID,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    team_id = team_invitations.accept_invitation(db, user_id=current_user.id, invitation_id=invitation_id)
    return team_payload(db, team_matching.get_team(db, team_id))


@router.post("/invitations/{invitation_id}/decline", status_code=status.HTTP_204_NO_CONTENT)
def decline_invitation(
    invitation_id: UUID,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    team_invitations.decline_invitation(db, user_id=current_user.id, invitation_id=invitation_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# --- JOIN REQUESTS ---

@router.post(
    "/teams/{team_id}/join-requests",
    response_model=JoinRequestResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_join_request(
    team_id: UUID,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return team_invitations.create_join_request(db, user_id=current_user.id, team_id=team_id)


@router.get("/teams/{team_id}/join-requests", response_model=List[JoinRequestResponse])
def team_join_requests(
    team_id: UUID,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Pending requests for a team. Leaders only."""
    return team_invitations.get_team_join_requests(db, team_id=team_id, leader_id=current_user.id)


@router.post("/teams/{team_id}/join-requests/{request_id}/accept", response_model=JoinRequestResponse)
def accept_join_request(
    team_id: UUID,
    request_id: UUID,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return team_invitations.accept_join_request(
        db, leader_id=current_user.id, team_id=team_id, request_id=request_id
    )


@router.post("/teams/{team_id}/join-requests/{request_id}/decline", response_model=JoinRequestResponse)
def decline_join_request(
    team_id: UUID,
    request_id: UUID,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return team_invitations.decline_join_request(
        db, leader_id=current_user.id, team_id=team_id, request_id=request_id
    )


@router.get("/join-requests", response_model=List[JoinRequestResponse])
def my_join_requests(
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return team_invitations.get_user_join_requests(db, current_user.id)
