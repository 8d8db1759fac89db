"""
Invitation Workflow

Two independent state machines that share the team capacity rule:

- Invitation (initiated by a team member): pending -> accepted | declined
- Join request (initiated by the applicant, resolved by a leader):
  pending -> accepted | declined

Resolved rows are final. Capacity is checked when the row is created and
again, atomically, when it is accepted. If the team filled up in between, the
row is resolved as ``declined`` and ``TeamFull`` is reported.
If the user is already a member by then (another invitation or request got
there first), the row is resolved as ``accepted``; it has nothing left to decide.
"""

from __future__ import annotations

import logging
from typing import List
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from core.exceptions import (
    AlreadyMember,
    CapacityExceeded,
    DuplicatePending,
    NotFound,
    PermissionDenied,
    TeamFull,
)
from core.resilience import mutation_guard
from models import Profile, Team, TeamInvitation, TeamJoinRequest, TeamMember
from services.team_service import (
    STATUS_ACCEPTED,
    STATUS_DECLINED,
    STATUS_PENDING,
    add_member_if_capacity,
    get_membership,
    require_leader,
    resolve_pending_for_member,
)

logger = logging.getLogger(__name__)


def _get_team(db: Session, team_id: UUID) -> Team:
    team = db.query(Team).filter(Team.id == team_id).first()
    if team is None:
        raise NotFound("Equipo", team_id, detail="Equipo no encontrado")
    return team


def _ensure_capacity(db: Session, team: Team) -> None:
    if team.max_members is None:
        return
    count = db.query(func.count(TeamMember.id)).filter(TeamMember.team_id == team.id).scalar()
    if count >= team.max_members:
        raise CapacityExceeded()


def _insert_pending(db: Session, row, duplicate_detail: str):
    try:
        with db.begin_nested():
            db.add(row)
    except IntegrityError as e:
        # Partial unique index on pending rows
        raise DuplicatePending(duplicate_detail) from e
    return row


# --- INVITATIONS ---

def send_invitation(db: Session, *, inviter_id: UUID, team_id: UUID, invited_user_id: UUID) -> TeamInvitation:
    duplicate = "Ya se ha enviado una invitación a este usuario"
    with mutation_guard(db, "send_invitation"):
        team = _get_team(db, team_id)
        if get_membership(db, team_id, inviter_id) is None:
            raise PermissionDenied("Debes ser miembro del equipo para enviar invitaciones")
        if db.query(Profile.id).filter(Profile.id == invited_user_id).first() is None:
            raise NotFound("Usuario", detail="Usuario no encontrado")
        if get_membership(db, team_id, invited_user_id) is not None:
            raise AlreadyMember("El usuario ya es miembro de este equipo")
        pending = (
            db.query(TeamInvitation.id)
            .filter(
                TeamInvitation.team_id == team_id,
                TeamInvitation.invited_user_id == invited_user_id,
                TeamInvitation.status == STATUS_PENDING,
            )
            .first()
        )
        if pending:
            raise DuplicatePending(duplicate)
        _ensure_capacity(db, team)

        invitation = _insert_pending(
            db,
            TeamInvitation(
                team_id=team_id,
                invited_by=inviter_id,
                invited_user_id=invited_user_id,
                status=STATUS_PENDING,
            ),
            duplicate,
        )

    logger.info(f"Invitation {invitation.id} sent to {invited_user_id} for team {team_id}")
    return invitation


def _get_pending_invitation(db: Session, invitation_id: UUID, user_id: UUID) -> TeamInvitation:
    invitation = (
        db.query(TeamInvitation)
        .filter(
            TeamInvitation.id == invitation_id,
            TeamInvitation.invited_user_id == user_id,
            TeamInvitation.status == STATUS_PENDING,
        )
        .first()
    )
    if invitation is None:
        raise NotFound("Invitación", detail="Invitación no encontrada o ya procesada")
    return invitation


def accept_invitation(db: Session, *, user_id: UUID, invitation_id: UUID) -> UUID:
    """Accept and join in one transaction. Returns the joined team's id."""
    team_full = False
    with mutation_guard(db, "accept_invitation"):
        invitation = _get_pending_invitation(db, invitation_id, user_id)
        team_id = invitation.team_id
        try:
            add_member_if_capacity(db, team_id=team_id, user_id=user_id, full_error=TeamFull)
        except AlreadyMember:
            resolve_pending_for_member(db, team_id=team_id, user_id=user_id)
            invitation.status = STATUS_ACCEPTED
        except TeamFull:
            invitation.status = STATUS_DECLINED
            team_full = True
        else:
            invitation.status = STATUS_ACCEPTED

    if team_full:
        logger.info(f"Invitation {invitation_id} declined: team {team_id} is full")
        raise TeamFull()
    logger.info(f"Invitation {invitation_id} accepted by {user_id}")
    return team_id


def decline_invitation(db: Session, *, user_id: UUID, invitation_id: UUID) -> None:
    with mutation_guard(db, "decline_invitation"):
        invitation = _get_pending_invitation(db, invitation_id, user_id)
        invitation.status = STATUS_DECLINED


def get_user_invitations(db: Session, user_id: UUID) -> List[TeamInvitation]:
    """Pending invitations for the user, newest first, with team and inviter loaded."""
    return (
        db.query(TeamInvitation)
        .options(joinedload(TeamInvitation.team), joinedload(TeamInvitation.inviter))
        .filter(
            TeamInvitation.invited_user_id == user_id,
            TeamInvitation.status == STATUS_PENDING,
        )
        .order_by(TeamInvitation.created_at.desc())
        .all()
    )


# --- JOIN REQUESTS ---

def create_join_request(db: Session, *, user_id: UUID, team_id: UUID) -> TeamJoinRequest:
    duplicate = "Ya has enviado una solicitud a este equipo"
    with mutation_guard(db, "create_join_request"):
        team = _get_team(db, team_id)
        if get_membership(db, team_id, user_id) is not None:
            raise AlreadyMember()
        pending = (
            db.query(TeamJoinRequest.id)
            .filter(
                TeamJoinRequest.team_id == team_id,
                TeamJoinRequest.requested_by == user_id,
                TeamJoinRequest.status == STATUS_PENDING,
            )
            .first()
        )
        if pending:
            raise DuplicatePending(duplicate)
        _ensure_capacity(db, team)

        join_request = _insert_pending(
            db,
            TeamJoinRequest(team_id=team_id, requested_by=user_id, status=STATUS_PENDING),
            duplicate,
        )

    logger.info(f"Join request {join_request.id} from {user_id} for team {team_id}")
    return join_request


def _get_pending_request(db: Session, request_id: UUID, team_id: UUID) -> TeamJoinRequest:
    join_request = (
        db.query(TeamJoinRequest)
        .filter(
            TeamJoinRequest.id == request_id,
            TeamJoinRequest.team_id == team_id,
            TeamJoinRequest.status == STATUS_PENDING,
        )
        .first()
    )
    if join_request is None:
        raise NotFound("Solicitud", detail="Solicitud no encontrada o ya procesada")
    return join_request


def accept_join_request(db: Session, *, leader_id: UUID, team_id: UUID, request_id: UUID) -> TeamJoinRequest:
    team_full = False
    with mutation_guard(db, "accept_join_request"):
        require_leader(db, team_id, leader_id, "Solo los líderes del equipo pueden aceptar solicitudes")
        join_request = _get_pending_request(db, request_id, team_id)
        try:
            add_member_if_capacity(
                db,
                team_id=team_id,
                user_id=join_request.requested_by,
                full_error=TeamFull,
            )
        except AlreadyMember:
            resolve_pending_for_member(db, team_id=team_id, user_id=join_request.requested_by)
            join_request.status = STATUS_ACCEPTED
        except TeamFull:
            join_request.status = STATUS_DECLINED
            team_full = True
        else:
            join_request.status = STATUS_ACCEPTED

    if team_full:
        logger.info(f"Join request {request_id} declined: team {team_id} is full")
        raise TeamFull()
    logger.info(f"Join request {request_id} accepted by {leader_id}")
    return join_request


def decline_join_request(db: Session, *, leader_id: UUID, team_id: UUID, request_id: UUID) -> TeamJoinRequest:
    with mutation_guard(db, "decline_join_request"):
        require_leader(db, team_id, leader_id, "Solo los líderes del equipo pueden rechazar solicitudes")
        join_request = _get_pending_request(db, request_id, team_id)
        join_request.status = STATUS_DECLINED
    return join_request


def get_team_join_requests(db: Session, *, team_id: UUID, leader_id: UUID) -> List[TeamJoinRequest]:
    _get_team(db, team_id)
    require_leader(db, team_id, leader_id, "Solo los líderes del equipo pueden ver las solicitudes")
    return (
        db.query(TeamJoinRequest)
        .options(joinedload(TeamJoinRequest.requester))
        .filter(TeamJoinRequest.team_id == team_id, TeamJoinRequest.status == STATUS_PENDING)
        .order_by(TeamJoinRequest.created_at.desc())
        .all()
    )


def get_user_join_requests(db: Session, user_id: UUID) -> List[TeamJoinRequest]:
    """Every request the user has made, any status, newest first."""
    return (
        db.query(TeamJoinRequest)
        .options(joinedload(TeamJoinRequest.team))
        .filter(TeamJoinRequest.requested_by == user_id)
        .order_by(TeamJoinRequest.created_at.desc())
        .all()
    )
