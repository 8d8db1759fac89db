"""
Team Lifecycle Service

Create, join, leave, delete and edit teams.

Capacity is enforced inside the INSERT itself: the membership row is written
with ``INSERT ... SELECT ... WHERE <member count> < <max_members>``, so two
requests racing for the last open slot cannot both succeed. On PostgreSQL the
team row is additionally locked (``SELECT ... FOR UPDATE``) for the duration
of the transaction, which serializes joins to the same team.
"""

from __future__ import annotations

import logging
import uuid
from typing import Optional
from urllib.parse import urlparse
from uuid import UUID

from sqlalchemy import Uuid, func, insert, literal, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from core.config import settings
from core.exceptions import (
    AlreadyMember,
    CapacityExceeded,
    NotFound,
    PermissionDenied,
    ValidationError,
)
from core.resilience import mutation_guard
from models import Profile, Team, TeamInvitation, TeamJoinRequest, TeamMember
from services.team_matching import get_team

logger = logging.getLogger(__name__)

MAX_TEAM_NAME_LENGTH = 80
ROLE_LEADER = "leader"
ROLE_MEMBER = "member"

STATUS_PENDING = "pending"
STATUS_ACCEPTED = "accepted"
STATUS_DECLINED = "declined"


# --- VALIDATION ---

def normalize_team_name(name: Optional[str]) -> Optional[str]:
    cleaned = (name or "").strip()
    if len(cleaned) > MAX_TEAM_NAME_LENGTH:
        raise ValidationError(
            f"El nombre del equipo no puede superar {MAX_TEAM_NAME_LENGTH} caracteres",
            field="name",
        )
    return cleaned or None


def normalize_whatsapp_link(link: Optional[str]) -> Optional[str]:
    """Empty clears the link; anything else must be an http(s) URL."""
    cleaned = (link or "").strip()
    if not cleaned:
        return None
    parsed = urlparse(cleaned)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValidationError("El enlace de WhatsApp debe ser una URL válida", field="whatsapp_link")
    return cleaned


def validate_max_members(max_members: Optional[int]) -> Optional[int]:
    if max_members is None:
        return settings.DEFAULT_TEAM_MAX_MEMBERS
    if max_members < 1:
        raise ValidationError("El equipo debe admitir al menos 1 miembro", field="max_members")
    return max_members


# --- MEMBERSHIP PRIMITIVES ---

def _lock_team(db: Session, team_id: UUID) -> Team:
    team = db.query(Team).filter(Team.id == team_id).with_for_update().first()
    if team is None:
        raise NotFound("Equipo", team_id, detail="Equipo no encontrado")
    return team


def get_membership(db: Session, team_id: UUID, user_id: UUID) -> Optional[TeamMember]:
    return (
        db.query(TeamMember)
        .filter(TeamMember.team_id == team_id, TeamMember.user_id == user_id)
        .first()
    )


def require_leader(db: Session, team_id: UUID, user_id: UUID, detail: str) -> TeamMember:
    membership = get_membership(db, team_id, user_id)
    if membership is None:
        raise PermissionDenied("No tienes permiso para editar este equipo")
    if membership.role != ROLE_LEADER:
        raise PermissionDenied(detail)
    return membership


def resolve_pending_for_member(db: Session, *, team_id: UUID, user_id: UUID) -> None:
    """
    Mark the user's pending invitations and join requests for ``team_id`` as
    accepted. Once they are a member nothing is left to decide on those rows.
    """
    db.query(TeamInvitation).filter(
        TeamInvitation.team_id == team_id,
        TeamInvitation.invited_user_id == user_id,
        TeamInvitation.status == STATUS_PENDING,
    ).update({TeamInvitation.status: STATUS_ACCEPTED}, synchronize_session="fetch")
    db.query(TeamJoinRequest).filter(
        TeamJoinRequest.team_id == team_id,
        TeamJoinRequest.requested_by == user_id,
        TeamJoinRequest.status == STATUS_PENDING,
    ).update({TeamJoinRequest.status: STATUS_ACCEPTED}, synchronize_session="fetch")


def add_member_if_capacity(
    db: Session,
    *,
    team_id: UUID,
    user_id: UUID,
    role: str = ROLE_MEMBER,
    full_error: type = CapacityExceeded,
) -> None:
    """
    Insert a membership row only while the team has space.

    Raises ``full_error`` when the conditional insert writes nothing and
    ``AlreadyMember`` when the (team, user) row already exists. On success the
    user's other pending invitations and join requests for the team are
    resolved too. Does not commit.
    """
    team = _lock_team(db, team_id)

    member_count = (
        select(func.count(TeamMember.id))
        .where(TeamMember.team_id == team_id)
        .correlate(None)
        .scalar_subquery()
    )
    capacity = (
        select(Team.max_members)
        .where(Team.id == team_id)
        .correlate(None)
        .scalar_subquery()
    )
    stmt = insert(TeamMember).from_select(
        ["id", "team_id", "user_id", "role", "joined_at"],
        select(
            literal(uuid.uuid4(), Uuid(as_uuid=True)),
            literal(team_id, Uuid(as_uuid=True)),
            literal(user_id, Uuid(as_uuid=True)),
            literal(role),
            func.now(),
        ).where(or_(capacity.is_(None), member_count < capacity)),
    )

    try:
        with db.begin_nested():
            result = db.execute(stmt)
    except IntegrityError as e:
        raise AlreadyMember() from e

    if result.rowcount == 0:
        raise full_error()
    resolve_pending_for_member(db, team_id=team_id, user_id=user_id)
    db.expire(team, ["members"])


# --- OPERATIONS ---

def create_team(
    db: Session,
    *,
    user_id: UUID,
    name: Optional[str] = None,
    max_members: Optional[int] = None,
    whatsapp_link: Optional[str] = None,
) -> Team:
    """Create a team with the creator as its leader. Both rows or neither."""
    team = Team(
        created_by=user_id,
        name=normalize_team_name(name),
        max_members=validate_max_members(max_members),
        whatsapp_link=normalize_whatsapp_link(whatsapp_link),
    )
    with mutation_guard(db, "create_team"):
        db.add(team)
        db.flush()  # ensures team.id
        db.add(TeamMember(team_id=team.id, user_id=user_id, role=ROLE_LEADER))

    logger.info(f"Team {team.id} created by {user_id}")
    return get_team(db, team.id)


def join_team(db: Session, *, user_id: UUID, team_id: UUID) -> Team:
    with mutation_guard(db, "join_team"):
        if get_membership(db, team_id, user_id) is not None:
            raise AlreadyMember()
        add_member_if_capacity(db, team_id=team_id, user_id=user_id)

    logger.info(f"User {user_id} joined team {team_id}")
    return get_team(db, team_id)


def _remove_member(db: Session, team: Team, user_id: UUID, missing_detail: str) -> bool:
    """Delete the membership; the team goes with its last member. Returns True if it went."""
    membership = get_membership(db, team.id, user_id)
    if membership is None:
        raise NotFound("Membresía", detail=missing_detail)
    db.delete(membership)
    db.flush()

    remaining = db.query(func.count(TeamMember.id)).filter(TeamMember.team_id == team.id).scalar()
    if remaining == 0:
        db.delete(team)
        return True
    return False


def leave_team(db: Session, *, user_id: UUID, team_id: UUID) -> bool:
    """
    Remove the user from the team. Returns True when the team was deleted
    because nobody was left in it.
    """
    with mutation_guard(db, "leave_team"):
        team = _lock_team(db, team_id)
        team_deleted = _remove_member(db, team, user_id, "No eres miembro de este equipo")

    logger.info(f"User {user_id} left team {team_id}" + (" (team deleted)" if team_deleted else ""))
    return team_deleted


def delete_team(db: Session, *, user_id: UUID, team_id: UUID) -> None:
    with mutation_guard(db, "delete_team"):
        team = _lock_team(db, team_id)
        if team.created_by != user_id:
            raise PermissionDenied("Solo el creador del equipo puede eliminarlo")
        db.delete(team)

    logger.info(f"Team {team_id} deleted by {user_id}")


def update_team_name(db: Session, *, user_id: UUID, team_id: UUID, name: Optional[str]) -> Team:
    with mutation_guard(db, "update_team_name"):
        team = _lock_team(db, team_id)
        require_leader(db, team_id, user_id, "Solo los líderes del equipo pueden editar el nombre")
        team.name = normalize_team_name(name)
    return get_team(db, team_id)


def update_team_whatsapp_link(db: Session, *, user_id: UUID, team_id: UUID, whatsapp_link: Optional[str]) -> Team:
    with mutation_guard(db, "update_team_whatsapp_link"):
        team = _lock_team(db, team_id)
        require_leader(db, team_id, user_id, "Solo los líderes del equipo pueden editar el enlace de WhatsApp")
        team.whatsapp_link = normalize_whatsapp_link(whatsapp_link)
    return get_team(db, team_id)


# --- ADMIN ---
# Same membership rules as the self-service paths, minus the role checks.

def admin_add_member(db: Session, *, team_id: UUID, user_id: UUID) -> Team:
    with mutation_guard(db, "admin_add_member"):
        _lock_team(db, team_id)
        if db.query(Profile.id).filter(Profile.id == user_id).first() is None:
            raise NotFound("Usuario", detail="Usuario no encontrado")
        if get_membership(db, team_id, user_id) is not None:
            raise AlreadyMember("El usuario ya es miembro de este equipo")
        add_member_if_capacity(db, team_id=team_id, user_id=user_id)

    logger.info(f"Admin added user {user_id} to team {team_id}")
    return get_team(db, team_id)


def admin_remove_member(db: Session, *, team_id: UUID, user_id: UUID) -> bool:
    """Returns True when removing the user emptied and deleted the team."""
    with mutation_guard(db, "admin_remove_member"):
        team = _lock_team(db, team_id)
        team_deleted = _remove_member(db, team, user_id, "El usuario no es miembro de este equipo")

    logger.info(f"Admin removed user {user_id} from team {team_id}" + (" (team deleted)" if team_deleted else ""))
    return team_deleted


def admin_delete_team(db: Session, *, team_id: UUID) -> None:
    with mutation_guard(db, "admin_delete_team"):
        team = _lock_team(db, team_id)
        db.delete(team)

    logger.info(f"Team {team_id} deleted by admin")
