"""
Team Matching Service

Geographic discovery of nearby pilgrims and open teams, plus the team read
models used by the dashboard.

Privacy: other users are only ever described by id, display name, public
location label, coordinates and distance. ``Profile.address`` never leaves
this module for anyone but its owner.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from core.config import settings
from core.exceptions import NotFound, PermissionDenied, ValidationError
from core.resilience import degrade_to
from models import Profile, Team, TeamMember
from services import team_rpc

logger = logging.getLogger(__name__)


@dataclass
class NearbyUser:
    id: UUID
    name: str
    location: Optional[str]
    latitude: float
    longitude: float
    distance_miles: float
    team_id: Optional[UUID] = None
    team_name: Optional[str] = None
    is_team_leader: Optional[bool] = None
    team_max_members: Optional[int] = None
    # Never populated for other users; kept so both lookup paths share one shape.
    address: Optional[str] = None


@dataclass
class TeamDistance:
    team_id: UUID
    team_name: Optional[str]
    member_count: int
    total_distance_km: float


def _validate_radius(radius_miles: Optional[float]) -> float:
    radius = settings.DEFAULT_SEARCH_RADIUS_MILES if radius_miles is None else radius_miles
    if radius <= 0 or radius > settings.MAX_SEARCH_RADIUS_MILES:
        raise ValidationError(
            f"El radio debe estar entre 0 y {settings.MAX_SEARCH_RADIUS_MILES:g} millas",
            field="radius_miles",
        )
    return radius


def _requester_coordinates(profile: Profile) -> tuple:
    if not profile.has_coordinates:
        raise ValidationError(
            "Agrega tu dirección en el perfil para encontrar compañeros cercanos",
            field="location",
        )
    return profile.latitude, profile.longitude


def _memberships_by_user(db: Session, user_ids: List[UUID]) -> Dict[UUID, Dict]:
    """
    First membership (by join date) per user, with the team's name and cap.

    The single-query procedure is tried first; if it fails, memberships and
    teams are fetched as two batch queries instead. Both yield the same map.
    """
    try:
        with db.begin_nested():
            memberships = team_rpc.get_user_team_memberships(db, user_ids)
    except SQLAlchemyError as e:
        logger.warning(f"get_user_team_memberships unavailable, using direct queries: {e}")
        rows = (
            db.query(TeamMember.team_id, TeamMember.user_id, TeamMember.role)
            .filter(TeamMember.user_id.in_(user_ids))
            .order_by(TeamMember.joined_at, TeamMember.id)
            .all()
        )
        memberships = [{"team_id": r.team_id, "user_id": r.user_id, "role": r.role} for r in rows]

    first_by_user: Dict[UUID, Dict] = {}
    for m in memberships:
        first_by_user.setdefault(m["user_id"], m)

    team_ids = {m["team_id"] for m in first_by_user.values()}
    if not team_ids:
        return {}
    teams = {
        t.id: t
        for t in db.query(Team.id, Team.name, Team.max_members).filter(Team.id.in_(team_ids)).all()
    }

    result = {}
    for user_id, m in first_by_user.items():
        team = teams.get(m["team_id"])
        if team is None:
            continue
        result[user_id] = {
            "team_id": team.id,
            "team_name": team.name,
            "is_team_leader": m["role"] == "leader",
            "team_max_members": team.max_members,
        }
    return result


def find_nearby_users(
    db: Session,
    requester: Profile,
    radius_miles: Optional[float] = None,
) -> List[NearbyUser]:
    """
    Other users within ``radius_miles`` of the requester, nearest first.

    The boundary is inclusive and the requester is never included. Each user
    is annotated with their team, if any.
    """
    radius = _validate_radius(radius_miles)
    lat, lng = _requester_coordinates(requester)

    rows = team_rpc.find_users_within_radius(db, lat, lng, radius)
    users = [
        NearbyUser(
            id=r["id"],
            name=r["name"],
            location=r["location"],
            latitude=r["latitude"],
            longitude=r["longitude"],
            distance_miles=round(r["distance_miles"], 2),
        )
        for r in rows
        if r["id"] != requester.id
    ]
    if not users:
        return users

    teams_by_user = _memberships_by_user(db, [u.id for u in users])
    for u in users:
        info = teams_by_user.get(u.id)
        if info:
            u.team_id = info["team_id"]
            u.team_name = info["team_name"]
            u.is_team_leader = info["is_team_leader"]
            u.team_max_members = info["team_max_members"]
    return users


def _teams_with_members(db: Session):
    # populate_existing: membership may have changed since the Team was loaded
    return db.query(Team).options(selectinload(Team.members)).populate_existing()


def find_available_teams(
    db: Session,
    requester: Profile,
    radius_miles: Optional[float] = None,
) -> List[Team]:
    """
    Teams the requester could join: at least one member is a nearby user, the
    team has space, and the requester is not already in it.
    """
    nearby_ids = {u.id for u in find_nearby_users(db, requester, radius_miles)}
    if not nearby_ids:
        return []

    team_ids = {
        r.team_id
        for r in db.query(TeamMember.team_id).filter(TeamMember.user_id.in_(nearby_ids)).all()
    }
    if not team_ids:
        return []

    teams = _teams_with_members(db).filter(Team.id.in_(team_ids)).order_by(Team.created_at).all()
    return [
        t for t in teams
        if t.has_space
        and not t.has_member(requester.id)
        and any(m.user_id in nearby_ids for m in t.members)
    ]


# --- TEAM READ MODELS ---

def get_team(db: Session, team_id: UUID) -> Team:
    team = _teams_with_members(db).filter(Team.id == team_id).first()
    if team is None:
        raise NotFound("Equipo", team_id, detail="Equipo no encontrado")
    return team


def get_user_teams(db: Session, user_id: UUID) -> List[Team]:
    return (
        _teams_with_members(db)
        .join(TeamMember, TeamMember.team_id == Team.id)
        .filter(TeamMember.user_id == user_id)
        .order_by(TeamMember.joined_at, TeamMember.id)
        .all()
    )


def get_user_team(db: Session, user_id: UUID) -> Optional[Team]:
    """First team joined, for the single-team dashboard card."""
    teams = get_user_teams(db, user_id)
    return teams[0] if teams else None


def get_team_members(db: Session, team_id: UUID) -> List[TeamMember]:
    get_team(db, team_id)
    return (
        db.query(TeamMember)
        .filter(TeamMember.team_id == team_id)
        .order_by(TeamMember.joined_at, TeamMember.id)
        .all()
    )


def get_team_member_emails(db: Session, team_id: UUID, requester_id: UUID) -> List[Dict]:
    team = get_team(db, team_id)
    if not team.has_member(requester_id):
        raise PermissionDenied("Solo los miembros del equipo pueden ver los correos")
    return team_rpc.get_team_member_emails(db, team_id)


def get_all_teams(db: Session) -> List[Team]:
    return _teams_with_members(db).order_by(Team.created_at.desc()).all()


# --- DISTANCE ---

@degrade_to(0.0)
def team_total_distance(db: Session, team_id: UUID) -> float:
    """Kilometers walked by the team's current members, to 0.1 km. 0 when unavailable."""
    return round(team_rpc.get_team_total_distance(db, team_id), 1)


@degrade_to(list)
def team_distance_leaderboard(db: Session, limit: Optional[int] = None) -> List[TeamDistance]:
    teams = get_all_teams(db)
    board = [
        TeamDistance(
            team_id=t.id,
            team_name=t.name,
            member_count=t.member_count,
            total_distance_km=round(team_rpc.get_team_total_distance(db, t.id), 1),
        )
        for t in teams
    ]
    board.sort(key=lambda d: (-d.total_distance_km, str(d.team_id)))
    return board[:limit] if limit else board
