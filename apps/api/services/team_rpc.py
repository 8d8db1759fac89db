"""
Server-side query procedures used by team matching.

These run with service privileges (they see every profile and membership
row) and return plain dicts, so that callers never receive ORM rows carrying
private fields such as ``Profile.address``.
"""

from __future__ import annotations

from typing import Dict, Iterable, List
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from models import Profile, TeamMember, WalkCompletion
from services.geo import bounding_box, haversine_miles


def find_users_within_radius(db: Session, lat: float, lng: float, radius_miles: float) -> List[Dict]:
    """
    Profiles with coordinates within ``radius_miles`` of (lat, lng).

    Boundary is inclusive. Results are ordered by distance ascending, ties by
    id so the order is deterministic.
    """
    min_lat, max_lat, min_lng, max_lng = bounding_box(lat, lng, radius_miles)
    query = db.query(
        Profile.id,
        Profile.name,
        Profile.location,
        Profile.latitude,
        Profile.longitude,
    ).filter(
        Profile.latitude.isnot(None),
        Profile.longitude.isnot(None),
        Profile.latitude.between(min_lat, max_lat),
    )
    # A box crossing the antimeridian is not worth splitting; skip the lng prefilter.
    if min_lng >= -180.0 and max_lng <= 180.0:
        query = query.filter(Profile.longitude.between(min_lng, max_lng))

    results = []
    for row in query.all():
        distance = haversine_miles(lat, lng, row.latitude, row.longitude)
        if distance <= radius_miles:
            results.append({
                "id": row.id,
                "name": row.name,
                "location": row.location,
                "latitude": row.latitude,
                "longitude": row.longitude,
                "distance_miles": distance,
            })
    results.sort(key=lambda r: (r["distance_miles"], str(r["id"])))
    return results


def get_user_team_memberships(db: Session, user_ids: Iterable[UUID]) -> List[Dict]:
    ids = list(user_ids)
    if not ids:
        return []
    rows = (
        db.query(TeamMember.team_id, TeamMember.user_id, TeamMember.role)
        .filter(TeamMember.user_id.in_(ids))
        .order_by(TeamMember.joined_at, TeamMember.id)
        .all()
    )
    return [{"team_id": r.team_id, "user_id": r.user_id, "role": r.role} for r in rows]


def get_team_total_distance(db: Session, team_id: UUID) -> float:
    """Sum of walk distances of the team's current members."""
    total = (
        db.query(func.coalesce(func.sum(WalkCompletion.distance_km), 0.0))
        .join(TeamMember, TeamMember.user_id == WalkCompletion.user_id)
        .filter(TeamMember.team_id == team_id)
        .scalar()
    )
    return float(total or 0.0)


def get_team_member_emails(db: Session, team_id: UUID) -> List[Dict]:
    rows = (
        db.query(TeamMember.user_id, Profile.email)
        .join(Profile, Profile.id == TeamMember.user_id)
        .filter(TeamMember.team_id == team_id)
        .order_by(TeamMember.joined_at, TeamMember.id)
        .all()
    )
    return [{"user_id": r.user_id, "email": r.email} for r in rows]
