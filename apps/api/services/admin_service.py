"""
Admin read models.

One row per profile with contact data and the same point total the user sees
on their own dashboard. Each ledger table is read once for all users and
grouped in memory, so the listing costs a fixed number of queries.
"""

from __future__ import annotations

import math
from collections import defaultdict
from dataclasses import dataclass
from datetime import date, datetime
from typing import Dict, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from models import BookCompletion, HikeCompletion, PhaseUnlock, Profile, TrailCompletion, WalkCompletion
from services.scoring import calculate_total_score


@dataclass
class UserWithStats:
    id: UUID
    name: str
    email: Optional[str]
    location: Optional[str]
    phone_number: Optional[str]
    role: str
    start_date: Optional[date]
    created_at: datetime
    total_points: float
    total_km: float


def _group_by_user(db: Session, model) -> Dict[UUID, list]:
    grouped: Dict[UUID, list] = defaultdict(list)
    for row in db.query(model).all():
        grouped[row.user_id].append(row)
    return grouped


def get_all_users_with_stats(db: Session) -> List[UserWithStats]:
    """Every profile, newest first, with total points and walked kilometers."""
    profiles = db.query(Profile).order_by(Profile.created_at.desc(), Profile.id).all()

    walks = _group_by_user(db, WalkCompletion)
    phase_unlocks = _group_by_user(db, PhaseUnlock)
    trails = _group_by_user(db, TrailCompletion)
    books = _group_by_user(db, BookCompletion)
    hikes = _group_by_user(db, HikeCompletion)

    users = []
    for profile in profiles:
        user_walks = walks.get(profile.id, [])
        users.append(
            UserWithStats(
                id=profile.id,
                name=profile.name,
                email=profile.email,
                location=profile.location,
                phone_number=profile.phone_number,
                role=profile.role,
                start_date=profile.start_date,
                created_at=profile.created_at,
                total_points=calculate_total_score(
                    user_walks,
                    phase_unlocks.get(profile.id, []),
                    trails.get(profile.id, []),
                    books.get(profile.id, []),
                    hikes.get(profile.id, []),
                ),
                total_km=round(math.fsum(w.distance_km for w in user_walks), 1),
            )
        )
    return users
