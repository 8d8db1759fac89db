"""
Score Aggregator

Pure functions turning a snapshot of a user's completion ledger into points.
Nothing here touches the database; callers load the rows and pass them in.

Point rules:
- Walks: 1 point per kilometer, fractional kilometers kept as-is
- Phase unlocks: 50 each
- Trails: 20 each
- Books: 75 (imprescindible), 50 (recomendado), 0 otherwise
- Magnolias hikes: per-hike value from the hike catalog
"""

import math
from dataclasses import asdict, dataclass
from typing import Iterable

from services.reference_catalog import (
    BOOK_CATEGORY_IMPRESCINDIBLE,
    BOOK_CATEGORY_RECOMENDADO,
    get_book_category,
    get_hike_points,
)

PHASE_POINTS = 50
TRAIL_POINTS = 20

BOOK_CATEGORY_POINTS = {
    BOOK_CATEGORY_IMPRESCINDIBLE: 75,
    BOOK_CATEGORY_RECOMENDADO: 50,
}


@dataclass(frozen=True)
class ScoreBreakdown:
    walk_points: float
    phase_points: int
    trail_points: int
    book_points: int
    hike_points: int

    @property
    def total(self) -> float:
        return math.fsum(
            (self.walk_points, self.phase_points, self.trail_points, self.book_points, self.hike_points)
        )

    def to_dict(self) -> dict:
        data = asdict(self)
        data["total"] = self.total
        return data


def calculate_walk_points(walks: Iterable) -> float:
    # fsum keeps the result independent of row order
    return math.fsum(w.distance_km for w in walks)


def calculate_phase_points(phase_unlocks: Iterable) -> int:
    return sum(1 for _ in phase_unlocks) * PHASE_POINTS


def calculate_trail_points(trails: Iterable) -> int:
    return sum(1 for _ in trails) * TRAIL_POINTS


def get_book_points(book_id: str) -> int:
    return BOOK_CATEGORY_POINTS.get(get_book_category(book_id), 0)


def calculate_book_points(books: Iterable) -> int:
    return sum(get_book_points(b.book_id) for b in books)


def calculate_hike_points(hikes: Iterable) -> int:
    return sum(get_hike_points(h.hike_id) for h in hikes)


def calculate_score_breakdown(walks, phase_unlocks, trails, books, hikes) -> ScoreBreakdown:
    return ScoreBreakdown(
        walk_points=calculate_walk_points(walks),
        phase_points=calculate_phase_points(phase_unlocks),
        trail_points=calculate_trail_points(trails),
        book_points=calculate_book_points(books),
        hike_points=calculate_hike_points(hikes),
    )


def calculate_total_score(walks, phase_unlocks, trails, books, hikes) -> float:
    """
    Total score for one user.

    Invariant to input ordering and safe to call repeatedly; inputs are only
    iterated, never mutated.
    """
    return calculate_score_breakdown(walks, phase_unlocks, trails, books, hikes).total
