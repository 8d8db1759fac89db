"""
Progress read models: score breakdown, insignias and phase overview.

Everything is derived from the ledger on each call; nothing here writes.
"""

from __future__ import annotations

from typing import Dict, List
from uuid import UUID

from sqlalchemy.orm import Session

from services import completion_ledger, phase_gate
from services.insignias import InsigniaStatus, evaluate_insignias
from services.scoring import ScoreBreakdown, calculate_score_breakdown


def score_breakdown(db: Session, user_id: UUID) -> ScoreBreakdown:
    return calculate_score_breakdown(
        walks=completion_ledger.list_walks(db, user_id),
        phase_unlocks=completion_ledger.list_phase_unlocks(db, user_id),
        trails=completion_ledger.list_trails(db, user_id),
        books=completion_ledger.list_books(db, user_id),
        hikes=completion_ledger.list_hikes(db, user_id),
    )


def total_score(db: Session, user_id: UUID) -> float:
    return score_breakdown(db, user_id).total


def earned_insignias(db: Session, user_id: UUID) -> List[InsigniaStatus]:
    return evaluate_insignias(
        hike_ids=[h.hike_id for h in completion_ledger.list_hikes(db, user_id)],
        book_ids=[b.book_id for b in completion_ledger.list_books(db, user_id)],
        video_ids=[v.video_id for v in completion_ledger.list_videos(db, user_id)],
    )


def phase_overview(db: Session, user_id: UUID) -> Dict:
    states = phase_gate.phase_states(db, user_id)
    return {
        "current_phase": phase_gate.current_phase(db, user_id),
        "phases": {n: s.value for n, s in states.items()},
    }
