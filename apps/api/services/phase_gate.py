"""
Phase Gate

Per-user state machine over the five training phases:

    locked -> unlocked -> completed

State is persisted as row existence in ``phase_unlocks`` and
``phase_completions``; ``phase_states`` derives the explicit tag from both
tables. Phase 1 is unlocked at onboarding. A phase becomes completed once
every required (week, day) pair of its weeks is present in the walk ledger,
in any order, and completing phase n unlocks phase n+1 (there is no phase 6).

Re-evaluation is idempotent: each write is an existence check followed by an
insert inside a savepoint, and a unique-constraint violation from a
concurrent evaluation counts as "already there".
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Optional, Set, Tuple
from uuid import UUID

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from models import PhaseCompletion, PhaseUnlock, WalkCompletion
from services.training_plan import PHASE_COUNT, required_pairs

logger = logging.getLogger(__name__)


class PhaseState(str, Enum):
    LOCKED = "locked"
    UNLOCKED = "unlocked"
    COMPLETED = "completed"


@dataclass
class GateResult:
    newly_completed: List[int] = field(default_factory=list)
    newly_unlocked: List[int] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.newly_completed or self.newly_unlocked)


def is_phase_complete(phase_number: int, walked_pairs: Iterable[Tuple[int, str]]) -> bool:
    """Set-membership check: every required (week, day) of the phase was walked."""
    required = required_pairs(phase_number)
    if not required:
        return False
    return required <= set(walked_pairs)


def get_unlocked_phases(db: Session, user_id: UUID) -> Set[int]:
    rows = db.query(PhaseUnlock.phase_number).filter(PhaseUnlock.user_id == user_id).all()
    return {r[0] for r in rows}


def get_completed_phases(db: Session, user_id: UUID) -> Set[int]:
    rows = db.query(PhaseCompletion.phase_number).filter(PhaseCompletion.user_id == user_id).all()
    return {r[0] for r in rows}


def get_walked_pairs(db: Session, user_id: UUID) -> Set[Tuple[int, str]]:
    rows = (
        db.query(WalkCompletion.week_number, WalkCompletion.day_of_week)
        .filter(WalkCompletion.user_id == user_id)
        .all()
    )
    return {(r[0], r[1]) for r in rows}


def derive_phase_states(unlocked: Set[int], completed: Set[int]) -> Dict[int, PhaseState]:
    states = {}
    for n in range(1, PHASE_COUNT + 1):
        if n in completed:
            states[n] = PhaseState.COMPLETED
        elif n in unlocked:
            states[n] = PhaseState.UNLOCKED
        else:
            states[n] = PhaseState.LOCKED
    return states


def phase_states(db: Session, user_id: UUID) -> Dict[int, PhaseState]:
    return derive_phase_states(get_unlocked_phases(db, user_id), get_completed_phases(db, user_id))


def current_phase(db: Session, user_id: UUID) -> int:
    """Highest unlocked phase; 1 for a user who was never seeded."""
    unlocked = get_unlocked_phases(db, user_id)
    return max(unlocked) if unlocked else 1


def is_phase_unlocked(db: Session, user_id: UUID, phase_number: int) -> bool:
    return (
        db.query(PhaseUnlock.id)
        .filter(PhaseUnlock.user_id == user_id, PhaseUnlock.phase_number == phase_number)
        .first()
        is not None
    )


def _ensure_row(db: Session, model, user_id: UUID, phase_number: int) -> bool:
    """Insert (user, phase) into ``model`` unless present. Returns True if a row was created."""
    exists = (
        db.query(model.id)
        .filter(model.user_id == user_id, model.phase_number == phase_number)
        .first()
    )
    if exists:
        return False
    try:
        with db.begin_nested():
            db.add(model(user_id=user_id, phase_number=phase_number))
    except IntegrityError:
        # Lost a race with a concurrent evaluation; the row exists now.
        return False
    return True


def ensure_phase_unlocked(db: Session, user_id: UUID, phase_number: int) -> bool:
    return _ensure_row(db, PhaseUnlock, user_id, phase_number)


def ensure_phase_completed(db: Session, user_id: UUID, phase_number: int) -> bool:
    return _ensure_row(db, PhaseCompletion, user_id, phase_number)


def evaluate_phases(db: Session, user_id: UUID) -> GateResult:
    """
    Re-evaluate phases 1..5 in order against the walk ledger.

    Only unlocked phases can complete. Unlocking n+1 inside the loop lets an
    out-of-order user cascade through several phases in one pass. A phase
    that is already completed still ensures its successor is unlocked, which
    repairs a previous evaluation that failed between the two inserts.
    """
    result = GateResult()
    unlocked = get_unlocked_phases(db, user_id)
    completed = get_completed_phases(db, user_id)
    walked = get_walked_pairs(db, user_id)

    for n in range(1, PHASE_COUNT + 1):
        if n not in unlocked:
            break
        if n not in completed:
            if not is_phase_complete(n, walked):
                continue
            if ensure_phase_completed(db, user_id, n):
                result.newly_completed.append(n)
            completed.add(n)
        if n < PHASE_COUNT and (n + 1) not in unlocked:
            if ensure_phase_unlocked(db, user_id, n + 1):
                result.newly_unlocked.append(n + 1)
            unlocked.add(n + 1)

    if result.changed:
        logger.info(
            "Phase gate advanced",
            extra={"extra_fields": {
                "user_id": str(user_id),
                "completed": result.newly_completed,
                "unlocked": result.newly_unlocked,
            }},
        )
    return result


def check_and_unlock(db: Session, user_id: UUID) -> Optional[GateResult]:
    """
    Run ``evaluate_phases`` in a savepoint.

    On a backend error the gate's partial writes are rolled back and None is
    returned; the caller's own writes are kept and the next walk toggle retries
    the full evaluation.
    """
    try:
        with db.begin_nested():
            return evaluate_phases(db, user_id)
    except SQLAlchemyError as e:
        logger.warning(f"Phase gate evaluation failed for user {user_id}, will retry on next toggle: {e}")
        return None
