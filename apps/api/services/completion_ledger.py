"""
Completion Ledger Service

Append/remove records of user activity. A row's existence is the completion
state: toggling on inserts, toggling off hard-deletes. Walk toggles re-run the
phase gate afterwards.

Every toggle accepts an optional ``completed`` target so that clients can
send the desired state instead of a blind flip; a repeated request with the
same target is a no-op. Blind flips racing each other are resolved by the
uniqueness constraints: a duplicate insert is treated as already completed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from core.exceptions import PermissionDenied, ValidationError
from core.resilience import mutation_guard
from models import (
    BookCompletion,
    HikeCompletion,
    PhaseCompletion,
    PhaseUnlock,
    TrailCompletion,
    VideoCompletion,
    WalkCompletion,
)
from services import phase_gate
from services.phase_gate import GateResult
from services.reference_catalog import is_known_book, is_known_hike, is_known_trail, is_known_video
from services.training_plan import DAYS_OF_WEEK, get_week

logger = logging.getLogger(__name__)


@dataclass
class WalkToggleResult:
    week_number: int
    day_of_week: str
    completed: bool
    distance_km: float
    gate: Optional[GateResult]

    @property
    def gate_pending(self) -> bool:
        """True when the phase gate could not be evaluated and will be retried."""
        return self.gate is None


@dataclass
class ItemToggleResult:
    kind: str
    item_id: str
    completed: bool


@dataclass(frozen=True)
class _ItemLedger:
    model: type
    column: str
    is_known: object
    label: str


ITEM_LEDGERS = {
    "trail": _ItemLedger(TrailCompletion, "trail_id", is_known_trail, "sendero"),
    "book": _ItemLedger(BookCompletion, "book_id", is_known_book, "libro"),
    "video": _ItemLedger(VideoCompletion, "video_id", is_known_video, "video"),
    "hike": _ItemLedger(HikeCompletion, "hike_id", is_known_hike, "caminata"),
}


def _insert_once(db: Session, row) -> bool:
    """Insert ``row`` in a savepoint. False if the uniqueness constraint says it already exists."""
    try:
        with db.begin_nested():
            db.add(row)
    except IntegrityError:
        return False
    return True


# --- WALKS ---

def toggle_walk(
    db: Session,
    *,
    user_id: UUID,
    week_number: int,
    day_of_week: str,
    completed: Optional[bool] = None,
) -> WalkToggleResult:
    """
    Mark a plan day as walked (or un-walked) and re-evaluate the phase gate.

    The distance always comes from the plan, never from the client. Walking a
    day in a phase that is still locked is rejected.
    """
    week = get_week(week_number)
    if week is None:
        raise ValidationError(f"La semana {week_number} no existe en el plan", field="week_number")
    if day_of_week not in DAYS_OF_WEEK:
        raise ValidationError(f"Día inválido: {day_of_week}", field="day_of_week")
    distance = week.distance_for(day_of_week)
    if distance is None:
        raise ValidationError(
            f"{day_of_week} no es un día de entrenamiento en la semana {week_number}",
            field="day_of_week",
        )

    with mutation_guard(db, "toggle_walk"):
        if not phase_gate.is_phase_unlocked(db, user_id, week.phase_number):
            raise PermissionDenied(f"La fase {week.phase_number} aún está bloqueada")

        existing = (
            db.query(WalkCompletion)
            .filter(
                WalkCompletion.user_id == user_id,
                WalkCompletion.week_number == week_number,
                WalkCompletion.day_of_week == day_of_week,
            )
            .first()
        )
        target = (existing is None) if completed is None else completed

        if target and existing is None:
            _insert_once(db, WalkCompletion(
                user_id=user_id,
                week_number=week_number,
                day_of_week=day_of_week,
                distance_km=distance,
            ))
        elif not target and existing is not None:
            db.delete(existing)
            db.flush()

        gate = phase_gate.check_and_unlock(db, user_id)

    logger.info(
        "Walk toggled",
        extra={"extra_fields": {
            "user_id": str(user_id),
            "week": week_number,
            "day": day_of_week,
            "completed": target,
        }},
    )
    return WalkToggleResult(
        week_number=week_number,
        day_of_week=day_of_week,
        completed=target,
        distance_km=distance,
        gate=gate,
    )


# --- TRAILS / BOOKS / VIDEOS / HIKES ---

def toggle_item(
    db: Session,
    *,
    user_id: UUID,
    kind: str,
    item_id: str,
    completed: Optional[bool] = None,
) -> ItemToggleResult:
    ledger = ITEM_LEDGERS.get(kind)
    if ledger is None:
        raise ValidationError(f"Tipo de actividad desconocido: {kind}", field="kind")
    if not item_id or not ledger.is_known(item_id):
        raise ValidationError(f"{ledger.label.capitalize()} desconocido: {item_id}", field=ledger.column)

    model = ledger.model
    column = getattr(model, ledger.column)

    with mutation_guard(db, f"toggle_{kind}"):
        existing = db.query(model).filter(model.user_id == user_id, column == item_id).first()
        target = (existing is None) if completed is None else completed

        if target and existing is None:
            _insert_once(db, model(user_id=user_id, **{ledger.column: item_id}))
        elif not target and existing is not None:
            db.delete(existing)

    return ItemToggleResult(kind=kind, item_id=item_id, completed=target)


def toggle_trail(db: Session, *, user_id: UUID, trail_id: str, completed: Optional[bool] = None) -> ItemToggleResult:
    return toggle_item(db, user_id=user_id, kind="trail", item_id=trail_id, completed=completed)


def toggle_book(db: Session, *, user_id: UUID, book_id: str, completed: Optional[bool] = None) -> ItemToggleResult:
    return toggle_item(db, user_id=user_id, kind="book", item_id=book_id, completed=completed)


def toggle_video(db: Session, *, user_id: UUID, video_id: str, completed: Optional[bool] = None) -> ItemToggleResult:
    return toggle_item(db, user_id=user_id, kind="video", item_id=video_id, completed=completed)


def toggle_hike(db: Session, *, user_id: UUID, hike_id: str, completed: Optional[bool] = None) -> ItemToggleResult:
    return toggle_item(db, user_id=user_id, kind="hike", item_id=hike_id, completed=completed)


# --- READERS ---

def list_walks(db: Session, user_id: UUID) -> List[WalkCompletion]:
    return (
        db.query(WalkCompletion)
        .filter(WalkCompletion.user_id == user_id)
        .order_by(WalkCompletion.week_number, WalkCompletion.completed_at)
        .all()
    )


def get_week_completions(db: Session, user_id: UUID, week_number: int) -> List[WalkCompletion]:
    return (
        db.query(WalkCompletion)
        .filter(WalkCompletion.user_id == user_id, WalkCompletion.week_number == week_number)
        .all()
    )


def list_items(db: Session, user_id: UUID, kind: str) -> list:
    ledger = ITEM_LEDGERS.get(kind)
    if ledger is None:
        raise ValidationError(f"Tipo de actividad desconocido: {kind}", field="kind")
    model = ledger.model
    return db.query(model).filter(model.user_id == user_id).order_by(model.completed_at).all()


def list_trails(db: Session, user_id: UUID) -> List[TrailCompletion]:
    return list_items(db, user_id, "trail")


def list_books(db: Session, user_id: UUID) -> List[BookCompletion]:
    return list_items(db, user_id, "book")


def list_videos(db: Session, user_id: UUID) -> List[VideoCompletion]:
    return list_items(db, user_id, "video")


def list_hikes(db: Session, user_id: UUID) -> List[HikeCompletion]:
    return list_items(db, user_id, "hike")


def list_phase_unlocks(db: Session, user_id: UUID) -> List[PhaseUnlock]:
    return (
        db.query(PhaseUnlock)
        .filter(PhaseUnlock.user_id == user_id)
        .order_by(PhaseUnlock.phase_number)
        .all()
    )


# --- ONBOARDING / RESET ---

def seed_onboarding(db: Session, *, user_id: UUID) -> bool:
    """Unlock phase 1 for a new user. Safe to call on every login."""
    with mutation_guard(db, "seed_onboarding"):
        created = phase_gate.ensure_phase_unlocked(db, user_id, 1)
    if created:
        logger.info(f"Phase 1 unlocked for new user {user_id}")
    return created


def reset_progress(db: Session, *, user_id: UUID) -> None:
    """
    Start the plan over: walks, phase completions and every unlock past
    phase 1 are deleted. Library completions are kept.
    """
    with mutation_guard(db, "reset_progress"):
        db.query(WalkCompletion).filter(WalkCompletion.user_id == user_id).delete(synchronize_session=False)
        db.query(PhaseCompletion).filter(PhaseCompletion.user_id == user_id).delete(synchronize_session=False)
        db.query(PhaseUnlock).filter(
            PhaseUnlock.user_id == user_id,
            PhaseUnlock.phase_number > 1,
        ).delete(synchronize_session=False)
        phase_gate.ensure_phase_unlocked(db, user_id, 1)
    logger.info(f"Training progress reset for user {user_id}")
