"""
Training Plan API Router

The 52-week plan, per-week walk completions and the phase gate.
"""

import logging
from dataclasses import asdict
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from core.auth import get_current_user
from core.database import get_db
from core.exceptions import NotFound
from models import Profile
from schemas import (
    GateResultResponse,
    PhaseResponse,
    PhaseStatesResponse,
    WalkCompletionResponse,
    WalkToggleRequest,
    WalkToggleResponse,
    WeekResponse,
)
from services import completion_ledger, phase_gate, progress_service
from services.training_plan import PHASES, get_week, get_weeks_in_phase

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/training", tags=["Training"])


@router.get("/phases", response_model=List[PhaseResponse])
def list_phases(
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """All five phases with the requesting user's state for each."""
    states = phase_gate.phase_states(db, current_user.id)
    return [
        PhaseResponse.model_validate(p).model_copy(update={"state": states[p.number].value})
        for p in PHASES
    ]


@router.get("/phases/state", response_model=PhaseStatesResponse)
def get_phase_states(
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return progress_service.phase_overview(db, current_user.id)


@router.get("/phases/{phase_number}/weeks", response_model=List[WeekResponse])
async def list_phase_weeks(phase_number: int):
    weeks = get_weeks_in_phase(phase_number)
    if not weeks:
        raise NotFound("Fase", phase_number, detail="Fase no encontrada")
    return weeks


@router.get("/weeks/{week_number}", response_model=WeekResponse)
async def get_plan_week(week_number: int):
    week = get_week(week_number)
    if week is None:
        raise NotFound("Semana", week_number, detail="Semana no encontrada")
    return week


@router.get("/walks", response_model=List[WalkCompletionResponse])
def list_walks(
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return completion_ledger.list_walks(db, current_user.id)


@router.get("/weeks/{week_number}/walks", response_model=List[WalkCompletionResponse])
def get_week_walks(
    week_number: int,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return completion_ledger.get_week_completions(db, current_user.id, week_number)


@router.post("/walks/toggle", response_model=WalkToggleResponse)
def toggle_walk(
    request: WalkToggleRequest,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Mark a plan day as walked or not walked.

    The response reports any phase completed or unlocked as a result. When the
    phase gate could not be evaluated, ``gate_pending`` is true and the next
    toggle retries it.
    """
    result = completion_ledger.toggle_walk(
        db,
        user_id=current_user.id,
        week_number=request.week_number,
        day_of_week=request.day_of_week,
        completed=request.completed,
    )
    return WalkToggleResponse(
        week_number=result.week_number,
        day_of_week=result.day_of_week,
        completed=result.completed,
        distance_km=result.distance_km,
        gate=GateResultResponse(**asdict(result.gate)) if result.gate else None,
        gate_pending=result.gate_pending,
    )
