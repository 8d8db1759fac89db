"""
Progress API Router

Score, insignias, onboarding and plan reset for the current user.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from core.auth import get_current_user
from core.database import get_db
from models import Profile
from schemas import InsigniaResponse, OnboardingResponse, PhaseStatesResponse, ScoreBreakdownResponse
from services import completion_ledger, progress_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/progress", tags=["Progress"])


@router.get("/score", response_model=ScoreBreakdownResponse)
def get_score(
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Every score component plus the total. Always recomputed from the ledger."""
    return progress_service.score_breakdown(db, current_user.id).to_dict()


@router.get("/insignias", response_model=List[InsigniaResponse])
def get_insignias(
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return progress_service.earned_insignias(db, current_user.id)


@router.post("/onboarding", response_model=OnboardingResponse)
def onboarding(
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    created = completion_ledger.seed_onboarding(db, user_id=current_user.id)
    return OnboardingResponse(phase_1_unlocked=True, created=created)


@router.post("/reset", response_model=PhaseStatesResponse)
def reset(
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    completion_ledger.reset_progress(db, user_id=current_user.id)
    return progress_service.phase_overview(db, current_user.id)
