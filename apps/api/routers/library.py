"""
Library API Router

Completion toggles for trails, books, videos and Magnolias hikes.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Path
from sqlalchemy.orm import Session

from core.auth import get_current_user
from core.database import get_db
from models import Profile
from schemas import CompletedItemResponse, ItemToggleRequest, ItemToggleResponse
from services import completion_ledger
from services.completion_ledger import ITEM_LEDGERS

router = APIRouter(prefix="/v1/library", tags=["Library"])

# URL segment -> ledger kind
KINDS = {"trails": "trail", "books": "book", "videos": "video", "hikes": "hike"}
KIND_PATTERN = "^(trails|books|videos|hikes)$"


@router.get("/{collection}", response_model=List[CompletedItemResponse])
def list_completed(
    collection: str = Path(..., pattern=KIND_PATTERN),
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    kind = KINDS[collection]
    column = ITEM_LEDGERS[kind].column
    rows = completion_ledger.list_items(db, current_user.id, kind)
    return [CompletedItemResponse(item_id=getattr(r, column), completed_at=r.completed_at) for r in rows]


@router.post("/{collection}/{item_id}/toggle", response_model=ItemToggleResponse)
def toggle_completed(
    item_id: str,
    request: Optional[ItemToggleRequest] = None,
    collection: str = Path(..., pattern=KIND_PATTERN),
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return completion_ledger.toggle_item(
        db,
        user_id=current_user.id,
        kind=KINDS[collection],
        item_id=item_id,
        completed=request.completed if request else None,
    )
