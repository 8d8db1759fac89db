"""
Insignia Evaluator

Stateless threshold checks over completion snapshots. Earned state is never
stored: every call recomputes it, so an insignia whose backing count drops
below its threshold is no longer earned.
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional, Set

from services.reference_catalog import (
    BOOK_INSIGNIAS,
    STAGE_INSIGNIAS,
    VIDEO_INSIGNIAS,
    CountInsignia,
    StageInsignia,
    format_requirement,
    get_hikes_by_stage,
)


@dataclass(frozen=True)
class InsigniaStatus:
    id: str
    kind: str  # 'stage' | 'book' | 'video'
    title: str
    description: str
    image: str
    requirement: str
    earned: bool
    stage: Optional[int] = None


def is_stage_insignia_earned(stage: int, completed_hike_ids: Set[str]) -> bool:
    """All hikes of the stage must be completed; an empty stage is never earned."""
    stage_hikes = get_hikes_by_stage(stage)
    if not stage_hikes:
        return False
    return all(h.id in completed_hike_ids for h in stage_hikes)


def is_count_insignia_earned(insignia: CountInsignia, distinct_count: int) -> bool:
    return distinct_count >= insignia.min_count


def _stage_status(insignia: StageInsignia, completed_hike_ids: Set[str]) -> InsigniaStatus:
    return InsigniaStatus(
        id=f"etapa-{insignia.stage}",
        kind="stage",
        title=insignia.title,
        description=insignia.description,
        image=insignia.image,
        requirement=f"Etapa {insignia.stage} · {insignia.km} km",
        earned=is_stage_insignia_earned(insignia.stage, completed_hike_ids),
        stage=insignia.stage,
    )


def _count_statuses(insignias, kind: str, noun: str, distinct_count: int) -> List[InsigniaStatus]:
    return [
        InsigniaStatus(
            id=i.id,
            kind=kind,
            title=i.title,
            description=i.description,
            image=i.image,
            requirement=format_requirement(i, noun),
            earned=is_count_insignia_earned(i, distinct_count),
        )
        for i in insignias
    ]


def evaluate_insignias(
    hike_ids: Iterable[str],
    book_ids: Iterable[str],
    video_ids: Iterable[str],
) -> List[InsigniaStatus]:
    """Every stage, book and video insignia with its ``earned`` flag."""
    completed_hikes = set(hike_ids)
    distinct_books = len(set(book_ids))
    distinct_videos = len(set(video_ids))

    statuses = [_stage_status(i, completed_hikes) for i in STAGE_INSIGNIAS]
    statuses.extend(_count_statuses(BOOK_INSIGNIAS, "book", "libros", distinct_books))
    statuses.extend(_count_statuses(VIDEO_INSIGNIAS, "video", "videos", distinct_videos))
    return statuses
