"""
Candidate scoring and the ``Position.filtered_cv`` counter.

A candidate is qualified while its score is positive. The counter moves only
when a score update crosses that boundary, judged against the score that was
persisted before the update.
"""

import logging
from typing import Optional

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from database.models.candidates import Candidate
from database.models.positions import Position

logger = logging.getLogger(__name__)


def is_qualified(score: float) -> bool:
    return score > 0


def filtered_cv_delta(old_score: float, new_score: float) -> int:
    """
    Counter change for a score transition.

    Returns:
        +1 when the candidate becomes qualified, -1 when it stops being
        qualified, 0 otherwise (including rescoring a qualified candidate)
    """
    return int(is_qualified(new_score)) - int(is_qualified(old_score))


async def apply_score(
    db: AsyncSession,
    candidate: Candidate,
    score: float,
    skills: Optional[str] = None,
) -> int:
    """
    Set a candidate's score and adjust its position's ``filtered_cv``.

    ``candidate`` must have been loaded with a row lock in the current
    transaction so that ``candidate.score`` is the persisted value.

    Args:
        db: Database session
        candidate: Locked candidate row
        score: New score
        skills: Extracted skills, left unchanged if None

    Returns:
        The counter delta applied to the position
    """
    delta = filtered_cv_delta(candidate.score, score)
    candidate.score = score
    if skills is not None:
        candidate.skills = skills

    if delta:
        await db.execute(
            update(Position)
            .where(Position.id == candidate.position_id)
            .values(filtered_cv=Position.filtered_cv + delta)
        )
        logger.debug(
            f"Position {candidate.position_id} filtered_cv {delta:+d} "
            f"(candidate {candidate.id})"
        )
    return delta
