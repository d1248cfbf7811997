"""Helpers shared by the service functions."""

from typing import Any, Sequence

from sqlalchemy import Select, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from api.schemas.common import PaginationParams
from core.exceptions import ResourceConflict


async def paginate(
    db: AsyncSession, query: Select, pagination: PaginationParams
) -> tuple[Sequence[Any], int]:
    """
    Run ``query`` for one page.

    Returns:
        Tuple of (rows of the page, total number of rows)
    """
    total = await db.scalar(select(func.count()).select_from(query.order_by(None).subquery()))
    result = await db.execute(query.offset(pagination.offset).limit(pagination.page_size))
    return result.scalars().all(), total or 0


async def flush_or_conflict(db: AsyncSession, message: str) -> None:
    """Flush pending changes, turning unique violations into ResourceConflict."""
    try:
        await db.flush()
    except IntegrityError as exc:
        raise ResourceConflict(message) from exc
