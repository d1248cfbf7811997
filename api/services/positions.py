"""Job position service functions."""

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from api.schemas.common import PaginationParams
from api.schemas.positions import PositionCreate, PositionUpdate
from api.services.common import flush_or_conflict, paginate
from core.cascade import CascadeDeleter, CascadeResult
from core.exceptions import ResourceConflict
from core.middleware.authentication import Actor
from core.middleware.authorization import (
    get_owned_department,
    get_owned_position,
    require_tenant,
)
from core.storage.base import ArtifactStorage
from database.engine import atomic
from database.models.departments import Department
from database.models.positions import Position

logger = logging.getLogger(__name__)

# Explicit nulls for these are ignored on update
NON_NULLABLE_FIELDS = ("name", "department_id", "min_work_exp")


async def _ensure_name_free(
    db: AsyncSession, department_id: int, name: str, exclude_id: Optional[int] = None
) -> None:
    query = select(Position.id).where(
        Position.department_id == department_id, Position.name == name
    )
    if exclude_id is not None:
        query = query.where(Position.id != exclude_id)
    if await db.scalar(query) is not None:
        raise ResourceConflict(f"Position '{name}' already exists in department {department_id}")


def _tenant_positions(company_id: int):
    return (
        select(Position)
        .join(Department, Position.department_id == Department.id)
        .where(Department.company_id == company_id)
        .order_by(Position.id)
    )


async def create_position(db: AsyncSession, actor: Actor, data: PositionCreate) -> Position:
    """
    Open a position in one of the actor's departments.

    Raises:
        ResourceNotFound: If the department does not exist
        TenantAccessDenied: If the department belongs to another company
        ResourceConflict: If the department already has a position of that name
    """
    async with atomic(db):
        await get_owned_department(db, actor.company_id, data.department_id)
        await _ensure_name_free(db, data.department_id, data.name)
        position = Position(**data.model_dump())
        db.add(position)
        await flush_or_conflict(db, f"Position '{data.name}' already exists")

    logger.info(f"Created position {position.id} in department {position.department_id}")
    return position


async def list_positions(db: AsyncSession, actor: Actor, pagination: PaginationParams):
    company_id = require_tenant(actor.company_id)
    return await paginate(db, _tenant_positions(company_id), pagination)


async def list_archived_positions(db: AsyncSession, actor: Actor, pagination: PaginationParams):
    company_id = require_tenant(actor.company_id)
    query = _tenant_positions(company_id).where(Position.is_archive.is_(True))
    return await paginate(db, query, pagination)


async def get_position(db: AsyncSession, actor: Actor, position_id: int) -> Position:
    return await get_owned_position(db, actor.company_id, position_id)


async def update_position(
    db: AsyncSession, actor: Actor, position_id: int, data: PositionUpdate
) -> Position:
    """
    Edit a position.

    A new department must belong to the actor's company as well, and the name
    must stay unique within the target department.
    """
    async with atomic(db):
        position = await get_owned_position(db, actor.company_id, position_id, lock=True)
        updates = {
            field: value
            for field, value in data.model_dump(exclude_unset=True).items()
            if value is not None or field not in NON_NULLABLE_FIELDS
        }

        department_id = updates.get("department_id", position.department_id)
        name = updates.get("name", position.name)
        if department_id != position.department_id:
            await get_owned_department(db, actor.company_id, department_id)
        if department_id != position.department_id or name != position.name:
            await _ensure_name_free(db, department_id, name, exclude_id=position.id)

        for field, value in updates.items():
            setattr(position, field, value)
        await flush_or_conflict(db, f"Position '{name}' already exists")
    return position


async def update_qualified_candidates(
    db: AsyncSession, actor: Actor, position_id: int, qualified_candidates: str
) -> Position:
    """Store the screening summary of a position."""
    async with atomic(db):
        position = await get_owned_position(db, actor.company_id, position_id, lock=True)
        position.qualified_candidates = qualified_candidates
    return position


async def toggle_resolved(db: AsyncSession, actor: Actor, position_id: int) -> Position:
    async with atomic(db):
        position = await get_owned_position(db, actor.company_id, position_id, lock=True)
        position.is_resolved = not position.is_resolved
    logger.info(f"Position {position_id} resolved={position.is_resolved}")
    return position


async def toggle_archived(db: AsyncSession, actor: Actor, position_id: int) -> Position:
    async with atomic(db):
        position = await get_owned_position(db, actor.company_id, position_id, lock=True)
        position.is_archive = not position.is_archive
    logger.info(f"Position {position_id} archived={position.is_archive}")
    return position


async def toggle_trashed(db: AsyncSession, actor: Actor, position_ids: list[int]) -> list[Position]:
    """
    Move positions to the trash, or restore trashed ones.

    Each position flips independently; ``removed_at`` is stamped when a
    position is trashed and cleared when it is restored. One missing or
    foreign position aborts the whole batch.
    """
    now = datetime.now(timezone.utc)
    positions = []
    async with atomic(db):
        for position_id in dict.fromkeys(position_ids):
            position = await get_owned_position(db, actor.company_id, position_id, lock=True)
            position.is_trash = not position.is_trash
            position.removed_at = now if position.is_trash else None
            positions.append(position)
    return positions


async def delete_position(
    db: AsyncSession, storage: ArtifactStorage, actor: Actor, position_id: int
) -> CascadeResult:
    """Delete a position with its candidates and their CV files."""
    async with atomic(db):
        position = await get_owned_position(db, actor.company_id, position_id, lock=True)
        result = await CascadeDeleter(db, storage).delete_subtree(position)
    return result


async def delete_positions(
    db: AsyncSession, storage: ArtifactStorage, actor: Actor, position_ids: list[int]
) -> CascadeResult:
    """
    Delete several positions in one transaction.

    Every position is checked before anything is deleted, so a foreign or
    missing ID leaves all positions and files untouched.
    """
    async with atomic(db):
        positions = [
            await get_owned_position(db, actor.company_id, position_id, lock=True)
            for position_id in dict.fromkeys(position_ids)
        ]
        deleter = CascadeDeleter(db, storage)
        result = CascadeResult()
        for position in positions:
            result += await deleter.delete_subtree(position)
    return result
