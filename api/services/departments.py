"""Department service functions."""

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from api.schemas.common import PaginationParams
from api.schemas.departments import DepartmentCreate, DepartmentUpdate
from api.services.common import flush_or_conflict, paginate
from core.cascade import CascadeDeleter, CascadeResult
from core.exceptions import ResourceConflict
from core.middleware.authentication import Actor
from core.middleware.authorization import get_company, get_owned_department, require_tenant
from core.storage.base import ArtifactStorage
from database.engine import atomic
from database.models.departments import Department

logger = logging.getLogger(__name__)


async def _ensure_name_free(
    db: AsyncSession, company_id: int, name: str, exclude_id: Optional[int] = None
) -> None:
    query = select(Department.id).where(
        Department.company_id == company_id, Department.name == name
    )
    if exclude_id is not None:
        query = query.where(Department.id != exclude_id)
    if await db.scalar(query) is not None:
        raise ResourceConflict(f"Department '{name}' already exists")


async def create_department(db: AsyncSession, actor: Actor, data: DepartmentCreate) -> Department:
    """
    Create a department in the actor's company.

    Raises:
        TenantAccessDenied: If the actor has no company
        ResourceNotFound: If the actor's company no longer exists
        ResourceConflict: If the company already has a department of that name
    """
    company_id = require_tenant(actor.company_id)
    async with atomic(db):
        await get_company(db, company_id)
        await _ensure_name_free(db, company_id, data.name)
        department = Department(name=data.name, company_id=company_id)
        db.add(department)
        await flush_or_conflict(db, f"Department '{data.name}' already exists")

    logger.info(f"Created department {department.id} in company {company_id}")
    return department


async def list_departments(db: AsyncSession, actor: Actor, pagination: PaginationParams):
    company_id = require_tenant(actor.company_id)
    query = (
        select(Department)
        .where(Department.company_id == company_id)
        .order_by(Department.id)
    )
    return await paginate(db, query, pagination)


async def get_department(db: AsyncSession, actor: Actor, department_id: int) -> Department:
    return await get_owned_department(db, actor.company_id, department_id)


async def update_department(
    db: AsyncSession, actor: Actor, department_id: int, data: DepartmentUpdate
) -> Department:
    """Rename a department; names stay unique within the company."""
    async with atomic(db):
        department = await get_owned_department(db, actor.company_id, department_id, lock=True)
        if data.name != department.name:
            await _ensure_name_free(db, department.company_id, data.name, exclude_id=department.id)
            department.name = data.name
            await flush_or_conflict(db, f"Department '{data.name}' already exists")
    return department


async def delete_department(
    db: AsyncSession, storage: ArtifactStorage, actor: Actor, department_id: int
) -> CascadeResult:
    """Delete a department with its positions, candidates and CV files."""
    async with atomic(db):
        department = await get_owned_department(db, actor.company_id, department_id, lock=True)
        result = await CascadeDeleter(db, storage).delete_subtree(department)
    return result
