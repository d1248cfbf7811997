"""Company (tenant) service functions."""

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from api.schemas.common import PaginationParams
from api.schemas.companies import CompanyCreate, CompanyUpdate
from api.services.common import flush_or_conflict, paginate
from core.cascade import CascadeDeleter, CascadeResult
from core.exceptions import ResourceConflict
from core.middleware.authentication import Actor
from core.middleware.authorization import get_owned_company
from core.storage.base import ArtifactStorage
from database.engine import atomic
from database.models.companies import Company

logger = logging.getLogger(__name__)


async def _ensure_name_free(db: AsyncSession, name: str, exclude_id: Optional[int] = None) -> None:
    query = select(Company.id).where(Company.name == name)
    if exclude_id is not None:
        query = query.where(Company.id != exclude_id)
    if await db.scalar(query) is not None:
        raise ResourceConflict(f"Company name '{name}' already exists")


async def list_companies(db: AsyncSession, pagination: PaginationParams):
    """All companies, for picking one at registration."""
    return await paginate(db, select(Company).order_by(Company.id), pagination)


async def create_company(db: AsyncSession, data: CompanyCreate) -> Company:
    """
    Create a company.

    Raises:
        ResourceConflict: If the name is taken
    """
    async with atomic(db):
        await _ensure_name_free(db, data.name)
        company = Company(name=data.name, address=data.address)
        db.add(company)
        await flush_or_conflict(db, f"Company name '{data.name}' already exists")

    logger.info(f"Created company {company.id}")
    return company


async def get_company(db: AsyncSession, actor: Actor, company_id: int) -> Company:
    return await get_owned_company(db, actor.company_id, company_id)


async def update_company(
    db: AsyncSession, actor: Actor, company_id: int, data: CompanyUpdate
) -> Company:
    """
    Rename a company or change its address.

    Raises:
        ResourceNotFound: If the company does not exist
        TenantAccessDenied: If it is not the actor's company
        ResourceConflict: If the new name is taken
    """
    async with atomic(db):
        company = await get_owned_company(db, actor.company_id, company_id, lock=True)
        updates = data.model_dump(exclude_unset=True)
        if updates.get("name") and updates["name"] != company.name:
            await _ensure_name_free(db, updates["name"], exclude_id=company.id)
        for field, value in updates.items():
            if field == "name" and value is None:
                continue
            setattr(company, field, value)
        await flush_or_conflict(db, f"Company name '{company.name}' already exists")
    return company


async def delete_company(
    db: AsyncSession, storage: ArtifactStorage, actor: Actor, company_id: int
) -> CascadeResult:
    """
    Delete a company with all departments, positions, candidates and CV files.

    Users of the company are kept with their company cleared.
    """
    async with atomic(db):
        company = await get_owned_company(db, actor.company_id, company_id, lock=True)
        result = await CascadeDeleter(db, storage).delete_subtree(company)
    return result
