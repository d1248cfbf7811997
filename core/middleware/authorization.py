"""
Tenant-scoped access control.

Every department, position and candidate belongs to exactly one company via
its parent foreign keys:

    Company <- Department.company_id <- Position.department_id <- Candidate.position_id

Access is granted iff the company reached by walking that chain equals the
company of the acting user. A missing row anywhere in the chain is reported
as ResourceNotFound (404), a chain that resolves to another company as
TenantAccessDenied (403).
"""

import logging
from enum import Enum
from typing import Optional, Type, TypeVar, Union

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import ResourceNotFound, TenantAccessDenied
from database.models.candidates import Candidate
from database.models.companies import Company
from database.models.departments import Department
from database.models.positions import Position

logger = logging.getLogger(__name__)

Target = Union[Company, Department, Position, Candidate]
ModelT = TypeVar("ModelT", Company, Department, Position, Candidate)


class AccessDecision(str, Enum):
    """Outcome of an ownership check."""

    ALLOWED = "allowed"
    DENIED = "denied"


async def _load(
    db: AsyncSession, model: Type[ModelT], entity_id: int, lock: bool = False
) -> ModelT:
    query = select(model).where(model.id == entity_id)
    if lock:
        query = query.with_for_update()
    result = await db.execute(query)
    entity = result.scalar_one_or_none()
    if entity is None:
        raise ResourceNotFound(model.__name__, entity_id)
    return entity


async def get_company(db: AsyncSession, company_id: int, lock: bool = False) -> Company:
    return await _load(db, Company, company_id, lock)


async def get_department(db: AsyncSession, department_id: int, lock: bool = False) -> Department:
    return await _load(db, Department, department_id, lock)


async def get_position(db: AsyncSession, position_id: int, lock: bool = False) -> Position:
    return await _load(db, Position, position_id, lock)


async def get_candidate(db: AsyncSession, candidate_id: int, lock: bool = False) -> Candidate:
    return await _load(db, Candidate, candidate_id, lock)


async def resolve_tenant(db: AsyncSession, target: Target) -> int:
    """
    Walk the ownership chain of ``target`` up to its company.

    Args:
        db: Database session
        target: Loaded company, department, position or candidate

    Returns:
        Company ID owning the target

    Raises:
        ResourceNotFound: If a parent row of the chain does not exist
    """
    if isinstance(target, Company):
        return target.id
    if isinstance(target, Department):
        return target.company_id
    if isinstance(target, Position):
        department = await get_department(db, target.department_id)
        return department.company_id
    if isinstance(target, Candidate):
        position = await get_position(db, target.position_id)
        return await resolve_tenant(db, position)
    raise TypeError(f"Unsupported ownership target: {type(target).__name__}")


async def check_access(
    db: AsyncSession, actor_company_id: Optional[int], target: Target
) -> AccessDecision:
    """
    Decide whether an actor of ``actor_company_id`` may touch ``target``.

    An actor without a company is denied for every target. Has no side
    effects besides the chain lookups.
    """
    tenant_id = await resolve_tenant(db, target)
    if actor_company_id is None or tenant_id != actor_company_id:
        return AccessDecision.DENIED
    return AccessDecision.ALLOWED


async def ensure_access(
    db: AsyncSession, actor_company_id: Optional[int], target: Target
) -> None:
    """
    Raise TenantAccessDenied unless the actor owns ``target``.

    Raises:
        ResourceNotFound: If a link of the ownership chain is missing
        TenantAccessDenied: If the chain resolves to another company
    """
    decision = await check_access(db, actor_company_id, target)
    if decision is AccessDecision.DENIED:
        logger.warning(
            f"Company {actor_company_id} denied access to "
            f"{type(target).__name__} {target.id}"
        )
        raise TenantAccessDenied(
            f"Access to {type(target).__name__.lower()} {target.id} denied"
        )


def require_tenant(actor_company_id: Optional[int]) -> int:
    """Company of the actor for tenant-scoped listings; denied when unassigned."""
    if actor_company_id is None:
        raise TenantAccessDenied("User is not assigned to a company")
    return actor_company_id


async def get_owned_company(
    db: AsyncSession, actor_company_id: Optional[int], company_id: int, lock: bool = False
) -> Company:
    company = await get_company(db, company_id, lock)
    await ensure_access(db, actor_company_id, company)
    return company


async def get_owned_department(
    db: AsyncSession, actor_company_id: Optional[int], department_id: int, lock: bool = False
) -> Department:
    department = await get_department(db, department_id, lock)
    await ensure_access(db, actor_company_id, department)
    return department


async def get_owned_position(
    db: AsyncSession, actor_company_id: Optional[int], position_id: int, lock: bool = False
) -> Position:
    position = await get_position(db, position_id, lock)
    await ensure_access(db, actor_company_id, position)
    return position


async def get_owned_candidate(
    db: AsyncSession, actor_company_id: Optional[int], candidate_id: int, lock: bool = False
) -> Candidate:
    candidate = await get_candidate(db, candidate_id, lock)
    await ensure_access(db, actor_company_id, candidate)
    return candidate
