"""Candidate service functions."""

import logging
import time
import uuid
from pathlib import PurePath
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from api.schemas.candidates import CandidateFilter, CandidateScore, CandidateUpdate
from api.schemas.common import PaginationParams
from api.services.common import flush_or_conflict, paginate
from core.cascade import CascadeDeleter, CascadeResult
from core.exceptions import ResourceConflict, StorageFailure
from core.middleware.authentication import Actor
from core.middleware.authorization import (
    get_owned_candidate,
    get_owned_position,
    require_tenant,
)
from core.scoring import apply_score
from core.storage.base import ArtifactStorage
from database.engine import atomic
from database.models.candidates import Candidate
from database.models.departments import Department
from database.models.positions import Position

logger = logging.getLogger(__name__)


def build_cv_key(prefix: str, filename: Optional[str]) -> str:
    """
    Storage key for an uploaded CV.

    Only the base name of the client-supplied filename is kept; a timestamp
    and a random suffix keep keys unique.
    """
    name = PurePath((filename or "").replace("\\", "/")).name or "cv"
    return f"{prefix.rstrip('/')}/{int(time.time())}-{uuid.uuid4().hex[:8]}-{name}"


async def _ensure_email_free(
    db: AsyncSession, position_id: int, email: str, exclude_id: Optional[int] = None
) -> None:
    query = select(Candidate.id).where(
        Candidate.position_id == position_id, Candidate.email == email
    )
    if exclude_id is not None:
        query = query.where(Candidate.id != exclude_id)
    if await db.scalar(query) is not None:
        raise ResourceConflict(
            f"Candidate with email {email} already applied to position {position_id}"
        )


def _tenant_candidates(company_id: int):
    return (
        select(Candidate)
        .join(Position, Candidate.position_id == Position.id)
        .join(Department, Position.department_id == Department.id)
        .where(Department.company_id == company_id)
        .order_by(Candidate.id)
    )


async def _discard_upload(storage: ArtifactStorage, key: str) -> None:
    try:
        await storage.delete(key)
    except StorageFailure:
        logger.error(f"Orphaned CV file {key} could not be removed")
    else:
        logger.info(f"Removed CV file {key} after failed candidate insert")


async def create_candidate(
    db: AsyncSession,
    storage: ArtifactStorage,
    actor: Actor,
    *,
    name: str,
    email: str,
    domicile: Optional[str],
    position_id: int,
    filename: Optional[str],
    content_type: Optional[str],
    data: bytes,
    key_prefix: str = "cv_files",
) -> Candidate:
    """
    Register a candidate for a position and store the CV file.

    All checks run before the upload, so a rejected request writes nothing.
    If the insert fails after the upload, the stored file is removed again.

    Args:
        db: Database session
        storage: CV file storage
        actor: Acting user
        name: Candidate name
        email: Candidate email
        domicile: Candidate place of residence
        position_id: Position applied for
        filename: Client-side file name
        content_type: MIME type of the file
        data: File contents
        key_prefix: Storage key prefix

    Returns:
        The created candidate

    Raises:
        ResourceNotFound: If the position does not exist
        TenantAccessDenied: If the position belongs to another company
        ResourceConflict: If the email already applied to the position
        StorageFailure: If the file could not be stored
    """
    uploaded_key = None
    try:
        async with atomic(db):
            await get_owned_position(db, actor.company_id, position_id, lock=True)
            await _ensure_email_free(db, position_id, email)

            key = build_cv_key(key_prefix, filename)
            url = await storage.upload(key, data, content_type)
            uploaded_key = key

            candidate = Candidate(
                name=name,
                email=email,
                domicile=domicile,
                position_id=position_id,
                cv_file=key,
                cv_file_url=url,
            )
            db.add(candidate)
            await flush_or_conflict(db, f"Candidate with email {email} already applied")
            await db.execute(
                update(Position)
                .where(Position.id == position_id)
                .values(uploaded_cv=Position.uploaded_cv + 1)
            )
    except Exception:
        if uploaded_key:
            await _discard_upload(storage, uploaded_key)
        raise

    logger.info(f"Created candidate {candidate.id} for position {position_id}")
    return candidate


async def list_candidates(db: AsyncSession, actor: Actor, pagination: PaginationParams):
    company_id = require_tenant(actor.company_id)
    return await paginate(db, _tenant_candidates(company_id), pagination)


async def get_candidate(db: AsyncSession, actor: Actor, candidate_id: int) -> Candidate:
    return await get_owned_candidate(db, actor.company_id, candidate_id)


async def list_candidates_by_position(
    db: AsyncSession, actor: Actor, position_id: int, pagination: PaginationParams
):
    await get_owned_position(db, actor.company_id, position_id)
    query = (
        select(Candidate)
        .where(Candidate.position_id == position_id)
        .order_by(Candidate.id)
    )
    return await paginate(db, query, pagination)


async def filter_candidates(
    db: AsyncSession, actor: Actor, filters: CandidateFilter, pagination: PaginationParams
):
    """Candidates of the actor's company narrowed by department/position and archive state."""
    company_id = require_tenant(actor.company_id)
    query = _tenant_candidates(company_id).where(Position.is_archive.is_(filters.archived))
    if filters.department_id:
        query = query.where(Position.department_id == filters.department_id)
    if filters.position_id:
        query = query.where(Candidate.position_id == filters.position_id)
    return await paginate(db, query, pagination)


async def update_candidate(
    db: AsyncSession, actor: Actor, candidate_id: int, data: CandidateUpdate
) -> Candidate:
    """Edit name, email or domicile; the email stays unique within the position."""
    async with atomic(db):
        candidate = await get_owned_candidate(db, actor.company_id, candidate_id, lock=True)
        updates = data.model_dump(exclude_unset=True)
        email = updates.get("email")
        if email and email != candidate.email:
            await _ensure_email_free(db, candidate.position_id, email, exclude_id=candidate.id)

        for field, value in updates.items():
            if value is None and field != "domicile":
                continue
            setattr(candidate, field, value)
        await flush_or_conflict(db, f"Candidate with email {candidate.email} already applied")
    return candidate


async def score_candidates(
    db: AsyncSession, actor: Actor, scores: list[CandidateScore]
) -> list[Candidate]:
    """
    Apply a batch of screening scores.

    The batch is atomic: one missing or foreign candidate leaves every score
    and counter unchanged.
    """
    candidates = []
    async with atomic(db):
        for item in scores:
            candidate = await get_owned_candidate(db, actor.company_id, item.id, lock=True)
            await apply_score(db, candidate, item.score, item.skills)
            candidates.append(candidate)
    logger.info(f"Scored {len(candidates)} candidates")
    return candidates


async def toggle_qualified(
    db: AsyncSession, actor: Actor, candidate_ids: list[int]
) -> list[Candidate]:
    """Flip the manual qualification flag of several candidates at once."""
    candidates = []
    async with atomic(db):
        for candidate_id in dict.fromkeys(candidate_ids):
            candidate = await get_owned_candidate(db, actor.company_id, candidate_id, lock=True)
            candidate.is_qualified = not candidate.is_qualified
            candidates.append(candidate)
    return candidates


async def delete_candidate(
    db: AsyncSession, storage: ArtifactStorage, actor: Actor, candidate_id: int
) -> CascadeResult:
    """Delete a candidate: CV file first, then the row."""
    async with atomic(db):
        candidate = await get_owned_candidate(db, actor.company_id, candidate_id, lock=True)
        result = await CascadeDeleter(db, storage).delete_candidate(candidate)
    return result


async def delete_candidates(
    db: AsyncSession, storage: ArtifactStorage, actor: Actor, candidate_ids: list[int]
) -> CascadeResult:
    """Delete several candidates in one transaction; all are checked first."""
    async with atomic(db):
        candidates = [
            await get_owned_candidate(db, actor.company_id, candidate_id, lock=True)
            for candidate_id in dict.fromkeys(candidate_ids)
        ]
        deleter = CascadeDeleter(db, storage)
        result = CascadeResult()
        for candidate in candidates:
            result += await deleter.delete_candidate(candidate)
    return result
