"""
Cascading deletion of ownership subtrees.

Deleting a company, department or position removes everything beneath it:

    Company -> Departments -> Positions -> Candidates -> stored CV files

Stored files go first, then rows bottom-up. The deleter never commits; run it
inside ``database.engine.atomic`` so that a storage or database failure rolls
back every row deletion of the request.
"""

import logging
from dataclasses import dataclass
from typing import Sequence, Union

from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import StorageFailure, TransactionFailure
from core.storage.base import ArtifactStorage
from database.models.candidates import Candidate
from database.models.companies import Company
from database.models.departments import Department
from database.models.positions import Position
from database.models.users import User

logger = logging.getLogger(__name__)

CascadeRoot = Union[Company, Department, Position]


@dataclass
class CascadeResult:
    """Counts of what a deletion removed."""

    rows_deleted: int = 0
    artifacts_deleted: int = 0

    def __add__(self, other: "CascadeResult") -> "CascadeResult":
        return CascadeResult(
            rows_deleted=self.rows_deleted + other.rows_deleted,
            artifacts_deleted=self.artifacts_deleted + other.artifacts_deleted,
        )


@dataclass
class _Subtree:
    department_ids: list[int]
    position_ids: list[int]
    candidate_ids: list[int]
    artifact_keys: list[str]


class CascadeDeleter:
    """Deletes an entity together with every row and file it owns."""

    def __init__(self, db: AsyncSession, storage: ArtifactStorage):
        self.db = db
        self.storage = storage

    async def delete_subtree(self, root: CascadeRoot) -> CascadeResult:
        """
        Delete ``root`` and its whole subtree.

        Args:
            root: Company, department or position to remove

        Returns:
            CascadeResult with row and file counts

        Raises:
            StorageFailure: If a stored file could not be removed
            TransactionFailure: If a row deletion failed
        """
        subtree = await self._enumerate(root)
        artifacts_deleted = await self._delete_artifacts(subtree.artifact_keys)
        try:
            rows_deleted = await self._delete_rows(root, subtree)
        except TransactionFailure:
            if artifacts_deleted:
                removed = [key for key in subtree.artifact_keys if key]
                logger.error(f"Rows kept after their files were removed: {removed}")
            raise

        logger.info(
            f"Cascade delete of {type(root).__name__} {root.id}: "
            f"{rows_deleted} rows, {artifacts_deleted} files"
        )
        return CascadeResult(rows_deleted=rows_deleted, artifacts_deleted=artifacts_deleted)

    async def delete_candidate(self, candidate: Candidate) -> CascadeResult:
        """
        Delete a single candidate: stored file first, then the row.

        The owning position's ``uploaded_cv`` counter is decremented, and
        ``filtered_cv`` as well when the candidate was qualified by score.
        """
        artifacts_deleted = await self._delete_artifacts([candidate.cv_file])
        try:
            result = await self.db.execute(
                delete(Candidate).where(Candidate.id == candidate.id)
            )
            await self.db.execute(
                update(Position)
                .where(Position.id == candidate.position_id)
                .values(
                    uploaded_cv=Position.uploaded_cv - 1,
                    filtered_cv=Position.filtered_cv - (1 if candidate.score > 0 else 0),
                )
            )
        except SQLAlchemyError as exc:
            logger.error(f"Failed to delete candidate {candidate.id}: {exc}")
            raise TransactionFailure(f"Failed to delete candidate {candidate.id}") from exc

        logger.info(f"Deleted candidate {candidate.id} of position {candidate.position_id}")
        return CascadeResult(rows_deleted=result.rowcount, artifacts_deleted=artifacts_deleted)

    async def _enumerate(self, root: CascadeRoot) -> _Subtree:
        """Collect the subtree top-down, locking every row."""
        if isinstance(root, Company):
            department_ids = await self._ids(Department, Department.company_id == root.id)
            position_ids = (
                await self._ids(Position, Position.department_id.in_(department_ids))
                if department_ids
                else []
            )
        elif isinstance(root, Department):
            department_ids = []
            position_ids = await self._ids(Position, Position.department_id == root.id)
        elif isinstance(root, Position):
            department_ids = []
            position_ids = [root.id]
        else:
            raise TypeError(f"Unsupported cascade root: {type(root).__name__}")

        candidate_ids: list[int] = []
        artifact_keys: list[str] = []
        if position_ids:
            result = await self.db.execute(
                select(Candidate.id, Candidate.cv_file)
                .where(Candidate.position_id.in_(position_ids))
                .order_by(Candidate.id)
                .with_for_update()
            )
            for candidate_id, cv_file in result.all():
                candidate_ids.append(candidate_id)
                artifact_keys.append(cv_file)

        return _Subtree(department_ids, position_ids, candidate_ids, artifact_keys)

    async def _ids(self, model, criterion) -> list[int]:
        result = await self.db.execute(
            select(model.id).where(criterion).order_by(model.id).with_for_update()
        )
        return list(result.scalars().all())

    async def _delete_artifacts(self, keys: Sequence[str]) -> int:
        deleted: list[str] = []
        for key in keys:
            if not key:
                continue
            try:
                await self.storage.delete(key)
            except StorageFailure:
                if deleted:
                    logger.error(
                        f"Cascade aborted after removing {len(deleted)} files: {deleted}"
                    )
                raise
            deleted.append(key)
        return len(deleted)

    async def _delete_rows(self, root: CascadeRoot, subtree: _Subtree) -> int:
        rows = 0
        try:
            if subtree.candidate_ids:
                result = await self.db.execute(
                    delete(Candidate).where(Candidate.id.in_(subtree.candidate_ids))
                )
                rows += result.rowcount
            if subtree.position_ids:
                result = await self.db.execute(
                    delete(Position).where(Position.id.in_(subtree.position_ids))
                )
                rows += result.rowcount

            if isinstance(root, Department):
                result = await self.db.execute(
                    delete(Department).where(Department.id == root.id)
                )
                rows += result.rowcount
            elif isinstance(root, Company):
                if subtree.department_ids:
                    result = await self.db.execute(
                        delete(Department).where(Department.id.in_(subtree.department_ids))
                    )
                    rows += result.rowcount
                await self.db.execute(
                    update(User).where(User.company_id == root.id).values(company_id=None)
                )
                result = await self.db.execute(delete(Company).where(Company.id == root.id))
                rows += result.rowcount
        except SQLAlchemyError as exc:
            logger.error(f"Cascade delete of {type(root).__name__} {root.id} failed: {exc}")
            raise TransactionFailure(
                f"Failed to delete {type(root).__name__.lower()} {root.id}"
            ) from exc
        return rows
