"""
Job position endpoints.

Provides REST API for opening, editing, archiving, trashing and deleting
positions of the caller's company.
"""

from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_actor, get_pagination_params, get_storage
from api.schemas.common import (
    DeleteResponse,
    IdListRequest,
    PaginatedResponse,
    PaginationParams,
)
from api.schemas.positions import (
    PositionCreate,
    PositionResponse,
    PositionUpdate,
    QualifiedCandidatesUpdate,
)
from api.services import positions as position_service
from core.middleware.authentication import Actor
from core.storage.base import ArtifactStorage
from database.engine import get_db

router = APIRouter()


def _page(positions, total: int, pagination: PaginationParams) -> PaginatedResponse[PositionResponse]:
    return PaginatedResponse[PositionResponse].create(
        items=[PositionResponse.model_validate(p) for p in positions],
        total=total,
        pagination=pagination,
    )


@router.post(
    "",
    response_model=PositionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create Position",
)
async def create_position(
    request: PositionCreate,
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    position = await position_service.create_position(db, actor, request)
    return PositionResponse.model_validate(position)


@router.get(
    "",
    response_model=PaginatedResponse[PositionResponse],
    summary="List Positions",
)
async def list_positions(
    pagination: PaginationParams = Depends(get_pagination_params),
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    positions, total = await position_service.list_positions(db, actor, pagination)
    return _page(positions, total, pagination)


@router.get(
    "/archived",
    response_model=PaginatedResponse[PositionResponse],
    summary="List Archived Positions",
)
async def list_archived_positions(
    pagination: PaginationParams = Depends(get_pagination_params),
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    positions, total = await position_service.list_archived_positions(db, actor, pagination)
    return _page(positions, total, pagination)


@router.post(
    "/trash",
    response_model=list[PositionResponse],
    summary="Trash or Restore Positions",
    description="Toggle the trash flag of every listed position. All or nothing.",
)
async def trash_positions(
    request: IdListRequest,
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    positions = await position_service.toggle_trashed(db, actor, request.ids)
    return [PositionResponse.model_validate(p) for p in positions]


@router.post(
    "/bulk-delete",
    response_model=DeleteResponse,
    summary="Delete Positions",
    description="Delete several positions with their candidates and CV files. All or nothing.",
)
async def bulk_delete_positions(
    request: IdListRequest,
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
    storage: ArtifactStorage = Depends(get_storage),
):
    result = await position_service.delete_positions(db, storage, actor, request.ids)
    return DeleteResponse(
        message="Positions deleted",
        rows_deleted=result.rows_deleted,
        artifacts_deleted=result.artifacts_deleted,
    )


@router.get(
    "/{position_id}",
    response_model=PositionResponse,
    summary="Get Position",
)
async def get_position(
    position_id: int = Path(..., description="Position ID"),
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    position = await position_service.get_position(db, actor, position_id)
    return PositionResponse.model_validate(position)


@router.put(
    "/{position_id}",
    response_model=PositionResponse,
    summary="Update Position",
)
async def update_position(
    request: PositionUpdate,
    position_id: int = Path(..., description="Position ID"),
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    position = await position_service.update_position(db, actor, position_id, request)
    return PositionResponse.model_validate(position)


@router.put(
    "/{position_id}/qualified-candidates",
    response_model=PositionResponse,
    summary="Update Qualified Candidates",
)
async def update_qualified_candidates(
    request: QualifiedCandidatesUpdate,
    position_id: int = Path(..., description="Position ID"),
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    position = await position_service.update_qualified_candidates(
        db, actor, position_id, request.qualified_candidates
    )
    return PositionResponse.model_validate(position)


@router.post(
    "/{position_id}/resolve",
    response_model=PositionResponse,
    summary="Toggle Resolved",
)
async def resolve_position(
    position_id: int = Path(..., description="Position ID"),
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    position = await position_service.toggle_resolved(db, actor, position_id)
    return PositionResponse.model_validate(position)


@router.post(
    "/{position_id}/archive",
    response_model=PositionResponse,
    summary="Toggle Archived",
)
async def archive_position(
    position_id: int = Path(..., description="Position ID"),
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    position = await position_service.toggle_archived(db, actor, position_id)
    return PositionResponse.model_validate(position)


@router.delete(
    "/{position_id}",
    response_model=DeleteResponse,
    summary="Delete Position",
    description="Delete the position with its candidates and CV files.",
)
async def delete_position(
    position_id: int = Path(..., description="Position ID"),
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
    storage: ArtifactStorage = Depends(get_storage),
):
    result = await position_service.delete_position(db, storage, actor, position_id)
    return DeleteResponse(
        message="Position deleted",
        rows_deleted=result.rows_deleted,
        artifacts_deleted=result.artifacts_deleted,
    )
