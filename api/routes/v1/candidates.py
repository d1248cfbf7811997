"""
Candidate endpoints.

Provides REST API for CV upload, listing, editing, scoring and deleting
candidates of the caller's company.
"""

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Path, UploadFile, status
from pydantic import EmailStr, TypeAdapter, ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_actor, get_pagination_params, get_storage
from api.schemas.candidates import (
    CandidateFilter,
    CandidateResponse,
    CandidateUpdate,
    ScoreRequest,
)
from api.schemas.common import (
    DeleteResponse,
    IdListRequest,
    PaginatedResponse,
    PaginationParams,
)
from api.services import candidates as candidate_service
from core.config import settings
from core.middleware.authentication import Actor
from core.storage.base import ArtifactStorage
from database.engine import get_db

router = APIRouter()

_email_adapter = TypeAdapter(EmailStr)


def _page(candidates, total: int, pagination: PaginationParams) -> PaginatedResponse[CandidateResponse]:
    return PaginatedResponse[CandidateResponse].create(
        items=[CandidateResponse.model_validate(c) for c in candidates],
        total=total,
        pagination=pagination,
    )


@router.post(
    "",
    response_model=CandidateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload Candidate CV",
    description="Register a candidate for a position with the CV file (multipart form).",
)
async def create_candidate(
    name: str = Form(..., min_length=1, max_length=255),
    email: str = Form(..., max_length=255),
    position_id: int = Form(..., gt=0),
    domicile: Optional[str] = Form(None, max_length=255),
    cv_file: UploadFile = File(..., description="CV document"),
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
    storage: ArtifactStorage = Depends(get_storage),
):
    try:
        email = _email_adapter.validate_python(email)
    except ValidationError:
        raise HTTPException(status_code=422, detail="Invalid email address")

    data = await cv_file.read()
    if not data:
        raise HTTPException(status_code=400, detail="CV file is empty")
    if len(data) > settings.max_cv_size_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"CV file exceeds {settings.max_cv_size_bytes} bytes",
        )

    candidate = await candidate_service.create_candidate(
        db,
        storage,
        actor,
        name=name,
        email=email,
        domicile=domicile,
        position_id=position_id,
        filename=cv_file.filename,
        content_type=cv_file.content_type,
        data=data,
        key_prefix=settings.cv_key_prefix,
    )
    return CandidateResponse.model_validate(candidate)


@router.get(
    "",
    response_model=PaginatedResponse[CandidateResponse],
    summary="List Candidates",
)
async def list_candidates(
    pagination: PaginationParams = Depends(get_pagination_params),
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    candidates, total = await candidate_service.list_candidates(db, actor, pagination)
    return _page(candidates, total, pagination)


@router.get(
    "/by-position/{position_id}",
    response_model=PaginatedResponse[CandidateResponse],
    summary="List Candidates of a Position",
)
async def list_candidates_by_position(
    position_id: int = Path(..., description="Position ID"),
    pagination: PaginationParams = Depends(get_pagination_params),
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    candidates, total = await candidate_service.list_candidates_by_position(
        db, actor, position_id, pagination
    )
    return _page(candidates, total, pagination)


@router.post(
    "/filter",
    response_model=PaginatedResponse[CandidateResponse],
    summary="Filter Candidates",
    description="Candidates by department and/or position, of archived or active positions.",
)
async def filter_candidates(
    request: CandidateFilter,
    pagination: PaginationParams = Depends(get_pagination_params),
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    candidates, total = await candidate_service.filter_candidates(db, actor, request, pagination)
    return _page(candidates, total, pagination)


@router.post(
    "/score",
    response_model=list[CandidateResponse],
    summary="Score Candidates",
    description="Apply screening scores to several candidates. All or nothing.",
)
async def score_candidates(
    request: ScoreRequest,
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    candidates = await candidate_service.score_candidates(db, actor, request.candidates)
    return [CandidateResponse.model_validate(c) for c in candidates]


@router.post(
    "/qualify",
    response_model=list[CandidateResponse],
    summary="Toggle Qualified",
    description="Flip the qualification flag of several candidates. All or nothing.",
)
async def qualify_candidates(
    request: IdListRequest,
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    candidates = await candidate_service.toggle_qualified(db, actor, request.ids)
    return [CandidateResponse.model_validate(c) for c in candidates]


@router.post(
    "/bulk-delete",
    response_model=DeleteResponse,
    summary="Delete Candidates",
    description="Delete several candidates with their CV files. All or nothing.",
)
async def bulk_delete_candidates(
    request: IdListRequest,
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
    storage: ArtifactStorage = Depends(get_storage),
):
    result = await candidate_service.delete_candidates(db, storage, actor, request.ids)
    return DeleteResponse(
        message="Candidates deleted",
        rows_deleted=result.rows_deleted,
        artifacts_deleted=result.artifacts_deleted,
    )


@router.get(
    "/{candidate_id}",
    response_model=CandidateResponse,
    summary="Get Candidate",
)
async def get_candidate(
    candidate_id: int = Path(..., description="Candidate ID"),
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    candidate = await candidate_service.get_candidate(db, actor, candidate_id)
    return CandidateResponse.model_validate(candidate)


@router.put(
    "/{candidate_id}",
    response_model=CandidateResponse,
    summary="Update Candidate",
)
async def update_candidate(
    request: CandidateUpdate,
    candidate_id: int = Path(..., description="Candidate ID"),
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    candidate = await candidate_service.update_candidate(db, actor, candidate_id, request)
    return CandidateResponse.model_validate(candidate)


@router.delete(
    "/{candidate_id}",
    response_model=DeleteResponse,
    summary="Delete Candidate",
)
async def delete_candidate(
    candidate_id: int = Path(..., description="Candidate ID"),
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
    storage: ArtifactStorage = Depends(get_storage),
):
    result = await candidate_service.delete_candidate(db, storage, actor, candidate_id)
    return DeleteResponse(
        message="Candidate deleted",
        rows_deleted=result.rows_deleted,
        artifacts_deleted=result.artifacts_deleted,
    )
