"""
Company endpoints.

Listing and creating companies is public so that new users can pick or
create their company before registering. Everything else is limited to the
caller's own company.
"""

from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_actor, get_pagination_params, get_storage
from api.schemas.common import DeleteResponse, PaginatedResponse, PaginationParams
from api.schemas.companies import CompanyCreate, CompanyResponse, CompanyUpdate
from api.services import companies as company_service
from core.middleware.authentication import Actor
from core.storage.base import ArtifactStorage
from database.engine import get_db

router = APIRouter()


@router.get(
    "",
    response_model=PaginatedResponse[CompanyResponse],
    summary="List Companies",
)
async def list_companies(
    pagination: PaginationParams = Depends(get_pagination_params),
    db: AsyncSession = Depends(get_db),
):
    companies, total = await company_service.list_companies(db, pagination)
    return PaginatedResponse[CompanyResponse].create(
        items=[CompanyResponse.model_validate(c) for c in companies],
        total=total,
        pagination=pagination,
    )


@router.post(
    "",
    response_model=CompanyResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create Company",
)
async def create_company(
    request: CompanyCreate,
    db: AsyncSession = Depends(get_db),
):
    company = await company_service.create_company(db, request)
    return CompanyResponse.model_validate(company)


@router.get(
    "/{company_id}",
    response_model=CompanyResponse,
    summary="Get Company",
)
async def get_company(
    company_id: int = Path(..., description="Company ID"),
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    company = await company_service.get_company(db, actor, company_id)
    return CompanyResponse.model_validate(company)


@router.put(
    "/{company_id}",
    response_model=CompanyResponse,
    summary="Update Company",
)
async def update_company(
    request: CompanyUpdate,
    company_id: int = Path(..., description="Company ID"),
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    company = await company_service.update_company(db, actor, company_id, request)
    return CompanyResponse.model_validate(company)


@router.delete(
    "/{company_id}",
    response_model=DeleteResponse,
    summary="Delete Company",
    description="Delete the company with all departments, positions, candidates and CV files.",
)
async def delete_company(
    company_id: int = Path(..., description="Company ID"),
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
    storage: ArtifactStorage = Depends(get_storage),
):
    result = await company_service.delete_company(db, storage, actor, company_id)
    return DeleteResponse(
        message="Company deleted",
        rows_deleted=result.rows_deleted,
        artifacts_deleted=result.artifacts_deleted,
    )
