"""Department endpoints, scoped to the caller's company."""

from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_actor, get_pagination_params, get_storage
from api.schemas.common import DeleteResponse, PaginatedResponse, PaginationParams
from api.schemas.departments import DepartmentCreate, DepartmentResponse, DepartmentUpdate
from api.services import departments as department_service
from core.middleware.authentication import Actor
from core.storage.base import ArtifactStorage
from database.engine import get_db

router = APIRouter()


@router.post(
    "",
    response_model=DepartmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create Department",
)
async def create_department(
    request: DepartmentCreate,
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    department = await department_service.create_department(db, actor, request)
    return DepartmentResponse.model_validate(department)


@router.get(
    "",
    response_model=PaginatedResponse[DepartmentResponse],
    summary="List Departments",
)
async def list_departments(
    pagination: PaginationParams = Depends(get_pagination_params),
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    departments, total = await department_service.list_departments(db, actor, pagination)
    return PaginatedResponse[DepartmentResponse].create(
        items=[DepartmentResponse.model_validate(d) for d in departments],
        total=total,
        pagination=pagination,
    )


@router.get(
    "/{department_id}",
    response_model=DepartmentResponse,
    summary="Get Department",
)
async def get_department(
    department_id: int = Path(..., description="Department ID"),
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    department = await department_service.get_department(db, actor, department_id)
    return DepartmentResponse.model_validate(department)


@router.put(
    "/{department_id}",
    response_model=DepartmentResponse,
    summary="Rename Department",
)
async def update_department(
    request: DepartmentUpdate,
    department_id: int = Path(..., description="Department ID"),
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    department = await department_service.update_department(db, actor, department_id, request)
    return DepartmentResponse.model_validate(department)


@router.delete(
    "/{department_id}",
    response_model=DeleteResponse,
    summary="Delete Department",
    description="Delete the department with its positions, candidates and CV files.",
)
async def delete_department(
    department_id: int = Path(..., description="Department ID"),
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
    storage: ArtifactStorage = Depends(get_storage),
):
    result = await department_service.delete_department(db, storage, actor, department_id)
    return DeleteResponse(
        message="Department deleted",
        rows_deleted=result.rows_deleted,
        artifacts_deleted=result.artifacts_deleted,
    )
