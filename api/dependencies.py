"""FastAPI dependencies for dependency injection."""

from functools import lru_cache

from fastapi import Query, Request

from api.schemas.common import PaginationParams
from core.config import settings
from core.exceptions import AuthenticationError
from core.middleware.authentication import Actor
from core.storage.base import ArtifactStorage
from core.storage.local import LocalStorage
from core.storage.s3 import S3Storage


async def get_actor(request: Request) -> Actor:
    """
    Acting user injected by the authentication middleware.

    Raises:
        AuthenticationError: If the request carries no authenticated actor
    """
    actor = request.scope.get("actor")
    if actor is None:
        raise AuthenticationError("Authentication required")
    return actor


@lru_cache
def _build_storage() -> ArtifactStorage:
    if settings.storage_backend == "local":
        return LocalStorage(settings.local_storage_path)
    return S3Storage(
        bucket_name=settings.aws_s3_bucket,
        region=settings.aws_region,
        access_key_id=settings.aws_access_key_id,
        secret_access_key=settings.aws_secret_access_key,
    )


def get_storage() -> ArtifactStorage:
    """CV file storage selected by ``STORAGE_BACKEND``."""
    return _build_storage()


def get_pagination_params(
    page: int = Query(1, ge=1, description="Page number (1-indexed)"),
    page_size: int = Query(20, ge=1, le=100, description="Items per page"),
) -> PaginationParams:
    return PaginationParams(page=page, page_size=page_size)
