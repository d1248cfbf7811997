"""Storage interface for candidate CV files."""

from typing import Protocol, runtime_checkable


@runtime_checkable
class ArtifactStorage(Protocol):
    """
    Put/delete-by-key object store.

    Implementations raise ``core.exceptions.StorageFailure`` on any backend
    error. Deleting a key that does not exist succeeds, so a cascade can be
    retried after a partial failure.
    """

    async def upload(self, key: str, data: bytes, content_type: str | None = None) -> str:
        """Store ``data`` under ``key`` and return its public URL."""
        ...

    async def delete(self, key: str) -> None:
        """Remove the object stored under ``key``."""
        ...
