"""
Object Storage Interface

Abstract interface for the object storage gateway.
This abstraction allows the domain layer to remain infrastructure-agnostic
by defining contracts for object operations without depending on specific
storage implementations (local filesystem, Google Cloud Storage, etc.).

Contract Guarantees:
- Storage keys are opaque, relative handles (e.g. 'tenant-1/abc123.pdf')
- Transient backend failures surface as UnavailableError
- delete() is idempotent: deleting a missing object succeeds
"""

from abc import ABC, abstractmethod
from typing import BinaryIO


class IObjectStorage(ABC):
    """Unified interface for object storage operations."""

    @abstractmethod
    def put_object(self, content: BinaryIO, content_type: str, key: str) -> str:
        """
        Store object bytes under a key.

        Args:
            content: Binary content as a file-like object
            content_type: MIME type recorded with the object
            key: Storage key to write

        Returns:
            The storage key that now holds the bytes

        Raises:
            UnavailableError: If the backend cannot be reached
        """
        pass  # pragma: no cover

    @abstractmethod
    def generate_signed_url(self, key: str, ttl_seconds: int = 3600) -> str:
        """
        Mint a time-limited retrieval URL for one object.

        Args:
            key: Storage key
            ttl_seconds: Validity window in seconds

        Returns:
            Retrieval URL string

        Raises:
            UnavailableError: If the URL cannot be issued
        """
        pass  # pragma: no cover

    @abstractmethod
    def delete(self, key: str) -> None:
        """
        Delete an object. Missing objects are treated as already deleted.

        Raises:
            UnavailableError: If the backend cannot be reached
        """
        pass  # pragma: no cover

    @abstractmethod
    def exists(self, key: str) -> bool:
        """
        Check if an object exists. Never raises; errors return False.
        """
        pass  # pragma: no cover
