"""
Local Object Storage Implementation

Concrete implementation of IObjectStorage on the local filesystem. Retrieval
URLs point at the API's blob endpoint and are signed by SignedUrlService.
"""

import logging
from pathlib import Path
from typing import BinaryIO, Optional

from ..domain.errors import UnavailableError
from ..domain.sharing.storage_repository import IObjectStorage
from .signed_url_service import SignedUrlService

logger = logging.getLogger(__name__)

CHUNK_SIZE = 8192


class LocalObjectStorage(IObjectStorage):
    """
    Local filesystem implementation of IObjectStorage.

    Keys are relative paths under ``base_path``; a key that would resolve
    outside of it is rejected.

    Attributes:
        base_path: Base directory for stored objects
        signer: Signs blob URLs
    """

    def __init__(self, base_path: str, signer: SignedUrlService):
        self.base_path = Path(base_path).resolve()
        self.signer = signer
        try:
            self.base_path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise OSError(f"Failed to create storage directory: {self.base_path}") from e

    def path_for(self, key: str) -> Optional[Path]:
        """
        Map a storage key onto a path inside the base directory.

        Returns:
            Resolved path, or None if the key is empty or escapes base_path
        """
        if not key or not key.strip():
            return None
        full_path = (self.base_path / key).resolve()
        if full_path != self.base_path and self.base_path not in full_path.parents:
            return None
        return full_path

    def put_object(self, content: BinaryIO, content_type: str, key: str) -> str:
        full_path = self.path_for(key)
        if full_path is None:
            raise ValueError(f"Invalid storage key: {key!r}")

        try:
            full_path.parent.mkdir(parents=True, exist_ok=True)
            if hasattr(content, "seek"):
                content.seek(0)
            with open(full_path, "wb") as f:
                while True:
                    chunk = content.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    f.write(chunk)
        except OSError as e:
            logger.error(f"Failed to write object {key}: {e}")
            raise UnavailableError(f"Failed to store object {key}", e) from e

        logger.debug(f"Stored object {key} ({content_type})")
        return key

    def generate_signed_url(self, key: str, ttl_seconds: int = 3600) -> str:
        if self.path_for(key) is None:
            raise UnavailableError(f"Cannot sign invalid storage key: {key!r}")
        return self.signer.generate_signed_url(key, ttl_seconds)

    def delete(self, key: str) -> None:
        full_path = self.path_for(key)
        if full_path is None or not full_path.exists():
            return
        try:
            if full_path.is_file():
                full_path.unlink()
        except FileNotFoundError:
            return
        except OSError as e:
            logger.error(f"Failed to delete object {key}: {e}")
            raise UnavailableError(f"Failed to delete object {key}", e) from e

    def exists(self, key: str) -> bool:
        try:
            full_path = self.path_for(key)
            return full_path is not None and full_path.is_file()
        except OSError:
            return False
