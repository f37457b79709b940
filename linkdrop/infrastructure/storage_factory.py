"""
Storage Factory

Factory for creating the object storage implementation. The application layer
stays decoupled from the concrete backend through IObjectStorage.
"""

import logging
from typing import Optional

from ..config.storage_config import StorageConfig, create_gcs_client
from ..domain.sharing.storage_repository import IObjectStorage
from .gcs_object_storage import GCSObjectStorage
from .local_object_storage import LocalObjectStorage
from .signed_url_service import SignedUrlService

logger = logging.getLogger(__name__)


class StorageFactory:
    """Factory that picks GCS or local filesystem object storage."""

    @staticmethod
    def create_storage(
        config: Optional[StorageConfig] = None,
        public_base_url: Optional[str] = None,
    ) -> IObjectStorage:
        """
        Create the object storage for the current environment.

        Args:
            config: Storage configuration, read from the environment if None
            public_base_url: Base address used for local signed blob URLs

        Returns:
            GCSObjectStorage when GCS_BUCKET_NAME is set, LocalObjectStorage otherwise

        Raises:
            RuntimeError: If the selected backend cannot be initialized
        """
        if config is None:
            config = StorageConfig()

        if config.use_gcs:
            return StorageFactory._create_gcs_storage(config)
        return StorageFactory._create_local_storage(config, public_base_url)

    @staticmethod
    def _create_gcs_storage(config: StorageConfig) -> IObjectStorage:
        try:
            storage = GCSObjectStorage(
                config.gcs_bucket_name,
                client=create_gcs_client(config),
                timeout=config.gcs_timeout,
            )
        except Exception as e:
            raise RuntimeError(f"Failed to initialize GCS storage: {e}") from e
        logger.info(f"Storage factory: using GCS bucket {config.gcs_bucket_name}")
        return storage

    @staticmethod
    def _create_local_storage(
        config: StorageConfig, public_base_url: Optional[str]
    ) -> IObjectStorage:
        try:
            signer = SignedUrlService(config.secret_key, public_base_url)
            storage = LocalObjectStorage(config.storage_dir, signer)
        except OSError as e:
            raise RuntimeError(f"Failed to initialize local storage: {e}") from e
        logger.info(f"Storage factory: using local filesystem storage at {config.storage_dir}")
        return storage
