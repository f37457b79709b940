"""
Object Storage Configuration

Selects and configures the object storage backend: Google Cloud Storage when
GCS_BUCKET_NAME is set, the local filesystem otherwise.
"""

import logging
import os
from typing import Optional

from google.cloud import storage
from google.oauth2 import service_account

logger = logging.getLogger(__name__)


class StorageConfig:
    """Object storage configuration settings."""

    def __init__(self):
        self.gcs_bucket_name = os.getenv("GCS_BUCKET_NAME") or None
        self.gcs_timeout = float(os.getenv("GCS_TIMEOUT_SECONDS", 60))
        self.credentials_path = os.getenv("GOOGLE_APPLICATION_CREDENTIALS")
        self.storage_dir = os.getenv("STORAGE_DIR", "/tmp/linkdrop")
        self.secret_key = os.getenv("SECRET_KEY")

    @property
    def use_gcs(self) -> bool:
        return bool(self.gcs_bucket_name)


def create_gcs_client(config: StorageConfig) -> storage.Client:
    """
    Create a GCS client.

    Uses the service account file named by GOOGLE_APPLICATION_CREDENTIALS when
    it exists, default credentials otherwise.
    """
    credentials_path: Optional[str] = config.credentials_path
    if credentials_path and os.path.exists(credentials_path):
        credentials = service_account.Credentials.from_service_account_file(credentials_path)
        logger.info(f"GCS client initialized with service account: {credentials_path}")
        return storage.Client(credentials=credentials, project=credentials.project_id)

    logger.info("GCS client initialized with default credentials")
    return storage.Client()
