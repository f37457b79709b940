"""
Google Cloud Storage Object Storage Implementation

Concrete implementation of IObjectStorage for Google Cloud Storage, using the
google-cloud-storage library and v4 signed URLs.
"""

import logging
from datetime import timedelta
from typing import BinaryIO, Optional

from google.cloud import storage
from google.cloud.exceptions import NotFound

from ..domain.errors import UnavailableError
from ..domain.sharing.storage_repository import IObjectStorage

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 60


class GCSObjectStorage(IObjectStorage):
    """
    Google Cloud Storage implementation of IObjectStorage.

    Thread Safety:
        The GCS client handles concurrent operations safely.

    Attributes:
        bucket_name: Name of the GCS bucket for object storage
        client: Google Cloud Storage client instance
        bucket: GCS bucket object
        timeout: Per-request timeout in seconds
    """

    def __init__(
        self,
        bucket_name: str,
        client: Optional[storage.Client] = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        """
        Initialize the GCS object storage.

        Args:
            bucket_name: Name of the GCS bucket to use
            client: Pre-built client (default credentials when omitted)
            timeout: Per-request timeout in seconds

        Raises:
            ValueError: If bucket_name is empty
        """
        if not bucket_name or not bucket_name.strip():
            raise ValueError("bucket_name cannot be empty")

        self.bucket_name = bucket_name
        self.client = client or storage.Client()
        self.bucket = self.client.bucket(bucket_name)
        self.timeout = timeout

    def put_object(self, content: BinaryIO, content_type: str, key: str) -> str:
        if not key or not key.strip():
            raise ValueError("key cannot be empty")

        try:
            blob = self.bucket.blob(key)
            if hasattr(content, "seek"):
                content.seek(0)
            blob.upload_from_file(content, content_type=content_type, timeout=self.timeout)
        except Exception as e:
            logger.error(f"Failed to upload {key} to gs://{self.bucket_name}: {e}")
            raise UnavailableError(f"Failed to store object {key}", e) from e

        return key

    def generate_signed_url(self, key: str, ttl_seconds: int = 3600) -> str:
        """
        Generate a v4 signed GET URL.

        Signing is local to the credentials, so no request is made and the
        object's existence is not checked.
        """
        try:
            blob = self.bucket.blob(key)
            return blob.generate_signed_url(
                version="v4",
                expiration=timedelta(seconds=ttl_seconds),
                method="GET",
            )
        except Exception as e:
            logger.error(f"Failed to sign URL for {key}: {e}")
            raise UnavailableError(f"Failed to generate signed URL for {key}", e) from e

    def delete(self, key: str) -> None:
        if not key or not key.strip():
            return
        try:
            self.bucket.blob(key).delete(timeout=self.timeout)
        except NotFound:
            # Already gone
            return
        except Exception as e:
            logger.error(f"Failed to delete gs://{self.bucket_name}/{key}: {e}")
            raise UnavailableError(f"Failed to delete object {key}", e) from e

    def exists(self, key: str) -> bool:
        try:
            if not key or not key.strip():
                return False
            return self.bucket.blob(key).exists(timeout=self.timeout)
        except Exception:
            return False
