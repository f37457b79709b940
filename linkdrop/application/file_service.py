"""
File Service

Application service for the owner side of sharing: upload, details, listing
and deletion of files.
"""

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime
from io import BytesIO
from typing import Any, BinaryIO, Dict, List, Optional, Union

from ..domain.errors import InvalidRequestError, NotFoundError, UnavailableError
from ..domain.events import FileDeletedEvent, FileUploadedEvent
from ..domain.sharing.entities import SharedFile
from ..domain.sharing.repositories import (
    IDownloadLogRepository,
    IFileRepository,
    IShareLinkRepository,
)
from ..domain.sharing.storage_repository import IObjectStorage
from ..domain.sharing.validation import (
    DEFAULT_MAX_UPLOAD_BYTES,
    AnyFileType,
    FileTypePolicy,
    get_file_extension,
    validate_upload,
)
from ..domain.sharing.value_objects import utcnow
from .event_publisher import EventPublisher

logger = logging.getLogger(__name__)

RECENT_DOWNLOADS_LIMIT = 10
DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100
DEFAULT_PREVIEW_TTL_SECONDS = 3600


@dataclass(frozen=True)
class FilePage:
    """One page of a tenant's files, newest first."""

    files: List[SharedFile]
    total: int
    limit: int
    offset: int

    @property
    def has_more(self) -> bool:
        return self.offset + self.limit < self.total

    def pagination(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "limit": self.limit,
            "offset": self.offset,
            "has_more": self.has_more,
        }


class FileService:
    """
    Application service for file lifecycle operations.

    Bytes go to object storage before the record is written, and on delete
    the object goes before the record, so a stored record always points at
    existing bytes.
    """

    def __init__(
        self,
        file_repository: IFileRepository,
        link_repository: IShareLinkRepository,
        download_log: IDownloadLogRepository,
        object_storage: IObjectStorage,
        event_publisher: Optional[EventPublisher] = None,
        max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES,
        type_policy: FileTypePolicy = AnyFileType(),
        preview_ttl_seconds: int = DEFAULT_PREVIEW_TTL_SECONDS,
    ):
        self.file_repo = file_repository
        self.link_repo = link_repository
        self.download_log = download_log
        self.object_storage = object_storage
        self.event_publisher = event_publisher
        self.max_upload_bytes = max_upload_bytes
        self.type_policy = type_policy
        self.preview_ttl_seconds = preview_ttl_seconds

    def upload(
        self,
        tenant_id: str,
        created_by: str,
        content: Union[bytes, BinaryIO],
        filename: str,
        content_type: str,
        size: int,
        name: Optional[str] = None,
        description: Optional[str] = None,
        is_public: bool = True,
        requires_plan: Optional[str] = None,
        expires_at: Optional[datetime] = None,
        max_downloads: Optional[int] = None,
        password: Optional[str] = None,
    ) -> SharedFile:
        """
        Store an uploaded file and create its record.

        Args:
            tenant_id: Owning tenant
            created_by: Uploader identity
            content: File bytes or binary stream
            filename: Original filename
            content_type: Declared MIME type
            size: Size in bytes
            name: Display name (defaults to the filename)
            password: Optional plaintext password, stored hashed

        Returns:
            The persisted SharedFile

        Raises:
            FileValidationError: If the upload fails validation
            InvalidRequestError: If max_downloads is not positive
            UnavailableError: If storage or the policy store fails
        """
        if max_downloads is not None and max_downloads < 1:
            raise InvalidRequestError(
                f"max_downloads must be at least 1, got {max_downloads}"
            )

        validate_upload(
            filename, size, content_type,
            max_size=self.max_upload_bytes,
            type_policy=self.type_policy,
        )

        extension = get_file_extension(filename)
        storage_key = f"{tenant_id}/{secrets.token_urlsafe(16)}{extension}"
        if isinstance(content, bytes):
            content = BytesIO(content)
        self.object_storage.put_object(
            content, content_type or "application/octet-stream", storage_key
        )

        shared_file = SharedFile.create(
            tenant_id=tenant_id,
            created_by=created_by,
            name=name,
            original_name=filename,
            file_size=size,
            mime_type=content_type or "application/octet-stream",
            storage_key=storage_key,
            file_extension=extension,
            description=description,
            is_public=is_public,
            requires_plan=requires_plan,
            expires_at=expires_at,
            max_downloads=max_downloads,
            password=password,
        )

        try:
            self.file_repo.save(shared_file)
        except UnavailableError:
            # Do not leave orphaned bytes behind a record that was never written
            self._delete_object_quietly(storage_key)
            raise

        logger.info(f"Uploaded file {shared_file.file_id} for tenant {tenant_id}")
        self._publish(FileUploadedEvent(
            aggregate_id=shared_file.file_id,
            occurred_at=shared_file.created_at,
            tenant_id=tenant_id,
            name=shared_file.name,
            file_size=size,
        ))
        return shared_file

    def get_details(self, file_id: str, tenant_id: Optional[str] = None) -> Dict[str, Any]:
        """
        Get the caller-facing view of a file.

        Owners also see the recent download log and counts.

        Raises:
            NotFoundError: If the file is missing or not visible to the tenant
        """
        shared_file = self.file_repo.get(file_id)
        if shared_file is None or not shared_file.is_visible_to(tenant_id):
            raise NotFoundError(f"File not found: {file_id}")

        details = shared_file.to_public_dict()
        if tenant_id is not None and tenant_id == shared_file.tenant_id:
            details["recent_downloads"] = [
                record.to_dict()
                for record in self.download_log.recent(file_id, RECENT_DOWNLOADS_LIMIT)
            ]
            details["download_log_count"] = self.download_log.count(file_id)
            details["share_link_count"] = len(self.link_repo.list_for_file(file_id))
        return details

    def list_files(
        self, tenant_id: str, limit: int = DEFAULT_PAGE_SIZE, offset: int = 0
    ) -> FilePage:
        """
        List one page of the tenant's files, newest first.

        Raises:
            InvalidRequestError: If limit is outside 1..100 or offset is negative
        """
        if not 1 <= limit <= MAX_PAGE_SIZE:
            raise InvalidRequestError(f"limit must be between 1 and {MAX_PAGE_SIZE}, got {limit}")
        if offset < 0:
            raise InvalidRequestError(f"offset must not be negative, got {offset}")

        files = self.file_repo.list_for_tenant(tenant_id, limit=limit, offset=offset)
        total = self.file_repo.count_for_tenant(tenant_id)
        return FilePage(files=files, total=total, limit=limit, offset=offset)

    def preview_url(self, file_id: str, tenant_id: Optional[str]) -> str:
        """
        Signed URL letting the owner view a file.

        Bypasses the access policy and leaves the download counter and log
        untouched.

        Raises:
            NotFoundError: If the file is missing or owned by another tenant
            UnavailableError: If storage cannot sign the URL
        """
        shared_file = self.file_repo.get(file_id)
        if shared_file is None or tenant_id is None or shared_file.tenant_id != tenant_id:
            raise NotFoundError(f"File not found: {file_id}")

        logger.debug(f"Issuing preview URL for file {file_id}")
        return self.object_storage.generate_signed_url(
            shared_file.storage_key, self.preview_ttl_seconds
        )

    def delete_file(self, file_id: str, tenant_id: Optional[str] = None) -> None:
        """
        Delete a file: storage object first, then the record.

        Share links of the file are left in place and resolve to NotFound.

        Raises:
            NotFoundError: If the file is missing or owned by another tenant
            UnavailableError: If the object could not be deleted (the record stays)
        """
        shared_file = self.file_repo.get(file_id)
        if shared_file is None or (tenant_id is not None and shared_file.tenant_id != tenant_id):
            raise NotFoundError(f"File not found: {file_id}")

        self.object_storage.delete(shared_file.storage_key)
        self.file_repo.delete(file_id)

        logger.info(f"Deleted file {file_id}")
        self._publish(FileDeletedEvent(
            aggregate_id=file_id,
            occurred_at=utcnow(),
            tenant_id=shared_file.tenant_id,
        ))

    def _delete_object_quietly(self, storage_key: str) -> None:
        try:
            self.object_storage.delete(storage_key)
        except UnavailableError as e:
            logger.error(f"Failed to remove orphaned object {storage_key}: {e}")

    def _publish(self, event) -> None:
        if self.event_publisher:
            self.event_publisher.publish(event)
