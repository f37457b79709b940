"""
Sharing Repositories

Repository interfaces for the policy store (files, share links, download log).
Concrete implementations are in the infrastructure layer.

Every method may raise UnavailableError when the backing store cannot be
reached; "not found" is reported through return values, never exceptions.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import List, Optional

from .entities import DownloadRecord, ShareLink, SharedFile


class ReservationStatus(Enum):
    """Outcome of an atomic counter reservation."""

    RESERVED = "reserved"
    NOT_FOUND = "not_found"
    LIMIT_REACHED = "limit_reached"


@dataclass(frozen=True)
class Reservation:
    """
    Result of a conditional atomic increment.

    ``count`` is the counter value after the operation (unchanged when the
    reservation was refused, 0 when the record does not exist).
    """
    status: ReservationStatus
    count: int = 0

    @property
    def reserved(self) -> bool:
        return self.status is ReservationStatus.RESERVED


class IFileRepository(ABC):
    """Abstract repository interface for SharedFile persistence."""

    @abstractmethod
    def save(self, shared_file: SharedFile) -> None:
        """
        Insert or replace a file record.

        Args:
            shared_file: SharedFile to persist
        """
        ...

    @abstractmethod
    def get(self, file_id: str) -> Optional[SharedFile]:
        """
        Retrieve a file record.

        Args:
            file_id: File identifier

        Returns:
            SharedFile if found, None otherwise
        """
        ...

    @abstractmethod
    def delete(self, file_id: str) -> bool:
        """
        Delete a file record.

        Args:
            file_id: File identifier

        Returns:
            True if a record was removed
        """
        ...

    @abstractmethod
    def list_for_tenant(
        self, tenant_id: str, limit: Optional[int] = None, offset: int = 0
    ) -> List[SharedFile]:
        """
        Return one page of the tenant's files, newest first.

        Args:
            tenant_id: Owning tenant
            limit: Page size (None for every remaining file)
            offset: Number of newest files to skip
        """
        ...

    @abstractmethod
    def count_for_tenant(self, tenant_id: str) -> int:
        """Return how many files the tenant owns."""
        ...

    @abstractmethod
    def reserve_download(self, file_id: str, at: datetime) -> Reservation:
        """
        Atomically check the download quota and take one slot.

        In one store-side operation: if the record is missing report
        NOT_FOUND; if ``max_downloads`` is set and already reached report
        LIMIT_REACHED; otherwise increment ``download_count`` and set
        ``last_download_at``.

        Args:
            file_id: File identifier
            at: Timestamp recorded as last_download_at

        Returns:
            Reservation with the resulting counter value
        """
        ...

    @abstractmethod
    def release_download(self, file_id: str) -> int:
        """
        Atomically give back a slot taken by ``reserve_download``.

        Never decrements below zero.

        Returns:
            Counter value after the release (0 if the record is gone)
        """
        ...


class IShareLinkRepository(ABC):
    """Abstract repository interface for ShareLink persistence."""

    @abstractmethod
    def insert_if_absent(self, link: ShareLink) -> bool:
        """
        Insert a share link unless its slug is already taken.

        Args:
            link: ShareLink to insert

        Returns:
            True if inserted, False on slug collision
        """
        ...

    @abstractmethod
    def get(self, slug: str) -> Optional[ShareLink]:
        """Retrieve a share link by slug."""
        ...

    @abstractmethod
    def exists(self, slug: str) -> bool:
        """Check whether a slug is taken."""
        ...

    @abstractmethod
    def list_for_file(self, file_id: str) -> List[ShareLink]:
        """Return the share links created for a file, newest first."""
        ...

    @abstractmethod
    def increment_use(self, slug: str, at: datetime, enforce_limit: bool = False) -> Reservation:
        """
        Atomically increment ``use_count`` and set ``last_used_at``.

        Args:
            slug: Share link slug
            at: Timestamp recorded as last_used_at
            enforce_limit: Refuse with LIMIT_REACHED when ``max_uses`` is set
                and already reached

        Returns:
            Reservation with the resulting use count
        """
        ...


class IDownloadLogRepository(ABC):
    """Abstract repository interface for the append-only download log."""

    @abstractmethod
    def append(self, record: DownloadRecord) -> None:
        """Append one download record."""
        ...

    @abstractmethod
    def recent(self, file_id: str, limit: int = 10) -> List[DownloadRecord]:
        """Return the most recent records for a file, newest first."""
        ...

    @abstractmethod
    def count(self, file_id: str) -> int:
        """Return how many records exist for a file."""
        ...
