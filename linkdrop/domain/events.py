"""
Domain Events

Immutable records of significant state changes in the domain.
Events decouple side effects (logging, auditing) from core business logic.
"""

from abc import ABC
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class DomainEvent(ABC):
    """
    Base class for all domain events.

    Attributes:
        aggregate_id: ID of the aggregate that generated the event (file id or slug)
        occurred_at: Timestamp when the event occurred
    """
    aggregate_id: str
    occurred_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert event to dictionary for serialization.

        Returns:
            Dictionary representation of the event
        """
        return {
            "event_type": self.__class__.__name__,
            "aggregate_id": self.aggregate_id,
            "occurred_at": self.occurred_at.isoformat(),
        }


@dataclass(frozen=True)
class FileUploadedEvent(DomainEvent):
    """
    Event emitted when an upload has been stored and recorded.

    Attributes:
        aggregate_id: File ID
        tenant_id: Owning tenant
        name: Display name
        file_size: Size in bytes
    """
    tenant_id: str
    name: str
    file_size: int

    def to_dict(self) -> Dict[str, Any]:
        base_dict = super().to_dict()
        base_dict.update({
            "tenant_id": self.tenant_id,
            "name": self.name,
            "file_size": self.file_size,
        })
        return base_dict


@dataclass(frozen=True)
class FileDeletedEvent(DomainEvent):
    """
    Event emitted when a file's object and record have been removed.

    Attributes:
        aggregate_id: File ID
        tenant_id: Owning tenant
    """
    tenant_id: str

    def to_dict(self) -> Dict[str, Any]:
        base_dict = super().to_dict()
        base_dict["tenant_id"] = self.tenant_id
        return base_dict


@dataclass(frozen=True)
class ShareLinkCreatedEvent(DomainEvent):
    """
    Event emitted when a share link is created.

    Attributes:
        aggregate_id: Slug
        file_id: File the link points to
        created_by: Creator identity
        custom_slug: Whether the caller chose the slug
    """
    file_id: str
    created_by: str
    custom_slug: bool

    def to_dict(self) -> Dict[str, Any]:
        base_dict = super().to_dict()
        base_dict.update({
            "file_id": self.file_id,
            "created_by": self.created_by,
            "custom_slug": self.custom_slug,
        })
        return base_dict


@dataclass(frozen=True)
class ShareLinkUsedEvent(DomainEvent):
    """
    Event emitted when a share link's use counter advances.

    Attributes:
        aggregate_id: Slug
        use_count: Counter value after the increment
    """
    use_count: int

    def to_dict(self) -> Dict[str, Any]:
        base_dict = super().to_dict()
        base_dict["use_count"] = self.use_count
        return base_dict


@dataclass(frozen=True)
class DownloadAuthorizedEvent(DomainEvent):
    """
    Event emitted when a delivery has been authorized and recorded.

    Attributes:
        aggregate_id: File ID
        method: Delivery method value ('direct' or 'share_link')
        download_count: File download counter after the reservation
        slug: Share link slug for link-based access
        caller_id: Caller identity, if known
    """
    method: str
    download_count: int
    slug: Optional[str] = None
    caller_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        base_dict = super().to_dict()
        base_dict.update({
            "method": self.method,
            "download_count": self.download_count,
            "slug": self.slug,
            "caller_id": self.caller_id,
        })
        return base_dict


@dataclass(frozen=True)
class AccessDeniedEvent(DomainEvent):
    """
    Event emitted when an access attempt is denied by policy.

    Denials are business outcomes, not system errors.

    Attributes:
        aggregate_id: File ID (or slug when the file could not be resolved)
        reason: DenyReason value
        scope: 'file' or 'link'
        method: Delivery method value
        slug: Share link slug for link-based access
    """
    reason: str
    scope: str
    method: str
    slug: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        base_dict = super().to_dict()
        base_dict.update({
            "reason": self.reason,
            "scope": self.scope,
            "method": self.method,
            "slug": self.slug,
        })
        return base_dict
