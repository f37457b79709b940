"""
Sharing Entities

Domain entities for uploaded files, share links and the download log.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

from werkzeug.security import check_password_hash, generate_password_hash

from .value_objects import (
    DeliveryMethod,
    ensure_utc,
    format_datetime,
    parse_datetime,
    utcnow,
)


def _new_id() -> str:
    return uuid.uuid4().hex


@dataclass
class SharedFile:
    """
    Entity representing one uploaded object and its access policy.

    The storage key is an opaque handle into object storage and never leaves
    the service; ``to_public_dict`` omits it along with the password hash.
    """
    file_id: str
    tenant_id: str
    created_by: str
    name: str
    original_name: str
    file_size: int
    mime_type: str
    storage_key: str
    file_extension: str = ""
    description: Optional[str] = None
    is_public: bool = True
    requires_plan: Optional[str] = None
    expires_at: Optional[datetime] = None
    max_downloads: Optional[int] = None
    password_hash: Optional[str] = None
    download_count: int = 0
    last_download_at: Optional[datetime] = None
    created_at: datetime = field(default_factory=utcnow)

    def __post_init__(self):
        if self.file_size < 0:
            raise ValueError(f"file_size must be non-negative, got {self.file_size}")
        self.expires_at = ensure_utc(self.expires_at)
        self.last_download_at = ensure_utc(self.last_download_at)
        self.created_at = ensure_utc(self.created_at)

    @classmethod
    def create(
        cls,
        tenant_id: str,
        created_by: str,
        name: str,
        original_name: str,
        file_size: int,
        mime_type: str,
        storage_key: str,
        file_extension: str = "",
        description: Optional[str] = None,
        is_public: bool = True,
        requires_plan: Optional[str] = None,
        expires_at: Optional[datetime] = None,
        max_downloads: Optional[int] = None,
        password: Optional[str] = None,
    ) -> 'SharedFile':
        """
        Factory method for a freshly uploaded file.

        Args:
            password: Optional plaintext password; only its salted hash is kept

        Returns:
            New SharedFile with a generated id and zeroed counters
        """
        shared_file = cls(
            file_id=_new_id(),
            tenant_id=tenant_id,
            created_by=created_by,
            name=name or original_name,
            original_name=original_name,
            file_size=file_size,
            mime_type=mime_type,
            storage_key=storage_key,
            file_extension=file_extension,
            description=description or None,
            is_public=is_public,
            requires_plan=requires_plan or None,
            expires_at=expires_at,
            max_downloads=max_downloads,
        )
        if password:
            shared_file.set_password(password)
        return shared_file

    def set_password(self, password: str) -> None:
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        if not self.password_hash:
            return True
        return check_password_hash(self.password_hash, password)

    @property
    def has_password(self) -> bool:
        return bool(self.password_hash)

    def is_expired(self, now: datetime) -> bool:
        """True once the expiration timestamp lies strictly in the past."""
        return self.expires_at is not None and self.expires_at < now

    def quota_reached(self) -> bool:
        return self.max_downloads is not None and self.download_count >= self.max_downloads

    def remaining_downloads(self) -> Optional[int]:
        if self.max_downloads is None:
            return None
        return max(0, self.max_downloads - self.download_count)

    def is_visible_to(self, tenant_id: Optional[str]) -> bool:
        """Public files are visible to everyone, private ones to their tenant."""
        return self.is_public or (tenant_id is not None and tenant_id == self.tenant_id)

    def to_summary_dict(self) -> Dict[str, Any]:
        """Minimal metadata returned alongside a retrieval URL."""
        return {
            "id": self.file_id,
            "name": self.name,
            "original_name": self.original_name,
            "size": self.file_size,
            "type": self.mime_type,
        }

    def to_public_dict(self) -> Dict[str, Any]:
        """Caller-facing view (no storage key, no password hash)."""
        return {
            "id": self.file_id,
            "name": self.name,
            "description": self.description,
            "original_name": self.original_name,
            "file_extension": self.file_extension,
            "size": self.file_size,
            "type": self.mime_type,
            "is_public": self.is_public,
            "requires_plan": self.requires_plan,
            "expires_at": format_datetime(self.expires_at),
            "max_downloads": self.max_downloads,
            "download_count": self.download_count,
            "last_download_at": format_datetime(self.last_download_at),
            "has_password": self.has_password,
            "created_by": self.created_by,
            "created_at": format_datetime(self.created_at),
        }

    def to_dict(self) -> dict:
        """Convert to dictionary for persistence."""
        return {
            "file_id": self.file_id,
            "tenant_id": self.tenant_id,
            "created_by": self.created_by,
            "name": self.name,
            "original_name": self.original_name,
            "file_size": self.file_size,
            "mime_type": self.mime_type,
            "storage_key": self.storage_key,
            "file_extension": self.file_extension,
            "description": self.description,
            "is_public": self.is_public,
            "requires_plan": self.requires_plan,
            "expires_at": format_datetime(self.expires_at),
            "max_downloads": self.max_downloads,
            "password_hash": self.password_hash,
            "download_count": self.download_count,
            "last_download_at": format_datetime(self.last_download_at),
            "created_at": format_datetime(self.created_at),
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'SharedFile':
        """Create SharedFile from dictionary."""
        return cls(
            file_id=data["file_id"],
            tenant_id=data["tenant_id"],
            created_by=data["created_by"],
            name=data["name"],
            original_name=data["original_name"],
            file_size=int(data["file_size"]),
            mime_type=data["mime_type"],
            storage_key=data["storage_key"],
            file_extension=data.get("file_extension") or "",
            description=data.get("description"),
            is_public=bool(data.get("is_public", True)),
            requires_plan=data.get("requires_plan"),
            expires_at=parse_datetime(data.get("expires_at")),
            max_downloads=_optional_int(data.get("max_downloads")),
            password_hash=data.get("password_hash"),
            download_count=int(data.get("download_count") or 0),
            last_download_at=parse_datetime(data.get("last_download_at")),
            created_at=parse_datetime(data["created_at"]),
        )


@dataclass
class ShareLink:
    """
    Entity representing one distribution channel for a file.

    The slug is the public lookup key; the link refers to, but does not own,
    its file.
    """
    link_id: str
    slug: str
    file_id: str
    created_by: str
    expires_at: Optional[datetime] = None
    max_uses: Optional[int] = None
    use_count: int = 0
    last_used_at: Optional[datetime] = None
    created_at: datetime = field(default_factory=utcnow)

    def __post_init__(self):
        self.expires_at = ensure_utc(self.expires_at)
        self.last_used_at = ensure_utc(self.last_used_at)
        self.created_at = ensure_utc(self.created_at)

    @classmethod
    def create(
        cls,
        slug: str,
        file_id: str,
        created_by: str,
        expires_at: Optional[datetime] = None,
        max_uses: Optional[int] = None,
    ) -> 'ShareLink':
        return cls(
            link_id=_new_id(),
            slug=slug,
            file_id=file_id,
            created_by=created_by,
            expires_at=expires_at,
            max_uses=max_uses,
        )

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and self.expires_at < now

    def quota_reached(self) -> bool:
        return self.max_uses is not None and self.use_count >= self.max_uses

    def build_url(self, base_url: str) -> str:
        """
        Build the caller-facing URL for this link.

        Args:
            base_url: Public base address of the download page

        Returns:
            '{base_url}/download/{slug}'
        """
        return f"{base_url.rstrip('/')}/download/{self.slug}"

    def to_public_dict(self, base_url: Optional[str] = None) -> Dict[str, Any]:
        data = {
            "id": self.link_id,
            "slug": self.slug,
            "file_id": self.file_id,
            "created_by": self.created_by,
            "expires_at": format_datetime(self.expires_at),
            "max_uses": self.max_uses,
            "use_count": self.use_count,
            "last_used_at": format_datetime(self.last_used_at),
            "created_at": format_datetime(self.created_at),
        }
        if base_url is not None:
            data["url"] = self.build_url(base_url)
        return data

    def to_dict(self) -> dict:
        """Convert to dictionary for persistence."""
        return {
            "link_id": self.link_id,
            "slug": self.slug,
            "file_id": self.file_id,
            "created_by": self.created_by,
            "expires_at": format_datetime(self.expires_at),
            "max_uses": self.max_uses,
            "use_count": self.use_count,
            "last_used_at": format_datetime(self.last_used_at),
            "created_at": format_datetime(self.created_at),
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'ShareLink':
        return cls(
            link_id=data["link_id"],
            slug=data["slug"],
            file_id=data["file_id"],
            created_by=data["created_by"],
            expires_at=parse_datetime(data.get("expires_at")),
            max_uses=_optional_int(data.get("max_uses")),
            use_count=int(data.get("use_count") or 0),
            last_used_at=parse_datetime(data.get("last_used_at")),
            created_at=parse_datetime(data["created_at"]),
        )


@dataclass(frozen=True)
class DownloadRecord:
    """Append-only log entry for one delivery."""
    record_id: str
    file_id: str
    method: DeliveryMethod
    completed: bool = True
    caller_id: Optional[str] = None
    slug: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    country: Optional[str] = None
    city: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)

    @classmethod
    def create(cls, file_id: str, method: DeliveryMethod, **kwargs) -> 'DownloadRecord':
        return cls(record_id=_new_id(), file_id=file_id, method=method, **kwargs)

    def to_dict(self) -> dict:
        return {
            "record_id": self.record_id,
            "file_id": self.file_id,
            "method": self.method.value,
            "completed": self.completed,
            "caller_id": self.caller_id,
            "slug": self.slug,
            "ip_address": self.ip_address,
            "user_agent": self.user_agent,
            "country": self.country,
            "city": self.city,
            "created_at": format_datetime(self.created_at),
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'DownloadRecord':
        return cls(
            record_id=data["record_id"],
            file_id=data["file_id"],
            method=DeliveryMethod(data["method"]),
            completed=bool(data.get("completed", True)),
            caller_id=data.get("caller_id"),
            slug=data.get("slug"),
            ip_address=data.get("ip_address"),
            user_agent=data.get("user_agent"),
            country=data.get("country"),
            city=data.get("city"),
            created_at=parse_datetime(data["created_at"]),
        )


def _optional_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    return int(value)
