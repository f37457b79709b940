"""
Domain Fixtures

Builders for sharing entities with sensible defaults.
"""

from datetime import timedelta
from typing import Optional

from linkdrop.domain.sharing.entities import ShareLink, SharedFile
from linkdrop.domain.sharing.value_objects import utcnow

TENANT = "tenant-a"
OWNER = "user-owner"


def build_file(
    password: Optional[str] = None,
    is_public: bool = True,
    requires_plan: Optional[str] = None,
    expires_at=None,
    max_downloads: Optional[int] = None,
    **overrides,
) -> SharedFile:
    """Create a SharedFile; extra keyword arguments overwrite attributes."""
    shared_file = SharedFile.create(
        tenant_id=TENANT,
        created_by=OWNER,
        name="Quarterly report",
        original_name="report.pdf",
        file_size=2048,
        mime_type="application/pdf",
        storage_key=f"{TENANT}/abc123.pdf",
        file_extension=".pdf",
        is_public=is_public,
        requires_plan=requires_plan,
        expires_at=expires_at,
        max_downloads=max_downloads,
        password=password,
    )
    for key, value in overrides.items():
        setattr(shared_file, key, value)
    return shared_file


def build_link(file_id: str, slug: str = "team-link", **overrides) -> ShareLink:
    link = ShareLink.create(slug=slug, file_id=file_id, created_by=OWNER)
    for key, value in overrides.items():
        setattr(link, key, value)
    return link


def past(seconds: int = 60):
    return utcnow() - timedelta(seconds=seconds)


def future(seconds: int = 3600):
    return utcnow() + timedelta(seconds=seconds)
