"""
Sharing Domain

Files, share links, access policy and slug allocation.
"""

from .entities import DownloadRecord, ShareLink, SharedFile
from .policy import AccessPolicyEvaluator
from .repositories import (
    IDownloadLogRepository,
    IFileRepository,
    IShareLinkRepository,
    Reservation,
    ReservationStatus,
)
from .services import ShareLinkManager, SlugAllocator
from .storage_repository import IObjectStorage
from .value_objects import (
    AccessContext,
    AccessDecision,
    DeliveryMethod,
    DenyReason,
    Slug,
)

__all__ = [
    "AccessContext",
    "AccessDecision",
    "AccessPolicyEvaluator",
    "DeliveryMethod",
    "DenyReason",
    "DownloadRecord",
    "IDownloadLogRepository",
    "IFileRepository",
    "IObjectStorage",
    "IShareLinkRepository",
    "Reservation",
    "ReservationStatus",
    "ShareLink",
    "SharedFile",
    "ShareLinkManager",
    "Slug",
    "SlugAllocator",
]
