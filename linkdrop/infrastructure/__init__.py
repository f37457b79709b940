"""Infrastructure layer for Redis and object storage."""

from .gcs_object_storage import GCSObjectStorage
from .local_object_storage import LocalObjectStorage
from .redis_policy_store import (
    RedisDownloadLogRepository,
    RedisFileRepository,
    RedisShareLinkRepository,
)
from .redis_repository import RedisConnectionManager, RedisRepository
from .signed_url_service import SignedUrlService

__all__ = [
    'GCSObjectStorage',
    'LocalObjectStorage',
    'RedisConnectionManager',
    'RedisDownloadLogRepository',
    'RedisFileRepository',
    'RedisRepository',
    'RedisShareLinkRepository',
    'SignedUrlService',
]
