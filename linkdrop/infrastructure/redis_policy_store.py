"""
Redis Policy Store

Redis implementations of the file, share link and download log repositories.

Key layout (before the optional prefix):
    file:{file_id}            JSON SharedFile document
    tenant_files:{tenant_id}  sorted set of file ids scored by creation time
    share:{slug}              JSON ShareLink document (written with SET NX)
    file_shares:{file_id}     sorted set of slugs scored by creation time
    downloads:{file_id}       list of JSON DownloadRecord entries

Counter updates run as Lua scripts so the limit check and the increment
happen in one atomic server-side step.
"""

import logging
from datetime import datetime
from typing import List, Optional

from ..domain.sharing.entities import DownloadRecord, ShareLink, SharedFile
from ..domain.sharing.repositories import (
    IDownloadLogRepository,
    IFileRepository,
    IShareLinkRepository,
    Reservation,
    ReservationStatus,
)
from ..domain.sharing.value_objects import format_datetime
from .redis_repository import RedisRepository

logger = logging.getLogger(__name__)


# Returns {status, count}: 0 = missing, 1 = reserved, 2 = limit reached.
# ARGV: counter field, limit field, timestamp field, timestamp, enforce flag
RESERVE_SCRIPT = """
local data = redis.call('GET', KEYS[1])
if not data then
    return {0, 0}
end

local doc = cjson.decode(data)
local count = tonumber(doc[ARGV[1]]) or 0
local limit = doc[ARGV[2]]

if ARGV[5] == '1' and limit ~= nil and limit ~= cjson.null and count >= tonumber(limit) then
    return {2, count}
end

count = count + 1
doc[ARGV[1]] = count
doc[ARGV[3]] = ARGV[4]
redis.call('SET', KEYS[1], cjson.encode(doc))
return {1, count}
"""

# Gives back one reserved slot, never going below zero. Returns the count.
RELEASE_SCRIPT = """
local data = redis.call('GET', KEYS[1])
if not data then
    return 0
end

local doc = cjson.decode(data)
local count = tonumber(doc[ARGV[1]]) or 0
if count > 0 then
    count = count - 1
    doc[ARGV[1]] = count
    redis.call('SET', KEYS[1], cjson.encode(doc))
end
return count
"""

_STATUS_BY_CODE = {
    0: ReservationStatus.NOT_FOUND,
    1: ReservationStatus.RESERVED,
    2: ReservationStatus.LIMIT_REACHED,
}


def _to_reservation(result) -> Reservation:
    code, count = int(result[0]), int(result[1])
    return Reservation(status=_STATUS_BY_CODE[code], count=count)


def _file_links_key(file_id: str) -> str:
    return f"file_shares:{file_id}"


def _download_log_key(file_id: str) -> str:
    return f"downloads:{file_id}"


class RedisFileRepository(IFileRepository):
    """Redis-backed SharedFile repository."""

    def __init__(self, redis_repo: RedisRepository):
        self.redis_repo = redis_repo

    @staticmethod
    def _file_key(file_id: str) -> str:
        return f"file:{file_id}"

    @staticmethod
    def _tenant_key(tenant_id: str) -> str:
        return f"tenant_files:{tenant_id}"

    def save(self, shared_file: SharedFile) -> None:
        self.redis_repo.set_json(self._file_key(shared_file.file_id), shared_file.to_dict())
        self.redis_repo.index_add(
            self._tenant_key(shared_file.tenant_id),
            shared_file.file_id,
            shared_file.created_at.timestamp(),
        )

    def get(self, file_id: str) -> Optional[SharedFile]:
        data = self.redis_repo.get_json(self._file_key(file_id))
        if data is None:
            return None
        return SharedFile.from_dict(data)

    def delete(self, file_id: str) -> bool:
        """
        Delete the record with its download log and slug index.

        The share:{slug} documents stay; they resolve to a missing file.
        """
        shared_file = self.get(file_id)
        if shared_file is None:
            return False
        removed = self.redis_repo.delete(self._file_key(file_id)) > 0
        self.redis_repo.delete(_download_log_key(file_id), _file_links_key(file_id))
        self.redis_repo.index_remove(self._tenant_key(shared_file.tenant_id), file_id)
        return removed

    def list_for_tenant(
        self, tenant_id: str, limit: Optional[int] = None, offset: int = 0
    ) -> List[SharedFile]:
        if limit is not None and limit <= 0:
            return []
        stop = -1 if limit is None else offset + limit - 1
        files = []
        for file_id in self.redis_repo.index_members(self._tenant_key(tenant_id), offset, stop):
            shared_file = self.get(file_id)
            if shared_file is not None:
                files.append(shared_file)
        return files

    def count_for_tenant(self, tenant_id: str) -> int:
        return self.redis_repo.index_size(self._tenant_key(tenant_id))

    def reserve_download(self, file_id: str, at: datetime) -> Reservation:
        result = self.redis_repo.eval_script(
            RESERVE_SCRIPT,
            [self._file_key(file_id)],
            ["download_count", "max_downloads", "last_download_at", format_datetime(at), "1"],
        )
        return _to_reservation(result)

    def release_download(self, file_id: str) -> int:
        result = self.redis_repo.eval_script(
            RELEASE_SCRIPT, [self._file_key(file_id)], ["download_count"]
        )
        return int(result)


class RedisShareLinkRepository(IShareLinkRepository):
    """Redis-backed ShareLink repository."""

    def __init__(self, redis_repo: RedisRepository):
        self.redis_repo = redis_repo

    @staticmethod
    def _link_key(slug: str) -> str:
        return f"share:{slug}"

    def insert_if_absent(self, link: ShareLink) -> bool:
        inserted = self.redis_repo.set_json(
            self._link_key(link.slug), link.to_dict(), only_if_absent=True
        )
        if inserted:
            self.redis_repo.index_add(
                _file_links_key(link.file_id), link.slug, link.created_at.timestamp()
            )
        return inserted

    def get(self, slug: str) -> Optional[ShareLink]:
        data = self.redis_repo.get_json(self._link_key(slug))
        if data is None:
            return None
        return ShareLink.from_dict(data)

    def exists(self, slug: str) -> bool:
        return self.redis_repo.exists(self._link_key(slug))

    def list_for_file(self, file_id: str) -> List[ShareLink]:
        links = []
        for slug in self.redis_repo.index_members(_file_links_key(file_id)):
            link = self.get(slug)
            if link is not None:
                links.append(link)
        return links

    def increment_use(self, slug: str, at: datetime, enforce_limit: bool = False) -> Reservation:
        result = self.redis_repo.eval_script(
            RESERVE_SCRIPT,
            [self._link_key(slug)],
            [
                "use_count",
                "max_uses",
                "last_used_at",
                format_datetime(at),
                "1" if enforce_limit else "0",
            ],
        )
        return _to_reservation(result)


class RedisDownloadLogRepository(IDownloadLogRepository):
    """Redis list-backed append-only download log."""

    def __init__(self, redis_repo: RedisRepository):
        self.redis_repo = redis_repo

    def append(self, record: DownloadRecord) -> None:
        self.redis_repo.list_append(_download_log_key(record.file_id), record.to_dict())

    def recent(self, file_id: str, limit: int = 10) -> List[DownloadRecord]:
        return [
            DownloadRecord.from_dict(data)
            for data in self.redis_repo.list_tail(_download_log_key(file_id), limit)
        ]

    def count(self, file_id: str) -> int:
        return self.redis_repo.list_length(_download_log_key(file_id))
