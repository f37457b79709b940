import os

import pytest
import redis

from linkdrop.infrastructure.redis_policy_store import (
    RedisDownloadLogRepository,
    RedisFileRepository,
    RedisShareLinkRepository,
)
from linkdrop.infrastructure.redis_repository import RedisRepository


@pytest.fixture
def redis_client():
    """
    Yields a clean Redis client for integration testing.

    Uses a dedicated database (REDIS_TEST_DB, default 15) that is flushed
    before and after each test.
    """
    host = os.getenv("REDIS_HOST", "localhost")
    port = int(os.getenv("REDIS_PORT", 6379))
    db = int(os.getenv("REDIS_TEST_DB", 15))

    client = redis.Redis(host=host, port=port, db=db, socket_connect_timeout=1)

    try:
        client.ping()
    except redis.RedisError:
        pytest.skip("Redis service not available. Skipping integration tests.")

    client.flushdb()

    yield client

    client.flushdb()
    client.close()


@pytest.fixture
def redis_repo(redis_client):
    return RedisRepository(redis_client, "linkdrop-test")


@pytest.fixture
def redis_file_repo(redis_repo):
    return RedisFileRepository(redis_repo)


@pytest.fixture
def redis_link_repo(redis_repo):
    return RedisShareLinkRepository(redis_repo)


@pytest.fixture
def redis_download_log(redis_repo):
    return RedisDownloadLogRepository(redis_repo)
