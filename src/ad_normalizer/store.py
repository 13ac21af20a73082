"""
Transcode status store backed by Redis.

Values are ``TranscodeInfo`` records serialized as JSON and keyed by creative
id. The store also feeds the packaging queue, a sorted set scored by enqueue
time, consumed by an external packager, and the media URL blacklist, a sorted
set scored by the time a URL was added.
"""

import json
import time
from typing import Any

import redis.asyncio as redis
from redis.exceptions import RedisError

from .exceptions import StoreError
from .log_config import get_context_logger
from .types import TranscodeInfo


logger = get_context_logger("transcode_store")

BLACKLIST_KEY = "blacklist"


class TranscodeStore:
    """
    Async key/value access to transcode status records.

    Examples:
        >>> store = TranscodeStore.from_url("redis://localhost:6379/0")
        >>> await store.set("ad123", TranscodeInfo(status=TranscodeStatus.IN_PROGRESS), ttl=3600)
        >>> info = await store.get("ad123")
    """

    def __init__(self, client: Any):
        self.client = client

    @classmethod
    def from_url(cls, redis_url: str) -> "TranscodeStore":
        client = redis.from_url(
            redis_url,
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
        )
        return cls(client)

    async def get(self, key: str) -> TranscodeInfo | None:
        """Look up a record; ``None`` when absent or undecodable.

        Raises:
            StoreError: If Redis cannot be reached
        """
        try:
            raw = await self.client.get(key)
        except RedisError as e:
            raise StoreError(f"Failed to get key {key}: {str(e)}", context={"key": key}) from e
        if not raw:
            return None
        try:
            return TranscodeInfo.from_json(raw)
        except (ValueError, TypeError, AttributeError) as e:
            logger.error("Failed to decode stored value", key=key, error=str(e))
            return None

    async def set(self, key: str, info: TranscodeInfo, ttl: int | None = None) -> None:
        """Store a record, expiring after ``ttl`` seconds when given."""
        try:
            await self.client.set(key, info.to_json(), ex=ttl if ttl and ttl > 0 else None)
        except RedisError as e:
            raise StoreError(f"Failed to set key {key}: {str(e)}", context={"key": key}) from e
        logger.debug("Stored transcode info", key=key, status=info.status.value, ttl=ttl)

    async def delete(self, key: str) -> None:
        try:
            await self.client.delete(key)
        except RedisError as e:
            raise StoreError(f"Failed to delete key {key}: {str(e)}", context={"key": key}) from e
        logger.debug("Deleted transcode info", key=key)

    async def enqueue_packaging_job(self, queue_name: str, message: dict[str, Any]) -> None:
        """Add a packaging job to the queue, scored by enqueue time in milliseconds."""
        serialized = json.dumps(message)
        try:
            await self.client.zadd(queue_name, {serialized: time.time() * 1000})
        except RedisError as e:
            raise StoreError(
                f"Failed to enqueue packaging job: {str(e)}",
                context={"queue": queue_name, "job_id": message.get("jobId")},
            ) from e

    async def blacklist(self, media_url: str) -> None:
        """Exclude a source media URL from serving and transcoding."""
        try:
            await self.client.zadd(BLACKLIST_KEY, {media_url: time.time() * 1000})
        except RedisError as e:
            raise StoreError(
                f"Failed to blacklist media URL: {str(e)}", context={"media_url": media_url}
            ) from e

    async def unblacklist(self, media_url: str) -> None:
        try:
            await self.client.zrem(BLACKLIST_KEY, media_url)
        except RedisError as e:
            raise StoreError(
                f"Failed to remove media URL from blacklist: {str(e)}",
                context={"media_url": media_url},
            ) from e

    async def in_blacklist(self, media_url: str) -> bool:
        try:
            score = await self.client.zscore(BLACKLIST_KEY, media_url)
        except RedisError as e:
            raise StoreError(
                f"Failed to check blacklist: {str(e)}", context={"media_url": media_url}
            ) from e
        return score is not None

    async def get_blacklist(self, page: int = 0, size: int = 10) -> tuple[list[str], int]:
        """Return one page of blacklisted URLs, oldest first, and the total count.

        Args:
            page: Zero-based page number.
            size: Number of entries per page.
        """
        start = page * size
        try:
            members = await self.client.zrange(BLACKLIST_KEY, start, start + size - 1)
            total = await self.client.zcard(BLACKLIST_KEY)
        except RedisError as e:
            raise StoreError(
                f"Failed to read blacklist: {str(e)}", context={"page": page, "size": size}
            ) from e
        return list(members), int(total)

    async def ping(self) -> bool:
        try:
            return bool(await self.client.ping())
        except RedisError as e:
            logger.warning("Redis not available", error=str(e))
            return False

    async def close(self) -> None:
        await self.client.aclose()


__all__ = ["TranscodeStore", "BLACKLIST_KEY"]
