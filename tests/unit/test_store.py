"""Unit tests for the Redis transcode status store."""

import json

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from ad_normalizer.exceptions import StoreError
from ad_normalizer.store import BLACKLIST_KEY
from ad_normalizer.types import TranscodeInfo, TranscodeStatus


class TestTranscodeStore:
    """Test suite for TranscodeStore."""

    @pytest.mark.asyncio
    async def test_get_absent_key(self, store, redis_client):
        """Test an absent key reads as None."""
        assert await store.get("ad123") is None
        redis_client.get.assert_awaited_once_with("ad123")

    @pytest.mark.asyncio
    async def test_get_decodes_record(self, store, redis_client):
        """Test stored JSON decodes into TranscodeInfo."""
        redis_client.get.return_value = json.dumps(
            {
                "url": "https://assets.example.com/ad123/index.m3u8",
                "aspectRatio": "16:9",
                "framerates": [25.0, 50.0],
                "status": "COMPLETED",
            }
        )

        info = await store.get("ad123")

        assert info == TranscodeInfo(
            url="https://assets.example.com/ad123/index.m3u8",
            aspect_ratio="16:9",
            framerates=[25.0, 50.0],
            status=TranscodeStatus.COMPLETED,
        )

    @pytest.mark.asyncio
    async def test_get_unknown_status(self, store, redis_client):
        """Test unrecognised statuses decode as UNKNOWN."""
        redis_client.get.return_value = '{"url": "", "status": "SOMETHING_NEW"}'
        info = await store.get("ad123")
        assert info.status == TranscodeStatus.UNKNOWN

    @pytest.mark.asyncio
    async def test_get_undecodable_value(self, store, redis_client):
        """Test a corrupt value reads as absent."""
        redis_client.get.return_value = "{not json"
        assert await store.get("ad123") is None

    @pytest.mark.asyncio
    async def test_get_connection_error(self, store, redis_client):
        """Test connection failures raise StoreError."""
        redis_client.get.side_effect = RedisConnectionError("refused")
        with pytest.raises(StoreError):
            await store.get("ad123")

    @pytest.mark.asyncio
    async def test_set_with_ttl(self, store, redis_client):
        """Test records are written as camelCase JSON with an expiry."""
        info = TranscodeInfo(status=TranscodeStatus.IN_PROGRESS, source="http://example.com/a.mp4", last_update=1700000000)

        await store.set("ad123", info, ttl=3600)

        key, value = redis_client.set.await_args.args
        assert key == "ad123"
        assert json.loads(value) == {
            "url": "",
            "aspectRatio": "",
            "framerates": [],
            "status": "IN_PROGRESS",
            "source": "http://example.com/a.mp4",
            "lastUpdate": 1700000000,
        }
        assert redis_client.set.await_args.kwargs == {"ex": 3600}

    @pytest.mark.asyncio
    async def test_set_without_ttl(self, store, redis_client):
        """Test records without TTL never expire."""
        await store.set("ad123", TranscodeInfo())
        assert redis_client.set.await_args.kwargs == {"ex": None}

    @pytest.mark.asyncio
    async def test_delete(self, store, redis_client):
        await store.delete("ad123")
        redis_client.delete.assert_awaited_once_with("ad123")

    @pytest.mark.asyncio
    async def test_enqueue_packaging_job(self, store, redis_client):
        """Test packaging jobs are added to the sorted set queue."""
        await store.enqueue_packaging_job(
            "package", {"jobId": "job-1", "url": "https://encore.example.com/encoreJobs/job-1"}
        )

        queue, members = redis_client.zadd.await_args.args
        assert queue == "package"
        [(member, score)] = members.items()
        assert json.loads(member) == {"jobId": "job-1", "url": "https://encore.example.com/encoreJobs/job-1"}
        assert score > 0

    @pytest.mark.asyncio
    async def test_enqueue_error(self, store, redis_client):
        """Test queue failures raise StoreError."""
        redis_client.zadd.side_effect = RedisConnectionError("refused")
        with pytest.raises(StoreError):
            await store.enqueue_packaging_job("package", {"jobId": "job-1", "url": ""})

    @pytest.mark.asyncio
    async def test_blacklist(self, store, redis_client):
        """Test blacklisted URLs are added to a sorted set scored by time."""
        await store.blacklist("http://example.com/bad.mp4")

        key, members = redis_client.zadd.await_args.args
        assert key == BLACKLIST_KEY
        [(member, score)] = members.items()
        assert member == "http://example.com/bad.mp4"
        assert score > 0

    @pytest.mark.asyncio
    async def test_unblacklist(self, store, redis_client):
        await store.unblacklist("http://example.com/bad.mp4")
        redis_client.zrem.assert_awaited_once_with(BLACKLIST_KEY, "http://example.com/bad.mp4")

    @pytest.mark.asyncio
    async def test_in_blacklist(self, store, redis_client):
        """Test membership is decided by the presence of a score."""
        assert await store.in_blacklist("http://example.com/ok.mp4") is False

        redis_client.zscore.return_value = 1718000000000.0
        assert await store.in_blacklist("http://example.com/bad.mp4") is True
        redis_client.zscore.assert_awaited_with(BLACKLIST_KEY, "http://example.com/bad.mp4")

    @pytest.mark.asyncio
    async def test_get_blacklist_page(self, store, redis_client):
        """Test pages are read by rank range along with the total count."""
        redis_client.zrange.return_value = ["http://example.com/c.mp4", "http://example.com/d.mp4"]
        redis_client.zcard.return_value = 5

        urls, total = await store.get_blacklist(page=1, size=2)

        assert urls == ["http://example.com/c.mp4", "http://example.com/d.mp4"]
        assert total == 5
        redis_client.zrange.assert_awaited_once_with(BLACKLIST_KEY, 2, 3)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("method", ["blacklist", "unblacklist", "in_blacklist"])
    async def test_blacklist_errors(self, store, redis_client, method):
        redis_client.zadd.side_effect = RedisConnectionError("refused")
        redis_client.zrem.side_effect = RedisConnectionError("refused")
        redis_client.zscore.side_effect = RedisConnectionError("refused")

        with pytest.raises(StoreError):
            await getattr(store, method)("http://example.com/bad.mp4")

    @pytest.mark.asyncio
    async def test_get_blacklist_error(self, store, redis_client):
        redis_client.zrange.side_effect = RedisConnectionError("refused")
        with pytest.raises(StoreError):
            await store.get_blacklist()


class TestTranscodeInfo:
    """Test suite for TranscodeInfo serialization."""

    def test_json_round_trip(self):
        """Test encoding then decoding yields the same record."""
        info = TranscodeInfo(
            url="https://assets.example.com/ad123/index.m3u8",
            aspect_ratio="16:9",
            framerates=[29.97],
            status=TranscodeStatus.PACKAGING,
            source="http://example.com/a.mp4",
            last_update=1700000000,
            error="oops",
        )
        assert TranscodeInfo.from_json(info.to_json()) == info

    def test_frame_rates_alias(self):
        """Test records written with ``frameRates`` are read too."""
        info = TranscodeInfo.from_dict({"frameRates": [25.0], "status": "COMPLETED"})
        assert info.framerates == [25.0]
