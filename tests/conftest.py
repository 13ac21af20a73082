"""Pytest configuration and shared fixtures for ad normalizer tests."""

import sys
from pathlib import Path
from unittest.mock import AsyncMock

import pytest


sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from ad_normalizer.settings import Settings
from ad_normalizer.store import TranscodeStore
from ad_normalizer.types import Creative, TranscodeInfo, TranscodeStatus


# ==================== XML Fixtures ====================


VAST_XML = """<?xml version="1.0" encoding="UTF-8"?>
<VAST version="4.0">
  <Ad id="first">
    <InLine>
      <AdSystem>Test</AdSystem>
      <AdTitle>First ad</AdTitle>
      <Creatives>
        <Creative id="c1">
          <UniversalAdId idRegistry="test-registry">ad-123</UniversalAdId>
          <Linear>
            <Duration>00:00:30</Duration>
            <MediaFiles>
              <MediaFile type="video/mp4" bitrate="1000" width="640" height="360">
                http://example.com/low.mp4
              </MediaFile>
              <MediaFile type="video/mp4" bitrate="3000" width="1920" height="1080">
                http://example.com/high.mp4
              </MediaFile>
            </MediaFiles>
          </Linear>
        </Creative>
      </Creatives>
    </InLine>
  </Ad>
  <Ad id="second">
    <InLine>
      <AdSystem>Test</AdSystem>
      <AdTitle>Second ad</AdTitle>
      <Creatives>
        <Creative id="c2">
          <UniversalAdId idRegistry="test-registry">ad456</UniversalAdId>
          <Linear>
            <Duration>00:00:15</Duration>
            <MediaFiles>
              <MediaFile type="video/mp4" bitrate="2000" width="1280" height="720">
                http://example.com/second.mp4
              </MediaFile>
            </MediaFiles>
          </Linear>
        </Creative>
      </Creatives>
    </InLine>
  </Ad>
</VAST>
"""

VMAP_XML = """<?xml version="1.0" encoding="UTF-8"?>
<vmap:VMAP xmlns:vmap="http://www.iab.net/vmap-1.0" version="1.0">
  <vmap:AdBreak timeOffset="start" breakType="linear">
    <vmap:AdSource>
      <vmap:VASTAdData>
        <VAST xmlns:vast="http://www.iab.net/VAST" version="4.0">
          <Ad>
            <InLine>
              <Creatives>
                <Creative>
                  <UniversalAdId idRegistry="test-registry">ad123</UniversalAdId>
                  <Linear>
                    <Duration>00:00:20</Duration>
                    <MediaFiles>
                      <MediaFile type="video/mp4" bitrate="2000">
                        http://example.com/original.mp4
                      </MediaFile>
                    </MediaFiles>
                  </Linear>
                </Creative>
              </Creatives>
            </InLine>
          </Ad>
        </VAST>
      </vmap:VASTAdData>
    </vmap:AdSource>
  </vmap:AdBreak>
  <vmap:AdBreak timeOffset="00:10:00" breakType="linear">
    <vmap:AdSource>
      <vmap:VASTAdData>
        <VAST xmlns:vast="http://www.iab.net/VAST" version="4.0">
          <Ad>
            <InLine>
              <Creatives>
                <Creative>
                  <UniversalAdId idRegistry="test-registry">ad456</UniversalAdId>
                  <Linear>
                    <Duration>00:00:10</Duration>
                    <MediaFiles>
                      <MediaFile type="video/mp4" bitrate="2000">
                        http://example.com/second.mp4
                      </MediaFile>
                    </MediaFiles>
                  </Linear>
                </Creative>
              </Creatives>
            </InLine>
          </Ad>
        </VAST>
      </vmap:VASTAdData>
    </vmap:AdSource>
  </vmap:AdBreak>
</vmap:VMAP>
"""


@pytest.fixture
def vast_xml() -> str:
    """VAST with two inline ads: ``ad-123`` (two renditions) and ``ad456``."""
    return VAST_XML


@pytest.fixture
def vmap_xml() -> str:
    """VMAP with two ad breaks, each embedding one ad (``ad123``, ``ad456``)."""
    return VMAP_XML


# ==================== Data Fixtures ====================


@pytest.fixture
def ready_info() -> TranscodeInfo:
    return TranscodeInfo(
        url="https://assets.example.com/ad123/index.m3u8",
        aspect_ratio="16:9",
        framerates=[25.0],
        status=TranscodeStatus.COMPLETED,
    )


@pytest.fixture
def ready_creative() -> Creative:
    return Creative("ad123", "https://assets.example.com/ad123/index.m3u8")


@pytest.fixture
def make_lookup():
    """Build an async status lookup backed by a dict of creative id -> TranscodeInfo."""

    def _make(records: dict[str, TranscodeInfo]):
        async def lookup(creative_id: str) -> TranscodeInfo | None:
            return records.get(creative_id)

        return lookup

    return _make


# ==================== Collaborator Fixtures ====================


@pytest.fixture
def redis_client() -> AsyncMock:
    """Mock redis.asyncio client."""
    client = AsyncMock()
    client.get.return_value = None
    client.zscore.return_value = None
    return client


@pytest.fixture
def store(redis_client) -> TranscodeStore:
    return TranscodeStore(redis_client)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        ad_server_url="https://ads.example.com/api/v1/ads/",
        encore_url="https://encore.example.com",
        redis_url="redis://localhost:6379/0",
        asset_server_url="https://assets.example.com",
        output_bucket_url="s3://ads-bucket",
        root_url="https://normalizer.example.com",
    )
