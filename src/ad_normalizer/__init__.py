"""
Ad Normalizer Package

Normalizes VAST/VMAP ad server responses so that players only receive
creatives that have been transcoded and packaged as HLS. Creatives without a
packaged asset are submitted for transcoding in the background.

This package provides:
- AdNormalizer: Request orchestrator (fetch, partition, dispatch)
- replace_media_files / create_asset_list: XML and asset-list encoders
- extract_creatives / get_key / select_best_rendition: creative identification
- TranscodeStore, EncoreService, PackagingService: asset lifecycle collaborators

Usage:
    from ad_normalizer import AdNormalizer, AdFormat

    normalizer = AdNormalizer(lookup_asset=store.get, on_missing_asset=encore.create_job)
    response = await normalizer.normalize(AdFormat.VAST, vast_xml)
    xml = normalizer.render_xml(response, AdFormat.VAST)
"""

from .config import KeyField, NormalizerXPathConfig
from .creatives import extract_creatives, get_key, select_best_rendition
from .document import AdDocument, AdDocumentParser, AdFormat, VastDocument, VmapDocument
from .exceptions import (
    AdDurationError,
    AdElementError,
    AdParseError,
    AdServerError,
    AdXMLError,
    ConfigError,
    EncoreError,
    NormalizerException,
    StoreError,
)
from .helpers import parse_timestamp
from .normalizer import AdNormalizer, PipelineState
from .partitioner import partition_creatives
from .rewriter import create_asset_list, replace_media_files
from .types import (
    AssetDescription,
    Creative,
    MediaRendition,
    NormalizedResponse,
    TranscodeInfo,
    TranscodeStatus,
)

__version__ = "1.0.0"

__all__ = [
    # Orchestration
    "AdNormalizer",
    "PipelineState",
    # Core operations
    "extract_creatives",
    "get_key",
    "select_best_rendition",
    "partition_creatives",
    "replace_media_files",
    "create_asset_list",
    "parse_timestamp",
    # Documents
    "AdFormat",
    "AdDocument",
    "AdDocumentParser",
    "VastDocument",
    "VmapDocument",
    # Types
    "Creative",
    "TranscodeInfo",
    "TranscodeStatus",
    "MediaRendition",
    "AssetDescription",
    "NormalizedResponse",
    # Configuration
    "KeyField",
    "NormalizerXPathConfig",
    # Exceptions
    "NormalizerException",
    "AdParseError",
    "AdXMLError",
    "AdElementError",
    "AdDurationError",
    "AdServerError",
    "ConfigError",
    "StoreError",
    "EncoreError",
]
