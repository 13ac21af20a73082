"""
Ad Normalizer Core Configuration

Element names, parsing options and constants shared by the creative
extractor, the XML rewriter and the asset-list encoder. Keeping them in one
place guarantees that all three walk the ad document identically.
"""

from dataclasses import dataclass, field
from enum import Enum


class KeyField(str, Enum):
    """Strategy used to derive a creative key from an ad."""

    UNIVERSAL_AD_ID = "universaladid"
    URL = "url"
    RESOLUTION = "resolution"

    @classmethod
    def parse(cls, value: "str | KeyField") -> "KeyField":
        """Resolve a configured key field; unknown values fall back to UniversalAdId."""
        if isinstance(value, KeyField):
            return value
        try:
            return cls(value.lower())
        except ValueError:
            return cls.UNIVERSAL_AD_ID


DEFAULT_KEY_REGEX = "[^a-zA-Z0-9]"
HLS_MIME_TYPE = "application/x-mpegURL"
FALLBACK_ASSET_DURATION = 10

EMPTY_VAST = '<?xml version="1.0" encoding="utf-8"?><VAST version="4.0"/>'
EMPTY_VMAP = (
    '<?xml version="1.0" encoding="utf-8"?>'
    '<vmap:VMAP xmlns:vmap="http://www.iab.net/vmap-1.0" version="1.0"/>'
)


@dataclass
class NormalizerXPathConfig:
    """Local element names of the VAST/VMAP structures the core traverses.

    Matching is done on local names so both prefixed (``vmap:AdBreak``) and
    default-namespace documents resolve the same way. Every element listed in
    ``sequence_elements`` is always collected as an ordered list, even when a
    document holds a single instance of it.
    """

    # VMAP wrapper
    vmap: str = "VMAP"
    ad_break: str = "AdBreak"
    ad_source: str = "AdSource"
    vast_ad_data: str = "VASTAdData"

    # VAST
    vast: str = "VAST"
    ad: str = "Ad"
    inline: str = "InLine"
    creatives: str = "Creatives"
    creative: str = "Creative"
    universal_ad_id: str = "UniversalAdId"
    linear: str = "Linear"
    duration: str = "Duration"
    media_files: str = "MediaFiles"
    media_file: str = "MediaFile"

    sequence_elements: tuple[str, ...] = field(
        default_factory=lambda: ("AdBreak", "AdSource", "Ad", "Creative", "MediaFile")
    )

    # Parsing options
    recover_on_error: bool = False
    encoding: str = "utf-8"
    indent: str = "  "


__all__ = [
    "KeyField",
    "NormalizerXPathConfig",
    "DEFAULT_KEY_REGEX",
    "HLS_MIME_TYPE",
    "FALLBACK_ASSET_DURATION",
    "EMPTY_VAST",
    "EMPTY_VMAP",
]
