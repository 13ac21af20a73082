"""Response encoders: rewritten VAST/VMAP XML and HLS interstitial asset lists.

Both encoders take the ad document text and the ready creatives of the same
partitioning pass and match ads to creatives with the key function used
during extraction.
"""

import json
import re
from collections.abc import Sequence

from .config import FALLBACK_ASSET_DURATION, HLS_MIME_TYPE, KeyField
from .creatives import ad_duration, get_key, select_ad_rendition
from .document import AdDocument, AdDocumentParser, AdFormat
from .events import NormalizerEvents
from .helpers import parse_timestamp
from .log_config import get_context_logger
from .types import AssetDescription, Creative


logger = get_context_logger("rewriter")


def find_ready_creative(key: str, ready: Sequence[Creative]) -> Creative | None:
    """First ready creative with the given key."""
    for creative in ready:
        if creative.creative_id == key:
            return creative
    return None


def apply_ready_creatives(
    document: AdDocument,
    ready: Sequence[Creative],
    key_regex: "str | re.Pattern[str]",
    key_field: "str | KeyField",
) -> AdDocument:
    """Rewrite a parsed document in place.

    Within every ad group, ads matching a ready creative keep only their
    selected media file, now pointing at the packaged HLS asset; all other
    ads are removed. Group containers themselves are never removed.
    """
    config = document.config
    for group in document.ad_groups():
        for ad in group.ads:
            key = get_key(key_field, key_regex, ad, config)
            creative = find_ready_creative(key, ready)
            if creative is None:
                group.container.remove(ad)
                continue

            media_file = select_ad_rendition(ad, config).element
            media_file.text = creative.master_playlist_url
            media_file.set("type", HLS_MIME_TYPE)
            media_files = media_file.getparent()
            for sibling in list(media_files):
                if sibling is not media_file:
                    media_files.remove(sibling)
    return document


def replace_media_files(
    xml_text: str,
    ready: Sequence[Creative],
    key_regex: "str | re.Pattern[str]",
    key_field: "str | KeyField",
    ad_format: AdFormat | None = None,
    parser: AdDocumentParser | None = None,
) -> str:
    """Rewrite VAST/VMAP XML so only ready creatives remain, served as HLS.

    Args:
        xml_text: Ad document text
        ready: Ready creatives with resolved playlist URLs
        key_regex: Key sanitizing pattern
        key_field: Key derivation strategy
        ad_format: Expected format; detected from the root element when None
        parser: Document parser to use

    Returns:
        The rewritten, pretty-printed XML; the input text unchanged if
        anything fails
    """
    parser = parser or AdDocumentParser()
    try:
        document = parser.parse(xml_text, ad_format)
        apply_ready_creatives(document, ready, key_regex, key_field)
        return document.to_xml()
    except Exception as e:
        logger.error(NormalizerEvents.REWRITE_FAILED, error=str(e), ready_count=len(ready))
        return xml_text


def create_asset_list(
    xml_text: str,
    ready: Sequence[Creative],
    key_regex: "str | re.Pattern[str]",
    key_field: "str | KeyField",
    ad_format: AdFormat | None = None,
    parser: AdDocumentParser | None = None,
) -> str:
    """Encode ready creatives as an HLS interstitial asset list.

    Ads are listed in document order with the duration declared in the ad.
    If the document cannot be walked, every ready creative is listed with
    a fixed fallback duration instead.

    Returns:
        JSON text of the form ``{"ASSETS": [{"URI": ..., "DURATION": ...}]}``
    """
    parser = parser or AdDocumentParser()
    try:
        document = parser.parse(xml_text, ad_format)
        descriptions = []
        for ad in document.ads():
            creative = find_ready_creative(get_key(key_field, key_regex, ad, document.config), ready)
            if creative is not None:
                descriptions.append(
                    AssetDescription(
                        uri=creative.master_playlist_url,
                        duration=parse_timestamp(ad_duration(ad, document.config)),
                    )
                )
    except Exception as e:
        logger.warning(NormalizerEvents.ASSET_LIST_FALLBACK, error=str(e), ready_count=len(ready))
        descriptions = [
            AssetDescription(uri=creative.master_playlist_url, duration=FALLBACK_ASSET_DURATION)
            for creative in ready
        ]

    return json.dumps({"ASSETS": [description.to_dict() for description in descriptions]})


__all__ = [
    "find_ready_creative",
    "apply_ready_creatives",
    "replace_media_files",
    "create_asset_list",
]
