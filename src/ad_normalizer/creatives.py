"""Creative identification: key derivation, rendition selection and extraction."""

import re
from collections.abc import Sequence

from lxml import etree

from .config import KeyField, NormalizerXPathConfig
from .document import AdDocument, child_elements, first_child
from .events import NormalizerEvents
from .exceptions import AdElementError
from .log_config import get_context_logger
from .types import Creative, MediaRendition


logger = get_context_logger("creatives")

_DEFAULT_CONFIG = NormalizerXPathConfig()


def _compile(key_regex: "str | re.Pattern[str]") -> "re.Pattern[str]":
    if isinstance(key_regex, re.Pattern):
        return key_regex
    return re.compile(key_regex)


def _linear_creative(ad: etree._Element, config: NormalizerXPathConfig) -> etree._Element:
    """The creative of an inline ad that carries the linear media."""
    inline = first_child(ad, config.inline)
    if inline is None:
        raise AdElementError("Ad has no InLine element", element_tag=config.ad, operation="find_creative")
    creatives = child_elements(first_child(inline, config.creatives), config.creative)
    if not creatives:
        raise AdElementError("Ad has no creatives", element_tag=config.creatives, operation="find_creative")
    for creative in creatives:
        if first_child(creative, config.linear) is not None:
            return creative
    return creatives[0]


def linear_element(ad: etree._Element, config: NormalizerXPathConfig | None = None) -> etree._Element | None:
    """``Linear`` element of an ad, if any."""
    config = config or _DEFAULT_CONFIG
    return first_child(_linear_creative(ad, config), config.linear)


def ad_duration(ad: etree._Element, config: NormalizerXPathConfig | None = None) -> str | None:
    """Raw ``Linear/Duration`` text of an ad."""
    config = config or _DEFAULT_CONFIG
    duration = first_child(linear_element(ad, config), config.duration)
    if duration is None or duration.text is None:
        return None
    return duration.text.strip()


def media_renditions(ad: etree._Element, config: NormalizerXPathConfig | None = None) -> list[MediaRendition]:
    """Declared media files of an ad's linear creative, in document order."""
    config = config or _DEFAULT_CONFIG
    media_files = first_child(linear_element(ad, config), config.media_files)
    return [
        MediaRendition(
            url=(media_file.text or "").strip(),
            type=media_file.get("type"),
            bitrate=media_file.get("bitrate"),
            width=media_file.get("width"),
            height=media_file.get("height"),
            element=media_file,
        )
        for media_file in child_elements(media_files, config.media_file)
    ]


def select_best_rendition(renditions: MediaRendition | Sequence[MediaRendition]) -> MediaRendition:
    """Pick the rendition with the highest bitrate.

    A later rendition only wins with a strictly greater bitrate, so ties and
    renditions without a bitrate keep the earlier one.

    Args:
        renditions: One rendition or a sequence of them

    Returns:
        The selected rendition

    Raises:
        AdElementError: If no rendition is given
    """
    if isinstance(renditions, MediaRendition):
        renditions = [renditions]
    if not renditions:
        raise AdElementError("Ad declares no media files", element_tag="MediaFile", operation="select_rendition")

    best = renditions[0]
    for rendition in renditions[1:]:
        if rendition.bitrate_value > best.bitrate_value:
            best = rendition
    return best


def select_ad_rendition(ad: etree._Element, config: NormalizerXPathConfig | None = None) -> MediaRendition:
    """Best rendition of an ad."""
    return select_best_rendition(media_renditions(ad, config))


def universal_ad_id(ad: etree._Element, config: NormalizerXPathConfig | None = None) -> str:
    config = config or _DEFAULT_CONFIG
    element = first_child(_linear_creative(ad, config), config.universal_ad_id)
    if element is None or element.text is None:
        return ""
    return element.text.strip()


def get_key(
    key_field: "str | KeyField",
    key_regex: "str | re.Pattern[str]",
    ad: etree._Element,
    config: NormalizerXPathConfig | None = None,
) -> str:
    """Derive the creative key of an ad.

    Args:
        key_field: ``universaladid`` (default), ``url`` or ``resolution``
        key_regex: Pattern whose matches are stripped from the key
            (not applied to ``resolution`` keys)
        ad: ``Ad`` element
        config: Element names

    Returns:
        The key, possibly empty
    """
    strategy = KeyField.parse(key_field)
    if strategy is KeyField.RESOLUTION:
        rendition = select_ad_rendition(ad, config)
        return f"{rendition.width or ''}x{rendition.height or ''}"
    if strategy is KeyField.URL:
        return _compile(key_regex).sub("", select_ad_rendition(ad, config).url)
    return _compile(key_regex).sub("", universal_ad_id(ad, config))


def extract_creatives(
    document: AdDocument,
    key_field: "str | KeyField",
    key_regex: "str | re.Pattern[str]",
) -> list[Creative]:
    """Extract one creative per ad, in document order.

    Any structural error aborts the whole extraction and yields an empty list;
    a single malformed ad therefore hides every ad of the document.
    """
    pattern = _compile(key_regex)
    try:
        creatives = []
        for ad in document.ads():
            rendition = select_ad_rendition(ad, document.config)
            creatives.append(
                Creative(
                    creative_id=get_key(key_field, pattern, ad, document.config),
                    master_playlist_url=rendition.url,
                )
            )
    except Exception as e:
        logger.error(
            NormalizerEvents.EXTRACT_FAILED,
            ad_format=document.format.value,
            error=str(e),
        )
        return []

    logger.debug("Extracted creatives", ad_format=document.format.value, count=len(creatives))
    return creatives


__all__ = [
    "get_key",
    "select_best_rendition",
    "select_ad_rendition",
    "media_renditions",
    "linear_element",
    "ad_duration",
    "universal_ad_id",
    "extract_creatives",
]
