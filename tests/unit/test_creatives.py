"""Unit tests for creative identification."""

import re

import pytest
from lxml import etree

from ad_normalizer.config import DEFAULT_KEY_REGEX, KeyField
from ad_normalizer.creatives import (
    ad_duration,
    extract_creatives,
    get_key,
    select_best_rendition,
)
from ad_normalizer.document import AdDocumentParser, AdFormat
from ad_normalizer.exceptions import AdElementError
from ad_normalizer.types import Creative, MediaRendition


def _ad(media_files: str, universal_ad_id: str | None = "ad-1") -> etree._Element:
    uid = (
        f'<UniversalAdId idRegistry="test-registry">{universal_ad_id}</UniversalAdId>'
        if universal_ad_id is not None
        else ""
    )
    xml = (
        "<Ad><InLine><Creatives><Creative>"
        f"{uid}"
        "<Linear><Duration>00:00:30</Duration>"
        f"<MediaFiles>{media_files}</MediaFiles>"
        "</Linear></Creative></Creatives></InLine></Ad>"
    )
    return etree.fromstring(xml)


class TestSelectBestRendition:
    """Test suite for rendition selection."""

    def test_highest_bitrate_wins(self):
        """Test the rendition with the highest bitrate is selected."""
        renditions = [
            MediaRendition("http://example.com/low.mp4", bitrate="1000"),
            MediaRendition("http://example.com/high.mp4", bitrate="3000"),
            MediaRendition("http://example.com/medium.mp4", bitrate="2000"),
        ]
        assert select_best_rendition(renditions).url == "http://example.com/high.mp4"

    def test_single_rendition(self):
        """Test a single rendition is accepted as is."""
        rendition = MediaRendition("http://example.com/video.mp4", bitrate="2000")
        assert select_best_rendition(rendition) is rendition

    def test_missing_bitrate_counts_as_zero(self):
        """Test a rendition without bitrate loses against one with a bitrate."""
        renditions = [
            MediaRendition("http://example.com/video1.mp4"),
            MediaRendition("http://example.com/video2.mp4", bitrate="2000"),
        ]
        assert select_best_rendition(renditions).url == "http://example.com/video2.mp4"

    @pytest.mark.parametrize("bitrate", ["NaN", "nan", "Infinity", "inf", "-inf", "1_000", "2e3", "fast"])
    def test_non_numeric_first_bitrate_counts_as_zero(self, bitrate):
        """Test a first rendition with a non-finite or malformed bitrate can be beaten."""
        renditions = [
            MediaRendition("http://example.com/video1.mp4", bitrate=bitrate),
            MediaRendition("http://example.com/video2.mp4", bitrate="2000"),
        ]
        assert select_best_rendition(renditions).url == "http://example.com/video2.mp4"

    @pytest.mark.parametrize("bitrate", ["Infinity", "inf", "NaN"])
    def test_non_finite_bitrate_never_wins(self, bitrate):
        """Test a later non-finite bitrate does not beat a real one."""
        renditions = [
            MediaRendition("http://example.com/video1.mp4", bitrate="5000"),
            MediaRendition("http://example.com/video2.mp4", bitrate=bitrate),
        ]
        assert select_best_rendition(renditions).url == "http://example.com/video1.mp4"

    def test_bitrate_value(self):
        assert MediaRendition("u", bitrate=" 2500 ").bitrate_value == 2500.0
        assert MediaRendition("u", bitrate="1500.5").bitrate_value == 1500.5
        assert MediaRendition("u", bitrate="-100").bitrate_value == 0.0

    def test_first_wins_without_bitrates(self):
        """Test the first rendition is kept when none declares a bitrate."""
        renditions = [
            MediaRendition("http://example.com/video1.mp4"),
            MediaRendition("http://example.com/video2.mp4"),
        ]
        assert select_best_rendition(renditions).url == "http://example.com/video1.mp4"

    def test_first_wins_on_tie(self):
        """Test equal bitrates keep the earlier rendition."""
        renditions = [
            MediaRendition("http://example.com/a.mp4", bitrate="2000"),
            MediaRendition("http://example.com/b.mp4", bitrate="2000"),
        ]
        assert select_best_rendition(renditions).url == "http://example.com/a.mp4"

    def test_empty_input_raises(self):
        """Test an ad without renditions is rejected."""
        with pytest.raises(AdElementError):
            select_best_rendition([])


class TestGetKey:
    """Test suite for creative key derivation."""

    def test_universal_ad_id_is_sanitized(self):
        """Test the default strategy strips pattern matches from the UniversalAdId."""
        ad = _ad('<MediaFile bitrate="1">http://example.com/a.mp4</MediaFile>', "ad-123_X")
        assert get_key(KeyField.UNIVERSAL_AD_ID, DEFAULT_KEY_REGEX, ad) == "ad123X"

    def test_key_field_is_case_insensitive(self):
        """Test key field names are matched case-insensitively."""
        ad = _ad('<MediaFile bitrate="1">http://example.com/a.mp4</MediaFile>', "ad-1")
        assert get_key("UniversalAdId", DEFAULT_KEY_REGEX, ad) == "ad1"

    def test_unknown_key_field_uses_universal_ad_id(self):
        """Test unknown strategies fall back to the UniversalAdId."""
        ad = _ad('<MediaFile bitrate="1">http://example.com/a.mp4</MediaFile>', "ad-1")
        assert get_key("creativeid", DEFAULT_KEY_REGEX, ad) == "ad1"

    def test_missing_universal_ad_id(self):
        """Test ads without UniversalAdId get an empty key."""
        ad = _ad('<MediaFile bitrate="1">http://example.com/a.mp4</MediaFile>', None)
        assert get_key(KeyField.UNIVERSAL_AD_ID, DEFAULT_KEY_REGEX, ad) == ""

    def test_url_key(self):
        """Test the url strategy sanitizes the selected rendition URL."""
        ad = _ad('<MediaFile bitrate="2000">\n  http://example.com/original.mp4\n</MediaFile>')
        assert get_key("url", DEFAULT_KEY_REGEX, ad) == "httpexamplecomoriginalmp4"

    def test_url_key_uses_best_rendition(self):
        """Test the url strategy keys on the highest bitrate rendition."""
        ad = _ad(
            '<MediaFile bitrate="1000">http://example.com/low.mp4</MediaFile>'
            '<MediaFile bitrate="3000">http://example.com/high.mp4</MediaFile>'
        )
        assert get_key(KeyField.URL, DEFAULT_KEY_REGEX, ad) == "httpexamplecomhighmp4"

    def test_resolution_key(self):
        """Test the resolution strategy renders width x height verbatim."""
        ad = _ad('<MediaFile bitrate="1" width="1920" height="1080">http://example.com/a.mp4</MediaFile>')
        assert get_key(KeyField.RESOLUTION, DEFAULT_KEY_REGEX, ad) == "1920x1080"

    def test_resolution_key_missing_attributes(self):
        """Test missing dimensions render as empty strings."""
        ad = _ad('<MediaFile bitrate="1" width="1920">http://example.com/a.mp4</MediaFile>')
        assert get_key(KeyField.RESOLUTION, DEFAULT_KEY_REGEX, ad) == "1920x"

    def test_compiled_pattern(self):
        """Test a precompiled key pattern is accepted."""
        ad = _ad('<MediaFile bitrate="1">http://example.com/a.mp4</MediaFile>', "ad-1.v2")
        assert get_key(KeyField.UNIVERSAL_AD_ID, re.compile(r"[-.]"), ad) == "ad1v2"


class TestAdDuration:
    """Test suite for duration lookup."""

    def test_duration_text(self):
        """Test the Linear duration is returned stripped."""
        ad = _ad('<MediaFile bitrate="1">http://example.com/a.mp4</MediaFile>')
        assert ad_duration(ad) == "00:00:30"


class TestExtractCreatives:
    """Test suite for creative extraction from documents."""

    def test_extract_from_vast(self, vast_xml):
        """Test one creative per ad, in document order, with the best rendition URL."""
        document = AdDocumentParser().parse(vast_xml, AdFormat.VAST)
        creatives = extract_creatives(document, KeyField.UNIVERSAL_AD_ID, DEFAULT_KEY_REGEX)

        assert creatives == [
            Creative("ad123", "http://example.com/high.mp4"),
            Creative("ad456", "http://example.com/second.mp4"),
        ]

    def test_extract_from_vmap(self, vmap_xml):
        """Test ads of every ad break are extracted in break order."""
        document = AdDocumentParser().parse(vmap_xml, AdFormat.VMAP)
        creatives = extract_creatives(document, "universaladid", DEFAULT_KEY_REGEX)

        assert creatives == [
            Creative("ad123", "http://example.com/original.mp4"),
            Creative("ad456", "http://example.com/second.mp4"),
        ]

    def test_extract_is_repeatable(self, vmap_xml):
        """Test extraction does not alter the document."""
        document = AdDocumentParser().parse(vmap_xml, AdFormat.VMAP)
        first = extract_creatives(document, KeyField.UNIVERSAL_AD_ID, DEFAULT_KEY_REGEX)
        second = extract_creatives(document, KeyField.UNIVERSAL_AD_ID, DEFAULT_KEY_REGEX)
        assert first == second

    def test_empty_vmap(self):
        """Test a VMAP without ad breaks yields no creatives."""
        document = AdDocumentParser().empty(AdFormat.VMAP)
        assert extract_creatives(document, KeyField.UNIVERSAL_AD_ID, DEFAULT_KEY_REGEX) == []

    def test_ad_break_without_vast(self):
        """Test ad breaks without embedded VAST contribute nothing."""
        xml = (
            '<vmap:VMAP xmlns:vmap="http://www.iab.net/vmap-1.0" version="1.0">'
            '<vmap:AdBreak timeOffset="start"><vmap:AdSource>'
            '<vmap:AdTagURI templateType="vast4">https://ads.example.com/vast</vmap:AdTagURI>'
            "</vmap:AdSource></vmap:AdBreak></vmap:VMAP>"
        )
        document = AdDocumentParser().parse(xml, AdFormat.VMAP)
        assert extract_creatives(document, KeyField.UNIVERSAL_AD_ID, DEFAULT_KEY_REGEX) == []

    def test_malformed_ad_empties_result(self, vast_xml):
        """Test a single ad without InLine aborts the whole extraction."""
        document = AdDocumentParser().parse(vast_xml, AdFormat.VAST)
        document.root.append(etree.fromstring("<Ad><UniversalAdId>broken</UniversalAdId></Ad>"))

        assert extract_creatives(document, KeyField.UNIVERSAL_AD_ID, DEFAULT_KEY_REGEX) == []
