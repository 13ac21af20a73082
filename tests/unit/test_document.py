"""Unit tests for the ad document parser."""

import pytest
from lxml import etree

from ad_normalizer.config import NormalizerXPathConfig
from ad_normalizer.document import (
    XML_DECLARATION,
    AdDocument,
    AdDocumentParser,
    AdFormat,
    VastDocument,
    VmapDocument,
    child_elements,
    local_name,
)
from ad_normalizer.exceptions import AdXMLError


@pytest.fixture
def parser():
    return AdDocumentParser()


class TestAdDocumentParser:
    """Test suite for AdDocumentParser."""

    def test_parser_initialization(self):
        """Test parser initialization with a custom config."""
        config = NormalizerXPathConfig(indent="    ")
        parser = AdDocumentParser(config=config)
        assert parser.config is config

    def test_parse_vast(self, parser, vast_xml):
        document = parser.parse(vast_xml)

        assert isinstance(document, VastDocument)
        assert document.format == AdFormat.VAST
        assert [ad.get("id") for ad in document.ads()] == ["first", "second"]

    def test_parse_vmap(self, parser, vmap_xml):
        """Test every ad break embedding VAST becomes one ad group."""
        document = parser.parse(vmap_xml, AdFormat.VMAP)

        assert isinstance(document, VmapDocument)
        assert len(document.ad_breaks()) == 2
        groups = document.ad_groups()
        assert len(groups) == 2
        assert all(local_name(group.container) == "VAST" for group in groups)
        assert [len(group.ads) for group in groups] == [1, 1]

    def test_parse_bytes(self, parser, vast_xml):
        document = parser.parse(vast_xml.encode("utf-8"), AdFormat.VAST)
        assert len(document.ads()) == 2

    @pytest.mark.parametrize("encoding", ["ISO-8859-1", "windows-1252", "UTF-16"])
    def test_parse_text_with_declared_encoding(self, parser, encoding):
        """Test decoded text is parsed as is, whatever encoding its declaration names."""
        xml = (
            f'<?xml version="1.0" encoding="{encoding}"?>\n'
            '<VAST version="4.0"><Ad id="1"><InLine><AdTitle>Caf\u00e9 cr\u00e8me</AdTitle></InLine></Ad></VAST>'
        )

        document = parser.parse(xml, AdFormat.VAST)

        assert document.root.findtext("Ad/InLine/AdTitle") == "Caf\u00e9 cr\u00e8me"

    def test_parse_bytes_with_declared_encoding(self, parser):
        xml = '<?xml version="1.0" encoding="ISO-8859-1"?><VAST version="4.0"><Ad id="caf\u00e9"/></VAST>'

        document = parser.parse(xml.encode("latin-1"), AdFormat.VAST)

        assert document.ads()[0].get("id") == "caf\u00e9"

    def test_vmap_break_without_vast(self, parser):
        """Test ad breaks referencing remote ad tags contribute no group."""
        xml = """<vmap:VMAP xmlns:vmap="http://www.iab.net/vmap-1.0" version="1.0">
          <vmap:AdBreak timeOffset="start" breakType="linear">
            <vmap:AdSource>
              <vmap:AdTagURI templateType="vast3">http://example.com/tag</vmap:AdTagURI>
            </vmap:AdSource>
          </vmap:AdBreak>
        </vmap:VMAP>"""

        document = parser.parse(xml)

        assert len(document.ad_breaks()) == 1
        assert document.ad_groups() == []
        assert document.ads() == []

    def test_malformed_xml(self, parser):
        """Test malformed XML raises AdXMLError with a preview."""
        with pytest.raises(AdXMLError) as exc_info:
            parser.parse("<VAST><Ad></VAST>")

        assert exc_info.value.xml_preview == "<VAST><Ad></VAST>"
        assert exc_info.value.parser_error is not None

    def test_unexpected_root(self, parser, vast_xml):
        """Test a document of the other format is rejected."""
        with pytest.raises(AdXMLError):
            parser.parse(vast_xml, AdFormat.VMAP)
        with pytest.raises(AdXMLError):
            parser.parse("<Playlist/>")

    @pytest.mark.parametrize("ad_format", [AdFormat.VAST, AdFormat.VMAP])
    def test_parse_or_empty(self, parser, ad_format):
        """Test unparseable input is replaced by the empty document of the same format."""
        document = parser.parse_or_empty("not xml at all", ad_format)

        assert document.format == ad_format
        assert document.ads() == []

    def test_empty(self, parser):
        assert parser.empty(AdFormat.VAST).to_xml() == (
            f'{XML_DECLARATION}\n<VAST version="4.0"></VAST>\n'
        )


class TestAdDocument:
    def test_base_document_is_abstract(self):
        """Test documents must say how their ads are grouped."""
        with pytest.raises(TypeError):
            AdDocument(etree.fromstring("<VAST/>"))

    def test_subclass_without_ad_groups_is_abstract(self):
        class Playlist(AdDocument):
            format = AdFormat.VAST

        with pytest.raises(TypeError):
            Playlist(etree.fromstring("<VAST/>"))


class TestToXml:
    """Test suite for document serialization."""

    def test_declaration_and_indent(self, parser, vast_xml):
        xml = parser.parse(vast_xml).to_xml()

        assert xml.startswith(f"{XML_DECLARATION}\n<VAST")
        assert '\n  <Ad id="first">' in xml
        assert xml.endswith("</VAST>\n")

    def test_emptied_container_keeps_end_tag(self, parser, vast_xml):
        """Test a VAST left without ads is not written self-closing."""
        document = parser.parse(vast_xml)
        for ad in document.ads():
            document.root.remove(ad)

        assert '<VAST version="4.0"></VAST>' in document.to_xml()

    def test_namespaces_are_preserved(self, parser, vmap_xml):
        xml = parser.parse(vmap_xml).to_xml()

        assert 'xmlns:vmap="http://www.iab.net/vmap-1.0"' in xml
        assert 'xmlns:vast="http://www.iab.net/VAST"' in xml
        assert "<vmap:AdBreak" in xml


class TestElementHelpers:
    """Test suite for local-name element helpers."""

    def test_local_name_ignores_namespace(self):
        element = etree.fromstring('<v:VMAP xmlns:v="http://www.iab.net/vmap-1.0"/>')
        assert local_name(element) == "VMAP"

    def test_local_name_of_comment(self):
        root = etree.fromstring("<VAST><!-- note --><Ad/></VAST>")
        assert local_name(root[0]) is None
        assert len(child_elements(root, "Ad")) == 1

    def test_child_elements_of_none(self):
        assert child_elements(None, "Ad") == []
