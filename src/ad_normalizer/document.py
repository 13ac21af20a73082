"""VAST/VMAP ad document model and parser.

Both document shapes are exposed through the same accessor, ``ad_groups()``:
an ordered list of containers, each holding the ``Ad`` elements it owns.
A VAST document has a single group (its root); a VMAP document has one group
per ad break carrying an embedded VAST document. Extraction, rewriting and
asset-list encoding all walk documents through this accessor, so they see
ads in the same order.
"""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum

from lxml import etree

from .config import EMPTY_VAST, EMPTY_VMAP, NormalizerXPathConfig
from .events import NormalizerEvents
from .exceptions import AdXMLError
from .log_config import get_context_logger


logger = get_context_logger("ad_document")

XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>'

# Text input is already decoded; its declared encoding no longer applies
_DECLARATION_PATTERN = re.compile(r"^\s*<\?xml[^>]*\?>")


class AdFormat(str, Enum):
    """Ad response format."""

    VAST = "vast"
    VMAP = "vmap"


def local_name(element: etree._Element) -> str | None:
    """Local name of an element, ``None`` for comments and processing instructions."""
    if not isinstance(element.tag, str):
        return None
    return etree.QName(element).localname


def child_elements(element: etree._Element | None, name: str) -> list[etree._Element]:
    """Direct children of ``element`` with the given local name, in document order."""
    if element is None:
        return []
    return [child for child in element if local_name(child) == name]


def first_child(element: etree._Element | None, name: str) -> etree._Element | None:
    """First direct child of ``element`` with the given local name."""
    children = child_elements(element, name)
    return children[0] if children else None


@dataclass
class AdGroup:
    """A container element and the ``Ad`` elements directly under it."""

    container: etree._Element
    ads: list[etree._Element]


class AdDocument(ABC):
    """Parsed ad document. Owned by a single request and mutated in place."""

    format: AdFormat
    empty_stub: str

    def __init__(self, root: etree._Element, config: NormalizerXPathConfig | None = None):
        self.root = root
        self.config = config or NormalizerXPathConfig()

    @abstractmethod
    def ad_groups(self) -> list[AdGroup]:
        """Containers of the document with the ads each one owns, in document order."""

    def ads(self) -> list[etree._Element]:
        """All ads of the document in (group, ad) order."""
        return [ad for group in self.ad_groups() for ad in group.ads]

    def to_xml(self) -> str:
        """Serialize the tree as indented XML with a declaration.

        Containers left without children are written with an explicit end tag
        (``<VAST version="4.0"></VAST>``) rather than as self-closing elements.
        """
        for group in self.ad_groups():
            if len(group.container) == 0 and not (group.container.text or "").strip():
                group.container.text = ""
        etree.indent(self.root, space=self.config.indent)
        body = etree.tostring(self.root, encoding="unicode")
        return f"{XML_DECLARATION}\n{body}\n"


class VastDocument(AdDocument):
    """VAST document: an ordered sequence of ``Ad`` elements under the root."""

    format = AdFormat.VAST
    empty_stub = EMPTY_VAST

    def ad_groups(self) -> list[AdGroup]:
        return [AdGroup(self.root, child_elements(self.root, self.config.ad))]


class VmapDocument(AdDocument):
    """VMAP document: ad breaks optionally embedding VAST documents in their ad sources."""

    format = AdFormat.VMAP
    empty_stub = EMPTY_VMAP

    def ad_breaks(self) -> list[etree._Element]:
        return child_elements(self.root, self.config.ad_break)

    def ad_groups(self) -> list[AdGroup]:
        groups = []
        for ad_break in self.ad_breaks():
            for ad_source in child_elements(ad_break, self.config.ad_source):
                vast_ad_data = first_child(ad_source, self.config.vast_ad_data)
                vast = first_child(vast_ad_data, self.config.vast)
                if vast is not None:
                    groups.append(AdGroup(vast, child_elements(vast, self.config.ad)))
        return groups


_DOCUMENT_CLASSES: dict[AdFormat, type[AdDocument]] = {
    AdFormat.VAST: VastDocument,
    AdFormat.VMAP: VmapDocument,
}


class AdDocumentParser:
    """Parser turning ad server responses into ``AdDocument`` trees."""

    def __init__(self, config: NormalizerXPathConfig | None = None):
        self.config = config or NormalizerXPathConfig()
        self.logger = logger

    def _root_format(self, root: etree._Element) -> AdFormat | None:
        name = local_name(root)
        if name == self.config.vast:
            return AdFormat.VAST
        if name == self.config.vmap:
            return AdFormat.VMAP
        return None

    def parse(self, xml_text: str | bytes, ad_format: AdFormat | None = None) -> AdDocument:
        """Parse XML into an ad document.

        Args:
            xml_text: Raw VAST or VMAP XML
            ad_format: Expected format; detected from the root element when None

        Returns:
            VastDocument or VmapDocument

        Raises:
            AdXMLError: If the XML is malformed or its root is not the expected one
        """
        preview = xml_text[:200] if isinstance(xml_text, str) else xml_text[:200].decode(
            self.config.encoding, errors="replace"
        )
        self.logger.debug(NormalizerEvents.PARSE_STARTED, xml_length=len(xml_text))
        try:
            parser = etree.XMLParser(
                recover=self.config.recover_on_error,
                remove_blank_text=True,
                resolve_entities=False,
                no_network=True,
            )
            if isinstance(xml_text, str):
                data = _DECLARATION_PATTERN.sub("", xml_text, count=1).encode("utf-8")
            else:
                data = xml_text
            root = etree.fromstring(data, parser=parser)
        except etree.XMLSyntaxError as e:
            raise AdXMLError(
                f"Failed to parse ad XML: {str(e)}", xml_preview=preview, parser_error=e
            ) from e
        except (UnicodeError, ValueError) as e:
            raise AdXMLError(
                f"Failed to decode ad XML: {str(e)}", xml_preview=preview, parser_error=e
            ) from e
        if root is None:
            raise AdXMLError("Ad XML has no root element", xml_preview=preview)

        root_format = self._root_format(root)
        if root_format is None or (ad_format is not None and root_format != ad_format):
            raise AdXMLError(
                "Unexpected root element",
                xml_preview=preview,
                context={"root": local_name(root), "expected": ad_format.value if ad_format else None},
            )

        document = _DOCUMENT_CLASSES[root_format](root, self.config)
        self.logger.debug(
            NormalizerEvents.PARSE_SUCCESS, ad_format=root_format.value, ads=len(document.ads())
        )
        return document

    def parse_or_empty(self, xml_text: str | bytes, ad_format: AdFormat) -> AdDocument:
        """Parse XML, substituting an empty document of the same format on failure."""
        try:
            return self.parse(xml_text, ad_format)
        except AdXMLError as e:
            self.logger.error(NormalizerEvents.PARSE_FAILED, ad_format=ad_format.value, error=str(e))
            return self.empty(ad_format)

    def empty(self, ad_format: AdFormat) -> AdDocument:
        """Minimal valid document of the given format."""
        document_class = _DOCUMENT_CLASSES[ad_format]
        return self.parse(document_class.empty_stub, ad_format)


__all__ = [
    "AdFormat",
    "AdGroup",
    "AdDocument",
    "VastDocument",
    "VmapDocument",
    "AdDocumentParser",
    "local_name",
    "child_elements",
    "first_child",
]
