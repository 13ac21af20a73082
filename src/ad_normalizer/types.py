"""Type definitions for the ad normalizer."""

import json
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any


if TYPE_CHECKING:
    from lxml import etree


_DECIMAL = re.compile(r"\d+(\.\d+)?")


class TranscodeStatus(str, Enum):
    """Lifecycle status of a creative's transcode/packaging job."""

    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    IN_PROGRESS = "IN_PROGRESS"
    TRANSCODING = "TRANSCODING"
    PACKAGING = "PACKAGING"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def parse(cls, value: str | None) -> "TranscodeStatus":
        """Decode a stored status string, mapping anything unrecognised to UNKNOWN."""
        try:
            return cls(value)
        except ValueError:
            return cls.UNKNOWN


@dataclass
class Creative:
    """One creative of an ad response.

    ``creative_id`` is the derived key; ``master_playlist_url`` is the source
    media URL until the creative is resolved, then the packaged asset URL.
    """

    creative_id: str
    master_playlist_url: str

    def to_dict(self) -> dict[str, str]:
        return {"creativeId": self.creative_id, "masterPlaylistUrl": self.master_playlist_url}


@dataclass
class TranscodeInfo:
    """Transcode status record kept in the store, keyed by creative id."""

    url: str = ""
    aspect_ratio: str = ""
    framerates: list[float] = field(default_factory=list)
    status: TranscodeStatus = TranscodeStatus.UNKNOWN
    source: str | None = None
    last_update: int | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "url": self.url,
            "aspectRatio": self.aspect_ratio,
            "framerates": list(self.framerates),
            "status": self.status.value,
        }
        if self.source:
            data["source"] = self.source
        if self.last_update:
            data["lastUpdate"] = self.last_update
        if self.error:
            data["error"] = self.error
        return data

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TranscodeInfo":
        return cls(
            url=data.get("url") or "",
            aspect_ratio=data.get("aspectRatio") or "",
            framerates=list(data.get("framerates") or data.get("frameRates") or []),
            status=TranscodeStatus.parse(data.get("status")),
            source=data.get("source"),
            last_update=data.get("lastUpdate"),
            error=data.get("error"),
        )

    @classmethod
    def from_json(cls, raw: str | bytes) -> "TranscodeInfo":
        return cls.from_dict(json.loads(raw))


@dataclass
class MediaRendition:
    """One declared ``MediaFile`` of a creative.

    Attributes are the raw attribute strings (``None`` when absent). ``element``
    is the backing XML element, mutated in place by the rewriter.
    """

    url: str
    type: str | None = None
    bitrate: str | None = None
    width: str | None = None
    height: str | None = None
    element: "etree._Element | None" = field(default=None, repr=False, compare=False)

    @property
    def bitrate_value(self) -> float:
        """Numeric bitrate; absent, unparseable or non-finite bitrates count as 0."""
        if self.bitrate is None:
            return 0.0
        text = self.bitrate.strip()
        if not _DECIMAL.fullmatch(text):
            return 0.0
        return float(text)


@dataclass
class AssetDescription:
    """Entry of an HLS interstitial asset list."""

    uri: str
    duration: float

    def to_dict(self) -> dict[str, Any]:
        return {"URI": self.uri, "DURATION": self.duration}


@dataclass
class NormalizedResponse:
    """Outcome of one normalization pass.

    ``assets`` are the ready creatives with resolved URLs, ``xml`` the ad
    document text they were extracted from. Both response encodings are
    derived from this single payload.
    """

    assets: list[Creative] = field(default_factory=list)
    xml: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"assets": [asset.to_dict() for asset in self.assets], "xml": self.xml}


__all__ = [
    "TranscodeStatus",
    "Creative",
    "TranscodeInfo",
    "MediaRendition",
    "AssetDescription",
    "NormalizedResponse",
]
