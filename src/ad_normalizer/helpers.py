"""Helper functions for ad normalizer operations."""

import math
import posixpath
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from .exceptions import AdDurationError


def parse_timestamp(timestamp: str | None) -> int | float:
    """Convert an ``HH:MM:SS`` (optionally ``HH:MM:SS.mmm``) duration to seconds.

    Args:
        timestamp: Duration string (e.g., "00:00:30")

    Returns:
        Duration in seconds; an int when the value is whole

    Raises:
        AdDurationError: If the duration is absent or not in HH:MM:SS form

    Examples:
        >>> parse_timestamp("00:01:45")
        105
        >>> parse_timestamp("00:00:15.5")
        15.5
    """
    if not timestamp:
        raise AdDurationError("Missing duration", duration_text=timestamp)

    parts = timestamp.strip().split(":")
    if len(parts) != 3:
        raise AdDurationError(
            f"Invalid duration format: {timestamp}. Expected HH:MM:SS",
            duration_text=timestamp,
        )
    try:
        seconds = int(parts[0]) * 3600 + int(parts[1]) * 60 + float(parts[2])
    except ValueError as e:
        raise AdDurationError(
            f"Failed to parse duration value: {str(e)}",
            duration_text=timestamp,
        ) from e

    return int(seconds) if seconds.is_integer() else seconds


def calculate_aspect_ratio(width: int, height: int) -> str:
    """Reduce a resolution to its aspect ratio.

    Examples:
        >>> calculate_aspect_ratio(1920, 1080)
        '16:9'
        >>> calculate_aspect_ratio(640, 480)
        '4:3'
    """
    if width == 0 or height == 0:
        return "0:0"
    divisor = math.gcd(width, height)
    return f"{width // divisor}:{height // divisor}"


def parse_frame_rate(frame_rate: str) -> float:
    """Parse a ``numerator/denominator`` frame rate, rounded to 2 decimals.

    Unparseable input yields 0.0.

    Examples:
        >>> parse_frame_rate("30000/1001")
        29.97
        >>> parse_frame_rate("25")
        25.0
    """
    parts = frame_rate.split("/")
    try:
        numerator = float(parts[0])
    except ValueError:
        return 0.0
    denominator = 1.0
    if len(parts) == 2:
        try:
            denominator = float(parts[1]) or 1.0
        except ValueError:
            pass
    return round(numerator / denominator, 2)


def _folder_path(folder: str) -> str:
    # Object storage URLs (s3://bucket/path) map onto /bucket/path of the asset server
    parsed = urlsplit(folder)
    if parsed.scheme and parsed.netloc:
        return posixpath.join(parsed.netloc, parsed.path.lstrip("/"))
    return folder.lstrip("/")


def create_package_url(asset_server_url: str, output_folder: str, base_name: str) -> str:
    """Build the URL of a packaged HLS multivariant playlist.

    Args:
        asset_server_url: Base URL of the asset server
        output_folder: Folder (path or object storage URL) holding the package
        base_name: Playlist base name, without extension

    Examples:
        >>> create_package_url("http://test-Server.com", "test-folder", "test-base")
        'http://test-server.com/test-folder/test-base.m3u8'
    """
    parsed = urlsplit(asset_server_url)
    path = posixpath.normpath(
        posixpath.join(parsed.path or "/", _folder_path(output_folder), f"{base_name}.m3u8")
    )
    return urlunsplit((parsed.scheme, parsed.netloc.lower(), path, "", ""))


def create_output_url(bucket_url: str, folder: str) -> str:
    """Build the object storage folder a transcode job writes to.

    Examples:
        >>> create_output_url("s3://ads-bucket", "ad123")
        's3://ads-bucket/ad123/'
    """
    parsed = urlsplit(bucket_url)
    path = posixpath.join(parsed.path or "/", folder.strip("/"))
    return urlunsplit((parsed.scheme, parsed.netloc, path, "", "")) + "/"


def append_query_params(base_url: str, params: list[tuple[str, str]] | None = None) -> str:
    """Append query parameters to a URL, keeping the ones it already has.

    Repeated keys are preserved, as on an inbound query string.

    Examples:
        >>> append_query_params("https://ads.example.com/vast?a=1", [("b", "2"), ("b", "3")])
        'https://ads.example.com/vast?a=1&b=2&b=3'
    """
    if not params:
        return base_url
    parsed = urlsplit(base_url)
    query = parse_qsl(parsed.query, keep_blank_values=True) + list(params)
    return urlunsplit(
        (parsed.scheme, parsed.netloc, parsed.path, urlencode(query), parsed.fragment)
    )


__all__ = [
    "parse_timestamp",
    "calculate_aspect_ratio",
    "parse_frame_rate",
    "create_package_url",
    "create_output_url",
    "append_query_params",
]
