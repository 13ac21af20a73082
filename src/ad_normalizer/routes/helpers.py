"""Route helper utilities."""

from typing import Any

from fastapi import HTTPException, Request

from ..ad_server import forwarded_headers


JSON_MEDIA_TYPE = "application/json"
XML_MEDIA_TYPE = "application/xml"


def _quality(params: list[str]) -> float:
    for param in params:
        name, _, value = param.partition("=")
        if name.strip().lower() == "q":
            try:
                return float(value.strip())
            except ValueError:
                return 1.0
    return 1.0


def wants_json(accept: str | None) -> bool:
    """Whether an ``Accept`` header asks for the JSON asset list.

    Media ranges with ``q=0`` are refused by the client and ignored. Anything
    else, including a missing header, gets XML.

    Examples:
        >>> wants_json("application/json")
        True
        >>> wants_json("application/json;q=0, application/xml")
        False
    """
    if not accept:
        return False
    for part in accept.split(","):
        media_type, *params = part.split(";")
        if media_type.strip().lower() == JSON_MEDIA_TYPE and _quality(params) > 0:
            return True
    return False


async def json_body(request: Request) -> dict[str, Any]:
    """Request body decoded as a JSON object.

    Raises:
        HTTPException: 400 if the body is not a JSON object
    """
    try:
        body = await request.json()
    except ValueError as e:
        raise HTTPException(status_code=400, detail="Failed to decode request body") from e
    if not isinstance(body, dict):
        raise HTTPException(status_code=400, detail="Request body must be a JSON object")
    return body


def query_params(request: Request) -> list[tuple[str, str]]:
    """Query string of a request, keeping repeated keys in order."""
    return list(request.query_params.multi_items())


def ad_server_headers(request: Request) -> dict[str, str]:
    """Headers of a request that are forwarded to the ad server."""
    return forwarded_headers(request.headers)


__all__ = [
    "wants_json",
    "json_body",
    "query_params",
    "ad_server_headers",
    "JSON_MEDIA_TYPE",
    "XML_MEDIA_TYPE",
]
