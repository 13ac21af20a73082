"""
Ad Server Client

Fetches VAST/VMAP documents from the upstream ad server on behalf of a
player, forwarding the request's query string and the client identification
headers the ad server needs for targeting.
"""

import time
from collections.abc import Mapping

import httpx

from .config import EMPTY_VAST, EMPTY_VMAP
from .document import AdFormat
from .events import NormalizerEvents
from .exceptions import AdServerError
from .helpers import append_query_params
from .log_config import get_context_logger


DEVICE_USER_AGENT_HEADER = "X-Device-User-Agent"
FORWARDED_FOR_HEADER = "X-Forwarded-For"
FORWARDED_HEADERS = (DEVICE_USER_AGENT_HEADER, FORWARDED_FOR_HEADER)

_EMPTY_DOCUMENTS = {AdFormat.VAST: EMPTY_VAST, AdFormat.VMAP: EMPTY_VMAP}


def forwarded_headers(headers: Mapping[str, str] | None) -> dict[str, str]:
    """Headers of an inbound request that are passed on to the ad server.

    Lookup is case-insensitive; headers that are absent or empty are skipped.
    """
    if not headers:
        return {}
    lowered = {key.lower(): value for key, value in headers.items()}
    result = {}
    for name in FORWARDED_HEADERS:
        value = lowered.get(name.lower())
        if value:
            result[name] = value
    return result


class AdServerClient:
    """
    Client for the upstream ad server.

    Examples:
        >>> client = AdServerClient("https://ads.example.com/api/vmap", http_client)
        >>> xml = await client.fetch(
        ...     AdFormat.VMAP,
        ...     query_params=[("dur", "60")],
        ...     headers={"X-Forwarded-For": "203.0.113.7"},
        ... )
    """

    def __init__(self, base_url: str, http_client: httpx.AsyncClient):
        self.base_url = base_url
        self.http_client = http_client
        self.logger = get_context_logger("ad_server")

    async def request(
        self,
        query_params: list[tuple[str, str]] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> str:
        """Perform the ad server request.

        Returns:
            Response body text (gzip encoded bodies are decoded by httpx)

        Raises:
            AdServerError: On transport errors and non-200 responses
        """
        url = append_query_params(self.base_url, query_params)
        request_headers = {"Accept": "application/xml", **forwarded_headers(headers)}
        try:
            response = await self.http_client.get(url, headers=request_headers)
        except httpx.HTTPError as e:
            raise AdServerError(f"Ad server request failed: {str(e)}", url=url) from e

        if response.status_code != 200:
            raise AdServerError(
                "Ad server returned an error status",
                url=url,
                status_code=response.status_code,
            )
        return response.text

    async def fetch(
        self,
        ad_format: AdFormat,
        query_params: list[tuple[str, str]] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> str:
        """Fetch an ad document; never raises.

        Returns:
            Response body, or the empty document of ``ad_format`` on any failure
        """
        self.logger.info(NormalizerEvents.REQUEST_STARTED, ad_format=ad_format.value)
        start_time = time.time()
        try:
            body = await self.request(query_params, headers)
        except AdServerError as e:
            self.logger.error(
                NormalizerEvents.REQUEST_FAILED,
                ad_format=ad_format.value,
                status_code=e.status_code,
                error=str(e),
            )
            return _EMPTY_DOCUMENTS[ad_format]

        self.logger.info(
            NormalizerEvents.REQUEST_SUCCESS,
            ad_format=ad_format.value,
            elapsed_time=time.time() - start_time,
            content_length=len(body),
        )
        return body


__all__ = [
    "AdServerClient",
    "forwarded_headers",
    "DEVICE_USER_AGENT_HEADER",
    "FORWARDED_FOR_HEADER",
]
