"""HTTP client manager for connection pooling and lifecycle management."""

from typing import Optional

import httpx


USER_AGENT = "eyevinn/ad-normalizer"


class HttpClientManager:
    """Manages HTTP client lifecycle and pooling.

    One pool serves ad server requests, a second one the Encore API.
    Clients are created lazily and closed together on shutdown.
    """

    def __init__(
        self,
        ad_server_timeout: float = 10.0,
        encore_timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize HTTP client manager.

        Args:
            ad_server_timeout: Request timeout for the ad server, in seconds
            encore_timeout: Request timeout for Encore, in seconds
            transport: Transport shared by both clients (tests pass a mock)
        """
        self.ad_server_timeout = ad_server_timeout
        self.encore_timeout = encore_timeout
        self._transport = transport
        self._ad_server_client: Optional[httpx.AsyncClient] = None
        self._encore_client: Optional[httpx.AsyncClient] = None

    def _build(self, timeout: float, limits: httpx.Limits) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=timeout,
            limits=limits,
            headers={"User-Agent": USER_AGENT},
            follow_redirects=True,
            transport=self._transport,
        )

    def get_ad_server_client(self) -> httpx.AsyncClient:
        """Get or create the ad server HTTP client."""
        if self._ad_server_client is None:
            self._ad_server_client = self._build(
                self.ad_server_timeout,
                httpx.Limits(max_keepalive_connections=20, max_connections=100),
            )
        return self._ad_server_client

    def get_encore_client(self) -> httpx.AsyncClient:
        """Get or create the Encore HTTP client."""
        if self._encore_client is None:
            self._encore_client = self._build(
                self.encore_timeout,
                httpx.Limits(max_keepalive_connections=10, max_connections=20),
            )
        return self._encore_client

    async def close(self):
        """Close all HTTP clients."""
        if self._ad_server_client:
            await self._ad_server_client.aclose()
            self._ad_server_client = None
        if self._encore_client:
            await self._encore_client.aclose()
            self._encore_client = None


__all__ = ["HttpClientManager", "USER_AGENT"]
