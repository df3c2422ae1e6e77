"""Transport collaborators that perform the actual network I/O.

The lifecycle engine never talks to the network directly; it hands a built
``httpx.Request`` to a ``Transport`` and receives a fully read
``httpx.Response`` back, or a connection-level exception.
"""

import ssl
from typing import Protocol, Self, runtime_checkable

import certifi
import httpx

from .config import LifecycleSettings, get_settings
from .log_config import logger


@runtime_checkable
class Transport(Protocol):
    """Protocol for the component that sends requests over the wire.

    Implementations must return a response whose body has been read, and
    should raise ``httpx.TransportError`` (or ``OSError``) when no response
    could be obtained.
    """

    async def send(self, request: httpx.Request) -> httpx.Response:
        """Send the request and return the materialized response."""
        ...

    async def aclose(self) -> None:
        """Release any underlying resources. Must be idempotent."""
        ...


class HttpxTransport:
    """Transport backed by an ``httpx.AsyncClient``.

    Attributes:
        _http_client: The underlying httpx.AsyncClient for making requests.
        _should_close_client: Flag indicating if this instance owns the _http_client.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        *,
        settings: LifecycleSettings | None = None,
    ):
        """Initialize the transport.

        Args:
            http_client: Optional pre-configured httpx.AsyncClient instance. When
                given, the caller keeps ownership and is responsible for closing it.
            settings: Settings used to configure a default client.
        """
        self._settings = settings or get_settings()
        self._should_close_client = http_client is None
        self._http_client = http_client or self._create_default_http_client()

    def _create_default_http_client(self) -> httpx.AsyncClient:
        """Create a default httpx.AsyncClient.

        Timeouts are left to the lifecycle engine, so the client itself is
        configured without one.
        """
        try:
            ssl_context = ssl.create_default_context(cafile=certifi.where())
            verify_ssl: ssl.SSLContext | bool = ssl_context
            logger.debug("Using certifi SSL context.")
        except Exception:
            verify_ssl = True
            logger.warning(
                "certifi not found or failed to load. Using default SSL verification."
            )

        return httpx.AsyncClient(
            timeout=None,
            verify=verify_ssl,
            headers={"User-Agent": self._settings.user_agent},
        )

    async def send(self, request: httpx.Request) -> httpx.Response:
        # client.send() does not merge client-level headers
        if not request.headers.get("User-Agent"):
            request.headers["User-Agent"] = self._settings.user_agent

        response = await self._http_client.send(request, stream=True)
        try:
            await response.aread()
        finally:
            await response.aclose()
        return response

    async def aclose(self) -> None:
        if self._should_close_client and not self._http_client.is_closed:
            await self._http_client.aclose()
            logger.debug("HttpxTransport internal HTTP client closed.")

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()
