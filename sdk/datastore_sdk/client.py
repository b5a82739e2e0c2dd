"""
Data store client for Python SDK.

This module provides the transport layer:
- DataStoreClient: Async HTTP client, one coroutine per store operation
- TrafficReport: Summary of one completed HTTP exchange
- get_client / reset_client: Optional process-wide shared client

Example:
    >>> async with DataStoreClient(timeout_ms=5000) as store:
    ...     response = await store.list(ListRequest.unfiltered(games))
    ...     for record in response.raise_for_error().records():
    ...         print(record["title"])

Invariants:
    - Every operation is a POST to {host}/data/store/v1/{operation}
    - Each call owns its own deadline; cancelling one never affects another
    - Nothing is retried; errors reach the caller immediately
    - Application errors inside a 2xx response are never raised here
"""

from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

import httpx

from .config import DEFAULT_HOST, DEFAULT_TIMEOUT_MS, ClientSettings
from .errors import (
    ClientConfigurationError,
    DataStoreConnectionError,
    HttpStatusError,
    RequestTimeoutError,
    ResponseDecodeError,
)
from .models import (
    AllRequest,
    CountRankedListRequest,
    DeleteRequest,
    GetRequest,
    IncreaseCounterRequest,
    InsertRequest,
    ListRequest,
    MGetRequest,
    MSetRequest,
    PurgeRequest,
    Response,
    SetRequest,
)

logger = logging.getLogger(__name__)

API_PREFIX = "/data/store/v1"

TokenProvider = Callable[[], Awaitable[Optional[str]]]


@dataclass(frozen=True)
class TrafficReport:
    """One completed HTTP exchange, handed to the traffic reporter.

    Attributes:
        url: Requested URL
        method: HTTP method
        status: HTTP status code
        timestamp: ISO-8601 UTC time the response arrived
        response_headers: Response headers
    """

    url: str
    method: str
    status: int
    timestamp: str
    response_headers: dict[str, str] = field(default_factory=dict)


TrafficReporter = Callable[[TrafficReport], None]


class DataStoreClient:
    """Client for the data store HTTP API.

    Host and timeout are fixed for the client's lifetime. The client
    holds no other mutable state shared between calls, so one instance
    can serve any number of concurrent requests.

    Example:
        >>> store = DataStoreClient("https://store.example.com", timeout_ms=10000)
        >>> response = await store.get(GetRequest(games, index=Index.of(slug="skyfall")))
    """

    def __init__(
        self,
        host: str = DEFAULT_HOST,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        *,
        http_client: httpx.AsyncClient | None = None,
        token_provider: TokenProvider | None = None,
        traffic_reporter: TrafficReporter | None = None,
    ) -> None:
        """Initialize client.

        Args:
            host: Base URL of the data store API
            timeout_ms: Per-request timeout in milliseconds
            http_client: Optional preconfigured httpx client (not closed by us)
            token_provider: Optional coroutine function returning a bearer token
            traffic_reporter: Optional callback invoked after every HTTP exchange
        """
        if timeout_ms <= 0:
            raise ValueError(f"timeout_ms must be positive, got {timeout_ms}")

        self._host = host.rstrip("/")
        self._timeout_ms = timeout_ms
        self._http = http_client
        self._owns_http = http_client is None
        self._token_provider = token_provider
        self._traffic_reporter = traffic_reporter

    @classmethod
    def from_settings(cls, settings: ClientSettings | None = None, **kwargs: Any) -> DataStoreClient:
        """Build a client from ClientSettings (loaded from environment if omitted)."""
        settings = settings or ClientSettings()
        return cls(settings.host, settings.timeout_ms, **kwargs)

    @property
    def host(self) -> str:
        return self._host

    @property
    def timeout_ms(self) -> int:
        return self._timeout_ms

    def _client(self) -> httpx.AsyncClient:
        if self._http is None:
            # Deadlines are enforced per call in request()
            self._http = httpx.AsyncClient(timeout=None)
        return self._http

    async def close(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_http and self._http is not None:
            await self._http.aclose()
            self._http = None

    async def __aenter__(self) -> DataStoreClient:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    def url_for(self, operation: str) -> str:
        """Full URL of an operation endpoint."""
        return f"{self._host}{API_PREFIX}/{operation}"

    async def request(self, operation: str, body: dict[str, Any]) -> Response:
        """POST a request body to an operation endpoint.

        Args:
            operation: Endpoint name, e.g. "list"
            body: JSON request body

        Returns:
            Parsed response envelope, without error-field inspection

        Raises:
            RequestTimeoutError: If no response arrived within the timeout
            HttpStatusError: If the status is not 2xx
            DataStoreConnectionError: If the network exchange failed
            ResponseDecodeError: If the body is not a valid envelope
        """
        url = self.url_for(operation)
        logger.debug("POST %s", url)

        try:
            http_response = await asyncio.wait_for(
                self._post(url, body), timeout=self._timeout_ms / 1000
            )
        except (asyncio.TimeoutError, httpx.TimeoutException):
            logger.warning(f"Request timeout after {self._timeout_ms} ms: {url}")
            raise RequestTimeoutError(self._timeout_ms, url=url) from None
        except httpx.TransportError as e:
            logger.error(f"Request to {url} failed: {e}")
            raise DataStoreConnectionError(f"Request to {url} failed: {e}", url=url) from e

        if self._traffic_reporter is not None:
            self._report_traffic(http_response)

        if not http_response.is_success:
            logger.warning(f"HTTP error {http_response.status_code} from {url}")
            raise HttpStatusError(http_response.status_code, url=url, body=http_response.text)

        try:
            payload = http_response.json()
        except ValueError as e:
            logger.error(f"Response from {url} is not valid JSON: {e}")
            raise ResponseDecodeError(f"Response from {url} is not valid JSON: {e}") from e

        try:
            return Response.from_dict(payload)
        except ResponseDecodeError as e:
            logger.error(f"Malformed response from {url}: {e.message}")
            raise

    async def _post(self, url: str, body: dict[str, Any]) -> httpx.Response:
        headers = {"Content-Type": "application/json"}
        if self._token_provider is not None:
            token = await self._token_provider()
            if token:
                headers["Authorization"] = f"Bearer {token}"

        return await self._client().post(url, json=body, headers=headers)

    def _report_traffic(self, response: httpx.Response) -> None:
        report = TrafficReport(
            url=str(response.url),
            method="POST",
            status=response.status_code,
            timestamp=datetime.now(timezone.utc).isoformat(),
            response_headers=dict(response.headers),
        )
        try:
            self._traffic_reporter(report)
        except Exception:
            # A failing reporter never fails the request it observes
            logger.exception(f"Traffic reporter failed for {report.url}")

    # General operations

    async def all(self, request: AllRequest) -> Response:
        return await self.request(request.operation, request.to_dict())

    async def insert(self, request: InsertRequest) -> Response:
        return await self.request(request.operation, request.to_dict())

    async def purge(self, request: PurgeRequest) -> Response:
        return await self.request(request.operation, request.to_dict())

    # Index operations

    async def get(self, request: GetRequest) -> Response:
        return await self.request(request.operation, request.to_dict())

    async def set(self, request: SetRequest) -> Response:
        return await self.request(request.operation, request.to_dict())

    async def delete(self, request: DeleteRequest) -> Response:
        return await self.request(request.operation, request.to_dict())

    async def mget(self, request: MGetRequest) -> Response:
        return await self.request(request.operation, request.to_dict())

    async def mset(self, request: MSetRequest) -> Response:
        return await self.request(request.operation, request.to_dict())

    # List operations

    async def list(self, request: ListRequest) -> Response:
        return await self.request(request.operation, request.to_dict())

    # Counter and ranked list operations

    async def increase_counter(self, request: IncreaseCounterRequest) -> Response:
        return await self.request(request.operation, request.to_dict())

    async def count_ranked_list(self, request: CountRankedListRequest) -> Response:
        return await self.request(request.operation, request.to_dict())


# Shared client
_shared_client: DataStoreClient | None = None
_shared_lock = threading.Lock()


def get_client(host: str | None = None, timeout_ms: int | None = None) -> DataStoreClient:
    """Get the process-wide shared client.

    The first call builds the client; omitted parameters come from
    ClientSettings. Later calls return the same instance, and asking for
    a different host or timeout raises instead of being ignored.

    Raises:
        ClientConfigurationError: If host/timeout_ms differ from the active client
    """
    global _shared_client
    with _shared_lock:
        if _shared_client is None:
            settings = ClientSettings()
            _shared_client = DataStoreClient(
                host if host is not None else settings.host,
                timeout_ms if timeout_ms is not None else settings.timeout_ms,
            )
            logger.info(
                f"Shared data store client created for {_shared_client.host} "
                f"(timeout {_shared_client.timeout_ms} ms)"
            )
            return _shared_client

        requested: dict[str, Any] = {}
        if host is not None and host.rstrip("/") != _shared_client.host:
            requested["host"] = host
        if timeout_ms is not None and timeout_ms != _shared_client.timeout_ms:
            requested["timeout_ms"] = timeout_ms
        if requested:
            raise ClientConfigurationError(
                "Shared data store client is already configured; construct a "
                "DataStoreClient directly for different settings",
                requested=requested,
                active={"host": _shared_client.host, "timeout_ms": _shared_client.timeout_ms},
            )
        return _shared_client


def reset_client() -> None:
    """Forget the shared client (for testing only). It is not closed."""
    global _shared_client
    with _shared_lock:
        _shared_client = None
