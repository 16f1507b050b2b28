"""
Transport abstraction: send one prepared request to one host.

The executor only depends on the ``Transport`` protocol, so tests can swap
in scripted transports. ``HttpxTransport`` is the production binding; httpx
owns connection pooling.
"""

from typing import Optional, Protocol

import httpx
import structlog

from oiosds.infrastructure.http.request import RequestDescriptor
from oiosds.infrastructure.http.response import ResponseHandle
from oiosds.shared.exceptions import TransportError, TransportTimeoutError

logger = structlog.get_logger(__name__)


class Transport(Protocol):
    """Protocol for sending a request to a single candidate host."""

    def send(self, host: str, request: RequestDescriptor, timeout_ms: int) -> ResponseHandle:
        """
        Send ``request`` to ``host`` within ``timeout_ms``.

        Returns a handle whose body has not been consumed yet.

        Raises:
            TransportTimeoutError: If the host did not answer in time
            TransportError: If the host could not be reached
        """
        ...


class HttpxTransport:
    """Transport over a shared ``httpx.Client``."""

    def __init__(self, client: Optional[httpx.Client] = None, scheme: str = "http"):
        """
        Initialize transport.

        Args:
            client: Client to send through; a default one is created if omitted
            scheme: URL scheme used to reach the hosts
        """
        self._client = client or httpx.Client()
        self._owns_client = client is None
        self.scheme = scheme

    def send(self, host: str, request: RequestDescriptor, timeout_ms: int) -> ResponseHandle:
        timeout = max(timeout_ms, 1) / 1000.0
        try:
            http_request = self._client.build_request(
                request.method,
                f"{self.scheme}://{host}{request.path}",
                params=list(request.params),
                headers=list(request.headers),
                content=request.body,
                timeout=timeout,
            )
            response = self._client.send(http_request, stream=True)
        except httpx.InvalidURL as e:
            raise TransportError(f"Invalid address {host}: {e}", host=host) from e
        except httpx.TimeoutException as e:
            raise TransportTimeoutError(f"Timed out after {timeout_ms}ms: {e}", host=host) from e
        except httpx.TransportError as e:
            raise TransportError(f"Connection to {host} failed: {e}", host=host) from e

        return ResponseHandle(
            status_code=response.status_code,
            headers=response.headers,
            stream=_BodyStream(response),
            release=lambda success: _release(response, success),
            host=host,
        )

    def close(self) -> None:
        if self._owns_client:
            self._client.close()


class _BodyStream:
    """Defers iteration of the httpx body until the caller reads it."""

    def __init__(self, response: httpx.Response):
        self._response = response

    def __iter__(self):
        try:
            yield from self._response.iter_bytes()
        except httpx.TimeoutException as e:
            raise TransportTimeoutError(f"Timed out reading body: {e}") from e
        except httpx.TransportError as e:
            raise TransportError(f"Body read failed: {e}") from e


def _release(response: httpx.Response, success: bool) -> None:
    # Only a drained response goes back to the pool.
    if success and not response.is_stream_consumed:
        try:
            response.read()
        except httpx.HTTPError as e:
            logger.warning("Failed to drain response body", error=str(e))
    response.close()
