"""
Entry point of the HTTP layer: request builders bound to an executor.
"""

from typing import TYPE_CHECKING, Optional

from oiosds.infrastructure.http.failover import FailoverExecutor
from oiosds.infrastructure.http.request import RequestBuilder
from oiosds.infrastructure.http.transport import HttpxTransport, Transport

if TYPE_CHECKING:
    from oiosds.infrastructure.config import ProxySettings


class ProxyHttp:
    """Creates request builders that execute through host failover."""

    def __init__(self, transport: Optional[Transport] = None):
        self.transport = transport or HttpxTransport()
        self.executor = FailoverExecutor(self.transport)

    @classmethod
    def from_settings(cls, settings: "ProxySettings") -> "ProxyHttp":
        return cls(HttpxTransport(scheme=settings.scheme))

    def get(self, path: str) -> RequestBuilder:
        return RequestBuilder(self.executor, "GET", path)

    def post(self, path: str) -> RequestBuilder:
        return RequestBuilder(self.executor, "POST", path)

    def close(self) -> None:
        close = getattr(self.transport, "close", None)
        if close is not None:
            close()
