"""
Response handle with scoped release of the body stream.
"""

import json
from typing import TYPE_CHECKING, Any, Callable, Iterable, Iterator, Mapping, Optional

import structlog

from oiosds.shared.exceptions import (
    BodyDecodingError,
    DeadlineExceededError,
    TransportError,
    TransportTimeoutError,
)

if TYPE_CHECKING:
    from oiosds.core.context import RequestContext

logger = structlog.get_logger(__name__)

OIO_CHARSET = "utf-8"


class ResponseHandle:
    """
    One attempt's response: status, headers and an unconsumed body stream.

    The body must be released exactly once with ``close(success)``. The
    flag tells the transport whether the exchange completed cleanly, so it
    can decide between reusing and dropping the connection. Using the
    handle as a context manager releases it on every exit path.
    """

    def __init__(
        self,
        status_code: int,
        headers: Mapping[str, str],
        stream: Iterable[bytes],
        release: Optional[Callable[[bool], None]] = None,
        host: Optional[str] = None,
    ):
        self.status_code = status_code
        self.headers = headers
        self.host = host
        self._stream = stream
        self._release = release
        self._closed = False
        self._ctx: Optional["RequestContext"] = None

    def __enter__(self) -> "ResponseHandle":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close(success=exc_type is None)

    def __repr__(self) -> str:
        return f"ResponseHandle(status_code={self.status_code}, host={self.host!r})"

    @property
    def closed(self) -> bool:
        return self._closed

    def header(self, name: str) -> Optional[str]:
        return self.headers.get(name)

    def int_header(self, name: str) -> Optional[int]:
        """Header value as an integer, ``None`` when absent or malformed."""
        value = self.headers.get(name)
        if value is None:
            return None
        try:
            return int(value)
        except ValueError:
            logger.debug("Ignoring non-integer header", header=name, value=value)
            return None

    def bind_deadline(self, ctx: "RequestContext") -> "ResponseHandle":
        """Stop body reads once the deadline of ``ctx`` has passed."""
        self._ctx = ctx
        return self

    def _remaining(self) -> Optional[int]:
        return self._ctx.timeout if self._ctx is not None else None

    def _expired(self, remaining: int) -> DeadlineExceededError:
        hosts = [self.host] if self.host else []
        return DeadlineExceededError(f"reading body from {self.host}", remaining, hosts=hosts)

    def _check_deadline(self) -> None:
        remaining = self._remaining()
        if remaining is not None and remaining <= 0:
            raise self._expired(remaining)

    def iter_bytes(self) -> Iterator[bytes]:
        """
        Iterate over the body.

        Raises:
            DeadlineExceededError: If the bound deadline passes, or the read times out
            BodyDecodingError: If the connection fails while reading
        """
        self._check_deadline()
        chunks = iter(self._stream)
        while True:
            try:
                chunk = next(chunks)
            except StopIteration:
                return
            except TransportTimeoutError as e:
                raise self._expired(self._remaining() or 0) from e
            except TransportError as e:
                raise BodyDecodingError(
                    f"Cannot read body from {self.host}: {e.message}",
                    details={"status_code": self.status_code, "host": self.host}
                ) from e
            self._check_deadline()
            yield chunk

    def read(self) -> bytes:
        return b"".join(self.iter_bytes())

    def text(self) -> str:
        return self.read().decode(OIO_CHARSET, errors="replace")

    def json(self) -> Any:
        """Decode the body as JSON."""
        raw = self.read()
        try:
            return json.loads(raw.decode(OIO_CHARSET))
        except (UnicodeDecodeError, ValueError) as e:
            raise BodyDecodingError(
                f"Body extraction error: {e}",
                details={"status_code": self.status_code, "host": self.host}
            ) from e

    def close(self, success: bool = True) -> None:
        """Release the body stream; later calls do nothing."""
        if self._closed:
            return
        self._closed = True
        if self._release is not None:
            self._release(success)
