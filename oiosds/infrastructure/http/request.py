"""
Request descriptors and the fluent builder the operation layer uses.
"""

import json
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any, Mapping, Optional, Sequence, Tuple, Type, TypeVar, Union

import pydantic

from oiosds.shared.exceptions import BodyDecodingError
from oiosds.shared.contracts import check_argument

if TYPE_CHECKING:
    from oiosds.core.context import RequestContext
    from oiosds.infrastructure.http.failover import FailoverExecutor
    from oiosds.infrastructure.http.response import ResponseHandle
    from oiosds.infrastructure.http.verifiers import Verifier

M = TypeVar("M")

Pairs = Tuple[Tuple[str, str], ...]


@dataclass(frozen=True)
class RequestDescriptor:
    """A fully resolved request, ready to be sent to any candidate host."""
    method: str
    path: str
    params: Pairs = ()
    headers: Pairs = ()
    body: Optional[bytes] = None

    def with_headers(self, headers: Mapping[str, str]) -> "RequestDescriptor":
        """Return a copy with ``headers`` set, replacing same-named ones."""
        names = {name.lower() for name in headers}
        kept = tuple((k, v) for k, v in self.headers if k.lower() not in names)
        return replace(self, headers=kept + tuple(headers.items()))

    def header(self, name: str) -> Optional[str]:
        for key, value in reversed(self.headers):
            if key.lower() == name.lower():
                return value
        return None


@dataclass
class RequestBuilder:
    """Collects one request's parts, then runs it through the executor."""
    executor: "FailoverExecutor"
    method: str
    path: str
    _params: list = field(default_factory=list)
    _headers: list = field(default_factory=list)
    _body: Optional[bytes] = None
    _hosts: Sequence[str] = ()
    _verifier: Optional["Verifier"] = None
    _ctx: Optional["RequestContext"] = None

    def query(self, name: str, value: Optional[Any]) -> "RequestBuilder":
        """Add a query parameter; ``None`` values are skipped."""
        if value is not None:
            self._params.append((name, str(value)))
        return self

    def header(self, name: str, value: Optional[Any]) -> "RequestBuilder":
        """Add a header; ``None`` values are skipped."""
        if value is not None:
            self._headers.append((name, str(value)))
        return self

    def body(self, body: Union[str, bytes, None]) -> "RequestBuilder":
        self._body = body.encode("utf-8") if isinstance(body, str) else body
        return self

    def json(self, payload: Any) -> "RequestBuilder":
        self.header("Content-Type", "application/json")
        return self.body(json.dumps(payload))

    def hosts(self, hosts: Sequence[str]) -> "RequestBuilder":
        self._hosts = hosts
        return self

    def verifier(self, verifier: "Verifier") -> "RequestBuilder":
        self._verifier = verifier
        return self

    def with_request_context(self, ctx: "RequestContext") -> "RequestBuilder":
        self._ctx = ctx
        return self

    def build(self) -> RequestDescriptor:
        return RequestDescriptor(
            method=self.method,
            path=self.path,
            params=tuple(self._params),
            headers=tuple(self._headers),
            body=self._body,
        )

    def execute(self) -> "ResponseHandle":
        """Run the request; the caller owns the returned handle."""
        check_argument(self._verifier is not None, "Missing verifier")
        check_argument(self._ctx is not None, "Missing request context")
        return self.executor.execute(self.build(), self._hosts, self._verifier, self._ctx)  # type: ignore[arg-type]

    def execute_as(self, model: Type[M]) -> M:
        """Run the request and decode the JSON body into ``model``."""
        return decode_model(self.execute(), model)


def decode_model(resp: "ResponseHandle", model: Type[M]) -> M:
    """Decode a response body into ``model`` and release the response.

    ``model`` may be any type pydantic can validate, e.g. ``List[ServiceInfo]``.
    Read failures surface from the handle as DeadlineExceededError or
    BodyDecodingError; the response is then released as failed.
    """
    success = False
    try:
        try:
            result = pydantic.TypeAdapter(model).validate_python(resp.json())
        except pydantic.ValidationError as e:
            raise BodyDecodingError(
                f"Unexpected body for {getattr(model, '__name__', model)}: {e}",
                details={"status_code": resp.status_code}
            ) from e
        success = True
        return result
    finally:
        resp.close(success)
