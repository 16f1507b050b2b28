"""
Per-call request context: correlation id, timeout and deadline.

A context is built by the caller and threaded through every proxy
operation. The deadline is computed lazily, the first time it is needed,
so work done by the caller before the request actually starts does not
consume the time budget.
"""

from typing import Optional

from oiosds.core.deadline import DeadlineManager, default_deadline_manager
from oiosds.core.ids import generate_request_id
from oiosds.shared.constants import DEFAULT_TIMEOUT_MS, MIN_REQUEST_ID_LENGTH
from oiosds.shared.contracts import check_argument, non_negative, positive


class RequestContext:
    """
    Generic parameters shared by all proxy requests.

    Holds a request id, a raw timeout and, once timing has started, an
    absolute deadline. Instances are not meant to be mutated concurrently;
    reading ``timeout`` or ``deadline`` (once set) from several threads is
    safe.
    """

    def __init__(
        self,
        timeout: int = DEFAULT_TIMEOUT_MS,
        request_id: Optional[str] = None,
        deadline_manager: Optional[DeadlineManager] = None,
    ):
        self._dm = deadline_manager or default_deadline_manager()
        self._request_id = request_id
        self._start: Optional[int] = None
        self._raw_timeout = DEFAULT_TIMEOUT_MS
        self._deadline: Optional[int] = None
        self.with_timeout(timeout)

    def __repr__(self) -> str:
        return (
            f"RequestContext(request_id={self._request_id!r}, "
            f"timeout={self._raw_timeout}, deadline={self._deadline})"
        )

    # -- Request ids --------------------------------------------------------

    def ensure_request_id(self) -> "RequestContext":
        """Make sure the request has an id of at least 8 characters."""
        if self._request_id is None:
            self._request_id = generate_request_id()
        elif len(self._request_id) < MIN_REQUEST_ID_LENGTH:
            missing = MIN_REQUEST_ID_LENGTH - len(self._request_id)
            self._request_id += generate_request_id()[:missing]
        return self

    @property
    def request_id(self) -> str:
        """The request id, generated on first access if not set."""
        self.ensure_request_id()
        return self._request_id  # type: ignore[return-value]

    def with_request_id(self, request_id: Optional[str]) -> "RequestContext":
        """
        Set the request id verbatim.

        ``None`` means a fresh id will be generated on next access; ids
        shorter than 8 characters get suffixed.
        """
        self._request_id = request_id
        return self

    # -- Deadlines and timeouts ---------------------------------------------

    @property
    def has_deadline(self) -> bool:
        return self._deadline is not None and self._deadline >= 0

    @property
    def deadline(self) -> int:
        """Absolute deadline in milliseconds, starting the timing if needed."""
        if not self.has_deadline:
            self.start_timing()
        return self._deadline  # type: ignore[return-value]

    @property
    def start(self) -> Optional[int]:
        """Clock value recorded by the last ``start_timing`` call."""
        return self._start

    def start_timing(self) -> None:
        """
        Record the start of the request.

        A deadline is derived from the raw timeout only if none is set yet;
        call ``reset_deadline`` first to force a new one.
        """
        self._start = self._dm.now()
        if not self.has_deadline:
            self._deadline = self._dm.timeout_to_deadline(self._raw_timeout, self._start)

    @property
    def timeout(self) -> int:
        """
        Time budget of the request, in milliseconds.

        Once a deadline is set, successive reads return decreasing values,
        and negative values after the deadline has passed.
        """
        if self.has_deadline:
            return self._dm.deadline_to_timeout(self._deadline)  # type: ignore[arg-type]
        return self._raw_timeout

    def with_deadline(self, deadline: int) -> "RequestContext":
        """
        Set a deadline on the whole request.

        The raw timeout becomes the duration from now to that deadline.
        """
        check_argument(
            isinstance(deadline, int) and non_negative(deadline),
            "deadline cannot be negative",
            argument="deadline",
            value=deadline,
        )
        self._deadline = int(deadline)
        self._raw_timeout = self._dm.deadline_to_timeout(self._deadline)
        return self

    def with_timeout(self, timeout: int) -> "RequestContext":
        """
        Set a timeout on the whole request, dropping any deadline.

        The deadline is computed from it on the next ``start_timing`` or
        ``deadline`` access.
        """
        check_argument(
            isinstance(timeout, int) and positive(timeout),
            "timeout must be positive",
            argument="timeout",
            value=timeout,
        )
        self._raw_timeout = int(timeout)
        self.reset_deadline()
        return self

    def reset_deadline(self) -> "RequestContext":
        """
        Forget the deadline, keeping the timeout and request id.

        Must be called when reusing a context for a new timing window.
        """
        self._deadline = None
        return self
