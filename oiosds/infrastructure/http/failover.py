"""
Request execution with host failover and deadline enforcement.

This module runs one logical request against an ordered list of proxy
hosts. Hosts are tried strictly one at a time, each list entry once, with a
per-attempt timeout equal to whatever is left of the request context's
budget. There is no backoff and no jitter: failover is immediate.
"""

from typing import Dict, List, Optional, Sequence

import structlog

from oiosds.core.context import RequestContext
from oiosds.infrastructure.http.request import RequestDescriptor
from oiosds.infrastructure.http.response import ResponseHandle
from oiosds.infrastructure.http.transport import Transport
from oiosds.infrastructure.http.verifiers import Verdict, Verifier
from oiosds.shared.constants import REQUEST_ID_HEADER, TIMEOUT_HEADER
from oiosds.shared.exceptions import (
    BodyDecodingError,
    DeadlineExceededError,
    DomainError,
    HostUnavailableError,
    TransportError,
    TransportTimeoutError,
    refine_domain_error,
)
from oiosds.shared.types import VerdictAction

logger = structlog.get_logger(__name__)


class FailoverExecutor:
    """Executes request descriptors across candidate hosts."""

    def __init__(self, transport: Transport):
        """
        Initialize executor.

        Args:
            transport: Sends one request to one host
        """
        self.transport = transport

    def execute(
        self,
        request: RequestDescriptor,
        hosts: Sequence[str],
        verifier: Verifier,
        ctx: RequestContext,
    ) -> ResponseHandle:
        """
        Execute ``request`` on the first host that answers meaningfully.

        Args:
            request: Resolved request to send
            hosts: Candidate hosts, tried in order
            verifier: Rules for the target resource kind
            ctx: Timing and correlation state of the call

        Returns:
            The accepted response, body unread. The caller must close it.

        Raises:
            DomainError: If a host answered with a semantic rejection
            DeadlineExceededError: If the budget ran out before or during an attempt
            HostUnavailableError: If every host failed
        """
        if not ctx.has_deadline:
            ctx.start_timing()

        operation = f"{request.method} {request.path}"
        attempted: List[str] = []
        failures: Dict[str, str] = {}

        for host in hosts:
            remaining = ctx.timeout
            if remaining <= 0:
                raise self._expired(operation, ctx, remaining, attempted)

            attempted.append(host)
            outgoing = request.with_headers({
                REQUEST_ID_HEADER: ctx.request_id,
                TIMEOUT_HEADER: str(remaining * 1000),
            })

            try:
                resp = self.transport.send(host, outgoing, remaining).bind_deadline(ctx)
            except TransportTimeoutError as e:
                failures[host] = e.message
                logger.warning(
                    "Proxy attempt timed out",
                    host=host,
                    request_id=ctx.request_id,
                    remaining_ms=remaining,
                )
                continue
            except TransportError as e:
                failures[host] = e.message
                logger.warning(
                    "Proxy host unreachable",
                    host=host,
                    request_id=ctx.request_id,
                    error=e.message,
                )
                continue

            verdict = verifier(resp.status_code, resp.headers)

            if verdict.action is VerdictAction.ACCEPT:
                logger.debug(
                    "Proxy request accepted",
                    host=host,
                    request_id=ctx.request_id,
                    status_code=resp.status_code,
                    attempt=len(attempted),
                )
                return resp

            if verdict.action is VerdictAction.RETRY_NEXT_HOST:
                resp.close(success=False)
                failures[host] = verdict.message
                logger.warning(
                    "Proxy host cannot serve, trying next",
                    host=host,
                    request_id=ctx.request_id,
                    status_code=resp.status_code,
                )
                continue

            raise self._domain_error(resp, verdict, verifier, ctx)

        remaining = ctx.timeout
        if remaining <= 0:
            raise self._expired(operation, ctx, remaining, attempted)

        logger.error(
            "All proxy hosts failed",
            request_id=ctx.request_id,
            hosts=attempted,
            operation=operation,
        )
        raise HostUnavailableError(attempted, failures)

    def _expired(
        self,
        operation: str,
        ctx: RequestContext,
        remaining: int,
        attempted: List[str],
    ) -> DeadlineExceededError:
        logger.warning(
            "Request deadline exceeded",
            request_id=ctx.request_id,
            operation=operation,
            remaining_ms=remaining,
            attempts=len(attempted),
        )
        return DeadlineExceededError(operation, remaining, hosts=attempted)

    def _domain_error(
        self,
        resp: ResponseHandle,
        verdict: Verdict,
        verifier: Verifier,
        ctx: RequestContext,
    ) -> DomainError:
        """Build the typed error for ``verdict`` and release the response."""
        message = verdict.message
        proxy_status: Optional[int] = None
        success = False
        try:
            body = resp.json()
            if isinstance(body, dict):
                proxy_status = _as_int(body.get("status"))
                message = str(body.get("message") or message)
            success = True
        except (BodyDecodingError, TransportError) as e:
            logger.debug("Unreadable error body", host=resp.host, error=e.message)
        finally:
            resp.close(success)

        error_type = refine_domain_error(verdict.error_type or DomainError, proxy_status)
        logger.info(
            "Proxy rejected request",
            host=resp.host,
            request_id=ctx.request_id,
            status_code=verdict.status_code,
            error=error_type.__name__,
        )
        return error_type(
            message,
            status_code=verdict.status_code,
            resource_kind=verifier.kind,
            details={"proxy_status": proxy_status, "host": resp.host, "request_id": ctx.request_id},
        )


def _as_int(value) -> Optional[int]:
    try:
        return int(value) if value is not None else None
    except (TypeError, ValueError):
        return None
