"""
Custom exceptions for the oiosds client.

This module defines every error the client raises, providing a clear error
hierarchy so callers can tell caller mistakes, semantic rejections by the
proxy, host availability problems and expired deadlines apart.
"""

from typing import Optional, Dict, Any, List, Type

from oiosds.shared.types import ResourceKind


class OioError(Exception):
    """Base exception for all oiosds errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None, error_code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.error_code = error_code


class InvalidArgumentError(OioError):
    """Raised when a caller passes a malformed argument."""

    def __init__(self, message: str, argument: Optional[str] = None, value: Any = None, **kwargs):
        super().__init__(message, **kwargs)
        self.argument = argument
        self.value = value


class ConfigurationError(OioError):
    """Raised when there are configuration or setup issues."""
    pass


class BodyDecodingError(OioError):
    """Raised when an accepted response body cannot be decoded."""
    pass


class DomainError(OioError):
    """Base class for semantic rejections returned by the proxy."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        resource_kind: Optional[ResourceKind] = None,
        **kwargs
    ):
        super().__init__(message, **kwargs)
        self.status_code = status_code
        self.resource_kind = resource_kind


class BadRequestError(DomainError):
    """Raised when the proxy rejects a request as malformed."""
    pass


class NotFoundError(DomainError):
    """Raised when the target entity does not exist."""
    pass


class ReferenceNotFoundError(NotFoundError):
    """Raised when a directory reference does not exist."""
    pass


class ContainerNotFoundError(NotFoundError):
    """Raised when a container does not exist."""
    pass


class ObjectNotFoundError(NotFoundError):
    """Raised when an object does not exist."""
    pass


class AlreadyExistsError(DomainError):
    """Raised when trying to create an entity that already exists."""
    pass


class ReferenceExistsError(AlreadyExistsError):
    pass


class ContainerExistsError(AlreadyExistsError):
    pass


class ConflictError(DomainError):
    """Raised when the request conflicts with the entity's current state."""
    pass


class ContainerNotEmptyError(ConflictError):
    pass


class ClientError(DomainError):
    """Raised for 4xx statuses without a more specific meaning."""
    pass


class ServerError(DomainError):
    """Raised when the proxy answers with an internal error."""
    pass


class UnexpectedStatusError(DomainError):
    """Raised when the proxy answers with a status no rule expects."""
    pass


class HostUnavailableError(OioError):
    """Raised when every candidate host failed to answer meaningfully."""

    def __init__(self, hosts: List[str], failures: Optional[Dict[str, str]] = None, **kwargs):
        message = "No proxy host available"
        if hosts:
            message += f" (tried: {', '.join(hosts)})"
        super().__init__(message, **kwargs)
        self.hosts = list(hosts)
        self.failures = dict(failures or {})


class DeadlineExceededError(OioError):
    """Raised when a request runs out of time."""

    def __init__(self, operation: str, timeout_ms: int, hosts: Optional[List[str]] = None, **kwargs):
        super().__init__(f"Deadline exceeded: {operation} (remaining {timeout_ms}ms)", **kwargs)
        self.operation = operation
        self.timeout_ms = timeout_ms
        self.hosts = list(hosts or [])


class TransportError(OioError):
    """Raised by a transport when a host cannot be reached."""

    def __init__(self, message: str, host: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.host = host


class TransportTimeoutError(TransportError):
    """Raised by a transport when the per-attempt timeout elapses."""
    pass


# Refinements of a 404 driven by the proxy's own status code in the error body
PROXY_STATUS_ERRORS: Dict[int, Type[DomainError]] = {
    406: ContainerNotFoundError,
    420: ObjectNotFoundError,
    431: ReferenceNotFoundError,
}


def refine_domain_error(error_type: Type[DomainError], proxy_status: Optional[int]) -> Type[DomainError]:
    """Narrow a generic not-found error using the proxy status code."""
    if proxy_status is None or not issubclass(error_type, NotFoundError):
        return error_type
    return PROXY_STATUS_ERRORS.get(proxy_status, error_type)
