"""
Response verification per resource kind.

A verifier is a pure, total mapping from a status code (and headers) to a
Verdict: accept the response, fail with a specific domain error, or try the
next host. Only symptoms of the contacted host being unable to serve lead
to a retry; application-level rejections always surface as domain errors.
"""

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Mapping, Optional, Type

from oiosds.shared.exceptions import (
    BadRequestError,
    ClientError,
    ConflictError,
    ContainerNotEmptyError,
    ContainerNotFoundError,
    DomainError,
    NotFoundError,
    ObjectNotFoundError,
    ReferenceExistsError,
    ReferenceNotFoundError,
    ServerError,
    UnexpectedStatusError,
)
from oiosds.shared.types import ResourceKind, VerdictAction

# Statuses meaning the contacted proxy instance cannot serve right now
HOST_UNAVAILABLE_STATUSES: FrozenSet[int] = frozenset({502, 503})


@dataclass(frozen=True)
class Verdict:
    """Outcome of verifying one response."""
    action: VerdictAction
    status_code: int
    error_type: Optional[Type[DomainError]] = None
    message: str = ""

    @property
    def accepted(self) -> bool:
        return self.action is VerdictAction.ACCEPT


@dataclass(frozen=True)
class VerificationRules:
    """Statuses a resource kind accepts, and the errors it maps statuses to."""
    accept: FrozenSet[int]
    errors: Mapping[int, Type[DomainError]] = field(default_factory=dict)


VERIFICATION_RULES: Dict[ResourceKind, VerificationRules] = {
    ResourceKind.STANDALONE: VerificationRules(
        accept=frozenset({200, 204}),
        errors={400: BadRequestError, 404: NotFoundError},
    ),
    ResourceKind.REFERENCE: VerificationRules(
        accept=frozenset({200, 201, 202, 204}),
        errors={400: BadRequestError, 404: ReferenceNotFoundError, 409: ReferenceExistsError},
    ),
    ResourceKind.CONTAINER: VerificationRules(
        # 204 on creation means "already exists", handled by the caller
        accept=frozenset({200, 201, 204}),
        errors={400: BadRequestError, 404: ContainerNotFoundError, 409: ContainerNotEmptyError},
    ),
    ResourceKind.OBJECT: VerificationRules(
        accept=frozenset({200, 201, 204}),
        errors={400: BadRequestError, 404: ObjectNotFoundError, 409: ConflictError},
    ),
}


@dataclass(frozen=True)
class Verifier:
    """Verifier for one resource kind; dispatches on ``kind``."""
    kind: ResourceKind

    def __call__(self, status_code: int, headers: Optional[Mapping[str, str]] = None) -> Verdict:
        return verify(self.kind, status_code, headers)


def verify(kind: ResourceKind, status_code: int, headers: Optional[Mapping[str, str]] = None) -> Verdict:
    """Map a response status to a Verdict according to ``kind``'s rules."""
    rules = VERIFICATION_RULES[kind]

    if status_code in rules.accept:
        return Verdict(VerdictAction.ACCEPT, status_code)

    if status_code in HOST_UNAVAILABLE_STATUSES:
        return Verdict(
            VerdictAction.RETRY_NEXT_HOST,
            status_code,
            message=f"Proxy unavailable (HTTP {status_code})",
        )

    error_type = rules.errors.get(status_code)
    if error_type is None:
        if 400 <= status_code < 500:
            error_type = ClientError
        elif 500 <= status_code < 600:
            error_type = ServerError
        else:
            error_type = UnexpectedStatusError

    return Verdict(
        VerdictAction.DOMAIN_ERROR,
        status_code,
        error_type=error_type,
        message=f"{kind.value} request failed (HTTP {status_code})",
    )


STANDALONE_VERIFIER = Verifier(ResourceKind.STANDALONE)
REFERENCE_VERIFIER = Verifier(ResourceKind.REFERENCE)
CONTAINER_VERIFIER = Verifier(ResourceKind.CONTAINER)
OBJECT_VERIFIER = Verifier(ResourceKind.OBJECT)
