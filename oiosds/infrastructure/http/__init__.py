"""
HTTP request layer for the proxy.

This package provides request descriptors, the transport abstraction,
per-resource-kind verifiers and the failover executor that ties them
together.
"""

from .client import ProxyHttp
from .failover import FailoverExecutor
from .request import RequestBuilder, RequestDescriptor, decode_model
from .response import ResponseHandle
from .transport import HttpxTransport, Transport
from .verifiers import (
    CONTAINER_VERIFIER,
    OBJECT_VERIFIER,
    REFERENCE_VERIFIER,
    STANDALONE_VERIFIER,
    Verdict,
    Verifier,
    verify,
)

__all__ = [
    "ProxyHttp",
    "FailoverExecutor",
    "RequestBuilder",
    "RequestDescriptor",
    "decode_model",
    "ResponseHandle",
    "HttpxTransport",
    "Transport",
    "CONTAINER_VERIFIER",
    "OBJECT_VERIFIER",
    "REFERENCE_VERIFIER",
    "STANDALONE_VERIFIER",
    "Verdict",
    "Verifier",
    "verify",
]
