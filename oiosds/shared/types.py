"""
Type definitions for oiosds.

This module contains the custom type definitions used throughout
the client to keep units and identifiers explicit.
"""

from typing import NewType
from enum import Enum

# Identifiers
RequestID = NewType('RequestID', str)

# Time-related types, all on the monotonic clock
Milliseconds = NewType('Milliseconds', int)


class ResourceKind(str, Enum):
    """Kinds of entity the proxy serves, each with its own verification rules."""
    STANDALONE = "standalone"
    REFERENCE = "reference"
    CONTAINER = "container"
    OBJECT = "object"


class VerdictAction(str, Enum):
    """Outcome of verifying a proxy response."""
    ACCEPT = "accept"
    DOMAIN_ERROR = "domain_error"
    RETRY_NEXT_HOST = "retry_next_host"
