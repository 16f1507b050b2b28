"""Request id generation."""

from uuid import uuid4

from oiosds.shared.types import RequestID


def generate_request_id() -> RequestID:
    """Return a fresh 32-character hexadecimal request id."""
    return RequestID(uuid4().hex.upper())
