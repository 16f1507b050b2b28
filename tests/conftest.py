"""
Global pytest configuration and fixtures for oiosds tests.
"""
import json
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx
import pytest

from oiosds.core.context import RequestContext
from oiosds.core.deadline import DeadlineManager
from oiosds.infrastructure.http.request import RequestDescriptor
from oiosds.infrastructure.http.response import ResponseHandle


class FakeClock:
    """Clock that only moves when told to."""

    def __init__(self, start: int = 1_000):
        self.now_ms = start

    def now(self) -> int:
        return self.now_ms

    def advance(self, ms: int) -> None:
        self.now_ms += ms


class ScriptedTransport:
    """
    Transport answering from a per-host script.

    A script entry is a status code, a ``(status, body, headers)`` tuple, or
    an exception instance to raise. ``on_send`` runs before each answer.
    """

    def __init__(self, script: Dict[str, Any], on_send: Optional[Callable[[str], None]] = None):
        self.script = script
        self.on_send = on_send
        self.calls: List[Tuple[str, RequestDescriptor, int]] = []
        self.handles: List[ResponseHandle] = []
        self.releases: List[Tuple[str, bool]] = []

    @property
    def contacted(self) -> List[str]:
        return [host for host, _, _ in self.calls]

    def send(self, host: str, request: RequestDescriptor, timeout_ms: int) -> ResponseHandle:
        self.calls.append((host, request, timeout_ms))
        if self.on_send is not None:
            self.on_send(host)
        outcome = self.script[host]
        if isinstance(outcome, Exception):
            raise outcome
        if isinstance(outcome, int):
            outcome = (outcome, b"", {})
        status, body, headers = outcome
        if not isinstance(body, bytes):
            body = json.dumps(body).encode("utf-8")
        handle = ResponseHandle(
            status_code=status,
            headers=httpx.Headers(headers),
            stream=[body],
            release=lambda success, host=host: self.releases.append((host, success)),
            host=host,
        )
        self.handles.append(handle)
        return handle


@pytest.fixture
def clock() -> FakeClock:
    """Controllable clock for deadline tests."""
    return FakeClock()


@pytest.fixture
def deadline_manager(clock: FakeClock) -> DeadlineManager:
    return DeadlineManager(clock)


@pytest.fixture
def ctx(deadline_manager: DeadlineManager) -> RequestContext:
    """Fresh request context on the fake clock."""
    return RequestContext(deadline_manager=deadline_manager)


@pytest.fixture
def make_transport():
    """Factory for scripted transports."""
    def factory(script: Dict[str, Any], on_send: Optional[Callable[[str], None]] = None) -> ScriptedTransport:
        return ScriptedTransport(script, on_send)
    return factory
