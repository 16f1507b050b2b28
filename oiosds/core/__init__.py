"""
Timing core: deadline arithmetic and per-call request contexts.
"""

from .context import RequestContext
from .deadline import Clock, DeadlineManager, MonotonicClock, default_deadline_manager
from .ids import generate_request_id

__all__ = [
    "RequestContext",
    "Clock",
    "DeadlineManager",
    "MonotonicClock",
    "default_deadline_manager",
    "generate_request_id",
]
