"""
Argument checks for public client operations.

Preconditions are verified synchronously, before any network call, and a
violation always surfaces as InvalidArgumentError.
"""

import functools
import inspect
from typing import Any, Callable, TypeVar, Optional, Union
import structlog

from oiosds.shared.exceptions import InvalidArgumentError

logger = structlog.get_logger(__name__)

F = TypeVar('F', bound=Callable[..., Any])

INVALID_URL_MSG = "Invalid url"


def check_argument(condition: bool, message: str = "Invalid argument", argument: Optional[str] = None, value: Any = None) -> None:
    """
    Raise InvalidArgumentError unless condition holds.

    Args:
        condition: Result of the precondition
        message: Error message for the violation
        argument: Name of the offending argument, if known
        value: Offending value, if known

    Raises:
        InvalidArgumentError: If condition is false
    """
    if not condition:
        raise InvalidArgumentError(message, argument=argument, value=value)


def require(condition: Callable[..., bool], message: str = "") -> Callable[[F], F]:
    """
    Precondition decorator - validates input parameters.

    The condition receives the bound arguments of the call by name.

    Args:
        condition: Callable taking the function arguments as keywords
        message: Custom error message for contract violation

    Returns:
        Decorated function with precondition checking
    """
    def decorator(func: F) -> F:
        sig = inspect.signature(func)

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            bound_args = sig.bind(*args, **kwargs)
            bound_args.apply_defaults()
            arguments = dict(bound_args.arguments)
            arguments.pop("self", None)

            if not condition(**arguments):
                error_msg = message or f"Precondition failed in {func.__name__}"
                logger.debug(
                    "Precondition violation",
                    function=func.__name__,
                    message=error_msg
                )
                raise InvalidArgumentError(error_msg)

            return func(*args, **kwargs)

        return wrapper  # type: ignore[return-value]
    return decorator


# Common conditions

def positive(value: Union[int, float]) -> bool:
    """Check if value is a positive number (booleans excluded)."""
    return isinstance(value, (int, float)) and not isinstance(value, bool) and value > 0


def non_negative(value: Union[int, float]) -> bool:
    """Check if value is a non-negative number (booleans excluded)."""
    return isinstance(value, (int, float)) and not isinstance(value, bool) and value >= 0


def non_empty_string(value: Optional[str]) -> bool:
    """Check if string is non-empty after stripping whitespace."""
    return isinstance(value, str) and len(value.strip()) > 0
