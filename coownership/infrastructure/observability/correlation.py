"""Request correlation IDs carried through async code via contextvars.

The HTTP middleware sets the ID at request start (from the
X-Correlation-ID header or a fresh UUID4); the structlog processor below
stamps it on every log entry emitted while that request is handled,
including entries from the consensus services it calls.
"""

from contextvars import ContextVar
from typing import Any
from uuid import uuid4

CORRELATION_ID_HEADER = "X-Correlation-ID"

# Empty string means "outside any request"
_correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")


def generate_correlation_id() -> str:
    """Return a new UUID4 string."""
    return str(uuid4())


def get_correlation_id() -> str:
    """Get the current correlation ID, or an empty string if none is set."""
    return _correlation_id.get()


def set_correlation_id(correlation_id: str) -> None:
    """Bind a correlation ID to the current context."""
    _correlation_id.set(correlation_id)


def correlation_id_processor(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Structlog processor adding correlation_id when one is set.

    Args:
        logger: Unused, required by structlog.
        method_name: Unused, required by structlog.
        event_dict: The event dictionary to modify.

    Returns:
        The event dictionary.
    """
    correlation_id = get_correlation_id()
    if correlation_id:
        event_dict.setdefault("correlation_id", correlation_id)
    return event_dict
