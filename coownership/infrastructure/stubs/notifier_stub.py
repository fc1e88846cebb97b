"""In-memory stub for NotifierProtocol.

Records deliveries instead of sending them. Can be switched into a
failing mode to check that delivery errors never undo committed state.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any
from uuid import UUID


@dataclass(frozen=True)
class Delivery:
    """One recorded notification."""

    user_id: UUID
    event_kind: str
    payload: dict[str, Any]


class NotifierStub:
    """In-memory stub implementation of NotifierProtocol."""

    def __init__(self, fail_with: Exception | None = None) -> None:
        """Initialize stub.

        Args:
            fail_with: If set, every notify call raises this exception.
        """
        self._fail_with = fail_with
        self._deliveries: list[Delivery] = []

    async def notify(
        self,
        user_id: UUID,
        event_kind: str,
        payload: dict[str, Any],
    ) -> None:
        if self._fail_with is not None:
            raise self._fail_with
        self._deliveries.append(
            Delivery(user_id=user_id, event_kind=event_kind, payload=payload)
        )

    # Test helper methods

    @property
    def deliveries(self) -> list[Delivery]:
        return list(self._deliveries)

    def deliveries_to(self, user_id: UUID) -> list[Delivery]:
        return [d for d in self._deliveries if d.user_id == user_id]

    def deliveries_of(self, event_kind: str) -> list[Delivery]:
        return [d for d in self._deliveries if d.event_kind == event_kind]

    def fail_with(self, error: Exception | None) -> None:
        """Switch the failing mode on (error) or off (None)."""
        self._fail_with = error

    def reset(self) -> None:
        """Reset all stored data. Useful between tests."""
        self._deliveries.clear()
        self._fail_with = None
