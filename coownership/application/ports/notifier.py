"""Notification delivery port."""

from __future__ import annotations

from abc import abstractmethod
from typing import Any, Protocol
from uuid import UUID


class NotifierProtocol(Protocol):
    """Fire-and-forget delivery of proposal events to users.

    Callers invoke this only after the state change is committed. A
    delivery failure must never roll back that change; callers log it and
    move on.
    """

    @abstractmethod
    async def notify(
        self,
        user_id: UUID,
        event_kind: str,
        payload: dict[str, Any],
    ) -> None:
        """Deliver one event to one user.

        Args:
            user_id: Recipient.
            event_kind: Event type constant.
            payload: Serialized event.
        """
        ...
