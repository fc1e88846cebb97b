"""Co-owner registry port.

Answers membership and role questions about vehicles. Membership is
owned by the surrounding application (contracts, group management); the
consensus core only reads it.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import Protocol
from uuid import UUID


class CoOwnerRegistryProtocol(Protocol):
    """Protocol for co-owner membership and role lookup.

    Answers reflect membership at call time. The consensus core freezes
    the co-owner count on a proposal at creation, but eligibility to vote
    is always checked against current membership.
    """

    @abstractmethod
    async def is_active_co_owner(self, vehicle_id: UUID, user_id: UUID) -> bool:
        """Check whether a user is an active co-owner of a vehicle.

        Args:
            vehicle_id: The vehicle.
            user_id: The user.

        Returns:
            True if the user currently holds an active co-ownership.
        """
        ...

    @abstractmethod
    async def active_co_owner_count(self, vehicle_id: UUID) -> int:
        """Count the vehicle's active co-owners.

        Args:
            vehicle_id: The vehicle.

        Returns:
            Number of active co-owners (0 for unknown vehicles).
        """
        ...

    @abstractmethod
    async def active_co_owner_ids(self, vehicle_id: UUID) -> frozenset[UUID]:
        """Get the ids of the vehicle's active co-owners.

        Args:
            vehicle_id: The vehicle.

        Returns:
            Frozenset of user ids (empty for unknown vehicles).
        """
        ...

    @abstractmethod
    async def is_administrator(self, user_id: UUID) -> bool:
        """Check whether a user holds the administrator role.

        Args:
            user_id: The user.

        Returns:
            True for administrators.
        """
        ...
