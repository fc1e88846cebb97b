"""In-memory stub for CoOwnerRegistryProtocol.

Membership is mutable so tests can add or remove co-owners while a
proposal is pending (frozen threshold, membership drift).
"""

from __future__ import annotations

from uuid import UUID


class CoOwnerRegistryStub:
    """In-memory stub implementation of CoOwnerRegistryProtocol.

    This stub maintains:
    - A set of active co-owner ids per vehicle
    - A set of administrator ids (not tied to a vehicle)
    """

    def __init__(self) -> None:
        """Initialize empty stub."""
        self._co_owners: dict[UUID, set[UUID]] = {}
        self._administrators: set[UUID] = set()

    async def is_active_co_owner(self, vehicle_id: UUID, user_id: UUID) -> bool:
        return user_id in self._co_owners.get(vehicle_id, set())

    async def active_co_owner_count(self, vehicle_id: UUID) -> int:
        return len(self._co_owners.get(vehicle_id, set()))

    async def active_co_owner_ids(self, vehicle_id: UUID) -> frozenset[UUID]:
        return frozenset(self._co_owners.get(vehicle_id, set()))

    async def is_administrator(self, user_id: UUID) -> bool:
        return user_id in self._administrators

    # Test helper methods

    def add_co_owner(self, vehicle_id: UUID, user_id: UUID) -> None:
        """Register an active co-ownership."""
        self._co_owners.setdefault(vehicle_id, set()).add(user_id)

    def add_co_owners(self, vehicle_id: UUID, user_ids: list[UUID]) -> None:
        for user_id in user_ids:
            self.add_co_owner(vehicle_id, user_id)

    def remove_co_owner(self, vehicle_id: UUID, user_id: UUID) -> None:
        """End a co-ownership (e.g. the co-owner sold their share)."""
        self._co_owners.get(vehicle_id, set()).discard(user_id)

    def add_administrator(self, user_id: UUID) -> None:
        self._administrators.add(user_id)

    def reset(self) -> None:
        """Reset all stored data. Useful between tests."""
        self._co_owners.clear()
        self._administrators.clear()
