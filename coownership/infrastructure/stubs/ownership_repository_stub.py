"""In-memory stub for OwnershipRepositoryProtocol.

Replaces a whole partition and appends its audit rows in one step; the
audit list is append-only. A partition that does not sum to 100 is
refused, mirroring a database check constraint.
"""

from __future__ import annotations

from decimal import Decimal
from uuid import UUID

from coownership.domain.errors import PartitionIntegrityError, PartitionNotFoundError
from coownership.domain.models.ownership import (
    OwnershipAuditEntry,
    OwnershipPartition,
)


class OwnershipRepositoryStub:
    """In-memory stub implementation of OwnershipRepositoryProtocol."""

    def __init__(self, tolerance: Decimal = Decimal("0.001")) -> None:
        """Initialize empty stub.

        Args:
            tolerance: Allowed deviation of a stored partition from 100.
        """
        self._tolerance = tolerance
        self._partitions: dict[UUID, OwnershipPartition] = {}
        self._history: dict[UUID, list[OwnershipAuditEntry]] = {}

    async def load_partition(self, vehicle_id: UUID) -> OwnershipPartition:
        partition = self._partitions.get(vehicle_id)
        if partition is None:
            raise PartitionNotFoundError(vehicle_id)
        return partition

    async def replace_partition(
        self,
        vehicle_id: UUID,
        partition: OwnershipPartition,
        audit_entries: list[OwnershipAuditEntry],
    ) -> None:
        if partition.vehicle_id != vehicle_id:
            raise ValueError(
                f"partition belongs to vehicle {partition.vehicle_id}, not {vehicle_id}"
            )
        if not partition.sums_to_hundred(self._tolerance):
            raise PartitionIntegrityError(vehicle_id, partition.total_percentage)

        # No await between the check and both writes: atomic on the event loop
        self._partitions[vehicle_id] = partition
        self._history.setdefault(vehicle_id, []).extend(audit_entries)

    async def list_history(self, vehicle_id: UUID) -> list[OwnershipAuditEntry]:
        return sorted(self._history.get(vehicle_id, []), key=lambda e: e.recorded_at)

    # Test helper methods

    def seed_partition(self, partition: OwnershipPartition) -> None:
        """Install a committed partition without audit rows."""
        self._partitions[partition.vehicle_id] = partition
        self._history.setdefault(partition.vehicle_id, [])

    def get_stored_partition(self, vehicle_id: UUID) -> OwnershipPartition | None:
        return self._partitions.get(vehicle_id)

    def reset(self) -> None:
        """Reset all stored data. Useful between tests."""
        self._partitions.clear()
        self._history.clear()
