"""Ownership partition repository port."""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Protocol
from uuid import UUID

if TYPE_CHECKING:
    from coownership.domain.models.ownership import (
        OwnershipAuditEntry,
        OwnershipPartition,
    )


class OwnershipRepositoryProtocol(Protocol):
    """Protocol for ownership partition persistence.

    The partition is replaced as a whole, together with its audit rows,
    in one atomic operation. Audit rows are append-only.
    """

    @abstractmethod
    async def load_partition(self, vehicle_id: UUID) -> OwnershipPartition:
        """Load the committed partition of a vehicle.

        Args:
            vehicle_id: The vehicle.

        Returns:
            The current partition.

        Raises:
            PartitionNotFoundError: Vehicle has no partition.
        """
        ...

    @abstractmethod
    async def replace_partition(
        self,
        vehicle_id: UUID,
        partition: OwnershipPartition,
        audit_entries: list[OwnershipAuditEntry],
    ) -> None:
        """Atomically replace the partition and append its audit rows.

        Args:
            vehicle_id: The vehicle.
            partition: Full replacement partition (sums to 100).
            audit_entries: One row per affected co-owner.

        Raises:
            PartitionIntegrityError: Partition does not sum to 100.
        """
        ...

    @abstractmethod
    async def list_history(self, vehicle_id: UUID) -> list[OwnershipAuditEntry]:
        """Get the vehicle's audit trail, oldest first.

        Args:
            vehicle_id: The vehicle.

        Returns:
            Every audit row ever appended for the vehicle.
        """
        ...
