"""Proposal repository port."""

from __future__ import annotations

from abc import abstractmethod
from collections.abc import Iterable
from typing import TYPE_CHECKING, Protocol
from uuid import UUID

if TYPE_CHECKING:
    from coownership.domain.models.proposal import (
        Proposal,
        ProposalKind,
        ProposalStatus,
    )


class ProposalRepositoryProtocol(Protocol):
    """Protocol for proposal persistence.

    Status updates are compare-and-swap on the expected current status so
    that two racing writers cannot both move a proposal out of the same
    status (and so cannot both trigger its effect).
    """

    @abstractmethod
    async def save(self, proposal: Proposal) -> None:
        """Persist a newly created proposal.

        Args:
            proposal: Proposal in Pending status.
        """
        ...

    @abstractmethod
    async def get(self, proposal_id: UUID) -> Proposal | None:
        """Load a proposal.

        Args:
            proposal_id: The proposal.

        Returns:
            The proposal, or None if it doesn't exist.
        """
        ...

    @abstractmethod
    async def update_status(
        self,
        proposal: Proposal,
        expected_status: ProposalStatus,
    ) -> Proposal:
        """Replace a stored proposal if its status is still as expected.

        Args:
            proposal: New version of the proposal.
            expected_status: Status the stored version must have.

        Returns:
            The stored new version.

        Raises:
            ProposalNotFoundError: Proposal doesn't exist.
            ConcurrentModificationError: Stored status differs.
        """
        ...

    @abstractmethod
    async def list_by_vehicle(
        self,
        vehicle_id: UUID,
        statuses: Iterable[ProposalStatus] | None = None,
        kind: ProposalKind | None = None,
    ) -> list[Proposal]:
        """List a vehicle's proposals, newest first.

        Args:
            vehicle_id: The vehicle.
            statuses: Only these statuses (all if None).
            kind: Only this kind (all if None).

        Returns:
            Matching proposals.
        """
        ...

    @abstractmethod
    async def list_by_ids(self, proposal_ids: Iterable[UUID]) -> list[Proposal]:
        """Load several proposals at once.

        Args:
            proposal_ids: Ids to load; unknown ids are skipped.

        Returns:
            Found proposals in the order of the given ids.
        """
        ...
