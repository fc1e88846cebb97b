"""In-memory stub for ProposalRepositoryProtocol.

Status updates are compare-and-swap: the stored status is compared with
the caller's expected status and replaced in the same event-loop step.
"""

from __future__ import annotations

from collections.abc import Iterable
from uuid import UUID

from coownership.domain.errors import ConcurrentModificationError, ProposalNotFoundError
from coownership.domain.models.proposal import Proposal, ProposalKind, ProposalStatus


class ProposalRepositoryStub:
    """In-memory stub implementation of ProposalRepositoryProtocol.

    This stub maintains:
    - A dictionary of proposals keyed by id
    - The list of (proposal_id, status) writes, for transition assertions
    """

    def __init__(self) -> None:
        """Initialize empty stub."""
        self._proposals: dict[UUID, Proposal] = {}
        self._status_writes: list[tuple[UUID, ProposalStatus]] = []

    async def save(self, proposal: Proposal) -> None:
        if proposal.id in self._proposals:
            raise ValueError(f"Proposal {proposal.id} already exists")
        self._proposals[proposal.id] = proposal
        self._status_writes.append((proposal.id, proposal.status))

    async def get(self, proposal_id: UUID) -> Proposal | None:
        return self._proposals.get(proposal_id)

    async def update_status(
        self,
        proposal: Proposal,
        expected_status: ProposalStatus,
    ) -> Proposal:
        stored = self._proposals.get(proposal.id)
        if stored is None:
            raise ProposalNotFoundError(proposal.id)
        if stored.status is not expected_status:
            raise ConcurrentModificationError(proposal.id, expected_status)

        self._proposals[proposal.id] = proposal
        self._status_writes.append((proposal.id, proposal.status))
        return proposal

    async def list_by_vehicle(
        self,
        vehicle_id: UUID,
        statuses: Iterable[ProposalStatus] | None = None,
        kind: ProposalKind | None = None,
    ) -> list[Proposal]:
        wanted = frozenset(statuses) if statuses is not None else None
        matches = [
            p
            for p in self._proposals.values()
            if p.vehicle_id == vehicle_id
            and (wanted is None or p.status in wanted)
            and (kind is None or p.kind is kind)
        ]
        matches.sort(key=lambda p: p.created_at, reverse=True)
        return matches

    async def list_by_ids(self, proposal_ids: Iterable[UUID]) -> list[Proposal]:
        return [
            self._proposals[pid] for pid in proposal_ids if pid in self._proposals
        ]

    # Test helper methods

    def get_stored(self, proposal_id: UUID) -> Proposal | None:
        return self._proposals.get(proposal_id)

    def status_writes_for(self, proposal_id: UUID) -> list[ProposalStatus]:
        """Get every status written for a proposal, in order."""
        return [status for pid, status in self._status_writes if pid == proposal_id]

    def reset(self) -> None:
        """Reset all stored data. Useful between tests."""
        self._proposals.clear()
        self._status_writes.clear()
