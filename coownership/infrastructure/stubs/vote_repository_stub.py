"""In-memory stub for VoteRepositoryProtocol.

Simulates the unique (proposal_id, voter_id) constraint. The check and
the insert run without an intervening await, so two concurrent creates
for the same pair always yield one success and one AlreadyVotedError.
"""

from __future__ import annotations

from uuid import UUID

from coownership.domain.errors import AlreadyVotedError
from coownership.domain.models.vote import Vote


class VoteRepositoryStub:
    """In-memory stub implementation of VoteRepositoryProtocol.

    Votes are keyed by (proposal_id, voter_id) and never updated or
    removed.
    """

    def __init__(self) -> None:
        """Initialize empty stub."""
        self._votes: dict[tuple[UUID, UUID], Vote] = {}

    async def create(self, vote: Vote) -> None:
        key = (vote.proposal_id, vote.voter_id)
        existing = self._votes.get(key)
        if existing is not None:
            raise AlreadyVotedError(
                proposal_id=vote.proposal_id,
                voter_id=vote.voter_id,
                existing_vote_id=existing.vote_id,
                cast_at=existing.cast_at,
            )
        self._votes[key] = vote

    async def get_existing(self, proposal_id: UUID, voter_id: UUID) -> Vote | None:
        return self._votes.get((proposal_id, voter_id))

    async def list_for_proposal(self, proposal_id: UUID) -> list[Vote]:
        votes = [v for v in self._votes.values() if v.proposal_id == proposal_id]
        votes.sort(key=lambda v: v.cast_at)
        return votes

    async def list_for_voter(self, voter_id: UUID) -> list[Vote]:
        votes = [v for v in self._votes.values() if v.voter_id == voter_id]
        votes.sort(key=lambda v: v.cast_at, reverse=True)
        return votes

    # Test helper methods

    def count_for(self, proposal_id: UUID, voter_id: UUID) -> int:
        """Number of stored votes for a pair (0 or 1)."""
        return 1 if (proposal_id, voter_id) in self._votes else 0

    def reset(self) -> None:
        """Reset all stored data. Useful between tests."""
        self._votes.clear()
