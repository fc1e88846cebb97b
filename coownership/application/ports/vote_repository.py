"""Vote repository port (the durable half of the vote ledger)."""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Protocol
from uuid import UUID

if TYPE_CHECKING:
    from coownership.domain.models.vote import Vote


class VoteRepositoryProtocol(Protocol):
    """Append-only vote store with a unique (proposal_id, voter_id) key.

    The uniqueness check and the insert are one atomic operation: two
    concurrent inserts for the same pair yield exactly one success.
    """

    @abstractmethod
    async def create(self, vote: Vote) -> None:
        """Insert a vote.

        Args:
            vote: The vote to record.

        Raises:
            AlreadyVotedError: A vote for (proposal_id, voter_id) exists.
        """
        ...

    @abstractmethod
    async def get_existing(self, proposal_id: UUID, voter_id: UUID) -> Vote | None:
        """Get a voter's vote on a proposal if one exists.

        Args:
            proposal_id: The proposal.
            voter_id: The voter.

        Returns:
            The recorded vote or None.
        """
        ...

    @abstractmethod
    async def list_for_proposal(self, proposal_id: UUID) -> list[Vote]:
        """Get every vote on a proposal ordered by cast_at.

        Args:
            proposal_id: The proposal.

        Returns:
            Votes, oldest first.
        """
        ...

    @abstractmethod
    async def list_for_voter(self, voter_id: UUID) -> list[Vote]:
        """Get every vote a user cast, newest first.

        Args:
            voter_id: The voter.

        Returns:
            Votes across all proposals.
        """
        ...
