"""Vote ledger: records at most one vote per (proposal, voter).

Quorum evaluation is not done here. The state machine runs it as the
next step, under the same per-proposal lock, after the vote is durable.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from structlog import get_logger

from coownership.domain.errors import (
    AlreadyVotedError,
    NotEligibleVoterError,
    ProposalNotPendingError,
)
from coownership.domain.models.proposal import Proposal, ProposalStatus
from coownership.domain.models.vote import Vote, VoteDecision

if TYPE_CHECKING:
    from coownership.application.ports.co_owner_registry import (
        CoOwnerRegistryProtocol,
    )
    from coownership.application.ports.vote_repository import VoteRepositoryProtocol

logger = get_logger(__name__)


class VoteLedgerService:
    """Casts votes against the append-only vote store.

    The service ensures:
    1. The voter is an active co-owner of the vehicle right now
    2. The voter has not voted on this proposal before
    3. The proposal is still Pending
    4. The uniqueness check and insert are one atomic store operation
    """

    def __init__(
        self,
        vote_repo: VoteRepositoryProtocol,
        co_owner_registry: CoOwnerRegistryProtocol,
    ) -> None:
        self._vote_repo = vote_repo
        self._co_owner_registry = co_owner_registry

    async def cast_vote(
        self,
        proposal: Proposal,
        voter_id: UUID,
        decision: VoteDecision,
        *,
        comment: str | None = None,
        automatic: bool = False,
    ) -> Vote:
        """Record a vote.

        A repeat attempt is reported as AlreadyVotedError even if the
        first vote already finalized the proposal, so a voter always
        learns that their earlier vote stands.

        Args:
            proposal: The proposal, as loaded under its lock.
            voter_id: The voter.
            decision: Approve or Reject.
            comment: Optional remark.
            automatic: True for the proposer's synthesized approval.

        Returns:
            The recorded vote.

        Raises:
            NotEligibleVoterError: Voter is not an active co-owner.
            AlreadyVotedError: Voter already voted on this proposal.
            ProposalNotPendingError: Proposal has left Pending.
        """
        log = logger.bind(
            proposal_id=str(proposal.id),
            voter_id=str(voter_id),
            decision=decision.value,
        )

        if not await self._co_owner_registry.is_active_co_owner(
            proposal.vehicle_id, voter_id
        ):
            log.warning("vote_rejected_not_eligible")
            raise NotEligibleVoterError(
                proposal_id=proposal.id,
                voter_id=voter_id,
                vehicle_id=proposal.vehicle_id,
            )

        existing = await self._vote_repo.get_existing(proposal.id, voter_id)
        if existing is not None:
            log.info(
                "duplicate_vote_attempt",
                existing_vote_id=str(existing.vote_id),
                existing_decision=existing.decision.value,
                detection_method="pre_persistence_check",
            )
            raise AlreadyVotedError(
                proposal_id=proposal.id,
                voter_id=voter_id,
                existing_vote_id=existing.vote_id,
                cast_at=existing.cast_at,
            )

        if proposal.status is not ProposalStatus.PENDING:
            log.warning("vote_rejected_not_pending", status=proposal.status.value)
            raise ProposalNotPendingError(proposal.id, proposal.status, action="vote on")

        cast_at = datetime.now(timezone.utc)
        vote = Vote(
            vote_id=uuid4(),
            proposal_id=proposal.id,
            voter_id=voter_id,
            decision=decision,
            cast_at=cast_at,
            content_hash=Vote.compute_content_hash(
                proposal.id, voter_id, decision, cast_at
            ),
            comment=comment,
            automatic=automatic,
        )

        try:
            await self._vote_repo.create(vote)
        except AlreadyVotedError:
            log.warning(
                "duplicate_vote_constraint_violation",
                detection_method="unique_constraint",
            )
            raise

        log.info("vote_recorded", vote_id=str(vote.vote_id), automatic=automatic)
        return vote
