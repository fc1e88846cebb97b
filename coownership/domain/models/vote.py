"""Vote domain model.

A vote is created once and never mutated or deleted. The
(proposal_id, voter_id) pair is unique: a voter casts at most one vote
per proposal, ever. The proposer's approval is synthesized automatically
when the proposal is created and counts toward the tally.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from uuid import UUID

import blake3


class VoteDecision(Enum):
    """A voter's decision."""

    APPROVE = "Approve"
    REJECT = "Reject"


@dataclass(frozen=True, eq=True)
class Vote:
    """One co-owner's decision on one proposal.

    Attributes:
        vote_id: Unique identifier.
        proposal_id: Proposal voted on.
        voter_id: Co-owner who voted.
        decision: Approve or Reject.
        cast_at: When the vote was recorded (UTC timezone-aware).
        content_hash: BLAKE3 digest of the canonical vote content (32 bytes).
        comment: Optional remark from the voter.
        automatic: True for the proposer's synthesized approval.
    """

    vote_id: UUID
    proposal_id: UUID
    voter_id: UUID
    decision: VoteDecision
    cast_at: datetime
    content_hash: bytes
    comment: str | None = field(default=None)
    automatic: bool = field(default=False)

    def __post_init__(self) -> None:
        """Validate vote fields.

        Raises:
            ValueError: If any field validation fails.
        """
        if self.cast_at.tzinfo is None:
            raise ValueError("cast_at must be timezone-aware (UTC)")
        if len(self.content_hash) != 32:
            raise ValueError(
                f"content_hash must be 32 bytes (BLAKE3), got {len(self.content_hash)}"
            )

    @property
    def is_approval(self) -> bool:
        return self.decision is VoteDecision.APPROVE

    @staticmethod
    def compute_content_hash(
        proposal_id: UUID,
        voter_id: UUID,
        decision: VoteDecision,
        cast_at: datetime,
    ) -> bytes:
        """Compute BLAKE3 hash for vote content.

        Args:
            proposal_id: The proposal voted on.
            voter_id: The voter.
            decision: The decision.
            cast_at: When the vote is being recorded.

        Returns:
            32-byte BLAKE3 hash of the canonical content.
        """
        content = (
            f"{proposal_id}|{voter_id}|{decision.value}|{cast_at.isoformat()}"
        ).encode("utf-8")
        return blake3.blake3(content).digest()

    def verify_content_hash(self) -> bool:
        """Check that content_hash matches the vote's fields."""
        expected = self.compute_content_hash(
            self.proposal_id, self.voter_id, self.decision, self.cast_at
        )
        return self.content_hash == expected

    def to_dict(self) -> dict:
        return {
            "vote_id": str(self.vote_id),
            "proposal_id": str(self.proposal_id),
            "voter_id": str(self.voter_id),
            "decision": self.decision.value,
            "cast_at": self.cast_at.isoformat(),
            "content_hash": self.content_hash.hex(),
            "comment": self.comment,
            "automatic": self.automatic,
        }


@dataclass(frozen=True, eq=True)
class VoteTally:
    """Approve/reject counts recomputed from recorded votes."""

    approvals: int = 0
    rejections: int = 0

    @property
    def total(self) -> int:
        return self.approvals + self.rejections

    @classmethod
    def from_votes(cls, votes: Iterable[Vote]) -> VoteTally:
        approvals = 0
        rejections = 0
        for vote in votes:
            if vote.is_approval:
                approvals += 1
            else:
                rejections += 1
        return cls(approvals=approvals, rejections=rejections)
