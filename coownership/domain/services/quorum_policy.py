"""Quorum policy: pure mapping from a vote tally to an outcome.

Rules, in order:
1. Any rejection vetoes immediately, whatever the policy.
2. Majority approves once approvals >= ceil(total_eligible / 2).
3. Unanimous approves once every eligible voter approved.
4. Otherwise the proposal stays pending.

``total_eligible`` is the co-owner count frozen on the proposal at
creation. A sole owner is approved by their own automatic vote under
either policy.
"""

from __future__ import annotations

import math
from enum import Enum


class QuorumPolicy(Enum):
    """Approval threshold rule."""

    MAJORITY = "Majority"
    UNANIMOUS = "Unanimous"


class QuorumOutcome(Enum):
    """Result of evaluating a tally against a policy."""

    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"


def required_approvals(total_eligible: int, policy: QuorumPolicy) -> int:
    """Compute the approval threshold for a voter population.

    Args:
        total_eligible: Number of active co-owners (must be >= 1).
        policy: Threshold rule.

    Returns:
        Number of approvals needed to approve.

    Raises:
        ValueError: If total_eligible < 1.
    """
    if total_eligible < 1:
        raise ValueError(f"total_eligible must be at least 1, got {total_eligible}")
    if policy is QuorumPolicy.MAJORITY:
        return math.ceil(total_eligible / 2)
    return total_eligible


def evaluate(
    total_eligible: int,
    approvals: int,
    rejections: int,
    policy: QuorumPolicy,
) -> QuorumOutcome:
    """Evaluate a tally.

    Args:
        total_eligible: Frozen voter population of the proposal.
        approvals: Approve votes recorded so far.
        rejections: Reject votes recorded so far.
        policy: Threshold rule of the proposal's kind.

    Returns:
        PENDING, APPROVED or REJECTED.

    Raises:
        ValueError: On an empty population or negative counts.
    """
    if approvals < 0 or rejections < 0:
        raise ValueError("vote counts must be non-negative")

    threshold = required_approvals(total_eligible, policy)

    if rejections >= 1:
        return QuorumOutcome.REJECTED
    # Late joiners may push approvals past total_eligible
    if approvals >= threshold:
        return QuorumOutcome.APPROVED
    return QuorumOutcome.PENDING
