"""
Domain layer - Pure business logic for co-ownership consensus.

This layer contains:
- Domain models (Proposal, Vote, OwnershipPartition, LedgerEntry)
- Domain services (quorum policy, payload validation)
- Notification event payloads
- Domain errors

CRITICAL: This layer must NOT import from application, infrastructure, or api.
"""

from coownership.domain.exceptions import CoOwnershipError

__all__: list[str] = ["CoOwnershipError"]
