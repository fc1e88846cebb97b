"""Test helpers for the consensus core.

Usage:
    from tests.helpers import fund_payload, reallocation_payload
"""

from tests.helpers.factories import (
    ConsensusHarness,
    build_harness,
    fund_payload,
    reallocation_payload,
    upgrade_payload,
)

__all__ = [
    "ConsensusHarness",
    "build_harness",
    "fund_payload",
    "reallocation_payload",
    "upgrade_payload",
]
