"""Configuration module for the co-ownership consensus core.

Available Configurations:
- ConsensusConfig: Validation tolerances and execution options
"""

from coownership.config.consensus_config import (
    DEFAULT_CONSENSUS_CONFIG,
    TEST_CONSENSUS_CONFIG,
    ConsensusConfig,
)

__all__ = [
    "ConsensusConfig",
    "DEFAULT_CONSENSUS_CONFIG",
    "TEST_CONSENSUS_CONFIG",
]
