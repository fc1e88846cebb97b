"""Consensus core configuration.

This module defines the tunables of proposal validation and execution
with environment variable overrides for deployment tuning.

Environment Variables:
- COOWNERSHIP_PERCENTAGE_TOLERANCE: Allowed deviation of an ownership
  partition from 100% (default: 0.001)
- COOWNERSHIP_MONEY_DECIMAL_PLACES: Fixed-point places for ledger amounts
  (default: 2)
- COOWNERSHIP_MAX_INVESTMENT: Upper bound of a proposed investment
  (default: 10000000000)
- COOWNERSHIP_SINGLE_PENDING_REALLOCATION: Allow at most one pending
  ownership reallocation per vehicle (default: true)
- COOWNERSHIP_ENVIRONMENT: "production" for JSON logs, "development"
  for console logs (default: production)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


def _get_int_env(key: str, default: int) -> int:
    """Get integer environment variable with default.

    Args:
        key: Environment variable name.
        default: Default value if not set or invalid.

    Returns:
        Parsed integer value or default.
    """
    value = os.environ.get(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _get_decimal_env(key: str, default: Decimal) -> Decimal:
    """Get decimal environment variable with default."""
    value = os.environ.get(key)
    if value is None:
        return default
    try:
        return Decimal(value)
    except InvalidOperation:
        return default


def _get_bool_env(key: str, default: bool) -> bool:
    """Get boolean environment variable with default."""
    value = os.environ.get(key)
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    return default


@dataclass(frozen=True)
class ConsensusConfig:
    """Configuration for proposal validation and effect execution.

    Attributes:
        percentage_tolerance: Allowed absolute deviation of a partition
            sum from 100. Default: 0.001.
        money_decimal_places: Places ledger amounts are quantized to.
            Default: 2.
        max_investment: Upper bound of a proposed investment.
            Default: 10,000,000,000.
        single_pending_reallocation: Reject a new ownership reallocation
            while another is pending for the vehicle. Default: True.
        environment: Logging environment. Default: "production".
    """

    percentage_tolerance: Decimal = Decimal("0.001")
    money_decimal_places: int = 2
    max_investment: Decimal = Decimal("10000000000")
    single_pending_reallocation: bool = True
    environment: str = "production"

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if self.percentage_tolerance < 0:
            raise ValueError(
                f"percentage_tolerance must be non-negative, got {self.percentage_tolerance}"
            )
        if self.percentage_tolerance >= 1:
            raise ValueError(
                f"percentage_tolerance must be below 1, got {self.percentage_tolerance}"
            )
        if not 0 <= self.money_decimal_places <= 8:
            raise ValueError(
                f"money_decimal_places must be in [0, 8], got {self.money_decimal_places}"
            )
        if self.max_investment <= 0:
            raise ValueError(
                f"max_investment must be positive, got {self.max_investment}"
            )
        if self.environment not in ("production", "development"):
            raise ValueError(
                f"environment must be 'production' or 'development', got {self.environment!r}"
            )

    @classmethod
    def from_environment(cls) -> "ConsensusConfig":
        """Create config from environment variables with defaults.

        Returns:
            ConsensusConfig with values from environment or defaults.
        """
        return cls(
            percentage_tolerance=_get_decimal_env(
                "COOWNERSHIP_PERCENTAGE_TOLERANCE", Decimal("0.001")
            ),
            money_decimal_places=_get_int_env("COOWNERSHIP_MONEY_DECIMAL_PLACES", 2),
            max_investment=_get_decimal_env(
                "COOWNERSHIP_MAX_INVESTMENT", Decimal("10000000000")
            ),
            single_pending_reallocation=_get_bool_env(
                "COOWNERSHIP_SINGLE_PENDING_REALLOCATION", True
            ),
            environment=os.environ.get("COOWNERSHIP_ENVIRONMENT", "production"),
        )


# Default production config
DEFAULT_CONSENSUS_CONFIG = ConsensusConfig()

# Testing config with console logging and exact percentage sums
TEST_CONSENSUS_CONFIG = ConsensusConfig(
    percentage_tolerance=Decimal("0"),
    environment="development",
)
