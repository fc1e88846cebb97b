"""Unit tests for ConsensusConfig."""

from decimal import Decimal

import pytest

from coownership.config.consensus_config import (
    DEFAULT_CONSENSUS_CONFIG,
    TEST_CONSENSUS_CONFIG,
    ConsensusConfig,
)


class TestConsensusConfigDefaults:
    def test_defaults(self) -> None:
        config = ConsensusConfig()
        assert config.percentage_tolerance == Decimal("0.001")
        assert config.money_decimal_places == 2
        assert config.single_pending_reallocation is True
        assert config.environment == "production"

    def test_presets(self) -> None:
        assert DEFAULT_CONSENSUS_CONFIG == ConsensusConfig()
        assert TEST_CONSENSUS_CONFIG.percentage_tolerance == Decimal("0")
        assert TEST_CONSENSUS_CONFIG.environment == "development"


class TestConsensusConfigValidation:
    def test_negative_tolerance_rejected(self) -> None:
        with pytest.raises(ValueError, match="percentage_tolerance"):
            ConsensusConfig(percentage_tolerance=Decimal("-0.1"))

    def test_too_many_places_rejected(self) -> None:
        with pytest.raises(ValueError, match="money_decimal_places"):
            ConsensusConfig(money_decimal_places=9)

    def test_unknown_environment_rejected(self) -> None:
        with pytest.raises(ValueError, match="environment"):
            ConsensusConfig(environment="staging")


class TestConsensusConfigFromEnvironment:
    def test_reads_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("COOWNERSHIP_PERCENTAGE_TOLERANCE", "0.01")
        monkeypatch.setenv("COOWNERSHIP_MONEY_DECIMAL_PLACES", "3")
        monkeypatch.setenv("COOWNERSHIP_SINGLE_PENDING_REALLOCATION", "false")
        monkeypatch.setenv("COOWNERSHIP_ENVIRONMENT", "development")

        config = ConsensusConfig.from_environment()

        assert config.percentage_tolerance == Decimal("0.01")
        assert config.money_decimal_places == 3
        assert config.single_pending_reallocation is False
        assert config.environment == "development"

    def test_malformed_values_fall_back_to_defaults(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("COOWNERSHIP_PERCENTAGE_TOLERANCE", "lots")
        monkeypatch.setenv("COOWNERSHIP_MONEY_DECIMAL_PLACES", "two")
        monkeypatch.setenv("COOWNERSHIP_SINGLE_PENDING_REALLOCATION", "maybe")
        monkeypatch.delenv("COOWNERSHIP_ENVIRONMENT", raising=False)

        config = ConsensusConfig.from_environment()

        assert config == ConsensusConfig()
