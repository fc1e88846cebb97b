"""Unit tests for the consensus dependency providers."""

from collections.abc import Iterator
from decimal import Decimal

import pytest

from coownership.api.dependencies import consensus as deps
from coownership.infrastructure.stubs import NotifierStub, OwnershipRepositoryStub


@pytest.fixture(autouse=True)
def _clean() -> Iterator[None]:
    deps.reset_consensus_dependencies()
    yield
    deps.reset_consensus_dependencies()


class TestConsensusDependencies:
    def test_service_is_singleton(self) -> None:
        assert deps.get_consensus_service() is deps.get_consensus_service()

    def test_reset_rebuilds(self) -> None:
        first = deps.get_consensus_service()
        deps.reset_consensus_dependencies()
        assert deps.get_consensus_service() is not first

    def test_setting_an_adapter_rebuilds_service(self) -> None:
        first = deps.get_consensus_service()
        notifier = NotifierStub()
        deps.set_notifier(notifier)

        assert deps.get_notifier() is notifier
        assert deps.get_consensus_service() is not first

    def test_config_read_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("COOWNERSHIP_MONEY_DECIMAL_PLACES", "3")
        assert deps.get_consensus_config().money_decimal_places == 3

    def test_setting_ownership_repository(self) -> None:
        repo = OwnershipRepositoryStub(tolerance=Decimal("0"))
        deps.set_ownership_repository(repo)
        assert deps.get_ownership_repository() is repo

    def test_default_ownership_tolerance_follows_config(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("COOWNERSHIP_PERCENTAGE_TOLERANCE", "0.5")
        repo = deps.get_ownership_repository()
        assert repo._tolerance == Decimal("0.5")
