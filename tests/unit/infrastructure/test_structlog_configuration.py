"""Unit tests for structlog configuration and correlation IDs."""

import json

import pytest
import structlog

from coownership.infrastructure.observability import (
    configure_structlog,
    correlation_id_processor,
    generate_correlation_id,
    get_correlation_id,
    set_correlation_id,
)


@pytest.fixture(autouse=True)
def _reset_structlog():
    yield
    structlog.reset_defaults()
    set_correlation_id("")


class TestCorrelationId:
    def test_processor_adds_id_when_set(self) -> None:
        correlation_id = generate_correlation_id()
        set_correlation_id(correlation_id)
        event = correlation_id_processor(None, "info", {"event": "x"})
        assert event["correlation_id"] == correlation_id
        assert get_correlation_id() == correlation_id

    def test_processor_leaves_event_alone_without_id(self) -> None:
        set_correlation_id("")
        assert correlation_id_processor(None, "info", {"event": "x"}) == {"event": "x"}


class TestConfigureStructlog:
    def test_production_renders_json(self, capsys: pytest.CaptureFixture[str]) -> None:
        configure_structlog(environment="production")
        set_correlation_id("cid-1")

        structlog.get_logger().info("proposal_created", proposal_id="p-1")

        line = capsys.readouterr().out.strip().splitlines()[-1]
        entry = json.loads(line)
        assert entry["event"] == "proposal_created"
        assert entry["level"] == "info"
        assert entry["correlation_id"] == "cid-1"
        assert entry["proposal_id"] == "p-1"
        assert "timestamp" in entry

    def test_log_level_filters_lower_levels(
        self,
        capsys: pytest.CaptureFixture[str],
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setenv("LOG_LEVEL", "WARNING")
        configure_structlog(environment="production")
        log = structlog.get_logger()

        log.info("quorum_evaluated")
        log.warning("notification_failed")

        lines = capsys.readouterr().out.strip().splitlines()
        assert [json.loads(line)["event"] for line in lines] == ["notification_failed"]
