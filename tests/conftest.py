"""
Pytest configuration and shared fixtures for the consensus core tests.

Testing Standards:
- Async tests run under pytest-asyncio (auto mode enabled in pyproject.toml)
- Use AsyncMock for collaborators whose behavior is scripted
- Use the in-memory stubs for anything that keeps state
- Unit tests go in tests/unit/
- Integration tests go in tests/integration/
"""

import pytest

from tests.helpers import ConsensusHarness, build_harness


@pytest.fixture
def anyio_backend() -> str:
    """Use asyncio as the async backend."""
    return "asyncio"


@pytest.fixture
def project_version() -> str:
    """Provide the current project version for tests."""
    from coownership import __version__

    return __version__


@pytest.fixture
def harness() -> ConsensusHarness:
    """Consensus service over fresh stubs, exact percentage sums."""
    return build_harness()
