"""Startup configuration for the consensus API.

Usage in a FastAPI lifespan handler:
    @asynccontextmanager
    async def lifespan(app):
        configure_logging()
        yield
"""

from structlog import get_logger

from coownership.config.consensus_config import ConsensusConfig
from coownership.infrastructure.observability.logging import configure_structlog

logger = get_logger(__name__)


def configure_logging() -> None:
    """Configure structlog from COOWNERSHIP_ENVIRONMENT.

    Should be called first in the startup sequence so that every later
    startup log is rendered in the right format.
    """
    config = ConsensusConfig.from_environment()
    configure_structlog(environment=config.environment)
    logger.info(
        "logging_configured",
        environment=config.environment,
        percentage_tolerance=str(config.percentage_tolerance),
        money_decimal_places=config.money_decimal_places,
        single_pending_reallocation=config.single_pending_reallocation,
    )
