"""FastAPI application entry point for the co-ownership consensus API."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from coownership import __version__
from coownership.api.middleware.logging_middleware import LoggingMiddleware
from coownership.api.routes.health import router as health_router
from coownership.api.routes.proposals import router as proposals_router
from coownership.api.routes.users import router as users_router
from coownership.api.routes.vehicles import router as vehicles_router
from coownership.api.startup import configure_logging


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    configure_logging()
    yield


app = FastAPI(
    title="Co-Ownership Consensus API",
    description="Group decisions over shared vehicles",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(LoggingMiddleware)

app.include_router(health_router)
app.include_router(proposals_router)
app.include_router(vehicles_router)
app.include_router(users_router)
