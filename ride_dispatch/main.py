"""FastAPI application entry point."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ride_dispatch.api.routes import router
from ride_dispatch.config import get_settings
from ride_dispatch.services.sweeper import RideSweeper
from ride_dispatch.state.provider import close_store, get_store
from ride_dispatch.utils.logging import get_logger, setup_logging

# Setup logging first
setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    logger.info("application_starting")

    store = await get_store()
    sweeper = RideSweeper(store)
    app.state.sweeper = sweeper

    if settings.sweeper_enabled:
        sweeper.start()

    yield

    logger.info("application_shutting_down")
    await sweeper.stop()
    await close_store()


app = FastAPI(
    title="Ride Dispatch Service",
    description="Booking broadcast, driver acceptance and ride completion",
    version="0.1.0",
    lifespan=lifespan,
)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy", "service": "ride-dispatch"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {
        "message": "Ride Dispatch API",
        "docs": "/docs",
        "health": "/health",
    }


app.include_router(router, prefix="/api/v1", tags=["dispatch"])


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "ride_dispatch.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.environment == "development",
    )
