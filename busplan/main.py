"""FastAPI application setup and publication scheduler lifecycle."""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from .api import DATA_SOURCE, router as api_router
from .config import settings
from .distribution import build_publisher
from .scheduler import PublicationScheduler
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Connect the publisher on startup; the scheduler starts once the connection is up."""
    publisher = build_publisher(settings)
    scheduler = PublicationScheduler(publisher, data_source=DATA_SOURCE, settings=settings)
    publisher.add_connect_callback(scheduler.start)
    app.state.publisher = publisher
    app.state.scheduler = scheduler
    publisher.connect()
    try:
        yield
    finally:
        scheduler.stop(timeout=settings.weather_timeout_seconds)
        publisher.close()


app = FastAPI(title="Bus After Class", lifespan=lifespan)


@app.get("/health")
def health():
    """Liveness probe."""
    return {"status": "ok"}


# API routes
app.include_router(api_router, prefix="/api")
