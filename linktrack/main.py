"""
FastAPI Application Entry Point

This module initializes the FastAPI application and configures:
- API routes (tracked redirects, stats API, health)
- Middleware (logging, CORS)
- Exception handlers
- Start-up / shutdown of shared resources

Run with:
    uvicorn linktrack.main:app --port 3077
or the `linktrack` console script.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from linktrack.api import endpoints
from linktrack.core.exceptions import register_exception_handlers
from linktrack.core.rate_limit import limiter
from linktrack.core.resources import initialize_resources, shutdown_resources
from linktrack.core.setting import settings
from linktrack.middleware.logging import add_logging_middleware

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize services on startup, release them on shutdown."""
    await initialize_resources()
    yield
    await shutdown_resources()


app = FastAPI(
    title="Link Tracker Service",
    description="Tracked short-link redirects with social previews and click statistics",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.state.limiter = limiter
register_exception_handlers(app)

add_logging_middleware(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/", tags=["Health"])
async def root():
    """Service banner."""
    return {
        "message": "Link Tracker Service",
        "version": "1.0.0",
        "docs": "/docs"
    }


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint for monitoring."""
    return {"status": "healthy"}


app.include_router(endpoints.router, tags=["Link Tracker"])


def run() -> None:
    """Console entry point."""
    import uvicorn

    uvicorn.run("linktrack.main:app", host=settings.HOST, port=settings.PORT)
