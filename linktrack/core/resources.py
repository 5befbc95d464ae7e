"""
Application Resources

Process-wide objects created once at start-up and shared by all requests:
- configuration registry (immutable site/source maps)
- content store engine (bounded pool), when configured
- outbound HTTP client for page scraping
- GeoIP locator
- the redirect pipeline and click logger built from them

Design:
- Initialised once in the application lifespan, disposed on shutdown
- Read-only after initialisation; requests never mutate it
"""

import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from linktrack.core.exceptions import InternalError
from linktrack.core.registry import ConfigRegistry, load_registry
from linktrack.core.setting import Settings, settings
from linktrack.db.content_store import ContentStore
from linktrack.db.session import async_session_maker
from linktrack.services.classifier import RequestClassifier
from linktrack.services.click_logger import ClickLogger
from linktrack.services.geolocation import GeoLocator
from linktrack.services.metadata import (
    ContentStoreFetcher,
    HtmlScrapeFetcher,
    MetadataRouter,
    create_http_client,
)
from linktrack.services.redirect_service import RedirectPipeline

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AppResources:
    registry: ConfigRegistry
    pipeline: RedirectPipeline
    click_logger: ClickLogger
    geolocator: GeoLocator
    http_client: httpx.AsyncClient
    content_store: Optional[ContentStore] = None


# Global resources instance (initialized on startup)
_resources: Optional[AppResources] = None


def build_resources(config: Settings) -> AppResources:
    """Create every shared resource from settings."""
    registry = load_registry(config.SITES_CONFIG_PATH, config.SOURCES_CONFIG_PATH)

    content_store = None
    if config.CONTENT_DATABASE_URL:
        content_store = ContentStore.from_url(
            config.CONTENT_DATABASE_URL,
            pool_size=config.CONTENT_DATABASE_POOL_SIZE,
            pool_timeout=config.CONTENT_DATABASE_POOL_TIMEOUT,
        )
    else:
        logger.info("CONTENT_DATABASE_URL not set; content-store sites will fall back to the domain")

    http_client = create_http_client(
        timeout=config.HTML_FETCH_TIMEOUT,
        max_redirects=config.HTML_FETCH_MAX_REDIRECTS,
        user_agent=config.HTML_FETCH_USER_AGENT,
    )
    geolocator = GeoLocator(config.GEOIP_DB_PATH, reload_interval=config.GEOIP_RELOAD_INTERVAL)

    router = MetadataRouter(
        content_store=ContentStoreFetcher(content_store, description_max_length=config.DESCRIPTION_MAX_LENGTH),
        html_scrape=HtmlScrapeFetcher(http_client),
    )
    pipeline = RedirectPipeline(
        registry=registry,
        classifier=RequestClassifier(config.EXTRA_BOT_SIGNATURES),
        geolocator=geolocator,
        metadata_router=router,
    )

    return AppResources(
        registry=registry,
        pipeline=pipeline,
        click_logger=ClickLogger(async_session_maker),
        geolocator=geolocator,
        http_client=http_client,
        content_store=content_store,
    )


def get_resources() -> AppResources:
    """
    Get the global resources.

    Raises:
        InternalError: If called before initialize_resources()
    """
    if _resources is None:
        raise InternalError("Application resources not initialized")
    return _resources


async def initialize_resources(config: Settings = settings) -> AppResources:
    """Initialize shared resources; a second call is a no-op."""
    global _resources

    if _resources is not None:
        logger.warning("Application resources already initialized")
        return _resources

    _resources = build_resources(config)
    if not config.API_TOKEN:
        logger.warning("API_TOKEN is not set; every stats request will be rejected")
    logger.info(
        f"Resources initialized: {len(_resources.registry.sites)} sites, "
        f"content store {'enabled' if _resources.content_store else 'disabled'}"
    )
    return _resources


async def shutdown_resources() -> None:
    """Close pools and clients."""
    global _resources

    if _resources is None:
        return

    resources, _resources = _resources, None
    await resources.http_client.aclose()
    if resources.content_store is not None:
        await resources.content_store.dispose()
    resources.geolocator.close()
    logger.info("Application resources released")
