"""
Shared test fixtures.

- In-memory SQLite event store (aiosqlite, single shared connection)
- A registry with one content-store site, one html-scrape site and two sources
- An httpx.AsyncClient driving the ASGI app in-process, with the start-up
  resources replaced through dependency overrides
"""

from datetime import datetime

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession as SQLModelAsyncSession

from linktrack.api.endpoints import get_click_logger, get_redirect_pipeline, get_registry
from linktrack.core.rate_limit import limiter
from linktrack.core.registry import ConfigRegistry
from linktrack.core.setting import settings
from linktrack.db.models import ClickEvent
from linktrack.db.session import get_session
from linktrack.main import app
from linktrack.services.classifier import RequestClassifier
from linktrack.services.click_logger import ClickLogger
from linktrack.services.redirect_service import RedirectPipeline

API_TOKEN = "test-secret-token"

SITES = {
    "tales": {
        "domain": "tales.example.com",
        "metadata_strategy": "content_store",
        "content_store": "blog",
    },
    "news": {
        "domain": "news.example.com",
        "metadata_strategy": "html_scrape",
        "url_pattern": "/articles/{articleId}",
    },
}

SOURCES = {
    "fb": {"utm_source": "facebook", "utm_medium": "social"},
    "tg": "utm_source=telegram&utm_medium=messenger",
}


class FakeGeoLocator:
    """Country lookup backed by a dict."""

    def __init__(self, countries=None):
        self.countries = countries or {}

    def lookup_country(self, ip):
        return self.countries.get(ip)


class FakeMetadataRouter:
    """Returns a fixed result (or raises a fixed error) and records calls."""

    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.calls = []

    async def fetch_metadata(self, site, article_id):
        self.calls.append((site.id, article_id))
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture(autouse=True)
def test_settings(monkeypatch):
    """Fixed API token and no rate limiting in tests."""
    monkeypatch.setattr(settings, "API_TOKEN", API_TOKEN)
    monkeypatch.setattr(limiter, "enabled", False)
    yield settings


@pytest.fixture
def registry():
    return ConfigRegistry.from_mappings(SITES, SOURCES)


@pytest_asyncio.fixture
async def event_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(event_engine):
    return async_sessionmaker(event_engine, class_=SQLModelAsyncSession, expire_on_commit=False)


@pytest.fixture
def add_events(session_maker):
    """Insert click events: add_events((site, source, article, type, country, created_at), ...)."""

    async def _add(*rows):
        async with session_maker() as session:
            for site, source, article_id, kind, country, created_at in rows:
                session.add(ClickEvent(
                    ip="81.2.69.142",
                    country=country,
                    user_agent="pytest",
                    source=source,
                    site=site,
                    article_id=article_id,
                    type=kind,
                    created_at=created_at,
                ))
            await session.commit()

    return _add


@pytest.fixture
def geolocator():
    return FakeGeoLocator({"81.2.69.142": "GB", "8.8.8.8": "US"})


@pytest.fixture
def metadata_router():
    return FakeMetadataRouter()


@pytest.fixture
def pipeline(registry, geolocator, metadata_router):
    return RedirectPipeline(
        registry=registry,
        classifier=RequestClassifier(),
        geolocator=geolocator,
        metadata_router=metadata_router,
    )


@pytest.fixture
def click_logger(session_maker):
    return ClickLogger(session_maker, clock=lambda: datetime(2026, 3, 10, 12, 0, 0))


@pytest_asyncio.fixture
async def client(registry, pipeline, click_logger, session_maker):
    async def _session():
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_registry] = lambda: registry
    app.dependency_overrides[get_redirect_pipeline] = lambda: pipeline
    app.dependency_overrides[get_click_logger] = lambda: click_logger
    app.dependency_overrides[get_session] = _session

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as http_client:
        yield http_client

    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    return {"Authorization": f"Bearer {API_TOKEN}"}
