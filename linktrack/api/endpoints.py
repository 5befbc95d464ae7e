"""
FastAPI Endpoints for the Link Tracker

Endpoints only handle:
- Request parsing and validation
- Rate limiting
- Turning service results into HTTP responses
- Scheduling click logging after the response

All business logic is in services.
"""

from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse, Response
from sqlalchemy.ext.asyncio import AsyncSession

from linktrack.api.schemas import StatsResponse
from linktrack.core.auth import require_api_token
from linktrack.core.client_ip import get_client_ip
from linktrack.core.exceptions import BadRequestError
from linktrack.core.rate_limit import RATE_LIMITS, limiter
from linktrack.core.registry import ConfigRegistry
from linktrack.core.resources import get_resources
from linktrack.core.setting import settings
from linktrack.core.validators import parse_countries_limit, parse_limit
from linktrack.db.session import get_session
from linktrack.services.click_logger import ClickLogger
from linktrack.services.periods import resolve_date_range
from linktrack.services.redirect_service import RedirectPipeline
from linktrack.services.stats_service import StatsQuery, StatsService

router = APIRouter()


def get_registry() -> ConfigRegistry:
    return get_resources().registry


def get_redirect_pipeline() -> RedirectPipeline:
    return get_resources().pipeline


def get_click_logger() -> ClickLogger:
    return get_resources().click_logger


def get_stats_service(session: AsyncSession = Depends(get_session)) -> StatsService:
    return StatsService(session)


@router.get(
    "/go/{source}/{site}/{article_id}",
    summary="Tracked redirect or social preview",
    description="Redirects people to the article with UTM tags; serves crawlers an Open Graph preview",
    response_class=Response,
)
@limiter.limit(RATE_LIMITS["redirect"])
async def redirect(
    source: str,
    site: str,
    article_id: str,
    request: Request,
    background_tasks: BackgroundTasks,
    pipeline: RedirectPipeline = Depends(get_redirect_pipeline),
    click_logger: ClickLogger = Depends(get_click_logger),
) -> Response:
    """
    Returns:
        302 to the article (human), 200 preview HTML (crawler), or
        302 to the site domain (crawler, no metadata)

    Raises:
        UnknownSourceError / UnknownSiteError: 404
    """
    decision = await pipeline.handle(
        source_id=source,
        site_id=site,
        article_id=article_id,
        ip=get_client_ip(request),
        user_agent=request.headers.get("User-Agent"),
    )

    if decision.event is not None:
        background_tasks.add_task(click_logger.log_event, decision.event)

    if decision.html is not None:
        return HTMLResponse(content=decision.html, status_code=decision.status_code)
    return RedirectResponse(url=decision.location, status_code=status.HTTP_302_FOUND)


@router.get(
    "/api/stats",
    response_model=StatsResponse,
    response_model_exclude_none=True,
    summary="Site statistics",
    description="Clicks, previews, top articles, countries and sources for a period",
    dependencies=[Depends(require_api_token)],
)
@limiter.limit(RATE_LIMITS["stats"])
async def get_stats(
    request: Request,
    site: Optional[str] = None,
    period: Optional[str] = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    source: Optional[str] = None,
    limit: Optional[str] = None,
    countries_limit: Optional[str] = None,
    registry: ConfigRegistry = Depends(get_registry),
    stats_service: StatsService = Depends(get_stats_service),
) -> StatsResponse:
    """
    Raises:
        UnauthorizedError / ForbiddenError: Missing or wrong token
        BadRequestError: Missing/unknown site, bad period, dates or limits
    """
    if not site:
        raise BadRequestError("Parameter \"site\" is required", "missing_site")
    site_config = registry.get_site(site)
    if site_config is None:
        raise BadRequestError(f"Unknown site: {site}", "unknown_site")

    query = StatsQuery(
        site=site_config,
        date_range=resolve_date_range(period, start_date, end_date, now=stats_service.clock()),
        period=period.strip().lower() if period else None,
        source=source or None,
        articles_limit=parse_limit(limit, settings.DEFAULT_ARTICLES_LIMIT),
        countries_limit=parse_countries_limit(countries_limit, settings.DEFAULT_COUNTRIES_LIMIT),
    )
    report = await stats_service.get_stats(query)
    return StatsResponse(data=report)
