"""
Redirect Decision Pipeline

Resolves /go/{source}/{site}/{article_id} into one of:
- 302 to the tracked article URL (human visitor)
- 200 preview document with Open Graph tags (crawler, metadata found)
- 302 to the bare site domain (crawler, metadata not available)

Unknown source and unknown site raise distinct NotFound errors; the source is
checked first. Every resolved request produces exactly one ClickRecord,
which the caller persists after responding.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from linktrack.core.exceptions import InternalError, LinkTrackerError, UpstreamUnavailableError
from linktrack.core.registry import ConfigRegistry
from linktrack.db.models import ClickKind
from linktrack.services.classifier import RequestClassifier
from linktrack.services.click_logger import ClickRecord
from linktrack.services.geolocation import GeoLocator
from linktrack.services.metadata import MetadataRouter
from linktrack.services.preview import PreviewRenderer
from linktrack.services.url_builder import build_redirect_url, site_home_url

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RedirectDecision:
    """Outcome of one redirect request."""
    status_code: int
    location: Optional[str] = None
    html: Optional[str] = None
    event: Optional[ClickRecord] = None


class RedirectPipeline:
    """
    Composes resolver, classifier, geolocation and metadata router.

    The pipeline has no per-request state; one instance serves all requests.
    """

    def __init__(
        self,
        registry: ConfigRegistry,
        classifier: RequestClassifier,
        geolocator: GeoLocator,
        metadata_router: MetadataRouter,
        renderer: PreviewRenderer = None,
    ):
        self.registry = registry
        self.classifier = classifier
        self.geolocator = geolocator
        self.metadata_router = metadata_router
        self.renderer = renderer or PreviewRenderer()

    async def handle(
        self,
        source_id: str,
        site_id: str,
        article_id: str,
        ip: str,
        user_agent: Optional[str],
    ) -> RedirectDecision:
        """
        Decide the response for one short-link request.

        Raises:
            UnknownSourceError / UnknownSiteError: Resolution failed (404)
            LinkTrackerError: Any other typed error
            InternalError: Any unexpected fault, detail kept server-side
        """
        try:
            return await self._handle(source_id, site_id, article_id, ip, user_agent)
        except LinkTrackerError:
            raise
        except Exception as e:
            logger.error(
                f"Error processing redirect {source_id}/{site_id}/{article_id}: {str(e)}",
                exc_info=True
            )
            raise InternalError() from e

    async def _handle(self, source_id, site_id, article_id, ip, user_agent) -> RedirectDecision:
        source = self.registry.resolve_source(source_id)
        site = self.registry.resolve_site(site_id)

        is_bot = self.classifier.is_bot(user_agent)
        country = self.geolocator.lookup_country(ip)
        target_url = build_redirect_url(site, source, article_id)

        event = ClickRecord(
            ip=ip,
            country=country,
            user_agent=user_agent or "",
            source_id=source.id,
            site_id=site.id,
            article_id=article_id,
            kind=ClickKind.PREVIEW if is_bot else ClickKind.CLICK,
        )

        if not is_bot:
            return RedirectDecision(status_code=302, location=target_url, event=event)

        try:
            metadata = await self.metadata_router.fetch_metadata(site, article_id)
        except UpstreamUnavailableError as e:
            logger.warning(f"Metadata unavailable for {site.id}/{article_id}: {e}")
            metadata = None

        if metadata is None:
            return RedirectDecision(status_code=302, location=site_home_url(site), event=event)

        html = self.renderer.render(metadata, url=target_url, site_name=site.domain)
        return RedirectDecision(status_code=200, html=html, event=event)
