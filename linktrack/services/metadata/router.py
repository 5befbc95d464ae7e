"""
Metadata Fetch Router

Dispatches a preview request to the fetcher named by the site's
metadata_strategy. Any strategy other than the two known ones raises
UnsupportedStrategyError; there is no fallback fetcher.
"""

import logging
from typing import Optional

from linktrack.core.exceptions import UnsupportedStrategyError
from linktrack.core.registry import MetadataStrategy, SiteConfig
from linktrack.services.metadata.content_store import ContentStoreFetcher
from linktrack.services.metadata.html_scrape import HtmlScrapeFetcher
from linktrack.services.metadata.models import Metadata

logger = logging.getLogger(__name__)


class MetadataRouter:

    def __init__(self, content_store: ContentStoreFetcher, html_scrape: HtmlScrapeFetcher):
        self.content_store = content_store
        self.html_scrape = html_scrape

    async def fetch_metadata(self, site: SiteConfig, article_id: str) -> Optional[Metadata]:
        """
        Returns:
            Metadata, or None when the article has none

        Raises:
            UpstreamUnavailableError: The content store failed
            UnsupportedStrategyError: The site names an unknown strategy
        """
        strategy = site.metadata_strategy
        if strategy is MetadataStrategy.CONTENT_STORE:
            return await self.content_store.fetch(site, article_id)
        elif strategy is MetadataStrategy.HTML_SCRAPE:
            return await self.html_scrape.fetch(site, article_id)
        else:
            logger.error(f"Unknown metadata strategy {strategy!r} for site {site.id}")
            raise UnsupportedStrategyError(strategy)
