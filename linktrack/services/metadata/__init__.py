"""
Preview metadata resolution: a router over two fetch strategies.
"""

from linktrack.services.metadata.content_store import ContentStoreFetcher
from linktrack.services.metadata.html_scrape import HtmlScrapeFetcher, create_http_client
from linktrack.services.metadata.models import Metadata
from linktrack.services.metadata.router import MetadataRouter

__all__ = [
    "ContentStoreFetcher",
    "HtmlScrapeFetcher",
    "Metadata",
    "MetadataRouter",
    "create_http_client",
]
