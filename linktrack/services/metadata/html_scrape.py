"""
HTML-Scrape Metadata Fetcher

For sites without database access: fetch the public article page and read
its Open Graph tags.

Extraction precedence:
- title: og:title, meta name="title", <title>
- description: og:description, meta name="description", meta property="description"
- image: og:image, meta name="image", meta property="image", link rel="image_src"

A page without any title yields no metadata. Timeouts, HTTP errors, too many
redirects and unparsable bodies are logged and also yield no metadata; no
exception leaves this module.
"""

import logging
from typing import Optional
from urllib.parse import quote

import httpx
from bs4 import BeautifulSoup

from linktrack.core.registry import SiteConfig
from linktrack.services.metadata.models import Metadata
from linktrack.services.metadata.text import clean_text, normalize_image_url

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
}


def build_page_url(site: SiteConfig, article_slug: str) -> str:
    return f"https://{site.domain}/{quote(article_slug, safe='')}/"


def create_http_client(timeout: float = 5.0, max_redirects: int = 3, user_agent: str = None) -> httpx.AsyncClient:
    """Shared client for page fetches; one per process."""
    headers = dict(DEFAULT_HEADERS)
    if user_agent:
        headers["User-Agent"] = user_agent
    return httpx.AsyncClient(
        timeout=timeout,
        follow_redirects=True,
        max_redirects=max_redirects,
        headers=headers,
    )


def _meta_content(soup: BeautifulSoup, **attrs) -> Optional[str]:
    tag = soup.find("meta", attrs=attrs)
    if tag and tag.get("content"):
        return tag["content"].strip() or None
    return None


def extract_metadata(page_html: str, domain: str) -> Optional[Metadata]:
    """Parse a page and return its metadata, or None without a title."""
    soup = BeautifulSoup(page_html, "lxml")

    title = (
        _meta_content(soup, property="og:title")
        or _meta_content(soup, name="title")
        or (soup.title.get_text().strip() if soup.title else None)
    )
    title = clean_text(title)
    if not title:
        return None

    description = (
        _meta_content(soup, property="og:description")
        or _meta_content(soup, name="description")
        or _meta_content(soup, property="description")
    )

    image = (
        _meta_content(soup, property="og:image")
        or _meta_content(soup, name="image")
        or _meta_content(soup, property="image")
    )
    if not image:
        link = soup.find("link", rel="image_src")
        image = link.get("href") if link else None

    return Metadata(
        title=title,
        description=clean_text(description) or "",
        image=normalize_image_url(image, domain),
    )


class HtmlScrapeFetcher:
    """Metadata fetcher that scrapes the article page over HTTP."""

    def __init__(self, client: httpx.AsyncClient):
        self.client = client

    async def fetch(self, site: SiteConfig, article_slug: str) -> Optional[Metadata]:
        url = build_page_url(site, article_slug)
        try:
            response = await self.client.get(url)
            response.raise_for_status()
            metadata = extract_metadata(response.text, site.domain)
        except httpx.TimeoutException:
            logger.warning(f"Timeout fetching {url}")
            return None
        except httpx.HTTPStatusError as e:
            logger.warning(f"HTTP {e.response.status_code} for {url}")
            return None
        except httpx.HTTPError as e:
            logger.warning(f"Failed to fetch {url}: {e}")
            return None
        except Exception as e:
            logger.error(f"Failed to parse {url}: {e}", exc_info=True)
            return None

        if metadata is None:
            logger.warning(f"No title found for {url}")
        return metadata
