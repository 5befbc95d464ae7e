"""
Redirect URL Builder

Turns a site's url_pattern into article URLs. The redirect endpoint and the
stats report both go through article_url(), so the two always agree.
"""

from urllib.parse import quote, urlencode

from linktrack.core.registry import ARTICLE_PLACEHOLDER, SiteConfig, SourceConfig


def article_path(site: SiteConfig, article_id: str) -> str:
    """Substitute the (percent-encoded) article id into the site's url_pattern."""
    path = site.url_pattern.replace(ARTICLE_PLACEHOLDER, quote(article_id, safe=""), 1)
    if not path.startswith("/"):
        path = f"/{path}"
    return path


def article_url(site: SiteConfig, article_id: str) -> str:
    """Public URL of an article, without tracking parameters."""
    return f"https://{site.domain}{article_path(site, article_id)}"


def build_redirect_url(site: SiteConfig, source: SourceConfig, article_id: str) -> str:
    """
    Article URL with the source's UTM parameters and utm_campaign=<article_id>.

    Example:
        https://example.com/abc/?utm_source=facebook&utm_medium=social&utm_campaign=abc
    """
    url = article_url(site, article_id)
    query = urlencode(source.utm_params() + [("utm_campaign", article_id)])
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}{query}"


def site_home_url(site: SiteConfig) -> str:
    """Bare domain URL used when a preview cannot be produced."""
    return f"https://{site.domain}"
