"""
Content-Store Metadata Fetcher

Reads article metadata straight from a site's WordPress database:
- the published post whose slug matches the article id
- its featured image (postmeta _thumbnail_id joined to the attachment row)
- SEO plugin overrides for title and description

Description fallback: excerpt, else the post content with markup stripped,
cut at a word boundary. Quotes are normalised for attribute embedding.
"""

import logging
from typing import Optional

from sqlalchemy import and_, select
from sqlalchemy.exc import SQLAlchemyError

from linktrack.core.exceptions import UpstreamUnavailableError
from linktrack.core.registry import SiteConfig
from linktrack.db.content_store import ContentStore, content_tables
from linktrack.services.metadata.models import Metadata
from linktrack.services.metadata.text import (
    normalize_image_url,
    normalize_quotes,
    strip_markup,
    truncate_at_word,
)

logger = logging.getLogger(__name__)

THUMBNAIL_META_KEY = "_thumbnail_id"

# Highest priority first
TITLE_OVERRIDE_KEYS = ("_yoast_wpseo_title", "rank_math_title")
DESCRIPTION_OVERRIDE_KEYS = ("_yoast_wpseo_metadesc", "rank_math_description")


def _first_override(meta: dict, keys) -> Optional[str]:
    for key in keys:
        value = meta.get(key)
        if value and value.strip():
            return value.strip()
    return None


class ContentStoreFetcher:
    """Metadata fetcher for sites whose CMS database is reachable."""

    def __init__(self, store: Optional[ContentStore], description_max_length: int = 160):
        self.store = store
        self.description_max_length = description_max_length

    async def fetch(self, site: SiteConfig, article_slug: str) -> Optional[Metadata]:
        """
        Fetch metadata for one article.

        Returns:
            Metadata, or None when no published post matches the slug

        Raises:
            UpstreamUnavailableError: Store not configured, unreachable,
                pool exhausted or query failed
        """
        if self.store is None:
            logger.error("Content store not configured; set CONTENT_DATABASE_URL")
            raise UpstreamUnavailableError("content_store")

        tables = content_tables(site.content_store, site.table_prefix)
        posts, postmeta = tables.posts, tables.postmeta

        try:
            async with self.store.connection() as conn:
                post = (await conn.execute(
                    select(posts.c.ID, posts.c.post_title, posts.c.post_excerpt, posts.c.post_content)
                    .where(
                        posts.c.post_name == article_slug,
                        posts.c.post_status == "publish",
                        posts.c.post_type == "post",
                    )
                    .limit(1)
                )).first()

                if post is None:
                    return None

                attachments = posts.alias("attachment")
                image = (await conn.execute(
                    select(attachments.c.guid)
                    .select_from(postmeta.join(attachments, attachments.c.ID == postmeta.c.meta_value))
                    .where(and_(postmeta.c.post_id == post.ID, postmeta.c.meta_key == THUMBNAIL_META_KEY))
                    .limit(1)
                )).scalar()

                meta_rows = (await conn.execute(
                    select(postmeta.c.meta_key, postmeta.c.meta_value)
                    .where(
                        postmeta.c.post_id == post.ID,
                        postmeta.c.meta_key.in_(TITLE_OVERRIDE_KEYS + DESCRIPTION_OVERRIDE_KEYS),
                    )
                )).all()
        except SQLAlchemyError as e:
            logger.error(
                f"Content store query failed for {site.id}/{article_slug}: {e}",
                exc_info=True
            )
            raise UpstreamUnavailableError("content_store", e) from e

        overrides = {row.meta_key: row.meta_value for row in meta_rows}

        title = _first_override(overrides, TITLE_OVERRIDE_KEYS) or post.post_title or ""
        description = _first_override(overrides, DESCRIPTION_OVERRIDE_KEYS)
        if not description:
            description = (post.post_excerpt or "").strip() or truncate_at_word(
                strip_markup(post.post_content), self.description_max_length
            )

        return Metadata(
            title=normalize_quotes(title),
            description=normalize_quotes(description),
            image=normalize_image_url(image, site.domain),
        )
