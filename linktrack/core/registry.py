"""
Site and Source Registry

Loads the site and source configuration maps once at start-up and exposes
them read-only for the lifetime of the process.

sites.json (keyed by site id):
    {"realtruetales": {"domain": "realtruetales.com",
                       "metadata_strategy": "content_store",
                       "content_store": "realtruetales_db"}}

sources.json (keyed by source id):
    {"fb": {"utm_source": "facebook", "utm_medium": "social"},
     "tg": "utm_source=telegram&utm_medium=messenger"}

Legacy site entries that only carry a store identifier ("db" / "wp_db")
are content-store sites. Legacy source entries may be a bare query string.
"""

from __future__ import annotations

import json
import logging
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple
from urllib.parse import parse_qsl

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from linktrack.core.exceptions import ConfigurationError, UnknownSiteError, UnknownSourceError

logger = logging.getLogger(__name__)

ARTICLE_PLACEHOLDER = "{articleId}"
DEFAULT_URL_PATTERN = "/{articleId}/"


class MetadataStrategy(str, Enum):
    """How preview metadata is resolved for a site."""
    CONTENT_STORE = "content_store"
    HTML_SCRAPE = "html_scrape"


# Names accepted in configuration files, including legacy ones
STRATEGY_ALIASES = {
    "content_store": MetadataStrategy.CONTENT_STORE,
    "content-store": MetadataStrategy.CONTENT_STORE,
    "wordpress_db": MetadataStrategy.CONTENT_STORE,
    "html_scrape": MetadataStrategy.HTML_SCRAPE,
    "html-scrape": MetadataStrategy.HTML_SCRAPE,
    "html_fetch": MetadataStrategy.HTML_SCRAPE,
}


class SiteConfig(BaseModel):
    """Static configuration of one target site."""
    model_config = ConfigDict(frozen=True)

    id: str
    domain: str
    metadata_strategy: MetadataStrategy
    content_store: Optional[str] = None
    table_prefix: str = "wp_"
    url_pattern: str = DEFAULT_URL_PATTERN
    description: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _accept_legacy_shape(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        store = data.get("content_store") or data.pop("wp_db", None) or data.pop("db", None)
        if store:
            data["content_store"] = store
        strategy = data.get("metadata_strategy") or data.pop("og_method", None)
        if strategy is None:
            if not store:
                raise ValueError("site needs a metadata_strategy or a content store identifier")
            strategy = MetadataStrategy.CONTENT_STORE
        elif not isinstance(strategy, MetadataStrategy):
            if strategy not in STRATEGY_ALIASES:
                raise ValueError(f"unsupported metadata_strategy {strategy!r}")
            strategy = STRATEGY_ALIASES[strategy]
        data["metadata_strategy"] = strategy
        if not data.get("url_pattern"):
            data["url_pattern"] = DEFAULT_URL_PATTERN
        return data

    @field_validator("domain")
    @classmethod
    def _bare_domain(cls, value: str) -> str:
        value = value.strip().rstrip("/")
        for scheme in ("https://", "http://"):
            if value.startswith(scheme):
                value = value[len(scheme):]
        if not value:
            raise ValueError("domain must not be empty")
        return value

    @field_validator("url_pattern")
    @classmethod
    def _single_placeholder(cls, value: str) -> str:
        if value.count(ARTICLE_PLACEHOLDER) != 1:
            raise ValueError(f"url_pattern must contain {ARTICLE_PLACEHOLDER} exactly once")
        return value

    @model_validator(mode="after")
    def _store_required_for_content_strategy(self) -> "SiteConfig":
        if self.metadata_strategy is MetadataStrategy.CONTENT_STORE and not self.content_store:
            raise ValueError("content_store is required for the content_store strategy")
        return self


class SourceConfig(BaseModel):
    """UTM attribution attached to every redirect for a traffic source."""
    model_config = ConfigDict(frozen=True)

    id: str
    utm_source: str
    utm_medium: str
    extra_params: Tuple[Tuple[str, str], ...] = Field(default_factory=tuple)

    @model_validator(mode="before")
    @classmethod
    def _accept_query_string(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        params = data.pop("params", None)
        if isinstance(params, str):
            data.update(parse_qsl(params.lstrip("?")))
        known = {"id", "utm_source", "utm_medium", "extra_params"}
        extras = [(key, str(value)) for key, value in data.items() if key not in known]
        for key, _ in extras:
            data.pop(key)
        # utm_campaign always carries the article id
        extras = [(key, value) for key, value in extras if key != "utm_campaign"]
        if extras:
            data["extra_params"] = tuple(extras)
        return data

    def utm_params(self) -> list[tuple[str, str]]:
        """Query parameters in the order they are appended to redirects."""
        return [("utm_source", self.utm_source), ("utm_medium", self.utm_medium), *self.extra_params]


class ConfigRegistry:
    """
    Immutable lookup of site and source configuration.

    Both maps are read-only views, safe for unbounded concurrent reads.
    """

    def __init__(self, sites: Mapping[str, SiteConfig], sources: Mapping[str, SourceConfig]):
        self._sites = MappingProxyType(dict(sites))
        self._sources = MappingProxyType(dict(sources))

    @property
    def sites(self) -> Mapping[str, SiteConfig]:
        return self._sites

    @property
    def sources(self) -> Mapping[str, SourceConfig]:
        return self._sources

    def get_site(self, site_id: str) -> Optional[SiteConfig]:
        return self._sites.get(site_id)

    def get_source(self, source_id: str) -> Optional[SourceConfig]:
        return self._sources.get(source_id)

    def resolve_site(self, site_id: str) -> SiteConfig:
        """Return the site config or raise UnknownSiteError."""
        site = self.get_site(site_id)
        if site is None:
            raise UnknownSiteError(site_id)
        return site

    def resolve_source(self, source_id: str) -> SourceConfig:
        """Return the source config or raise UnknownSourceError."""
        source = self.get_source(source_id)
        if source is None:
            raise UnknownSourceError(source_id)
        return source

    @classmethod
    def from_mappings(cls, sites: Dict[str, Any], sources: Dict[str, Any]) -> "ConfigRegistry":
        """
        Build a registry from raw (already decoded) configuration objects.

        Raises:
            ConfigurationError: If any entry fails validation
        """
        parsed_sites = {}
        for site_id, raw in sites.items():
            try:
                parsed_sites[site_id] = SiteConfig.model_validate({**raw, "id": site_id})
            except ValidationError as e:
                raise ConfigurationError(f"Invalid site '{site_id}': {e}") from e

        parsed_sources = {}
        for source_id, raw in sources.items():
            if isinstance(raw, str):
                raw = {"params": raw}
            try:
                parsed_sources[source_id] = SourceConfig.model_validate({**raw, "id": source_id})
            except ValidationError as e:
                raise ConfigurationError(f"Invalid source '{source_id}': {e}") from e

        return cls(parsed_sites, parsed_sources)


def _read_json(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = json.load(fh)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Cannot read {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigurationError(f"{path} must contain a JSON object")
    return data


def load_registry(sites_path: Path, sources_path: Path) -> ConfigRegistry:
    """Load and validate both configuration files."""
    registry = ConfigRegistry.from_mappings(_read_json(sites_path), _read_json(sources_path))
    logger.info(
        f"Loaded {len(registry.sites)} sites and {len(registry.sources)} sources"
    )
    return registry
