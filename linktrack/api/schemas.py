"""
API Response Schemas

Pydantic models for the stats API response. Optional sections (source,
top_countries) are left out of the JSON when they do not apply.
"""

from typing import List, Optional

from pydantic import BaseModel, Field


class DateRangeOut(BaseModel):
    start: str = Field(..., description="Window start, YYYY-MM-DD HH:MM:SS (UTC)")
    end: str = Field(..., description="Window end, inclusive")


class CountryCount(BaseModel):
    country: str
    clicks: int


class CountryShare(CountryCount):
    percentage: float = Field(..., description="Share of total clicks, 2 decimals")


class ArticleClicks(BaseModel):
    article_id: str
    clicks: int
    url: str
    top_countries: Optional[List[CountryCount]] = None


class ArticlePreviews(BaseModel):
    article_id: str
    previews: int
    url: str


class SourceBreakdown(BaseModel):
    source: str
    clicks: int
    previews: int
    total: int


class StatsData(BaseModel):
    site: str
    period: str
    source: Optional[str] = None
    date_range: DateRangeOut
    total_clicks: int
    total_previews: int
    articles_count: int
    top_articles: List[ArticleClicks]
    top_articles_previews: List[ArticlePreviews]
    top_countries: Optional[List[CountryShare]] = None
    sources: List[SourceBreakdown]


class StatsResponse(BaseModel):
    """Response model for the stats endpoint."""
    success: bool = True
    data: StatsData
