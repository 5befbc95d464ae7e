"""
Tests for the stats API.

Fixture data for site "tales", March 2026:

    article  clicks (source/country)              previews
    a1       fb/GB x3, fb/unknown x1, tg/US x1    fb x2
    a2       fb/US x2, fb/DE x1                   -
    a3       tg/GB x1 (last second of the month)  tg x1

plus events just outside the month and one event on another site.
"""

from datetime import datetime

import pytest
import pytest_asyncio

from linktrack.api.endpoints import get_stats_service
from linktrack.main import app
from linktrack.services.stats_service import StatsService, percentage

MARCH = {"site": "tales", "period": "month_3_2026"}


@pytest_asyncio.fixture
async def march_events(add_events):
    await add_events(
        ("tales", "fb", "a1", "click", "GB", datetime(2026, 3, 1, 0, 0, 0)),
        ("tales", "fb", "a1", "click", "GB", datetime(2026, 3, 5, 8, 0, 0)),
        ("tales", "fb", "a1", "click", "GB", datetime(2026, 3, 5, 9, 0, 0)),
        ("tales", "fb", "a1", "click", None, datetime(2026, 3, 6, 9, 0, 0)),
        ("tales", "tg", "a1", "click", "US", datetime(2026, 3, 7, 9, 0, 0)),
        ("tales", "fb", "a2", "click", "US", datetime(2026, 3, 8, 9, 0, 0)),
        ("tales", "fb", "a2", "click", "US", datetime(2026, 3, 9, 9, 0, 0)),
        ("tales", "fb", "a2", "click", "DE", datetime(2026, 3, 10, 9, 0, 0)),
        ("tales", "tg", "a3", "click", "GB", datetime(2026, 3, 31, 23, 59, 59)),
        ("tales", "fb", "a1", "preview", None, datetime(2026, 3, 2, 10, 0, 0)),
        ("tales", "fb", "a1", "preview", "US", datetime(2026, 3, 3, 10, 0, 0)),
        ("tales", "tg", "a3", "preview", None, datetime(2026, 3, 4, 10, 0, 0)),
        # Outside the window or the site
        ("tales", "fb", "a2", "click", "US", datetime(2026, 2, 28, 23, 59, 59)),
        ("tales", "fb", "a2", "click", "US", datetime(2026, 4, 1, 0, 0, 0)),
        ("news", "fb", "a1", "click", "GB", datetime(2026, 3, 15, 12, 0, 0)),
    )


async def get_stats(client, auth_headers, **params):
    return await client.get("/api/stats", params=params, headers=auth_headers)


def test_percentage():
    assert percentage(0, 0) == 0.0
    assert percentage(1, 3) == 33.33
    assert percentage(2, 2) == 100.0


class TestAuthentication:

    @pytest.mark.asyncio
    async def test_missing_header(self, client):
        response = await client.get("/api/stats", params=MARCH)

        assert response.status_code == 401
        assert response.json()["code"] == "unauthorized"

    @pytest.mark.asyncio
    async def test_not_bearer(self, client):
        response = await client.get("/api/stats", params=MARCH, headers={"Authorization": "Basic abc"})

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_wrong_token(self, client):
        response = await client.get("/api/stats", params=MARCH, headers={"Authorization": "Bearer wrong"})

        assert response.status_code == 403
        assert response.json() == {"success": False, "error": "Invalid token", "code": "forbidden"}

    @pytest.mark.asyncio
    async def test_unset_secret_rejects_everything(self, client, auth_headers, test_settings, monkeypatch):
        monkeypatch.setattr(test_settings, "API_TOKEN", None)

        response = await get_stats(client, auth_headers, **MARCH)

        assert response.status_code == 403


class TestValidation:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("params,code", [
        ({"period": "day"}, "missing_site"),
        ({"site": "nope", "period": "day"}, "unknown_site"),
        ({"site": "tales", "period": "fortnight"}, "invalid_period"),
        ({"site": "tales"}, "invalid_period"),
        ({"site": "tales", "start_date": "2026-03-01"}, "invalid_period"),
        ({"site": "tales", "start_date": "2026-03-31", "end_date": "2026-03-01"}, "invalid_period"),
        ({"site": "tales", "start_date": "0001-01-01T00:00:00+01:00", "end_date": "2026-01-01"}, "invalid_period"),
        ({"site": "tales", "period": "day", "limit": "0"}, "invalid_limit"),
        ({"site": "tales", "period": "day", "countries_limit": "x"}, "invalid_countries_limit"),
    ])
    async def test_bad_request(self, client, auth_headers, params, code):
        response = await get_stats(client, auth_headers, **params)

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["code"] == code


class TestReport:

    @pytest.mark.asyncio
    async def test_full_report(self, client, auth_headers, march_events):
        response = await get_stats(client, auth_headers, **MARCH)

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        data = body["data"]

        assert data["site"] == "tales"
        assert data["period"] == "month_3_2026"
        assert "source" not in data
        assert data["date_range"] == {"start": "2026-03-01 00:00:00", "end": "2026-03-31 23:59:59"}
        assert data["total_clicks"] == 9
        assert data["total_previews"] == 3
        assert data["articles_count"] == 3

        assert data["top_articles"] == [
            {"article_id": "a1", "clicks": 5, "url": "https://tales.example.com/a1/",
             "top_countries": [{"country": "GB", "clicks": 3}, {"country": "US", "clicks": 1}]},
            {"article_id": "a2", "clicks": 3, "url": "https://tales.example.com/a2/",
             "top_countries": [{"country": "US", "clicks": 2}, {"country": "DE", "clicks": 1}]},
            {"article_id": "a3", "clicks": 1, "url": "https://tales.example.com/a3/",
             "top_countries": [{"country": "GB", "clicks": 1}]},
        ]
        assert data["top_articles_previews"] == [
            {"article_id": "a1", "previews": 2, "url": "https://tales.example.com/a1/"},
            {"article_id": "a3", "previews": 1, "url": "https://tales.example.com/a3/"},
        ]
        assert data["top_countries"] == [
            {"country": "GB", "clicks": 4, "percentage": 44.44},
            {"country": "US", "clicks": 3, "percentage": 33.33},
            {"country": "DE", "clicks": 1, "percentage": 11.11},
        ]
        assert data["sources"] == [
            {"source": "fb", "clicks": 7, "previews": 2, "total": 9},
            {"source": "tg", "clicks": 2, "previews": 1, "total": 3},
        ]

    @pytest.mark.asyncio
    async def test_explicit_dates_are_custom_period(self, client, auth_headers, march_events):
        response = await get_stats(
            client, auth_headers, site="tales", start_date="2026-03-01", end_date="2026-03-31"
        )

        data = response.json()["data"]
        assert data["period"] == "custom"
        assert data["date_range"] == {"start": "2026-03-01 00:00:00", "end": "2026-03-31 23:59:59"}
        assert data["total_clicks"] == 9

    @pytest.mark.asyncio
    async def test_source_filter_keeps_full_source_breakdown(self, client, auth_headers, march_events):
        response = await get_stats(client, auth_headers, source="tg", **MARCH)

        data = response.json()["data"]
        assert data["source"] == "tg"
        assert data["total_clicks"] == 2
        assert data["total_previews"] == 1
        assert [(a["article_id"], a["clicks"]) for a in data["top_articles"]] == [("a1", 1), ("a3", 1)]
        assert data["top_countries"] == [
            {"country": "GB", "clicks": 1, "percentage": 50.0},
            {"country": "US", "clicks": 1, "percentage": 50.0},
        ]
        assert [s["source"] for s in data["sources"]] == ["fb", "tg"]

    @pytest.mark.asyncio
    async def test_limits(self, client, auth_headers, march_events):
        response = await get_stats(client, auth_headers, limit="1", countries_limit="1", **MARCH)

        data = response.json()["data"]
        assert data["articles_count"] == 1
        assert data["top_articles"] == [
            {"article_id": "a1", "clicks": 5, "url": "https://tales.example.com/a1/",
             "top_countries": [{"country": "GB", "clicks": 3}]},
        ]
        assert [a["article_id"] for a in data["top_articles_previews"]] == ["a1"]
        assert [c["country"] for c in data["top_countries"]] == ["GB"]

    @pytest.mark.asyncio
    async def test_limit_all(self, client, auth_headers, march_events):
        response = await get_stats(client, auth_headers, limit="all", countries_limit="all", **MARCH)

        data = response.json()["data"]
        assert data["articles_count"] == 3
        assert len(data["top_countries"]) == 3

    @pytest.mark.asyncio
    async def test_countries_disabled(self, client, auth_headers, march_events):
        response = await get_stats(client, auth_headers, countries_limit="0", **MARCH)

        data = response.json()["data"]
        assert "top_countries" not in data
        assert all("top_countries" not in article for article in data["top_articles"])
        assert data["total_clicks"] == 9

    @pytest.mark.asyncio
    async def test_empty_window(self, client, auth_headers, march_events):
        response = await get_stats(client, auth_headers, site="tales", period="month_1_2020")

        data = response.json()["data"]
        assert data["total_clicks"] == 0
        assert data["total_previews"] == 0
        assert data["articles_count"] == 0
        assert data["top_articles"] == []
        assert data["top_articles_previews"] == []
        assert data["top_countries"] == []
        assert data["sources"] == []

    @pytest.mark.asyncio
    async def test_rolling_period_ends_at_clock(self, client, auth_headers, march_events, session_maker):
        async def fixed_clock_service():
            async with session_maker() as session:
                yield StatsService(session, clock=lambda: datetime(2026, 3, 10, 12, 0, 0))

        app.dependency_overrides[get_stats_service] = fixed_clock_service

        response = await get_stats(client, auth_headers, site="tales", period="week")

        data = response.json()["data"]
        assert data["date_range"] == {"start": "2026-03-03 12:00:00", "end": "2026-03-10 12:00:00"}
        # Clicks from the 5th to the 10th; only the preview on the 4th falls inside
        assert data["total_clicks"] == 7
        assert data["total_previews"] == 1
