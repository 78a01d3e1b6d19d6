"""Tests for the incremental stats consumer against the real ASGI app."""

import json
from datetime import date, timedelta

import httpx
import pytest

from app.clients.stats_sync_client import StatsSyncClient
from app.schemas.stats_schemas import StatsData
from app.services import hourly_aggregation_service
from app.services.stats_snapshot import StatsSnapshot

from helpers import at

MINUTE_MS = 60 * 1000


@pytest.fixture
def frozen_now(monkeypatch):
    monkeypatch.setattr(hourly_aggregation_service, "utc_now", lambda: at("20:00").replace(tzinfo=None))


@pytest.fixture
async def recorded(api_app, frozen_now):
    requests = []

    async def record(request):
        requests.append(request)

    transport = httpx.ASGITransport(app=api_app)
    async with httpx.AsyncClient(
        transport=transport, base_url="http://testserver", event_hooks={"request": [record]}
    ) as http:
        yield http, requests


class TestStatsSyncClient:

    async def test_incremental_refresh(self, recorded, ingest):
        http, requests = recorded
        today = [date(2024, 1, 15)]
        sync = StatsSyncClient(http, "UTC", today=lambda: today[0])

        await ingest("desk-1", "windows", "Code.exe", at("09:00"), at("09:30"))
        first = await sync.refresh()
        assert first.summary.total_time_ms == 30 * MINUTE_MS
        assert "since" not in requests[-1].url.params

        await ingest("desk-1", "windows", "Slack", at("10:00"), at("10:10"))
        second = await sync.refresh()

        sent = requests[-1]
        assert sent.url.params["since"].startswith("2024-01-15T09:30:00")
        assert json.loads(sent.content) == {"knownAppIds": list(first.apps)}
        assert second.summary.total_time_ms == 40 * MINUTE_MS
        assert {meta.app_name for meta in second.apps.values()} == {"Code.exe", "Slack"}

        full = await StatsSyncClient(http, "UTC", today=lambda: today[0]).refresh()
        assert second.hourly == full.hourly
        assert second.daily == full.daily
        assert second.cursor == full.cursor

    async def test_new_local_day_forces_full_fetch(self, recorded, ingest):
        http, requests = recorded
        today = [date(2024, 1, 15)]
        sync = StatsSyncClient(http, "UTC", today=lambda: today[0])

        await ingest("desk-1", "windows", "Code.exe", at("09:00"), at("09:30"))
        await sync.refresh()

        today[0] = date(2024, 1, 16)
        await sync.refresh()

        assert "since" not in requests[-1].url.params
        assert json.loads(requests[-1].content) == {"knownAppIds": []}
        assert sync.snapshot.fetched_on == date(2024, 1, 16)

    async def test_empty_snapshot_stays_full_fetch(self, recorded):
        http, requests = recorded
        sync = StatsSyncClient(http, "UTC", today=lambda: date(2024, 1, 15))

        first = await sync.refresh()
        await sync.refresh()

        assert first.cursor is None
        assert all("since" not in request.url.params for request in requests)

    async def test_client_date_decides_the_range(self, recorded):
        http, requests = recorded
        sync = StatsSyncClient(http, "UTC", today=lambda: date(2024, 1, 15))

        await sync.refresh()

        assert requests[-1].url.params["from"] == "2024-01-15"
        assert requests[-1].url.params["to"] == "2024-01-15"
        assert requests[-1].url.params["timeZone"] == "UTC"

    async def test_server_midnight_between_refreshes(self, recorded, ingest, monkeypatch):
        """The server's clock reaching the next day must not break folding."""
        http, requests = recorded
        server_now = [(at("23:59") + timedelta(seconds=59)).replace(tzinfo=None)]
        monkeypatch.setattr(hourly_aggregation_service, "utc_now", lambda: server_now[0])
        sync = StatsSyncClient(http, "UTC", today=lambda: date(2024, 1, 15))

        await ingest("desk-1", "windows", "Code.exe", at("09:00"), at("09:30"))
        await sync.refresh()

        server_now[0] = (at("00:00", day="2024-01-16") + timedelta(seconds=1)).replace(tzinfo=None)
        await ingest("desk-1", "windows", "Slack", at("10:00"), at("10:10"))
        second = await sync.refresh()

        assert "since" in requests[-1].url.params
        assert requests[-1].url.params["from"] == "2024-01-15"
        assert second.from_date == date(2024, 1, 15)
        assert second.to_date == date(2024, 1, 15)
        assert second.summary.total_time_ms == 40 * MINUTE_MS

    async def test_mismatched_snapshot_falls_back_to_full_fetch(self, recorded, ingest):
        http, requests = recorded
        sync = StatsSyncClient(http, "UTC", today=lambda: date(2024, 1, 15))
        sync.snapshot = StatsSnapshot(
            data=StatsData(
                from_date=date(2024, 1, 15),
                to_date=date(2024, 1, 15),
                time_zone="Europe/Berlin",
                cursor=at("09:30")
            ),
            fetched_on=date(2024, 1, 15)
        )

        await ingest("desk-1", "windows", "Code.exe", at("09:00"), at("09:30"))
        data = await sync.refresh()

        assert "since" in requests[0].url.params
        assert "since" not in requests[-1].url.params
        assert json.loads(requests[-1].content) == {"knownAppIds": []}
        assert data.time_zone == "UTC"
        assert data.summary.total_time_ms == 30 * MINUTE_MS
        assert sync.snapshot.data is data
