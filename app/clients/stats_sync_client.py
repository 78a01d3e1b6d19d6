"""
Stats Sync Client
Keeps a local StatsSnapshot up to date against /api/v1/stats using the
cursor protocol: only timelines ending after the cursor are fetched, and
metadata is requested only for apps the snapshot does not know yet.
"""

from datetime import date
from typing import Callable, Optional

import httpx

from app.core.logger import get_logger
from app.core.timezones import local_date_of, resolve_timezone_or_utc, utc_now
from app.schemas.stats_schemas import StatsData, StatsResponse
from app.services.stats_snapshot import StatsSnapshot, fold, should_discard

logger = get_logger("stats_sync_client")

STATS_PATH = "/api/v1/stats"


class StatsSyncClient:
    """Incremental consumer of the stats endpoint for one timezone."""

    def __init__(
        self,
        http: httpx.AsyncClient,
        time_zone: str,
        today: Optional[Callable[[], date]] = None
    ):
        self.http = http
        self.time_zone = time_zone
        self._today = today or self._local_today
        self.snapshot: Optional[StatsSnapshot] = None

    def _local_today(self) -> date:
        return local_date_of(utc_now(), resolve_timezone_or_utc(self.time_zone))

    async def _fetch(self, today: date, since=None, known_app_ids=None) -> StatsData:
        # the client's local date decides the range, never the server clock
        params = {"timeZone": self.time_zone, "from": today.isoformat(), "to": today.isoformat()}
        if since is not None:
            params["since"] = since.isoformat()
        response = await self.http.post(STATS_PATH, params=params, json={"knownAppIds": list(known_app_ids or [])})
        response.raise_for_status()
        return StatsResponse.model_validate(response.json()).data

    async def refresh(self) -> StatsData:
        """Fetch new data and return the up-to-date snapshot contents."""
        today = self._today()

        if self.snapshot is not None and should_discard(self.snapshot.fetched_on, today):
            logger.info(f"Local date moved from {self.snapshot.fetched_on} to {today}, discarding cached stats")
            self.snapshot = None

        if self.snapshot is None or self.snapshot.data.cursor is None:
            data = await self._fetch(today)
        else:
            cached = self.snapshot.data
            incoming = await self._fetch(today, since=cached.cursor, known_app_ids=cached.apps)
            try:
                data = fold(cached, incoming)
            except ValueError as e:
                logger.warning(f"Cached stats no longer match ({e}), doing a full fetch")
                self.snapshot = None
                data = await self._fetch(today)

        self.snapshot = StatsSnapshot(data=data, fetched_on=today)
        return data
