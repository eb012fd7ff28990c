import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional
from app.errors import LocationValidationError, StoreError
from app.models.daily_weather import Coordinate
from app.services.freshness import is_fresh
from app.services.projection import project_rows
from app.utils.dates import calendar_today, utcnow

logger = logging.getLogger(__name__)


@dataclass
class LocationRequest:
    coordinate: Optional[Coordinate] = None
    location_id: Optional[str] = None
    city: str = ''
    include_history: bool = False

    @property
    def location_ref(self):
        if self.location_id:
            return self.location_id
        return self.coordinate.location_ref if self.coordinate else None


def merge_by_date(*windows):
    """Merge row sequences into one date-ordered list.

    Earlier windows take precedence: a date already set is never overwritten.
    """
    merged = {}
    for window in windows:
        for row in window:
            merged.setdefault(row.date, row)
    return [merged[day] for day in sorted(merged)]


class WeatherAssemblyService:
    """Builds the day list for one calendar request.

    Forward window (today onward): fresh cache rows, otherwise a live forecast
    that is queued for caching. Backward window (before today): cached rows only,
    optionally gap-filled from the historical provider.
    """

    def __init__(self, forecast_client, store=None, writer=None, cache_enabled=False,
                 max_history_days=31, history_fetch_days=7):
        self.forecast_client = forecast_client
        self.store = store
        self.writer = writer
        self.cache_enabled = cache_enabled
        self.max_history_days = max_history_days
        self.history_fetch_days = history_fetch_days

    def assemble(self, request, now=None):
        now = now or utcnow()
        today = calendar_today(now)

        if not request.location_ref:
            raise LocationValidationError('Missing locationId or lat/lon')

        use_cache = self.cache_enabled and self.store is not None and request.coordinate is not None

        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix='history')
        try:
            history_future = None
            if request.include_history and self.history_fetch_days > 0:
                dates = [today - timedelta(days=n) for n in range(1, self.history_fetch_days + 1)]
                history_future = executor.submit(self.forecast_client.fetch_history, request.location_ref, dates)

            forward = self._cached_forward(request.coordinate, today, now) if use_cache else None
            if forward is None:
                forward = self._fetch_forward(request, now, use_cache)

            backward = self._cached_backward(request.coordinate, today, now) if use_cache else []
            provider_history = self._collect_history(history_future, today, now)
        finally:
            # A failed forecast must not wait on the history fetch
            executor.shutdown(wait=False, cancel_futures=True)

        days = merge_by_date(forward, backward, provider_history)
        logger.info(
            f"Assembled {len(days)} days for {request.location_ref}: "
            f"{len(forward)} forward, {len(backward)} cached history, {len(provider_history)} provider history"
        )
        return days

    def _cached_forward(self, coordinate, today, now):
        try:
            window = self.store.read_from_date(coordinate, today)
        except StoreError as e:
            logger.warning(f"Cache read failed, falling back to live fetch: {e}")
            return None

        if not window.rows or window.latest_update is None:
            logger.debug(f"No cached forecast for {coordinate} from {today}")
            return None
        if not is_fresh(window.latest_update, now):
            logger.info(f"Cached forecast for {coordinate} is stale (updated {window.latest_update.isoformat()})")
            return None

        logger.info(f"Serving {len(window.rows)} cached forecast days for {coordinate}")
        return project_rows(window.rows, from_cache=True, now=now)

    def _fetch_forward(self, request, now, use_cache):
        # UpstreamError propagates: there is no cached fallback for the forecast
        rows = self.forecast_client.fetch_forecast(request.location_ref)
        rows = project_rows(rows, from_cache=False, now=now)
        if use_cache and self.writer is not None:
            self.writer.submit(request.coordinate, request.city, rows)
        return rows

    def _cached_backward(self, coordinate, today, now):
        if self.max_history_days <= 0:
            return []
        start = today - timedelta(days=self.max_history_days)
        rows = self.store.read_range(coordinate, start, today)
        return project_rows(rows, from_cache=True, now=now)

    def _collect_history(self, future, today, now):
        if future is None:
            return []
        try:
            rows = future.result()
        except Exception as e:
            logger.warning(f"Historical weather fetch failed: {e}")
            return []
        return project_rows([row for row in rows if row.date < today], from_cache=False, now=now)
