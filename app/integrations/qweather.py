import logging
import time
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
import requests
from app.errors import UpstreamError, UpstreamTimeout
from app.models.daily_weather import DailyWeather
from app.utils.dates import compact_day, parse_day

logger = logging.getLogger(__name__)

PUBLIC_WEATHER_HOST = 'https://devapi.qweather.com'
PUBLIC_GEO_HOST = 'https://geoapi.qweather.com'
USER_AGENT = 'weather-ics/1.0'

FORECAST_TIMEOUT = 15
HISTORY_TIMEOUT = 10
GEO_TIMEOUT = 10

# Historical API is rate limited; fetch a few days at a time
HISTORY_BATCH_SIZE = 3
HISTORY_BATCH_PAUSE = 0.3


def _normalize_host(host):
    host = (host or '').strip().rstrip('/')
    if not host:
        return None
    if not host.startswith(('http://', 'https://')):
        host = f'https://{host}'
    return host


def _parse_forecast_day(d):
    return DailyWeather(
        date=parse_day(d['fxDate']),
        text=d.get('textDay') or '',
        temp_min=str(d.get('tempMin') or ''),
        temp_max=str(d.get('tempMax') or ''),
        icon=d.get('iconDay') or None,
        wind=d.get('windDirDay') or None,
        sunrise=d.get('sunrise') or None,
        sunset=d.get('sunset') or None,
    )


def _parse_history_day(data):
    daily = data.get('weatherDaily') or {}
    hourly = data.get('weatherHourly') or []
    texts = Counter(h.get('text') for h in hourly if h.get('text'))
    winds = Counter(h.get('windDir') for h in hourly if h.get('windDir'))
    return DailyWeather(
        date=parse_day(daily['date']),
        text=texts.most_common(1)[0][0] if texts else '',
        temp_min=str(daily.get('tempMin') or ''),
        temp_max=str(daily.get('tempMax') or ''),
        wind=winds.most_common(1)[0][0] if winds else None,
        sunrise=daily.get('sunrise') or None,
        sunset=daily.get('sunset') or None,
    )


class QWeatherClient:
    """Client for the QWeather (HeFeng) weather and geo APIs."""

    def __init__(self, api_key, api_host=None):
        self.api_key = api_key or ''
        host = _normalize_host(api_host)
        # A dedicated host serves both weather (/v7) and geo (/geo/v2) paths
        self.weather_base = host or PUBLIC_WEATHER_HOST
        self.geo_base = f'{host}/geo' if host else PUBLIC_GEO_HOST

    @classmethod
    def from_config(cls, config):
        return cls(config.get('HEFENG_API_KEY'), config.get('HEFENG_API_HOST'))

    def _get(self, url, params, timeout):
        params = {**params, 'key': self.api_key}
        try:
            resp = requests.get(url, params=params, headers={'User-Agent': USER_AGENT}, timeout=timeout)
        except requests.Timeout as e:
            raise UpstreamTimeout(f'QWeather request timed out: {url}') from e
        except requests.RequestException as e:
            raise UpstreamError(f'QWeather request failed: {e}') from e

        if not resp.ok:
            raise UpstreamError(f'QWeather HTTP {resp.status_code}', status_code=resp.status_code)

        try:
            data = resp.json()
        except ValueError as e:
            raise UpstreamError('QWeather returned a non-JSON body') from e

        if not isinstance(data, dict) or str(data.get('code')) != '200':
            code = data.get('code') if isinstance(data, dict) else None
            raise UpstreamError(f'QWeather API error code {code}')
        return data

    def fetch_forecast(self, location_ref):
        """7-day forecast for a location id or "lon,lat" reference, ordered by date."""
        if not location_ref:
            raise UpstreamError('Missing locationId or lat/lon')

        data = self._get(
            f'{self.weather_base}/v7/weather/7d',
            {'location': location_ref, 'lang': 'zh-hans'},
            FORECAST_TIMEOUT,
        )
        try:
            days = [_parse_forecast_day(d) for d in data.get('daily') or []]
        except (KeyError, TypeError, ValueError) as e:
            raise UpstreamError(f'Malformed QWeather forecast payload: {e}') from e

        logger.debug(f"QWeather forecast for {location_ref}: {len(days)} days")
        return sorted(days, key=lambda d: d.date)

    def _fetch_history_day(self, location_ref, day):
        try:
            data = self._get(
                f'{self.weather_base}/v7/historical/weather',
                {'location': location_ref, 'date': compact_day(day), 'lang': 'zh-hans'},
                HISTORY_TIMEOUT,
            )
            return _parse_history_day(data)
        except (UpstreamError, KeyError, TypeError, ValueError) as e:
            logger.warning(f"History fetch failed for {location_ref} on {day}: {e}")
            return None

    def fetch_history(self, location_ref, dates):
        """Observed weather for the given days. Days that fail are left out."""
        dates = list(dates)
        results = []
        with ThreadPoolExecutor(max_workers=HISTORY_BATCH_SIZE) as executor:
            for start in range(0, len(dates), HISTORY_BATCH_SIZE):
                if start:
                    time.sleep(HISTORY_BATCH_PAUSE)
                batch = dates[start:start + HISTORY_BATCH_SIZE]
                for day in executor.map(lambda d: self._fetch_history_day(location_ref, d), batch):
                    if day is not None:
                        results.append(day)
        return sorted(results, key=lambda d: d.date)

    def lookup_city(self, query):
        """City search; returns the provider JSON untouched."""
        return self._get(
            f'{self.geo_base}/v2/city/lookup',
            {'location': query, 'lang': 'zh', 'number': 10},
            GEO_TIMEOUT,
        )
