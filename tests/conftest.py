import os
import pytest
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

# Set test env vars before importing app
os.environ['FF_PROVIDER_HISTORY'] = 'false'

from app import create_app
from app.extensions import db as _db
from app.models.daily_weather import Coordinate, DailyWeather
from app.services.cache_writer import CacheWriter
from app.services.weather_cache_store import WeatherCacheStore
from config import TestConfig

# 12:00 in the calendar timezone, so "today" is 2026-10-17
NOW = datetime(2026, 10, 17, 4, 0, tzinfo=timezone.utc)
TODAY = NOW.date()
SHANGHAI = Coordinate.parse('31.2304', '121.4737')


def make_days(start, count, text='晴', temp_min='12', temp_max='22'):
    return [
        DailyWeather(
            date=start + timedelta(days=i),
            text=text,
            temp_min=temp_min,
            temp_max=temp_max,
            wind='东北风',
            sunrise='06:01',
            sunset='17:20',
        )
        for i in range(count)
    ]


def mock_response(payload, status_code=200):
    resp = MagicMock()
    resp.status_code = status_code
    resp.ok = 200 <= status_code < 300
    resp.json.return_value = payload
    return resp


class FakeForecastClient:
    """Stands in for QWeatherClient; records calls."""

    def __init__(self, start=TODAY, days=7, text='晴', error=None, history=None):
        self.start = start
        self.days = days
        self.text = text
        self.error = error
        self.history = history or []
        self.calls = []
        self.history_calls = []

    def fetch_forecast(self, location_ref):
        self.calls.append(location_ref)
        if self.error:
            raise self.error
        return make_days(self.start, self.days, text=self.text)

    def fetch_history(self, location_ref, dates):
        self.history_calls.append((location_ref, list(dates)))
        return list(self.history)


@pytest.fixture(scope='session')
def app():
    """Create app with test config."""
    app = create_app(TestConfig)
    return app


@pytest.fixture(autouse=True)
def setup_db(app):
    """Create tables before each test, drop after."""
    with app.app_context():
        _db.create_all()
        yield
        _db.session.rollback()
        _db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def db_session(app):
    with app.app_context():
        yield _db.session


@pytest.fixture
def store(app):
    return WeatherCacheStore(_db)


@pytest.fixture
def writer(app, store):
    return CacheWriter(app, store, inline=True)


@pytest.fixture
def forecast_client():
    return FakeForecastClient()
