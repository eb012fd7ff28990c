from datetime import timedelta
from types import SimpleNamespace
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError, SQLAlchemyError

from app.errors import StoreError
from app.models.daily_weather import Coordinate, DailyWeather
from app.models.weather import WeatherCache
from app.services.weather_cache_store import latest_per_date
from app.utils.dates import parse_timestamp
from conftest import NOW, SHANGHAI, TODAY, make_days


class TestUpsert:
    def test_inserts_one_row_per_day(self, store, db_session):
        written = store.upsert_daily(SHANGHAI, '上海', make_days(TODAY, 7), now=NOW)
        assert written == 7
        assert WeatherCache.query.count() == 7

    def test_upsert_is_idempotent_and_bumps_updated_at(self, store, db_session):
        first = NOW - timedelta(hours=1)
        store.upsert_daily(SHANGHAI, '上海', make_days(TODAY, 1), now=first)
        store.upsert_daily(SHANGHAI, '上海', make_days(TODAY, 1), now=NOW)

        rows = WeatherCache.query.all()
        assert len(rows) == 1
        assert parse_timestamp(rows[0].updated_at) == NOW

    def test_conflict_overwrites_descriptive_fields_and_city(self, store, db_session):
        store.upsert_daily(SHANGHAI, '', make_days(TODAY, 1, text='晴'), now=NOW - timedelta(hours=1))
        store.upsert_daily(SHANGHAI, '上海', make_days(TODAY, 1, text='小雨', temp_max='18'), now=NOW)

        row = WeatherCache.query.one()
        assert row.text == '小雨'
        assert row.temp_max == '18'
        assert row.city == '上海'

    def test_batch_is_all_or_nothing(self, store, db_session):
        rows = make_days(TODAY, 2) + [DailyWeather(date=None, text='bad')]
        assert store.upsert_daily(SHANGHAI, '上海', rows, now=NOW) == 0
        assert WeatherCache.query.count() == 0

    def test_errors_are_swallowed(self, store, db_session):
        with patch.object(store, '_upsert_statement', side_effect=SQLAlchemyError('down')):
            assert store.upsert_daily(SHANGHAI, '上海', make_days(TODAY, 3), now=NOW) == 0

    def test_missing_coordinate_is_a_noop(self, store, db_session):
        assert store.upsert_daily(None, '上海', make_days(TODAY, 3), now=NOW) == 0
        assert WeatherCache.query.count() == 0

    def test_coordinates_are_separate_keys(self, store, db_session):
        beijing = Coordinate.parse('39.9042', '116.4074')
        store.upsert_daily(SHANGHAI, '上海', make_days(TODAY, 2), now=NOW)
        store.upsert_daily(beijing, '北京', make_days(TODAY, 2), now=NOW)
        assert WeatherCache.query.count() == 4


class TestReadRange:
    def test_end_date_is_exclusive(self, store, db_session):
        store.upsert_daily(SHANGHAI, '上海', make_days(TODAY - timedelta(days=3), 5), now=NOW)

        rows = store.read_range(SHANGHAI, TODAY - timedelta(days=31), TODAY)

        assert [r.date for r in rows] == [TODAY - timedelta(days=n) for n in (3, 2, 1)]

    def test_only_matching_coordinate(self, store, db_session):
        other = Coordinate.parse('22.5431', '114.0579')
        store.upsert_daily(other, '深圳', make_days(TODAY - timedelta(days=2), 2), now=NOW)
        assert store.read_range(SHANGHAI, TODAY - timedelta(days=31), TODAY) == []

    def test_failure_returns_empty(self, store, db_session):
        with patch.object(store, '_query', side_effect=OperationalError('SELECT', {}, Exception('gone'))):
            assert store.read_range(SHANGHAI, TODAY - timedelta(days=31), TODAY) == []

    def test_missing_coordinate_returns_empty(self, store):
        assert store.read_range(None, TODAY - timedelta(days=31), TODAY) == []


class TestReadFromDate:
    def test_reference_time_is_start_row(self, store, db_session):
        start_time = NOW - timedelta(minutes=40)
        store.upsert_daily(SHANGHAI, '上海', make_days(TODAY, 1), now=start_time)
        store.upsert_daily(SHANGHAI, '上海', make_days(TODAY + timedelta(days=1), 3), now=NOW)

        window = store.read_from_date(SHANGHAI, TODAY)

        assert [r.date for r in window.rows] == [TODAY + timedelta(days=n) for n in range(4)]
        assert window.latest_update == start_time

    def test_reference_time_falls_back_to_max(self, store, db_session):
        store.upsert_daily(SHANGHAI, '上海', make_days(TODAY + timedelta(days=1), 1), now=NOW - timedelta(minutes=50))
        store.upsert_daily(SHANGHAI, '上海', make_days(TODAY + timedelta(days=2), 1), now=NOW - timedelta(minutes=5))

        window = store.read_from_date(SHANGHAI, TODAY)

        assert window.latest_update == NOW - timedelta(minutes=5)

    def test_excludes_earlier_days(self, store, db_session):
        store.upsert_daily(SHANGHAI, '上海', make_days(TODAY - timedelta(days=2), 4), now=NOW)
        window = store.read_from_date(SHANGHAI, TODAY)
        assert [r.date for r in window.rows] == [TODAY, TODAY + timedelta(days=1)]

    def test_empty_store(self, store, db_session):
        window = store.read_from_date(SHANGHAI, TODAY)
        assert window.rows == []
        assert window.latest_update is None

    def test_failure_raises_store_error(self, store, db_session):
        with patch.object(store, '_query', side_effect=OperationalError('SELECT', {}, Exception('gone'))):
            with pytest.raises(StoreError):
                store.read_from_date(SHANGHAI, TODAY)


class TestLatestPerDate:
    def test_newest_update_wins(self):
        rows = [
            SimpleNamespace(id=1, date=TODAY, updated_at=NOW, text='new'),
            SimpleNamespace(id=2, date=TODAY, updated_at=NOW - timedelta(minutes=1), text='old'),
        ]
        assert [r.text for r in latest_per_date(rows)] == ['new']

    def test_tie_broken_by_insertion_order(self):
        rows = [
            SimpleNamespace(id=5, date=TODAY, updated_at=NOW, text='later'),
            SimpleNamespace(id=3, date=TODAY, updated_at=NOW, text='earlier'),
        ]
        assert [r.text for r in latest_per_date(rows)] == ['later']

    def test_output_sorted_by_date(self):
        rows = [
            SimpleNamespace(id=1, date=TODAY + timedelta(days=2), updated_at=NOW),
            SimpleNamespace(id=2, date=TODAY, updated_at=NOW),
            SimpleNamespace(id=3, date=TODAY + timedelta(days=1), updated_at=NOW),
        ]
        assert [r.id for r in latest_per_date(rows)] == [2, 3, 1]


class TestPing:
    def test_ping_ok(self, store, db_session):
        assert store.ping() is True


class TestCoordinate:
    def test_parse_quantizes(self):
        coordinate = Coordinate.parse('31.23', 121.4737)
        assert str(coordinate.latitude) == '31.2300000'
        assert coordinate.location_ref == '121.47,31.23'

    def test_unusable_values_return_none(self):
        assert Coordinate.parse('1e30', '121.47') is None
        assert Coordinate.parse('1234567890123456789012345', '121.47') is None
        assert Coordinate.parse('nan', '121.47') is None
        assert Coordinate.parse('91', '121.47') is None
        assert Coordinate.parse(None, '121.47') is None
