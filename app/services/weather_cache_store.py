import logging
from typing import List, NamedTuple, Optional
from datetime import datetime
from sqlalchemy import text
from sqlalchemy.dialects.mysql import insert as mysql_insert
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from app.errors import StoreError
from app.extensions import db
from app.models.daily_weather import DailyWeather
from app.models.weather import WeatherCache
from app.utils.dates import parse_timestamp, utcnow

logger = logging.getLogger(__name__)

UPDATE_COLUMNS = ('city', 'text', 'temp_min', 'temp_max', 'wind', 'sunrise', 'sunset', 'updated_at')
KEY_COLUMNS = ('latitude', 'longitude', 'date')


class CachedWindow(NamedTuple):
    rows: List[DailyWeather]
    latest_update: Optional[datetime]


def _recency(row):
    updated = parse_timestamp(row.updated_at)
    return (updated.timestamp() if updated else float('-inf'), row.id or 0)


def latest_per_date(rows):
    """Collapse duplicate physical rows to one per date.

    The most recently updated row wins; ties go to the later insertion (higher id).
    Result is ordered by date ascending.
    """
    latest = {}
    for row in rows:
        current = latest.get(row.date)
        if current is None or _recency(row) > _recency(current):
            latest[row.date] = row
    return [latest[day] for day in sorted(latest)]


class WeatherCacheStore:
    """Daily weather rows keyed by (latitude, longitude, date).

    The connection pool belongs to the SQLAlchemy engine bound to ``database``;
    it is created on first use and shared by every request.
    """

    def __init__(self, database=None):
        self.db = database or db

    @property
    def session(self):
        return self.db.session

    def ping(self):
        try:
            self.session.execute(text('SELECT 1'))
            return True
        except SQLAlchemyError as e:
            logger.warning(f"Weather cache store unreachable: {e}")
            self.session.rollback()
            return False

    def upsert_daily(self, coordinate, city, rows, now=None):
        """Write or refresh one row per day in a single transaction.

        Returns the number of rows written. Errors are logged and swallowed;
        on failure nothing from this batch is committed.
        """
        if coordinate is None or not rows:
            return 0

        now = now or utcnow()
        values = [
            {
                'latitude': coordinate.latitude,
                'longitude': coordinate.longitude,
                'city': city or '',
                'date': row.date,
                'text': row.text or '',
                'temp_min': row.temp_min or '',
                'temp_max': row.temp_max or '',
                'wind': row.wind or '',
                'sunrise': row.sunrise or '',
                'sunset': row.sunset or '',
                'created_at': now,
                'updated_at': now,
            }
            for row in rows
        ]

        try:
            self.session.execute(self._upsert_statement(values))
            self.session.commit()
        except Exception as e:
            self.session.rollback()
            logger.error(f"Failed to cache {len(values)} weather rows for {coordinate}: {e}")
            return 0

        logger.info(f"Cached {len(values)} weather rows for {coordinate}")
        return len(values)

    def _upsert_statement(self, values):
        table = WeatherCache.__table__
        dialect = self.session.get_bind().dialect.name

        if dialect == 'mysql':
            stmt = mysql_insert(table).values(values)
            return stmt.on_duplicate_key_update({col: stmt.inserted[col] for col in UPDATE_COLUMNS})

        if dialect == 'postgresql':
            stmt = pg_insert(table).values(values)
        elif dialect == 'sqlite':
            stmt = sqlite_insert(table).values(values)
        else:
            raise StoreError(f'Upsert not supported for dialect {dialect}')

        return stmt.on_conflict_do_update(
            index_elements=list(KEY_COLUMNS),
            set_={col: stmt.excluded[col] for col in UPDATE_COLUMNS},
        )

    def _query(self, coordinate, start, end_exclusive=None):
        query = WeatherCache.query.filter(
            WeatherCache.latitude == coordinate.latitude,
            WeatherCache.longitude == coordinate.longitude,
            WeatherCache.date >= start,
        )
        if end_exclusive is not None:
            query = query.filter(WeatherCache.date < end_exclusive)
        return latest_per_date(query.order_by(WeatherCache.date.asc()).all())

    def read_range(self, coordinate, start, end_exclusive):
        """Cached rows with start <= date < end_exclusive. Empty on any failure."""
        if coordinate is None:
            return []
        try:
            return [row.to_daily() for row in self._query(coordinate, start, end_exclusive)]
        except Exception as e:
            self.session.rollback()
            logger.warning(f"History read failed for {coordinate} [{start}, {end_exclusive}): {e}")
            return []

    def read_from_date(self, coordinate, start):
        """Cached rows from ``start`` onward plus their reference update time.

        The reference time is the update time of the ``start`` row when present,
        otherwise the newest update time among the rows. Raises StoreError when
        the store cannot be queried so callers can fall back to a live fetch.
        """
        if coordinate is None:
            return CachedWindow([], None)
        try:
            records = self._query(coordinate, start)
        except SQLAlchemyError as e:
            self.session.rollback()
            raise StoreError(f'Forward read failed for {coordinate}: {e}') from e

        rows = [record.to_daily() for record in records]
        anchor = next((row for row in rows if row.date == start), None)
        if anchor is not None:
            latest = parse_timestamp(anchor.updated_at)
        else:
            stamps = [ts for ts in (parse_timestamp(row.updated_at) for row in rows) if ts]
            latest = max(stamps) if stamps else None
        return CachedWindow(rows, latest)
