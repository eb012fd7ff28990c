import math
from dataclasses import dataclass, replace
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Optional

from app.utils.dates import compact_day

COORD_QUANT = Decimal('0.0000001')


def _to_decimal(value):
    if value is None or isinstance(value, bool):
        return None
    try:
        if isinstance(value, float) and not math.isfinite(value):
            return None
        number = Decimal(str(value).strip())
        if not number.is_finite():
            return None
        return number.quantize(COORD_QUANT)
    except (InvalidOperation, ValueError):
        return None


@dataclass(frozen=True)
class Coordinate:
    latitude: Decimal
    longitude: Decimal

    @classmethod
    def parse(cls, lat, lon):
        """Build a coordinate from raw request values, or None if they are unusable."""
        latitude = _to_decimal(lat)
        longitude = _to_decimal(lon)
        if latitude is None or longitude is None:
            return None
        if not (-90 <= latitude <= 90 and -180 <= longitude <= 180):
            return None
        return cls(latitude, longitude)

    @property
    def location_ref(self):
        # QWeather wants "lon,lat" with at most two decimals
        return f'{self.longitude:.2f},{self.latitude:.2f}'

    def __str__(self):
        return f'({self.latitude}, {self.longitude})'


@dataclass
class DailyWeather:
    date: date
    text: str = ''
    temp_min: str = ''
    temp_max: str = ''
    icon: Optional[str] = None
    wind: Optional[str] = None
    sunrise: Optional[str] = None
    sunset: Optional[str] = None
    from_cache: Optional[bool] = None
    updated_at: Optional[datetime] = None

    @property
    def compact_date(self):
        return compact_day(self.date)

    def with_provenance(self, from_cache, updated_at):
        return replace(self, from_cache=bool(from_cache), updated_at=updated_at)
