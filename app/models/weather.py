from app.extensions import db
from sqlalchemy import func
from app.models.daily_weather import DailyWeather


class WeatherCache(db.Model):
    __tablename__ = 'weather_cache'

    id = db.Column(db.BigInteger().with_variant(db.Integer, 'sqlite'), primary_key=True, autoincrement=True)
    latitude = db.Column(db.Numeric(10, 7), nullable=False)
    longitude = db.Column(db.Numeric(10, 7), nullable=False)
    city = db.Column(db.String(255), default='')
    date = db.Column(db.Date, nullable=False)
    text = db.Column(db.String(100), default='')
    temp_min = db.Column(db.String(20), default='')
    temp_max = db.Column(db.String(20), default='')
    wind = db.Column(db.String(50), default='')
    sunrise = db.Column(db.String(20), default='')
    sunset = db.Column(db.String(20), default='')
    created_at = db.Column(db.DateTime(timezone=True), server_default=func.now())
    updated_at = db.Column(db.DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        db.UniqueConstraint('latitude', 'longitude', 'date', name='uq_weather_cache_lat_lon_date'),
        db.Index('ix_weather_cache_lat_lon', 'latitude', 'longitude'),
        db.Index('ix_weather_cache_date', 'date'),
    )

    def to_daily(self):
        """Convert to a DailyWeather; provenance is resolved later by the projection step."""
        return DailyWeather(
            date=self.date,
            text=self.text or '',
            temp_min=self.temp_min or '',
            temp_max=self.temp_max or '',
            wind=self.wind or None,
            sunrise=self.sunrise or None,
            sunset=self.sunset or None,
            updated_at=self.updated_at,
        )
