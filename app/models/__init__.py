from app.models.daily_weather import Coordinate, DailyWeather
from app.models.weather import WeatherCache

__all__ = ['Coordinate', 'DailyWeather', 'WeatherCache']
