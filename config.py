import os
from dotenv import load_dotenv

load_dotenv()


def _choice(name, default, allowed):
    value = (os.getenv(name) or default).strip().lower()
    return value if value in allowed else default


def _database_url():
    url = os.getenv('DATABASE_URL')
    if url:
        return url
    host = os.getenv('MYSQL_HOST', 'localhost')
    port = os.getenv('MYSQL_PORT', '3306')
    user = os.getenv('MYSQL_USER', 'root')
    password = os.getenv('MYSQL_PASSWORD', '')
    database = os.getenv('MYSQL_DATABASE', 'weather_ics')
    return f'mysql+pymysql://{user}:{password}@{host}:{port}/{database}?charset=utf8mb4'


class Config:
    # Store
    SQLALCHEMY_DATABASE_URI = _database_url()
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {'pool_pre_ping': True, 'pool_size': 10}
    ENABLE_DATABASE_CACHE = _choice('ENABLE_DATABASE_CACHE', 'false', ('true', 'false')) == 'true'
    CACHE_WRITES_INLINE = False
    MAX_HISTORY_DAYS = int(os.getenv('MAX_HISTORY_DAYS', '31'))

    # QWeather (HeFeng)
    HEFENG_API_KEY = os.getenv('HEFENG_API_KEY', '')
    HEFENG_API_HOST = os.getenv('HEFENG_API_HOST')
    HISTORY_FETCH_DAYS = int(os.getenv('HISTORY_FETCH_DAYS', '7'))

    # Geocoding
    GEO_API_PROVIDER = _choice('GEO_API_PROVIDER', 'hefeng', ('hefeng', 'nominatim'))
    # 'true' proxies through this server, 'false' lets browsers call Nominatim, 'auto' lets them decide
    USE_SERVER_NOMINATIM = _choice('USE_SERVER_NOMINATIM', 'false', ('true', 'false', 'auto'))

    # Logging
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    SQLALCHEMY_ENGINE_OPTIONS = {}  # SQLite doesn't support pool_size
    ENABLE_DATABASE_CACHE = True
    CACHE_WRITES_INLINE = True
    MAX_HISTORY_DAYS = 31
    HEFENG_API_KEY = 'test-key'
    HEFENG_API_HOST = None
    HISTORY_FETCH_DAYS = 3
    GEO_API_PROVIDER = 'hefeng'
    USE_SERVER_NOMINATIM = 'false'
