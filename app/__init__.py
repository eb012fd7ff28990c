import logging
from flask import Flask
from config import Config

logger = logging.getLogger(__name__)


def create_app(config_class=None):
    app = Flask(__name__)
    app.config.from_object(config_class or Config)

    # Fix Railway's DATABASE_URL (postgres:// -> postgresql://)
    db_uri = app.config.get('SQLALCHEMY_DATABASE_URI', '')
    if db_uri.startswith('postgres://'):
        app.config['SQLALCHEMY_DATABASE_URI'] = db_uri.replace('postgres://', 'postgresql://', 1)

    # Logging
    logging.basicConfig(
        level=getattr(logging, app.config.get('LOG_LEVEL', 'INFO')),
        format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
    )

    # Extensions
    from app.extensions import db, migrate
    db.init_app(app)
    migrate.init_app(app, db)

    # Feature flags
    from app import feature_flags
    feature_flags.init_flags()

    _init_weather_services(app)

    # Register blueprints
    from app.routes import register_blueprints
    register_blueprints(app)

    return app


def _init_weather_services(app):
    from app.extensions import db
    from app.integrations.qweather import QWeatherClient
    from app.services.assembly_service import WeatherAssemblyService
    from app.services.cache_writer import CacheWriter
    from app.services.weather_cache_store import WeatherCacheStore

    cache_enabled = bool(app.config.get('ENABLE_DATABASE_CACHE'))
    store = writer = None

    if cache_enabled:
        store = WeatherCacheStore(db)
        writer = CacheWriter(app, store, inline=app.config.get('CACHE_WRITES_INLINE', False))
        if not app.config.get('TESTING'):
            # The service runs without a cache if the store is down at startup
            try:
                with app.app_context():
                    db.create_all()
                logger.info("Weather cache store initialized")
            except Exception as e:
                logger.error(f"Weather cache store initialization failed: {e}")
    else:
        logger.info("Database cache disabled (ENABLE_DATABASE_CACHE=false)")

    app.extensions['weather_cache_store'] = store
    app.extensions['weather_cache_writer'] = writer
    app.extensions['weather_assembly'] = WeatherAssemblyService(
        forecast_client=QWeatherClient.from_config(app.config),
        store=store,
        writer=writer,
        cache_enabled=cache_enabled,
        max_history_days=app.config.get('MAX_HISTORY_DAYS', 31),
        history_fetch_days=app.config.get('HISTORY_FETCH_DAYS', 7),
    )
