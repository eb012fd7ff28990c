import logging
from flask import Blueprint, current_app, jsonify, request
from app.errors import UpstreamError, UpstreamTimeout
from app.integrations import nominatim
from app.integrations.qweather import QWeatherClient

logger = logging.getLogger(__name__)

geocode_bp = Blueprint('geocode', __name__)


def _search_query():
    return (request.args.get('q') or request.args.get('query') or '').strip()


def _proxy(search):
    keyword = _search_query()
    if not keyword:
        return jsonify({'error': 'Missing query parameter'}), 400

    try:
        return jsonify(search(keyword))
    except UpstreamTimeout as e:
        return jsonify({'error': str(e)}), 504
    except UpstreamError as e:
        logger.error(f"Geocoding request failed for {keyword!r}: {e}")
        return jsonify({'error': str(e)}), 502


@geocode_bp.route('/geocode')
def geocode():
    """Place search through the configured geocoding provider."""
    if current_app.config.get('GEO_API_PROVIDER') == 'nominatim':
        return _proxy(nominatim.search)
    return _proxy(QWeatherClient.from_config(current_app.config).lookup_city)


@geocode_bp.route('/api/nominatim')
def nominatim_proxy():
    return _proxy(nominatim.search)


@geocode_bp.route('/api/config')
def public_config():
    """Settings a browser client needs to pick its geocoding path."""
    return jsonify({
        'geoApiProvider': current_app.config.get('GEO_API_PROVIDER'),
        'useServerNominatim': current_app.config.get('USE_SERVER_NOMINATIM'),
        'hefengApiHost': current_app.config.get('HEFENG_API_HOST'),
        'cacheEnabled': bool(current_app.config.get('ENABLE_DATABASE_CACHE')),
    })
