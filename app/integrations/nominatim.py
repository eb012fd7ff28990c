import logging
import requests
from app.errors import UpstreamError, UpstreamTimeout

logger = logging.getLogger(__name__)

NOMINATIM_SEARCH = 'https://nominatim.openstreetmap.org/search'
SEARCH_TIMEOUT = 10


def search(query):
    """Free-text place search on OpenStreetMap Nominatim. Returns the JSON list as-is."""
    params = {
        'q': query,
        'format': 'json',
        'addressdetails': 1,
        'limit': 10,
    }
    headers = {
        'User-Agent': 'weather-ics/1.0',
        'Accept-Language': 'zh-CN,zh;q=0.9,en;q=0.8',
    }
    try:
        resp = requests.get(NOMINATIM_SEARCH, params=params, headers=headers, timeout=SEARCH_TIMEOUT)
    except requests.Timeout as e:
        raise UpstreamTimeout('Nominatim request timed out') from e
    except requests.RequestException as e:
        raise UpstreamError(f'Nominatim unavailable: {e}') from e

    if not resp.ok:
        raise UpstreamError(f'Nominatim request failed ({resp.status_code})', status_code=resp.status_code)

    try:
        return resp.json()
    except ValueError as e:
        raise UpstreamError('Nominatim returned a non-JSON body') from e
