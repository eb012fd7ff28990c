import ipaddress
import logging
import requests

logger = logging.getLogger(__name__)

IP_API_URL = 'http://ip-api.com/json/{ip}'
LOOKUP_TIMEOUT = 5


def client_ip(req):
    """First X-Forwarded-For hop, else the socket peer address."""
    forwarded = req.headers.get('X-Forwarded-For', '')
    ip = forwarded.split(',')[0].strip() if forwarded else ''
    return ip or (req.remote_addr or '')


def _is_public(ip):
    try:
        addr = ipaddress.ip_address(ip)
    except ValueError:
        return False
    return addr.is_global


def locate(ip):
    """Approximate {'lat', 'lon', 'city'} for a public IP, or None.

    Best effort only: every failure is logged and swallowed.
    """
    if not ip or not _is_public(ip):
        return None

    try:
        resp = requests.get(
            IP_API_URL.format(ip=ip),
            params={'lang': 'zh-CN'},
            headers={'User-Agent': 'weather-ics/1.0'},
            timeout=LOOKUP_TIMEOUT,
        )
        if not resp.ok:
            logger.warning(f"IP geolocation HTTP {resp.status_code} for {ip}")
            return None
        data = resp.json()
    except (requests.RequestException, ValueError) as e:
        logger.warning(f"IP geolocation failed for {ip}: {e}")
        return None

    if not isinstance(data, dict) or data.get('status') != 'success':
        return None
    if data.get('lat') is None or data.get('lon') is None:
        return None
    return {'lat': data['lat'], 'lon': data['lon'], 'city': data.get('city') or ''}
