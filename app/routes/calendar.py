import logging
from flask import Blueprint, Response, current_app, jsonify, request
from app import feature_flags
from app.errors import LocationValidationError, UpstreamError
from app.integrations import ip_geolocation
from app.models.daily_weather import Coordinate
from app.services.assembly_service import LocationRequest
from app.services.calendar_service import render_calendar

logger = logging.getLogger(__name__)

calendar_bp = Blueprint('calendar', __name__)


def _truthy(value):
    return (value or '').strip().lower() in ('true', '1', 'yes')


def _resolve_location():
    """Explicit locationId/lat/lon first, then the client's IP as a best-effort fallback."""
    location_id = (request.args.get('locationId') or '').strip() or None
    city = (request.args.get('city') or '').strip()
    coordinate = Coordinate.parse(request.args.get('lat'), request.args.get('lon'))

    if not location_id and coordinate is None:
        located = ip_geolocation.locate(ip_geolocation.client_ip(request))
        if located:
            coordinate = Coordinate.parse(located['lat'], located['lon'])
            city = city or located['city']

    return LocationRequest(
        coordinate=coordinate,
        location_id=location_id,
        city=city,
        include_history=_truthy(request.args.get('history')) or feature_flags.is_enabled('provider_history'),
    )


@calendar_bp.route('/weather-calendar')
@calendar_bp.route('/api/weather-ics')
def weather_calendar():
    """Weather forecast as a subscribable iCalendar feed."""
    location = _resolve_location()
    if not location.location_ref:
        return jsonify({'error': 'Missing locationId or lat/lon'}), 400

    service = current_app.extensions['weather_assembly']
    try:
        days = service.assemble(location)
    except LocationValidationError as e:
        return jsonify({'error': str(e)}), 400
    except UpstreamError as e:
        logger.error(f"Calendar generation failed for {location.location_ref}: {e}")
        return jsonify({'error': str(e) or 'Weather data unavailable'}), 500

    body = render_calendar(days, location.city, location_ref=location.location_ref)
    return Response(body, content_type='text/calendar; charset=utf-8')
