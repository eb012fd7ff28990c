import hashlib
from datetime import timedelta, timezone
from app.utils.dates import CALENDAR_TZ, compact_day, parse_timestamp, utcnow

DEFAULT_PICTOGRAM = '🌡️'

# First match wins; thunder before rain so 雷阵雨 is not shown as plain rain
PICTOGRAMS = [
    (('雷', 'thunder'), '⛈️'),
    (('雪', 'snow', 'sleet'), '❄️'),
    (('雨', 'rain', 'drizzle', 'shower'), '🌧️'),
    (('雾', '霾', 'fog', 'mist', 'haze'), '🌫️'),
    (('晴', 'clear', 'sunny'), '☀️'),
    (('阴', 'overcast'), '🌥️'),
    (('云', 'cloud'), '☁️'),
]

CACHE_TAG = '[缓存]'
MAX_LINE_OCTETS = 75


def weather_pictogram(text):
    lowered = (text or '').lower()
    for keywords, pictogram in PICTOGRAMS:
        if any(k in lowered for k in keywords):
            return pictogram
    return DEFAULT_PICTOGRAM


def _escape(value):
    return (
        str(value or '')
        .replace('\\', '\\\\')
        .replace(';', '\\;')
        .replace(',', '\\,')
        .replace('\r\n', '\\n')
        .replace('\n', '\\n')
    )


def _fold(line):
    """Fold a content line at 75 octets without splitting UTF-8 sequences."""
    if len(line.encode('utf-8')) <= MAX_LINE_OCTETS:
        return line
    parts = []
    current = ''
    limit = MAX_LINE_OCTETS
    for char in line:
        if len((current + char).encode('utf-8')) > limit:
            parts.append(current)
            current = char
            limit = MAX_LINE_OCTETS - 1  # continuation lines start with a space
        else:
            current += char
    parts.append(current)
    return '\r\n '.join(parts)


def _temperature(day):
    return f'{day.temp_min}~{day.temp_max}℃'


def _description(day, city, now):
    updated = (parse_timestamp(day.updated_at) or now).astimezone(CALENDAR_TZ)
    update_line = f"更新时间: {updated.strftime('%Y-%m-%d %H:%M')}"
    if day.from_cache:
        update_line = f'{update_line} {CACHE_TAG}'

    lines = [update_line, f'天气: {day.text}', f'温度: {_temperature(day)}']
    if day.sunrise:
        lines.append(f'日出: {day.sunrise}')
    if day.sunset:
        lines.append(f'日落: {day.sunset}')
    if city:
        lines.append(f'地点: {city}')
    return '\n'.join(lines)


def event_uid(day, location_ref, city=''):
    """Stable per (date, location) so subscribed calendars update in place."""
    raw_key = f"{location_ref or ''}|{city or ''}"
    location_key = hashlib.md5(raw_key.encode('utf-8')).hexdigest()[:12]
    return f'{day.compact_date}-{location_key}@weather-ics'


def render_calendar(days, city, location_ref='', now=None):
    """Render days as an iCalendar document of all-day events."""
    now = now or utcnow()
    stamp = now.astimezone(timezone.utc).strftime('%Y%m%dT%H%M%SZ')
    name = f'{city}天气' if city else '天气预报'

    lines = [
        'BEGIN:VCALENDAR',
        'VERSION:2.0',
        'PRODID:-//weather-ics//CN',
        'CALSCALE:GREGORIAN',
        'METHOD:PUBLISH',
        f'X-WR-CALNAME:{_escape(name)}',
        'X-WR-TIMEZONE:Asia/Shanghai',
    ]
    for day in days:
        lines.extend([
            'BEGIN:VEVENT',
            f'UID:{event_uid(day, location_ref, city)}',
            f'DTSTAMP:{stamp}',
            f'DTSTART;VALUE=DATE:{day.compact_date}',
            f'DTEND;VALUE=DATE:{compact_day(day.date + timedelta(days=1))}',
            f'SUMMARY:{_escape(weather_pictogram(day.text) + day.text + " " + _temperature(day))}',
            f'DESCRIPTION:{_escape(_description(day, city, now))}',
            'TRANSP:TRANSPARENT',
            'END:VEVENT',
        ])
    lines.append('END:VCALENDAR')
    return '\r\n'.join(_fold(line) for line in lines) + '\r\n'
