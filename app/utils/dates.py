from datetime import date, datetime, timedelta, timezone

# Calendar days are cut at midnight China Standard Time
CALENDAR_TZ = timezone(timedelta(hours=8))


def utcnow():
    return datetime.now(timezone.utc)


def calendar_today(now=None):
    """Return today's date in the fixed calendar timezone."""
    now = now or utcnow()
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(CALENDAR_TZ).date()


def parse_day(value):
    """Parse YYYY-MM-DD or YYYYMMDD (or a date) into a date. Raises ValueError."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value or '').strip()
    if len(text) == 8 and text.isdigit():
        return datetime.strptime(text, '%Y%m%d').date()
    return datetime.strptime(text[:10], '%Y-%m-%d').date()


def compact_day(day):
    return day.strftime('%Y%m%d')


def parse_timestamp(value):
    """Coerce a stored update time to an aware datetime, or None if unusable.

    Naive values are taken to be UTC, which is how the store writes them.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.strip().replace('Z', '+00:00'))
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
