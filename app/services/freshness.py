from datetime import timedelta
from app.utils.dates import parse_timestamp, utcnow

FRESHNESS_THRESHOLD = timedelta(minutes=30)


def is_fresh(last_updated, now=None):
    """True when the cached forward window was written within the last 30 minutes.

    An update time that cannot be parsed counts as stale so the caller refetches.
    """
    updated = parse_timestamp(last_updated)
    if updated is None:
        return False
    now = parse_timestamp(now) or utcnow()
    return now - updated <= FRESHNESS_THRESHOLD
