import logging
from app.utils.dates import parse_timestamp, utcnow

logger = logging.getLogger(__name__)


def project_rows(rows, from_cache, now=None):
    """Stamp provenance on rows handed to the renderer.

    Cached rows keep their stored update time when it parses; anything else
    (fresh fetches, unparseable timestamps) gets ``now``.
    """
    now = now or utcnow()
    projected = []
    for row in rows:
        updated_at = parse_timestamp(row.updated_at) if from_cache else None
        if from_cache and updated_at is None:
            logger.debug(f"Unparseable updated_at {row.updated_at!r} for {row.date}, using now")
        projected.append(row.with_provenance(from_cache, updated_at or now))
    return projected
