from datetime import datetime, timezone


def utcnow() -> datetime:
    """Naive UTC timestamp, the form every DateTime column is stored in."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_datetime(val):
    """Accept ISO dates/datetimes (``Z`` suffix included); aware values are
    normalised to naive UTC. Returns None for empty input, raises ValueError
    for garbage."""
    if val is None or val == "":
        return None
    if isinstance(val, datetime):
        dt = val
    else:
        raw = str(val).strip()
        if raw.endswith("Z"):
            raw = raw[:-1] + "+00:00"
        dt = datetime.fromisoformat(raw)
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def isoformat(dt):
    return dt.isoformat() + "Z" if dt else None
