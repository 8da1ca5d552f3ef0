from datetime import datetime, timedelta, timezone


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def utc_in(seconds: float) -> datetime:
    """Aware UTC datetime `seconds` from now (scheduler run dates)."""
    return utc_now() + timedelta(seconds=seconds)
