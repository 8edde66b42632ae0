from .time import utc_now, utc_iso, parse_iso, minutes_between

__all__ = ["utc_now", "utc_iso", "parse_iso", "minutes_between"]
