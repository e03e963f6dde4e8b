"""Utility functions."""

from .dates import resolve_logged_date, utc_now, utc_time_of_day, utc_today_iso
from .images import ImagePayload
from .numbers import clamp, round_half_up, to_number

__all__ = [
    "ImagePayload",
    "clamp",
    "resolve_logged_date",
    "round_half_up",
    "to_number",
    "utc_now",
    "utc_time_of_day",
    "utc_today_iso",
]
