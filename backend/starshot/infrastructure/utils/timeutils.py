"""UTC time helpers shared by the normalizer and the forecaster."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from dateutil import parser as date_parser

# Epoch values at or above this are milliseconds (freqtrade *_ts fields).
_EPOCH_MS_THRESHOLD = 1e11


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def from_epoch(value: float) -> datetime:
    seconds = value / 1000.0 if abs(value) >= _EPOCH_MS_THRESHOLD else value
    return datetime.fromtimestamp(seconds, tz=timezone.utc)


def _is_compact_date(text: str) -> bool:
    return len(text) == 8 and text.isdigit()


def coerce_datetime(value: Any) -> Optional[datetime]:
    """Best-effort conversion of an upstream timestamp into an aware UTC datetime.

    Accepts epoch seconds/milliseconds (numbers or numeric strings) and ISO-8601 strings.
    Returns None when the value cannot be interpreted.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, (int, float)):
        try:
            return from_epoch(float(value))
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        # 8 digits is a compact date (20240108), not an epoch.
        if not _is_compact_date(text):
            try:
                return from_epoch(float(text))
            except ValueError:
                pass
            except (OverflowError, OSError):
                return None
        try:
            parsed = date_parser.isoparse(text)
        except (ValueError, OverflowError):
            try:
                parsed = date_parser.parse(text)
            except (ValueError, OverflowError):
                return None
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    return None


def parse_iso(value: str) -> datetime:
    """Parse an ISO string produced by this package (or a plain date) into an aware datetime."""
    parsed = date_parser.isoparse(value)
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
