"""
FITxTEC Analytics — Week bucketing and session timestamps.

All instants are tz-aware UTC pandas Timestamps. The rolling window is
W-4..W0 where W0 starts Monday 00:00 UTC of the week containing "now".
"""
import numpy as np
import pandas as pd

from fitxtec.config import (
    CREATED_AT_KEY,
    DATE_KEY,
    HISTORY_WEEKS,
    LOCAL_TIMEZONE,
    TIMESTAMP_KEY,
)

WEEK = pd.Timedelta(days=7)
OLDEST_WEEK = -(HISTORY_WEEKS - 1)


def to_utc(value) -> pd.Timestamp | None:
    """
    Structured timestamp → UTC Timestamp.

    Accepts datetime / pd.Timestamp (naive = UTC) and Firestore export
    dicts {"seconds", "nanoseconds"}. Anything else → None.
    """
    if isinstance(value, dict) and "seconds" in value:
        try:
            ts = pd.Timestamp(int(value["seconds"]), unit="s", tz="UTC")
            return ts + pd.Timedelta(int(value.get("nanoseconds", 0) or 0), unit="ns")
        except (TypeError, ValueError, OverflowError):
            return None
    if not hasattr(value, "year") or not hasattr(value, "tzinfo"):
        return None
    ts = pd.Timestamp(value)
    if pd.isna(ts):
        return None
    return ts.tz_localize("UTC") if ts.tzinfo is None else ts.tz_convert("UTC")


def utc_now(now=None) -> pd.Timestamp:
    if now is None:
        return pd.Timestamp.now(tz="UTC")
    ts = to_utc(now)
    if ts is None:
        raise ValueError(f"Invalid reference time: {now!r}")
    return ts


def start_of_iso_week(now=None) -> pd.Timestamp:
    """Monday 00:00 UTC of the ISO week containing now."""
    day = utc_now(now).normalize()
    return day - pd.Timedelta(days=day.weekday())


def week_index(ts, reference_week_start) -> int | None:
    """
    floor((ts - W0) / 7 days), clamped to [-4, 0].

    Older sessions fold into W-4, anything at or after W0 is W0.
    An invalid reference degrades to 0; an invalid ts gives None.
    """
    ref = to_utc(reference_week_start)
    if ref is None:
        return 0
    t = to_utc(ts)
    if t is None:
        return None
    weeks = int(np.floor((t - ref) / WEEK))
    return max(OLDEST_WEEK, min(0, weeks))


def history_position(week_idx: int) -> int:
    """-4 → 0 (oldest) ... 0 → 4 (current week)."""
    return week_idx - OLDEST_WEEK


def parse_local_date(text: str, tz: str = LOCAL_TIMEZONE) -> pd.Timestamp | None:
    """
    "YYYY-MM-DD" or "YYYY-MM-DDTHH:MM[:SS]" as local wall time → UTC.

    Explicit offsets in the string are honoured.
    """
    if not isinstance(text, str) or not text.strip():
        return None
    try:
        ts = pd.Timestamp(text.strip())
    except (TypeError, ValueError):
        return None
    if pd.isna(ts):
        return None
    if ts.tzinfo is None:
        ts = ts.tz_localize(tz, ambiguous="NaT", nonexistent="shift_forward")
        if pd.isna(ts):
            return None
    return ts.tz_convert("UTC")


def _epoch_ms(value) -> pd.Timestamp | None:
    if isinstance(value, bool):
        return None
    try:
        ms = float(value)
    except (TypeError, ValueError):
        return None
    if not np.isfinite(ms) or ms <= 0:
        return None
    try:
        return pd.Timestamp(ms, unit="ms", tz="UTC")
    except (ValueError, OverflowError):
        return None


def resolve_timestamp(session: dict, tz: str = LOCAL_TIMEZONE) -> pd.Timestamp | None:
    """
    Authoritative instant of a session.

    Precedence: fechaTimestamp (structured) > createdAt (epoch ms) >
    fecha (date string, local time). None when nothing resolves.
    """
    if not isinstance(session, dict):
        return None
    ts = to_utc(session.get(TIMESTAMP_KEY))
    if ts is not None:
        return ts
    ts = _epoch_ms(session.get(CREATED_AT_KEY))
    if ts is not None:
        return ts
    return parse_local_date(session.get(DATE_KEY), tz)
