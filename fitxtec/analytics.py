"""
FITxTEC Analytics — Progress Engine

Raw workout-session documents → one-row-per-exercise DataFrame → weekly
per-muscle volume, rate of progress (RoP) and the user stats snapshot.

The weekly rollup uses ONE muscle group per exercise and UNGATED volume
(sets count even when not marked done). Live per-workout views use the
multi-group table and gated volume instead.
"""
import numpy as np
import pandas as pd

from fitxtec.config import (
    COMPLETED_KEY,
    DECREASED_THRESHOLD_PCT,
    EXERCISE_NAME_KEY,
    EXERCISES_KEY,
    HISTORY_WEEKS,
    LOCAL_TIMEZONE,
    MUSCLE_GROUPS,
    SESSIONS_WINDOW_DAYS,
    SETS_KEY,
    STORED_VOLUME_KEY,
)
from fitxtec.exercise_map import muscle_groups_for_exercise, resolve_exercise
from fitxtec.store import user_stats_path
from fitxtec.volume import (
    muscle_volume_for_exercises,
    session_volume,
    volume_of_sets_gated,
    volume_of_sets_ungated,
)
from fitxtec.weeks import (
    history_position,
    parse_local_date,
    resolve_timestamp,
    start_of_iso_week,
    utc_now,
    week_index,
)

EXERCISE_COLUMNS = [
    "session_idx", "session_id", "timestamp", "completed",
    "exercise", "canonical_name", "muscle_group", "matched_by",
    "n_sets", "volume_kg", "volume_done_kg",
]


def _exercises(session: dict) -> list:
    ex = session.get(EXERCISES_KEY) if isinstance(session, dict) else None
    return ex if isinstance(ex, list) else []


def _session_rows(idx: int, session: dict, ts: pd.Timestamp) -> list[dict]:
    rows = []
    for ex in _exercises(session):
        if not isinstance(ex, dict):
            continue
        resolved = resolve_exercise(ex)
        sets = ex.get(SETS_KEY)
        rows.append({
            "session_idx": idx,
            "session_id": session.get("id", idx),
            "timestamp": ts,
            "completed": session.get(COMPLETED_KEY) is True,
            "exercise": str(ex.get(EXERCISE_NAME_KEY) or ""),
            "canonical_name": resolved["canonical_name"],
            "muscle_group": resolved["muscle_group"],
            "matched_by": resolved["matched_by"],
            "n_sets": len(sets) if isinstance(sets, list) else 0,
            "volume_kg": volume_of_sets_ungated(sets),
            "volume_done_kg": volume_of_sets_gated(sets),
        })
    return rows


def sessions_to_dataframe(sessions: list[dict], tz: str = LOCAL_TIMEZONE) -> pd.DataFrame:
    """
    Flatten session documents to one row per logged exercise.

    Sessions without a resolvable timestamp are left out. A malformed
    session is skipped on its own without affecting the others.
    """
    rows = []
    for idx, session in enumerate(sessions or []):
        ts = resolve_timestamp(session, tz)
        if ts is None:
            continue
        try:
            rows.extend(_session_rows(idx, session, ts))
        except (AttributeError, TypeError, ValueError):
            continue
    df = pd.DataFrame(rows, columns=EXERCISE_COLUMNS)
    if not df.empty:
        df = df.sort_values(["timestamp", "session_idx"]).reset_index(drop=True)
    return df


# ═══════════════════════════════════════════════════════════════════════
# 1. RATE OF PROGRESS
# ═══════════════════════════════════════════════════════════════════════

def rop_pct(current: float, prev: float) -> float:
    """
    % change vs the previous week.

    prev == 0 is not undefined: any new volume counts as +100%,
    no volume at all is 0%.
    """
    if prev > 0:
        return (current - prev) / prev * 100
    return 100.0 if current > 0 else 0.0


# ═══════════════════════════════════════════════════════════════════════
# 2. USER STATS SNAPSHOT
# ═══════════════════════════════════════════════════════════════════════

def _empty_history() -> dict:
    return {m: [0.0] * HISTORY_WEEKS for m in MUSCLE_GROUPS}


def weekly_history(df: pd.DataFrame, reference_week_start) -> dict:
    """Bucket ungated exercise volume into {group: [W-4..W0]}."""
    history = _empty_history()
    if df.empty:
        return history
    df = df.copy()
    df["week_idx"] = df["timestamp"].map(lambda t: week_index(t, reference_week_start))
    df = df.dropna(subset=["week_idx"])
    if df.empty:
        return history
    df["hist_pos"] = df["week_idx"].astype(int).map(history_position)
    buckets = df.groupby(["muscle_group", "hist_pos"])["volume_kg"].sum()
    for (group, pos), vol in buckets.items():
        history[group][int(pos)] += float(vol)
    return history


def compute_stats(user_id: str, sessions: list[dict], now=None,
                  tz: str = LOCAL_TIMEZONE) -> dict:
    """
    Full stats snapshot for one user, recomputed from scratch.

    Never fails on individual bad records: sessions without a timestamp
    are excluded from every figure, malformed ones are ignored.
    """
    now = utc_now(now)
    w0 = start_of_iso_week(now)

    cutoff = now - pd.Timedelta(days=SESSIONS_WINDOW_DAYS)
    stamps = [resolve_timestamp(s, tz) for s in sessions or []]
    sessions_last_30d = sum(1 for t in stamps if t is not None and t >= cutoff)

    history = weekly_history(sessions_to_dataframe(sessions, tz), w0)

    muscles = {}
    for m in MUSCLE_GROUPS:
        hist = history[m]
        cur, prev = hist[-1], hist[-2]
        muscles[m] = {
            "volume_week_current": cur,
            "volume_week_prev": prev,
            "volume_history": hist,
            "rop_pct": rop_pct(cur, prev),
        }

    return {
        "user_id": user_id,
        "computed_at": int(now.timestamp() * 1000),
        "totals": {
            "volume_week_current": float(sum(v["volume_week_current"] for v in muscles.values())),
            "volume_week_prev": float(sum(v["volume_week_prev"] for v in muscles.values())),
            "sessions_last_30d": int(sessions_last_30d),
        },
        "muscles": muscles,
        "decreased": [m for m in MUSCLE_GROUPS if muscles[m]["rop_pct"] < DECREASED_THRESHOLD_PCT],
    }


def compute_user_stats(store, user_id: str, now=None, tz: str = LOCAL_TIMEZONE) -> dict:
    """Read every session of the user from the store, then compute_stats."""
    return compute_stats(user_id, store.query_sessions(user_id), now=now, tz=tz)


def save_user_stats(store, snapshot: dict):
    """Overwrite the user's latest snapshot. Concurrent writers: last one wins."""
    store.set_document(user_stats_path(snapshot["user_id"]), snapshot)


def get_latest_stats(store, user_id: str) -> dict | None:
    return store.get_document(user_stats_path(user_id))


# ═══════════════════════════════════════════════════════════════════════
# 3. LIVE MULTI-GROUP VIEWS (completed workouts, gated volume)
# ═══════════════════════════════════════════════════════════════════════

def _local_day(ts: pd.Timestamp, tz: str) -> pd.Timestamp:
    return ts.tz_convert(tz).tz_localize(None).normalize()


def weekly_muscle_volume(sessions: list[dict], weeks: int = HISTORY_WEEKS, now=None,
                         tz: str = LOCAL_TIMEZONE) -> pd.DataFrame:
    """
    Per-week muscle volume for charts, oldest week first.

    Weeks start on local Monday. Only completed sessions count, each
    split across all the groups its exercises train.
    """
    today = _local_day(utc_now(now), tz)
    this_monday = today - pd.Timedelta(days=today.weekday())
    starts = [this_monday - pd.Timedelta(weeks=i) for i in range(weeks - 1, -1, -1)]
    totals = {s: {g: 0.0 for g in MUSCLE_GROUPS} for s in starts}

    for session in sessions or []:
        if not isinstance(session, dict) or session.get(COMPLETED_KEY) is not True:
            continue
        ts = resolve_timestamp(session, tz)
        if ts is None:
            continue
        day = _local_day(ts, tz)
        monday = day - pd.Timedelta(days=day.weekday())
        if monday not in totals:
            continue
        for g, v in muscle_volume_for_exercises(_exercises(session)).items():
            totals[monday][g] += v

    rows = [{"week_start": s.strftime("%Y-%m-%d"), **totals[s]} for s in starts]
    return pd.DataFrame(rows, columns=["week_start"] + MUSCLE_GROUPS)


def _stored_volume(session: dict) -> float:
    value = session.get(STORED_VOLUME_KEY)
    if isinstance(value, (int, float)) and not isinstance(value, bool) and np.isfinite(value):
        return float(value)
    return session_volume(_exercises(session))


def _number(session: dict, key: str) -> float:
    value = session.get(key)
    if isinstance(value, (int, float)) and not isinstance(value, bool) and np.isfinite(value):
        return float(value)
    return 0.0


def workout_summary(sessions: list[dict], start: str = None, end: str = None,
                    tz: str = LOCAL_TIMEZONE) -> dict:
    """
    Totals and per-workout averages over completed workouts.

    Optional start/end are local dates (YYYY-MM-DD, inclusive). Volume is
    the stored gated "volumen", recomputed from done sets when missing.
    """
    lo = parse_local_date(start, tz) if start else None
    hi = parse_local_date(f"{end}T23:59:59", tz) if end else None

    done = []
    for s in sessions or []:
        if not isinstance(s, dict) or s.get(COMPLETED_KEY) is not True:
            continue
        if lo is not None or hi is not None:
            ts = resolve_timestamp(s, tz)
            if ts is None or (lo is not None and ts < lo) or (hi is not None and ts > hi):
                continue
        done.append(s)

    n = len(done)
    volume = sum(_stored_volume(s) for s in done)
    calories = sum(_number(s, "calorias") for s in done)
    minutes = sum(_number(s, "duracion") for s in done)
    return {
        "total_workouts": n,
        "total_volume": volume,
        "total_calories": calories,
        "total_minutes": minutes,
        "avg_volume": volume / n if n else 0,
        "avg_calories": calories / n if n else 0,
        "avg_duration": minutes / n if n else 0,
    }


# ═══════════════════════════════════════════════════════════════════════
# 4. UNKNOWN EXERCISES
# ═══════════════════════════════════════════════════════════════════════

def detect_unknown_exercises(sessions: list[dict], tz: str = LOCAL_TIMEZONE) -> pd.DataFrame:
    """
    Exercises the taxonomy doesn't really know.

    Flags names that fell back to the default group in the weekly rollup
    or that the multi-group lookup can't place (their live volume is
    dropped). Candidates for new aliases / table entries.
    """
    df = sessions_to_dataframe(sessions, tz)
    if df.empty:
        return pd.DataFrame()

    multi = {name: muscle_groups_for_exercise(name) for name in df["exercise"].unique()}
    df["multi_groups"] = df["exercise"].map(lambda name: multi[name])
    df["single_fallback"] = df["matched_by"] == "fallback"
    df["multi_unmapped"] = df["multi_groups"].map(len) == 0
    unknown = df[df["single_fallback"] | df["multi_unmapped"]]
    if unknown.empty:
        return pd.DataFrame()

    result = (
        unknown.groupby("canonical_name")
        .agg(
            exercise=("exercise", "first"),
            muscle_group=("muscle_group", "first"),
            single_fallback=("single_fallback", "any"),
            multi_unmapped=("multi_unmapped", "any"),
            first_seen=("timestamp", "min"),
            last_seen=("timestamp", "max"),
            session_count=("session_idx", "nunique"),
            total_sets=("n_sets", "sum"),
            volume_kg=("volume_kg", "sum"),
        )
        .reset_index()
        .sort_values(["session_count", "canonical_name"], ascending=[False, True])
        .reset_index(drop=True)
    )
    return result
