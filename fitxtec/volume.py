"""
FITxTEC Analytics — Training volume (reps × weight).

Two set-volume policies coexist and every caller picks one by name:
- gated:   only sets marked done (session totals, completion flow, reports)
- ungated: every logged set, done or not (weekly muscle-group rollup)
"""
import numpy as np

from fitxtec.config import EXERCISE_NAME_KEY, MUSCLE_GROUPS, SETS_KEY
from fitxtec.exercise_map import muscle_groups_for_exercise


def _num(value) -> float:
    try:
        n = float(value)
    except (TypeError, ValueError):
        return 0.0
    return n if np.isfinite(n) else 0.0


def set_volume(s: dict) -> float:
    """reps × weight; 0 when either is missing, non-numeric or not positive."""
    if not isinstance(s, dict):
        return 0.0
    reps = _num(s.get("reps"))
    weight = _num(s.get("weight"))
    return reps * weight if reps > 0 and weight > 0 else 0.0


def _sets(sets) -> list:
    return sets if isinstance(sets, list) else []


def volume_of_sets_gated(sets: list[dict]) -> float:
    """Sum of set volume over sets with done == True."""
    return float(sum(set_volume(s) for s in _sets(sets)
                     if isinstance(s, dict) and s.get("done") is True))


def volume_of_sets_ungated(sets: list[dict]) -> float:
    """Sum of set volume over ALL sets, done or not."""
    return float(sum(set_volume(s) for s in _sets(sets)))


def distribute_across_groups(volume: float, groups: list[str]) -> dict:
    """
    Split volume evenly across groups.

    Empty groups → {}: the volume of an unmapped exercise is dropped,
    never guessed.
    """
    if not groups:
        return {}
    share = volume / len(groups)
    out = {}
    for g in groups:
        out[g] = out.get(g, 0.0) + share
    return out


def session_volume(exercises: list[dict]) -> float:
    """Gated total for one session, what the app stores as "volumen"."""
    return float(sum(
        volume_of_sets_gated(ex.get(SETS_KEY))
        for ex in (exercises or []) if isinstance(ex, dict)
    ))


def muscle_volume_for_exercises(exercises: list[dict]) -> dict:
    """
    Live per-workout distribution: gated volume, multi-group table, even split.

    Every canonical group is present (0.0 when untouched).
    """
    totals = {g: 0.0 for g in MUSCLE_GROUPS}
    for ex in exercises or []:
        if not isinstance(ex, dict):
            continue
        vol = volume_of_sets_gated(ex.get(SETS_KEY))
        if vol <= 0:
            continue
        groups = muscle_groups_for_exercise(ex.get(EXERCISE_NAME_KEY, ""))
        for g, v in distribute_across_groups(vol, groups).items():
            totals[g] += v
    return totals
