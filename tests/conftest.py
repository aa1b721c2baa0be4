"""Test configuration — ensure fitxtec modules are importable."""
import sys
from pathlib import Path

import pandas as pd
import pytest

# Add project root to path so `from fitxtec.xxx import` works
sys.path.insert(0, str(Path(__file__).parent.parent))

# Wednesday; its ISO week starts Monday 2026-10-19 00:00 UTC
NOW = pd.Timestamp("2026-10-21 12:00", tz="UTC")


@pytest.fixture
def now():
    return NOW


def make_session(exercises, user="u1", when=None, **extra) -> dict:
    """Minimal session document in the app's stored schema."""
    doc = {"usuarioId": user, "ejercicios": exercises}
    if when is not None:
        doc["fechaTimestamp"] = pd.Timestamp(when, tz="UTC") if isinstance(when, str) else when
    doc.update(extra)
    return doc


def make_exercise(name, *sets, **extra) -> dict:
    """sets: (reps, weight) or (reps, weight, done); done defaults to True."""
    series = []
    for i, s in enumerate(sets, 1):
        reps, weight = s[0], s[1]
        done = s[2] if len(s) > 2 else True
        series.append({"set": i, "reps": reps, "weight": weight, "done": done})
    return {"nombre": name, "series": series, **extra}
