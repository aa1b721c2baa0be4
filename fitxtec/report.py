"""
FITxTEC Analytics — Progress report table.

Builds the data the PDF/printable export renders: one row per muscle
group plus the headline KPIs. Rendering itself is the consumer's job.
"""
import numpy as np
import pandas as pd

from fitxtec.analytics import rop_pct
from fitxtec.config import INTENT_COLORS, MUSCLE_GROUPS, ROP_DEADBAND_PCT

REPORT_COLUMNS = [
    "muscle_group", "volume_current", "volume_prev", "rop_pct",
    "rop_pct_formatted", "intent", "color", "history_formatted",
]


def format_rop(value: float) -> str:
    """Always signed: +12.5% / -3.0% / +0.0%."""
    return f"+{value:.1f}%" if value >= 0 else f"{value:.1f}%"


def classify_rop(value: float) -> str:
    """improved / declined / flat with a strict ±2% deadband."""
    if value > ROP_DEADBAND_PCT:
        return "improved"
    if value < -ROP_DEADBAND_PCT:
        return "declined"
    return "flat"


def format_history(history: list[float]) -> str:
    return " · ".join(f"{v:.0f}" for v in history)


def strength_change_pct(totals: dict) -> int:
    """Whole percent, ties rounded up (+2.5% → 3, -2.5% → -2)."""
    cur = totals.get("volume_week_current", 0) or 0
    prev = totals.get("volume_week_prev", 0) or 0
    return int(np.floor(rop_pct(cur, prev) + 0.5))


def format_report(snapshot: dict, advice: list[str] = None) -> dict:
    """
    Snapshot + advice → {"rows": DataFrame, "kpis": dict, "advice": list}.

    Rows follow the canonical muscle order; groups missing from the
    snapshot show as zeros.
    """
    muscles = snapshot.get("muscles", {})
    rows = []
    for m in MUSCLE_GROUPS:
        ms = muscles.get(m, {})
        rop = float(ms.get("rop_pct", 0) or 0)
        intent = classify_rop(rop)
        rows.append({
            "muscle_group": m,
            "volume_current": float(ms.get("volume_week_current", 0) or 0),
            "volume_prev": float(ms.get("volume_week_prev", 0) or 0),
            "rop_pct": rop,
            "rop_pct_formatted": format_rop(rop),
            "intent": intent,
            "color": INTENT_COLORS[intent],
            "history_formatted": format_history(ms.get("volume_history", [])),
        })

    totals = snapshot.get("totals", {})
    return {
        "rows": pd.DataFrame(rows, columns=REPORT_COLUMNS),
        "kpis": {
            "strength_change_pct": strength_change_pct(totals),
            "sessions_last_30d": int(totals.get("sessions_last_30d", 0) or 0),
        },
        "advice": list(advice or []),
    }


def report_to_csv(report: dict, path: str) -> str:
    report["rows"].to_csv(path, index=False)
    return path
