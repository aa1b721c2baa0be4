"""
FITxTEC Analytics — Rule-based training advice.

Rules run in priority order and the output is capped, so earlier rules
win when many fire:
1. total volume up >30% week over week → recovery warning
2. per muscle (canonical order) RoP < -10% → add 1–2 effective sets
3. per muscle RoP > +20% → watch technique / RIR
4. nothing fired → generic "stable" line
"""
import pandas as pd

from fitxtec.config import (
    ADVICE_DROP_PCT,
    ADVICE_MAX_LINES,
    ADVICE_OVERLOAD_RATIO,
    ADVICE_SURGE_PCT,
    MUSCLE_GROUPS,
)
from fitxtec.store import insight_items_path, latest_insight_path

OVERLOAD_LINE = (
    "El volumen total subió >30% vs semana previa: vigila recuperación y sueño "
    "para evitar sobrecarga."
)
DROP_LINE = "{muscle}: el volumen cayó >10% vs semana previa. Considera añadir 1–2 series efectivas."
SURGE_LINE = "{muscle}: subida fuerte; mantén técnica y controla el RIR/RPE."
STABLE_LINE = "Volumen estable. Mantén constancia y progreso de cargas de forma gradual (2.5–5%)."


def generate_advice(snapshot: dict) -> list[str]:
    totals = snapshot.get("totals", {})
    muscles = snapshot.get("muscles", {})
    cur = totals.get("volume_week_current", 0) or 0
    prev = totals.get("volume_week_prev", 0) or 0

    advice = []
    if prev > 0 and (cur - prev) / prev > ADVICE_OVERLOAD_RATIO:
        advice.append(OVERLOAD_LINE)

    ordered = [m for m in MUSCLE_GROUPS if m in muscles]
    for m in ordered:
        if muscles[m].get("rop_pct", 0) < ADVICE_DROP_PCT:
            advice.append(DROP_LINE.format(muscle=m))
    for m in ordered:
        if muscles[m].get("rop_pct", 0) > ADVICE_SURGE_PCT:
            advice.append(SURGE_LINE.format(muscle=m))

    if not advice:
        advice.append(STABLE_LINE)
    return advice[:ADVICE_MAX_LINES]


def create_and_save_insights(store, user_id: str, snapshot: dict, now=None) -> dict:
    """
    Generate advice and persist it.

    Appended to the user's advice history, then copied to the "latest"
    slot (overwrite) together with the history item id.
    """
    created = pd.Timestamp.now(tz="UTC") if now is None else pd.Timestamp(now)
    item = {
        "user_id": user_id,
        "created_at": int(created.timestamp() * 1000),
        "advice": generate_advice(snapshot),
    }
    insight_id = store.add_document(insight_items_path(user_id), item)
    store.set_document(latest_insight_path(user_id), {**item, "insight_id": insight_id})
    return {"id": insight_id, **item}


def get_latest_insight(store, user_id: str) -> dict | None:
    return store.get_document(latest_insight_path(user_id))


def list_insights_history(store, user_id: str) -> list[dict]:
    """Advice history, newest first."""
    return store.list_documents(insight_items_path(user_id), order_by="created_at", descending=True)
