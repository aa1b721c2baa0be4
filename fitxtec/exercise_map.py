"""
FITxTEC Analytics — Exercise name normalization and muscle-group lookup.

Two independent lookups share the same text normalization:
- normalize_exercise(): ONE group per exercise (weekly stats aggregator)
- muscle_groups_for_exercise(): 1+ groups per exercise (live distribution)
They are backed by different tables and are not expected to agree.
"""
import re
import unicodedata

from fitxtec.config import (
    ALIAS_TO_CANON,
    DEFAULT_MUSCLE_GROUP,
    EXERCISE_MUSCLE_GROUPS,
    EXERCISE_NAME_KEY,
    GROUP_KEYWORD_PATTERNS,
    MULTI_GROUP_KEYWORDS,
    MUSCLE_GROUPS,
    get_canonical_group,
    is_muscle_group,
)

_KEYWORD_RES = {g: re.compile(GROUP_KEYWORD_PATTERNS[g]) for g in MUSCLE_GROUPS}


def norm(text: str) -> str:
    """Lowercase, drop accents, punctuation → space, collapse whitespace."""
    text = unicodedata.normalize("NFD", str(text or "").lower())
    text = "".join(c for c in text if not unicodedata.combining(c))
    text = re.sub(r"[^a-z0-9\s]", " ", text)
    return re.sub(r"\s+", " ", text).strip()


# ═════════════════════════════════════════════════════════════════════
# 1. SINGLE-GROUP PATH
# ═════════════════════════════════════════════════════════════════════

def canonical_name(raw: str) -> str:
    key = norm(raw)
    return ALIAS_TO_CANON.get(key, key)


def guess_group(normalized: str) -> str | None:
    """Keyword heuristics in fixed priority order. None if nothing matches."""
    for group in MUSCLE_GROUPS:
        if _KEYWORD_RES[group].search(normalized):
            return group
    return None


def normalize_exercise(raw: str) -> dict:
    """
    Map a free-text exercise name to {canonical_name, muscle_group, matched_by}.

    Order: exact alias → keyword heuristics → DEFAULT_MUSCLE_GROUP.
    Never raises; unknown names still get a group.
    """
    base = norm(raw)
    if not base:
        return {"canonical_name": "unknown", "muscle_group": DEFAULT_MUSCLE_GROUP,
                "matched_by": "fallback"}

    target = ALIAS_TO_CANON.get(base)
    if target is not None:
        group = get_canonical_group(target) or guess_group(target) or DEFAULT_MUSCLE_GROUP
        return {"canonical_name": target, "muscle_group": group, "matched_by": "alias"}

    group = guess_group(base)
    if group is not None:
        return {"canonical_name": base, "muscle_group": group, "matched_by": "keyword"}

    return {"canonical_name": base, "muscle_group": DEFAULT_MUSCLE_GROUP,
            "matched_by": "fallback"}


def resolve_exercise(exercise: dict) -> dict:
    """
    Single-group resolution for a stored exercise entry.

    A valid pre-computed "muscleGroup" wins; otherwise the stored
    "canonicalName" (or the raw "nombre") goes through normalize_exercise.
    """
    if not isinstance(exercise, dict):
        return normalize_exercise("")
    name = exercise.get("canonicalName") or exercise.get(EXERCISE_NAME_KEY) or ""
    result = normalize_exercise(name)
    stored = exercise.get("muscleGroup")
    if is_muscle_group(stored):
        result["muscle_group"] = stored
        result["matched_by"] = "stored"
    return result


# ═════════════════════════════════════════════════════════════════════
# 2. MULTI-GROUP PATH
# ═════════════════════════════════════════════════════════════════════

# Normalized once; insertion order of the table is the match priority.
_MULTI_TABLE = [(norm(name), groups) for name, groups in EXERCISE_MUSCLE_GROUPS.items()]
_MULTI_EXTRA: dict[str, list[str]] = {}


def _table_entries():
    return list(_MULTI_EXTRA.items()) + _MULTI_TABLE


def _find_table_match(normalized: str) -> list[str] | None:
    entries = _table_entries()
    for key, groups in entries:
        if key == normalized:
            return list(groups)

    # Partial: every word of the table key appears in the name
    name_words = normalized.split(" ")
    for key, groups in entries:
        if all(w in name_words or w in normalized for w in key.split(" ")):
            return list(groups)
    return None


def _find_by_keywords(normalized: str) -> list[str]:
    found = []
    for group in MUSCLE_GROUPS:
        if any(kw in normalized for kw in MULTI_GROUP_KEYWORDS.get(group, [])):
            found.append(group)
    return found


def muscle_groups_for_exercise(raw: str) -> list[str]:
    """
    All muscle groups an exercise trains, for live volume distribution.

    Table match (exact, then all-words) → keyword scan → [] (unmapped).
    """
    normalized = norm(raw)
    if not normalized:
        return []
    match = _find_table_match(normalized)
    if match:
        return match
    return _find_by_keywords(normalized)


def primary_muscle_group(raw: str) -> str | None:
    groups = muscle_groups_for_exercise(raw)
    return groups[0] if groups else None


def is_exercise_mapped(raw: str) -> bool:
    """True when the multi-group TABLE knows the exercise (keywords don't count)."""
    normalized = norm(raw)
    return bool(normalized) and _find_table_match(normalized) is not None


def add_exercise_mapping(exercise_name: str, groups: list[str]):
    """Register an extra multi-group mapping for this process only."""
    valid = [g for g in groups if is_muscle_group(g)]
    if not valid:
        raise ValueError(f"No valid muscle groups in {groups!r}")
    _MULTI_EXTRA[norm(exercise_name)] = valid
