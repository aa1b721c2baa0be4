"""
FITxTEC Analytics — Configuration

Exercise lookup tables, muscle-group taxonomy and progress thresholds.
Stored session documents use the mobile app's schema (Spanish field names),
so those keys are listed here too and never hardcoded elsewhere.
"""
import os

# ── Firestore ────────────────────────────────────────────────────────
FIRESTORE_PROJECT_ID = os.environ.get("FIRESTORE_PROJECT_ID", "")
FIRESTORE_TOKEN = os.environ.get("FIRESTORE_TOKEN", "")
FIRESTORE_DATABASE = os.environ.get("FIRESTORE_DATABASE", "(default)")

SESSIONS_COLLECTION = "workoutSessions"
USER_STATS_COLLECTION = "userStats"
INSIGHTS_COLLECTION = "aiInsights"

# ── Time ─────────────────────────────────────────────────────────────
# Date-only strings ("fecha") are local calendar dates on the phone.
LOCAL_TIMEZONE = os.environ.get("FITXTEC_TIMEZONE", "America/Mexico_City")

HISTORY_WEEKS = 5          # W-4..W0
SESSIONS_WINDOW_DAYS = 30

# ── Session document keys ────────────────────────────────────────────
OWNER_KEY = "usuarioId"
TIMESTAMP_KEY = "fechaTimestamp"
CREATED_AT_KEY = "createdAt"
DATE_KEY = "fecha"
EXERCISES_KEY = "ejercicios"
EXERCISE_NAME_KEY = "nombre"
SETS_KEY = "series"
COMPLETED_KEY = "completado"
STORED_VOLUME_KEY = "volumen"

# ═════════════════════════════════════════════════════════════════════
# MUSCLE GROUPS
#
# Canonical 8-group order. The app's older live-distribution module
# only knew 7 groups (no Calves); the 8-group list is authoritative here.
# ═════════════════════════════════════════════════════════════════════

MUSCLE_GROUPS = [
    "Chest", "Back", "Shoulders", "Quads",
    "Hamstrings", "Biceps", "Triceps", "Calves",
]

# Unrecognised exercises land here in the single-group path.
# Changing it silently moves volume between groups in every snapshot.
DEFAULT_MUSCLE_GROUP = "Chest"

# ── Progress thresholds ──────────────────────────────────────────────
DECREASED_THRESHOLD_PCT = -2.0   # snapshot "decreased" watchlist
ROP_DEADBAND_PCT = 2.0           # report: |RoP| <= 2 is "flat"

ADVICE_MAX_LINES = 5
ADVICE_OVERLOAD_RATIO = 0.30     # total volume up >30% week over week
ADVICE_DROP_PCT = -10.0
ADVICE_SURGE_PCT = 20.0

INTENT_COLORS = {
    "improved": "#16A34A",
    "declined": "#EF4444",
    "flat": "#6B7280",
}

# ═════════════════════════════════════════════════════════════════════
# SINGLE-GROUP TABLES: used by the weekly stats aggregator
#
# Keys are already normalized (lowercase, no accents, no punctuation).
# ═════════════════════════════════════════════════════════════════════

ALIAS_TO_CANON = {
    # Chest
    "bench press": "bench press",
    "press banca": "bench press",
    "press de banca": "bench press",
    "press plano": "bench press",
    "press con barra": "bench press",
    "incline bench press": "incline bench press",
    "press inclinado": "incline bench press",
    "push up": "push up",
    "lagartijas": "push up",
    "flexiones": "push up",
    # Back
    "barbell row": "barbell row",
    "remo con barra": "barbell row",
    "remo barra": "barbell row",
    "lat pulldown": "lat pulldown",
    "jalon al pecho": "lat pulldown",
    "jalon polea": "lat pulldown",
    "pull up": "pull up",
    "dominadas": "pull up",
    "deadlift": "deadlift",
    "peso muerto": "deadlift",
    # Shoulders
    "overhead press": "overhead press",
    "press militar": "overhead press",
    "shoulder press": "overhead press",
    "lateral raise": "lateral raise",
    "elevaciones laterales": "lateral raise",
    # Quads
    "squat": "squat",
    "sentadilla": "squat",
    "sentadillas": "squat",
    "front squat": "front squat",
    "sentadilla frontal": "front squat",
    "leg press": "leg press",
    "prensa": "leg press",
    "leg extension": "leg extension",
    "extension de cuadriceps": "leg extension",
    # Hamstrings
    "romanian deadlift": "romanian deadlift",
    "peso muerto rumano": "romanian deadlift",
    "pm rumano": "romanian deadlift",
    "leg curl": "leg curl",
    "curl femoral": "leg curl",
    # Biceps
    "barbell curl": "barbell curl",
    "curl con barra": "barbell curl",
    "dumbbell curl": "dumbbell curl",
    "curl con mancuernas": "dumbbell curl",
    "hammer curl": "hammer curl",
    "curl martillo": "hammer curl",
    # Triceps
    "skull crushers": "skull crushers",
    "press frances": "skull crushers",
    "triceps extension": "triceps extension",
    "extension de triceps": "triceps extension",
    "extension por encima de la cabeza": "triceps extension",
    "dips": "dips",
    "fondos": "dips",
    # Calves
    "calf raise": "calf raise",
    "elevaciones de talon": "calf raise",
    "elevaciones de gemelos": "calf raise",
    "elevacion de pantorrillas": "calf raise",
}

CANON_TO_GROUP = {
    "bench press": "Chest",
    "incline bench press": "Chest",
    "push up": "Chest",
    "barbell row": "Back",
    "lat pulldown": "Back",
    "pull up": "Back",
    "deadlift": "Back",
    "overhead press": "Shoulders",
    "lateral raise": "Shoulders",
    "squat": "Quads",
    "front squat": "Quads",
    "leg press": "Quads",
    "leg extension": "Quads",
    "romanian deadlift": "Hamstrings",
    "leg curl": "Hamstrings",
    "barbell curl": "Biceps",
    "dumbbell curl": "Biceps",
    "hammer curl": "Biceps",
    "skull crushers": "Triceps",
    "triceps extension": "Triceps",
    "dips": "Triceps",
    "calf raise": "Calves",
}

# Tested in MUSCLE_GROUPS order, first hit wins.
GROUP_KEYWORD_PATTERNS = {
    "Chest": r"(chest|pect|pecho)",
    "Back": r"(row|lats?|espalda|pulldown)",
    "Shoulders": r"(shoulder|deltoid|hombro|press)",
    "Quads": r"(quad|sentadilla|squat|prensa|cuadri)",
    "Hamstrings": r"(femor|hamstring|curl( de)? pierna)",
    "Biceps": r"(bicep|curl)",
    "Triceps": r"(tricep|pushdown|extension)",
    "Calves": r"(calf|gemelo|pantorrilla)",
}

# ═════════════════════════════════════════════════════════════════════
# MULTI-GROUP TABLE: used by live per-workout volume distribution
#
# Maintained independently of the single-group tables above; the two
# are allowed to disagree (e.g. Squat is Quads here AND Hamstrings).
# ═════════════════════════════════════════════════════════════════════

EXERCISE_MUSCLE_GROUPS = {
    # ── Chest ───────────────────────────────────────────────────────
    "Bench Press": ["Chest", "Triceps", "Shoulders"],
    "Push-ups": ["Chest", "Triceps", "Shoulders"],
    "Push Ups": ["Chest", "Triceps", "Shoulders"],
    "Dumbbell Press": ["Chest", "Triceps", "Shoulders"],
    "Incline Press": ["Chest", "Shoulders"],
    "Decline Press": ["Chest", "Triceps"],
    "Chest Fly": ["Chest"],
    "Dumbbell Fly": ["Chest"],
    "Cable Fly": ["Chest"],
    "Pectoral": ["Chest"],
    # ── Back ────────────────────────────────────────────────────────
    "Pull-ups": ["Back", "Biceps"],
    "Pull Ups": ["Back", "Biceps"],
    "Lat Pulldown": ["Back", "Biceps"],
    "Barbell Row": ["Back", "Biceps"],
    "Dumbbell Row": ["Back", "Biceps"],
    "T-Bar Row": ["Back", "Biceps"],
    "Seated Row": ["Back", "Biceps"],
    "Cable Row": ["Back", "Biceps"],
    "Deadlift": ["Back", "Hamstrings"],
    "Romanian Deadlift": ["Back", "Hamstrings"],
    "RDL": ["Back", "Hamstrings"],
    "Bent Over Row": ["Back", "Biceps"],
    # ── Shoulders ───────────────────────────────────────────────────
    "Shoulder Press": ["Shoulders", "Triceps"],
    "Overhead Press": ["Shoulders", "Triceps"],
    "OHP": ["Shoulders", "Triceps"],
    "Lateral Raise": ["Shoulders"],
    "Front Raise": ["Shoulders"],
    "Rear Delt Fly": ["Shoulders"],
    "Upright Row": ["Shoulders"],
    "Dumbbell Shoulder Press": ["Shoulders", "Triceps"],
    # ── Quads ───────────────────────────────────────────────────────
    "Squat": ["Quads", "Hamstrings"],
    "Leg Press": ["Quads"],
    "Leg Extension": ["Quads"],
    "Bulgarian Split Squat": ["Quads"],
    "Lunges": ["Quads"],
    "Front Squat": ["Quads"],
    "Back Squat": ["Quads", "Hamstrings"],
    # ── Hamstrings ──────────────────────────────────────────────────
    "Leg Curl": ["Hamstrings"],
    "Stiff Leg Deadlift": ["Hamstrings"],
    # ── Biceps ──────────────────────────────────────────────────────
    "Bicep Curl": ["Biceps"],
    "Biceps Curl": ["Biceps"],
    "Hammer Curl": ["Biceps"],
    "Cable Curl": ["Biceps"],
    "Concentration Curl": ["Biceps"],
    "Barbell Curl": ["Biceps"],
    "Dumbbell Curl": ["Biceps"],
    # ── Triceps ─────────────────────────────────────────────────────
    "Tricep Extension": ["Triceps"],
    "Triceps Extension": ["Triceps"],
    "Overhead Extension": ["Triceps"],
    "Close Grip Bench": ["Triceps", "Chest"],
    "Dips": ["Triceps", "Chest", "Shoulders"],
    "Tricep Pushdown": ["Triceps"],
    "Triceps Pushdown": ["Triceps"],
    "Cable Pushdown": ["Triceps"],
    # ── Calves ──────────────────────────────────────────────────────
    "Calf Raise": ["Calves"],
    "Seated Calf Raise": ["Calves"],
}

# Substring keywords; every group that matches is returned.
MULTI_GROUP_KEYWORDS = {
    "Chest": ["chest", "pectoral", "bench", "fly", "push", "press"],
    "Back": ["back", "lat", "row", "pulldown", "deadlift", "pull"],
    "Shoulders": ["shoulder", "deltoid", "lateral", "raise", "overhead", "press"],
    "Quads": ["quad", "squat", "leg press", "leg extension", "lunge"],
    "Hamstrings": ["hamstring", "leg curl", "romanian", "stiff leg"],
    "Biceps": ["bicep", "curl", "pull"],
    "Triceps": ["tricep", "extension", "pushdown", "dip", "close grip"],
    "Calves": ["calf", "gemelo", "pantorrilla"],
}


# ═════════════════════════════════════════════════════════════════════
# HELPER FUNCTIONS
# ═════════════════════════════════════════════════════════════════════

def get_canonical_group(canonical_name: str) -> str | None:
    """Muscle group for an already-canonical exercise name, if known."""
    return CANON_TO_GROUP.get(canonical_name)


def is_muscle_group(value) -> bool:
    return isinstance(value, str) and value in MUSCLE_GROUPS
