"""
FITxTEC Analytics — Progress update orchestrator
Run manually or from a scheduled job:

    python -m fitxtec.sync <user_id> [--dry-run] [--csv PATH]
"""
import sys
from datetime import datetime

from fitxtec.analytics import compute_user_stats, save_user_stats
from fitxtec.config import FIRESTORE_PROJECT_ID
from fitxtec.insights import create_and_save_insights, generate_advice
from fitxtec.report import format_report, report_to_csv
from fitxtec.store import get_store


def run_progress_update(user_id: str, store=None, dry_run: bool = False,
                        csv_path: str = None, now=None) -> dict:
    """
    Full pipeline for one user:
    1. Read all sessions and compute the stats snapshot
    2. Overwrite the latest snapshot
    3. Generate advice, append to history + latest slot
    4. Build the report table (optionally export CSV)

    Store failures propagate; nothing is retried here.
    """
    store = store if store is not None else get_store()
    print(f"🔄 Progress update — {user_id}")
    print(f"   {datetime.now().isoformat()}")

    # 1. Compute
    print("\n📥 Reading sessions and computing stats...")
    snapshot = compute_user_stats(store, user_id, now=now)
    totals = snapshot["totals"]
    print(f"   Sessions (30d): {totals['sessions_last_30d']}")
    print(f"   Volume this week: {totals['volume_week_current']:,.0f} kg "
          f"(prev {totals['volume_week_prev']:,.0f} kg)")

    # 2-3. Persist
    if dry_run:
        print("\n🏃 DRY RUN — skipping store writes")
        advice = generate_advice(snapshot)
    else:
        print("\n📤 Saving snapshot and advice...")
        save_user_stats(store, snapshot)
        advice = create_and_save_insights(store, user_id, snapshot, now=now)["advice"]
        print("   ✅ Snapshot + advice saved")

    # 4. Report
    report = format_report(snapshot, advice)
    if csv_path:
        report_to_csv(report, csv_path)
        print(f"💾 Report table → {csv_path}")

    print(f"\n{'='*50}")
    print("📊 Progress Summary:")
    print(f"   Strength change vs last week: {report['kpis']['strength_change_pct']:+d}%")
    if snapshot["decreased"]:
        print(f"   ⬇️ Decreased: {', '.join(snapshot['decreased'])}")
    for line in advice:
        print(f"   💡 {line}")

    return {"snapshot": snapshot, "advice": advice, "report": report}


def _parse_args(argv: list[str]) -> dict:
    args = {"user_id": None, "dry_run": "--dry-run" in argv, "csv_path": None}
    rest = [a for a in argv if a != "--dry-run"]
    if "--csv" in rest:
        i = rest.index("--csv")
        if i + 1 >= len(rest):
            raise ValueError("--csv needs a path")
        args["csv_path"] = rest[i + 1]
        rest = rest[:i] + rest[i + 2:]
    if len(rest) != 1:
        raise ValueError("usage: python -m fitxtec.sync <user_id> [--dry-run] [--csv PATH]")
    args["user_id"] = rest[0]
    return args


def main(argv: list[str] = None) -> int:
    try:
        args = _parse_args(sys.argv[1:] if argv is None else argv)
    except ValueError as e:
        print(e)
        return 2

    if not FIRESTORE_PROJECT_ID:
        print("❌ FIRESTORE_PROJECT_ID not set; refusing to run against an empty store")
        return 2

    try:
        run_progress_update(args["user_id"], dry_run=args["dry_run"], csv_path=args["csv_path"])
    except Exception as e:
        print(f"\n❌ Progress update FAILED: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
