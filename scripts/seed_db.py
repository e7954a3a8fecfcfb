"""
Seed citizen accounts into Firestore.

Usage:
  - Dry run (default): python scripts/seed_db.py
  - Apply to Firestore: python scripts/seed_db.py --apply
  - Custom file: python scripts/seed_db.py --file ./my_citizens.json --apply

Seed file format:
  {"citizens": {"c-1024": {"full_name": "Ana Reyes", "is_verified": true, "trust_score": 0}}}

NOTE: The in-memory store lives inside the API process, so USE_MOCK_DB=true
only supports dry runs here. Set FIREBASE_CREDENTIALS_PATH and USE_MOCK_DB=false
before applying.
"""

import argparse
import json
import os

from civic_triage.config.firebase import get_db
from civic_triage.core.settings import settings
from civic_triage.services.firestore_store import CITIZENS

CITIZEN_FIELDS = ("full_name", "is_verified", "trust_score")


def load_seed(path: str) -> dict:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def citizen_document(data: dict) -> dict:
    return {
        "full_name": data.get("full_name", ""),
        "is_verified": bool(data.get("is_verified", False)),
        "trust_score": float(data.get("trust_score", 0)),
    }


def write_citizens(db, citizens: dict, apply: bool = False) -> int:
    written = 0
    for citizen_id, data in citizens.items():
        unknown = set(data) - set(CITIZEN_FIELDS)
        if unknown:
            print(f"Skipping {citizen_id}: unknown fields {sorted(unknown)}")
            continue
        print(f"Preparing: {CITIZENS}/{citizen_id}")
        if not apply:
            continue
        db.collection(CITIZENS).document(citizen_id).set(citizen_document(data), merge=True)
        print(f"Wrote: {CITIZENS}/{citizen_id}")
        written += 1
    return written


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--apply", action="store_true", help="Write seed to Firestore instead of dry-run")
    parser.add_argument("--file", default=os.path.join(os.getcwd(), "citizens_seed.json"), help="Seed file path")
    args = parser.parse_args()

    if not os.path.exists(args.file):
        print(f"Seed file not found: {args.file}")
        return

    citizens = load_seed(args.file).get("citizens", {})

    if args.apply and settings.USE_MOCK_DB:
        print("USE_MOCK_DB is set; nothing to apply. Configure Firestore and re-run.")
        return

    db = get_db() if args.apply else None
    written = write_citizens(db, citizens, apply=args.apply)

    if args.apply:
        print(f"Seeding completed ({written} citizens).")
    else:
        print("Dry run complete. Re-run with --apply to write to Firestore.")


if __name__ == "__main__":
    main()
