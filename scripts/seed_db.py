"""
Seed script for the Trinetra mock DB or Firestore.

Usage:
  - Dry run (default): python scripts/seed_db.py
  - Apply to configured DB: python scripts/seed_db.py --apply
  - Force mock DB even if FIREBASE configured: python scripts/seed_db.py --apply --force-mock

Behavior:
  - Loads `db_seed.json` from repo root (police id registry and demo alerts).
  - Gets DB via `trinetra.config.firebase.get_db()` which will return the mock DB or real Firestore depending on settings.
  - Writes each top-level collection/document to the DB.
  - The string "SERVER_TIMESTAMP" becomes a server timestamp; time_missing strings become datetimes.

NOTE: When applying to real Firestore, ensure `FIREBASE_CREDENTIALS_PATH` and `USE_MOCK_DB=false` are set in `.env`.
"""

import argparse
import json
import os
from datetime import datetime
from typing import Any, Dict

from firebase_admin import firestore

from trinetra.config.firebase import get_db
from trinetra.core.settings import settings

SERVER_TIMESTAMP_MARKER = "SERVER_TIMESTAMP"
DATETIME_FIELDS = ("time_missing",)


def load_seed(path: str = "./db_seed.json") -> dict:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def prepare_document(data: Dict[str, Any]) -> Dict[str, Any]:
    prepared = {}
    for key, value in data.items():
        if value == SERVER_TIMESTAMP_MARKER:
            value = firestore.SERVER_TIMESTAMP
        elif key in DATETIME_FIELDS and isinstance(value, str):
            value = datetime.fromisoformat(value)
        prepared[key] = value
    return prepared


def write_to_db(db: Any, seed: dict, apply: bool = False) -> int:
    written = 0
    for collection, docs in seed.items():
        for doc_id, data in docs.items():
            print(f"Preparing: {collection}/{doc_id}")
            if not apply:
                continue
            try:
                db.collection(collection).document(doc_id).set(prepare_document(data))
                written += 1
                print(f"Wrote: {collection}/{doc_id}")
            except Exception as e:
                print(f"Failed to write {collection}/{doc_id}: {e}")
    return written


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--apply", action="store_true", help="Write seed to the DB instead of dry-run")
    parser.add_argument("--force-mock", action="store_true", help="Force use of mock DB even if FIREBASE configured")
    args = parser.parse_args()

    seed_path = os.path.join(os.getcwd(), "db_seed.json")
    if not os.path.exists(seed_path):
        print(f"Seed file not found: {seed_path}")
        return

    seed = load_seed(seed_path)

    if args.force_mock:
        print("Forcing mock DB usage for this run.")
        settings.USE_MOCK_DB = True

    db = get_db()

    written = write_to_db(db, seed, apply=args.apply)

    if args.apply:
        print(f"Seeding completed ({written} documents).")
    else:
        print("Dry run complete. Re-run with --apply to write to DB.")


if __name__ == "__main__":
    main()
