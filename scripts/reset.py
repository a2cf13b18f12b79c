#!/usr/bin/env python3
"""
Reset all tracker data for a single user: activity catalog, plans, completions.

Env:
  MONGO_URI   (required)
  DB_NAME     (default: daily_tracker)
  USER_ID     (required)
  DRY_RUN     (default: true)  -> set to "false" to actually delete

Run from the repo root:  python -m scripts.reset
"""
import os
from datetime import datetime, timezone

from pymongo.errors import PyMongoError

from core.config import DEFAULT_COLLECTIONS
from core.db import connect

MONGO_URI = os.environ.get("MONGO_URI", "")
DB_NAME = os.environ.get("DB_NAME", "daily_tracker")
USER_ID = os.getenv("USER_ID", "")
DRY_RUN = (os.getenv("DRY_RUN", "true").lower() != "false")


def count_all(db):
    return {c: db[c].count_documents({"user": USER_ID}) for c in DEFAULT_COLLECTIONS.values()}


def main():
    if not MONGO_URI:
        raise SystemExit("MONGO_URI is required")
    if not USER_ID:
        raise SystemExit("USER_ID is required")

    db = connect(MONGO_URI, DB_NAME)
    print(f"[cfg] DB={DB_NAME} USER={USER_ID} DRY_RUN={DRY_RUN}")

    before = count_all(db)
    print("\n[before] per-collection user-doc counts")
    for c, n in before.items():
        print(f"  {c:18} : {n}")

    if DRY_RUN:
        print("\n[dry-run] No deletes performed. Set DRY_RUN=false to apply.")
        return

    total_deleted = 0
    failed = []
    # independent deletes; a failure leaves the others applied
    for c in DEFAULT_COLLECTIONS.values():
        try:
            res = db[c].delete_many({"user": USER_ID})
        except PyMongoError as e:
            print(f"[failed]  {c:18} : {e}")
            failed.append(c)
            continue
        print(f"[deleted] {c:18} : {res.deleted_count}")
        total_deleted += res.deleted_count

    print(f"\n[done] Total deleted: {total_deleted} docs @ {datetime.now(timezone.utc).isoformat()}")

    after = count_all(db)
    print("\n[after] per-collection user-doc counts")
    for c, n in after.items():
        print(f"  {c:18} : {n}")

    if failed:
        raise SystemExit(f"Failed to delete: {', '.join(failed)}")


if __name__ == "__main__":
    main()
