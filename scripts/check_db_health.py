#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
DB Health Checker for the Daily Activity Tracker
Run (from the repo root):
  python -m scripts.check_db_health --uri "mongodb+srv://..." [--db daily_tracker] [--fix] [--drop-stray-indexes]
      [--catalog NAME] [--plans NAME] [--completions NAME]

Collection names default to CATALOG_COLLECTION / PLANS_COLLECTION / COMPLETIONS_COLLECTION,
the same variables the app reads.
"""

import argparse
import os
from typing import Dict, List

from pymongo.errors import OperationFailure, PyMongoError

from core.config import DEFAULT_COLLECTIONS
from core.db import EXPECTED_INDEXES, connect
from core.time_utils import CANONICAL_RE, utc_now_naive

SCHEMA_VERSION = 1


def parse_args(argv=None):
    p = argparse.ArgumentParser()
    p.add_argument("--uri", required=True, help="MongoDB connection URI")
    p.add_argument("--db", default="daily_tracker", help="Database name")
    p.add_argument("--fix", action="store_true", help="Apply safe fixes (schema_version)")
    p.add_argument("--drop-stray-indexes", action="store_true", help="Drop unknown custom indexes (never _id_)")
    for key in DEFAULT_COLLECTIONS:
        env = f"{key.upper()}_COLLECTION"
        p.add_argument(f"--{key}", default=os.getenv(env) or DEFAULT_COLLECTIONS[key],
                       help=f"{key} collection name (env {env})")
    return p.parse_args(argv)


def ensure_expected_indexes(col, expected_defs, create=False):
    """
    Inspect current indexes. An index counts as present if its KEYS match, whatever its name.
    Optionally create missing ones using the preferred name.
    """
    current = list(col.list_indexes())
    cur_keys_list = [dict(ix.get("key", {})) for ix in current]
    allowed_names = {"_id_"} | {name for _, name, _ in expected_defs}

    present, missing, stray = [], [], []
    for keys, name, unique in expected_defs:
        if any(keys == k for k in cur_keys_list):
            present.append(name)
            continue
        missing.append(name)
        if create:
            try:
                col.create_index(list(keys.items()), name=name, unique=unique)
            except PyMongoError as e:
                print(f"  ⚠️  Could not create index {name} on {col.name}: {e}")

    for ix in current:
        n = ix.get("name")
        if n not in allowed_names and dict(ix.get("key", {})) != {"_id": 1}:
            stray.append(n)

    return {"present": present, "missing": missing, "stray": stray}


def drop_stray_indexes(col, stray_names: List[str]):
    dropped = 0
    for n in stray_names:
        try:
            col.drop_index(n)
            dropped += 1
        except OperationFailure as e:
            print(f"  ⚠️  Could not drop index {n} on {col.name}: {e}")
    return dropped


def _bump_schema(col, d, fix, counts):
    if d.get("schema_version") != SCHEMA_VERSION and fix:
        col.update_one({"_id": d["_id"]}, {"$set": {"schema_version": SCHEMA_VERSION, "updated_at": utc_now_naive()}})
        counts["set_schema_version"] += 1


def validate_catalog(col, fix=False) -> Dict[str, int]:
    counts = {"docs": 0, "missing_user": 0, "blank_name": 0, "set_schema_version": 0}
    for d in col.find({}):
        counts["docs"] += 1
        if not d.get("user"):
            counts["missing_user"] += 1
        if not str(d.get("activity_name") or "").strip():
            counts["blank_name"] += 1
        _bump_schema(col, d, fix, counts)
    return counts


def validate_plans(col, fix=False) -> Dict[str, int]:
    counts = {
        "docs": 0,
        "missing_user": 0,
        "bad_date_format": 0,
        "bad_activities": 0,
        "bad_activity_item": 0,
        "duplicate_ids": 0,
        "set_schema_version": 0,
    }
    for d in col.find({}):
        counts["docs"] += 1
        if not d.get("user"):
            counts["missing_user"] += 1
        date_str = d.get("date")
        if not (isinstance(date_str, str) and CANONICAL_RE.match(date_str)):
            counts["bad_date_format"] += 1
        acts = d.get("activities")
        if not isinstance(acts, list):
            counts["bad_activities"] += 1
        else:
            ids = []
            for a in acts:
                if not isinstance(a, dict) or not a.get("id") or not str(a.get("name") or "").strip():
                    counts["bad_activity_item"] += 1
                    continue
                ids.append(a["id"])
            if len(ids) != len(set(ids)):
                counts["duplicate_ids"] += 1
        _bump_schema(col, d, fix, counts)
    return counts


def validate_completions(col, fix=False) -> Dict[str, int]:
    counts = {"docs": 0, "missing_user": 0, "bad_date_format": 0, "bad_completion_data": 0,
              "non_bool_values": 0, "set_schema_version": 0}
    for d in col.find({}):
        counts["docs"] += 1
        if not d.get("user"):
            counts["missing_user"] += 1
        date_str = d.get("date")
        if not (isinstance(date_str, str) and CANONICAL_RE.match(date_str)):
            counts["bad_date_format"] += 1
        data = d.get("completion_data")
        if not isinstance(data, dict):
            counts["bad_completion_data"] += 1
        else:
            counts["non_bool_values"] += sum(1 for v in data.values() if not isinstance(v, bool))
        _bump_schema(col, d, fix, counts)
    return counts


def validate_referential(plans_col, completions_col) -> Dict[str, int]:
    """
    Count completion entries whose activity id is no longer in that day's plan.
    These are tolerated by the app, so this only reports them.
    """
    counts = {"completion_entries": 0, "orphaned_entries": 0, "days_without_plan": 0}
    plan_ids = {}
    for d in plans_col.find({}, {"user": 1, "date": 1, "activities": 1}):
        acts = d.get("activities") if isinstance(d.get("activities"), list) else []
        plan_ids[(d.get("user"), d.get("date"))] = {a.get("id") for a in acts if isinstance(a, dict)}
    for d in completions_col.find({}, {"user": 1, "date": 1, "completion_data": 1}):
        data = d.get("completion_data") if isinstance(d.get("completion_data"), dict) else {}
        key = (d.get("user"), d.get("date"))
        if key not in plan_ids:
            counts["days_without_plan"] += 1
        ids = plan_ids.get(key, set())
        for aid in data:
            counts["completion_entries"] += 1
            if aid not in ids:
                counts["orphaned_entries"] += 1
    return counts


def main(argv=None):
    args = parse_args(argv)
    db = connect(args.uri, args.db)
    cols = {k: db[getattr(args, k)] for k in DEFAULT_COLLECTIONS}

    print("🔎 Index audit")
    for key, col in cols.items():
        ix = ensure_expected_indexes(col, EXPECTED_INDEXES[key], create=False)
        print(f"  {col.name}: present={ix['present']}, missing={ix['missing']}, stray={ix['stray']}")
        if args.drop_stray_indexes and ix["stray"]:
            n = drop_stray_indexes(col, ix["stray"])
            print(f"  ✅ Dropped {n} stray indexes from {col.name}")
        if ix["missing"]:
            print(f"  ℹ️ Creating missing expected indexes on {col.name}…")
            ensure_expected_indexes(col, EXPECTED_INDEXES[key], create=True)

    for title, fn, col in [
        (cols["catalog"].name, validate_catalog, cols["catalog"]),
        (cols["plans"].name, validate_plans, cols["plans"]),
        (cols["completions"].name, validate_completions, cols["completions"]),
    ]:
        print(f"\n🧪 Document validation: {title}")
        for k, v in fn(col, fix=args.fix).items():
            print(f"  {k}: {v}")

    print("\n🔗 Referential integrity")
    for k, v in validate_referential(cols["plans"], cols["completions"]).items():
        print(f"  {k}: {v}")

    print("\n✨ Done.")


if __name__ == "__main__":
    main()
