# data_access/plans_repo.py
from typing import Any, Dict, List
from core.time_utils import utc_now_naive


def load_plans(col, uid: str) -> Dict[str, List[Dict[str, Any]]]:
    return {row.get("date"): row.get("activities") for row in col.find({"user": uid})}


def upsert_plan(col, uid: str, date_key: str, activities: List[Dict[str, Any]]):
    _id = f"{uid}|{date_key}"
    now = utc_now_naive()
    col.update_one(
        {"_id": _id},
        {"$setOnInsert": {"_id": _id, "user": uid, "date": date_key, "created_at": now, "schema_version": 1},
         "$set": {"activities": activities, "updated_at": now}},
        upsert=True
    )


def delete_all(col, uid: str) -> int:
    return col.delete_many({"user": uid}).deleted_count


def count(col, uid: str) -> int:
    return col.count_documents({"user": uid})
