# data_access/completions_repo.py
from typing import Dict
from core.time_utils import utc_now_naive


def load_completions(col, uid: str) -> Dict[str, Dict[str, bool]]:
    return {row.get("date"): row.get("completion_data") for row in col.find({"user": uid})}


def upsert_completion(col, uid: str, date_key: str, completion: Dict[str, bool]):
    _id = f"{uid}|{date_key}"
    now = utc_now_naive()
    col.update_one(
        {"_id": _id},
        {"$setOnInsert": {"_id": _id, "user": uid, "date": date_key, "created_at": now, "schema_version": 1},
         "$set": {"completion_data": completion, "updated_at": now}},
        upsert=True
    )


def delete_all(col, uid: str) -> int:
    return col.delete_many({"user": uid}).deleted_count


def count(col, uid: str) -> int:
    return col.count_documents({"user": uid})
