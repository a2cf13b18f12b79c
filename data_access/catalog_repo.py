# data_access/catalog_repo.py
from typing import List
from loguru import logger
from pymongo.errors import DuplicateKeyError
from core.time_utils import utc_now_naive


def load_catalog(col, uid: str) -> List[str]:
    names = []
    for row in col.find({"user": uid}, {"activity_name": 1}).sort("activity_name", 1):
        name = row.get("activity_name")
        if not isinstance(name, str) or not name.strip():
            logger.warning(f"Skipping malformed catalog row {row.get('_id')!r} for {uid}")
            continue
        names.append(name)
    return names


def insert_activity(col, uid: str, name: str):
    doc = {"_id": f"{uid}|{name}", "user": uid, "activity_name": name,
           "created_at": utc_now_naive(), "schema_version": 1}
    try:
        col.insert_one(doc)
    except DuplicateKeyError:
        # another session already stored it
        logger.debug(f"Catalog entry {name!r} already stored for {uid}")


def delete_all(col, uid: str) -> int:
    return col.delete_many({"user": uid}).deleted_count


def count(col, uid: str) -> int:
    return col.count_documents({"user": uid})
