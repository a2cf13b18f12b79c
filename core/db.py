# core/db.py
import certifi
import streamlit as st
from loguru import logger
from pymongo import ASCENDING, MongoClient
from pymongo.errors import PyMongoError

from core.config import Settings

EXPECTED_INDEXES = {
    "catalog": [({"user": 1, "activity_name": 1}, "user_activity", True)],
    "plans": [({"user": 1, "date": 1}, "user_date", True)],
    "completions": [({"user": 1, "date": 1}, "user_date", True)],
}


def connect(uri: str, dbname: str, timeout_ms: int = 8000):
    client = MongoClient(uri, serverSelectionTimeoutMS=timeout_ms, tlsCAFile=certifi.where())
    client.admin.command("ping")
    return client[dbname]


@st.cache_resource
def get_db(uri: str, dbname: str):
    if not uri:
        st.error("MONGO_URI is not configured.")
        st.stop()
    try:
        return connect(uri, dbname)
    except PyMongoError as e:
        logger.exception("MongoDB connection failed")
        st.error(f"Could not connect to MongoDB: {e}")
        st.stop()


def ensure_indexes(db, settings: Settings):
    for key, defs in EXPECTED_INDEXES.items():
        col = db[settings.collections[key]]
        for keys, name, unique in defs:
            try:
                col.create_index([(k, ASCENDING) for k in keys], name=name, unique=unique)
            except PyMongoError as e:
                logger.warning(f"Could not create index {name} on {col.name}: {e}")
