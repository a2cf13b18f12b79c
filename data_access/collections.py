# data_access/collections.py
from typing import Any, NamedTuple
from core.config import Settings


class Collections(NamedTuple):
    catalog: Any
    plans: Any
    completions: Any


def from_db(db, settings: Settings) -> Collections:
    names = settings.collections
    return Collections(catalog=db[names["catalog"]], plans=db[names["plans"]],
                       completions=db[names["completions"]])
