# services/day_store.py
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, replace
from typing import Dict, Iterable, List, Mapping, Optional, Tuple, Union

from loguru import logger
from pymongo.errors import PyMongoError

from core.context import UserContext
from core.time_utils import CANONICAL_RE, DateLike, FixedOffsetCalendar, IST
from data_access import catalog_repo, completions_repo, plans_repo
from data_access.collections import Collections
from services.day_state import (
    WRITE_CATALOG, WRITE_COMPLETION, WRITE_PLAN,
    ActivityIdFactory, AddActivity, Command, DailyStats, DayState, DeleteActivity, MarkCompletion,
    PendingWrite, PlannedActivity, RegisterActivity, ReorderActivity, SetCompletion,
    SetPlan, ToggleCompletion, Transition, apply_local,
)

TABLES = ("catalog", "plans", "completions")


@dataclass(frozen=True)
class PersistResult:
    ok: bool = True
    errors: Tuple[str, ...] = ()


class ResetError(Exception):
    """Some per-collection deletes failed; the ones that succeeded stay deleted."""

    def __init__(self, failed_tables: Iterable[str]):
        self.failed_tables = tuple(failed_tables)
        super().__init__(f"Failed to delete: {', '.join(self.failed_tables)}")


class DayStore:
    """In-memory plans/completions/catalog for one user, mirrored to Mongo.

    Mutations are two-phase: `apply` swaps the in-memory snapshot immediately,
    `persist` pushes the resulting writes and reports (never raises) failures.
    With `background=True` the convenience methods hand persistence to a
    single worker thread so writes land in the order they were made.
    """

    def __init__(self, ctx: UserContext, cols: Collections, cal: FixedOffsetCalendar = IST,
                 id_factory: Optional[ActivityIdFactory] = None, background: bool = False):
        self.ctx = ctx
        self.cols = cols
        self.cal = cal
        self.background = background
        self._new_id = id_factory or ActivityIdFactory()
        self._state = DayState()
        self._pool: Optional[ThreadPoolExecutor] = None

    @property
    def state(self) -> DayState:
        return self._state

    # ---- hydration ----------------------------------------------------------

    def hydrate(self) -> "DayStore":
        uid = self.ctx.user_id
        catalog: List[str] = []
        plans: Dict[str, Tuple[PlannedActivity, ...]] = {}
        completions: Dict[str, Dict[str, bool]] = {}

        try:
            catalog = catalog_repo.load_catalog(self.cols.catalog, uid)
        except PyMongoError:
            logger.exception(f"Error loading catalog for {uid}")

        try:
            for key, docs in plans_repo.load_plans(self.cols.plans, uid).items():
                parsed = _parse_plan(key, docs)
                if parsed is not None:
                    plans[key] = parsed
        except PyMongoError:
            logger.exception(f"Error loading plans for {uid}")
            plans = {}

        try:
            for key, data in completions_repo.load_completions(self.cols.completions, uid).items():
                if not _valid_key(key) or not isinstance(data, dict):
                    logger.warning(f"Skipping malformed completion row {key!r} for {uid}")
                    continue
                completions[key] = {str(k): bool(v) for k, v in data.items()}
        except PyMongoError:
            logger.exception(f"Error loading completions for {uid}")
            completions = {}

        self._state = DayState(catalog=tuple(catalog), plans=plans, completions=completions)
        logger.info(f"Hydrated {uid}: {len(catalog)} catalog entries, {len(plans)} plans, "
                    f"{len(completions)} completion days")
        return self

    # ---- two-phase mutation -------------------------------------------------

    def apply(self, command: Command) -> Transition:
        transition = apply_local(self._state, command, self.cal, self._new_id)
        if transition.accepted:
            self._state = transition.state
        else:
            logger.debug(f"Rejected {type(command).__name__}: {transition.reason}")
        return transition

    def persist(self, writes: Iterable[PendingWrite]) -> PersistResult:
        uid = self.ctx.user_id
        errors = []
        for w in writes:
            try:
                if w.kind == WRITE_PLAN:
                    plans_repo.upsert_plan(self.cols.plans, uid, w.key, w.payload)
                elif w.kind == WRITE_COMPLETION:
                    completions_repo.upsert_completion(self.cols.completions, uid, w.key, w.payload)
                elif w.kind == WRITE_CATALOG:
                    catalog_repo.insert_activity(self.cols.catalog, uid, w.key)
                else:
                    raise ValueError(f"Unknown write kind {w.kind!r}")
            except PyMongoError as e:
                logger.error(f"Error saving {w.kind} {w.key!r} for {uid}: {e}")
                errors.append(f"{w.kind}:{w.key}: {e}")
        return PersistResult(ok=not errors, errors=tuple(errors))

    def dispatch(self, command: Command, wait: bool = True) -> Tuple[Transition, Union[PersistResult, Future]]:
        transition = self.apply(command)
        if not transition.writes:
            return transition, PersistResult()
        if wait:
            return transition, self.persist(transition.writes)
        return transition, self._executor().submit(self.persist, transition.writes)

    def _run(self, command: Command) -> Transition:
        return self.dispatch(command, wait=not self.background)[0]

    def _executor(self) -> ThreadPoolExecutor:
        if self._pool is None:
            self._pool = ThreadPoolExecutor(max_workers=1, thread_name_prefix="persist")
        return self._pool

    def flush(self):
        """Block until every background write submitted so far has finished."""
        if self._pool is not None:
            self._pool.submit(lambda: None).result()

    def close(self):
        if self._pool is not None:
            self._pool.shutdown(wait=True)
            self._pool = None

    # ---- queries ------------------------------------------------------------

    def key(self, value: DateLike) -> str:
        return self.cal.canonical_date(value)

    def get_plan(self, value: DateLike) -> Tuple[PlannedActivity, ...]:
        return self._state.plan(self.key(value))

    def get_completion(self, value: DateLike) -> Dict[str, bool]:
        return self._state.completion(self.key(value))

    def daily_stats(self, value: DateLike) -> DailyStats:
        return self._state.stats(self.key(value))

    def get_catalog(self) -> List[str]:
        return list(self._state.catalog)

    def dates_with_plans(self) -> List[str]:
        return sorted(k for k, v in self._state.plans.items() if v)

    # ---- commands -----------------------------------------------------------

    def set_plan(self, value: DateLike, activities: Iterable[PlannedActivity]) -> Transition:
        return self._run(SetPlan(value, tuple(activities)))

    def set_completion(self, value: DateLike, completion: Mapping[str, bool]) -> Transition:
        return self._run(SetCompletion(value, dict(completion)))

    def add_activity(self, value: DateLike, name: str) -> Transition:
        return self._run(AddActivity(value, name))

    def delete_activity(self, value: DateLike, activity_id: str) -> Transition:
        return self._run(DeleteActivity(value, activity_id))

    def reorder_activity(self, value: DateLike, moved_id: str, target_id: str) -> Transition:
        return self._run(ReorderActivity(value, moved_id, target_id))

    def toggle_completion(self, value: DateLike, activity_id: str) -> Transition:
        return self._run(ToggleCompletion(value, activity_id))

    def mark_completion(self, value: DateLike, activity_id: str, done: bool) -> Transition:
        return self._run(MarkCompletion(value, activity_id, done))

    def register_activity(self, name: str) -> Transition:
        return self._run(RegisterActivity(name))

    # ---- reset --------------------------------------------------------------

    def reset_all(self):
        """Delete every catalog entry, plan and completion for this user.

        The three deletes are independent. Collections whose delete succeeded
        are cleared locally too; if any failed, ResetError names them.
        """
        self.flush()
        uid = self.ctx.user_id
        deleters = {
            "catalog": lambda: catalog_repo.delete_all(self.cols.catalog, uid),
            "plans": lambda: plans_repo.delete_all(self.cols.plans, uid),
            "completions": lambda: completions_repo.delete_all(self.cols.completions, uid),
        }
        failed = []
        for table in TABLES:
            try:
                n = deleters[table]()
                logger.info(f"[reset] {uid} {table}: deleted {n}")
            except PyMongoError:
                logger.exception(f"[reset] {uid} {table}: delete failed")
                failed.append(table)

        state = self._state
        if "catalog" not in failed:
            state = replace(state, catalog=())
        if "plans" not in failed:
            state = replace(state, plans={})
        if "completions" not in failed:
            state = replace(state, completions={})
        self._state = state

        if failed:
            raise ResetError(failed)


def _valid_key(key) -> bool:
    return isinstance(key, str) and bool(CANONICAL_RE.match(key))


def _parse_plan(key, docs) -> Optional[Tuple[PlannedActivity, ...]]:
    if not _valid_key(key) or not isinstance(docs, list):
        logger.warning(f"Skipping malformed plan row {key!r}")
        return None
    activities = []
    for doc in docs:
        if not isinstance(doc, dict) or "id" not in doc or "name" not in doc:
            logger.warning(f"Skipping malformed activity on {key}: {doc!r}")
            continue
        activities.append(PlannedActivity.from_doc(doc))
    return tuple(activities)
