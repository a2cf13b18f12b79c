# services/day_state.py
"""Plan/completion state and the commands that change it.

Everything here is pure: `apply_local` takes a `DayState` snapshot and a
command and returns a `Transition` carrying the next snapshot plus the writes
that still have to reach the database. The stateful `DayStore` in
`services/day_store.py` is the only place those writes are executed.
"""
import time
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Tuple, Union

from core.policy import can_edit_completion, can_edit_plan
from core.time_utils import DateLike, FixedOffsetCalendar, round_half_up

WRITE_PLAN = "plan"
WRITE_COMPLETION = "completion"
WRITE_CATALOG = "catalog"


@dataclass(frozen=True)
class PlannedActivity:
    id: str
    name: str

    def to_doc(self) -> Dict[str, str]:
        return {"id": self.id, "name": self.name}

    @classmethod
    def from_doc(cls, doc: Mapping[str, Any]) -> "PlannedActivity":
        return cls(id=str(doc["id"]), name=str(doc["name"]))


@dataclass(frozen=True)
class DailyStats:
    total: int = 0
    completed: int = 0
    percentage: int = 0


def compute_daily_stats(plan: Iterable[PlannedActivity], completion: Mapping[str, bool]) -> DailyStats:
    plan = list(plan)
    if not plan:
        return DailyStats(0, 0, 0)
    completed = sum(1 for a in plan if completion.get(a.id))
    return DailyStats(len(plan), completed, round_half_up(completed / len(plan) * 100))


@dataclass(frozen=True)
class DayState:
    catalog: Tuple[str, ...] = ()
    plans: Mapping[str, Tuple[PlannedActivity, ...]] = field(default_factory=dict)
    completions: Mapping[str, Mapping[str, bool]] = field(default_factory=dict)

    def plan(self, key: str) -> Tuple[PlannedActivity, ...]:
        return tuple(self.plans.get(key, ()))

    def completion(self, key: str) -> Dict[str, bool]:
        return dict(self.completions.get(key, {}))

    def stats(self, key: str) -> DailyStats:
        return compute_daily_stats(self.plan(key), self.completions.get(key, {}))

    def with_plan(self, key: str, activities: Iterable[PlannedActivity]) -> "DayState":
        plans = dict(self.plans)
        plans[key] = tuple(activities)
        return replace(self, plans=plans)

    def with_completion(self, key: str, completion: Mapping[str, bool]) -> "DayState":
        completions = dict(self.completions)
        completions[key] = dict(completion)
        return replace(self, completions=completions)

    def with_catalog_entry(self, name: str) -> "DayState":
        if name in self.catalog:
            return self
        return replace(self, catalog=self.catalog + (name,))


# ---- commands ---------------------------------------------------------------

@dataclass(frozen=True)
class AddActivity:
    date: DateLike
    name: str


@dataclass(frozen=True)
class DeleteActivity:
    date: DateLike
    activity_id: str


@dataclass(frozen=True)
class ReorderActivity:
    date: DateLike
    moved_id: str
    target_id: str


@dataclass(frozen=True)
class ToggleCompletion:
    date: DateLike
    activity_id: str


@dataclass(frozen=True)
class MarkCompletion:
    date: DateLike
    activity_id: str
    done: bool


@dataclass(frozen=True)
class SetPlan:
    date: DateLike
    activities: Tuple[PlannedActivity, ...]


@dataclass(frozen=True)
class SetCompletion:
    date: DateLike
    completion: Mapping[str, bool]


@dataclass(frozen=True)
class RegisterActivity:
    name: str


Command = Union[AddActivity, DeleteActivity, ReorderActivity, ToggleCompletion, MarkCompletion,
                SetPlan, SetCompletion, RegisterActivity]


_DATED_COMMANDS = (AddActivity, DeleteActivity, ReorderActivity, ToggleCompletion, MarkCompletion,
                   SetPlan, SetCompletion)


@dataclass(frozen=True)
class PendingWrite:
    kind: str
    key: str
    payload: Any = None


@dataclass(frozen=True)
class Transition:
    state: DayState
    writes: Tuple[PendingWrite, ...] = ()
    accepted: bool = True
    reason: str = ""


def _rejected(state: DayState, reason: str) -> Transition:
    return Transition(state=state, accepted=False, reason=reason)


def _plan_write(key: str, activities: Iterable[PlannedActivity]) -> PendingWrite:
    return PendingWrite(WRITE_PLAN, key, [a.to_doc() for a in activities])


def _completion_write(key: str, completion: Mapping[str, bool]) -> PendingWrite:
    return PendingWrite(WRITE_COMPLETION, key, dict(completion))


# ---- ids --------------------------------------------------------------------

class ActivityIdFactory:
    """Millisecond-timestamp ids, strictly increasing within a session.

    A candidate that is not above the last id issued, or above every numeric id
    already in the target plan, is bumped by one.
    """

    def __init__(self, clock: Optional[Callable[[], float]] = None):
        self._clock = clock or time.time
        self._last = 0

    def __call__(self, existing: Iterable[str] = ()) -> str:
        floor = self._last
        for ident in existing:
            if ident.isdigit():
                floor = max(floor, int(ident))
        candidate = int(self._clock() * 1000)
        if candidate <= floor:
            candidate = floor + 1
        self._last = candidate
        return str(candidate)


# ---- apply ------------------------------------------------------------------

def apply_local(state: DayState, command: Command, cal: FixedOffsetCalendar,
                new_id: Callable[[Iterable[str]], str]) -> Transition:
    if isinstance(command, RegisterActivity):
        return _register(state, command.name)
    if not isinstance(command, _DATED_COMMANDS):
        raise TypeError(f"Unknown command: {command!r}")

    key = cal.canonical_date(command.date)

    if isinstance(command, AddActivity):
        name = (command.name or "").strip()
        if not name:
            return _rejected(state, "blank activity name")
        if not can_edit_plan(key, cal):
            return _rejected(state, f"planning is closed for {key}")
        plan = state.plan(key)
        activity = PlannedActivity(id=new_id(a.id for a in plan), name=name)
        new_plan = plan + (activity,)
        reg = _register(state.with_plan(key, new_plan), name)
        return Transition(state=reg.state, writes=(_plan_write(key, new_plan),) + reg.writes)

    if isinstance(command, DeleteActivity):
        if not can_edit_plan(key, cal):
            return _rejected(state, f"planning is closed for {key}")
        plan = state.plan(key)
        new_plan = tuple(a for a in plan if a.id != command.activity_id)
        if len(new_plan) == len(plan):
            return _rejected(state, f"no activity {command.activity_id} on {key}")
        return Transition(state=state.with_plan(key, new_plan), writes=(_plan_write(key, new_plan),))

    if isinstance(command, ReorderActivity):
        if not can_edit_plan(key, cal):
            return _rejected(state, f"planning is closed for {key}")
        plan = list(state.plan(key))
        ids = [a.id for a in plan]
        if command.moved_id not in ids or command.target_id not in ids:
            return _rejected(state, f"unknown activity on {key}")
        if command.moved_id == command.target_id:
            return _rejected(state, "activity dropped onto itself")
        src = ids.index(command.moved_id)
        dst = ids.index(command.target_id)
        moved = plan.pop(src)
        plan.insert(dst, moved)
        return Transition(state=state.with_plan(key, plan), writes=(_plan_write(key, plan),))

    if isinstance(command, ToggleCompletion):
        if not can_edit_completion(key, cal):
            return _rejected(state, f"checking is closed for {key}")
        completion = state.completion(key)
        completion[command.activity_id] = not completion.get(command.activity_id, False)
        return Transition(state=state.with_completion(key, completion),
                          writes=(_completion_write(key, completion),))

    if isinstance(command, MarkCompletion):
        if not can_edit_completion(key, cal):
            return _rejected(state, f"checking is closed for {key}")
        completion = state.completion(key)
        completion[command.activity_id] = bool(command.done)
        return Transition(state=state.with_completion(key, completion),
                          writes=(_completion_write(key, completion),))

    if isinstance(command, SetPlan):
        activities = tuple(command.activities)
        return Transition(state=state.with_plan(key, activities), writes=(_plan_write(key, activities),))

    if isinstance(command, SetCompletion):
        completion = {str(k): bool(v) for k, v in command.completion.items()}
        return Transition(state=state.with_completion(key, completion),
                          writes=(_completion_write(key, completion),))

    raise TypeError(f"Unknown command: {command!r}")


def _register(state: DayState, name: str) -> Transition:
    if name in state.catalog:
        return Transition(state=state)
    return Transition(state=state.with_catalog_entry(name), writes=(PendingWrite(WRITE_CATALOG, name),))
