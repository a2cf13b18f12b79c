from concurrent.futures import Future
from datetime import date

import pytest

from data_access import catalog_repo, completions_repo, plans_repo
from services.day_state import AddActivity, DailyStats, PlannedActivity, ToggleCompletion
from services.day_store import DayStore, PersistResult, ResetError

TODAY = "2026-03-15"


def _seed(cols, uid="u1"):
    catalog_repo.insert_activity(cols.catalog, uid, "Run")
    catalog_repo.insert_activity(cols.catalog, uid, "Read")
    plans_repo.upsert_plan(cols.plans, uid, TODAY, [{"id": "a", "name": "Run"}, {"id": "b", "name": "Read"}])
    completions_repo.upsert_completion(cols.completions, uid, TODAY, {"a": True})
    # another user's rows never leak in
    plans_repo.upsert_plan(cols.plans, "other", TODAY, [{"id": "x", "name": "Other"}])


def test_empty_defaults(store):
    assert store.get_plan(TODAY) == ()
    assert store.get_completion(TODAY) == {}
    assert store.get_catalog() == []
    assert store.daily_stats(TODAY) == DailyStats(0, 0, 0)


def test_hydrate_loads_user_rows(store, cols):
    _seed(cols)
    store.hydrate()
    assert [a.name for a in store.get_plan(TODAY)] == ["Run", "Read"]
    assert store.get_completion(date(2026, 3, 15)) == {"a": True}
    assert store.get_catalog() == ["Read", "Run"]
    assert store.daily_stats(TODAY) == DailyStats(total=2, completed=1, percentage=50)
    assert store.dates_with_plans() == [TODAY]


def test_hydrate_degrades_each_category_independently(store, cols):
    _seed(cols)
    cols.plans.failing.add("find")
    store.hydrate()
    assert store.get_plan(TODAY) == ()
    assert store.get_catalog() == ["Read", "Run"]
    assert store.get_completion(TODAY) == {"a": True}


def test_hydrate_skips_malformed_rows(store, cols):
    cols.plans.docs["u1|bad"] = {"_id": "u1|bad", "user": "u1", "date": "15/03/2026", "activities": []}
    cols.plans.docs["u1|x"] = {"_id": "u1|x", "user": "u1", "date": "2026-03-10", "activities": "nope"}
    cols.plans.docs["u1|y"] = {"_id": "u1|y", "user": "u1", "date": "2026-03-11",
                               "activities": [{"id": "k", "name": "Keep"}, {"name": "no id"}]}
    cols.completions.docs["u1|z"] = {"_id": "u1|z", "user": "u1", "date": "2026-03-11", "completion_data": None}
    store.hydrate()
    assert store.dates_with_plans() == ["2026-03-11"]
    assert [a.id for a in store.get_plan("2026-03-11")] == ["k"]
    assert store.get_completion("2026-03-11") == {}


def test_hydrate_skips_catalog_rows_without_a_name(store, cols):
    _seed(cols)
    cols.catalog.docs["u1|bad"] = {"_id": "u1|bad", "user": "u1"}
    cols.catalog.docs["u1|num"] = {"_id": "u1|num", "user": "u1", "activity_name": 42}
    store.hydrate()
    assert store.get_catalog() == ["Read", "Run"]
    assert [a.name for a in store.get_plan(TODAY)] == ["Run", "Read"]


def test_add_activity_persists_plan_and_catalog(store, cols):
    t = store.add_activity(TODAY, "Swim")
    assert t.accepted
    doc = cols.plans.docs[f"u1|{TODAY}"]
    assert doc["activities"] == [{"id": t.state.plan(TODAY)[0].id, "name": "Swim"}]
    assert doc["user"] == "u1" and doc["date"] == TODAY
    assert catalog_repo.load_catalog(cols.catalog, "u1") == ["Swim"]


def test_add_twice_gives_distinct_ids(store):
    store.add_activity(TODAY, "Swim")
    store.add_activity(TODAY, "Swim")
    ids = [a.id for a in store.get_plan(TODAY)]
    assert len(ids) == 2 and len(set(ids)) == 2


def test_rejected_add_writes_nothing(store, cols):
    t = store.add_activity("2026-03-14", "Swim")
    assert not t.accepted
    assert cols.plans.docs == {}
    assert cols.catalog.docs == {}


def test_write_failure_keeps_optimistic_state(store, cols):
    cols.plans.failing.add("update_one")
    transition, result = store.dispatch(AddActivity(TODAY, "Swim"))
    assert transition.accepted
    assert isinstance(result, PersistResult)
    assert not result.ok
    assert len(result.errors) == 1
    # in memory it is there, the catalog write still went through
    assert [a.name for a in store.get_plan(TODAY)] == ["Swim"]
    assert catalog_repo.count(cols.catalog, "u1") == 1
    assert cols.plans.docs == {}


def test_reload_after_failed_write_reverts(ctx, cols, cal, store):
    cols.completions.failing.add("update_one")
    store.set_plan(TODAY, [PlannedActivity("a", "Run")])
    store.toggle_completion(TODAY, "a")
    assert store.get_completion(TODAY) == {"a": True}
    fresh = DayStore(ctx, cols, cal).hydrate()
    assert fresh.get_completion(TODAY) == {}
    assert [a.id for a in fresh.get_plan(TODAY)] == ["a"]


def test_toggle_round_trip_through_storage(store, cols):
    store.set_plan(TODAY, [PlannedActivity("a", "Run")])
    store.toggle_completion(TODAY, "a")
    assert completions_repo.load_completions(cols.completions, "u1") == {TODAY: {"a": True}}
    store.toggle_completion(TODAY, "a")
    assert completions_repo.load_completions(cols.completions, "u1") == {TODAY: {"a": False}}


def test_locked_toggle_is_noop(store, cols):
    store.set_plan("2026-03-01", [PlannedActivity("a", "Run")])
    t = store.toggle_completion("2026-03-01", "a")
    assert not t.accepted
    assert cols.completions.docs == {}


def test_delete_and_reorder_persist(store, cols):
    store.set_plan(TODAY, [PlannedActivity("a", "A"), PlannedActivity("b", "B"), PlannedActivity("c", "C")])
    store.set_completion(TODAY, {"a": True})
    store.reorder_activity(TODAY, "c", "a")
    assert [d["id"] for d in cols.plans.docs[f"u1|{TODAY}"]["activities"]] == ["c", "a", "b"]
    store.delete_activity(TODAY, "a")
    assert [d["id"] for d in cols.plans.docs[f"u1|{TODAY}"]["activities"]] == ["c", "b"]
    # orphaned completion entries stay where they are
    assert store.get_completion(TODAY) == {"a": True}


def test_mark_completion(store):
    store.set_plan(TODAY, [PlannedActivity("a", "A")])
    store.mark_completion(TODAY, "a", True)
    assert store.daily_stats(TODAY).percentage == 100
    store.mark_completion(TODAY, "a", False)
    assert store.daily_stats(TODAY).percentage == 0


def test_get_completion_returns_a_copy(store):
    store.set_plan(TODAY, [PlannedActivity("a", "A")])
    store.get_completion(TODAY)["a"] = True
    assert store.get_completion(TODAY) == {}


def test_background_dispatch_returns_future(store, cols):
    transition, future = store.dispatch(ToggleCompletion(TODAY, "a"), wait=False)
    assert isinstance(future, Future)
    assert transition.state.completion(TODAY) == {"a": True}
    assert future.result(timeout=5).ok
    assert cols.completions.docs[f"u1|{TODAY}"]["completion_data"] == {"a": True}


def test_background_store_flushes_in_order(ctx, cols, cal, id_factory):
    bg = DayStore(ctx, cols, cal, id_factory=id_factory, background=True)
    try:
        for name in ["One", "Two", "Three"]:
            bg.add_activity(TODAY, name)
        bg.flush()
        names = [d["name"] for d in cols.plans.docs[f"u1|{TODAY}"]["activities"]]
        assert names == ["One", "Two", "Three"]
    finally:
        bg.close()


def test_reset_all_clears_everything(store, cols):
    _seed(cols)
    store.hydrate()
    store.reset_all()
    assert store.get_catalog() == []
    assert store.get_plan(TODAY) == ()
    assert store.get_completion(TODAY) == {}
    assert cols.catalog.docs == {}
    assert completions_repo.count(cols.completions, "u1") == 0
    # other users untouched
    assert plans_repo.count(cols.plans, "other") == 1


def test_partial_reset_failure_is_surfaced(store, cols):
    _seed(cols)
    store.hydrate()
    cols.plans.failing.add("delete_many")
    with pytest.raises(ResetError) as exc:
        store.reset_all()
    assert exc.value.failed_tables == ("plans",)
    # the deletes that worked stay deleted, locally and remotely
    assert store.get_catalog() == []
    assert store.get_completion(TODAY) == {}
    assert len(store.get_plan(TODAY)) == 2
    assert catalog_repo.count(cols.catalog, "u1") == 0
    assert plans_repo.count(cols.plans, "u1") == 1
