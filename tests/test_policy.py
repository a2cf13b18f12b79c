from datetime import date, timedelta

import pytest

from core.policy import CHECK_LOCKED_HINT, PLAN_LOCKED_HINT, can_edit_completion, can_edit_plan, edit_window

TODAY = date(2026, 3, 15)


@pytest.mark.parametrize("offset", range(-40, 40))
def test_can_edit_plan_is_today_or_later(cal, offset):
    d = TODAY + timedelta(days=offset)
    assert can_edit_plan(d, cal) == (d.isoformat() >= TODAY.isoformat())


@pytest.mark.parametrize("offset", range(-40, 40))
def test_can_edit_completion_is_today_or_yesterday(cal, offset):
    d = TODAY + timedelta(days=offset)
    assert can_edit_completion(d, cal) == (offset in (0, -1))


def test_policy_across_month_boundary():
    from datetime import datetime, timezone
    from core.time_utils import FixedOffsetCalendar

    cal = FixedOffsetCalendar(clock=lambda: datetime(2026, 3, 1, 6, 0, tzinfo=timezone.utc))
    assert can_edit_completion("2026-02-28", cal)
    assert not can_edit_completion("2026-02-27", cal)
    assert not can_edit_plan("2026-02-28", cal)


def test_policy_accepts_strings(cal):
    assert can_edit_plan("2026-03-15", cal)
    assert not can_edit_plan("2026-03-14", cal)
    assert can_edit_completion("2026-03-14", cal)
    assert not can_edit_completion("2026-03-16", cal)


def test_edit_window_badges_and_hints(cal):
    today = edit_window(TODAY, cal)
    assert today.status_badges == ["Planning Open", "Check Open"]
    assert today.plan_hint == ""

    yesterday = edit_window(TODAY - timedelta(days=1), cal)
    assert yesterday.status_badges == ["Check Open"]
    assert yesterday.plan_hint == PLAN_LOCKED_HINT

    future = edit_window(TODAY + timedelta(days=3), cal)
    assert future.status_badges == ["Planning Open"]
    assert future.check_hint(has_plan=True) == CHECK_LOCKED_HINT

    old = edit_window(TODAY - timedelta(days=5), cal)
    assert old.status_badges == ["Locked"]
    assert old.check_hint(has_plan=False) == ""
