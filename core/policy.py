# core/policy.py
from dataclasses import dataclass
from typing import List

from core.time_utils import FixedOffsetCalendar, DateLike, IST

PLAN_LOCKED_HINT = "Read-only (past date)"
CHECK_LOCKED_HINT = "Locked (can only check today & yesterday)"


def can_edit_plan(value: DateLike, cal: FixedOffsetCalendar = IST) -> bool:
    # canonical strings compare chronologically
    return cal.canonical_date(value) >= cal.canonical_date(cal.today())


def can_edit_completion(value: DateLike, cal: FixedOffsetCalendar = IST) -> bool:
    target = cal.canonical_date(value)
    today = cal.today()
    return target in (cal.canonical_date(today), cal.canonical_date(cal.add_days(today, -1)))


@dataclass(frozen=True)
class EditWindow:
    can_plan: bool
    can_check: bool

    @property
    def status_badges(self) -> List[str]:
        badges = []
        if self.can_plan:
            badges.append("Planning Open")
        if self.can_check:
            badges.append("Check Open")
        return badges or ["Locked"]

    @property
    def plan_hint(self) -> str:
        return "" if self.can_plan else PLAN_LOCKED_HINT

    def check_hint(self, has_plan: bool) -> str:
        return CHECK_LOCKED_HINT if (not self.can_check and has_plan) else ""


def edit_window(value: DateLike, cal: FixedOffsetCalendar = IST) -> EditWindow:
    return EditWindow(can_plan=can_edit_plan(value, cal), can_check=can_edit_completion(value, cal))
