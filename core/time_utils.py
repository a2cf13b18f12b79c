# core/time_utils.py
import calendar as _calendar
import math
import re
from datetime import datetime, timedelta, timezone, date
from typing import Callable, Iterator, List, Optional, Union
import pytz

IST_OFFSET_MINUTES = 330
CANONICAL_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

DateLike = Union[date, datetime, str]


def utc_now_naive() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def round_half_up(value: float) -> int:
    """Round .5 away from zero for non-negative values (round() would bank 62.5 down to 62)."""
    return int(math.floor(value + 0.5))


class FixedOffsetCalendar:
    """Calendar pinned to a constant UTC offset.

    `clock` returns the current instant as an aware datetime (any zone); it
    defaults to the wall clock and is swapped out in tests so nothing depends on
    the host timezone.
    """

    def __init__(self, offset_minutes: int = IST_OFFSET_MINUTES,
                 clock: Optional[Callable[[], datetime]] = None):
        self.offset_minutes = int(offset_minutes)
        self.tz = pytz.FixedOffset(self.offset_minutes)
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def now(self) -> datetime:
        instant = self._clock()
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=timezone.utc)
        return instant.astimezone(self.tz)

    def today(self) -> date:
        return self.now().date()

    def yesterday(self) -> date:
        return self.add_days(self.today(), -1)

    def tomorrow(self) -> date:
        return self.add_days(self.today(), 1)

    def to_date(self, value: DateLike) -> date:
        if isinstance(value, str):
            return parse_canonical(value)
        if isinstance(value, datetime):
            if value.tzinfo is not None:
                value = value.astimezone(self.tz)
            return value.date()
        if isinstance(value, date):
            return value
        raise TypeError(f"Unsupported date value: {value!r}")

    def canonical_date(self, value: DateLike) -> str:
        d = self.to_date(value)
        return f"{d.year:04d}-{d.month:02d}-{d.day:02d}"

    def add_days(self, value: DateLike, n: int) -> date:
        return self.to_date(value) + timedelta(days=int(n))

    def is_today(self, value: DateLike) -> bool:
        return self.canonical_date(value) == self.canonical_date(self.today())


def parse_canonical(text: str) -> date:
    if not isinstance(text, str) or not CANONICAL_RE.match(text):
        raise ValueError(f"Not a YYYY-MM-DD date: {text!r}")
    y, m, d = map(int, text.split("-"))
    return date(y, m, d)


def date_range(start: date, end: date) -> Iterator[date]:
    """Every calendar day from start to end, both inclusive."""
    d = start
    while d <= end:
        yield d
        d += timedelta(days=1)


def month_grid(year: int, month: int) -> List[List[Optional[date]]]:
    """Sunday-first weeks for a month; days outside the month are None."""
    cal = _calendar.Calendar(firstweekday=6)
    weeks = []
    for week in cal.monthdatescalendar(year, month):
        weeks.append([d if d.month == month else None for d in week])
    return weeks


def shift_month(year: int, month: int, delta: int):
    idx = year * 12 + (month - 1) + delta
    return idx // 12, idx % 12 + 1


def format_display_date(d: date) -> str:
    return f"{d.strftime('%A')}, {d.strftime('%B')} {d.day}, {d.year}"


def format_short_date(d: date) -> str:
    return f"{d.strftime('%b')} {d.day}, {d.year}"


def format_long_date(d: date) -> str:
    return f"{d.strftime('%B')} {d.day}, {d.year}"


IST = FixedOffsetCalendar(IST_OFFSET_MINUTES)


def now_ist() -> datetime:
    return IST.now()


def today_iso() -> str:
    return IST.canonical_date(IST.today())
