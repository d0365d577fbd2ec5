"""Slot derivation from a court's daily operating window."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Iterator, List, Optional

import pytz

from infrastructure.constants import MINUTES_PER_DAY, SLOT_TIME_FORMAT
from tracking import t

from .models import Court, TimeSlot


def parse_clock(value: Any) -> Optional[int]:
    """Return minutes since midnight for "HH:MM" / "HH:MM:SS", or ``None``.

    "24:00" is accepted as end of day so it can close a window.
    """

    t('courts.slots.parse_clock')

    if not isinstance(value, str) or ":" not in value:
        return None

    parts = value.strip().split(":")
    if len(parts) not in (2, 3):
        return None
    if not all(part.isdigit() for part in parts):
        return None

    hour, minute = int(parts[0]), int(parts[1])
    if not (0 <= minute <= 59):
        return None
    if hour == 24 and minute == 0:
        return MINUTES_PER_DAY
    if not (0 <= hour <= 23):
        return None
    return hour * 60 + minute


def parse_duration(value: Any) -> Optional[int]:
    """Return a positive whole number of minutes, or ``None``."""

    t('courts.slots.parse_duration')

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        minutes = value
    elif isinstance(value, float):
        if not value.is_integer():
            return None
        minutes = int(value)
    elif isinstance(value, str):
        try:
            number = Decimal(value.strip())
        except InvalidOperation:
            return None
        if not number.is_finite() or number != number.to_integral_value():
            return None
        minutes = int(number)
    else:
        return None
    return minutes if minutes > 0 else None


def format_clock(minutes: int) -> str:
    t('courts.slots.format_clock')
    hour, minute = divmod(minutes, 60)
    return SLOT_TIME_FORMAT.format(hour=hour, minute=minute)


class SlotTemplate:
    """Lazy, finite and restartable sequence of slot start times.

    Each iteration starts from the opening time again, so the same template
    can be consumed any number of times with identical output.
    """

    __slots__ = ("_open", "_close", "_duration")

    def __init__(self, open_time: Any, close_time: Any, duration: Any) -> None:
        t('courts.slots.SlotTemplate.__init__')
        self._open = parse_clock(open_time)
        self._close = parse_clock(close_time)
        self._duration = parse_duration(duration)

    @property
    def duration(self) -> Optional[int]:
        return self._duration

    @property
    def is_valid(self) -> bool:
        t('courts.slots.SlotTemplate.is_valid')
        return (
            self._open is not None
            and self._close is not None
            and self._duration is not None
            and self._open < self._close
        )

    def __iter__(self) -> Iterator[str]:
        t('courts.slots.SlotTemplate.__iter__')
        if not self.is_valid:
            return
        start = self._open
        while start + self._duration <= self._close:
            yield format_clock(start)
            start += self._duration

    def __repr__(self) -> str:
        return f"SlotTemplate(open={self._open}, close={self._close}, duration={self._duration})"


def slot_starts(open_time: Any, close_time: Any, duration: Any) -> SlotTemplate:
    """Return the start times ``o, o+d, o+2d, ...`` while ``start + d <= c``.

    Missing or malformed inputs, ``d <= 0`` and ``o >= c`` produce an empty
    sequence rather than an error.
    """

    t('courts.slots.slot_starts')
    return SlotTemplate(open_time, close_time, duration)


def slot_for_start(start_time: str, duration: Any) -> TimeSlot:
    """Pair a start time with its end time (start + duration)."""

    t('courts.slots.slot_for_start')
    start = parse_clock(start_time)
    minutes = parse_duration(duration)
    if start is None or minutes is None:
        raise ValueError(f"Cannot derive a slot from start={start_time!r}, duration={duration!r}")
    return TimeSlot(start_time=format_clock(start), end_time=format_clock(start + minutes))


def generate_time_slots(court: Court) -> List[TimeSlot]:
    """Materialise the court's daily template as ``TimeSlot`` pairs.

    The calendar date never enters the arithmetic: every day uses the same
    template.
    """

    t('courts.slots.generate_time_slots')
    template = slot_starts(court.open_time, court.close_time, court.slot_duration_minutes)
    return [slot_for_start(start, template.duration) for start in template]


def filter_bookable_starts(
    starts: Iterable[str],
    target_date: date,
    *,
    timezone: str,
    now: Optional[datetime] = None,
) -> List[str]:
    """Drop start times that already passed when ``target_date`` is today.

    ``now`` defaults to the current time in the venue timezone; naive values
    are treated as venue-local.
    """

    t('courts.slots.filter_bookable_starts')

    tz = pytz.timezone(timezone)
    if now is None:
        local_now = datetime.now(tz)
    elif now.tzinfo is None:
        local_now = tz.localize(now)
    else:
        local_now = now.astimezone(tz)

    if target_date != local_now.date():
        return list(starts) if target_date > local_now.date() else []

    current = local_now.hour * 60 + local_now.minute
    bookable: List[str] = []
    for start in starts:
        minutes = parse_clock(start)
        if minutes is not None and minutes > current:
            bookable.append(start)
    return bookable
