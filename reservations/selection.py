"""User slot selection for one court on one date."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date
from decimal import Decimal
from typing import Iterable, Tuple, Union

from courts.models import Court, TimeSlot
from checkout.errors import ValidationError
from courts.slots import slot_for_start
from payments.amounts import line_total
from tracking import t

SlotLike = Union[TimeSlot, str]


@dataclass(frozen=True)
class BookingSelection:
    """Ephemeral set of chosen slots, kept sorted by start time.

    Set semantics: a slot appears at most once, and the order in which slots
    were picked does not matter.
    """

    court: Court
    booking_date: date
    slots: Tuple[TimeSlot, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        t('reservations.selection.BookingSelection.__post_init__')
        object.__setattr__(self, "slots", tuple(sorted(set(self.slots))))

    @classmethod
    def empty(cls, court: Court, booking_date: date) -> "BookingSelection":
        t('reservations.selection.BookingSelection.empty')
        return cls(court=court, booking_date=booking_date)

    @classmethod
    def from_starts(
        cls,
        court: Court,
        booking_date: date,
        starts: Iterable[str],
    ) -> "BookingSelection":
        """Build a selection from start times such as ``["10:00", "11:00"]``."""
        t('reservations.selection.BookingSelection.from_starts')
        selection = cls.empty(court, booking_date)
        for start in starts:
            selection = selection.select(start)
        return selection

    def _coerce(self, slot: SlotLike) -> TimeSlot:
        t('reservations.selection.BookingSelection._coerce')
        if isinstance(slot, TimeSlot):
            return slot
        try:
            return slot_for_start(slot, self.court.slot_duration_minutes)
        except ValueError as exc:
            raise ValidationError(str(exc), field="slots") from exc

    def select(self, slot: SlotLike) -> "BookingSelection":
        t('reservations.selection.BookingSelection.select')
        return replace(self, slots=self.slots + (self._coerce(slot),))

    def deselect(self, slot: SlotLike) -> "BookingSelection":
        t('reservations.selection.BookingSelection.deselect')
        target = self._coerce(slot)
        return replace(self, slots=tuple(s for s in self.slots if s != target))

    def toggle(self, slot: SlotLike) -> "BookingSelection":
        """Select an unselected slot or deselect a selected one."""
        t('reservations.selection.BookingSelection.toggle')
        target = self._coerce(slot)
        if target in self.slots:
            return self.deselect(target)
        return self.select(target)

    def for_court(self, court: Court) -> "BookingSelection":
        """Switching court starts over with an empty selection."""
        t('reservations.selection.BookingSelection.for_court')
        return BookingSelection.empty(court, self.booking_date)

    def for_date(self, booking_date: date) -> "BookingSelection":
        t('reservations.selection.BookingSelection.for_date')
        return BookingSelection.empty(self.court, booking_date)

    @property
    def count(self) -> int:
        return len(self.slots)

    @property
    def total(self) -> Decimal:
        """Displayed total in a two-decimal currency (zero when the court has no price)."""
        return self.total_for(2)

    def total_for(self, exponent: int) -> Decimal:
        """Rounded the same way as the charged total, for a currency with ``exponent`` decimals."""
        t('reservations.selection.BookingSelection.total_for')
        if self.court.slot_price is None:
            return Decimal(0)
        return line_total(self.court.slot_price, len(self.slots), exponent)
