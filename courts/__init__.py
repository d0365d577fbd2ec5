"""Court catalog models and slot derivation."""

from .models import Court, TimeSlot
from .slots import (
    SlotTemplate,
    filter_bookable_starts,
    format_clock,
    generate_time_slots,
    parse_clock,
    parse_duration,
    slot_for_start,
    slot_starts,
)

__all__ = [
    "Court",
    "TimeSlot",
    "SlotTemplate",
    "filter_bookable_starts",
    "format_clock",
    "generate_time_slots",
    "parse_clock",
    "parse_duration",
    "slot_for_start",
    "slot_starts",
]
