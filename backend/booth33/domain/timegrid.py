"""
The studio's fixed daily time grid.

Thirteen hourly start slots, 9:00 AM through 9:00 PM. A reservation of N hours
occupies N consecutive slots from its start, cut off at the last slot of the
day; nothing wraps into the next day.
"""

from dataclasses import dataclass
from typing import Optional

SLOT_LABELS: tuple[str, ...] = (
    "9:00 AM", "10:00 AM", "11:00 AM", "12:00 PM",
    "1:00 PM", "2:00 PM", "3:00 PM", "4:00 PM",
    "5:00 PM", "6:00 PM", "7:00 PM", "8:00 PM", "9:00 PM",
)

OPENING_HOUR = 9
SLOTS_PER_DAY = len(SLOT_LABELS)

_INDEX_BY_LABEL = {label: i for i, label in enumerate(SLOT_LABELS)}


@dataclass(frozen=True, order=True)
class TimeSlot:
    index: int

    def __post_init__(self):
        if not 0 <= self.index < SLOTS_PER_DAY:
            raise ValueError(f"Slot index out of range: {self.index}")

    @classmethod
    def parse(cls, label: str) -> Optional["TimeSlot"]:
        """Look up a slot by label. Unknown labels give None, not an error."""
        index = _INDEX_BY_LABEL.get(label)
        return cls(index) if index is not None else None

    @classmethod
    def from_label(cls, label: str) -> "TimeSlot":
        slot = cls.parse(label)
        if slot is None:
            raise ValueError(f"Unknown time slot: {label!r}")
        return slot

    @classmethod
    def all(cls) -> list["TimeSlot"]:
        return [cls(i) for i in range(SLOTS_PER_DAY)]

    @property
    def label(self) -> str:
        return SLOT_LABELS[self.index]

    @property
    def hour(self) -> int:
        """24-hour clock hour the slot starts at."""
        return OPENING_HOUR + self.index

    @property
    def is_last(self) -> bool:
        return self.index == SLOTS_PER_DAY - 1

    def __add__(self, hours: int) -> "TimeSlot":
        # Clamped to the day boundary
        return TimeSlot(max(0, min(self.index + hours, SLOTS_PER_DAY - 1)))

    def span(self, duration: int) -> tuple["TimeSlot", ...]:
        """Slots occupied by a `duration`-hour reservation starting here."""
        end = min(self.index + max(duration, 0), SLOTS_PER_DAY)
        return tuple(TimeSlot(i) for i in range(self.index, end))

    def __str__(self) -> str:
        return self.label


def is_valid_label(label: str) -> bool:
    return label in _INDEX_BY_LABEL


def occupied_labels(label: str, duration: int) -> frozenset[str]:
    """Labels covered by a reservation; empty when the start label is unknown."""
    start = TimeSlot.parse(label)
    if start is None:
        return frozenset()
    return frozenset(slot.label for slot in start.span(duration))
