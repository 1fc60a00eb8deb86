"""
Slot arithmetic and conflict policies for appointment booking.

Appointment times are stored as ``HH:MM`` labels next to a calendar date, not
as timestamps. The booking day runs from 09:00 up to but not including 17:00
in 30 minute slots.

Two conflict policies are available:

* ``exact``: an existing active appointment blocks only its own label. An
  09:00 booking lasting an hour does not block 09:30.
* ``overlap``: the ``[start, start + duration)`` intervals are compared, so
  the same 09:00 booking blocks both 09:00 and 09:30.
"""
import re
from abc import ABC, abstractmethod
from typing import Iterable, Iterator, List, Optional

DAY_START_MINUTES = 9 * 60
DAY_END_MINUTES = 17 * 60
SLOT_MINUTES = 30

TIME_LABEL = re.compile(r"^([0-1]?[0-9]|2[0-3]):([0-5][0-9])$")


def normalize_time_label(value: str) -> str:
    """Validate an ``H:MM``/``HH:MM`` label and zero-pad the hour."""
    match = TIME_LABEL.match(value.strip()) if isinstance(value, str) else None
    if not match:
        raise ValueError("Valid time format (HH:MM) is required")
    return f"{int(match.group(1)):02d}:{match.group(2)}"


def label_to_minutes(label: str) -> int:
    hours, minutes = normalize_time_label(label).split(":")
    return int(hours) * 60 + int(minutes)


def minutes_to_label(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def iter_slot_labels(
    start: int = DAY_START_MINUTES,
    end: int = DAY_END_MINUTES,
    step: int = SLOT_MINUTES,
) -> Iterator[str]:
    for minutes in range(start, end, step):
        yield minutes_to_label(minutes)


class ConflictPolicy(ABC):
    """Decides whether a proposed booking collides with existing ones.

    ``existing`` is any iterable of objects exposing ``appointment_time`` and
    ``duration``; callers pass only appointments that still hold their slot.
    """

    name = "base"

    @abstractmethod
    def collides(self, time_label: str, duration: int, other) -> bool:
        ...

    def find_conflict(self, time_label: str, duration: int, existing: Iterable):
        for appointment in existing:
            if self.collides(time_label, duration, appointment):
                return appointment
        return None


class ExactSlotPolicy(ConflictPolicy):
    name = "exact"

    def collides(self, time_label, duration, other):
        return normalize_time_label(other.appointment_time) == normalize_time_label(time_label)


class OverlapPolicy(ConflictPolicy):
    name = "overlap"

    def collides(self, time_label, duration, other):
        start = label_to_minutes(time_label)
        other_start = label_to_minutes(other.appointment_time)
        other_duration = other.duration or SLOT_MINUTES
        return start < other_start + other_duration and other_start < start + (duration or SLOT_MINUTES)


CONFLICT_POLICIES = {
    ExactSlotPolicy.name: ExactSlotPolicy,
    OverlapPolicy.name: OverlapPolicy,
}


def get_conflict_policy(name: str) -> ConflictPolicy:
    try:
        return CONFLICT_POLICIES[name]()
    except KeyError:
        raise ValueError(f"Unknown conflict policy '{name}'. Choose from {sorted(CONFLICT_POLICIES)}")


def available_slots(existing: Iterable, policy: Optional[ConflictPolicy] = None) -> List[str]:
    """Every free slot label of the booking day, ascending."""
    policy = policy or ExactSlotPolicy()
    existing = list(existing)
    return [
        label for label in iter_slot_labels()
        if policy.find_conflict(label, SLOT_MINUTES, existing) is None
    ]


def slot_lock_key(doctor_id: int, day, time_label: str) -> str:
    """Unique key for an occupied slot, stored while slot locking is enabled."""
    return f"{doctor_id}:{day.isoformat()}:{normalize_time_label(time_label)}"
