"""
Appointments, slots and slot bookings.

A slot is a regular arrival window at a terminal, widened on both sides by a grace period.
A slot booking ties a target arrival time to a slot; its before/after intervals are always
derived from the slot on read.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta

from .clocktime import ClockTime
from .errors import InvalidConfiguration

_ZERO = timedelta(0)


@dataclass(frozen=True)
class Appointment:
    target_time: ClockTime


@dataclass(frozen=True)
class Slot:
    terminal_ref: str
    regular_start: ClockTime
    regular_duration: timedelta
    grace_before: timedelta = _ZERO
    grace_after: timedelta = _ZERO
    id: str = field(default="", compare=False)

    def __post_init__(self) -> None:
        if self.regular_duration < _ZERO:
            raise InvalidConfiguration(f"Slot regular duration must be >= 0, got {self.regular_duration}")
        if self.grace_before < _ZERO or self.grace_after < _ZERO:
            raise InvalidConfiguration(
                f"Slot grace periods must be >= 0, got before={self.grace_before} after={self.grace_after}"
            )

    @property
    def regular_end(self) -> ClockTime:
        return self.regular_start.plus(self.regular_duration)

    @property
    def grace_start(self) -> ClockTime:
        return self.regular_start.minus(self.grace_before)

    @property
    def grace_end(self) -> ClockTime:
        return self.regular_end.plus(self.grace_after)

    def contains(self, time: ClockTime) -> bool:
        return self.regular_start <= time <= self.regular_end


@dataclass(frozen=True)
class SlotBooking(Appointment):
    slot: Slot

    @property
    def regular_duration_before_target(self) -> timedelta:
        return self.target_time.minus(self.slot.regular_start)

    @property
    def regular_duration_after_target(self) -> timedelta:
        return self.slot.regular_end.minus(self.target_time)

    @property
    def grace_duration_before_target(self) -> timedelta:
        return self.regular_duration_before_target + self.slot.grace_before

    @property
    def grace_duration_after_target(self) -> timedelta:
        return self.regular_duration_after_target + self.slot.grace_after

    @property
    def earliest_arrival(self) -> ClockTime:
        return self.target_time.minus(self.grace_duration_before_target)

    @property
    def latest_arrival(self) -> ClockTime:
        return self.target_time.plus(self.grace_duration_after_target)

    def __str__(self) -> str:
        return f"SlotBooking[{self.slot.id or self.slot.terminal_ref} target={self.target_time}]"
