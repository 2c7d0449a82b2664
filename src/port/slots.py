from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections import Counter
from datetime import timedelta
from typing import TYPE_CHECKING, Dict, Optional

from .appointment import Slot, SlotBooking
from .clocktime import ClockTime
from .errors import InvalidConfiguration, NoSlotAvailable

if TYPE_CHECKING:
    from ..trucking.orders import TransportOrder

logger = logging.getLogger(__name__)


class SlotManagementSystem(ABC):
    """
    Booking protocol of one terminal.

    A booking's regular window contains (or directly follows) the requested target time and
    its grace window is the regular window widened by the configured grace periods. How
    competing requests share a slot is up to the subclass.
    """

    def __init__(
        self,
        terminal_id: str,
        slot_duration: timedelta,
        grace_period_before: timedelta,
        grace_period_after: timedelta,
    ):
        if slot_duration <= timedelta(0):
            raise InvalidConfiguration("slot_duration must be positive.")
        if grace_period_before < timedelta(0) or grace_period_after < timedelta(0):
            raise InvalidConfiguration("Grace periods must be >= 0.")
        self.terminal_id = terminal_id
        self.slot_duration = slot_duration
        self.grace_period_before = grace_period_before
        self.grace_period_after = grace_period_after

    @abstractmethod
    def book_slot(
        self,
        transport_order: "TransportOrder",
        target_time: Optional[ClockTime] = None,
        earliest: Optional[ClockTime] = None,
    ) -> SlotBooking:
        """
        Book a slot for the order; `target_time` overrides the order's own target and no
        booking targets a time before `earliest`.
        """

    def release(self, booking: SlotBooking) -> None:
        """Give a booking back; subclasses that track capacity override this."""

    def forget_before(self, time: ClockTime) -> int:
        """Drop bookkeeping of slots that ended before `time`."""
        return 0


class CapacitySlotManagementSystem(SlotManagementSystem):
    """
    Fixed-length slots aligned on the slot duration, each with a fixed number of bookings.

    Requests are served first come, first served. When the slot containing the target is
    full, later slots are tried; the booking then targets the start of that slot. The search
    stops once slot starts move beyond the grace period (or the order's `margin_after`, when
    larger) after the requested target. An order with a `margin_before` may then take the
    latest free earlier slot within that margin.
    """

    def __init__(
        self,
        terminal_id: str,
        slot_duration: timedelta,
        grace_period_before: timedelta,
        grace_period_after: timedelta,
        capacity_per_slot: int,
        slot_type: str = "truck",
    ):
        super().__init__(terminal_id, slot_duration, grace_period_before, grace_period_after)
        if capacity_per_slot < 1:
            raise InvalidConfiguration("capacity_per_slot must be >= 1.")
        self.capacity_per_slot = capacity_per_slot
        self.slot_type = slot_type
        self._bookings: Counter = Counter()
        self._slots: Dict[int, Slot] = {}

    def _slot_nr(self, time: ClockTime) -> int:
        return int(time.seconds // self.slot_duration.total_seconds())

    def slot(self, slot_nr: int) -> Slot:
        slot = self._slots.get(slot_nr)
        if slot is None:
            slot = Slot(
                terminal_ref=self.terminal_id,
                regular_start=ClockTime(slot_nr * self.slot_duration.total_seconds()),
                regular_duration=self.slot_duration,
                grace_before=self.grace_period_before,
                grace_after=self.grace_period_after,
                id=f"{self.terminal_id}[{self.slot_type}].{slot_nr}",
            )
            self._slots[slot_nr] = slot
        return slot

    def nr_booked(self, slot: Slot) -> int:
        return self._bookings[self._slot_nr(slot.regular_start)]

    def book_slot(
        self,
        transport_order: "TransportOrder",
        target_time: Optional[ClockTime] = None,
        earliest: Optional[ClockTime] = None,
    ) -> SlotBooking:
        target = target_time or transport_order.target_time
        latest_start = target.plus(max(self.grace_period_after, transport_order.margin_after))
        first_nr = self._slot_nr(target)
        slot_nr = first_nr
        while True:
            slot = self.slot(slot_nr)
            if slot.regular_start > latest_start:
                break
            if self._bookings[slot_nr] < self.capacity_per_slot:
                self._bookings[slot_nr] += 1
                booked_target = target if slot.contains(target) else slot.regular_start
                return SlotBooking(booked_target, slot)
            slot_nr += 1

        # orders that tolerate an earlier visit fall back on earlier slots, latest first
        floor = target.minus(transport_order.margin_before)
        if earliest is not None and earliest > floor:
            floor = earliest
        slot_nr = first_nr - 1
        while floor < target:
            slot = self.slot(slot_nr)
            if slot.regular_end <= floor:
                break
            if self._bookings[slot_nr] < self.capacity_per_slot:
                self._bookings[slot_nr] += 1
                return SlotBooking(max(slot.regular_start, floor), slot)
            slot_nr -= 1
        raise NoSlotAvailable(
            f"No slot at terminal {self.terminal_id} for order {transport_order.unique_id} around {target}"
        )

    def release(self, booking: SlotBooking) -> None:
        slot_nr = self._slot_nr(booking.slot.regular_start)
        if self._bookings[slot_nr] > 0:
            self._bookings[slot_nr] -= 1

    def forget_before(self, time: ClockTime) -> int:
        """Drop bookkeeping of slots that ended at or before `time`; returns how many went."""
        stale = [nr for nr, slot in self._slots.items() if slot.regular_end <= time]
        for nr in stale:
            del self._slots[nr]
            self._bookings.pop(nr, None)
        return len(stale)
