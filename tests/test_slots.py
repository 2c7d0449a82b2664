import sys
from datetime import timedelta
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from src.port import (
    CapacitySlotManagementSystem,
    ClockTime,
    Container,
    InvalidConfiguration,
    NoSlotAvailable,
    Slot,
    SlotBooking,
)
from src.trucking import TransportOrder

from conftest import RTM, T1


def _slot(start="2024-03-04T08:00:00", duration=timedelta(hours=2), before=timedelta(hours=1), after=timedelta(hours=1)):
    return Slot("T1", ClockTime.of(start), duration, before, after)


def _order(target, unique_id=1, margin_before=timedelta(0), margin_after=timedelta(0)):
    return TransportOrder(
        unique_id=unique_id,
        vessel=None,
        container=Container(unique_id),
        load_centroid=T1,
        load_terminal=object(),
        unload_centroid=RTM,
        unload_terminal=None,
        target_time=target,
        margin_before=margin_before,
        margin_after=margin_after,
    )


def test_booking_at_slot_start():
    booking = SlotBooking(ClockTime.of("2024-03-04T08:00:00"), _slot())
    assert booking.regular_duration_before_target == timedelta(0)
    assert booking.regular_duration_after_target == timedelta(hours=2)
    assert booking.grace_duration_before_target == timedelta(hours=1)
    assert booking.grace_duration_after_target == timedelta(hours=3)
    assert booking.earliest_arrival == ClockTime.of("2024-03-04T07:00:00")
    assert booking.latest_arrival == ClockTime.of("2024-03-04T11:00:00")


def test_slot_windows():
    slot = _slot()
    assert slot.regular_end == ClockTime.of("2024-03-04T10:00:00")
    assert slot.grace_start == ClockTime.of("2024-03-04T07:00:00")
    assert slot.grace_end == ClockTime.of("2024-03-04T11:00:00")
    assert slot.contains(ClockTime.of("2024-03-04T09:00:00"))
    assert not slot.contains(ClockTime.of("2024-03-04T10:30:00"))


@pytest.mark.parametrize(
    "duration, before, after",
    [
        (timedelta(hours=-1), timedelta(0), timedelta(0)),
        (timedelta(hours=1), timedelta(minutes=-5), timedelta(0)),
        (timedelta(hours=1), timedelta(0), timedelta(minutes=-5)),
    ],
)
def test_invalid_slot_raises(duration, before, after):
    with pytest.raises(InvalidConfiguration):
        _slot(duration=duration, before=before, after=after)


def test_slot_id_not_part_of_equality():
    a = Slot("T1", ClockTime.of("2024-03-04T08:00:00"), timedelta(hours=1), id="T1[truck].1")
    b = Slot("T1", ClockTime.of("2024-03-04T08:00:00"), timedelta(hours=1), id="other")
    assert a == b


def test_capacity_slots_fill_then_move_to_next_slot():
    sms = CapacitySlotManagementSystem("T1", timedelta(hours=1), timedelta(0), timedelta(hours=1), capacity_per_slot=1)
    target = ClockTime.of("2024-03-04T08:20:00")
    first = sms.book_slot(_order(target, 1))
    assert first.target_time == target
    assert first.slot.regular_start == ClockTime.of("2024-03-04T08:00:00")
    assert first.slot.id.startswith("T1[truck].")

    second = sms.book_slot(_order(target, 2))
    assert second.slot.regular_start == ClockTime.of("2024-03-04T09:00:00")
    assert second.target_time == second.slot.regular_start
    assert sms.nr_booked(first.slot) == 1


def test_capacity_slots_exhausted_raises():
    sms = CapacitySlotManagementSystem("T1", timedelta(hours=1), timedelta(0), timedelta(0), capacity_per_slot=1)
    target = ClockTime.of("2024-03-04T08:20:00")
    sms.book_slot(_order(target, 1))
    with pytest.raises(NoSlotAvailable):
        sms.book_slot(_order(target, 2))


def test_release_frees_capacity():
    sms = CapacitySlotManagementSystem("T1", timedelta(hours=1), timedelta(0), timedelta(0), capacity_per_slot=1)
    target = ClockTime.of("2024-03-04T08:20:00")
    booking = sms.book_slot(_order(target, 1))
    sms.release(booking)
    assert sms.book_slot(_order(target, 2)).slot == booking.slot


def test_explicit_target_overrides_order_target():
    sms = CapacitySlotManagementSystem("T1", timedelta(hours=1), timedelta(0), timedelta(0), capacity_per_slot=2)
    booking = sms.book_slot(_order(ClockTime.of("2024-03-04T08:20:00")), target_time=ClockTime.of("2024-03-04T14:10:00"))
    assert booking.slot.regular_start == ClockTime.of("2024-03-04T14:00:00")


def test_invalid_slot_system_configuration():
    with pytest.raises(InvalidConfiguration):
        CapacitySlotManagementSystem("T1", timedelta(0), timedelta(0), timedelta(0), capacity_per_slot=1)
    with pytest.raises(InvalidConfiguration):
        CapacitySlotManagementSystem("T1", timedelta(hours=1), timedelta(0), timedelta(0), capacity_per_slot=0)


def test_margin_after_widens_forward_search():
    sms = CapacitySlotManagementSystem("T1", timedelta(hours=1), timedelta(0), timedelta(0), capacity_per_slot=1)
    target = ClockTime.of("2024-03-04T08:20:00")
    sms.book_slot(_order(target, 1))
    booking = sms.book_slot(_order(target, 2, margin_after=timedelta(hours=2)))
    assert booking.slot.regular_start == ClockTime.of("2024-03-04T09:00:00")


def test_margin_before_falls_back_on_earlier_slot():
    sms = CapacitySlotManagementSystem("T1", timedelta(hours=1), timedelta(0), timedelta(0), capacity_per_slot=1)
    target = ClockTime.of("2024-03-04T08:20:00")
    sms.book_slot(_order(target, 1))
    booking = sms.book_slot(_order(target, 2, margin_before=timedelta(minutes=45)))
    assert booking.slot.regular_start == ClockTime.of("2024-03-04T07:00:00")
    assert booking.target_time == ClockTime.of("2024-03-04T07:35:00")

    # never before the earliest reachable time
    with pytest.raises(NoSlotAvailable):
        sms.book_slot(
            _order(target, 3, margin_before=timedelta(hours=3)),
            earliest=ClockTime.of("2024-03-04T08:00:00"),
        )


def test_forget_before_drops_past_slots():
    sms = CapacitySlotManagementSystem("T1", timedelta(hours=1), timedelta(0), timedelta(hours=2), capacity_per_slot=1)
    target = ClockTime.of("2024-03-04T08:20:00")
    for nr in range(1, 4):
        sms.book_slot(_order(target, nr))
    late = sms.book_slot(_order(ClockTime.of("2024-03-04T12:00:00"), 9))

    assert sms.forget_before(ClockTime.of("2024-03-04T11:00:00")) == 3
    assert sms.forget_before(ClockTime.of("2024-03-04T11:00:00")) == 0
    assert sms.nr_booked(late.slot) == 1
    assert len(sms._slots) == 1
    sms.release(late)
    assert sms.nr_booked(late.slot) == 0
