import logging
import sys
from datetime import timedelta
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from src.port import Container, Slot, SlotBooking, TransportMode
from src.trucking import (
    OrderFactory,
    PlannedDrivingActivity,
    PlannedTerminalActivity,
    RealizedDrivingActivity,
    RealizedTerminalActivity,
    TerminalActivityType,
    Truck,
    TruckingCompany,
    TruckState,
)

from conftest import RTM, T1


def _centroids():
    return frozenset({T1})


def test_single_import_trip_runs_to_completion(scheduler, network, make_terminal, start):
    t1 = make_terminal(T1)
    container = Container(77, size=40)
    t1.yard.receive_from_vessel(container)
    finished, delivered = [], []
    company = TruckingCompany(
        "TC", scheduler, network, _centroids,
        on_truck_finished=finished.append,
        on_hinterland_delivery=lambda truck, c, centroid: delivered.append((c, centroid)),
    )
    order = OrderFactory().create(
        vessel=None, container=container, load_centroid=T1, load_terminal=t1,
        unload_centroid=RTM, unload_terminal=None, target_time=start.plus(timedelta(hours=10)),
    )
    company.add_transport_order(order)
    company.start()
    scheduler.run(until=start.plus(timedelta(hours=23)))

    assert len(finished) == 1
    truck = finished[0]
    assert truck.state is TruckState.FINISHED
    assert truck.is_empty
    assert delivered == [(container, RTM)]
    assert container not in t1.yard
    assert t1.statistics.total.nr_truck_visits_pickup == 1
    assert t1.statistics.total.nr_container_departures[TransportMode.TRUCK] == 1

    drive_in, visit, drive_out = truck.realized_activities
    assert isinstance(drive_in, RealizedDrivingActivity) and isinstance(drive_out, RealizedDrivingActivity)
    assert isinstance(visit, RealizedTerminalActivity)
    assert not visit.missed_slot
    assert visit.waiting_time_in == timedelta(0)
    assert visit.actual_gate_time_in == timedelta(minutes=2)
    assert visit.actual_handling_time == timedelta(minutes=10)
    assert visit.actual_gate_time_out == timedelta(minutes=1)
    assert visit.turnaround_time == timedelta(minutes=13)
    assert visit.containers_picked_up == [container]
    assert not t1.gate.queue_in and not t1.gate.queue_out


def _manual_dropoff_truck(scheduler, terminal, start, arrive_after, slot_start, slot_length):
    truck = Truck(1, "TC", scheduler, _centroids)
    container = Container(5)
    slot = Slot("T1", slot_start, slot_length)
    booking = SlotBooking(slot_start, slot)
    arrival = start.plus(arrive_after)
    truck.add_activity(PlannedDrivingActivity(truck, RTM, T1, container, None, start, arrival, 40.0))
    truck.add_activity(PlannedTerminalActivity(
        truck, terminal, booking, TerminalActivityType.DROPOFF, dropoff1=container,
    ))
    back = arrival.plus(timedelta(minutes=30))
    truck.add_activity(PlannedDrivingActivity(truck, T1, RTM, None, None, back, back.plus(timedelta(minutes=40)), 40.0))
    return truck, container


def test_late_truck_gets_penalty(scheduler, make_terminal, start, caplog):
    t1 = make_terminal(T1)
    truck, container = _manual_dropoff_truck(
        scheduler, t1, start, timedelta(hours=1), start, timedelta(minutes=30)
    )
    truck.start_plan()
    with caplog.at_level(logging.WARNING):
        scheduler.run(until=start.plus(timedelta(hours=6)))

    visit = truck.realized_activities[1]
    assert visit.missed_slot
    assert visit.waiting_time_in == timedelta(hours=1)
    assert visit.actual_arrival_time == start.plus(timedelta(hours=1))
    assert truck.state is TruckState.FINISHED
    assert container in t1.yard
    assert t1.statistics.total.nr_truck_visits_delivery == 1
    assert "missed" in caplog.text


def test_early_truck_waits_for_grace_window(scheduler, make_terminal, start):
    t1 = make_terminal(T1)
    slot_start = start.plus(timedelta(hours=3))
    truck, _ = _manual_dropoff_truck(scheduler, t1, start, timedelta(hours=1), slot_start, timedelta(hours=1))
    truck.start_plan()
    scheduler.run(until=start.plus(timedelta(hours=6)))

    visit = truck.realized_activities[1]
    assert not visit.missed_slot
    assert visit.waiting_time_in == timedelta(hours=2)


def test_gate_lanes_queue_trucks(scheduler, make_terminal, start):
    t1 = make_terminal(T1, lanes=1)
    trucks = []
    for nr in range(2):
        truck = Truck(nr, "TC", scheduler, _centroids)
        container = Container(10 + nr)
        arrival = start.plus(timedelta(minutes=30))
        truck.add_activity(PlannedDrivingActivity(truck, RTM, T1, container, None, start, arrival, 30.0))
        truck.add_activity(PlannedTerminalActivity(
            truck, t1, SlotBooking(arrival, Slot("T1", arrival, timedelta(hours=1))),
            TerminalActivityType.DROPOFF, dropoff1=container,
        ))
        truck.start_plan()
        trucks.append(truck)
    scheduler.run(until=start.plus(timedelta(hours=3)))

    first, second = (t.realized_activities[1] for t in trucks)
    assert first.gate_queue_time_in == timedelta(0)
    assert second.gate_queue_time_in == timedelta(minutes=2)
    assert all(t.state is TruckState.FINISHED for t in trucks)


def test_truck_without_plan_logs_error(scheduler, caplog):
    truck = Truck(9, "TC", scheduler, _centroids)
    with caplog.at_level(logging.ERROR):
        truck.start_plan()
    assert "does not have a plan" in caplog.text
    assert truck.state is TruckState.IDLE
