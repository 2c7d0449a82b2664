import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from src.port import Container, SimPortError
from src.trucking import Truck

from conftest import T1


def _truck(scheduler, nr=1):
    return Truck(nr, "TC", scheduler, lambda: frozenset({T1}))


def test_pickup_container_scenario(scheduler, make_terminal):
    yard = make_terminal(T1).yard
    container = Container(42, size=40)
    yard.receive_from_vessel(container)
    truck = _truck(scheduler)

    yard.pickup_container(truck, container)
    assert container not in yard
    assert not truck.is_empty
    assert truck.containers == [container]

    with pytest.raises(SimPortError):
        yard.pickup_container(_truck(scheduler, 2), container)


def test_pickup_requires_empty_truck(scheduler, make_terminal):
    yard = make_terminal(T1).yard
    yard.receive_from_vessel(Container(1))
    truck = _truck(scheduler)
    truck.load_container(Container(2))
    with pytest.raises(SimPortError):
        yard.pickup_container(truck, Container(1))


def test_dropoff_container(scheduler, make_terminal):
    yard = make_terminal(T1).yard
    truck = _truck(scheduler)
    with pytest.raises(SimPortError):
        yard.dropoff_container(truck)
    truck.load_container(Container(3))
    assert yard.dropoff_container(truck) == [Container(3)]
    assert truck.is_empty
    assert Container(3) in yard
    assert yard.nr_teu == 1


def test_release_container(make_terminal):
    yard = make_terminal(T1).yard
    container = Container(5)
    yard.receive_from_vessel(container)
    assert yard.release_container(container)
    assert not yard.release_container(container)
    assert len(yard) == 0


def test_truck_load_limits(scheduler):
    truck = _truck(scheduler)
    truck.load_container(Container(1, size=20))
    truck.load_container(Container(2, size=20))
    with pytest.raises(SimPortError):
        truck.load_container(Container(3, size=20))

    heavy = _truck(scheduler, 2)
    heavy.load_container(Container(4, size=40))
    with pytest.raises(SimPortError):
        heavy.load_container(Container(5, size=20))


def test_gate_queues(scheduler, make_terminal):
    gate = make_terminal(T1, lanes=2).gate
    a, b = _truck(scheduler, 1), _truck(scheduler, 2)
    gate.add_truck_in(a)
    gate.add_truck_in(b)
    assert list(gate.queue_in) == [a, b]
    gate.leave_queue_in(a)
    assert list(gate.queue_in) == [b]
    gate.add_truck_out(a)
    gate.leave_queue_out(a)
    assert not gate.queue_out
    assert gate.current_lanes_in == 2
    assert gate.average_time_in.total_seconds() == 120
    assert gate.draw_handling_time_out().total_seconds() == 60
