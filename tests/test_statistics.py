import sys
from datetime import timedelta
from pathlib import Path

import numpy as np

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from src.port import (
    ClockTime,
    Container,
    TerminalStatistics,
    TransportMode,
    Vessel,
    VesselType,
)


class FakeClock:
    def __init__(self, start):
        self.now = start

    def __call__(self):
        return self.now


def _assert_consistent(data):
    for record in (data.nr_containers, data.nr_teu):
        assert record.full + record.empty == record.total
        assert record.general + record.reefer == record.total
        assert record.ft20 + record.ft40 == record.total


def test_category_invariants_hold_for_random_interleavings():
    rng = np.random.default_rng(11)
    stats = TerminalStatistics("T1", FakeClock(ClockTime.of("2024-03-04T00:00:00")))
    in_yard = []
    for nr in range(300):
        if in_yard and rng.random() < 0.4:
            container = in_yard.pop(int(rng.integers(len(in_yard))))
            stats.remove_container_yard(container, TransportMode.TRUCK)
        else:
            full = bool(rng.random() < 0.8)
            container = Container(
                nr,
                size=int(rng.choice([20, 40, 45])),
                full=full,
                reefer=full and bool(rng.random() < 0.2),
            )
            in_yard.append(container)
            stats.add_container_yard(container, TransportMode.DEEPSEA)
        _assert_consistent(stats.total)
        _assert_consistent(stats.periodic)
    assert stats.total.nr_containers.total == len(in_yard)
    assert stats.total.nr_teu.total == sum(c.teu for c in in_yard)


def test_teu_counts_40ft_as_two():
    stats = TerminalStatistics("T1", FakeClock(ClockTime.of("2024-03-04T00:00:00")))
    stats.add_container_yard(Container(1, size=40), TransportMode.DEEPSEA)
    stats.add_container_yard(Container(2, size=20), TransportMode.DEEPSEA)
    assert stats.total.nr_teu.total == 3
    assert stats.total.nr_teu.ft40 == 2
    assert stats.total.nr_teu_arrivals[TransportMode.DEEPSEA] == 3


def test_remove_counts_departures_not_arrivals():
    stats = TerminalStatistics("T1", FakeClock(ClockTime.of("2024-03-04T00:00:00")))
    container = Container(1)
    stats.add_container_yard(container, TransportMode.FEEDER)
    stats.remove_container_yard(container, TransportMode.RAIL)
    assert stats.total.nr_container_arrivals[TransportMode.FEEDER] == 1
    assert stats.total.nr_container_departures[TransportMode.RAIL] == 1
    assert stats.total.nr_containers.total == 0
    assert stats.periodic.nr_container_departures[TransportMode.RAIL] == 1


def test_periodic_reset_keeps_stock_and_clears_flows():
    clock = FakeClock(ClockTime.of("2024-03-04T00:00:00"))
    stats = TerminalStatistics("T1", clock)
    stats.vessel_arrival(Vessel(1, "V1", VesselType.DEEPSEA))
    stats.add_container_yard(Container(1, size=40), TransportMode.DEEPSEA)
    stats.inc_truck_visit_pickup()

    clock.now = clock.now.plus(timedelta(days=1))
    stats.reset_periodic_statistics()
    assert stats.periodic.start_time == clock.now
    assert stats.periodic.nr_vessel_arrivals == 0
    assert stats.periodic.nr_truck_visits == 0
    assert stats.periodic.nr_containers.total == 1
    assert stats.periodic.nr_teu.total == 2
    assert stats.total.nr_deepsea_arrivals == 1
    assert stats.total.nr_truck_visits_pickup == 1

    # the periodic copy is independent of the total record
    stats.add_container_yard(Container(2), TransportMode.TRUCK)
    assert stats.periodic.nr_containers.total == 2
    assert stats.total.nr_containers.total == 2


def test_warmup_reset_zeroes_everything():
    clock = FakeClock(ClockTime.of("2024-03-04T00:00:00"))
    stats = TerminalStatistics("T1", clock)
    stats.add_container_yard(Container(1), TransportMode.DEEPSEA)
    stats.vessel_departure(Vessel(2, "F2", VesselType.FEEDER))
    clock.now = clock.now.plus(timedelta(days=2))
    stats.reset_total_statistics()
    assert stats.warmup_time == clock.now
    assert stats.total.nr_containers.total == 0
    assert stats.total.nr_feeder_departures == 0
    assert stats.periodic.start_time == clock.now


def test_to_dict_is_flat():
    stats = TerminalStatistics("T1", FakeClock(ClockTime.of("2024-03-04T00:00:00")))
    stats.add_container_yard(Container(1, reefer=True), TransportMode.BARGE)
    row = stats.total.to_dict()
    assert row["start_time"] == "2024-03-04T00:00:00"
    assert row["containers_reefer"] == 1
    assert row["containers_in_barge"] == 1
    assert all(not isinstance(v, dict) for v in row.values())
