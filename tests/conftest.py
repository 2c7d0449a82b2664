import sys
from datetime import timedelta
from pathlib import Path

import numpy as np
import pytest

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from src.port import (
    CapacitySlotManagementSystem,
    Centroid,
    ClockTime,
    DurationDist,
    Gate,
    RoadNetwork,
    Scheduler,
    Terminal,
    TerminalStatistics,
    Yard,
)

START = "2024-03-04T00:00:00"

T1 = Centroid("T1", 51.960, 4.030, "Maasvlakte East")
T2 = Centroid("T2", 51.970, 3.990, "Maasvlakte West")
RTM = Centroid("RTM", 51.922, 4.479, "Rotterdam")
MOE = Centroid("MOE", 51.701, 4.626, "Moerdijk")
DUI = Centroid("DUI", 51.434, 6.762, "Duisburg")


@pytest.fixture
def start():
    return ClockTime.of(START)


@pytest.fixture
def scheduler(start):
    return Scheduler.starting_at(start)


@pytest.fixture
def network():
    return RoadNetwork([T1, T2, RTM, MOE, DUI], port_location=(51.955, 4.040))


@pytest.fixture
def make_terminal(scheduler):
    def _make(centroid, slot_capacity=5, grace=timedelta(minutes=30), use_slots=True, lanes=1):
        gate = Gate(
            scheduler.env,
            f"{centroid.id}.gate",
            lanes,
            lanes,
            DurationDist.constant_minutes(2),
            DurationDist.constant_minutes(1),
        )
        yard = Yard(
            f"{centroid.id}.yard",
            DurationDist.constant_minutes(10),
            DurationDist.constant_minutes(8),
            DurationDist.constant_minutes(15),
        )
        slots = None
        if use_slots:
            slots = CapacitySlotManagementSystem(centroid.id, timedelta(hours=1), grace, grace, slot_capacity)
        stats = TerminalStatistics(centroid.id, scheduler.now)
        return Terminal(centroid.id, centroid.name, centroid, gate, yard, stats, slots)

    return _make


@pytest.fixture
def rng():
    return np.random.default_rng(7)
