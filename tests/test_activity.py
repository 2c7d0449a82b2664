import sys
from datetime import timedelta
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from src.port import Appointment, ClockTime, Container
from src.trucking import (
    PlannedDrivingActivity,
    PlannedTerminalActivity,
    RealizedDrivingActivity,
    RealizedTerminalActivity,
    TerminalActivityType,
)

from conftest import RTM, T1

T = ClockTime.of("2024-03-04T08:00:00")


def test_driving_activity_cannot_arrive_before_departure():
    with pytest.raises(ValueError):
        PlannedDrivingActivity(None, RTM, T1, None, None, T, T.minus(timedelta(minutes=1)), 40.0)


def test_driving_activity_views():
    pda = PlannedDrivingActivity(None, RTM, T1, Container(1), None, T, T.plus(timedelta(minutes=30)), 30.0)
    assert pda.is_loaded()
    assert pda.containers == [Container(1)]
    assert pda.duration == timedelta(minutes=30)
    assert pda.avg_speed_kmh == pytest.approx(60.0)


@pytest.mark.parametrize(
    "activity_type, kwargs",
    [
        (TerminalActivityType.DROPOFF, {}),
        (TerminalActivityType.DROPOFF, {"dropoff1": Container(1), "pickup1": Container(2)}),
        (TerminalActivityType.PICKUP, {"dropoff1": Container(1)}),
        (TerminalActivityType.DUAL, {"pickup1": Container(2)}),
    ],
)
def test_terminal_activity_rejects_inconsistent_containers(make_terminal, activity_type, kwargs):
    with pytest.raises(ValueError):
        PlannedTerminalActivity(None, make_terminal(T1), Appointment(T), activity_type, **kwargs)


def test_realized_activities_track_planned(make_terminal):
    terminal = make_terminal(T1)
    pda = PlannedDrivingActivity(None, RTM, T1, None, None, T, T.plus(timedelta(minutes=30)), 30.0)
    rda = RealizedDrivingActivity.of(pda)
    assert rda.actual_duration is None
    rda.actual_departure_time = T
    rda.actual_arrival_time = T.plus(timedelta(minutes=40))
    assert rda.actual_duration == timedelta(minutes=40)
    assert rda.delay == timedelta(minutes=10)
    assert rda.is_empty()

    pta = PlannedTerminalActivity(
        None, terminal, Appointment(T), TerminalActivityType.DUAL, pickup1=Container(1), dropoff1=Container(2)
    )
    rta = RealizedTerminalActivity.of(pta, T)
    assert rta.terminal is terminal
    assert rta.turnaround_time is None
    rta.departure_time = T.plus(timedelta(minutes=45))
    assert rta.turnaround_time == timedelta(minutes=45)
    assert pta.pickups == [Container(1)]
    assert pta.dropoffs == [Container(2)]
