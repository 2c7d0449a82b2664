"""
Planned and realized truck activities.

Planned activities are fixed once the planner creates them. A realized activity is created
when the truck starts the matching planned activity and is filled in as execution goes on;
it only reads from its planned counterpart.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from ..port.appointment import Appointment
from ..port.cargo import Container
from ..port.clocktime import ClockTime
from ..port.network import Centroid

if TYPE_CHECKING:
    from ..port.terminal import Terminal
    from .truck import Truck


class TerminalActivityType(Enum):
    PICKUP = "pickup"
    DROPOFF = "dropoff"
    DUAL = "dual"

    @property
    def is_pickup(self) -> bool:
        return self is TerminalActivityType.PICKUP

    @property
    def is_dropoff(self) -> bool:
        return self is TerminalActivityType.DROPOFF

    @property
    def is_dual(self) -> bool:
        return self is TerminalActivityType.DUAL


@dataclass(frozen=True, eq=False)
class PlannedTruckActivity:
    truck: "Truck"


@dataclass(frozen=True, eq=False)
class PlannedDrivingActivity(PlannedTruckActivity):
    orig_centroid: Centroid
    dest_centroid: Centroid
    container1: Optional[Container]
    container2: Optional[Container]
    departure_time: ClockTime
    arrival_time: ClockTime
    distance: float

    def __post_init__(self) -> None:
        if self.arrival_time < self.departure_time:
            raise ValueError(f"Driving activity arrives ({self.arrival_time}) before it departs ({self.departure_time}).")

    def is_empty(self) -> bool:
        return self.container1 is None and self.container2 is None

    def is_loaded(self) -> bool:
        return not self.is_empty()

    @property
    def containers(self) -> List[Container]:
        return [c for c in (self.container1, self.container2) if c is not None]

    @property
    def duration(self) -> timedelta:
        return self.arrival_time.minus(self.departure_time)

    @property
    def avg_speed_kmh(self) -> float:
        hours = self.duration.total_seconds() / 3600.0
        return self.distance / hours if hours > 0 else 0.0


@dataclass(frozen=True, eq=False)
class PlannedTerminalActivity(PlannedTruckActivity):
    terminal: "Terminal"
    appointment: Appointment
    activity_type: TerminalActivityType
    pickup1: Optional[Container] = None
    pickup2: Optional[Container] = None
    dropoff1: Optional[Container] = None
    dropoff2: Optional[Container] = None

    def __post_init__(self) -> None:
        has_pickup = self.pickup1 is not None or self.pickup2 is not None
        has_dropoff = self.dropoff1 is not None or self.dropoff2 is not None
        if self.activity_type.is_dropoff and (self.dropoff1 is None or has_pickup):
            raise ValueError("Dropoff activity needs a dropoff container and no pickup container.")
        if self.activity_type.is_pickup and (self.pickup1 is None or has_dropoff):
            raise ValueError("Pickup activity needs a pickup container and no dropoff container.")
        if self.activity_type.is_dual and (self.pickup1 is None or self.dropoff1 is None):
            raise ValueError("Dual activity needs both a pickup and a dropoff container.")

    @property
    def pickups(self) -> List[Container]:
        return [c for c in (self.pickup1, self.pickup2) if c is not None]

    @property
    def dropoffs(self) -> List[Container]:
        return [c for c in (self.dropoff1, self.dropoff2) if c is not None]


@dataclass(eq=False)
class RealizedTruckActivity:
    truck: "Truck"


@dataclass(eq=False)
class RealizedDrivingActivity(RealizedTruckActivity):
    planned: PlannedDrivingActivity
    actual_departure_time: Optional[ClockTime] = None
    actual_arrival_time: Optional[ClockTime] = None

    @classmethod
    def of(cls, planned: PlannedDrivingActivity) -> "RealizedDrivingActivity":
        return cls(truck=planned.truck, planned=planned)

    def is_empty(self) -> bool:
        return self.planned.is_empty()

    @property
    def orig_centroid(self) -> Centroid:
        return self.planned.orig_centroid

    @property
    def dest_centroid(self) -> Centroid:
        return self.planned.dest_centroid

    @property
    def distance(self) -> float:
        return self.planned.distance

    @property
    def planned_duration(self) -> timedelta:
        return self.planned.duration

    @property
    def actual_duration(self) -> Optional[timedelta]:
        if self.actual_departure_time is None or self.actual_arrival_time is None:
            return None
        return self.actual_arrival_time.minus(self.actual_departure_time)

    @property
    def delay(self) -> Optional[timedelta]:
        if self.actual_arrival_time is None:
            return None
        return self.actual_arrival_time.minus(self.planned.arrival_time)


@dataclass(eq=False)
class RealizedTerminalActivity(RealizedTruckActivity):
    planned: PlannedTerminalActivity
    actual_arrival_time: ClockTime
    waiting_time_in: timedelta = timedelta(0)
    gate_queue_time_in: timedelta = timedelta(0)
    actual_gate_time_in: Optional[timedelta] = None
    actual_handling_time: Optional[timedelta] = None
    gate_queue_time_out: timedelta = timedelta(0)
    actual_gate_time_out: Optional[timedelta] = None
    departure_time: Optional[ClockTime] = None
    missed_slot: bool = False
    containers_delivered: List[Container] = field(default_factory=list)
    containers_picked_up: List[Container] = field(default_factory=list)

    @classmethod
    def of(cls, planned: PlannedTerminalActivity, arrival_time: ClockTime) -> "RealizedTerminalActivity":
        return cls(truck=planned.truck, planned=planned, actual_arrival_time=arrival_time)

    @property
    def terminal(self) -> "Terminal":
        return self.planned.terminal

    @property
    def appointment(self) -> Appointment:
        return self.planned.appointment

    @property
    def activity_type(self) -> TerminalActivityType:
        return self.planned.activity_type

    @property
    def turnaround_time(self) -> Optional[timedelta]:
        if self.departure_time is None:
            return None
        return self.departure_time.minus(self.actual_arrival_time)
