from __future__ import annotations

import logging
from datetime import timedelta
from enum import Enum
from typing import TYPE_CHECKING, Callable, List, Optional

from ..port.appointment import SlotBooking
from ..port.cargo import Container, TransportMode
from ..port.clocktime import ClockTime
from ..port.errors import SimPortError
from ..port.network import Centroid
from ..port.scheduler import Scheduler
from .activity import (
    PlannedDrivingActivity,
    PlannedTerminalActivity,
    PlannedTruckActivity,
    RealizedDrivingActivity,
    RealizedTerminalActivity,
    RealizedTruckActivity,
)

if TYPE_CHECKING:
    from ..port.terminal import Terminal

logger = logging.getLogger(__name__)

MAX_LOAD_FT = 45
DEFAULT_LATE_PENALTY = timedelta(hours=1)


class TruckState(Enum):
    IDLE = "idle"
    DRIVING = "driving"
    WAITING_PARKING = "waiting_parking"
    WAITING_GATE_IN = "waiting_gate_in"
    GATE_IN = "gate_in"
    LOADING = "loading"
    UNLOADING = "unloading"
    HANDLING_DUAL = "handling_dual"
    WAITING_GATE_OUT = "waiting_gate_out"
    GATE_OUT = "gate_out"
    FINISHED = "finished"

    @property
    def is_driving(self) -> bool:
        return self is TruckState.DRIVING

    @property
    def is_waiting(self) -> bool:
        return self in (TruckState.WAITING_PARKING, TruckState.WAITING_GATE_IN, TruckState.WAITING_GATE_OUT)

    @property
    def is_handling(self) -> bool:
        return self in (TruckState.LOADING, TruckState.UNLOADING, TruckState.HANDLING_DUAL)

    @property
    def is_at_terminal(self) -> bool:
        return self in (
            TruckState.WAITING_GATE_IN,
            TruckState.GATE_IN,
            TruckState.LOADING,
            TruckState.UNLOADING,
            TruckState.HANDLING_DUAL,
            TruckState.WAITING_GATE_OUT,
            TruckState.GATE_OUT,
        )


class Truck:
    """
    A truck executing one planned trip.

    The planner appends planned activities and calls `start_plan()`. From then on the truck
    runs as a simpy process: drive, visit terminal (wait for the grace window, gate in,
    yard handling, gate out), drive, ... until the plan is exhausted.
    """

    def __init__(
        self,
        truck_id: int,
        company_id: str,
        scheduler: Scheduler,
        terminal_centroids: Callable[[], frozenset],
        late_penalty: timedelta = DEFAULT_LATE_PENALTY,
        on_finished: Optional[Callable[["Truck"], None]] = None,
        on_hinterland_delivery: Optional[Callable[["Truck", Container, Centroid], None]] = None,
    ):
        self.id = truck_id
        self.company_id = company_id
        self.scheduler = scheduler
        self.terminal_centroids = terminal_centroids
        self.late_penalty = late_penalty
        self.on_finished = on_finished
        self.on_hinterland_delivery = on_hinterland_delivery
        self.state = TruckState.IDLE
        self.origin: Optional[Centroid] = None
        self.destination: Optional[Centroid] = None
        self.facility: Optional["Terminal"] = None
        self.container1: Optional[Container] = None
        self.container2: Optional[Container] = None
        self.departure_time: Optional[ClockTime] = None
        self.arrival_time: Optional[ClockTime] = None
        self.planned_activities: List[PlannedTruckActivity] = []
        self.realized_activities: List[RealizedTruckActivity] = []
        self.order_ids: List[int] = []
        self.combination: str = "single"

    @property
    def name(self) -> str:
        return f"{self.company_id}.{self.id}"

    # cargo

    @property
    def is_empty(self) -> bool:
        return self.container1 is None and self.container2 is None

    @property
    def containers(self) -> List[Container]:
        return [c for c in (self.container1, self.container2) if c is not None]

    def load_container(self, container: Container) -> None:
        if self.container1 is None:
            self.container1 = container
        elif self.container2 is None:
            self.container2 = container
        else:
            raise SimPortError(f"Truck {self.name} is full, cannot load container {container.nr}")
        if sum(c.size for c in self.containers) > MAX_LOAD_FT:
            raise SimPortError(f"Truck {self.name} carries more than {MAX_LOAD_FT}ft: {self.containers}")

    def unload_containers(self) -> List[Container]:
        containers = self.containers
        self.container1 = None
        self.container2 = None
        return containers

    # plan

    def add_activity(self, activity: PlannedTruckActivity) -> None:
        if self.state is not TruckState.IDLE:
            raise SimPortError(f"Truck {self.name} already started its plan")
        self.planned_activities.append(activity)

    def start_plan(self) -> None:
        if not self.planned_activities:
            logger.error("Truck %s asked to start, but does not have a plan", self.name)
            return
        first = self.planned_activities[0]
        if not isinstance(first, PlannedDrivingActivity):
            logger.error("Truck %s has an illegal first activity %s", self.name, first)
            return
        self.scheduler.schedule_at(first.departure_time, self._start)

    def _start(self) -> None:
        first = self.planned_activities[0]
        for container in first.containers:
            self.load_container(container)
        self.scheduler.process(self._run_plan())

    def _run_plan(self):
        env = self.scheduler.env
        for activity in self.planned_activities:
            if isinstance(activity, PlannedDrivingActivity):
                yield from self._drive(env, activity)
            elif isinstance(activity, PlannedTerminalActivity):
                yield from self._visit_terminal(env, activity)
            else:
                raise SimPortError(f"Truck {self.name} has an unknown activity {activity}")
        self.state = TruckState.FINISHED
        self.facility = None
        if self.on_finished is not None:
            self.on_finished(self)

    def _drive(self, env, pda: PlannedDrivingActivity):
        rda = RealizedDrivingActivity.of(pda)
        rda.actual_departure_time = self.scheduler.now()
        self.realized_activities.append(rda)
        self.state = TruckState.DRIVING
        self.facility = None
        self.origin = pda.orig_centroid
        self.destination = pda.dest_centroid
        self.departure_time = rda.actual_departure_time
        self.arrival_time = rda.actual_departure_time.plus(pda.duration)
        yield env.timeout(pda.duration.total_seconds())
        rda.actual_arrival_time = self.scheduler.now()
        self.origin = pda.dest_centroid
        self.destination = None
        if not self.is_empty and pda.dest_centroid not in self.terminal_centroids():
            for container in self.unload_containers():
                if self.on_hinterland_delivery is not None:
                    self.on_hinterland_delivery(self, container, pda.dest_centroid)

    def _visit_terminal(self, env, pta: PlannedTerminalActivity):
        terminal = pta.terminal
        now = self.scheduler.now()
        rta = RealizedTerminalActivity.of(pta, now)
        self.realized_activities.append(rta)
        self.facility = terminal

        delay = timedelta(0)
        if isinstance(pta.appointment, SlotBooking):
            booking = pta.appointment
            early = booking.earliest_arrival.minus(now)
            if early > timedelta(0):
                delay = early
            elif now > booking.latest_arrival:
                rta.missed_slot = True
                delay = self.late_penalty
                logger.warning(
                    "Truck %s missed %s at %s (arrived %s)", self.name, booking, terminal.id, now.ymdhm()
                )
        rta.waiting_time_in = delay
        if delay > timedelta(0):
            self.state = TruckState.WAITING_PARKING
            yield env.timeout(delay.total_seconds())

        gate = terminal.gate
        self.state = TruckState.WAITING_GATE_IN
        gate.add_truck_in(self)
        queued = self.scheduler.now()
        with gate.lanes_in.request() as req:
            yield req
            gate.leave_queue_in(self)
            rta.gate_queue_time_in = self.scheduler.now().minus(queued)
            self.state = TruckState.GATE_IN
            rta.actual_gate_time_in = gate.draw_handling_time_in()
            yield env.timeout(rta.actual_gate_time_in.total_seconds())

        yield from self._handle(env, rta)

        self.state = TruckState.WAITING_GATE_OUT
        gate.add_truck_out(self)
        queued = self.scheduler.now()
        with gate.lanes_out.request() as req:
            yield req
            gate.leave_queue_out(self)
            rta.gate_queue_time_out = self.scheduler.now().minus(queued)
            self.state = TruckState.GATE_OUT
            rta.actual_gate_time_out = gate.draw_handling_time_out()
            yield env.timeout(rta.actual_gate_time_out.total_seconds())
        rta.departure_time = self.scheduler.now()

    def _handle(self, env, rta: RealizedTerminalActivity):
        terminal = rta.terminal
        yard = terminal.yard
        stats = terminal.statistics
        pta = rta.planned
        if pta.activity_type.is_dropoff:
            self.state = TruckState.UNLOADING
            handling_time = yard.draw_handling_time_export()
            stats.inc_truck_visit_delivery()
        elif pta.activity_type.is_pickup:
            self.state = TruckState.LOADING
            handling_time = yard.draw_handling_time_import()
            stats.inc_truck_visit_pickup()
        else:
            self.state = TruckState.HANDLING_DUAL
            handling_time = yard.draw_handling_time_dual()
            stats.inc_truck_visit_dual()
        rta.actual_handling_time = handling_time

        if pta.dropoffs:
            for container in yard.dropoff_container(self):
                stats.add_container_yard(container, TransportMode.TRUCK)
                rta.containers_delivered.append(container)
        for container in pta.pickups:
            yard.pickup_container(self, container)
            stats.remove_container_yard(container, TransportMode.TRUCK)
            rta.containers_picked_up.append(container)
        yield env.timeout(handling_time.total_seconds())

    def __repr__(self) -> str:
        return f"Truck(id={self.name!r}, state={self.state.value}, containers={[c.nr for c in self.containers]})"
