from __future__ import annotations

from collections import deque
from datetime import timedelta
from typing import TYPE_CHECKING, Deque, Dict, List, Optional

import simpy

from .cargo import Container
from .distributions import DurationDist
from .errors import SimPortError

if TYPE_CHECKING:
    from ..trucking.truck import Truck


class Gate:
    """
    Terminal gate: lanes in and out plus stochastic handling times.

    `queue_in` / `queue_out` are FIFO lists of trucks waiting for a lane and are unbounded.
    The lanes themselves are simpy resources, so a truck holds a lane for the duration of
    its gate handling.
    """

    def __init__(
        self,
        env: simpy.Environment,
        gate_id: str,
        lanes_in: int,
        lanes_out: int,
        time_in_dist: DurationDist,
        time_out_dist: DurationDist,
    ):
        if lanes_in < 1 or lanes_out < 1:
            raise ValueError("A gate needs at least one lane in each direction.")
        self.env = env
        self.id = gate_id
        self.time_in_dist = time_in_dist
        self.time_out_dist = time_out_dist
        self.lanes_in = simpy.Resource(env, capacity=lanes_in)
        self.lanes_out = simpy.Resource(env, capacity=lanes_out)
        self.queue_in: Deque["Truck"] = deque()
        self.queue_out: Deque["Truck"] = deque()

    @property
    def current_lanes_in(self) -> int:
        return self.lanes_in.capacity

    @property
    def current_lanes_out(self) -> int:
        return self.lanes_out.capacity

    def draw_handling_time_in(self) -> timedelta:
        return self.time_in_dist.draw()

    def draw_handling_time_out(self) -> timedelta:
        return self.time_out_dist.draw()

    @property
    def average_time_in(self) -> timedelta:
        return self.time_in_dist.mean

    @property
    def average_time_out(self) -> timedelta:
        return self.time_out_dist.mean

    def add_truck_in(self, truck: "Truck") -> None:
        self.queue_in.append(truck)

    def add_truck_out(self, truck: "Truck") -> None:
        self.queue_out.append(truck)

    def leave_queue_in(self, truck: "Truck") -> None:
        self.queue_in.remove(truck)

    def leave_queue_out(self, truck: "Truck") -> None:
        self.queue_out.remove(truck)

    def __repr__(self) -> str:
        return f"Gate(id={self.id!r}, lanes_in={self.current_lanes_in}, lanes_out={self.current_lanes_out})"


class Yard:
    """
    Physical container inventory of a terminal.

    Truck pickups and dropoffs are the only truck-side mutations of `container_map`; each
    runs to completion inside one simulation callback.
    """

    def __init__(
        self,
        yard_id: str,
        handling_time_import: DurationDist,
        handling_time_export: DurationDist,
        handling_time_dual: DurationDist,
        capacity_teu: Optional[int] = None,
    ):
        self.id = yard_id
        self.handling_time_import = handling_time_import
        self.handling_time_export = handling_time_export
        self.handling_time_dual = handling_time_dual
        self.capacity_teu = capacity_teu
        self.container_map: Dict[int, Container] = {}

    def draw_handling_time_import(self) -> timedelta:
        return self.handling_time_import.draw()

    def draw_handling_time_export(self) -> timedelta:
        return self.handling_time_export.draw()

    def draw_handling_time_dual(self) -> timedelta:
        return self.handling_time_dual.draw()

    @property
    def nr_teu(self) -> int:
        return sum(c.teu for c in self.container_map.values())

    def __contains__(self, container: Container) -> bool:
        return container.nr in self.container_map

    def __len__(self) -> int:
        return len(self.container_map)

    def pickup_container(self, truck: "Truck", container: Container) -> None:
        if not truck.is_empty:
            raise SimPortError(f"Truck {truck.id} is not empty: it carries {truck.containers}")
        if container.nr not in self.container_map:
            raise SimPortError(f"Container {container.nr} not found on yard {self.id}")
        del self.container_map[container.nr]
        truck.load_container(container)

    def dropoff_container(self, truck: "Truck") -> List[Container]:
        if truck.is_empty:
            raise SimPortError(f"Truck {truck.id} is empty: it does not carry a container")
        containers = truck.unload_containers()
        for container in containers:
            self.container_map[container.nr] = container
        return containers

    def receive_from_vessel(self, container: Container) -> None:
        self.container_map[container.nr] = container

    def release_container(self, container: Container) -> bool:
        """Remove a container leaving by vessel, rail or barge; False when it is not on the yard."""
        return self.container_map.pop(container.nr, None) is not None

    def __repr__(self) -> str:
        return f"Yard(id={self.id!r}, containers={len(self.container_map)})"
