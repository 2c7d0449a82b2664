"""
Per-terminal statistics.

Two `TerminalData` accumulators are kept side by side:
- `total`: everything since the last warmup reset.
- `periodic`: the current reporting period (one day in the port model).

Stock counters (containers / TEU in the yard) carry over when a period rolls; flow
counters (arrivals, departures, truck visits) restart at zero. Every update touches both
accumulators in the same call.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Callable, Dict, Optional

from .cargo import Container, TransportMode, Vessel
from .clocktime import ClockTime


def _per_mode() -> Dict[TransportMode, int]:
    return {mode: 0 for mode in TransportMode}


@dataclass
class ContainerTypeRecord:
    """
    Stock counter split by category. Only `full`, `general` and `ft40` are stored, the
    complements are derived, so `full + empty == total` always holds.
    """

    total: int = 0
    full: int = 0
    general: int = 0
    ft40: int = 0

    @property
    def empty(self) -> int:
        return self.total - self.full

    @property
    def reefer(self) -> int:
        return self.total - self.general

    @property
    def ft20(self) -> int:
        return self.total - self.ft40

    def add(self, container: Container, amount: int) -> None:
        self.total += amount
        if container.full:
            self.full += amount
        if container.is_general:
            self.general += amount
        if container.is_40ft:
            self.ft40 += amount


@dataclass
class TerminalData:
    start_time: Optional[ClockTime] = None
    nr_vessel_arrivals: int = 0
    nr_deepsea_arrivals: int = 0
    nr_feeder_arrivals: int = 0
    nr_vessel_departures: int = 0
    nr_deepsea_departures: int = 0
    nr_feeder_departures: int = 0
    nr_containers: ContainerTypeRecord = field(default_factory=ContainerTypeRecord)
    nr_teu: ContainerTypeRecord = field(default_factory=ContainerTypeRecord)
    nr_truck_visits_pickup: int = 0
    nr_truck_visits_delivery: int = 0
    nr_truck_visits_dual: int = 0
    nr_container_arrivals: Dict[TransportMode, int] = field(default_factory=_per_mode)
    nr_container_departures: Dict[TransportMode, int] = field(default_factory=_per_mode)
    nr_teu_arrivals: Dict[TransportMode, int] = field(default_factory=_per_mode)
    nr_teu_departures: Dict[TransportMode, int] = field(default_factory=_per_mode)

    def inc_vessel_arrivals(self, vessel: Vessel) -> None:
        self.nr_vessel_arrivals += 1
        if vessel.vessel_type.is_deepsea:
            self.nr_deepsea_arrivals += 1
        else:
            self.nr_feeder_arrivals += 1

    def inc_vessel_departures(self, vessel: Vessel) -> None:
        self.nr_vessel_departures += 1
        if vessel.vessel_type.is_deepsea:
            self.nr_deepsea_departures += 1
        else:
            self.nr_feeder_departures += 1

    def add_container(self, container: Container, mode: TransportMode) -> None:
        self.nr_containers.add(container, 1)
        self.nr_teu.add(container, container.teu)
        self.nr_container_arrivals[mode] += 1
        self.nr_teu_arrivals[mode] += container.teu

    def remove_container(self, container: Container, mode: TransportMode) -> None:
        self.nr_containers.add(container, -1)
        self.nr_teu.add(container, -container.teu)
        self.nr_container_departures[mode] += 1
        self.nr_teu_departures[mode] += container.teu

    @property
    def nr_truck_visits(self) -> int:
        return self.nr_truck_visits_pickup + self.nr_truck_visits_delivery + self.nr_truck_visits_dual

    def to_dict(self) -> dict:
        row = {
            "start_time": self.start_time.to_iso() if self.start_time else None,
            "vessel_arrivals": self.nr_vessel_arrivals,
            "deepsea_arrivals": self.nr_deepsea_arrivals,
            "feeder_arrivals": self.nr_feeder_arrivals,
            "vessel_departures": self.nr_vessel_departures,
            "deepsea_departures": self.nr_deepsea_departures,
            "feeder_departures": self.nr_feeder_departures,
            "truck_visits_pickup": self.nr_truck_visits_pickup,
            "truck_visits_delivery": self.nr_truck_visits_delivery,
            "truck_visits_dual": self.nr_truck_visits_dual,
        }
        for prefix, record in (("containers", self.nr_containers), ("teu", self.nr_teu)):
            row[f"{prefix}_total"] = record.total
            row[f"{prefix}_full"] = record.full
            row[f"{prefix}_empty"] = record.empty
            row[f"{prefix}_general"] = record.general
            row[f"{prefix}_reefer"] = record.reefer
            row[f"{prefix}_20ft"] = record.ft20
            row[f"{prefix}_40ft"] = record.ft40
        for mode in TransportMode:
            name = mode.name.lower()
            row[f"containers_in_{name}"] = self.nr_container_arrivals[mode]
            row[f"containers_out_{name}"] = self.nr_container_departures[mode]
            row[f"teu_in_{name}"] = self.nr_teu_arrivals[mode]
            row[f"teu_out_{name}"] = self.nr_teu_departures[mode]
        return row


class TerminalStatistics:
    def __init__(self, terminal_id: str, clock: Callable[[], ClockTime]):
        self.terminal_id = terminal_id
        self.clock = clock
        self.warmup_time: Optional[ClockTime] = None
        now = clock()
        self.total = TerminalData(start_time=now)
        self.periodic = TerminalData(start_time=now)

    def reset_periodic_statistics(self) -> None:
        self.periodic = TerminalData(
            start_time=self.clock(),
            nr_containers=replace(self.total.nr_containers),
            nr_teu=replace(self.total.nr_teu),
        )

    def reset_total_statistics(self) -> None:
        """
        Warmup reset. Earlier observations are not purged from anything already reported;
        callers drop rows recorded before `warmup_time`.
        """
        now = self.clock()
        self.warmup_time = now
        self.total = TerminalData(start_time=now)
        self.periodic = TerminalData(start_time=now)

    def vessel_arrival(self, vessel: Vessel) -> None:
        self.total.inc_vessel_arrivals(vessel)
        self.periodic.inc_vessel_arrivals(vessel)

    def vessel_departure(self, vessel: Vessel) -> None:
        self.total.inc_vessel_departures(vessel)
        self.periodic.inc_vessel_departures(vessel)

    def add_container_yard(self, container: Container, mode: TransportMode) -> None:
        self.total.add_container(container, mode)
        self.periodic.add_container(container, mode)

    def remove_container_yard(self, container: Container, mode: TransportMode) -> None:
        self.total.remove_container(container, mode)
        self.periodic.remove_container(container, mode)

    def inc_truck_visit_pickup(self) -> None:
        self.total.nr_truck_visits_pickup += 1
        self.periodic.nr_truck_visits_pickup += 1

    def inc_truck_visit_delivery(self) -> None:
        self.total.nr_truck_visits_delivery += 1
        self.periodic.nr_truck_visits_delivery += 1

    def inc_truck_visit_dual(self) -> None:
        self.total.nr_truck_visits_dual += 1
        self.periodic.nr_truck_visits_dual += 1
