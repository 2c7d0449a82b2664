"""
Port model: terminals, a trucking company and the vessel calls that feed it with orders.

Each vessel call is announced ahead of arrival. At announcement its export bookings are
created and handed to the hinterland (truck-bound ones become export transport orders; rail
and barge ones are delivered to the yard later). At arrival the import containers are
discharged into the yard and the Tos, and each one is assigned a hinterland mode by the modal
split; truck-bound imports become import transport orders. At departure the export containers
present on the yard are loaded.

Every terminal reports its periodic statistics once a day; the first report after the warmup
is the first one kept.
"""

from __future__ import annotations

import itertools
import logging
from datetime import timedelta
from typing import Dict, FrozenSet, List, Tuple

import numpy as np
import pandas as pd

from ..port.cargo import Booking, Container, TransportMode, Vessel, VesselType
from ..port.clocktime import ClockTime
from ..port.distributions import DurationDist
from ..port.facility import Gate, Yard
from ..port.network import Centroid, RoadNetwork
from ..port.scheduler import Scheduler
from ..port.slots import CapacitySlotManagementSystem
from ..port.statistics import TerminalStatistics
from ..port.terminal import Terminal
from ..trucking.company import PlannerSettings, TruckingCompany
from ..trucking.orders import OrderFactory
from ..trucking.truck import Truck
from .metrics import terminal_statistics_to_dataframe, trips_to_dataframe
from .scenarios import ScenarioConfig

logger = logging.getLogger(__name__)

REPORT_INTERVAL = timedelta(days=1)


class PortModel:
    def __init__(self, config: ScenarioConfig, seed: int):
        self.config = config
        self.rng = np.random.default_rng(seed)
        self.start_time = ClockTime.of(config.start_time)
        self.end_time = self.start_time.plus(timedelta(days=config.run_days))
        self.warmup_end = self.start_time.plus(timedelta(days=config.warmup_days))
        self.scheduler = Scheduler.starting_at(self.start_time)
        self.modal_split = config.modal_split

        self.road_network = RoadNetwork(
            [Centroid.from_row(row) for row in config.terminals + config.hinterland_centroids],
            port_location=(config.port_lat, config.port_lon),
            detour_factor=config.detour_factor,
            far_threshold_km=config.far_threshold_km,
        )
        self.terminals: Dict[str, Terminal] = {
            row[0]: self._build_terminal(self.road_network.centroid(row[0]), row[1]) for row in config.terminals
        }
        self.hinterland: List[Centroid] = [self.road_network.centroid(row[0]) for row in config.hinterland_centroids]
        self._terminal_centroids = frozenset(t.centroid for t in self.terminals.values())

        self.orders = OrderFactory()
        self._vessel_nrs = itertools.count(1)
        self._container_nrs = itertools.count(1)
        self._booking_nrs = itertools.count(1)
        self.exports: Dict[Vessel, List[Tuple[Booking, Container, TransportMode]]] = {}

        self.company = TruckingCompany(
            "TC1",
            self.scheduler,
            self.road_network,
            self.terminal_centroids,
            settings=PlannerSettings(
                planning_interval=timedelta(hours=config.planning_interval_hours),
                lookahead=timedelta(hours=config.lookahead_hours),
                safety_margin=timedelta(minutes=config.safety_margin_mins),
                reference_speed_kmh=config.reference_speed_kmh,
                one_terminal_target=config.one_terminal_target,
                two_terminal_target=config.two_terminal_target,
                max_deferrals=config.max_deferrals,
                plan_on_weekends=config.plan_on_weekends,
                late_penalty=timedelta(minutes=config.late_penalty_mins),
            ),
            on_truck_finished=self.truck_finished,
            on_hinterland_delivery=self.hinterland_delivery,
        )
        self.finished_trucks: List[Truck] = []
        self.nr_vessels = 0
        self.nr_hinterland_deliveries = 0
        self.nr_missed_exports = 0
        self.nr_rolled_over = 0
        self.late_exports: List[Tuple[Terminal, Vessel, Booking, Container]] = []
        self.statistics_rows: List[dict] = []

    # construction

    def _triangular(self, prefix: str) -> DurationDist:
        c = self.config
        return DurationDist.triangular_minutes(
            getattr(c, f"{prefix}_min"), getattr(c, f"{prefix}_mode"), getattr(c, f"{prefix}_max"), self.rng
        )

    def _build_terminal(self, centroid: Centroid, name: str) -> Terminal:
        c = self.config
        gate = Gate(
            self.scheduler.env,
            f"{centroid.id}.gate",
            c.num_lanes_in,
            c.num_lanes_out,
            self._triangular("gate_in_time"),
            self._triangular("gate_out_time"),
        )
        yard = Yard(
            f"{centroid.id}.yard",
            self._triangular("handling_import"),
            self._triangular("handling_export"),
            self._triangular("handling_dual"),
        )
        slot_system = None
        if c.use_slots:
            slot_system = CapacitySlotManagementSystem(
                centroid.id,
                timedelta(minutes=c.slot_duration_mins),
                timedelta(minutes=c.grace_before_mins),
                timedelta(minutes=c.grace_after_mins),
                c.slot_capacity,
            )
        statistics = TerminalStatistics(centroid.id, self.scheduler.now)
        return Terminal(centroid.id, name, centroid, gate, yard, statistics, slot_system)

    def terminal_centroids(self) -> FrozenSet[Centroid]:
        return self._terminal_centroids

    # cargo

    def new_container(self) -> Container:
        c = self.config
        size = 20
        if self.rng.random() < c.pct_40ft:
            size = 45 if self.rng.random() < 0.05 else 40
        full = bool(self.rng.random() < c.pct_full)
        reefer = full and bool(self.rng.random() < c.pct_reefer)
        return Container(next(self._container_nrs), size=size, full=full, reefer=reefer)

    def random_hinterland(self) -> Centroid:
        return self.hinterland[int(self.rng.integers(len(self.hinterland)))]

    def _hours(self, low: float, high: float) -> timedelta:
        return timedelta(hours=float(self.rng.uniform(low, high)))

    # vessel calls

    def schedule_next_vessel(self) -> None:
        delay = timedelta(hours=float(self.rng.exponential(self.config.vessel_interarrival_mean_hours)))
        self.scheduler.schedule_after(delay, self.announce_vessel)

    def announce_vessel(self) -> None:
        c = self.config
        self.schedule_next_vessel()
        terminal = list(self.terminals.values())[int(self.rng.integers(len(self.terminals)))]
        vessel_type = VesselType.DEEPSEA if self.rng.random() < c.deepsea_share else VesselType.FEEDER
        nr = next(self._vessel_nrs)
        vessel = Vessel(nr, f"{vessel_type.value.upper()}-{nr}", vessel_type, terminal.id)
        arrival = self.scheduler.now().plus(timedelta(hours=c.announce_lead_hours))
        departure = arrival.plus(timedelta(hours=c.vessel_stay_hours))
        self.nr_vessels += 1
        logger.debug("Announced %s at %s: arrival %s, departure %s", vessel, terminal.id, arrival, departure)

        self.exports[vessel] = []
        for _ in range(int(self.rng.integers(c.exports_per_call_min, c.exports_per_call_max + 1))):
            container = self.new_container()
            booking = Booking(next(self._booking_nrs), container.size, container.full, container.reefer)
            booking.set_container_nr(container.nr)
            terminal.tos.add_unallocated_out(vessel, booking)
            mode = self.modal_split.draw(self.rng)
            self.exports[vessel].append((booking, container, mode))
            target = max(
                self.scheduler.now(),
                departure.minus(self._hours(c.export_lead_min_hours, c.export_lead_max_hours)),
            )
            if mode is TransportMode.TRUCK:
                self.company.add_transport_order(self.orders.create(
                    vessel=vessel,
                    container=container,
                    load_centroid=self.random_hinterland(),
                    load_terminal=None,
                    unload_centroid=terminal.centroid,
                    unload_terminal=terminal,
                    target_time=target,
                    margin_before=timedelta(minutes=c.grace_before_mins),
                    margin_after=timedelta(minutes=c.grace_after_mins),
                    booking=booking,
                ))
            else:
                if mode is TransportMode.RAIL:
                    terminal.tos.add_allocated_out_rail(vessel, booking)
                else:
                    terminal.tos.add_allocated_out_barge(vessel, booking)
                self.scheduler.schedule_at(target, self.deliver_by_rail_barge, terminal, container, mode)

        self.scheduler.schedule_at(arrival, self.vessel_arrival, terminal, vessel)
        self.scheduler.schedule_at(departure, self.vessel_departure, terminal, vessel)

    def deliver_by_rail_barge(self, terminal: Terminal, container: Container, mode: TransportMode) -> None:
        terminal.yard.receive_from_vessel(container)
        terminal.statistics.add_container_yard(container, mode)

    def vessel_arrival(self, terminal: Terminal, vessel: Vessel) -> None:
        c = self.config
        terminal.statistics.vessel_arrival(vessel)
        now = self.scheduler.now()
        nr_imports = int(self.rng.integers(c.imports_per_call_min, c.imports_per_call_max + 1))
        for _ in range(nr_imports):
            container = self.new_container()
            terminal.yard.receive_from_vessel(container)
            terminal.statistics.add_container_yard(container, vessel.vessel_type.transport_mode)
            terminal.tos.add_unallocated_in(vessel, container)
            mode = self.modal_split.draw(self.rng)
            if mode is TransportMode.TRUCK:
                self.company.add_transport_order(self.orders.create(
                    vessel=vessel,
                    container=container,
                    load_centroid=terminal.centroid,
                    load_terminal=terminal,
                    unload_centroid=self.random_hinterland(),
                    unload_terminal=None,
                    target_time=now.plus(self._hours(c.import_dwell_min_hours, c.import_dwell_max_hours)),
                    margin_before=timedelta(minutes=c.grace_before_mins),
                    margin_after=timedelta(minutes=c.grace_after_mins),
                ))
                continue
            if mode is TransportMode.RAIL:
                terminal.tos.add_allocated_in_rail(vessel, container)
            else:
                terminal.tos.add_allocated_in_barge(vessel, container)
            self.scheduler.schedule_after(
                timedelta(hours=c.rail_barge_dwell_hours), self.pickup_by_rail_barge, terminal, vessel, container, mode
            )
        logger.info("%s arrived at %s with %d import containers", vessel, terminal.id, nr_imports)

    def pickup_by_rail_barge(self, terminal: Terminal, vessel: Vessel, container: Container, mode: TransportMode) -> None:
        if not terminal.yard.release_container(container):
            logger.warning("Container %d for %s not on yard %s", container.nr, mode.name.lower(), terminal.id)
            return
        terminal.statistics.remove_container_yard(container, mode)
        if mode is TransportMode.RAIL:
            terminal.tos.remove_allocated_in_rail(vessel, container)
        else:
            terminal.tos.remove_allocated_in_barge(vessel, container)

    def vessel_departure(self, terminal: Terminal, vessel: Vessel) -> None:
        terminal.statistics.vessel_departure(vessel)
        loaded = 0
        for booking, container, mode in self.exports.pop(vessel, []):
            if not terminal.yard.release_container(container):
                self.nr_missed_exports += 1
                logger.warning("Export container %d (%s) missed %s", container.nr, mode.name.lower(), vessel)
                if mode is TransportMode.TRUCK:
                    self.late_exports.append((terminal, vessel, booking, container))
                continue
            terminal.statistics.remove_container_yard(container, vessel.vessel_type.transport_mode)
            if mode is TransportMode.TRUCK:
                terminal.tos.remove_allocated_out_truck(vessel, booking)
            elif mode is TransportMode.RAIL:
                terminal.tos.remove_allocated_out_rail(vessel, booking)
            else:
                terminal.tos.remove_allocated_out_barge(vessel, booking)
            loaded += 1
        logger.info("%s left %s with %d export containers", vessel, terminal.id, loaded)

    def roll_over_late_exports(self) -> None:
        """
        Truck exports that reached the yard after their vessel left are rolled over to a
        later call: they leave the yard and the Tos. Exports whose order was dropped are
        no longer waited for.
        """
        dropped = {order.container.nr for order in self.company.failed_orders}
        waiting = []
        for terminal, vessel, booking, container in self.late_exports:
            if terminal.yard.release_container(container):
                terminal.statistics.remove_container_yard(container, vessel.vessel_type.transport_mode)
                terminal.tos.remove_allocated_out_truck(vessel, booking)
                self.nr_rolled_over += 1
            elif container.nr in dropped:
                terminal.tos.remove_unallocated_out(vessel, booking)
            else:
                waiting.append((terminal, vessel, booking, container))
        self.late_exports = waiting

    # trucks

    def truck_finished(self, truck: Truck) -> None:
        self.finished_trucks.append(truck)

    def hinterland_delivery(self, truck: Truck, container: Container, centroid: Centroid) -> None:
        self.nr_hinterland_deliveries += 1
        logger.debug("Truck %s delivered container %d at %s", truck.name, container.nr, centroid)

    # statistics

    def warmup(self) -> None:
        logger.info("Warmup over at %s, statistics reset", self.scheduler.now().ymdhm())
        for terminal in self.terminals.values():
            terminal.statistics.reset_total_statistics()

    def daily_report(self) -> None:
        now = self.scheduler.now()
        for terminal in self.terminals.values():
            stats = terminal.statistics
            if now > self.warmup_end:
                row = {"terminal": terminal.id, "report_time": now.to_iso()}
                row.update(stats.periodic.to_dict())
                row["yard_containers"] = len(terminal.yard)
                self.statistics_rows.append(row)
            stats.reset_periodic_statistics()
            if terminal.slot_system is not None:
                terminal.slot_system.forget_before(now)
        self.roll_over_late_exports()
        self.scheduler.schedule_after(REPORT_INTERVAL, self.daily_report)

    # run

    def run(self) -> None:
        if self.config.warmup_days > 0:
            self.scheduler.schedule_at(self.warmup_end, self.warmup)
        self.scheduler.schedule_at(self.start_time.plus(REPORT_INTERVAL), self.daily_report)
        self.company.start(self.start_time)
        self.scheduler.schedule_now(self.announce_vessel)
        logger.info(
            "Running %s from %s to %s (%d terminals, %d hinterland centroids)",
            self.config.name, self.start_time.ymdhm(), self.end_time.ymdhm(),
            len(self.terminals), len(self.hinterland),
        )
        self.scheduler.run(until=self.end_time)
        logger.info("Planner summary: %s", self.company.summary())

    def trips(self) -> pd.DataFrame:
        warmup_time = self.warmup_end if self.config.warmup_days > 0 else None
        return trips_to_dataframe(self.finished_trucks, self.start_time, warmup_time)

    def terminal_statistics(self) -> pd.DataFrame:
        return terminal_statistics_to_dataframe(self.statistics_rows)

    def summary(self) -> dict:
        summary = dict(self.company.summary())
        summary.update({
            "vessels": self.nr_vessels,
            "finished_trucks": len(self.finished_trucks),
            "hinterland_deliveries": self.nr_hinterland_deliveries,
            "missed_exports": self.nr_missed_exports,
            "rolled_over_exports": self.nr_rolled_over,
        })
        return summary


def run_simulation(config: ScenarioConfig, seed: int) -> Tuple[pd.DataFrame, pd.DataFrame, dict]:
    model = PortModel(config, seed)
    model.run()
    return model.trips(), model.terminal_statistics(), model.summary()
