"""
Trucking company planner.

Once per planning interval the planner takes every pending transport order due before the
lookahead cutoff and turns it into a truck trip:

- orders touching a far centroid always get a single trip;
- otherwise it tries to pair the order with one at the same terminal (export dropoff and
  import pickup in one DUAL visit), then with one at another terminal (dropoff at the first,
  pickup at the second), each only while the share of such combinations stays under its
  target fraction;
- what cannot be paired goes out as a single trip.

An order whose slot booking fails goes back to the pending set and is retried next cycle,
up to `max_deferrals` times.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import TYPE_CHECKING, Callable, Dict, FrozenSet, List, Optional

from ..port.appointment import Appointment
from ..port.clocktime import ClockTime
from ..port.errors import NoSlotAvailable
from ..port.network import Centroid
from ..port.scheduler import EventHandle, Scheduler
from .activity import PlannedDrivingActivity, PlannedTerminalActivity, TerminalActivityType
from .orders import PendingOrders, TransportOrder
from .truck import DEFAULT_LATE_PENALTY, Truck

if TYPE_CHECKING:
    from ..port.terminal import Terminal

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlannerSettings:
    planning_interval: timedelta = timedelta(hours=24)
    lookahead: timedelta = timedelta(hours=36)
    safety_margin: timedelta = timedelta(minutes=15)
    reference_speed_kmh: float = 60.0
    one_terminal_target: float = 0.3
    two_terminal_target: float = 0.1
    max_deferrals: int = 3
    plan_on_weekends: bool = True
    late_penalty: timedelta = DEFAULT_LATE_PENALTY


class TruckingCompany:
    def __init__(
        self,
        company_id: str,
        scheduler: Scheduler,
        road_network,
        terminal_centroids: Callable[[], FrozenSet[Centroid]],
        settings: Optional[PlannerSettings] = None,
        on_truck_finished: Optional[Callable[[Truck], None]] = None,
        on_hinterland_delivery: Optional[Callable] = None,
    ):
        self.id = company_id
        self.scheduler = scheduler
        self.road_network = road_network
        self.terminal_centroids = terminal_centroids
        self.settings = settings or PlannerSettings()
        self.on_truck_finished = on_truck_finished
        self.on_hinterland_delivery = on_hinterland_delivery

        self.pending = PendingOrders()
        self.planned_orders: Dict[int, Truck] = {}
        self.failed_orders: List[TransportOrder] = []
        self.deferrals: Dict[int, int] = {}
        self.trucks: List[Truck] = []
        self._truck_nr = 0

        self.nr_orders = 0
        self.nr_single_trips = 0
        self.nr_combined_one_terminal = 0
        self.nr_combined_two_terminals = 0
        self._next_cycle: Optional[EventHandle] = None

    # orders

    def add_transport_order(self, order: TransportOrder) -> None:
        self.pending.add(order)

    def start(self, first_cycle: Optional[ClockTime] = None) -> None:
        self._next_cycle = self.scheduler.schedule_at(first_cycle or self.scheduler.now(), self.plan_trips)

    def stop(self) -> None:
        self.scheduler.cancel(self._next_cycle)

    # cycle

    def next_cycle_time(self, now: ClockTime) -> ClockTime:
        t = now.plus(self.settings.planning_interval)
        if not self.settings.plan_on_weekends:
            while t.is_weekend():
                t = t.plus(self.settings.planning_interval)
        return t

    def plan_trips(self) -> None:
        now = self.scheduler.now()
        next_cycle = self.next_cycle_time(now)
        # reschedule first so the cadence survives a failing cycle
        self._next_cycle = self.scheduler.schedule_at(next_cycle, self.plan_trips)

        cutoff = next_cycle.plus(self.settings.lookahead - self.settings.planning_interval)
        plan_set = self.pending.pop_due(cutoff)
        if not plan_set:
            return
        self.nr_orders += sum(1 for o in plan_set if o.unique_id not in self.deferrals)
        logger.info(
            "%s planning %d orders at %s (cutoff %s, %d still pending)",
            self.id, len(plan_set), now.ymdhm(), cutoff.ymdhm(), len(self.pending),
        )

        far = self.road_network.far_centroids()
        while plan_set:
            order = plan_set.pop(0)
            if order.load_centroid in far or order.unload_centroid in far:
                self._plan_or_defer(order)
                continue

            if self._ratio(self.nr_combined_one_terminal) <= self.settings.one_terminal_target:
                partner = self.find_one_terminal_partner(order, plan_set)
                if partner is not None and self._combine(order, partner, plan_set, self.plan_combined_trip_one_terminal):
                    self.nr_combined_one_terminal += 1
                    continue

            if self._ratio(self.nr_combined_two_terminals) <= self.settings.two_terminal_target:
                partner = self.find_two_terminal_partner(order, plan_set)
                if partner is not None and self._combine(order, partner, plan_set, self.plan_combined_trip_two_terminals):
                    self.nr_combined_two_terminals += 1
                    continue

            self._plan_or_defer(order)

    def _ratio(self, count: int) -> float:
        return count / self.nr_orders if self.nr_orders else 0.0

    def _combine(self, order, partner, plan_set: List[TransportOrder], planner) -> bool:
        try:
            planner(order, partner)
        except NoSlotAvailable as exc:
            logger.info("Combination of orders %d and %d not bookable: %s", order.unique_id, partner.unique_id, exc)
            return False
        plan_set.remove(partner)
        return True

    def _plan_or_defer(self, order: TransportOrder) -> Optional[Truck]:
        try:
            return self.plan_single_trip(order)
        except NoSlotAvailable as exc:
            self._defer(order, exc)
            return None

    def _defer(self, order: TransportOrder, exc: Exception) -> None:
        count = self.deferrals.get(order.unique_id, 0) + 1
        self.deferrals[order.unique_id] = count
        if count > self.settings.max_deferrals:
            logger.error("Dropping order %d after %d failed booking attempts: %s", order.unique_id, count, exc)
            self.failed_orders.append(order)
            return
        logger.warning("Deferring order %d (attempt %d): %s", order.unique_id, count, exc)
        self.pending.add(order)

    # matching

    def find_one_terminal_partner(
        self, order: TransportOrder, candidates: List[TransportOrder]
    ) -> Optional[TransportOrder]:
        terminal_centroids = self.terminal_centroids()
        far = self.road_network.far_centroids()
        for other in candidates:
            if other.load_centroid in far or other.unload_centroid in far:
                continue
            # terminals can share a road centroid; the DUAL visit needs one yard
            if order.is_export == other.is_export or order.terminal is not other.terminal:
                continue
            if order.terminal_centroid in terminal_centroids:
                return other
        return None

    def find_two_terminal_partner(
        self, order: TransportOrder, candidates: List[TransportOrder]
    ) -> Optional[TransportOrder]:
        terminal_centroids = self.terminal_centroids()
        far = self.road_network.far_centroids()
        for other in candidates:
            if other.load_centroid in far or other.unload_centroid in far:
                continue
            if order.is_export == other.is_export or order.terminal is other.terminal:
                continue
            if order.terminal_centroid in terminal_centroids and other.terminal_centroid in terminal_centroids:
                return other
        return None

    # trip synthesis

    def generate_truck(self) -> Truck:
        self._truck_nr += 1
        truck = Truck(
            self._truck_nr,
            self.id,
            self.scheduler,
            self.terminal_centroids,
            late_penalty=self.settings.late_penalty,
            on_finished=self.on_truck_finished,
            on_hinterland_delivery=self.on_hinterland_delivery,
        )
        self.trucks.append(truck)
        return truck

    def driving_time(self, orig: Centroid, dest: Centroid) -> timedelta:
        return self.road_network.driving_time(orig, dest, self.settings.reference_speed_kmh)

    def earliest_target(self, order: TransportOrder, lead: timedelta) -> ClockTime:
        """The order's target time, or the first reachable arrival when that has passed."""
        return max(order.target_time, self.reachable(lead))

    def departure_for(self, target: ClockTime, lead: timedelta) -> ClockTime:
        # an earliest-arrival target minus the same lead can round to just before now
        return max(self.scheduler.now(), target.minus(lead))

    def book_appointment(
        self,
        terminal: "Terminal",
        order: TransportOrder,
        target_time: ClockTime,
        earliest: Optional[ClockTime] = None,
    ) -> Appointment:
        if terminal.slot_system is None:
            return Appointment(target_time)
        return terminal.slot_system.book_slot(order, target_time=target_time, earliest=earliest)

    def reachable(self, lead: timedelta) -> ClockTime:
        return self.scheduler.now().plus(lead)

    def release_appointment(self, terminal: "Terminal", appointment: Appointment) -> None:
        if terminal.slot_system is not None and appointment is not None:
            terminal.slot_system.release(appointment)

    def visit_duration(self, terminal: "Terminal", activity_type: TerminalActivityType) -> timedelta:
        yard = terminal.yard
        if activity_type.is_pickup:
            handling = yard.handling_time_import.mean
        elif activity_type.is_dropoff:
            handling = yard.handling_time_export.mean
        else:
            handling = yard.handling_time_dual.mean
        return handling + terminal.gate.average_time_in + terminal.gate.average_time_out

    def plan_single_trip(self, order: TransportOrder) -> Truck:
        terminal = order.terminal
        hinterland = order.hinterland_centroid
        terminal_centroid = order.terminal_centroid
        driving = self.driving_time(hinterland, terminal_centroid)
        distance = self.road_network.distance(hinterland, terminal_centroid)
        margin = self.settings.safety_margin

        reachable = self.reachable(driving + margin)
        appointment = self.book_appointment(terminal, order, self.earliest_target(order, driving + margin), reachable)
        target = appointment.target_time
        truck = self.generate_truck()

        departure = self.departure_for(target, driving + margin)
        if order.is_import:
            activity_type = TerminalActivityType.PICKUP
            visit = PlannedTerminalActivity(truck, terminal, appointment, activity_type, pickup1=order.container)
            to_load, from_load = None, order.container
        else:
            activity_type = TerminalActivityType.DROPOFF
            visit = PlannedTerminalActivity(truck, terminal, appointment, activity_type, dropoff1=order.container)
            to_load, from_load = order.container, None
        return_departure = target.plus(self.visit_duration(terminal, activity_type))
        return_arrival = return_departure.plus(driving + margin)

        truck.add_activity(PlannedDrivingActivity(
            truck, hinterland, terminal_centroid, to_load, None, departure, departure.plus(driving), distance,
        ))
        truck.add_activity(visit)
        truck.add_activity(PlannedDrivingActivity(
            truck, terminal_centroid, hinterland, from_load, None, return_departure, return_arrival, distance,
        ))
        self._register(truck, order)
        self._allocate(order)
        self.nr_single_trips += 1
        truck.start_plan()
        return truck

    def plan_combined_trip_one_terminal(self, order1: TransportOrder, order2: TransportOrder) -> Truck:
        """
        Export dropoff and import pickup at the same terminal in one DUAL visit: the truck
        arrives loaded from the export's origin and leaves loaded to the import's destination.
        """
        export, imp = (order1, order2) if order1.is_export else (order2, order1)
        terminal = export.terminal
        tc = export.terminal_centroid
        origin = export.hinterland_centroid
        destination = imp.hinterland_centroid
        margin = self.settings.safety_margin
        driving_to = self.driving_time(origin, tc)
        driving_from = self.driving_time(tc, destination)

        target = min(self.earliest_target(export, driving_to + margin), self.earliest_target(imp, driving_to + margin))
        appointment = self.book_appointment(terminal, export, target, earliest=self.reachable(driving_to + margin))
        target = appointment.target_time
        truck = self.generate_truck()

        departure = self.departure_for(target, driving_to + margin)
        visit = PlannedTerminalActivity(
            truck, terminal, appointment, TerminalActivityType.DUAL, pickup1=imp.container, dropoff1=export.container,
        )
        return_departure = target.plus(self.visit_duration(terminal, TerminalActivityType.DUAL))
        truck.add_activity(PlannedDrivingActivity(
            truck, origin, tc, export.container, None, departure, departure.plus(driving_to),
            self.road_network.distance(origin, tc),
        ))
        truck.add_activity(visit)
        truck.add_activity(PlannedDrivingActivity(
            truck, tc, destination, imp.container, None, return_departure,
            return_departure.plus(driving_from + margin), self.road_network.distance(tc, destination),
        ))
        truck.combination = "one_terminal"
        for order in (export, imp):
            self._register(truck, order)
            self._allocate(order)
        truck.start_plan()
        return truck

    def plan_combined_trip_two_terminals(self, order1: TransportOrder, order2: TransportOrder) -> Truck:
        """
        Export dropoff at one terminal, short empty hop, import pickup at another terminal.
        Both visits get their own appointment; the first booking is released when the
        second cannot be made.
        """
        export, imp = (order1, order2) if order1.is_export else (order2, order1)
        t1, t2 = export.terminal, imp.terminal
        c1, c2 = export.terminal_centroid, imp.terminal_centroid
        origin = export.hinterland_centroid
        destination = imp.hinterland_centroid
        margin = self.settings.safety_margin
        driving_to = self.driving_time(origin, c1)
        driving_between = self.driving_time(c1, c2)
        driving_from = self.driving_time(c2, destination)

        reachable = self.reachable(driving_to + margin)
        appointment1 = self.book_appointment(t1, export, self.earliest_target(export, driving_to + margin), reachable)
        target1 = appointment1.target_time
        leave_t1 = target1.plus(self.visit_duration(t1, TerminalActivityType.DROPOFF))
        earliest2 = leave_t1.plus(driving_between + margin)
        try:
            appointment2 = self.book_appointment(t2, imp, max(imp.target_time, earliest2), earliest=earliest2)
        except NoSlotAvailable:
            self.release_appointment(t1, appointment1)
            raise
        target2 = appointment2.target_time
        truck = self.generate_truck()

        departure = self.departure_for(target1, driving_to + margin)
        hop_departure = max(leave_t1, target2.minus(driving_between + margin))
        return_departure = target2.plus(self.visit_duration(t2, TerminalActivityType.PICKUP))
        truck.add_activity(PlannedDrivingActivity(
            truck, origin, c1, export.container, None, departure, departure.plus(driving_to),
            self.road_network.distance(origin, c1),
        ))
        truck.add_activity(PlannedTerminalActivity(
            truck, t1, appointment1, TerminalActivityType.DROPOFF, dropoff1=export.container,
        ))
        truck.add_activity(PlannedDrivingActivity(
            truck, c1, c2, None, None, hop_departure, hop_departure.plus(driving_between),
            self.road_network.distance(c1, c2),
        ))
        truck.add_activity(PlannedTerminalActivity(
            truck, t2, appointment2, TerminalActivityType.PICKUP, pickup1=imp.container,
        ))
        truck.add_activity(PlannedDrivingActivity(
            truck, c2, destination, imp.container, None, return_departure,
            return_departure.plus(driving_from + margin), self.road_network.distance(c2, destination),
        ))
        truck.combination = "two_terminals"
        for order in (export, imp):
            self._register(truck, order)
            self._allocate(order)
        truck.start_plan()
        return truck

    def _register(self, truck: Truck, order: TransportOrder) -> None:
        truck.order_ids.append(order.unique_id)
        self.planned_orders[order.unique_id] = truck

    def _allocate(self, order: TransportOrder) -> None:
        if order.vessel is None:
            return
        tos = order.terminal.tos
        if order.is_import:
            tos.add_allocated_in_truck(order.vessel, order.container)
        elif order.booking is not None:
            tos.add_allocated_out_truck(order.vessel, order.booking)

    def summary(self) -> Dict[str, int]:
        return {
            "orders": self.nr_orders,
            "pending": len(self.pending),
            "single_trips": self.nr_single_trips,
            "combined_one_terminal": self.nr_combined_one_terminal,
            "combined_two_terminals": self.nr_combined_two_terminals,
            "failed_orders": len(self.failed_orders),
            "trucks": len(self.trucks),
        }
