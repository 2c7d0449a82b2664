"""
Terminal operating system ledger.

Tracks, per vessel, which discharged containers and which export bookings are still
unallocated and which are allocated to a hinterland mode (rail, barge, truck) or to another
vessel. Every `add_allocated_*` first removes the item from the matching unallocated list,
so an item sits in at most one list of a vessel.

The `get_*` lookups hand out the live list held by the ledger. Only the owning terminal's
callbacks may mutate it; callers that need a stable view take a copy.
"""

from __future__ import annotations

from typing import Dict, Hashable, List, Optional

from .cargo import Booking, Container, Vessel

UNALLOCATED_IN = "unallocated_in"
UNALLOCATED_OUT = "unallocated_out"
ALLOCATED_IN_RAIL = "allocated_in_rail"
ALLOCATED_IN_BARGE = "allocated_in_barge"
ALLOCATED_IN_TRUCK = "allocated_in_truck"
ALLOCATED_OUT_RAIL = "allocated_out_rail"
ALLOCATED_OUT_BARGE = "allocated_out_barge"
ALLOCATED_OUT_TRUCK = "allocated_out_truck"

IN_LISTS = (UNALLOCATED_IN, ALLOCATED_IN_RAIL, ALLOCATED_IN_BARGE, ALLOCATED_IN_TRUCK)
OUT_LISTS = (UNALLOCATED_OUT, ALLOCATED_OUT_RAIL, ALLOCATED_OUT_BARGE, ALLOCATED_OUT_TRUCK)


def calculate_vv(vessel_from: Vessel, vessel_to: Vessel) -> int:
    """Pack two vessel numbers into one key; unique only while both fit in 16 bits."""
    return (vessel_from.nr << 16) | vessel_to.nr


def _remove(items: List, item) -> bool:
    try:
        items.remove(item)
    except ValueError:
        return False
    return True


class Tos:
    def __init__(self) -> None:
        self._lists: Dict[str, Dict[Vessel, List]] = {name: {} for name in IN_LISTS + OUT_LISTS}
        self._allocated_vv: Dict[int, List[Container]] = {}

    def _list(self, name: str, vessel: Vessel) -> List:
        return self._lists[name].setdefault(vessel, [])

    def _vessels(self, name: str) -> List[Vessel]:
        return [vessel for vessel, items in self._lists[name].items() if items]

    # unallocated in

    def add_unallocated_in(self, vessel: Vessel, container: Container) -> None:
        self._list(UNALLOCATED_IN, vessel).append(container)

    def remove_unallocated_in(self, vessel: Vessel, container: Container) -> bool:
        return _remove(self._list(UNALLOCATED_IN, vessel), container)

    def get_unallocated_in(self, vessel: Vessel) -> List[Container]:
        return self._list(UNALLOCATED_IN, vessel)

    def get_unallocated_in_vessels(self) -> List[Vessel]:
        return self._vessels(UNALLOCATED_IN)

    # unallocated out

    def add_unallocated_out(self, vessel: Vessel, booking: Booking) -> None:
        self._list(UNALLOCATED_OUT, vessel).append(booking)

    def remove_unallocated_out(self, vessel: Vessel, booking: Booking) -> bool:
        return _remove(self._list(UNALLOCATED_OUT, vessel), booking)

    def get_unallocated_out(self, vessel: Vessel) -> List[Booking]:
        return self._list(UNALLOCATED_OUT, vessel)

    def get_unallocated_out_vessels(self) -> List[Vessel]:
        return self._vessels(UNALLOCATED_OUT)

    # allocated in (vessel -> hinterland)

    def _allocate_in(self, name: str, vessel: Vessel, container: Container) -> None:
        self.remove_unallocated_in(vessel, container)
        self._list(name, vessel).append(container)

    def add_allocated_in_rail(self, vessel: Vessel, container: Container) -> None:
        self._allocate_in(ALLOCATED_IN_RAIL, vessel, container)

    def remove_allocated_in_rail(self, vessel: Vessel, container: Container) -> bool:
        return _remove(self._list(ALLOCATED_IN_RAIL, vessel), container)

    def get_allocated_in_rail(self, vessel: Vessel) -> List[Container]:
        return self._list(ALLOCATED_IN_RAIL, vessel)

    def get_allocated_in_rail_vessels(self) -> List[Vessel]:
        return self._vessels(ALLOCATED_IN_RAIL)

    def add_allocated_in_barge(self, vessel: Vessel, container: Container) -> None:
        self._allocate_in(ALLOCATED_IN_BARGE, vessel, container)

    def remove_allocated_in_barge(self, vessel: Vessel, container: Container) -> bool:
        return _remove(self._list(ALLOCATED_IN_BARGE, vessel), container)

    def get_allocated_in_barge(self, vessel: Vessel) -> List[Container]:
        return self._list(ALLOCATED_IN_BARGE, vessel)

    def get_allocated_in_barge_vessels(self) -> List[Vessel]:
        return self._vessels(ALLOCATED_IN_BARGE)

    def add_allocated_in_truck(self, vessel: Vessel, container: Container) -> None:
        self._allocate_in(ALLOCATED_IN_TRUCK, vessel, container)

    def remove_allocated_in_truck(self, vessel: Vessel, container: Container) -> bool:
        return _remove(self._list(ALLOCATED_IN_TRUCK, vessel), container)

    def get_allocated_in_truck(self, vessel: Vessel) -> List[Container]:
        return self._list(ALLOCATED_IN_TRUCK, vessel)

    def get_allocated_in_truck_vessels(self) -> List[Vessel]:
        return self._vessels(ALLOCATED_IN_TRUCK)

    # allocated out (hinterland -> vessel)

    def _allocate_out(self, name: str, vessel: Vessel, booking: Booking) -> None:
        self.remove_unallocated_out(vessel, booking)
        self._list(name, vessel).append(booking)

    def add_allocated_out_rail(self, vessel: Vessel, booking: Booking) -> None:
        self._allocate_out(ALLOCATED_OUT_RAIL, vessel, booking)

    def remove_allocated_out_rail(self, vessel: Vessel, booking: Booking) -> bool:
        return _remove(self._list(ALLOCATED_OUT_RAIL, vessel), booking)

    def get_allocated_out_rail(self, vessel: Vessel) -> List[Booking]:
        return self._list(ALLOCATED_OUT_RAIL, vessel)

    def get_allocated_out_rail_vessels(self) -> List[Vessel]:
        return self._vessels(ALLOCATED_OUT_RAIL)

    def add_allocated_out_barge(self, vessel: Vessel, booking: Booking) -> None:
        self._allocate_out(ALLOCATED_OUT_BARGE, vessel, booking)

    def remove_allocated_out_barge(self, vessel: Vessel, booking: Booking) -> bool:
        return _remove(self._list(ALLOCATED_OUT_BARGE, vessel), booking)

    def get_allocated_out_barge(self, vessel: Vessel) -> List[Booking]:
        return self._list(ALLOCATED_OUT_BARGE, vessel)

    def get_allocated_out_barge_vessels(self) -> List[Vessel]:
        return self._vessels(ALLOCATED_OUT_BARGE)

    def add_allocated_out_truck(self, vessel: Vessel, booking: Booking) -> None:
        self._allocate_out(ALLOCATED_OUT_TRUCK, vessel, booking)

    def remove_allocated_out_truck(self, vessel: Vessel, booking: Booking) -> bool:
        return _remove(self._list(ALLOCATED_OUT_TRUCK, vessel), booking)

    def get_allocated_out_truck(self, vessel: Vessel) -> List[Booking]:
        return self._list(ALLOCATED_OUT_TRUCK, vessel)

    def get_allocated_out_truck_vessels(self) -> List[Vessel]:
        return self._vessels(ALLOCATED_OUT_TRUCK)

    # vessel to vessel (transshipment)

    def add_allocated_vv(self, vessel_from: Vessel, vessel_to: Vessel, container: Container) -> None:
        self.remove_unallocated_in(vessel_from, container)
        self._allocated_vv.setdefault(calculate_vv(vessel_from, vessel_to), []).append(container)

    def remove_allocated_vv(self, vessel_from: Vessel, vessel_to: Vessel, container: Container) -> bool:
        return _remove(self._allocated_vv.setdefault(calculate_vv(vessel_from, vessel_to), []), container)

    def get_allocated_vv(self, vessel_from: Vessel, vessel_to: Vessel) -> List[Container]:
        return self._allocated_vv.setdefault(calculate_vv(vessel_from, vessel_to), [])

    # lookups

    def allocation_of(self, vessel: Vessel, item: Hashable) -> Optional[str]:
        """Name of the list of `vessel` that holds `item`, or None."""
        for name, per_vessel in self._lists.items():
            if item in per_vessel.get(vessel, ()):
                return name
        return None

    def count(self, name: str) -> int:
        return sum(len(items) for items in self._lists[name].values())
