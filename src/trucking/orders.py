from __future__ import annotations

import bisect
import itertools
from dataclasses import dataclass
from datetime import timedelta
from typing import TYPE_CHECKING, Iterator, List, Optional, Tuple

from ..port.cargo import Booking, Container, Vessel
from ..port.clocktime import ClockTime
from ..port.network import Centroid

if TYPE_CHECKING:
    from ..port.terminal import Terminal


@dataclass(frozen=True)
class TransportOrder:
    """
    One container move between a terminal and a hinterland centroid.

    Import orders load at a terminal (`load_terminal` set), export orders unload at one
    (`unload_terminal` set). Orders sort by `(target_time, unique_id)`; unique ids are never
    reused, so two distinct orders never compare equal.
    """

    unique_id: int
    vessel: Optional[Vessel]
    container: Container
    load_centroid: Centroid
    load_terminal: Optional["Terminal"]
    unload_centroid: Centroid
    unload_terminal: Optional["Terminal"]
    target_time: ClockTime
    margin_before: timedelta = timedelta(0)
    margin_after: timedelta = timedelta(0)
    booking: Optional[Booking] = None

    def __post_init__(self) -> None:
        if (self.load_terminal is None) == (self.unload_terminal is None):
            raise ValueError(
                f"Order {self.unique_id} must have exactly one terminal end (load or unload)."
            )

    @property
    def sort_key(self) -> Tuple[ClockTime, int]:
        return (self.target_time, self.unique_id)

    @property
    def is_import(self) -> bool:
        return self.load_terminal is not None

    @property
    def is_export(self) -> bool:
        return self.unload_terminal is not None

    @property
    def terminal(self) -> "Terminal":
        return self.load_terminal if self.load_terminal is not None else self.unload_terminal

    @property
    def terminal_centroid(self) -> Centroid:
        return self.load_centroid if self.is_import else self.unload_centroid

    @property
    def hinterland_centroid(self) -> Centroid:
        return self.unload_centroid if self.is_import else self.load_centroid

    def __lt__(self, other: "TransportOrder") -> bool:
        return self.sort_key < other.sort_key

    def __str__(self) -> str:
        kind = "import" if self.is_import else "export"
        return f"TransportOrder[{self.unique_id} {kind} {self.load_centroid}->{self.unload_centroid} @ {self.target_time}]"


class OrderFactory:
    """Hands out monotonically increasing order ids for one model."""

    def __init__(self, start: int = 1):
        self._ids = itertools.count(start)

    def create(self, **kwargs) -> TransportOrder:
        return TransportOrder(unique_id=next(self._ids), **kwargs)


class PendingOrders:
    """Orders waiting to be planned, kept sorted by `(target_time, unique_id)`."""

    def __init__(self) -> None:
        self._orders: List[TransportOrder] = []

    def add(self, order: TransportOrder) -> None:
        bisect.insort(self._orders, order, key=lambda o: o.sort_key)

    def pop_due(self, cutoff: ClockTime) -> List[TransportOrder]:
        """Remove and return, in order, every order with a target time at or before `cutoff`."""
        idx = bisect.bisect_right([o.target_time for o in self._orders], cutoff)
        due, self._orders = self._orders[:idx], self._orders[idx:]
        return due

    def __iter__(self) -> Iterator[TransportOrder]:
        return iter(list(self._orders))

    def __len__(self) -> int:
        return len(self._orders)

    def __contains__(self, order: TransportOrder) -> bool:
        return order in self._orders
