from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from .errors import SimPortError


class TransportMode(Enum):
    DEEPSEA = 0
    FEEDER = 1
    TRUCK = 2
    BARGE = 3
    RAIL = 4

    @property
    def is_vessel(self) -> bool:
        return self in (TransportMode.DEEPSEA, TransportMode.FEEDER)

    @property
    def is_hinterland(self) -> bool:
        return not self.is_vessel


class VesselType(Enum):
    DEEPSEA = "deepsea"
    FEEDER = "feeder"

    @property
    def is_deepsea(self) -> bool:
        return self is VesselType.DEEPSEA

    @property
    def transport_mode(self) -> TransportMode:
        return TransportMode.DEEPSEA if self.is_deepsea else TransportMode.FEEDER


@dataclass(eq=False)
class Vessel:
    """A vessel call; identity-hashed so it can key the Tos ledger."""

    nr: int
    name: str
    vessel_type: VesselType
    terminal_id: str = ""

    def __repr__(self) -> str:
        return f"Vessel(nr={self.nr}, name={self.name!r}, type={self.vessel_type.value})"


def _check_size(size: int) -> None:
    if size not in (20, 40, 45):
        raise ValueError(f"Container size must be 20, 40 or 45 ft, got {size}.")


@dataclass(frozen=True)
class Container:
    nr: int
    size: int = 20
    full: bool = True
    reefer: bool = False

    def __post_init__(self) -> None:
        _check_size(self.size)

    @property
    def is_40ft(self) -> bool:
        # 45ft boxes are counted with the 40ft class
        return self.size >= 40

    @property
    def teu(self) -> int:
        return 2 if self.is_40ft else 1

    @property
    def is_empty(self) -> bool:
        return not self.full

    @property
    def is_general(self) -> bool:
        return not self.reefer

    @property
    def iso_type(self) -> str:
        if self.reefer:
            return "42R1" if self.size == 40 else f"{self.size}R1"
        return f"{self.size}G1"


@dataclass(eq=False)
class Booking:
    """
    Export booking: a reservation of vessel capacity that gets a physical container later.
    Two bookings are the same booking when their numbers match.
    """

    nr: int
    size: int = 20
    full: bool = True
    reefer: bool = False
    container_nr: Optional[int] = field(default=None)

    def __post_init__(self) -> None:
        _check_size(self.size)

    def set_container_nr(self, container_nr: int) -> None:
        if self.container_nr is not None:
            raise SimPortError(
                f"Booking {self.nr} already carries container {self.container_nr}, cannot set {container_nr}"
            )
        self.container_nr = container_nr

    @property
    def teu(self) -> int:
        return 2 if self.size >= 40 else 1

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Booking):
            return NotImplemented
        return self.nr == other.nr

    def __hash__(self) -> int:
        return hash(("booking", self.nr))
