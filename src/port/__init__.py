from .appointment import Appointment, Slot, SlotBooking
from .cargo import Booking, Container, TransportMode, Vessel, VesselType
from .clocktime import ClockTime
from .distributions import DistConstant, DistExponential, DistTriangular, DistUniform, DurationDist
from .errors import (
    InvalidConfiguration,
    NoSlotAvailable,
    ParseError,
    PastSchedulingError,
    PortSimError,
    SimPortError,
)
from .facility import Gate, Yard
from .network import Centroid, RoadNetwork
from .scheduler import EventHandle, Scheduler
from .slots import CapacitySlotManagementSystem, SlotManagementSystem
from .statistics import ContainerTypeRecord, TerminalData, TerminalStatistics
from .terminal import Terminal
from .tos import Tos, calculate_vv

__all__ = [
    "Appointment",
    "Booking",
    "CapacitySlotManagementSystem",
    "Centroid",
    "ClockTime",
    "Container",
    "ContainerTypeRecord",
    "DistConstant",
    "DistExponential",
    "DistTriangular",
    "DistUniform",
    "DurationDist",
    "EventHandle",
    "Gate",
    "InvalidConfiguration",
    "NoSlotAvailable",
    "ParseError",
    "PastSchedulingError",
    "PortSimError",
    "RoadNetwork",
    "Scheduler",
    "SimPortError",
    "Slot",
    "SlotBooking",
    "SlotManagementSystem",
    "Terminal",
    "TerminalData",
    "TerminalStatistics",
    "Tos",
    "TransportMode",
    "Vessel",
    "VesselType",
    "Yard",
    "calculate_vv",
]
