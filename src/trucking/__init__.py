from .activity import (
    PlannedDrivingActivity,
    PlannedTerminalActivity,
    PlannedTruckActivity,
    RealizedDrivingActivity,
    RealizedTerminalActivity,
    RealizedTruckActivity,
    TerminalActivityType,
)
from .company import PlannerSettings, TruckingCompany
from .orders import OrderFactory, PendingOrders, TransportOrder
from .truck import Truck, TruckState

__all__ = [
    "OrderFactory",
    "PendingOrders",
    "PlannedDrivingActivity",
    "PlannedTerminalActivity",
    "PlannedTruckActivity",
    "PlannerSettings",
    "RealizedDrivingActivity",
    "RealizedTerminalActivity",
    "RealizedTruckActivity",
    "TerminalActivityType",
    "TransportOrder",
    "Truck",
    "TruckState",
    "TruckingCompany",
]
