from __future__ import annotations

from typing import Optional

from .facility import Gate, Yard
from .network import Centroid
from .slots import SlotManagementSystem
from .statistics import TerminalStatistics
from .tos import Tos


class Terminal:
    """
    A container terminal: a road centroid plus the gate, yard, ledger, statistics and
    (optionally) slot system it owns. Nothing here is shared with other terminals.
    """

    def __init__(
        self,
        terminal_id: str,
        name: str,
        centroid: Centroid,
        gate: Gate,
        yard: Yard,
        statistics: TerminalStatistics,
        slot_system: Optional[SlotManagementSystem] = None,
    ):
        self.id = terminal_id
        self.name = name
        self.centroid = centroid
        self.gate = gate
        self.yard = yard
        self.statistics = statistics
        self.slot_system = slot_system
        self.tos = Tos()

    def __repr__(self) -> str:
        return f"Terminal(id={self.id!r}, name={self.name!r})"
