"""
Exception taxonomy for the port core.

Only NoSlotAvailable is recovered locally (by the trucking planner). Every other
error is meant to reach the simulation driver and stop the run.
"""


class PortSimError(Exception):
    """Base class for all errors raised by the port core."""


class InvalidConfiguration(PortSimError, ValueError):
    """Malformed construction parameters (slot windows, modal split, ...)."""


class ParseError(PortSimError, ValueError):
    """A timestamp or other textual input could not be parsed."""


class SimPortError(PortSimError, RuntimeError):
    """A state invariant was violated (empty yard position, double booking, ...)."""


class NoSlotAvailable(PortSimError):
    """All slot windows around a requested arrival are fully booked."""


class PastSchedulingError(PortSimError, ValueError):
    """An event was scheduled before the current simulation time."""
