"""Exception types raised by the engine."""

from __future__ import annotations


class ParkGuardError(Exception):
    """Base class for engine errors."""


class GeometryError(ParkGuardError):
    """Geometry input could not be turned into a usable shape."""


class BatchAbortedError(ParkGuardError):
    """A batch run could not start or continue; no results are trusted."""
