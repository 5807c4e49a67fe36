"""Exceptions raised by the cavity dynamics engine."""

from typing import Optional, Tuple


class CavityDynamicsError(Exception):
    """Base class for all errors raised by this package."""


class ShapeError(CavityDynamicsError, ValueError):
    """Operator, state or classical-vector dimensions do not match."""

    def __init__(self, message: str, expected: Optional[Tuple[int, ...]] = None,
                 actual: Optional[Tuple[int, ...]] = None):
        if expected is not None or actual is not None:
            message = f"{message} (expected {expected}, got {actual})"
        super().__init__(message)
        self.expected = expected
        self.actual = actual


class CompositionError(CavityDynamicsError, ValueError):
    """Bases are combined in an incompatible order."""


class GridError(CavityDynamicsError, ValueError):
    """Time grid is malformed or not uniform where uniformity is required."""


class InsufficientDataError(CavityDynamicsError, ValueError):
    """A series is too short, or carries too little signal, for the requested analysis."""


class IntegrationError(CavityDynamicsError, RuntimeError):
    """The integrator failed; `last_time` is the last successfully reached time."""

    def __init__(self, message: str, last_time: float):
        super().__init__(f"{message} (last successful time t={last_time:.6g})")
        self.last_time = last_time
