"""Error taxonomy for racescape computations."""

from __future__ import annotations

import numbers


class InvalidParameter(ValueError):
    """Raised when a run option is out of range; fatal, checked before work starts."""


class ShapeMismatch(ValueError):
    """Raised when category layers disagree on grid shape, resolution, or CRS."""


class InsufficientData(RuntimeError):
    """Raised when an extent has too many missing cells to be evaluated."""

    def __init__(self, message: str, *, missing_share: float | None = None) -> None:
        super().__init__(message)
        self.missing_share = missing_share


def require_positive_int(name: str, value: object) -> int:
    """Return ``value`` as an int, raising InvalidParameter unless it is >= 1."""
    if isinstance(value, bool) or not isinstance(value, numbers.Integral) or value < 1:
        raise InvalidParameter(f"{name} must be a positive integer, got {value!r}.")
    return int(value)
