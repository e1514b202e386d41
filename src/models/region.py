"""
Region models for single-object tracking.

A region is a rectangle expressed either in surface (pixel) space or in the
tracker's normalized space, where every component is a fraction of the
frame width/height.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple, Union


def _clamp01(value: float) -> float:
    return min(max(float(value), 0.0), 1.0)


@dataclass(frozen=True)
class Rect:
    """
    An axis-aligned rectangle.

    Attributes:
        x: Origin x coordinate.
        y: Origin y coordinate.
        width: Width (never negative).
        height: Height (never negative).
    """
    x: float
    y: float
    width: float
    height: float

    @classmethod
    def zero(cls) -> "Rect":
        return cls(0.0, 0.0, 0.0, 0.0)

    @classmethod
    def from_points(cls, p1: Tuple[float, float], p2: Tuple[float, float]) -> "Rect":
        """Create the rectangle spanning two corner points."""
        x1, x2 = sorted((float(p1[0]), float(p2[0])))
        y1, y2 = sorted((float(p1[1]), float(p2[1])))
        return cls(x1, y1, x2 - x1, y2 - y1)

    @property
    def max_x(self) -> float:
        return self.x + self.width

    @property
    def max_y(self) -> float:
        return self.y + self.height

    @property
    def center(self) -> Tuple[float, float]:
        return (self.x + self.width / 2, self.y + self.height / 2)

    @property
    def area(self) -> float:
        return self.width * self.height

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    def as_tuple(self) -> Tuple[float, float, float, float]:
        """Return as (x, y, width, height) tuple."""
        return (self.x, self.y, self.width, self.height)

    def as_int_tuple(self) -> Tuple[int, int, int, int]:
        """Return as integer (x, y, width, height) tuple."""
        return (int(round(self.x)), int(round(self.y)), int(round(self.width)), int(round(self.height)))

    def is_close(self, other: "Rect", tol: float = 1e-6) -> bool:
        """Component-wise comparison within an absolute tolerance."""
        return all(abs(a - b) <= tol for a, b in zip(self.as_tuple(), other.as_tuple()))


@dataclass(frozen=True)
class TrackedRegion:
    """
    Last known location of the object of interest, in normalized space.

    Replaced wholesale on every update; never mutated in place.
    """
    rect: Rect

    @classmethod
    def from_xywh(cls, x: float, y: float, w: float, h: float) -> "TrackedRegion":
        return cls(Rect(x, y, w, h))

    @classmethod
    def clamped(cls, rect: Rect) -> "TrackedRegion":
        """Create a region with the rectangle clipped into the unit square."""
        x1, y1 = _clamp01(rect.x), _clamp01(rect.y)
        x2, y2 = _clamp01(rect.max_x), _clamp01(rect.max_y)
        return cls(Rect(x1, y1, max(x2 - x1, 0.0), max(y2 - y1, 0.0)))

    @property
    def is_normalized(self) -> bool:
        r = self.rect
        return (
            0.0 <= r.x <= 1.0 and 0.0 <= r.y <= 1.0
            and r.max_x <= 1.0 + 1e-9 and r.max_y <= 1.0 + 1e-9
        )


@dataclass(frozen=True)
class Observation:
    """
    Result of one tracker invocation.

    Attributes:
        region: New region estimate.
        confidence: Tracker certainty in [0, 1].
    """
    region: TrackedRegion
    confidence: float

    def __post_init__(self):
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"confidence must be within [0, 1], got {self.confidence}")


@dataclass(frozen=True)
class Absent:
    """No active tracking: nothing drawn yet, or the region was cleared."""

    @property
    def is_present(self) -> bool:
        return False


@dataclass(frozen=True)
class Present:
    """Tracking is active with the given region."""
    region: TrackedRegion

    @property
    def is_present(self) -> bool:
        return True


RegionState = Union[Absent, Present]

ABSENT = Absent()
