"""
Tracker primitive contract.

Given the previous region and a new frame, a tracker returns the region's new
location with a confidence score, or raises TrackerFailure. The tracking loop
is agnostic to the algorithm behind it.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum

from models.frame import FrameData
from models.region import Observation, TrackedRegion


class TrackingLevel(Enum):
    """Tracker operating point."""
    ACCURATE = "accurate"  # slower, more robust
    FAST = "fast"


class TrackerFailure(Exception):
    """The tracker could not produce an observation for this frame/region pair."""


class TrackerPrimitive(ABC):
    """
    Single-object tracker.

    Regions are normalized to the frame size with a bottom-left origin.
    Implementations are called from one thread at a time, once per frame,
    with at most one outstanding request.
    """

    def __init__(self, level: TrackingLevel = TrackingLevel.ACCURATE):
        self.level = level

    @abstractmethod
    def track(self, region: TrackedRegion, frame: FrameData) -> Observation:
        """
        Update `region` against `frame`.

        Raises:
            TrackerFailure: If no observation can be produced.
        """

    def reset(self) -> None:
        """Forget any appearance state carried between calls."""
