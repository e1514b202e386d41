"""
Typed models for the object tracker application.
"""

from .frame import FrameData
from .region import (
    ABSENT,
    Absent,
    Observation,
    Present,
    Rect,
    RegionState,
    TrackedRegion,
)
from .config import (
    Config,
    CameraConfig,
    TrackingConfig,
    OverlayConfig,
    DisplayConfig,
)

__all__ = [
    # Frame
    "FrameData",
    # Regions
    "Rect",
    "TrackedRegion",
    "Observation",
    "RegionState",
    "Absent",
    "Present",
    "ABSENT",
    # Config
    "Config",
    "CameraConfig",
    "TrackingConfig",
    "OverlayConfig",
    "DisplayConfig",
]
