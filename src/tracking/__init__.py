"""
Tracking module.

TrackingController runs the frame-to-frame loop; TrackerPrimitive
implementations locate the region in each new frame.
"""

from __future__ import annotations

from models.config import TrackingConfig
from .primitive import TrackerFailure, TrackerPrimitive, TrackingLevel
from .template import TemplateTracker
from .controller import TrackingController, TrackingStats, drag_rectangle


def create_tracker(tracking_cfg: TrackingConfig) -> TrackerPrimitive:
    """Build the tracker selected by the tracking config."""
    return TemplateTracker(
        level=TrackingLevel(tracking_cfg.level),
        search_margin=tracking_cfg.search_margin,
    )


__all__ = [
    "TrackerFailure",
    "TrackerPrimitive",
    "TrackingLevel",
    "TemplateTracker",
    "TrackingController",
    "TrackingStats",
    "drag_rectangle",
    "create_tracker",
]
