"""
Pipeline module for the object tracker.

The engine runs the UI side of a tracking session:
- Draining tracking completions onto the UI thread
- Preview display, mouse gestures and key commands
- Periodic statistics
"""

from .engine import EngineConfig, EngineStats, TrackingEngine

__all__ = [
    "EngineConfig",
    "EngineStats",
    "TrackingEngine",
]
