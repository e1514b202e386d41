"""
Interactive preview: mouse gestures and the OpenCV window loop.
"""

from .gestures import MouseGestureAdapter

__all__ = ["MouseGestureAdapter"]
