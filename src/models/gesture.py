"""
Gesture input models.
"""

from __future__ import annotations

from enum import Enum
from typing import Tuple

Point = Tuple[float, float]


class GestureState(Enum):
    """Lifecycle of a drag gesture. Only BEGAN, CHANGED and ENDED drive tracking."""
    POSSIBLE = "possible"
    BEGAN = "began"
    CHANGED = "changed"
    ENDED = "ended"
    CANCELLED = "cancelled"
    FAILED = "failed"
