"""
Mouse input as drag gestures.

OpenCV delivers raw mouse events to a window callback; this adapter turns a
left-button press/move/release sequence into began/changed/ended gesture
events for the tracking controller.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

import cv2

from models.gesture import GestureState, Point

logger = logging.getLogger(__name__)

GestureHandler = Callable[[GestureState, Point], None]


class MouseGestureAdapter:
    """
    Translate cv2 mouse callbacks into drag gestures.

    Example:
        adapter = MouseGestureAdapter(controller.handle_gesture)
        cv2.setMouseCallback(window_name, adapter)
    """

    def __init__(self, handler: GestureHandler):
        self._handler = handler
        self._dragging = False
        self._last_point: Optional[Point] = None

    @property
    def dragging(self) -> bool:
        return self._dragging

    def __call__(self, event: int, x: int, y: int, flags: int, param=None) -> None:
        point = (float(x), float(y))
        if event == cv2.EVENT_LBUTTONDOWN:
            self._dragging = True
            self._last_point = point
            self._handler(GestureState.BEGAN, point)
        elif event == cv2.EVENT_MOUSEMOVE and self._dragging:
            if point != self._last_point:
                self._last_point = point
                self._handler(GestureState.CHANGED, point)
        elif event == cv2.EVENT_LBUTTONUP and self._dragging:
            self._dragging = False
            if point != self._last_point:
                self._handler(GestureState.CHANGED, point)
            self._last_point = None
            self._handler(GestureState.ENDED, point)
        elif event == cv2.EVENT_RBUTTONDOWN and self._dragging:
            self._dragging = False
            self._last_point = None
            self._handler(GestureState.CANCELLED, point)
