"""
Overlay renderer.

Holds the on-screen highlight (a rectangle in surface space plus a style)
and draws it over the preview with OpenCV. Also owns the conversions between
surface space and the tracker's normalized, bottom-left-origin space.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional, Tuple

import cv2
import numpy as np

from models.config import OverlayConfig
from models.region import Rect, TrackedRegion
from .layout import PreviewLayout, flip_vertical


class OverlayStyle(Enum):
    """Visual style of the highlight."""
    CONFIDENT = "confident"
    LOW_CONFIDENCE = "low_confidence"


def to_bgr(image: np.ndarray) -> np.ndarray:
    """Single-channel images are expanded to BGR; anything else is returned as is."""
    if image.ndim == 2 or image.shape[2] == 1:
        return cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
    return image


def _rounded_mask(shape, x: int, y: int, w: int, h: int, r: int) -> np.ndarray:
    mask = np.zeros(shape[:2], dtype=np.uint8)
    cv2.rectangle(mask, (x + r, y), (x + w - r, y + h), 255, cv2.FILLED)
    cv2.rectangle(mask, (x, y + r), (x + w, y + h - r), 255, cv2.FILLED)
    if r > 0:
        for cx, cy in ((x + r, y + r), (x + w - r, y + r), (x + r, y + h - r), (x + w - r, y + h - r)):
            cv2.circle(mask, (cx, cy), r, 255, cv2.FILLED)
    return mask


def _rounded_rectangle(img: np.ndarray, x: int, y: int, w: int, h: int, r: int, color, thickness: int) -> None:
    if r <= 0:
        cv2.rectangle(img, (x, y), (x + w, y + h), color, thickness, cv2.LINE_AA)
        return
    x2, y2 = x + w, y + h
    cv2.line(img, (x + r, y), (x2 - r, y), color, thickness, cv2.LINE_AA)
    cv2.line(img, (x + r, y2), (x2 - r, y2), color, thickness, cv2.LINE_AA)
    cv2.line(img, (x, y + r), (x, y2 - r), color, thickness, cv2.LINE_AA)
    cv2.line(img, (x2, y + r), (x2, y2 - r), color, thickness, cv2.LINE_AA)
    # Arcs start at the given rotation and sweep 90 degrees clockwise
    for center, rotation in (((x + r, y + r), 180), ((x2 - r, y + r), 270),
                             ((x2 - r, y2 - r), 0), ((x + r, y2 - r), 90)):
        cv2.ellipse(img, center, (r, r), rotation, 0, 90, color, thickness, cv2.LINE_AA)


class OverlayRenderer:
    """
    Highlight overlay drawn on top of the preview surface.

    Mutators are not thread-safe; the tracking controller only calls them
    from the UI thread.
    """

    def __init__(self, layout: PreviewLayout, config: Optional[OverlayConfig] = None):
        self.config = config or OverlayConfig()
        self.layout = layout
        self._rect = Rect.zero()
        self._style = OverlayStyle.CONFIDENT

    @property
    def rect(self) -> Rect:
        return self._rect

    @property
    def style(self) -> OverlayStyle:
        return self._style

    def set_geometry(self, rect: Rect) -> None:
        self._rect = rect

    def set_style(self, style: OverlayStyle) -> None:
        self._style = style

    def reset(self) -> None:
        """Hide the highlight: zero-size rectangle, confident style."""
        self._rect = Rect.zero()
        self._style = OverlayStyle.CONFIDENT

    def update_frame_size(self, frame_size: Tuple[int, int]) -> None:
        if tuple(frame_size) != tuple(self.layout.frame_size):
            self.layout = self.layout.with_frame_size(frame_size)

    # Coordinate conversion

    def surface_rect_for_region(self, region: TrackedRegion) -> Rect:
        """Tracker region -> surface rectangle."""
        return self.layout.layer_rect_from_normalized(flip_vertical(region.rect))

    def region_for_surface_rect(self, rect: Rect) -> TrackedRegion:
        """Surface rectangle -> tracker region. Inverse of surface_rect_for_region."""
        return TrackedRegion(flip_vertical(self.layout.normalized_from_layer_rect(rect)))

    # Drawing

    def _colors(self) -> Tuple[Tuple[int, int, int], Tuple[int, int, int]]:
        if self._style is OverlayStyle.CONFIDENT:
            border, fill = self.config.confident_color, self.config.confident_fill
        else:
            border, fill = self.config.low_confidence_color, self.config.low_confidence_fill
        return tuple(int(c) for c in border), tuple(int(c) for c in fill)

    def draw(self, surface: np.ndarray) -> np.ndarray:
        """Return a BGR copy of `surface` with the highlight drawn."""
        img = to_bgr(surface).copy()
        if self._rect.is_empty:
            return img

        h, w = img.shape[:2]
        x, y, rw, rh = self._rect.as_int_tuple()
        x1, y1 = max(x, 0), max(y, 0)
        x2, y2 = min(x + rw, w), min(y + rh, h)
        if x2 <= x1 or y2 <= y1:
            return img

        border, fill = self._colors()
        radius = max(min(int(self.config.corner_radius), rw // 2, rh // 2), 0)
        alpha = float(self.config.fill_alpha)
        roi = img[y1:y2, x1:x2]
        tint = cv2.addWeighted(np.full_like(roi, fill), alpha, roi, 1.0 - alpha, 0)
        inside = _rounded_mask(roi.shape, x - x1, y - y1, rw, rh, radius) > 0
        roi[inside] = tint[inside]
        _rounded_rectangle(img, x, y, rw, rh, radius, border, int(self.config.border_width))
        return img

    def compose(self, image: np.ndarray) -> np.ndarray:
        """Lay the frame out on the surface and draw the highlight over it."""
        return self.draw(self.layout.render_frame(to_bgr(image)))
