"""
Template-matching tracker.

Captures the appearance of the seeded region and, on every following frame,
searches a window around the previous location with normalized
cross-correlation (cv2.TM_CCOEFF_NORMED). The best correlation score is the
observation's confidence.

ACCURATE searches a wider window at three scales on full-resolution pixels.
FAST searches a narrower window at one scale on half-resolution pixels.
"""

from __future__ import annotations

import logging
from typing import Optional, Tuple

import cv2
import numpy as np

from models.frame import FrameData
from models.region import Observation, Rect, TrackedRegion
from .primitive import TrackerFailure, TrackerPrimitive, TrackingLevel

logger = logging.getLogger(__name__)

PixelBox = Tuple[int, int, int, int]


def region_to_pixels(region: TrackedRegion, width: int, height: int) -> PixelBox:
    """Bottom-left-origin normalized region -> (x, y, w, h) top-left pixel box, clipped."""
    r = region.rect
    x1 = int(round(r.x * width))
    x2 = int(round(r.max_x * width))
    y1 = int(round((1.0 - r.max_y) * height))
    y2 = int(round((1.0 - r.y) * height))
    x1, x2 = min(max(x1, 0), width), min(max(x2, 0), width)
    y1, y2 = min(max(y1, 0), height), min(max(y2, 0), height)
    return (x1, y1, max(x2 - x1, 0), max(y2 - y1, 0))


def pixels_to_region(x: float, y: float, w: float, h: float, width: int, height: int) -> TrackedRegion:
    """Top-left pixel box -> bottom-left-origin normalized region, clipped to the frame."""
    return TrackedRegion.clamped(Rect(x / width, 1.0 - (y + h) / height, w / width, h / height))


class TemplateTracker(TrackerPrimitive):
    """
    Appearance-template tracker built on cv2.matchTemplate.

    A call with a region other than the one this tracker last returned is a
    new seed: the template is captured from that frame and the region is
    returned unchanged with full confidence.
    """

    MIN_TEMPLATE_PX = 4
    SCALES = {
        TrackingLevel.ACCURATE: (0.95, 1.0, 1.05),
        TrackingLevel.FAST: (1.0,),
    }
    DOWNSCALE = {
        TrackingLevel.ACCURATE: 1.0,
        TrackingLevel.FAST: 0.5,
    }
    MARGIN_FACTOR = {
        TrackingLevel.ACCURATE: 1.0,
        TrackingLevel.FAST: 0.5,
    }
    TEMPLATE_UPDATE_MIN_SCORE = 0.7
    TEMPLATE_UPDATE_ALPHA = 0.1

    def __init__(self, level: TrackingLevel = TrackingLevel.ACCURATE, search_margin: float = 1.0):
        super().__init__(level)
        if search_margin <= 0:
            raise ValueError("search_margin must be positive")
        self.search_margin = search_margin
        self._template: Optional[np.ndarray] = None
        self._last_region: Optional[TrackedRegion] = None

    @property
    def has_template(self) -> bool:
        return self._template is not None

    def reset(self) -> None:
        self._template = None
        self._last_region = None

    def track(self, region: TrackedRegion, frame: FrameData) -> Observation:
        gray = frame.gray()
        height, width = gray.shape[:2]
        if width == 0 or height == 0:
            raise TrackerFailure("empty frame")

        box = region_to_pixels(region, width, height)
        if self._template is None or region != self._last_region:
            return self._seed(region, gray, box)
        return self._search(gray, box)

    def _seed(self, region: TrackedRegion, gray: np.ndarray, box: PixelBox) -> Observation:
        x, y, w, h = box
        if w < self.MIN_TEMPLATE_PX or h < self.MIN_TEMPLATE_PX:
            raise TrackerFailure(f"region too small to track: {w}x{h}px")
        self._template = gray[y:y + h, x:x + w].copy()
        self._last_region = region
        logger.debug(f"Template captured: {w}x{h}px at ({x}, {y})")
        return Observation(region=region, confidence=1.0)

    def _search(self, gray: np.ndarray, box: PixelBox) -> Observation:
        height, width = gray.shape[:2]
        x, y, bw, bh = box
        cx, cy = x + bw / 2.0, y + bh / 2.0
        margin = self.search_margin * self.MARGIN_FACTOR[self.level]
        half_w = bw * (0.5 + margin) * max(self.SCALES[self.level])
        half_h = bh * (0.5 + margin) * max(self.SCALES[self.level])
        wx1, wy1 = int(max(cx - half_w, 0)), int(max(cy - half_h, 0))
        wx2, wy2 = int(min(cx + half_w, width)), int(min(cy + half_h, height))
        window = gray[wy1:wy2, wx1:wx2]

        ds = self.DOWNSCALE[self.level]
        if ds != 1.0 and window.size:
            window = cv2.resize(window, None, fx=ds, fy=ds, interpolation=cv2.INTER_AREA)

        best = None
        for scale in self.SCALES[self.level]:
            tw, th = int(round(bw * scale)), int(round(bh * scale))
            if tw < self.MIN_TEMPLATE_PX or th < self.MIN_TEMPLATE_PX:
                continue
            templ = self._template
            if templ.shape[1] != tw or templ.shape[0] != th:
                templ = cv2.resize(templ, (tw, th), interpolation=cv2.INTER_LINEAR)
            if ds != 1.0:
                templ = cv2.resize(templ, None, fx=ds, fy=ds, interpolation=cv2.INTER_AREA)
            if templ.shape[0] > window.shape[0] or templ.shape[1] > window.shape[1]:
                continue

            result = cv2.matchTemplate(window, templ, cv2.TM_CCOEFF_NORMED)
            result = np.nan_to_num(result, nan=0.0, posinf=0.0, neginf=0.0)
            _, max_val, _, max_loc = cv2.minMaxLoc(result)
            if best is None or max_val > best[0]:
                best = (max_val, wx1 + max_loc[0] / ds, wy1 + max_loc[1] / ds, tw, th)

        if best is None:
            raise TrackerFailure("search window is smaller than the template")

        score, nx, ny, nw, nh = best
        confidence = float(np.clip(score, 0.0, 1.0))
        new_region = pixels_to_region(nx, ny, nw, nh, width, height)
        if new_region.rect.is_empty:
            raise TrackerFailure("region left the frame")

        if confidence >= self.TEMPLATE_UPDATE_MIN_SCORE:
            self._refresh_template(gray, int(round(nx)), int(round(ny)), nw, nh)

        self._last_region = new_region
        return Observation(region=new_region, confidence=confidence)

    def _refresh_template(self, gray: np.ndarray, x: int, y: int, w: int, h: int) -> None:
        """Blend the latest appearance into the template to follow slow changes."""
        patch = gray[y:y + h, x:x + w]
        if patch.shape[0] < self.MIN_TEMPLATE_PX or patch.shape[1] < self.MIN_TEMPLATE_PX:
            return
        th, tw = self._template.shape[:2]
        if patch.shape[:2] != (th, tw):
            patch = cv2.resize(patch, (tw, th), interpolation=cv2.INTER_LINEAR)
        alpha = self.TEMPLATE_UPDATE_ALPHA
        self._template = cv2.addWeighted(patch, alpha, self._template, 1.0 - alpha, 0)
