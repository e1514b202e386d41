"""
Preview layout: mapping between the preview surface and the frame.

Surface space is pixels of the window the frame is shown in (origin top-left).
Normalized space is fractions of the frame size with a top-left origin.
The tracker works in normalized space with a bottom-left origin; use
flip_vertical() to go between the two conventions.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Tuple

import cv2
import numpy as np

from models.region import Rect

GRAVITIES = ("resize", "resize_aspect", "resize_aspect_fill")


def flip_vertical(rect: Rect) -> Rect:
    """Mirror a normalized rectangle about y = 0.5 (y' = 1 - y for every point)."""
    # The whole box is mirrored, so the origin moves to 1 - y - height rather
    # than 1 - y; applying the flip twice gives back the same rectangle.
    return Rect(rect.x, 1.0 - rect.y - rect.height, rect.width, rect.height)


@dataclass(frozen=True)
class PreviewLayout:
    """
    Placement of a frame inside a preview surface.

    Attributes:
        surface_size: Surface (width, height) in pixels.
        frame_size: Frame (width, height) in pixels.
        gravity: "resize" stretches the frame, "resize_aspect" fits it inside
            the surface (letterboxed), "resize_aspect_fill" fills the surface
            and crops the overflow.
    """
    surface_size: Tuple[int, int]
    frame_size: Tuple[int, int]
    gravity: str = "resize_aspect_fill"

    def __post_init__(self):
        if self.gravity not in GRAVITIES:
            raise ValueError(f"gravity must be one of {GRAVITIES}, got {self.gravity!r}")
        if min(self.surface_size) <= 0 or min(self.frame_size) <= 0:
            raise ValueError("surface_size and frame_size must be positive")

    def with_frame_size(self, frame_size: Tuple[int, int]) -> "PreviewLayout":
        return replace(self, frame_size=tuple(frame_size))

    @property
    def scale(self) -> Tuple[float, float]:
        """Surface pixels per frame pixel along x and y."""
        sw, sh = self.surface_size
        fw, fh = self.frame_size
        sx, sy = sw / fw, sh / fh
        if self.gravity == "resize_aspect":
            s = min(sx, sy)
            return (s, s)
        if self.gravity == "resize_aspect_fill":
            s = max(sx, sy)
            return (s, s)
        return (sx, sy)

    @property
    def offset(self) -> Tuple[float, float]:
        """Surface position of the frame's top-left corner."""
        sw, sh = self.surface_size
        fw, fh = self.frame_size
        sx, sy = self.scale
        return ((sw - fw * sx) / 2.0, (sh - fh * sy) / 2.0)

    def layer_rect_from_normalized(self, rect: Rect) -> Rect:
        """Normalized (top-left origin) rectangle -> surface rectangle."""
        fw, fh = self.frame_size
        sx, sy = self.scale
        ox, oy = self.offset
        return Rect(
            rect.x * fw * sx + ox,
            rect.y * fh * sy + oy,
            rect.width * fw * sx,
            rect.height * fh * sy,
        )

    def normalized_from_layer_rect(self, rect: Rect) -> Rect:
        """Surface rectangle -> normalized (top-left origin) rectangle."""
        fw, fh = self.frame_size
        sx, sy = self.scale
        ox, oy = self.offset
        return Rect(
            (rect.x - ox) / (fw * sx),
            (rect.y - oy) / (fh * sy),
            rect.width / (fw * sx),
            rect.height / (fh * sy),
        )

    def render_frame(self, image: np.ndarray) -> np.ndarray:
        """Place an image on a surface-sized canvas according to the gravity."""
        sw, sh = self.surface_size
        fw, fh = self.frame_size
        sx, sy = self.scale
        ox, oy = self.offset
        scaled_w, scaled_h = max(int(round(fw * sx)), 1), max(int(round(fh * sy)), 1)
        scaled = cv2.resize(image, (scaled_w, scaled_h), interpolation=cv2.INTER_LINEAR)

        canvas = np.zeros((sh, sw) + image.shape[2:], dtype=image.dtype)
        ox, oy = int(round(ox)), int(round(oy))

        # Intersection of the scaled frame with the canvas
        dst_x1, dst_y1 = max(ox, 0), max(oy, 0)
        dst_x2, dst_y2 = min(ox + scaled_w, sw), min(oy + scaled_h, sh)
        if dst_x2 <= dst_x1 or dst_y2 <= dst_y1:
            return canvas
        src_x1, src_y1 = dst_x1 - ox, dst_y1 - oy
        canvas[dst_y1:dst_y2, dst_x1:dst_x2] = scaled[
            src_y1:src_y1 + (dst_y2 - dst_y1), src_x1:src_x1 + (dst_x2 - dst_x1)
        ]
        return canvas
