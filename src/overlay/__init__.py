"""
Overlay rendering and preview geometry.
"""

from .layout import GRAVITIES, PreviewLayout, flip_vertical
from .renderer import OverlayRenderer, OverlayStyle

__all__ = [
    "GRAVITIES",
    "PreviewLayout",
    "flip_vertical",
    "OverlayRenderer",
    "OverlayStyle",
]
