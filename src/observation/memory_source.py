"""
In-memory observation source.
"""

from __future__ import annotations

from typing import Iterable, Optional

import numpy as np

from models.frame import FrameData
from .base import ObservationSource, ObservationConfig


class FrameListSource(ObservationSource):
    """Replays a list of images. Used by tests and headless replays."""

    def __init__(self, frames: Iterable[np.ndarray], config: Optional[ObservationConfig] = None):
        super().__init__(config or ObservationConfig(source_id="frames"))
        self._frames = list(frames)
        self._pos = 0

    def open(self) -> None:
        self._pos = 0
        self._mark_open()

    def read(self) -> Optional[FrameData]:
        if not self._is_open or self._pos >= len(self._frames):
            return None
        image = self._frames[self._pos]
        self._pos += 1
        return self._frame(image)

    def close(self) -> None:
        self._is_open = False
