"""
Frame source contract.

The tracking loop consumes "a live sequence of images" and nothing more.
Cameras, stream URLs, video files and in-memory replays all sit behind
ObservationSource and hand out FrameData.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterator, Optional, Tuple

import numpy as np

from models.frame import FrameData


@dataclass
class ObservationConfig:
    """
    Settings shared by every frame source.

    Attributes:
        source_id: Name used in logs and stamped on each FrameData.
        resolution: Requested (width, height); None keeps the device default.
        fps: Requested frame rate; None keeps the device default.
    """
    source_id: str = "default"
    resolution: Optional[Tuple[int, int]] = None
    fps: Optional[int] = None


class ObservationSource(ABC):
    """
    A frame source: open() once, read() until it returns None, close().

    Subclasses produce FrameData through _frame(), which numbers frames from
    1 after every open().

        with FrameListSource(images) as source:
            for frame_data in source:
                controller.on_frame(frame_data)
    """

    def __init__(self, config: ObservationConfig):
        self._config = config
        self._is_open = False
        self._frame_index = 0

    @property
    def source_id(self) -> str:
        return self._config.source_id

    @property
    def is_open(self) -> bool:
        return self._is_open

    @property
    def frame_index(self) -> int:
        """Index of the last frame handed out (0 before the first read)."""
        return self._frame_index

    def _mark_open(self) -> None:
        self._is_open = True
        self._frame_index = 0

    def _frame(self, image: np.ndarray, timestamp: Optional[float] = None) -> FrameData:
        self._frame_index += 1
        return FrameData.from_numpy(
            image, timestamp=timestamp, frame_index=self._frame_index, source=self.source_id
        )

    @abstractmethod
    def open(self) -> None:
        """
        Acquire the underlying device or data.

        Raises:
            RuntimeError: The source cannot be opened.
        """

    @abstractmethod
    def read(self) -> Optional[FrameData]:
        """Next frame, or None when nothing is available (end of data, device error)."""

    @abstractmethod
    def close(self) -> None:
        """Release the source. Calling it twice is harmless."""

    def __enter__(self) -> "ObservationSource":
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __iter__(self) -> Iterator[FrameData]:
        if not self._is_open:
            raise RuntimeError(f"Source {self.source_id} is not open")
        return iter(self.read, None)
