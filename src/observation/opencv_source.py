"""
OpenCV capture source.

One cv2.VideoCapture behind the ObservationSource contract. The device id
decides what is opened:
- int: local camera index
- "rtsp://..." / "rtsps://...": network stream
- any other string: video file path
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass
from typing import Optional, Union

import cv2
import numpy as np

from models.config import CameraConfig
from models.frame import FrameData
from .base import ObservationSource, ObservationConfig
from .rtsp_utils import is_rtsp_url, sanitize_url

logger = logging.getLogger(__name__)

_ROTATIONS = {
    90: cv2.ROTATE_90_CLOCKWISE,
    180: cv2.ROTATE_180,
    270: cv2.ROTATE_90_COUNTERCLOCKWISE,
}
# (flip_horizontal, flip_vertical) -> cv2.flip code
_FLIP_CODES = {
    (True, False): 1,
    (False, True): 0,
    (True, True): -1,
}

MAX_READ_FAILURES = 3


@dataclass
class OpenCVSourceConfig(ObservationConfig):
    """
    Capture settings.

    Attributes:
        device_id: Camera index, stream URL or video file path.
        rtsp_transport: "tcp" or "udp" for RTSP streams.
        buffer_size: Capture buffer length; 1 keeps live previews current.
        max_retries: Open attempts before giving up.
        swap_rb, rotate, flip_horizontal, flip_vertical: Per-frame transforms,
            applied in the order rotate, flip, swap.
    """
    device_id: Union[int, str] = 0
    rtsp_transport: str = "tcp"
    buffer_size: int = 1
    max_retries: int = 3
    swap_rb: bool = False
    rotate: int = 0
    flip_horizontal: bool = False
    flip_vertical: bool = False

    @classmethod
    def from_camera_config(cls, camera_cfg: CameraConfig, source_id: str = "camera") -> "OpenCVSourceConfig":
        """Adapter: build from the typed camera section of the app config."""
        return cls(
            source_id=source_id,
            resolution=tuple(camera_cfg.resolution) if camera_cfg.resolution else None,
            fps=camera_cfg.fps,
            device_id=camera_cfg.device_id,
            swap_rb=camera_cfg.swap_rb,
            rotate=camera_cfg.rotate,
            flip_horizontal=camera_cfg.flip_horizontal,
            flip_vertical=camera_cfg.flip_vertical,
        )


def apply_transforms(frame: np.ndarray, cfg: OpenCVSourceConfig) -> np.ndarray:
    """Rotate, flip and channel-swap a captured frame as configured."""
    if cfg.rotate in _ROTATIONS:
        frame = cv2.rotate(frame, _ROTATIONS[cfg.rotate])
    flip_code = _FLIP_CODES.get((bool(cfg.flip_horizontal), bool(cfg.flip_vertical)))
    if flip_code is not None:
        frame = cv2.flip(frame, flip_code)
    if cfg.swap_rb:
        frame = np.ascontiguousarray(frame[..., ::-1])
    return frame


class OpenCVSource(ObservationSource):
    """
    Camera, stream or file frames via cv2.VideoCapture.

    Live devices are reopened after a failed read; a file simply ends.
    """

    def __init__(self, config: OpenCVSourceConfig):
        super().__init__(config)
        self.cv_config = config
        self._cap: Optional[cv2.VideoCapture] = None
        self._read_failures = 0

    @property
    def device_id(self) -> Union[int, str]:
        return self.cv_config.device_id

    @property
    def is_rtsp(self) -> bool:
        return is_rtsp_url(self.device_id)

    @property
    def is_file(self) -> bool:
        return isinstance(self.device_id, str) and not self.is_rtsp and os.path.exists(self.device_id)

    def open(self) -> None:
        if self._is_open:
            return
        self._cap = self._open_capture()
        self._read_failures = 0
        self._mark_open()
        logger.info(
            f"Capture opened: source_id={self.source_id}, device={sanitize_url(self.device_id)}, "
            f"requested resolution={self.cv_config.resolution}"
        )

    def _open_capture(self) -> cv2.VideoCapture:
        """Open the device, backing off between attempts."""
        if self.is_rtsp:
            os.environ["OPENCV_FFMPEG_CAPTURE_OPTIONS"] = f"rtsp_transport;{self.cv_config.rtsp_transport}"

        attempts = max(self.cv_config.max_retries, 1)
        for attempt in range(1, attempts + 1):
            cap = cv2.VideoCapture(self.device_id)
            if cap.isOpened():
                self._configure(cap)
                return cap
            cap.release()
            if attempt < attempts:
                delay = min(2 ** attempt, 10)
                logger.warning(
                    f"Could not open {sanitize_url(self.device_id)} "
                    f"(attempt {attempt}/{attempts}), retrying in {delay}s"
                )
                time.sleep(delay)
        raise RuntimeError(f"Failed to open device {sanitize_url(self.device_id)} after {attempts} attempts")

    def _configure(self, cap: cv2.VideoCapture) -> None:
        # Capture properties only take effect on local cameras
        if not isinstance(self.device_id, int) or not self.cv_config.resolution:
            return
        width, height = self.cv_config.resolution
        cap.set(cv2.CAP_PROP_FRAME_WIDTH, width)
        cap.set(cv2.CAP_PROP_FRAME_HEIGHT, height)
        if self.cv_config.fps:
            cap.set(cv2.CAP_PROP_FPS, self.cv_config.fps)
        cap.set(cv2.CAP_PROP_BUFFERSIZE, self.cv_config.buffer_size)
        logger.info(
            f"Camera delivers {cap.get(cv2.CAP_PROP_FRAME_WIDTH):.0f}x"
            f"{cap.get(cv2.CAP_PROP_FRAME_HEIGHT):.0f} (requested {width}x{height})"
        )

    def _grab(self) -> Optional[np.ndarray]:
        ok, image = self._cap.read()
        return image if ok and image is not None else None

    def _reconnect(self) -> bool:
        self._cap.release()
        try:
            self._cap = self._open_capture()
        except RuntimeError as e:
            logger.error(f"Reconnect failed: {e}")
            self._cap = None
            return False
        return True

    def read(self) -> Optional[FrameData]:
        if not self._is_open or self._cap is None:
            return None

        image = self._grab()
        if image is None:
            self._read_failures += 1
            if self.is_file:
                logger.info(f"End of video file: {self.device_id}")
                return None
            if self._read_failures > MAX_READ_FAILURES:
                logger.error(f"Giving up after {self._read_failures} failed reads")
                return None
            logger.warning(f"Frame read failed ({self._read_failures}), reconnecting")
            if not self._reconnect():
                return None
            image = self._grab()
            if image is None:
                return None

        self._read_failures = 0
        return self._frame(apply_transforms(image, self.cv_config), timestamp=time.time())

    def close(self) -> None:
        if self._cap is not None:
            self._cap.release()
            self._cap = None
        if self._is_open:
            logger.info(f"Capture closed: source_id={self.source_id}")
        self._is_open = False
