"""
Observation layer for pluggable frame sources.

This layer abstracts where frames come from (camera, video file, stream,
memory) from the tracking loop. Each source implements the ObservationSource
interface and returns FrameData objects; FrameDelivery pumps them serially
from a background thread.
"""

from __future__ import annotations

from typing import Optional, Union

from models.config import CameraConfig
from .base import ObservationSource, ObservationConfig
from .delivery import DeliveryStats, FrameDelivery
from .memory_source import FrameListSource
from .opencv_source import OpenCVSource, OpenCVSourceConfig


def create_source_from_config(
    camera_cfg: CameraConfig,
    source_id: str = "main-camera",
    device_override: Optional[Union[int, str]] = None,
) -> ObservationSource:
    """Build the frame source selected by the camera config."""
    if camera_cfg.backend != "opencv":
        raise ValueError(f"Unsupported camera backend: {camera_cfg.backend}")
    config = OpenCVSourceConfig.from_camera_config(camera_cfg, source_id=source_id)
    if device_override is not None:
        config.device_id = device_override
    return OpenCVSource(config)


__all__ = [
    "ObservationSource",
    "ObservationConfig",
    "OpenCVSource",
    "OpenCVSourceConfig",
    "FrameListSource",
    "FrameDelivery",
    "DeliveryStats",
    "create_source_from_config",
]
