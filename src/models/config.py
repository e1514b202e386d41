"""
Typed configuration models matching the YAML config structure.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union


@dataclass
class CameraConfig:
    """Frame source configuration."""
    backend: str = "opencv"
    device_id: Union[int, str] = 0
    resolution: List[int] = field(default_factory=lambda: [1920, 1080])
    fps: int = 30
    swap_rb: bool = False
    rotate: int = 0
    flip_horizontal: bool = False
    flip_vertical: bool = False

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "CameraConfig":
        """Adapter: Create from config dictionary."""
        return cls(
            backend=d.get("backend", "opencv"),
            device_id=d.get("device_id", 0),
            resolution=d.get("resolution", [1920, 1080]),
            fps=d.get("fps", 30),
            swap_rb=d.get("swap_rb", False),
            rotate=d.get("rotate", 0) or 0,
            flip_horizontal=d.get("flip_horizontal", False),
            flip_vertical=d.get("flip_vertical", False),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "backend": self.backend,
            "device_id": self.device_id,
            "resolution": self.resolution,
            "fps": self.fps,
            "swap_rb": self.swap_rb,
            "rotate": self.rotate,
            "flip_horizontal": self.flip_horizontal,
            "flip_vertical": self.flip_vertical,
        }


@dataclass
class TrackingConfig:
    """
    Tracking loop configuration.

    Attributes:
        level: Tracker operating point, "accurate" or "fast".
        confidence_threshold: Observations at or above this move the overlay.
        drag_mode: "anchor" keeps the drag anchor as the rectangle origin,
            "span" builds the rectangle spanning anchor and pointer.
        search_margin: Search window growth around the previous region,
            as a multiple of the region size.
    """
    level: str = "accurate"
    confidence_threshold: float = 0.3
    drag_mode: str = "anchor"
    search_margin: float = 1.0

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "TrackingConfig":
        return cls(
            level=d.get("level", "accurate"),
            confidence_threshold=d.get("confidence_threshold", 0.3),
            drag_mode=d.get("drag_mode", "anchor"),
            search_margin=d.get("search_margin", 1.0),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "level": self.level,
            "confidence_threshold": self.confidence_threshold,
            "drag_mode": self.drag_mode,
            "search_margin": self.search_margin,
        }


@dataclass
class OverlayConfig:
    """Overlay appearance and preview geometry. Colors are BGR."""
    gravity: str = "resize_aspect_fill"
    border_width: int = 2
    confident_color: List[int] = field(default_factory=lambda: [0, 255, 0])
    confident_fill: List[int] = field(default_factory=lambda: [0, 255, 0])
    low_confidence_color: List[int] = field(default_factory=lambda: [128, 128, 128])
    low_confidence_fill: List[int] = field(default_factory=lambda: [255, 255, 255])
    fill_alpha: float = 0.2
    corner_radius: int = 6

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "OverlayConfig":
        return cls(
            gravity=d.get("gravity", "resize_aspect_fill"),
            border_width=d.get("border_width", 2),
            confident_color=d.get("confident_color", [0, 255, 0]),
            confident_fill=d.get("confident_fill", [0, 255, 0]),
            low_confidence_color=d.get("low_confidence_color", [128, 128, 128]),
            low_confidence_fill=d.get("low_confidence_fill", [255, 255, 255]),
            fill_alpha=d.get("fill_alpha", 0.2),
            corner_radius=d.get("corner_radius", 6),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "gravity": self.gravity,
            "border_width": self.border_width,
            "confident_color": self.confident_color,
            "confident_fill": self.confident_fill,
            "low_confidence_color": self.low_confidence_color,
            "low_confidence_fill": self.low_confidence_fill,
            "fill_alpha": self.fill_alpha,
            "corner_radius": self.corner_radius,
        }


@dataclass
class DisplayConfig:
    """
    UI loop configuration.

    Attributes:
        window_name: Title of the preview window.
        surface_size: Preview surface as [width, height]; None = frame size.
        max_consecutive_failures: Read failures before frame delivery stops.
        stats_log_interval: Seconds between tracking statistics log lines.
    """
    window_name: str = "Object Tracker"
    surface_size: Optional[List[int]] = None
    max_consecutive_failures: int = 10
    stats_log_interval: float = 60.0

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "DisplayConfig":
        return cls(
            window_name=d.get("window_name", "Object Tracker"),
            surface_size=d.get("surface_size"),
            max_consecutive_failures=d.get("max_consecutive_failures", 10),
            stats_log_interval=d.get("stats_log_interval", 60.0),
        )

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "window_name": self.window_name,
            "max_consecutive_failures": self.max_consecutive_failures,
            "stats_log_interval": self.stats_log_interval,
        }
        if self.surface_size is not None:
            d["surface_size"] = self.surface_size
        return d


@dataclass
class Config:
    """
    Complete application configuration.

    This is a typed representation of the YAML config structure.
    """
    camera: CameraConfig = field(default_factory=CameraConfig)
    tracking: TrackingConfig = field(default_factory=TrackingConfig)
    overlay: OverlayConfig = field(default_factory=OverlayConfig)
    display: DisplayConfig = field(default_factory=DisplayConfig)
    log_path: str = "logs/object_tracker.log"
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Config":
        """Adapter: Create Config from raw dictionary (e.g., from load_config)."""
        return cls(
            camera=CameraConfig.from_dict(d.get("camera") or {}),
            tracking=TrackingConfig.from_dict(d.get("tracking") or {}),
            overlay=OverlayConfig.from_dict(d.get("overlay") or {}),
            display=DisplayConfig.from_dict(d.get("display") or {}),
            log_path=d.get("log_path", "logs/object_tracker.log"),
            log_level=d.get("log_level", "INFO"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert back to dictionary (for saving or logging)."""
        return {
            "camera": self.camera.to_dict(),
            "tracking": self.tracking.to_dict(),
            "overlay": self.overlay.to_dict(),
            "display": self.display.to_dict(),
            "log_path": self.log_path,
            "log_level": self.log_level,
        }
