"""
Object tracker: drag a box over an object in a live preview and follow it.

Usage:
    python src/main.py --config config/config.yaml
    python src/main.py --source clip.mp4 --headless --region 0.4,0.4,0.2,0.2

Arguments:
    --config: Path to configuration file
    --source: Camera index, stream URL or video file (overrides camera.device_id)
    --headless: Run without a window; requires --region
    --region: Normalized seed region x,y,w,h (bottom-left origin)
    --max-frames: Stop after this many frames

Controls (window mode):
    drag with the left button to select an object, r to reset, q/Esc to quit
"""

import argparse
import logging
import os
import sys
from typing import Any, Dict, Optional, Tuple, Union

import yaml

from models.config import Config
from models.region import TrackedRegion
from ops.logging import VALID_LOG_LEVELS, setup_logging
from overlay.layout import GRAVITIES
from pipeline.engine import EngineConfig, TrackingEngine
from runtime.context import build_context
from tracking.controller import DRAG_MODES


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge override into base and return base."""
    for k, v in (override or {}).items():
        if isinstance(v, dict) and isinstance(base.get(k), dict):
            _deep_merge(base[k], v)
        else:
            base[k] = v
    return base


def _read_yaml(path: str) -> Dict[str, Any]:
    with open(path, "r") as f:
        return yaml.safe_load(f) or {}


def load_config(config_path: str) -> Dict[str, Any]:
    """
    Load configuration with layering:
    - `config/default.yaml` (checked in)
    - `config/config.yaml` (local overrides)
    - plus any explicitly provided `--config` path (treated as overrides)

    Raises:
        OSError, yaml.YAMLError: If a present file cannot be read or parsed.
    """
    config_dir = os.path.dirname(config_path)
    merged: Dict[str, Any] = {}

    base_path = os.path.join(config_dir, "default.yaml")
    if os.path.exists(base_path):
        merged = _read_yaml(base_path)

    local_overrides_path = os.path.join(config_dir, "config.yaml")
    if os.path.exists(local_overrides_path):
        merged = _deep_merge(merged, _read_yaml(local_overrides_path))

    if (
        os.path.exists(config_path)
        and os.path.abspath(config_path) != os.path.abspath(local_overrides_path)
        and os.path.abspath(config_path) != os.path.abspath(base_path)
    ):
        merged = _deep_merge(merged, _read_yaml(config_path))

    return merged


def _is_color(value: Any) -> bool:
    return (
        isinstance(value, list) and len(value) == 3
        and all(isinstance(c, int) and 0 <= c <= 255 for c in value)
    )


def validate_config(config: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """
    Validate configuration file structure and values.

    Returns:
        Tuple of (is_valid, error_message)
    """
    for section in ("camera", "log_level"):
        if section not in config:
            return False, f"Missing required configuration section: {section}"

    camera = config.get("camera") or {}
    if "device_id" not in camera:
        return False, "Missing camera.device_id"
    if isinstance(camera["device_id"], bool) or not isinstance(camera["device_id"], (int, str)):
        return False, "camera.device_id must be an integer (index) or string (URL/path)"
    if isinstance(camera["device_id"], int) and camera["device_id"] < 0:
        return False, "camera.device_id integer must be non-negative"

    resolution = camera.get("resolution", [1920, 1080])
    if not isinstance(resolution, list) or len(resolution) != 2:
        return False, "camera.resolution must be a list of [width, height]"
    if not all(isinstance(x, int) and x > 0 for x in resolution):
        return False, "camera.resolution values must be positive integers"

    fps = camera.get("fps", 30)
    if not isinstance(fps, int) or fps <= 0:
        return False, "camera.fps must be a positive integer"

    if camera.get("backend", "opencv") != "opencv":
        return False, "camera.backend must be: opencv"
    if camera.get("rotate", 0) not in (0, 90, 180, 270, None):
        return False, "camera.rotate must be one of: 0, 90, 180, 270"

    tracking = config.get("tracking") or {}
    if tracking.get("level", "accurate") not in ("accurate", "fast"):
        return False, "tracking.level must be one of: accurate, fast"
    threshold = tracking.get("confidence_threshold", 0.3)
    if isinstance(threshold, bool) or not isinstance(threshold, (int, float)) or not (0 <= threshold <= 1):
        return False, "tracking.confidence_threshold must be between 0 and 1"
    if tracking.get("drag_mode", "anchor") not in DRAG_MODES:
        return False, f"tracking.drag_mode must be one of: {', '.join(DRAG_MODES)}"
    margin = tracking.get("search_margin", 1.0)
    if isinstance(margin, bool) or not isinstance(margin, (int, float)) or margin <= 0:
        return False, "tracking.search_margin must be a positive number"

    overlay = config.get("overlay") or {}
    if overlay.get("gravity", "resize_aspect_fill") not in GRAVITIES:
        return False, f"overlay.gravity must be one of: {', '.join(GRAVITIES)}"
    border = overlay.get("border_width", 2)
    if not isinstance(border, int) or border <= 0:
        return False, "overlay.border_width must be a positive integer"
    for key in ("confident_color", "confident_fill", "low_confidence_color", "low_confidence_fill"):
        if key in overlay and not _is_color(overlay[key]):
            return False, f"overlay.{key} must be a [b, g, r] list of integers 0-255"
    alpha = overlay.get("fill_alpha", 0.2)
    if isinstance(alpha, bool) or not isinstance(alpha, (int, float)) or not (0 <= alpha <= 1):
        return False, "overlay.fill_alpha must be between 0 and 1"
    radius = overlay.get("corner_radius", 6)
    if isinstance(radius, bool) or not isinstance(radius, int) or radius < 0:
        return False, "overlay.corner_radius must be a non-negative integer"

    display = config.get("display") or {}
    surface = display.get("surface_size")
    if surface is not None and (
        not isinstance(surface, list) or len(surface) != 2
        or not all(isinstance(x, int) and x > 0 for x in surface)
    ):
        return False, "display.surface_size must be a list of positive [width, height]"
    mcf = display.get("max_consecutive_failures", 10)
    if not isinstance(mcf, int) or mcf <= 0:
        return False, "display.max_consecutive_failures must be a positive integer"

    if config["log_level"] not in VALID_LOG_LEVELS:
        return False, f"log_level must be one of: {', '.join(VALID_LOG_LEVELS)}"

    return True, None


def parse_region(text: str) -> TrackedRegion:
    """Parse "x,y,w,h" into a normalized region."""
    try:
        x, y, w, h = (float(part) for part in text.split(","))
    except ValueError:
        raise argparse.ArgumentTypeError(f"region must be x,y,w,h, got {text!r}")
    region = TrackedRegion.from_xywh(x, y, w, h)
    if not region.is_normalized or region.rect.is_empty:
        raise argparse.ArgumentTypeError(f"region must be a non-empty rectangle inside [0, 1]: {text!r}")
    return region


def parse_source(text: str) -> Union[int, str]:
    """Camera indices are ints; everything else is a URL or path."""
    return int(text) if text.isdigit() else text


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Drag-to-track single object tracker")
    parser.add_argument("--config", type=str, default="config/config.yaml",
                        help="Path to configuration file")
    parser.add_argument("--source", type=parse_source, default=None,
                        help="Camera index, stream URL or video file")
    parser.add_argument("--headless", action="store_true",
                        help="Run without a preview window")
    parser.add_argument("--region", type=parse_region, default=None,
                        help="Normalized seed region x,y,w,h")
    parser.add_argument("--max-frames", type=int, default=None,
                        help="Stop after this many frames")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    if args.headless and args.region is None:
        logging.error("--headless requires --region")
        return 2

    try:
        raw_config = load_config(args.config)
    except (OSError, yaml.YAMLError) as e:
        logging.error(f"Failed to load configuration: {e}")
        return 1

    is_valid, error_msg = validate_config(raw_config)
    if not is_valid:
        logging.error(f"Configuration validation failed: {error_msg}")
        return 1

    config = Config.from_dict(raw_config)
    setup_logging(config.log_path, config.log_level)
    logging.info("Starting object tracker")

    try:
        ctx = build_context(config, device_override=args.source, max_frames=args.max_frames)
    except (RuntimeError, ValueError) as e:
        logging.error(f"Failed to initialize: {e}")
        return 1

    if args.region is not None:
        ctx.controller.seed(args.region)

    engine = TrackingEngine(
        ctx,
        EngineConfig(
            display=not args.headless,
            window_name=config.display.window_name,
            stats_log_interval=config.display.stats_log_interval,
        ),
    )
    try:
        engine.run()
    except RuntimeError as e:
        logging.error(f"Tracking session failed: {e}")
        return 1

    logging.info("Object tracker stopped")
    return 0


if __name__ == "__main__":
    sys.exit(main())
