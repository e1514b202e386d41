"""
Tests for the tracking engine (headless UI loop) and the command line entry point.
"""

import logging
import time

from conftest import make_frame
from main import main
from models.config import CameraConfig, Config
from observation.memory_source import FrameListSource
from pipeline.engine import KEY_ESC, KEY_QUIT, KEY_RESET, EngineConfig, TrackingEngine
from runtime.context import build_context
from tracking.template import pixels_to_region, region_to_pixels


def moving_square_frames(n=8, step=6):
    return [make_frame(square=(100 + step * i, 120, 50), index=i).frame for i in range(n)]


def wait_for_completion(controller, timeout=2.0):
    """Hold the delivery thread until the UI loop has applied the pending result."""
    deadline = time.time() + timeout
    while controller.request_in_flight and time.time() < deadline:
        time.sleep(0.001)


def headless_context(frames):
    config = Config(camera=CameraConfig(resolution=[640, 480]))
    return build_context(config, source=FrameListSource(frames), retry_delay=0)


class TestTrackingEngine:
    def test_headless_run_consumes_source(self):
        frames = moving_square_frames()
        ctx = headless_context(frames)
        ctx.controller.seed(pixels_to_region(100, 120, 50, 50, 640, 480))

        TrackingEngine(ctx, EngineConfig(display=False)).run()

        stats = ctx.controller.stats
        assert ctx.delivery.finished
        assert stats.frames_seen == len(frames)
        assert stats.requests + stats.dropped_busy == len(frames)
        assert stats.failures == 0
        assert not ctx.controller.request_in_flight
        assert ctx.controller.is_tracking

    def test_headless_run_follows_object(self):
        ctx = headless_context(moving_square_frames(n=6))
        ctx.controller.seed(pixels_to_region(100, 120, 50, 50, 640, 480))
        ctx.delivery.add_consumer(lambda frame: wait_for_completion(ctx.controller))

        TrackingEngine(ctx, EngineConfig(display=False)).run()

        x, y, _, _ = region_to_pixels(ctx.controller.current_region.region, 640, 480)
        assert ctx.controller.stats.requests == 6
        assert abs(x - 130) <= 3
        assert abs(y - 120) <= 3

    def test_headless_run_without_region_tracks_nothing(self):
        ctx = headless_context(moving_square_frames(n=3))

        TrackingEngine(ctx, EngineConfig(display=False)).run()

        assert ctx.controller.stats.frames_seen == 3
        assert ctx.controller.stats.requests == 0
        assert not ctx.controller.is_tracking

    def test_stats_logged_on_shutdown(self, caplog):
        ctx = headless_context(moving_square_frames(n=2))

        with caplog.at_level(logging.INFO):
            TrackingEngine(ctx, EngineConfig(display=False)).run()

        assert "Tracking stats" in caplog.text
        assert "frames_seen=2" in caplog.text
        assert "Tracking engine stopped" in caplog.text

    def test_handle_key(self):
        ctx = headless_context(moving_square_frames(n=1))
        ctx.controller.seed(pixels_to_region(100, 120, 50, 50, 640, 480))
        engine = TrackingEngine(ctx, EngineConfig(display=False))

        assert engine.handle_key(KEY_RESET) is True
        assert not ctx.controller.is_tracking
        assert engine.handle_key(ord("x")) is True
        assert engine.handle_key(KEY_QUIT) is False
        assert engine.handle_key(KEY_ESC) is False


class TestMain:
    def test_headless_requires_region(self):
        assert main(["--headless"]) == 2

    def test_invalid_config_exits_with_error(self, temp_config_dir):
        (temp_config_dir / "config.yaml").write_text("log_level: LOUD\n")

        assert main(["--config", str(temp_config_dir / "config.yaml")]) == 1

    def test_unreadable_config_exits_with_error(self, temp_config_dir):
        (temp_config_dir / "config.yaml").write_text("camera: [broken\n")

        assert main(["--config", str(temp_config_dir / "config.yaml")]) == 1
