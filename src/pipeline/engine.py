"""
Tracking engine: the UI loop of the application.

Frames are read and tracked on the delivery thread. This loop runs on the UI
thread: it drains completions posted by the controller, shows the latest
frame with the highlight, routes mouse gestures and key presses, and logs
statistics periodically. Without a display it runs headless until the source
is exhausted.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Optional

import cv2

from models.region import RegionState
from runtime.context import RuntimeContext
from ui.gestures import MouseGestureAdapter

logger = logging.getLogger(__name__)

KEY_RESET = ord("r")
KEY_QUIT = ord("q")
KEY_ESC = 27


@dataclass
class EngineConfig:
    """
    Configuration for the tracking engine.

    Attributes:
        display: Show the preview window and accept mouse/keyboard input.
        window_name: Title of the preview window.
        stats_log_interval: Seconds between status log messages.
        poll_interval: Seconds to wait for UI tasks per loop iteration.
    """
    display: bool = True
    window_name: str = "Object Tracker"
    stats_log_interval: float = 60.0
    poll_interval: float = 0.01


@dataclass
class EngineStats:
    """Runtime statistics for the UI loop."""
    ui_tasks: int = 0
    frames_shown: int = 0
    start_time: float = field(default_factory=time.time)
    last_stats_log_time: float = field(default_factory=time.time)


class TrackingEngine:
    """
    Runs a tracking session until the user quits or the source ends.

    Example:
        ctx = build_context(config)
        engine = TrackingEngine(ctx, EngineConfig(display=True))
        engine.run()
    """

    def __init__(self, ctx: RuntimeContext, config: EngineConfig):
        self.ctx = ctx
        self.config = config
        self.stats = EngineStats()
        self._running = False
        self._last_region: Optional[RegionState] = None

    def run(self) -> None:
        self._running = True
        self.stats = EngineStats()
        self.ctx.dispatcher.bind_current_thread()

        try:
            if self.config.display:
                cv2.namedWindow(self.config.window_name, cv2.WINDOW_AUTOSIZE)
                cv2.setMouseCallback(
                    self.config.window_name, MouseGestureAdapter(self.ctx.controller.handle_gesture)
                )
            self.ctx.delivery.start()
            logger.info(f"Tracking engine started: display={self.config.display}")

            while self._running:
                self.stats.ui_tasks += self.ctx.dispatcher.drain(timeout=self.config.poll_interval)
                self._log_region_change()

                if self.config.display:
                    if not self._handle_display():
                        break
                elif self._source_done():
                    break

                self._handle_periodic_tasks()

        except KeyboardInterrupt:
            logger.info("Tracking engine interrupted by user")
        finally:
            self._cleanup()

    def stop(self) -> None:
        """Signal the loop to stop after the current iteration."""
        self._running = False

    def handle_key(self, key: int) -> bool:
        """React to a key press. Returns False when the user asked to quit."""
        if key in (KEY_QUIT, KEY_ESC):
            return False
        if key == KEY_RESET:
            self.ctx.controller.reset()
        return True

    def _source_done(self) -> bool:
        return (
            self.ctx.delivery.finished
            and self.ctx.dispatcher.pending == 0
            and not self.ctx.controller.request_in_flight
        )

    def _handle_display(self) -> bool:
        frame_data = self.ctx.delivery.latest_frame
        if frame_data is not None:
            self.ctx.renderer.update_frame_size(frame_data.size)
            cv2.imshow(self.config.window_name, self.ctx.renderer.compose(frame_data.frame))
            self.stats.frames_shown += 1
        key = cv2.waitKey(1) & 0xFF
        if key != 0xFF and not self.handle_key(key):
            return False
        if self.ctx.delivery.finished and frame_data is None:
            logger.info("Source ended before the first frame")
            return False
        return True

    def _log_region_change(self) -> None:
        region = self.ctx.controller.current_region
        if region != self._last_region:
            self._last_region = region
            logger.debug(f"Tracked region: {region}")

    def _handle_periodic_tasks(self) -> None:
        now = time.time()
        if now - self.stats.last_stats_log_time >= self.config.stats_log_interval:
            self._log_stats()
            self.stats.last_stats_log_time = now

    def _log_stats(self) -> None:
        counters = ", ".join(f"{k}={v}" for k, v in self.ctx.controller.stats.as_dict().items())
        logger.info(f"Tracking stats: {counters}, fps={self.ctx.delivery.stats.fps:.1f}")

    def _cleanup(self) -> None:
        self._running = False
        self.ctx.delivery.stop()
        # Completions posted before the delivery thread stopped
        self.stats.ui_tasks += self.ctx.dispatcher.drain()
        if self.config.display:
            cv2.destroyAllWindows()
        self._log_stats()
        logger.info("Tracking engine stopped")
