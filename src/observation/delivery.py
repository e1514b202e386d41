"""
Background frame delivery.

Reads an ObservationSource on a dedicated worker thread and hands every frame
to the registered consumers one at a time. Consumers are never invoked
concurrently: frame N+1 is not read until every consumer returned for frame N.
The most recent frame is also kept for the UI loop to display.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from models.frame import FrameData
from .base import ObservationSource

logger = logging.getLogger(__name__)

FrameConsumer = Callable[[FrameData], None]


@dataclass
class DeliveryStats:
    """Runtime statistics for the delivery thread."""
    frames_delivered: int = 0
    consecutive_failures: int = 0
    consumer_errors: int = 0
    start_time: float = field(default_factory=time.time)

    @property
    def fps(self) -> float:
        elapsed = time.time() - self.start_time
        return self.frames_delivered / elapsed if elapsed > 0 else 0.0


class FrameDelivery:
    """
    Serial frame pump running on its own thread.

    Example:
        delivery = FrameDelivery(source)
        delivery.add_consumer(controller.on_frame)
        delivery.start()
        ...
        delivery.stop()
    """

    def __init__(
        self,
        source: ObservationSource,
        max_consecutive_failures: int = 10,
        retry_delay: float = 0.5,
        max_frames: Optional[int] = None,
    ):
        self.source = source
        self.max_consecutive_failures = max_consecutive_failures
        self.retry_delay = retry_delay
        self.max_frames = max_frames
        self.stats = DeliveryStats()
        self._consumers: List[FrameConsumer] = []
        self._latest: Optional[FrameData] = None
        self._latest_lock = threading.Lock()
        self._running = threading.Event()
        self._finished = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def add_consumer(self, consumer: FrameConsumer) -> None:
        self._consumers.append(consumer)

    @property
    def is_running(self) -> bool:
        return self._running.is_set()

    @property
    def finished(self) -> bool:
        """True once the worker has exited (source exhausted or stopped)."""
        return self._finished.is_set()

    @property
    def latest_frame(self) -> Optional[FrameData]:
        with self._latest_lock:
            return self._latest

    def start(self) -> None:
        """Open the source and start the worker thread."""
        if self._thread is not None:
            return
        self.source.open()
        self.stats = DeliveryStats()
        self._running.set()
        self._finished.clear()
        self._thread = threading.Thread(
            target=self._run, name=f"frame-delivery-{self.source.source_id}", daemon=True
        )
        self._thread.start()
        logger.info(f"Frame delivery started: source={self.source.source_id}")

    def stop(self, timeout: float = 2.0) -> None:
        """Signal the worker to stop after the current frame and wait for it."""
        self._running.clear()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout)
        self._thread = None

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the worker exits. Returns False on timeout."""
        return self._finished.wait(timeout)

    def _run(self) -> None:
        try:
            while self._running.is_set():
                if self.max_frames is not None and self.stats.frames_delivered >= self.max_frames:
                    logger.info(f"Frame limit reached ({self.max_frames})")
                    break

                frame_data = self.source.read()
                if frame_data is None:
                    self.stats.consecutive_failures += 1
                    if self.stats.consecutive_failures >= self.max_consecutive_failures:
                        logger.warning(
                            f"No frames after {self.stats.consecutive_failures} attempts, stopping delivery"
                        )
                        break
                    if self.retry_delay:
                        time.sleep(self.retry_delay)
                    continue

                self.stats.consecutive_failures = 0
                with self._latest_lock:
                    self._latest = frame_data
                self._deliver(frame_data)
        finally:
            self._running.clear()
            self.source.close()
            self._finished.set()
            logger.info(f"Frame delivery stopped: frames={self.stats.frames_delivered}")

    def _deliver(self, frame_data: FrameData) -> None:
        self.stats.frames_delivered += 1
        for consumer in self._consumers:
            try:
                consumer(frame_data)
            except Exception as e:
                self.stats.consumer_errors += 1
                logger.warning(f"Frame consumer error: {e}")
