"""
Tracking loop controller.

Keeps the one live region estimate. Every frame from the delivery thread is
handed to the tracker together with the current region; the result is posted
to the UI thread, which updates the region and moves the highlight. Drag
gestures and reset replace or clear the region directly on the UI thread.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import asdict, dataclass
from typing import Optional, Tuple

from models.frame import FrameData
from models.gesture import GestureState, Point
from models.region import ABSENT, Observation, Present, Rect, RegionState, TrackedRegion
from overlay.renderer import OverlayRenderer, OverlayStyle
from runtime.dispatch import UIDispatcher
from .primitive import TrackerFailure, TrackerPrimitive

logger = logging.getLogger(__name__)

DEFAULT_CONFIDENCE_THRESHOLD = 0.3
DRAG_MODES = ("anchor", "span")


def drag_rectangle(anchor: Point, point: Point, mode: str = "anchor") -> Rect:
    """
    Rectangle for a drag from `anchor` to `point`.

    "anchor": origin is always the anchor, size is (|dx|, |dy|), so the box
    grows down and to the right whichever way the pointer moves.
    "span": the rectangle spanning both points.
    """
    if mode == "span":
        return Rect.from_points(anchor, point)
    if mode != "anchor":
        raise ValueError(f"drag mode must be one of {DRAG_MODES}, got {mode!r}")
    dx, dy = point[0] - anchor[0], point[1] - anchor[1]
    return Rect(float(anchor[0]), float(anchor[1]), abs(dx), abs(dy))


@dataclass
class TrackingStats:
    """Counters for the tracking loop."""
    frames_seen: int = 0
    requests: int = 0
    dropped_busy: int = 0
    confident: int = 0
    low_confidence: int = 0
    failures: int = 0
    stale: int = 0

    def as_dict(self) -> dict:
        return asdict(self)


class TrackingController:
    """
    Single-object tracking loop.

    Threading:
        on_frame() runs on the frame delivery thread. Everything else,
        including tracking completions, runs on the dispatcher's UI thread;
        mutating calls from any other thread raise ContextViolation.

    At most one tracker request is outstanding: frames arriving before the
    previous completion has been processed on the UI thread are dropped.
    Completions issued before the user redrew or reset are discarded.
    The tracker is reset before the first request for each new selection.
    """

    def __init__(
        self,
        tracker: TrackerPrimitive,
        renderer: OverlayRenderer,
        dispatcher: UIDispatcher,
        confidence_threshold: float = DEFAULT_CONFIDENCE_THRESHOLD,
        drag_mode: str = "anchor",
    ):
        if drag_mode not in DRAG_MODES:
            raise ValueError(f"drag mode must be one of {DRAG_MODES}, got {drag_mode!r}")
        self.tracker = tracker
        self.renderer = renderer
        self.dispatcher = dispatcher
        self.confidence_threshold = confidence_threshold
        self.drag_mode = drag_mode
        self.stats = TrackingStats()

        self._lock = threading.Lock()
        self._state: RegionState = ABSENT
        self._generation = 0
        # Generation the tracker last started from; touched only by on_frame
        self._tracker_generation: Optional[int] = None
        self._in_flight = False
        self._drag_anchor: Optional[Point] = None

    @property
    def current_region(self) -> RegionState:
        with self._lock:
            return self._state

    @property
    def is_tracking(self) -> bool:
        return self.current_region.is_present

    @property
    def request_in_flight(self) -> bool:
        with self._lock:
            return self._in_flight

    @property
    def drag_anchor(self) -> Optional[Point]:
        return self._drag_anchor

    # Frame path (delivery thread)

    def on_frame(self, frame: FrameData) -> None:
        """Track the current region into `frame`; no-op while nothing is tracked."""
        self.stats.frames_seen += 1
        with self._lock:
            state = self._state
            if not isinstance(state, Present):
                return
            if self._in_flight:
                self.stats.dropped_busy += 1
                logger.debug(f"Frame {frame.frame_index} dropped: tracking request outstanding")
                return
            self._in_flight = True
            generation = self._generation

        self.stats.requests += 1
        try:
            if generation != self._tracker_generation:
                # New selection: drop appearance state kept for the previous one
                self.tracker.reset()
                self._tracker_generation = generation
            observation = self.tracker.track(state.region, frame)
        except TrackerFailure as e:
            self.dispatcher.post(self._complete_failure, generation, str(e))
            return
        except Exception as e:
            logger.error(f"Tracker raised unexpectedly: {e}")
            self.dispatcher.post(self._complete_failure, generation, repr(e))
            return
        self.dispatcher.post(self._complete, generation, observation, frame.size)

    # Completions (UI thread)

    def _complete(self, generation: int, observation: Observation, frame_size: Tuple[int, int]) -> None:
        self.dispatcher.require_ui_thread("tracked region")
        try:
            with self._lock:
                stale = generation != self._generation
                if not stale:
                    self._state = Present(observation.region)
            if stale:
                self.stats.stale += 1
                logger.debug("Discarded observation issued before the region was replaced")
                return

            self.renderer.update_frame_size(frame_size)
            if observation.confidence >= self.confidence_threshold:
                self.stats.confident += 1
                self.renderer.set_style(OverlayStyle.CONFIDENT)
                self.renderer.set_geometry(self.renderer.surface_rect_for_region(observation.region))
            else:
                # Region is carried forward; the highlight stays where it was.
                self.stats.low_confidence += 1
                self.renderer.set_style(OverlayStyle.LOW_CONFIDENCE)
        finally:
            self._release_request()

    def _complete_failure(self, generation: int, message: str) -> None:
        self.dispatcher.require_ui_thread("tracked region")
        try:
            self.stats.failures += 1
            logger.warning(f"Tracking failed: {message}")
        finally:
            self._release_request()

    def _release_request(self) -> None:
        with self._lock:
            self._in_flight = False

    # User input (UI thread)

    def _replace_state(self, state: RegionState) -> None:
        self.dispatcher.require_ui_thread("tracked region")
        with self._lock:
            self._state = state
            self._generation += 1

    def on_user_drag_begin(self, point: Point) -> None:
        """Stop tracking and start a new selection at `point`."""
        self._replace_state(ABSENT)
        self.renderer.reset()
        self._drag_anchor = (float(point[0]), float(point[1]))

    def on_user_drag_changed(self, point: Point, anchor: Optional[Point] = None) -> Optional[Rect]:
        """Resize the highlight to follow the drag. The tracked region is not touched."""
        self.dispatcher.require_ui_thread("overlay")
        anchor = anchor if anchor is not None else self._drag_anchor
        if anchor is None:
            logger.warning("Drag changed without a drag anchor, ignoring")
            return None
        rect = drag_rectangle(anchor, point, self.drag_mode)
        self.renderer.set_geometry(rect)
        return rect

    def on_user_drag_end(self, final_overlay_rect: Optional[Rect] = None) -> Optional[TrackedRegion]:
        """
        Seed tracking with the drawn rectangle.

        The surface rectangle is converted into the tracker's normalized,
        bottom-left-origin space. Empty selections leave tracking inactive.
        """
        self.dispatcher.require_ui_thread("tracked region")
        rect = final_overlay_rect if final_overlay_rect is not None else self.renderer.rect
        self._drag_anchor = None
        if rect.is_empty:
            logger.info("Empty selection ignored")
            return None

        region = TrackedRegion.clamped(self.renderer.region_for_surface_rect(rect).rect)
        if region.rect.is_empty:
            logger.info("Selection outside the frame ignored")
            return None

        self._replace_state(Present(region))
        logger.info(
            "Tracking seeded at x={:.3f} y={:.3f} w={:.3f} h={:.3f}".format(*region.rect.as_tuple())
        )
        return region

    def seed(self, region: TrackedRegion) -> None:
        """Start tracking a normalized region directly (headless runs)."""
        self._replace_state(Present(region))
        self.renderer.set_style(OverlayStyle.CONFIDENT)
        self.renderer.set_geometry(self.renderer.surface_rect_for_region(region))

    def reset(self) -> None:
        """Stop tracking and hide the highlight."""
        self._replace_state(ABSENT)
        self.renderer.set_geometry(Rect.zero())
        self._drag_anchor = None
        logger.info("reset observation")

    def handle_gesture(self, state: GestureState, point: Point) -> None:
        """Route one drag gesture event."""
        if state is GestureState.BEGAN:
            self.on_user_drag_begin(point)
        elif state is GestureState.CHANGED:
            self.on_user_drag_changed(point)
        elif state is GestureState.ENDED:
            self.on_user_drag_end()
        else:
            logger.warning(f"Unexpected gesture state: {state}")
