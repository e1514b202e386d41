from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple, Union

from models.config import Config
from observation import FrameDelivery, ObservationSource, create_source_from_config
from overlay import OverlayRenderer, PreviewLayout
from tracking import TrackerPrimitive, TrackingController, create_tracker
from .dispatch import UIDispatcher


@dataclass
class RuntimeContext:
    """Holds the wired-up collaborators of one tracking session; avoids global singletons."""

    config: Config
    source: ObservationSource
    delivery: FrameDelivery
    dispatcher: UIDispatcher
    renderer: OverlayRenderer
    tracker: TrackerPrimitive
    controller: TrackingController


def build_context(
    config: Config,
    source: Optional[ObservationSource] = None,
    device_override: Optional[Union[int, str]] = None,
    max_frames: Optional[int] = None,
    retry_delay: float = 0.5,
) -> RuntimeContext:
    """
    Wire source, delivery thread, tracker, renderer and controller.

    Must be called on the thread that will run the UI loop: the dispatcher
    binds to the calling thread.
    """
    if source is None:
        source = create_source_from_config(config.camera, device_override=device_override)

    frame_size: Tuple[int, int] = tuple(config.camera.resolution)
    surface_size = tuple(config.display.surface_size) if config.display.surface_size else frame_size
    layout = PreviewLayout(surface_size=surface_size, frame_size=frame_size, gravity=config.overlay.gravity)

    dispatcher = UIDispatcher()
    renderer = OverlayRenderer(layout, config.overlay)
    tracker = create_tracker(config.tracking)
    controller = TrackingController(
        tracker,
        renderer,
        dispatcher,
        confidence_threshold=config.tracking.confidence_threshold,
        drag_mode=config.tracking.drag_mode,
    )
    delivery = FrameDelivery(
        source,
        max_consecutive_failures=config.display.max_consecutive_failures,
        retry_delay=retry_delay,
        max_frames=max_frames,
    )
    delivery.add_consumer(controller.on_frame)

    return RuntimeContext(
        config=config,
        source=source,
        delivery=delivery,
        dispatcher=dispatcher,
        renderer=renderer,
        tracker=tracker,
        controller=controller,
    )
