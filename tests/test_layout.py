"""
Tests for preview layout and overlay rendering.
"""

import numpy as np
import pytest

from models.config import OverlayConfig
from models.region import Rect, TrackedRegion
from overlay.layout import GRAVITIES, PreviewLayout, flip_vertical
from overlay.renderer import OverlayRenderer, OverlayStyle


class TestFlipVertical:
    def test_flip_moves_top_band_to_bottom(self):
        assert flip_vertical(Rect(0.1, 0.0, 0.2, 0.25)) == Rect(0.1, 0.75, 0.2, 0.25)

    def test_flip_is_involution(self):
        rect = Rect(0.2, 0.3, 0.4, 0.1)
        assert flip_vertical(flip_vertical(rect)).is_close(rect)


class TestPreviewLayout:
    def test_resize_stretches(self):
        layout = PreviewLayout((800, 400), (640, 480), "resize")
        assert layout.scale == (1.25, 400 / 480)
        assert layout.offset == (0.0, 0.0)

    def test_aspect_fit_letterboxes(self):
        layout = PreviewLayout((800, 480), (640, 480), "resize_aspect")
        assert layout.scale == (1.0, 1.0)
        assert layout.offset == (80.0, 0.0)

    def test_aspect_fill_crops(self):
        layout = PreviewLayout((400, 400), (640, 480), "resize_aspect_fill")
        s = 400 / 480
        assert layout.scale == (s, s)
        assert layout.offset[0] == pytest.approx((400 - 640 * s) / 2)
        assert layout.offset[1] == pytest.approx(0.0)

    def test_full_frame_maps_to_displayed_frame(self):
        layout = PreviewLayout((800, 480), (640, 480), "resize_aspect")
        assert layout.layer_rect_from_normalized(Rect(0, 0, 1, 1)) == Rect(80, 0, 640, 480)

    @pytest.mark.parametrize("gravity", GRAVITIES)
    @pytest.mark.parametrize("surface", [(640, 480), (1280, 720), (300, 500)])
    def test_round_trip(self, gravity, surface):
        layout = PreviewLayout(surface, (640, 480), gravity)
        rect = Rect(0.1, 0.2, 0.3, 0.4)

        back = layout.normalized_from_layer_rect(layout.layer_rect_from_normalized(rect))

        assert back.is_close(rect, tol=1e-9)

    def test_invalid_gravity(self):
        with pytest.raises(ValueError):
            PreviewLayout((640, 480), (640, 480), "center")

    def test_invalid_size(self):
        with pytest.raises(ValueError):
            PreviewLayout((0, 480), (640, 480))

    def test_with_frame_size(self):
        layout = PreviewLayout((640, 480), (640, 480)).with_frame_size((320, 240))
        assert layout.frame_size == (320, 240)

    @pytest.mark.parametrize("gravity", GRAVITIES)
    def test_render_frame_fills_surface_shape(self, gravity):
        layout = PreviewLayout((300, 200), (640, 480), gravity)
        image = np.full((480, 640, 3), 200, dtype=np.uint8)

        canvas = layout.render_frame(image)

        assert canvas.shape == (200, 300, 3)
        assert canvas.dtype == np.uint8

    def test_render_frame_letterbox_bars(self):
        layout = PreviewLayout((800, 480), (640, 480), "resize_aspect")
        image = np.full((480, 640, 3), 200, dtype=np.uint8)

        canvas = layout.render_frame(image)

        assert canvas[:, :80].max() == 0
        assert canvas[:, 80:720].min() == 200


class TestOverlayRenderer:
    def test_surface_rect_for_region_flips(self, renderer):
        region = TrackedRegion.from_xywh(0.0, 0.0, 0.5, 0.5)
        # Bottom-left quarter of the frame
        assert renderer.surface_rect_for_region(region).is_close(Rect(0, 240, 320, 240))

    def test_region_for_surface_rect_is_inverse(self):
        renderer = OverlayRenderer(PreviewLayout((1280, 720), (640, 480), "resize_aspect_fill"))
        region = TrackedRegion.from_xywh(0.3, 0.4, 0.2, 0.1)

        back = renderer.region_for_surface_rect(renderer.surface_rect_for_region(region))

        assert back.rect.is_close(region.rect, tol=1e-9)

    def test_reset_hides_and_restores_style(self, renderer):
        renderer.set_geometry(Rect(10, 10, 50, 50))
        renderer.set_style(OverlayStyle.LOW_CONFIDENCE)

        renderer.reset()

        assert renderer.rect == Rect.zero()
        assert renderer.style is OverlayStyle.CONFIDENT

    def test_update_frame_size(self, renderer):
        renderer.update_frame_size((320, 240))
        assert renderer.layout.frame_size == (320, 240)

    def test_draw_empty_rect_is_noop(self, renderer):
        surface = np.zeros((480, 640, 3), dtype=np.uint8)
        assert np.array_equal(renderer.draw(surface), surface)

    def test_draw_uses_style_color(self):
        config = OverlayConfig(
            border_width=2,
            confident_color=[0, 255, 0], confident_fill=[0, 255, 0],
            low_confidence_color=[0, 0, 255], low_confidence_fill=[0, 0, 255],
        )
        renderer = OverlayRenderer(PreviewLayout((640, 480), (640, 480), "resize"), config)
        surface = np.zeros((480, 640, 3), dtype=np.uint8)
        renderer.set_geometry(Rect(100, 100, 50, 50))

        confident = renderer.draw(surface)
        renderer.set_style(OverlayStyle.LOW_CONFIDENCE)
        low = renderer.draw(surface)

        assert confident[100, 125, 1] > 0 and confident[100, 125, 2] == 0
        assert low[100, 125, 2] > 0 and low[100, 125, 1] == 0
        assert surface.max() == 0

    def test_compose_returns_surface_sized_image(self):
        renderer = OverlayRenderer(PreviewLayout((320, 240), (640, 480), "resize_aspect_fill"))
        renderer.set_geometry(Rect(10, 10, 40, 40))

        out = renderer.compose(np.zeros((480, 640, 3), dtype=np.uint8))

        assert out.shape == (240, 320, 3)

    def test_compose_grayscale_frame(self):
        renderer = OverlayRenderer(PreviewLayout((160, 120), (160, 120), "resize"))
        renderer.set_geometry(Rect(10, 10, 40, 30))

        out = renderer.compose(np.zeros((120, 160), dtype=np.uint8))

        assert out.shape == (120, 160, 3)
        # Confident fill is green
        assert out[25, 30, 1] > 0
        assert out[25, 30, 0] == 0

    def test_draw_single_channel_surface(self, renderer):
        renderer.set_geometry(Rect(100, 100, 50, 50))

        out = renderer.draw(np.zeros((480, 640, 1), dtype=np.uint8))

        assert out.shape == (480, 640, 3)
        assert out[125, 125, 1] > 0

    @pytest.mark.parametrize("radius, corner_drawn", [(0, True), (10, False)])
    def test_corner_radius(self, radius, corner_drawn):
        config = OverlayConfig(border_width=1, corner_radius=radius)
        renderer = OverlayRenderer(PreviewLayout((640, 480), (640, 480), "resize"), config)
        renderer.set_geometry(Rect(100, 100, 50, 50))

        out = renderer.draw(np.zeros((480, 640, 3), dtype=np.uint8))

        assert bool(out[100, 100].any()) is corner_drawn
        # Edge midpoints are drawn either way
        assert out[100, 125, 1] > 0
        assert out[125, 100, 1] > 0

    def test_corner_radius_larger_than_box(self):
        config = OverlayConfig(corner_radius=50)
        renderer = OverlayRenderer(PreviewLayout((640, 480), (640, 480), "resize"), config)
        renderer.set_geometry(Rect(100, 100, 20, 10))

        out = renderer.draw(np.zeros((480, 640, 3), dtype=np.uint8))

        assert out[105, 110, 1] > 0
