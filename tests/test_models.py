"""
Smoke tests for typed models and adapters.
"""

import pytest

from models.config import Config, DisplayConfig, OverlayConfig, TrackingConfig
from models.region import ABSENT, Absent, Observation, Present, Rect, TrackedRegion


class TestRect:
    def test_properties(self):
        rect = Rect(100, 100, 100, 50)
        assert rect.max_x == 200
        assert rect.max_y == 150
        assert rect.center == (150.0, 125.0)
        assert rect.area == 5000
        assert not rect.is_empty

    def test_zero_is_empty(self):
        assert Rect.zero().is_empty
        assert Rect(10, 10, 0, 5).is_empty

    def test_from_points_any_order(self):
        assert Rect.from_points((150, 130), (100, 100)) == Rect(100, 100, 50, 30)

    def test_as_int_tuple(self):
        assert Rect(10.4, 20.6, 30.5, 40.2).as_int_tuple() == (10, 21, 30, 40)

    def test_is_close(self):
        assert Rect(0.1, 0.2, 0.3, 0.4).is_close(Rect(0.1 + 1e-9, 0.2, 0.3, 0.4))
        assert not Rect(0.1, 0.2, 0.3, 0.4).is_close(Rect(0.2, 0.2, 0.3, 0.4))

    def test_immutable(self):
        with pytest.raises(AttributeError):
            Rect(0, 0, 1, 1).x = 5


class TestTrackedRegion:
    def test_clamped_clips_to_unit_square(self):
        region = TrackedRegion.clamped(Rect(-0.1, 0.9, 0.3, 0.3))
        assert region.rect.is_close(Rect(0.0, 0.9, 0.2, 0.1))
        assert region.is_normalized

    def test_clamped_outside_is_empty(self):
        assert TrackedRegion.clamped(Rect(1.5, 1.5, 0.2, 0.2)).rect.is_empty

    def test_is_normalized(self):
        assert TrackedRegion.from_xywh(0, 0, 1, 1).is_normalized
        assert not TrackedRegion.from_xywh(0.9, 0, 0.2, 0.1).is_normalized


class TestObservation:
    @pytest.mark.parametrize("confidence", [0.0, 0.3, 1.0])
    def test_valid_confidence(self, confidence):
        obs = Observation(TrackedRegion.from_xywh(0, 0, 0.1, 0.1), confidence)
        assert obs.confidence == confidence

    @pytest.mark.parametrize("confidence", [-0.01, 1.01])
    def test_confidence_out_of_range(self, confidence):
        with pytest.raises(ValueError):
            Observation(TrackedRegion.from_xywh(0, 0, 0.1, 0.1), confidence)


class TestRegionState:
    def test_absent_singleton_equality(self):
        assert ABSENT == Absent()
        assert not ABSENT.is_present

    def test_present_wraps_region(self):
        region = TrackedRegion.from_xywh(0.1, 0.1, 0.2, 0.2)
        state = Present(region)
        assert state.is_present
        assert state.region is region
        assert state == Present(TrackedRegion.from_xywh(0.1, 0.1, 0.2, 0.2))
        assert state != ABSENT


class TestConfig:
    def test_defaults(self):
        config = Config()
        assert config.tracking.level == "accurate"
        assert config.tracking.confidence_threshold == 0.3
        assert config.tracking.drag_mode == "anchor"
        assert config.overlay.gravity == "resize_aspect_fill"
        assert config.display.surface_size is None

    def test_from_dict(self, valid_config):
        config = Config.from_dict(valid_config)
        assert config.camera.resolution == [1280, 720]
        assert config.tracking.level == "accurate"
        assert config.overlay.border_width == 2
        assert config.display.surface_size == [1280, 720]
        assert config.log_path == "logs/test.log"

    def test_from_dict_tolerates_empty_sections(self):
        config = Config.from_dict({"tracking": None, "overlay": {}})
        assert config.tracking == TrackingConfig()
        assert config.overlay == OverlayConfig()

    def test_to_dict_round_trip(self, valid_config):
        config = Config.from_dict(valid_config)
        assert Config.from_dict(config.to_dict()) == config

    def test_display_to_dict_omits_unset_surface(self):
        assert "surface_size" not in DisplayConfig().to_dict()
