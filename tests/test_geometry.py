"""Tests for geometry: FrameGeometry and Surface."""
from __future__ import annotations

import pytest

from geometry import COLS, ROWS, FrameGeometry, Surface, clamp_scale


class TestFrameGeometry:
    def test_frame_size_is_floored(self) -> None:
        g = FrameGeometry()
        assert g.load(259, 580) is True
        assert (g.cols, g.rows) == (COLS, ROWS)
        assert g.frame_width == 64
        assert g.frame_height == 64

    def test_second_load_is_ignored(self) -> None:
        g = FrameGeometry()
        g.load(256, 576)
        assert g.load(512, 1152) is False
        assert (g.frame_width, g.frame_height) == (64, 64)
        assert (g.sheet_width, g.sheet_height) == (256, 576)

    def test_not_loaded_has_no_scaled_size(self) -> None:
        g = FrameGeometry()
        assert g.loaded is False
        assert g.scaled_size(140, 1.0) is None

    def test_sprite_never_taller_than_surface(self) -> None:
        g = FrameGeometry()
        g.load(256, 576)
        assert g.scaled_size(32, 1.0) == (32, 32)
        assert g.scaled_size(200, 1.0) == (64, 64)

    def test_user_scale_applies_on_top(self) -> None:
        g = FrameGeometry()
        g.load(256, 576)
        assert g.scaled_size(200, 2.0) == (128, 128)
        assert g.scaled_size(32, 0.5) == (16, 16)

    def test_shrinking_surface_above_frame_height_keeps_size(self) -> None:
        g = FrameGeometry()
        g.load(256, 576)
        before = g.scaled_size(140, 0.6)
        after = g.scaled_size(70, 0.6)
        assert before == after == (38, 38)

    def test_scaled_size_is_idempotent(self) -> None:
        g = FrameGeometry()
        g.load(300, 700)
        assert g.scaled_size(50, 0.7) == g.scaled_size(50, 0.7)

    def test_source_rect(self) -> None:
        g = FrameGeometry()
        g.load(256, 576)
        assert g.source_rect(2, 7) == (128, 448, 64, 64)

    def test_preferred_height(self) -> None:
        g = FrameGeometry()
        g.load(256, 576)
        assert g.preferred_height() == 84
        big = FrameGeometry()
        big.load(800, 1800)
        assert big.preferred_height() == 160


class TestSurface:
    def test_defaults(self) -> None:
        s = Surface()
        assert (s.backing_width, s.backing_height) == (1, 1)
        assert s.device_pixel_ratio == 1.0

    def test_backing_store_uses_device_pixels(self) -> None:
        s = Surface()
        s.resize(300, 140, 2)
        assert (s.logical_width, s.logical_height) == (300, 140)
        assert (s.backing_width, s.backing_height) == (600, 280)
        assert s.pixel_transform == (2, 0.0, 0.0, 2, 0.0, 0.0)

    def test_backing_store_is_floored_and_at_least_one(self) -> None:
        s = Surface()
        s.resize(100.7, 0.2, 1.5)
        assert s.backing_width == 151
        assert s.backing_height == 1

    def test_missing_ratio_defaults_to_one(self) -> None:
        s = Surface()
        s.resize(50, 20, None)
        assert s.device_pixel_ratio == 1.0
        assert (s.backing_width, s.backing_height) == (50, 20)


class TestClampScale:
    @pytest.mark.parametrize("value,expected", [
        (0.0, 0.2),
        (0.2, 0.2),
        (0.6, 0.6),
        (2.0, 2.0),
        (5.0, 2.0),
    ])
    def test_clamp(self, value: float, expected: float) -> None:
        assert clamp_scale(value) == expected
