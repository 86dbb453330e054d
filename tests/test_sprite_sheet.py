"""Tests for sprite_sheet: PNG loading and the cairo canvas."""
from __future__ import annotations

import pytest

cairo = pytest.importorskip("cairo")

from geometry import Surface  # noqa: E402
from manager import WalkerManager  # noqa: E402
from sprite_sheet import CairoCanvas, SpriteSheet  # noqa: E402
from walker import DrawCommand  # noqa: E402

FRAME = 8


def make_sheet() -> SpriteSheet:
    """4x9 sheet of 8px frames, transparent except frame (1, 1) in red."""
    surface = cairo.ImageSurface(cairo.FORMAT_ARGB32, 4 * FRAME, 9 * FRAME)
    ctx = cairo.Context(surface)
    ctx.set_source_rgb(1, 0, 0)
    ctx.rectangle(FRAME, FRAME, FRAME, FRAME)
    ctx.fill()
    surface.flush()
    return SpriteSheet(surface)


def pixel(surface: cairo.ImageSurface, x: int, y: int) -> tuple[int, int, int, int]:
    """(r, g, b, a) of a native-endian ARGB32 pixel on a little-endian host."""
    surface.flush()
    data = surface.get_data()
    offset = y * surface.get_stride() + x * 4
    b, g, r, a = data[offset], data[offset + 1], data[offset + 2], data[offset + 3]
    return r, g, b, a


class TestSpriteSheet:
    def test_load_png(self, tmp_path) -> None:
        path = tmp_path / "sheet.png"
        make_sheet().surface.write_to_png(str(path))
        sheet = SpriteSheet.load(str(path))
        assert sheet is not None
        assert (sheet.width, sheet.height) == (32, 72)
        assert sheet.path == str(path)

    def test_missing_file(self, tmp_path) -> None:
        assert SpriteSheet.load(str(tmp_path / "nope.png")) is None

    def test_not_a_png(self, tmp_path) -> None:
        path = tmp_path / "sheet.png"
        path.write_bytes(b"definitely not an image")
        assert SpriteSheet.load(str(path)) is None


class TestCairoCanvas:
    def test_backing_store_in_device_pixels(self) -> None:
        surface = Surface()
        surface.resize(40, 20, 2)
        canvas = CairoCanvas(make_sheet(), surface)
        canvas.clear(40, 20)
        assert canvas.backing.get_width() == 80
        assert canvas.backing.get_height() == 40

    def test_backing_store_follows_resize(self) -> None:
        surface = Surface()
        surface.resize(40, 20, 1)
        canvas = CairoCanvas(make_sheet(), surface)
        canvas.clear(40, 20)
        surface.resize(60, 30, 1)
        canvas.clear(60, 30)
        assert canvas.backing.get_width() == 60

    def test_blit_copies_source_frame(self) -> None:
        surface = Surface()
        surface.resize(40, 20, 2)
        canvas = CairoCanvas(make_sheet(), surface)
        canvas.clear(40, 20)
        canvas.blit(DrawCommand(FRAME, FRAME, FRAME, FRAME, 10, 5, FRAME, FRAME))
        backing = canvas.backing
        # logical (10, 5)-(18, 13) is device (20, 10)-(36, 26)
        assert pixel(backing, 24, 14) == (255, 0, 0, 255)
        assert pixel(backing, 35, 25) == (255, 0, 0, 255)
        assert pixel(backing, 18, 14)[3] == 0
        assert pixel(backing, 37, 14)[3] == 0

    def test_blit_other_frame_is_transparent(self) -> None:
        surface = Surface()
        surface.resize(40, 20, 1)
        canvas = CairoCanvas(make_sheet(), surface)
        canvas.clear(40, 20)
        canvas.blit(DrawCommand(0, 0, FRAME, FRAME, 0, 0, FRAME, FRAME))
        assert pixel(canvas.backing, 4, 4)[3] == 0

    def test_clear_erases_previous_frame(self) -> None:
        surface = Surface()
        surface.resize(40, 20, 1)
        canvas = CairoCanvas(make_sheet(), surface)
        canvas.clear(40, 20)
        canvas.blit(DrawCommand(FRAME, FRAME, FRAME, FRAME, 0, 0, FRAME, FRAME))
        canvas.clear(40, 20)
        assert pixel(canvas.backing, 4, 4)[3] == 0

    def test_empty_blit_is_skipped(self) -> None:
        surface = Surface()
        surface.resize(40, 20, 1)
        canvas = CairoCanvas(make_sheet(), surface)
        canvas.blit(DrawCommand(0, 0, FRAME, FRAME, 0, 0, 0, 0))
        assert canvas.backing is None

    def test_manager_renders_through_canvas(self, scripted) -> None:
        sheet = make_sheet()
        manager = WalkerManager(rng=scripted())
        manager.resize(40, 20, 1)
        manager.sheet_loaded(sheet.width, sheet.height)
        walker = manager.add_walker(x=12, scale=1.0)
        walker.direction = 1
        walker.set_state("walk", 10_000)
        canvas = CairoCanvas(sheet, manager.stage.surface)
        manager.render(canvas)
        # frame (1, 1) drawn bottom-anchored at x=12
        assert pixel(canvas.backing, 14, 14) == (255, 0, 0, 255)

    def test_present_paints_backing(self) -> None:
        surface = Surface()
        surface.resize(40, 20, 2)
        canvas = CairoCanvas(make_sheet(), surface)
        canvas.clear(40, 20)
        canvas.blit(DrawCommand(FRAME, FRAME, FRAME, FRAME, 0, 0, FRAME, FRAME))
        target = cairo.ImageSurface(cairo.FORMAT_ARGB32, 40, 20)
        ctx = cairo.Context(target)
        canvas.present(ctx)
        assert pixel(target, 4, 4) == (255, 0, 0, 255)
        assert pixel(target, 20, 4)[3] == 0
