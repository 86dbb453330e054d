"""Cairo side of the walker animation: the sheet image and the canvas.

The canvas draws into its own backing surface sized in device pixels,
with a pixel transform so every coordinate handed to it is a logical
pixel. The window then paints that backing store onto the widget.
"""

from __future__ import annotations

import logging

import cairo

from geometry import Surface
from walker import DrawCommand

logger = logging.getLogger(__name__)


class SpriteSheet:
    """A loaded sprite sheet image."""

    def __init__(self, surface: cairo.ImageSurface, path: str | None = None) -> None:
        self.surface = surface
        self.path = path

    @classmethod
    def load(cls, path: str) -> SpriteSheet | None:
        """Load a PNG sheet. Returns None if it cannot be read."""
        try:
            surface = cairo.ImageSurface.create_from_png(path)
        except (cairo.Error, OSError, MemoryError) as exc:
            logger.warning("Could not load sprite sheet %s: %s", path, exc)
            return None
        if surface.get_width() <= 0 or surface.get_height() <= 0:
            logger.warning("Sprite sheet %s is empty", path)
            return None
        return cls(surface, path)

    @property
    def width(self) -> int:
        return self.surface.get_width()

    @property
    def height(self) -> int:
        return self.surface.get_height()


class CairoCanvas:
    """Clears and blits sheet frames onto a device-pixel backing store."""

    def __init__(self, sheet: SpriteSheet, surface: Surface) -> None:
        self._sheet = sheet
        self._surface = surface
        self._backing: cairo.ImageSurface | None = None
        self._ctx: cairo.Context | None = None
        self._ratio = 1.0

    @property
    def backing(self) -> cairo.ImageSurface | None:
        return self._backing

    def _context(self) -> cairo.Context:
        w = self._surface.backing_width
        h = self._surface.backing_height
        ratio = self._surface.device_pixel_ratio
        if (self._backing is None
                or self._backing.get_width() != w
                or self._backing.get_height() != h
                or self._ratio != ratio):
            self._backing = cairo.ImageSurface(cairo.FORMAT_ARGB32, w, h)
            self._ctx = cairo.Context(self._backing)
            self._ctx.set_matrix(cairo.Matrix(*self._surface.pixel_transform))
            self._ratio = ratio
            logger.debug("Backing store %dx%d (ratio %.2f)", w, h, ratio)
        return self._ctx

    def clear(self, width: float, height: float) -> None:
        ctx = self._context()
        ctx.save()
        ctx.set_operator(cairo.OPERATOR_SOURCE)
        ctx.set_source_rgba(0, 0, 0, 0)
        ctx.rectangle(0, 0, width, height)
        ctx.fill()
        ctx.restore()

    def blit(self, command: DrawCommand) -> None:
        if (command.src_width <= 0 or command.src_height <= 0
                or command.dst_width <= 0 or command.dst_height <= 0):
            return
        ctx = self._context()
        ctx.save()
        ctx.rectangle(command.dst_x, command.dst_y,
                      command.dst_width, command.dst_height)
        ctx.clip()
        ctx.translate(command.dst_x, command.dst_y)
        ctx.scale(command.dst_width / command.src_width,
                  command.dst_height / command.src_height)
        ctx.set_source_surface(self._sheet.surface,
                               -command.src_x, -command.src_y)
        ctx.get_source().set_filter(cairo.FILTER_NEAREST)
        ctx.paint()
        ctx.restore()

    def present(self, ctx: cairo.Context) -> None:
        """Paint the backing store onto a widget context in logical pixels."""
        if self._backing is None:
            return
        self._backing.flush()
        ctx.save()
        ctx.scale(1 / self._ratio, 1 / self._ratio)
        ctx.set_operator(cairo.OPERATOR_SOURCE)
        ctx.set_source_surface(self._backing, 0, 0)
        ctx.paint()
        ctx.restore()
