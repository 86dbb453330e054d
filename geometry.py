"""Sprite sheet grid geometry and drawing-surface sizing.

The sheet is a fixed grid of COLS x ROWS equally sized frames. Frame
dimensions are derived once, when the image finishes loading. The
surface tracks its logical (CSS-style) size and the device pixel ratio
used for the backing store.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

logger = logging.getLogger(__name__)

COLS = 4
ROWS = 9

SCALE_MIN = 0.2
SCALE_MAX = 2.0


def clamp_scale(scale: float) -> float:
    """Clamp a user scale multiplier into [SCALE_MIN, SCALE_MAX]."""
    return max(SCALE_MIN, min(SCALE_MAX, scale))


class FrameGeometry:
    """Per-frame pixel dimensions of a loaded sprite sheet."""

    def __init__(self, cols: int = COLS, rows: int = ROWS) -> None:
        self.cols = cols
        self.rows = rows
        self.sheet_width = 0
        self.sheet_height = 0
        self.frame_width = 0
        self.frame_height = 0

    @property
    def loaded(self) -> bool:
        return self.frame_height > 0

    def load(self, sheet_width: int, sheet_height: int) -> bool:
        """Record the sheet's pixel size and derive the frame size.

        Only the first call has any effect. Returns True when the frame
        size was set by this call.
        """
        if self.loaded:
            logger.warning("Sheet geometry already loaded (%dx%d), ignoring %dx%d",
                           self.sheet_width, self.sheet_height,
                           sheet_width, sheet_height)
            return False
        self.sheet_width = sheet_width
        self.sheet_height = sheet_height
        self.frame_width = sheet_width // self.cols
        self.frame_height = sheet_height // self.rows
        logger.debug("Frame geometry: sheet=%dx%d frame=%dx%d",
                     sheet_width, sheet_height,
                     self.frame_width, self.frame_height)
        return self.loaded

    def effective_scale(self, logical_height: float, user_scale: float) -> float:
        # Never taller than the surface, then the caller's zoom on top
        return min(1.0, logical_height / self.frame_height) * user_scale

    def scaled_size(self, logical_height: float,
                    user_scale: float) -> tuple[int, int] | None:
        """Display size of one frame, or None while the sheet is loading."""
        if not self.loaded:
            return None
        scale = self.effective_scale(logical_height, user_scale)
        return (math.floor(self.frame_width * scale),
                math.floor(self.frame_height * scale))

    def source_rect(self, column: int, row: int) -> tuple[int, int, int, int]:
        return (column * self.frame_width, row * self.frame_height,
                self.frame_width, self.frame_height)

    def preferred_height(self, cap: int = 160, padding: int = 20) -> int:
        """Strip height that fits one unscaled frame plus some headroom."""
        return min(cap, self.frame_height + padding)


@dataclass
class Surface:
    """Logical size and backing-store size of the drawing surface."""
    logical_width: float = 0.0
    logical_height: float = 0.0
    device_pixel_ratio: float = 1.0
    backing_width: int = 1
    backing_height: int = 1

    def resize(self, logical_width: float, logical_height: float,
               device_pixel_ratio: float | None = None) -> None:
        ratio = device_pixel_ratio or 1.0
        self.logical_width = logical_width
        self.logical_height = logical_height
        self.device_pixel_ratio = ratio
        self.backing_width = max(1, math.floor(logical_width * ratio))
        self.backing_height = max(1, math.floor(logical_height * ratio))

    @property
    def pixel_transform(self) -> tuple[float, float, float, float, float, float]:
        """Affine (xx, yx, xy, yy, x0, y0) mapping logical to device pixels."""
        r = self.device_pixel_ratio
        return (r, 0.0, 0.0, r, 0.0, 0.0)
