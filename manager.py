"""Walker collection and the per-frame update/render loop.

``Stage`` is the one owning context for everything walkers share: the
sheet's frame geometry, the drawing surface and the live state registry.
``WalkerManager`` holds the walkers in insertion order and drives them;
``FrameLoop`` turns host frame callbacks into clamped time steps.
"""

from __future__ import annotations

import logging
import random
from typing import Callable, Protocol

from geometry import COLS, ROWS, FrameGeometry, Surface, clamp_scale
from walker import (
    STATE_DEFINITIONS,
    DrawCommand,
    RandomProto,
    StateDefinition,
    Walker,
)

logger = logging.getLogger(__name__)

MAX_DT_MS = 50
EXTRA_WALKER_SPACING = 90       # px between default walkers
EXTRA_WALKER_SPEED = (45, 75)   # px/s, uniform


class CanvasProto(Protocol):
    def clear(self, width: float, height: float) -> None: ...
    def blit(self, command: DrawCommand) -> None: ...


# Host primitive: call back once on the next display refresh with a
# monotonically increasing timestamp in milliseconds.
Scheduler = Callable[[Callable[[float], None]], None]


class Stage:
    """Shared sheet geometry, surface size and state registry."""

    def __init__(self, cols: int = COLS, rows: int = ROWS,
                 states: dict[str, StateDefinition] | None = None) -> None:
        self.geometry = FrameGeometry(cols, rows)
        self.surface = Surface()
        self.states: dict[str, StateDefinition] = dict(
            STATE_DEFINITIONS if states is None else states)


class WalkerManager:
    """Owns the walkers and steps/draws them in insertion order."""

    def __init__(self, stage: Stage | None = None,
                 rng: RandomProto | None = None) -> None:
        self.stage = stage if stage is not None else Stage()
        self._rng = rng if rng is not None else random.Random()
        self._walkers: list[Walker] = []
        self._scale: float | None = None

    # ------------------------------------------------------------------
    # Control surface
    # ------------------------------------------------------------------

    @property
    def walkers(self) -> list[Walker]:
        return list(self._walkers)

    @property
    def states(self) -> dict[str, StateDefinition]:
        return self.stage.states

    @property
    def scale(self) -> float | None:
        return self._scale

    def add_walker(self, x: float | None = None, vx: float | None = None,
                   scale: float | None = None,
                   offset_y: float | None = None) -> Walker:
        """Create a walker, size it if the sheet is loaded, and append it."""
        if scale is None:
            scale = self._scale
        options = {"x": x, "vx": vx, "scale": scale, "offset_y": offset_y}
        walker = Walker(self.stage, rng=self._rng,
                        **{k: v for k, v in options.items() if v is not None})
        self._walkers.append(walker)
        logger.debug("Added %r (%d walkers)", walker, len(self._walkers))
        return walker

    def ensure_population(self, count: int = 1) -> None:
        """Add default walkers until at least ``count`` exist."""
        while len(self._walkers) < count:
            i = len(self._walkers)
            if i == 0:
                self.add_walker()
                continue
            lo, hi = EXTRA_WALKER_SPEED
            self.add_walker(x=40 + i * EXTRA_WALKER_SPACING,
                            vx=lo + self._rng.random() * (hi - lo))

    def set_scale(self, scale: float) -> float:
        """Apply one user scale to every walker. Returns the clamped value."""
        self._scale = clamp_scale(scale)
        for walker in self._walkers:
            walker.set_scale(self._scale)
        logger.info("Scale set to %.2f for %d walkers",
                    self._scale, len(self._walkers))
        return self._scale

    def register_state(self, name: str, definition: StateDefinition) -> None:
        if not definition.frames:
            raise ValueError(f"state {name!r} needs at least one frame")
        self.stage.states[name] = definition
        logger.debug("Registered state %r", name)

    # ------------------------------------------------------------------
    # Geometry
    # ------------------------------------------------------------------

    def sheet_loaded(self, width: int, height: int) -> bool:
        """Sheet pixel size is known: derive frames and size every walker."""
        if not self.stage.geometry.load(width, height):
            return False
        logger.info("Sprite sheet loaded: %dx%d", width, height)
        self._rescale()
        return True

    def resize(self, logical_width: float, logical_height: float,
               device_pixel_ratio: float | None = None) -> None:
        self.stage.surface.resize(logical_width, logical_height,
                                  device_pixel_ratio)
        if not self.stage.geometry.loaded:
            logger.debug("Resize to %.0fx%.0f before sheet load",
                         logical_width, logical_height)
            return
        self._rescale()

    def _rescale(self) -> None:
        for walker in self._walkers:
            walker.rescale()

    # ------------------------------------------------------------------
    # Per-frame
    # ------------------------------------------------------------------

    def update(self, dt: float) -> None:
        for walker in self._walkers:
            walker.update(dt)

    def render(self, canvas: CanvasProto) -> None:
        surface = self.stage.surface
        canvas.clear(surface.logical_width, surface.logical_height)
        for walker in self._walkers:
            command = walker.render()
            if command is not None:
                canvas.blit(command)


class FrameLoop:
    """Steps the manager once per host frame and asks for a redraw."""

    def __init__(self, manager: WalkerManager, schedule: Scheduler,
                 redraw: Callable[[], None]) -> None:
        self._manager = manager
        self._schedule = schedule
        self._redraw = redraw
        self._last: float = 0.0
        self.started = False
        self.stopped = False

    def start(self, now: float) -> bool:
        """Schedule the first frame once the sheet and walkers are ready."""
        if self.started:
            return True
        if not self._manager.stage.geometry.loaded:
            logger.warning("Sprite sheet not loaded, animation not started")
            return False
        if not self._manager.walkers:
            logger.warning("No walkers, animation not started")
            return False
        self.started = True
        self._last = now
        self._schedule(self.tick)
        logger.info("Animation loop started with %d walkers",
                    len(self._manager.walkers))
        return True

    def stop(self) -> None:
        self.stopped = True

    def tick(self, now: float) -> None:
        if self.stopped:
            return
        # Long stalls (hidden window, suspend) become one short step
        dt = max(0.0, min(MAX_DT_MS, now - self._last))
        self._last = now
        self._manager.update(dt)
        self._redraw()
        self._schedule(self.tick)
