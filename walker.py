"""Walker state machine: resting, walking and sleeping on a sprite strip.

Each walker owns its position, facing direction, behavioral state and
animation frame. Behavior is driven by ``update(dt)`` with ``dt`` in
milliseconds. What a state looks like (sheet row and frame sequence) is
pure data in a registry; only the few timer-expiry rules below are
state-specific code.
"""

from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass
from typing import Callable, Protocol

from geometry import FrameGeometry, Surface, clamp_scale

logger = logging.getLogger(__name__)

RIGHT = 1
LEFT = -1

FRAME_DURATION_MS = 120
MARGIN = 12
MIN_WALK_DIST = 30
MAX_WALK_DIST = 600
SLEEP_CHANCE = 0.25

# Uniform [lo, hi) durations in ms
INITIAL_REST_MS = (800, 2000)
REST_MS = (800, 2800)
SETTLE_REST_MS = (1200, 4000)   # after a walk
SLEEP_MS = (3000, 8000)
WALK_FRACTION = (0.4, 1.0)


def facing_row(right: int, left: int) -> Callable[[int], int]:
    """Row selector that picks a sheet row by facing direction."""
    return lambda direction: right if direction == RIGHT else left


def fixed_row(row: int) -> Callable[[int], int]:
    return lambda direction: row


@dataclass(frozen=True)
class StateDefinition:
    """How a state is drawn and animated.

    ``frames`` are sheet columns, cycled in order every
    ``frame_duration_ms``. A duration of None pins the first frame.
    """
    row: Callable[[int], int]
    frames: tuple[int, ...]
    frame_duration_ms: float | None = None


STATE_DEFINITIONS: dict[str, StateDefinition] = {
    "rest": StateDefinition(row=facing_row(1, 3), frames=(0,)),
    "walk": StateDefinition(row=facing_row(1, 3), frames=(1, 2, 3),
                            frame_duration_ms=FRAME_DURATION_MS),
    "sleep": StateDefinition(row=fixed_row(7), frames=(0, 1, 2, 3),
                             frame_duration_ms=6 * FRAME_DURATION_MS),
}

# Used for any state name missing from the registry
FALLBACK_STATE = StateDefinition(row=facing_row(1, 3), frames=(0,))

DEFAULT_STATE = "rest"


class StageProto(Protocol):
    geometry: FrameGeometry
    surface: Surface
    states: dict[str, StateDefinition]


class RandomProto(Protocol):
    def random(self) -> float: ...


@dataclass(frozen=True)
class DrawCommand:
    """Source rectangle on the sheet and destination rectangle on the surface."""
    src_x: int
    src_y: int
    src_width: int
    src_height: int
    dst_x: float
    dst_y: float
    dst_width: int
    dst_height: int


class Walker:
    """One sprite walking back and forth along the bottom of the surface."""

    def __init__(self, stage: StageProto, x: float = 40.0, vx: float = 60.0,
                 scale: float = 0.6, offset_y: float = 0.0,
                 rng: RandomProto | None = None) -> None:
        if vx <= 0:
            raise ValueError(f"walker speed must be positive, got {vx!r}")
        self._stage = stage
        self._rng = rng if rng is not None else random.Random()
        self._warned_state: str | None = None

        self.x = float(x)
        self.vx = float(vx)
        self.direction = RIGHT if self._rng.random() < 0.5 else LEFT
        self.state = DEFAULT_STATE
        self.state_timer = self._uniform(*INITIAL_REST_MS)
        self.frame_index = self.definition.frames[0]
        self.frame_timer = 0.0
        self.user_scale = clamp_scale(scale)
        self.offset_y = offset_y

        self.scaled_width = 0
        self.scaled_height = 0
        self.rescale()

    def __repr__(self) -> str:
        return (f"Walker(x={self.x:.1f}, dir={self.direction:+d}, "
                f"state={self.state!r}, frame={self.frame_index})")

    # ------------------------------------------------------------------
    # Geometry
    # ------------------------------------------------------------------

    @property
    def definition(self) -> StateDefinition:
        definition = self._stage.states.get(self.state)
        if definition is None:
            if self._warned_state != self.state:
                logger.warning("Unknown walker state %r, using fallback frame",
                               self.state)
                self._warned_state = self.state
            return FALLBACK_STATE
        return definition

    @property
    def right_limit(self) -> float:
        width = self.scaled_width or self._stage.geometry.frame_width
        return self._stage.surface.logical_width - width - MARGIN

    @property
    def scale(self) -> float:
        return self.user_scale

    def set_scale(self, scale: float) -> None:
        self.user_scale = clamp_scale(scale)
        self.rescale()

    def rescale(self) -> bool:
        """Recompute the cached display size. False while the sheet is loading."""
        size = self._stage.geometry.scaled_size(
            self._stage.surface.logical_height, self.user_scale)
        if size is None:
            return False
        self.scaled_width, self.scaled_height = size
        return True

    # ------------------------------------------------------------------
    # State machine
    # ------------------------------------------------------------------

    def set_state(self, state: str, duration_ms: float | None = None) -> None:
        """Force a state, e.g. one added to the registry at runtime."""
        if state not in self._stage.states:
            logger.warning("Cannot enter unknown state %r, resting instead", state)
            state = DEFAULT_STATE
        if duration_ms is None:
            duration_ms = self._uniform(*REST_MS)
        self._enter(state, duration_ms)

    def update(self, dt: float) -> None:
        definition = self.definition
        self.state_timer -= dt

        if self.state == "walk":
            self.x += self.vx * (dt / 1000.0) * self.direction
        self._clamp()

        if definition.frame_duration_ms is None:
            self.frame_index = definition.frames[0]
        else:
            self.frame_timer += dt
            if self.frame_timer >= definition.frame_duration_ms:
                self.frame_timer = 0.0
                self.frame_index = self._next_frame(definition.frames)

        if self.state_timer <= 0:
            expire = {
                "rest": self._rest_expired,
                "walk": self._walk_expired,
            }.get(self.state, self._default_expired)
            expire()

    def _rest_expired(self) -> None:
        # Only a right-facing walker dozes off
        if self.direction == RIGHT and self._rng.random() < SLEEP_CHANCE:
            self._enter("sleep", self._uniform(*SLEEP_MS))
            return

        self.direction = RIGHT if self._rng.random() < 0.5 else LEFT
        if self.direction == RIGHT:
            available = self.right_limit - self.x
        else:
            available = self.x - MARGIN
        if available < MIN_WALK_DIST:
            self._enter("rest", self._uniform(*REST_MS))
            return

        max_possible = max(MIN_WALK_DIST, min(available, MAX_WALK_DIST))
        fraction = self._uniform(*WALK_FRACTION)
        walk_dist = max(MIN_WALK_DIST, math.floor(max_possible * fraction))
        self._enter("walk", walk_dist / self.vx * 1000.0)

    def _walk_expired(self) -> None:
        self._enter("rest", self._uniform(*SETTLE_REST_MS))

    def _default_expired(self) -> None:
        self._enter("rest", self._uniform(*REST_MS))

    def _enter(self, state: str, duration_ms: float) -> None:
        logger.debug("%r -> %s for %.0f ms", self, state, duration_ms)
        self.state = state
        self.state_timer = duration_ms
        self.frame_index = self.definition.frames[0]
        self.frame_timer = 0.0

    def _next_frame(self, frames: tuple[int, ...]) -> int:
        if self.frame_index not in frames:
            return frames[0]
        return frames[(frames.index(self.frame_index) + 1) % len(frames)]

    def _clamp(self) -> None:
        self.x = max(MARGIN, min(self.x, self.right_limit))

    def _uniform(self, lo: float, hi: float) -> float:
        return lo + self._rng.random() * (hi - lo)

    # ------------------------------------------------------------------
    # Drawing
    # ------------------------------------------------------------------

    def render(self) -> DrawCommand | None:
        """Where to draw this walker, or None before the sheet has loaded."""
        geometry = self._stage.geometry
        if not geometry.loaded:
            return None
        row = self.definition.row(self.direction)
        src_x, src_y, src_w, src_h = geometry.source_rect(self.frame_index, row)
        dst_w = self.scaled_width or geometry.frame_width
        dst_h = self.scaled_height or geometry.frame_height
        dst_y = self._stage.surface.logical_height - dst_h - self.offset_y
        return DrawCommand(src_x, src_y, src_w, src_h,
                           self.x, dst_y, dst_w, dst_h)
