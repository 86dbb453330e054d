from __future__ import annotations

import pytest

from manager import Stage
from walker import DrawCommand


class ScriptedRandom:
    """Returns queued values from random(), then a fixed default."""

    def __init__(self, values: list[float] | None = None, default: float = 0.5) -> None:
        self.values = list(values or [])
        self.default = default
        self.calls = 0

    def random(self) -> float:
        self.calls += 1
        if self.values:
            return self.values.pop(0)
        return self.default


class RecordingCanvas:
    def __init__(self) -> None:
        self.calls: list[tuple] = []

    def clear(self, width: float, height: float) -> None:
        self.calls.append(("clear", width, height))

    def blit(self, command: DrawCommand) -> None:
        self.calls.append(("blit", command))


@pytest.fixture
def scripted() -> type[ScriptedRandom]:
    return ScriptedRandom


@pytest.fixture
def canvas() -> RecordingCanvas:
    return RecordingCanvas()


@pytest.fixture
def stage() -> Stage:
    """64x64 frames on a 300x140 surface."""
    s = Stage()
    s.geometry.load(256, 576)
    s.surface.resize(300, 140, 1)
    return s
