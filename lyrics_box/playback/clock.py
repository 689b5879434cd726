from __future__ import annotations

import time
from typing import Callable


class PlaybackClock:
    """
    Software playback position for when no audio engine reports one.

    Position advances in real time while playing and is clamped to
    [0, duration_s] when a duration is known.
    """

    def __init__(self, duration_s: float | None = None, time_fn: Callable[[], float] = time.monotonic):
        self.duration_s = duration_s
        self._time_fn = time_fn
        self._base_s = 0.0
        self._started_at: float | None = None

    @property
    def is_playing(self) -> bool:
        return self._started_at is not None

    @property
    def ended(self) -> bool:
        return self.duration_s is not None and self.position() >= self.duration_s

    def _clamp(self, s: float) -> float:
        s = max(s, 0.0)
        if self.duration_s is not None:
            s = min(s, self.duration_s)
        return s

    def position(self) -> float:
        if self._started_at is None:
            return self._base_s
        return self._clamp(self._base_s + (self._time_fn() - self._started_at))

    def play(self) -> None:
        if self._started_at is None:
            self._started_at = self._time_fn()

    def pause(self) -> None:
        self._base_s = self.position()
        self._started_at = None

    def seek(self, position_s: float) -> None:
        self._base_s = self._clamp(position_s)
        if self._started_at is not None:
            self._started_at = self._time_fn()
