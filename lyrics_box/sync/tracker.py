from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass, field
from typing import Final, Sequence

from lyrics_box.lrc.model import LyricLine


class _Unchanged:
    __slots__ = ()

    def __repr__(self) -> str:
        return "UNCHANGED"


UNCHANGED: Final = _Unchanged()


def resolve_active_index(lines: Sequence[LyricLine], now_s: float) -> int | None:
    """
    Index of the last line whose time is <= now_s, or None before the first
    line (and for an empty sequence). Pure, O(log n).
    """
    i = bisect_right(lines, now_s, key=lambda ln: ln.time) - 1
    return i if i >= 0 else None


@dataclass(frozen=True, slots=True)
class LineWindow:
    current: int | None
    past: tuple[int, ...]
    upcoming: tuple[int, ...]


def line_window(current: int | None, count: int, context: int = 1) -> LineWindow:
    """Indices of up to `context` lines before and after the active one."""
    if current is None:
        return LineWindow(current=None, past=(), upcoming=tuple(range(min(context, count))))
    return LineWindow(
        current=current,
        past=tuple(range(max(current - context, 0), current)),
        upcoming=tuple(range(current + 1, min(current + 1 + context, count))),
    )


@dataclass(slots=True)
class LineTracker:
    """
    Efficient lookup: O(log n) via bisect, O(1) while playback moves forward
    line by line, and change detection for render-on-change loops.
    """

    times: list[float]
    last_idx: int | None = None
    _reported: int | None | _Unchanged = field(default=UNCHANGED, init=False, repr=False)

    @classmethod
    def from_lines(cls, lines: Sequence[LyricLine]) -> "LineTracker":
        return cls(times=[ln.time for ln in lines])

    def _holds(self, i: int, now_s: float) -> bool:
        if self.times[i] > now_s:
            return False
        return i + 1 == len(self.times) or now_s < self.times[i + 1]

    def current_index(self, now_s: float) -> int | None:
        hint = self.last_idx
        n = len(self.times)
        if hint is not None and hint < n:
            if self._holds(hint, now_s):
                return hint
            if hint + 1 < n and self._holds(hint + 1, now_s):
                self.last_idx = hint + 1
                return hint + 1

        i = bisect_right(self.times, now_s) - 1
        self.last_idx = i if i >= 0 else None
        return self.last_idx

    def changed_index(self, now_s: float) -> int | None | _Unchanged:
        """Active index if it differs from the previous call, else UNCHANGED."""
        i = self.current_index(now_s)
        if i != self._reported:
            self._reported = i
            return i
        return UNCHANGED

    def reset(self) -> None:
        self.last_idx = None
        self._reported = UNCHANGED
