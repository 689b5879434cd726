from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class LyricLine:
    time: float  # seconds from track start
    text: str
    translation: str | None = None
    original_time_tag: str = ""  # e.g. "[01:23.45]"


@dataclass(frozen=True, slots=True)
class GeneratedLyrics:
    """
    Backend output kept next to its parse result, so the raw text can be
    exported unchanged even when some lines did not parse.
    """

    raw_lrc: str
    lines: tuple[LyricLine, ...]

    @property
    def has_translation(self) -> bool:
        return any(ln.translation is not None for ln in self.lines)
