from __future__ import annotations

from dataclasses import dataclass
import logging
import re

from .model import GeneratedLyrics, LyricLine

logger = logging.getLogger(__name__)

_TS_RE = re.compile(r"\[(\d{2}):(\d{2})\.(\d{2,3})\]")  # [mm:ss.xx] / [mm:ss.xxx]
_NL_RE = re.compile(r"\r?\n")
_BOM = "\ufeff"


@dataclass(frozen=True, slots=True)
class LrcParseStats:
    lines_total: int
    lines_with_timestamps: int
    lines_ignored: int
    records_total: int
    translations_merged: int
    records_dropped: int
    lines_out: int


@dataclass(slots=True)
class _Candidate:
    time: float
    text: str
    tag: str
    translation: str | None = None
    has_translation: bool = False


def _tag_to_seconds(m: re.Match[str]) -> float:
    # no range check: [00:75.00] is simply 75 seconds
    frac = m.group(3)
    return int(m.group(1)) * 60 + int(m.group(2)) + int(frac) / 10 ** len(frac)


def _leading_tags(line: str) -> tuple[list[re.Match[str]], int]:
    """Contiguous timestamp tags at the start of the line and where the text begins."""
    pos = len(line) - len(line.lstrip())
    tags: list[re.Match[str]] = []
    while True:
        m = _TS_RE.match(line, pos)
        if m is None:
            break
        tags.append(m)
        pos = m.end()
    return tags, pos


def _split_lines(text: str) -> list[str]:
    # only \n and \r\n end a line; \x0c, U+2028 etc. stay in the lyric text
    lines = _NL_RE.split(text.removeprefix(_BOM))
    if lines[-1] == "":
        lines.pop()
    return lines


def parse_lrc_with_stats(text: str) -> tuple[tuple[LyricLine, ...], LrcParseStats]:
    """
    Supported:
    - [mm:ss.xx], [mm:ss.xxx]
    - multiple leading timestamps per line (same text repeated at each time)
    - a second record at an identical time becomes the first one's translation

    Never raises: lines without a leading timestamp (metadata headers, blank
    lines, garbage) are skipped.
    """
    candidates: list[_Candidate] = []

    total = 0
    lines_with_ts = 0
    ignored = 0

    for raw in _split_lines(text):
        total += 1
        tags, text_start = _leading_tags(raw)
        if not tags:
            ignored += 1
            continue

        lines_with_ts += 1
        payload = raw[text_start:].strip()
        for m in tags:
            candidates.append(_Candidate(time=_tag_to_seconds(m), text=payload, tag=m.group(0)))

    primaries: list[_Candidate] = []
    by_time: dict[float, _Candidate] = {}
    merged = 0
    dropped = 0
    for c in candidates:
        first = by_time.get(c.time)
        if first is None:
            by_time[c.time] = c
            primaries.append(c)
        elif not first.has_translation:
            first.translation = c.text
            first.has_translation = True
            merged += 1
        else:
            # translation is single-valued
            dropped += 1

    # list.sort is stable: equal times keep file order
    primaries.sort(key=lambda c: c.time)
    lines = tuple(
        LyricLine(time=c.time, text=c.text, translation=c.translation, original_time_tag=c.tag)
        for c in primaries
    )

    stats = LrcParseStats(
        lines_total=total,
        lines_with_timestamps=lines_with_ts,
        lines_ignored=ignored,
        records_total=len(candidates),
        translations_merged=merged,
        records_dropped=dropped,
        lines_out=len(lines),
    )
    logger.debug("Parsed LRC: %s", stats)
    return lines, stats


def parse_lrc(text: str) -> tuple[LyricLine, ...]:
    lines, _stats = parse_lrc_with_stats(text)
    return lines


def parse_generated(raw_lrc: str) -> GeneratedLyrics:
    return GeneratedLyrics(raw_lrc=raw_lrc, lines=parse_lrc(raw_lrc))
