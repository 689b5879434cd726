from __future__ import annotations

import json
from pathlib import Path
import re
from typing import Sequence

from .model import GeneratedLyrics, LyricLine

_EXT_RE = re.compile(r"\.[^/.]+$")


def export_raw(lyrics: GeneratedLyrics) -> str:
    # never re-serialized from parsed lines: keeps lines the parser skipped
    return lyrics.raw_lrc


def lrc_filename(audio_name: str | None) -> str:
    if not audio_name:
        return "lyrics.lrc"
    return _EXT_RE.sub("", audio_name) + ".lrc"


def write_lrc(lyrics: GeneratedLyrics, path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    # bytes, so "\r\n" is not rewritten on any platform
    path.write_bytes(export_raw(lyrics).encode("utf-8"))
    return path


def export_json(lines: Sequence[LyricLine]) -> str:
    return json.dumps(
        {
            "lines": [
                {
                    "time": ln.time,
                    "tag": ln.original_time_tag,
                    "text": ln.text,
                    "translation": ln.translation,
                }
                for ln in lines
            ],
        },
        ensure_ascii=False,
        indent=2,
    )


def _fmt_srt_time(seconds: float) -> str:
    # HH:MM:SS,mmm
    ms = int(round(seconds * 1000))
    h, rem = divmod(ms, 3_600_000)
    m, rem = divmod(rem, 60_000)
    s, ms2 = divmod(rem, 1_000)
    return f"{h:02d}:{m:02d}:{s:02d},{ms2:03d}"


def export_srt(lines: Sequence[LyricLine], last_line_duration_s: float = 2.0) -> str:
    """
    End time is next start time, last line ends at +last_line_duration_s.
    A translation goes on the second line of the cue.
    """
    if not lines:
        return ""
    out: list[str] = []
    for i, ln in enumerate(lines, start=1):
        start = ln.time
        if i < len(lines):
            end = max(lines[i].time, start + 0.001)
        else:
            end = start + last_line_duration_s
        out.append(str(i))
        out.append(f"{_fmt_srt_time(start)} --> {_fmt_srt_time(end)}")
        out.append(ln.text)
        if ln.translation:
            out.append(ln.translation)
        out.append("")
    return "\n".join(out)
