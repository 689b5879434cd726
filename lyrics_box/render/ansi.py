from __future__ import annotations

import shutil
import signal
import sys
from dataclasses import dataclass
from typing import Callable, Sequence

import colorama

from lyrics_box.lrc.model import LyricLine
from lyrics_box.sync.tracker import line_window


CSI = "\x1b["


def _sgr(*codes: int) -> str:
    return CSI + ";".join(str(c) for c in codes) + "m"


@dataclass(frozen=True, slots=True)
class Theme:
    title: str = _sgr(35, 1)  # magenta bold
    current: str = _sgr(32, 1)  # green bold
    translation: str = _sgr(36, 3)  # cyan italic
    dim: str = _sgr(90)  # bright black
    warning: str = _sgr(33, 1)  # yellow bold
    reset: str = _sgr(0)


class AnsiRenderer:
    def __init__(self, use_alt_screen: bool = True, theme: Theme | None = None):
        self.use_alt_screen = use_alt_screen
        self.theme = theme or Theme()
        self._entered = False
        self._resize_handler: Callable[[], None] | None = None
        self._last_render_args: tuple[str, Sequence[LyricLine], int | None, int] | None = None

    def __enter__(self):
        self.enter()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.exit()

    def enter(self) -> None:
        if self._entered:
            return
        colorama.just_fix_windows_console()
        if self.use_alt_screen:
            sys.stdout.write(CSI + "?1049h")  # alt screen
        sys.stdout.write(CSI + "?25l")  # hide cursor
        sys.stdout.write(CSI + "H" + CSI + "2J")  # home + clear
        sys.stdout.flush()
        self._entered = True

        def _on_resize(signum=None, frame=None):
            if self._last_render_args:
                title, lines, current_idx, context_lines = self._last_render_args
                self.render(title, lines, current_idx, context_lines)

        self._resize_handler = _on_resize
        if hasattr(signal, "SIGWINCH"):
            signal.signal(signal.SIGWINCH, _on_resize)

    def exit(self) -> None:
        if not self._entered:
            return
        if self._resize_handler and hasattr(signal, "SIGWINCH"):
            signal.signal(signal.SIGWINCH, signal.SIG_DFL)
        self._resize_handler = None
        sys.stdout.write(self.theme.reset)
        sys.stdout.write(CSI + "?25h")  # show cursor
        if self.use_alt_screen:
            sys.stdout.write(CSI + "?1049l")  # normal screen
        sys.stdout.flush()
        self._entered = False
        self._last_render_args = None

    def frame(
        self,
        title: str,
        lines: Sequence[LyricLine],
        current_idx: int | None,
        context_lines: int = 1,
        rows: int = 24,
    ) -> list[str]:
        # reserve 1 row for title; a translated line takes 2 rows
        body_rows = max(rows - 1, 1)
        per_line = 2 if any(ln.translation for ln in lines) else 1
        visible = max(body_rows // per_line, 1)

        # start at the first past line of the window, then fill the screen
        win = line_window(current_idx, len(lines), context_lines)
        start = win.past[0] if win.past else (win.current or 0)
        end = min(start + visible, len(lines))
        start = max(end - visible, 0)

        out: list[str] = [f"{self.theme.title}♫ {title} ♫{self.theme.reset}"]
        for i in range(start, end):
            ln = lines[i]
            style = self.theme.current if i == current_idx else self.theme.dim
            out.append(f"{style}{ln.text}{self.theme.reset}")
            if ln.translation:
                out.append(f"{self.theme.translation}  {ln.translation}{self.theme.reset}")
        return out

    def render(
        self,
        title: str,
        lines: Sequence[LyricLine],
        current_idx: int | None,
        context_lines: int = 1,
    ) -> None:
        # Store args for SIGWINCH redraw
        self._last_render_args = (title, lines, current_idx, context_lines)

        _cols, rows = shutil.get_terminal_size(fallback=(80, 24))
        out = self.frame(title, lines, current_idx, context_lines, rows=rows)

        # move home + clear, then print full frame
        sys.stdout.write(CSI + "H" + CSI + "2J")
        sys.stdout.write("\n".join(out))
        sys.stdout.write(self.theme.reset)
        sys.stdout.flush()

    def message(self, title: str, text: str) -> None:
        self.render(title, (LyricLine(time=0.0, text=text),), current_idx=None)
