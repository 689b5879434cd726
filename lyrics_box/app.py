from __future__ import annotations

from concurrent.futures import Future
import logging
import threading
import time
from typing import Any, Callable, Sequence

from lyrics_box.config import AppConfig
from lyrics_box.generation.types import TargetLanguage
from lyrics_box.lrc.model import GeneratedLyrics, LyricLine
from lyrics_box.playback.clock import PlaybackClock
from lyrics_box.render.ansi import AnsiRenderer
from lyrics_box.session import LyricsSession
from lyrics_box.sync.tracker import UNCHANGED, LineTracker

logger = logging.getLogger(__name__)


def play(
    cfg: AppConfig,
    lines: Sequence[LyricLine],
    *,
    title: str,
    clock: PlaybackClock,
    renderer: AnsiRenderer,
    sleep: Callable[[float], None] = time.sleep,
) -> int:
    """
    Playback loop:
    clock position -> tracker -> render on change, until the clock ends.
    """
    if not lines:
        renderer.enter()
        try:
            renderer.message(title, "No synced lyrics found")
        finally:
            renderer.exit()
        return 1

    tracker = LineTracker.from_lines(lines)
    tick_s = 1.0 / max(cfg.refresh_hz, 1.0)

    renderer.enter()
    try:
        clock.play()
        while True:
            changed = tracker.changed_index(clock.position())
            if changed is not UNCHANGED:
                renderer.render(title, lines, current_idx=changed, context_lines=cfg.context_lines)
            if clock.ended:
                break
            sleep(tick_s)
    except KeyboardInterrupt:
        logger.debug("Playback interrupted at %.2fs", clock.position())
        return 130
    finally:
        clock.pause()
        renderer.exit()
    return 0


def _in_background(fn: Callable[..., Any], *args: Any) -> Future:
    # daemon thread: an abandoned backend call must not keep the process alive
    fut: Future = Future()

    def _run() -> None:
        if not fut.set_running_or_notify_cancel():
            return
        try:
            fut.set_result(fn(*args))
        except Exception as e:
            fut.set_exception(e)

    threading.Thread(target=_run, name="lyrics-generation", daemon=True).start()
    return fut


def run_generation(session: LyricsSession, language: TargetLanguage) -> GeneratedLyrics | None:
    """Run session.generate off the main thread; Ctrl+C stops it."""
    fut = _in_background(session.generate, language)
    try:
        return fut.result()
    except KeyboardInterrupt:
        session.stop()
        return None
