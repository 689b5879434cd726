from __future__ import annotations

from enum import Enum
import itertools
import logging
import mimetypes
from pathlib import Path
import threading
from typing import Callable

from lyrics_box.generation.base import LyricsGenerator
from lyrics_box.generation.errors import GenerationError
from lyrics_box.generation.types import TargetLanguage
from lyrics_box.lrc.export import lrc_filename, write_lrc
from lyrics_box.lrc.model import GeneratedLyrics
from lyrics_box.lrc.parse import parse_generated

logger = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = "audio/mpeg"


class ProcessingStatus(str, Enum):
    IDLE = "IDLE"
    UPLOADING = "UPLOADING"
    GENERATING = "GENERATING"
    COMPLETE = "COMPLETE"
    ERROR = "ERROR"


class SessionError(RuntimeError):
    pass


class NoAudioSelected(SessionError):
    pass


class MissingApiKey(SessionError):
    pass


class NothingToExport(SessionError):
    pass


def guess_mime_type(path: Path) -> str:
    mime, _enc = mimetypes.guess_type(path.name)
    return mime or DEFAULT_MIME_TYPE


def describe_status(status: ProcessingStatus, language: TargetLanguage) -> str:
    if status is ProcessingStatus.UPLOADING:
        return "Reading Audio..."
    if status is ProcessingStatus.GENERATING:
        if not language.translates:
            return "Transcribing Lyrics..."
        return f"Creating Magic in {language.value}..."
    if status is ProcessingStatus.COMPLETE:
        if not language.translates:
            return "Lyrics Synced"
        return f"Lyrics Synced & Translated to {language.value}"
    return status.value.capitalize()


StatusListener = Callable[[ProcessingStatus], None]


class LyricsSession:
    """
    One audio file and at most one generated result.

    Every generate() call is tagged with a request token. State changes
    coming from a request are applied only while its token is still the
    current one, so results and errors that arrive after stop(), a new file
    or a newer request are dropped.
    """

    def __init__(
        self,
        make_generator: Callable[[str], LyricsGenerator],
        *,
        api_key: str | None = None,
        on_status: StatusListener | None = None,
    ):
        self._make_generator = make_generator
        self._api_key = api_key
        self._on_status = on_status

        self._lock = threading.Lock()
        self._tokens = itertools.count(1)
        self._token = next(self._tokens)

        self._audio_path: Path | None = None
        self._status = ProcessingStatus.IDLE
        self._lyrics: GeneratedLyrics | None = None
        self._error: str | None = None
        self.target_language = TargetLanguage.NONE

    @property
    def status(self) -> ProcessingStatus:
        return self._status

    @property
    def lyrics(self) -> GeneratedLyrics | None:
        return self._lyrics

    @property
    def error_message(self) -> str | None:
        return self._error

    @property
    def audio_path(self) -> Path | None:
        return self._audio_path

    def set_api_key(self, api_key: str | None) -> None:
        self._api_key = api_key or None

    def select_file(self, path: Path) -> None:
        with self._lock:
            self._token = next(self._tokens)
            self._audio_path = path
            self._lyrics = None
            self._error = None
            self._status = ProcessingStatus.IDLE
        logger.debug("Selected audio file %s", path)
        self._notify(ProcessingStatus.IDLE)

    def new_song(self) -> None:
        with self._lock:
            self._token = next(self._tokens)
            self._audio_path = None
            self._lyrics = None
            self._error = None
            self._status = ProcessingStatus.IDLE
        self._notify(ProcessingStatus.IDLE)

    def stop(self) -> None:
        """Cancel the in-flight request. Not an error: no message is set."""
        with self._lock:
            if self._status not in (ProcessingStatus.UPLOADING, ProcessingStatus.GENERATING):
                return
            self._token = next(self._tokens)
            self._status = ProcessingStatus.IDLE
        logger.info("Generation stopped")
        self._notify(ProcessingStatus.IDLE)

    def generate(self, target_language: TargetLanguage = TargetLanguage.NONE) -> GeneratedLyrics | None:
        """
        Read the audio, ask the backend for LRC and parse it.

        Returns the lyrics, or None when the request failed (see
        error_message) or was cancelled while running.
        """
        with self._lock:
            if self._audio_path is None:
                raise NoAudioSelected("No audio file selected")
            if not self._api_key:
                raise MissingApiKey("An API key is required to generate lyrics")
            token = self._token = next(self._tokens)
            path = self._audio_path
            api_key = self._api_key
            self.target_language = target_language
            self._lyrics = None
            self._error = None
            self._status = ProcessingStatus.UPLOADING
        self._notify(ProcessingStatus.UPLOADING)

        try:
            audio = path.read_bytes()
        except OSError as e:
            logger.warning("Failed to read %s: %s", path, e)
            self._transition(token, ProcessingStatus.ERROR, error="Failed to read audio file.")
            return None

        if not self._transition(token, ProcessingStatus.GENERATING):
            return None

        try:
            raw = self._make_generator(api_key).generate(audio, guess_mime_type(path), target_language)
        except GenerationError as e:
            logger.error("Lyrics generation failed: %s", e)
            self._transition(token, ProcessingStatus.ERROR, error=str(e) or "Failed to generate lyrics.")
            return None

        lyrics = parse_generated(raw)
        if not self._transition(token, ProcessingStatus.COMPLETE, lyrics=lyrics):
            return None
        logger.info("Generated %d lyric lines for %s", len(lyrics.lines), path.name)
        return lyrics

    def export(self, dest: Path) -> Path:
        lyrics = self._lyrics
        if lyrics is None:
            raise NothingToExport("No lyrics to export")
        if dest.is_dir():
            name = self._audio_path.name if self._audio_path else None
            dest = dest / lrc_filename(name)
        return write_lrc(lyrics, dest)

    def _transition(
        self,
        token: int,
        status: ProcessingStatus,
        *,
        lyrics: GeneratedLyrics | None = None,
        error: str | None = None,
    ) -> bool:
        with self._lock:
            if token != self._token:
                logger.debug("Discarding stale %s for request %d", status.value, token)
                return False
            self._status = status
            self._lyrics = lyrics
            self._error = error
        self._notify(status)
        return True

    def _notify(self, status: ProcessingStatus) -> None:
        if self._on_status is not None:
            self._on_status(status)
