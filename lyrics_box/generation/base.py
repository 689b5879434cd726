from __future__ import annotations

from .types import TargetLanguage


class LyricsGenerator:
    """
    Produces raw LRC text for an audio file. The result is opaque text;
    only the parser looks inside it.
    """

    name: str

    def generate(self, audio: bytes, mime_type: str, target_language: TargetLanguage) -> str:
        raise NotImplementedError
