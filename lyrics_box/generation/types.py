from __future__ import annotations

from enum import Enum


class TargetLanguage(str, Enum):
    NONE = "None"
    BURMESE = "Burmese"
    ENGLISH = "English"
    CHINESE = "Chinese"

    @property
    def label(self) -> str:
        if self is TargetLanguage.NONE:
            return "None (Original Lyrics)"
        return self.value

    @property
    def translates(self) -> bool:
        return self is not TargetLanguage.NONE

    @classmethod
    def parse(cls, value: str | None) -> "TargetLanguage":
        """Accepts a value or label, case-insensitive; "original" means no translation."""
        raw = (value or "").strip().lower()
        if raw in ("", "original"):
            return cls.NONE
        for lang in cls:
            if raw in (lang.value.lower(), lang.label.lower()):
                return lang
        choices = ", ".join(lang.value for lang in cls)
        raise ValueError(f"Unknown target language '{value}' (expected one of: {choices})")
