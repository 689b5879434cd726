from .base import LyricsGenerator
from .errors import (
    AuthorizationFailed,
    BackendUnavailable,
    EmptyResponse,
    GenerationError,
    InvalidAudio,
    QuotaExceeded,
)
from .gemini import GeminiGenerator
from .types import TargetLanguage

__all__ = [
    "AuthorizationFailed",
    "BackendUnavailable",
    "EmptyResponse",
    "GeminiGenerator",
    "GenerationError",
    "InvalidAudio",
    "LyricsGenerator",
    "QuotaExceeded",
    "TargetLanguage",
]
