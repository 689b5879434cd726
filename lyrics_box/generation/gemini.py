from __future__ import annotations

import base64
import logging
from typing import Any

import requests

from .base import LyricsGenerator
from .errors import (
    AuthorizationFailed,
    BackendUnavailable,
    EmptyResponse,
    GenerationError,
    InvalidAudio,
    QuotaExceeded,
)
from .types import TargetLanguage

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_MODEL = "gemini-2.5-flash"

_INSTRUCTION = (
    "Transcribe the sung lyrics of this audio and return them in LRC format only. "
    "Every line must start with a [mm:ss.xx] timestamp of when it is sung. "
    "Do not add metadata headers, explanations or code fences."
)

_TRANSLATION_INSTRUCTION = (
    " After each lyric line, add one more line with the same timestamp "
    "containing its translation into {language}."
)


def build_prompt(target_language: TargetLanguage) -> str:
    if not target_language.translates:
        return _INSTRUCTION
    return _INSTRUCTION + _TRANSLATION_INSTRUCTION.format(language=target_language.value)


def _error_message(r: requests.Response) -> str:
    try:
        data = r.json()
    except ValueError:
        return r.text.strip() or f"HTTP {r.status_code}"
    err = data.get("error") if isinstance(data, dict) else None
    if isinstance(err, dict) and err.get("message"):
        return str(err["message"])
    return f"HTTP {r.status_code}"


def _raise_for_status(r: requests.Response) -> None:
    if r.status_code < 400:
        return
    msg = _error_message(r)
    if r.status_code in (401, 403):
        raise AuthorizationFailed(f"Authorization failed: {msg}")
    if r.status_code == 429:
        raise QuotaExceeded(f"Quota exceeded: {msg}")
    if r.status_code == 400:
        # an invalid key comes back as 400 INVALID_ARGUMENT
        if "api key" in msg.lower():
            raise AuthorizationFailed(f"Authorization failed: {msg}")
        raise InvalidAudio(f"Request rejected: {msg}")
    if r.status_code >= 500:
        raise BackendUnavailable(f"Lyrics service unavailable: {msg}")
    raise GenerationError(f"Lyrics generation failed: {msg}")


def _extract_text(data: Any) -> str:
    """
    Text of the first candidate. Missing pieces mean "no text"; pieces of
    the wrong type mean the reply is not a generateContent response.
    """
    if not isinstance(data, dict):
        raise BackendUnavailable("Lyrics service returned a malformed response")
    candidates = data.get("candidates")
    if not candidates:
        return ""
    if not isinstance(candidates, list) or not isinstance(candidates[0], dict):
        raise BackendUnavailable("Lyrics service returned a malformed response")
    content = candidates[0].get("content") or {}
    if not isinstance(content, dict):
        raise BackendUnavailable("Lyrics service returned a malformed response")
    parts = content.get("parts") or []
    if not isinstance(parts, list):
        raise BackendUnavailable("Lyrics service returned a malformed response")
    return "".join(str(p.get("text") or "") for p in parts if isinstance(p, dict))


class GeminiGenerator(LyricsGenerator):
    name = "gemini"

    def __init__(
        self,
        *,
        api_key: str,
        model: str = DEFAULT_MODEL,
        base_url: str = DEFAULT_BASE_URL,
        timeout_s: float = 300.0,
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout_s = timeout_s

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/models/{self.model}:generateContent"

    def generate(self, audio: bytes, mime_type: str, target_language: TargetLanguage) -> str:
        if not audio:
            raise InvalidAudio("Audio file is empty")

        body = {
            "contents": [
                {
                    "parts": [
                        {
                            "inline_data": {
                                "mime_type": mime_type,
                                "data": base64.b64encode(audio).decode("ascii"),
                            }
                        },
                        {"text": build_prompt(target_language)},
                    ]
                }
            ]
        }

        logger.info(
            "Requesting lyrics from %s (%s, %d bytes, language=%s)",
            self.model,
            mime_type,
            len(audio),
            target_language.value,
        )
        try:
            r = requests.post(
                self.endpoint,
                json=body,
                headers={"x-goog-api-key": self.api_key},
                timeout=self.timeout_s,
            )
        except requests.RequestException as e:
            logger.warning("gemini request error: %s", e)
            raise BackendUnavailable(f"Could not reach lyrics service: {e}") from e

        _raise_for_status(r)
        try:
            data = r.json()
        except ValueError as e:
            raise BackendUnavailable("Lyrics service returned a malformed response") from e

        text = _extract_text(data)
        if not text.strip():
            raise EmptyResponse("Lyrics service returned no lyrics")
        logger.debug("gemini returned %d characters", len(text))
        return text
