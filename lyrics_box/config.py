from __future__ import annotations

import json
from dataclasses import dataclass
import logging
import os
from pathlib import Path
from typing import Any

from lyrics_box.generation.gemini import DEFAULT_BASE_URL, DEFAULT_MODEL
from lyrics_box.generation.types import TargetLanguage

logger = logging.getLogger(__name__)


def _config_dir() -> Path:
    xdg = os.getenv("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "lyrics-box"
    return Path.home() / ".config" / "lyrics-box"


def _config_file() -> Path:
    return _config_dir() / "config.json"


@dataclass(frozen=True)
class AppConfig:
    # Storage
    config_dir: Path
    export_dir: Path

    # Generation backend
    api_key: str | None
    target_language: TargetLanguage
    model: str
    api_base_url: str
    request_timeout_s: float

    # Rendering
    refresh_hz: float
    context_lines: int  # lines above/below current
    use_alt_screen: bool

    @property
    def has_api_key(self) -> bool:
        return bool(self.api_key)


def _read_config_file(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.warning("Ignoring unreadable config %s: %s", path, e)
        return {}
    return data if isinstance(data, dict) else {}


def load_config() -> AppConfig:
    config_dir = _config_dir()
    stored = _read_config_file(config_dir / "config.json")

    export_env = os.getenv("LYRICS_BOX_EXPORT_DIR")
    use_alt_screen = os.getenv("LYRICS_BOX_ALT_SCREEN", "1") not in ("0", "false", "False")

    return AppConfig(
        config_dir=config_dir,
        export_dir=Path(export_env) if export_env else Path.cwd(),
        api_key=_load_api_key(stored),
        target_language=_load_language(stored),
        model=os.getenv("LYRICS_BOX_MODEL", DEFAULT_MODEL),
        api_base_url=os.getenv("LYRICS_BOX_API_BASE", DEFAULT_BASE_URL),
        request_timeout_s=float(os.getenv("LYRICS_BOX_TIMEOUT", "300")),
        refresh_hz=float(os.getenv("LYRICS_BOX_REFRESH_HZ", "30.0")),
        context_lines=int(os.getenv("LYRICS_BOX_CONTEXT_LINES", "2")),
        use_alt_screen=use_alt_screen,
    )


def _load_api_key(stored: dict[str, Any]) -> str | None:
    # Priority: config.json → LYRICS_BOX_API_KEY → GEMINI_API_KEY
    key = stored.get("api_key")
    if isinstance(key, str) and key.strip():
        return key.strip()
    for env in ("LYRICS_BOX_API_KEY", "GEMINI_API_KEY"):
        value = os.getenv(env)
        if value and value.strip():
            return value.strip()
    return None


def _load_language(stored: dict[str, Any]) -> TargetLanguage:
    # Priority: config.json → LYRICS_BOX_LANGUAGE → None
    for raw in (stored.get("target_language"), os.getenv("LYRICS_BOX_LANGUAGE")):
        if not raw:
            continue
        try:
            return TargetLanguage.parse(str(raw))
        except ValueError:
            logger.warning("Unknown target language '%s' in settings, ignoring", raw)
    return TargetLanguage.NONE


def _update_config_file(**values: str) -> Path:
    cfg_path = _config_file()
    cfg_path.parent.mkdir(parents=True, exist_ok=True)
    data = _read_config_file(cfg_path)
    data.update(values)
    cfg_path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
    return cfg_path


def save_api_key(api_key: str) -> Path:
    path = _update_config_file(api_key=api_key.strip())
    try:
        path.chmod(0o600)
    except OSError:
        logger.debug("Could not restrict permissions on %s", path)
    return path


def save_target_language(language: TargetLanguage) -> Path:
    return _update_config_file(target_language=language.value)


def mask_key(api_key: str | None) -> str:
    if not api_key:
        return "(not set)"
    if len(api_key) <= 12:
        return "****"
    return f"{api_key[:8]}...{api_key[-4:]}"
