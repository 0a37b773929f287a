from __future__ import annotations

import json
import logging
from pathlib import Path

from core.state import (
    BLOCK_SIZE_PRESETS,
    CUSTOM_PRESET,
    DEFAULT_PRESET,
    MosaicSettings,
    clamp_block_size,
)

logger = logging.getLogger(__name__)

SETTINGS_VERSION = 1


def default_settings_path() -> Path:
    return Path.home() / ".openmosaic" / "settings.json"


def _optional_dir(raw) -> str | None:
    if not raw:
        return None
    return str(raw)


def _settings_to_raw(settings: MosaicSettings) -> dict:
    return {
        "block_size": int(settings.block_size),
        "preset": settings.preset,
        "average_alpha": bool(settings.average_alpha),
        "last_open_dir": settings.last_open_dir,
        "last_save_dir": settings.last_save_dir,
    }


def _settings_from_raw(raw: dict) -> MosaicSettings:
    settings = MosaicSettings(
        average_alpha=bool(raw.get("average_alpha", False)),
        last_open_dir=_optional_dir(raw.get("last_open_dir")),
        last_save_dir=_optional_dir(raw.get("last_save_dir")),
    )

    preset = str(raw.get("preset", DEFAULT_PRESET)).strip().lower()
    if preset in BLOCK_SIZE_PRESETS:
        settings.set_preset(preset)
    elif preset == CUSTOM_PRESET:
        try:
            settings.set_custom_block_size(int(raw.get("block_size", settings.block_size)))
        except (TypeError, ValueError):
            logger.warning("Ignoring invalid block_size %r", raw.get("block_size"))
    else:
        logger.warning("Unknown preset %r, using %s", preset, DEFAULT_PRESET)
    return settings


def save_settings(path: str, settings: MosaicSettings) -> None:
    settings_file = Path(path)
    settings_file.parent.mkdir(parents=True, exist_ok=True)
    payload = {
        "version": SETTINGS_VERSION,
        "settings": _settings_to_raw(settings),
    }
    settings_file.write_text(json.dumps(payload, indent=2), encoding="utf-8")


def load_settings(path: str) -> MosaicSettings:
    settings_file = Path(path)
    raw = json.loads(settings_file.read_text(encoding="utf-8"))
    settings_raw = raw.get("settings", {}) if isinstance(raw, dict) else {}
    if not isinstance(settings_raw, dict):
        settings_raw = {}
    return _settings_from_raw(settings_raw)


def load_settings_or_default(path: str | None = None) -> MosaicSettings:
    settings_file = Path(path) if path else default_settings_path()
    if not settings_file.exists():
        return MosaicSettings()
    try:
        return load_settings(str(settings_file))
    except (OSError, ValueError) as exc:
        logger.warning("Could not read settings from %s: %s", settings_file, exc)
        return MosaicSettings()
