from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

MIN_BLOCK_SIZE = 5
MAX_BLOCK_SIZE = 50

# Ordered small -> large, as shown in the UI
BLOCK_SIZE_PRESETS: Dict[str, int] = {
    "small": 5,
    "medium": 10,
    "large": 25,
    "xlarge": 40,
}
PRESET_LABELS: Dict[str, str] = {
    "small": "Small",
    "medium": "Medium",
    "large": "Large",
    "xlarge": "Extra Large",
}
DEFAULT_PRESET = "medium"
CUSTOM_PRESET = "custom"


def clamp_block_size(value: int) -> int:
    return max(MIN_BLOCK_SIZE, min(MAX_BLOCK_SIZE, int(value)))


@dataclass
class MosaicSettings:
    block_size: int = BLOCK_SIZE_PRESETS[DEFAULT_PRESET]
    preset: str = DEFAULT_PRESET
    average_alpha: bool = False

    # Dialog convenience
    last_open_dir: Optional[str] = None
    last_save_dir: Optional[str] = None

    def set_preset(self, name: str) -> None:
        key = name.strip().lower()
        if key not in BLOCK_SIZE_PRESETS:
            raise ValueError(f"unknown block size preset: {name!r}")
        self.preset = key
        self.block_size = BLOCK_SIZE_PRESETS[key]

    def set_custom_block_size(self, value: int) -> None:
        self.block_size = clamp_block_size(value)
        self.preset = CUSTOM_PRESET
        for key, size in BLOCK_SIZE_PRESETS.items():
            if size == self.block_size:
                self.preset = key
                break
