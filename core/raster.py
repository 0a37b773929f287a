from __future__ import annotations

import logging
from typing import Optional, Tuple

import numpy as np

from core.errors import InvalidDimensions
from core.geometry import Rect

logger = logging.getLogger(__name__)


class RasterBuffer:
    """
    Working RGBA raster plus the snapshot it can be restored to.

    Pixels are held as an (H, W, 4) uint8 array. The snapshot always reflects
    the freshly loaded image or the last commit, whichever is later.
    """

    def __init__(self) -> None:
        self._pixels: Optional[np.ndarray] = None
        self._snapshot: Optional[np.ndarray] = None

    @property
    def has_image(self) -> bool:
        return self._pixels is not None

    @property
    def width(self) -> int:
        return 0 if self._pixels is None else int(self._pixels.shape[1])

    @property
    def height(self) -> int:
        return 0 if self._pixels is None else int(self._pixels.shape[0])

    @property
    def size(self) -> Tuple[int, int]:
        return (self.width, self.height)

    @property
    def pixels(self) -> Optional[np.ndarray]:
        if self._pixels is None:
            return None
        view = self._pixels.view()
        view.flags.writeable = False
        return view

    @property
    def snapshot(self) -> Optional[np.ndarray]:
        return None if self._snapshot is None else self._snapshot.copy()

    @property
    def is_dirty(self) -> bool:
        if self._pixels is None or self._snapshot is None:
            return False
        return not np.array_equal(self._pixels, self._snapshot)

    def load(self, pixels, width: int, height: int) -> None:
        width = int(width)
        height = int(height)
        if width <= 0 or height <= 0:
            raise InvalidDimensions(f"raster size must be positive, got {width}x{height}")

        if isinstance(pixels, (bytes, bytearray, memoryview)):
            data = np.frombuffer(pixels, dtype=np.uint8)
        else:
            data = np.asarray(pixels)
        if data.dtype != np.uint8:
            if np.issubdtype(data.dtype, np.floating):
                if not np.all(np.isfinite(data) & (data == np.floor(data))):
                    raise InvalidDimensions("pixel channels must be whole numbers")
            elif not np.issubdtype(data.dtype, np.integer):
                raise InvalidDimensions(f"unsupported pixel dtype {data.dtype}")
            if data.size and (data.min() < 0 or data.max() > 255):
                raise InvalidDimensions("pixel channels must be 8-bit unsigned values")
            data = data.astype(np.uint8)
        expected = width * height * 4
        if data.size != expected:
            raise InvalidDimensions(
                f"expected {expected} channel values for {width}x{height} RGBA, got {data.size}"
            )

        self._pixels = data.reshape(height, width, 4).copy()
        self._snapshot = self._pixels.copy()
        logger.debug("Loaded %dx%d raster", width, height)

    def clear(self) -> None:
        self._pixels = None
        self._snapshot = None

    def restore(self) -> None:
        if self._snapshot is None:
            return
        self._pixels = self._snapshot.copy()

    def commit(self) -> None:
        if self._pixels is None:
            return
        self._snapshot = self._pixels.copy()

    def clip(self, region: Rect) -> Rect:
        return region.clamp(self.width, self.height)

    def read(self, region: Rect) -> np.ndarray:
        if self._pixels is None:
            return np.zeros((0, 0, 4), dtype=np.uint8)
        r = self.clip(region)
        if r.is_empty:
            return np.zeros((0, 0, 4), dtype=np.uint8)
        return self._pixels[r.y0:r.y1, r.x0:r.x1].copy()

    def write(self, region: Rect, block: np.ndarray) -> None:
        if self._pixels is None:
            raise ValueError("no raster loaded")
        r = self.clip(region)
        if r.is_empty:
            return
        if block.shape != (r.height, r.width, 4):
            raise ValueError(
                f"block shape {block.shape} does not match region {r.width}x{r.height}"
            )
        self._pixels[r.y0:r.y1, r.x0:r.x1] = block
