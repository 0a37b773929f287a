from __future__ import annotations

import enum
import logging
from typing import Callable, Optional

import numpy as np
from PIL import Image

from core.errors import NoImageLoaded, TransformFailure
from core.geometry import Point, Rect
from core.io import encode_png, np_rgba_to_pil, pil_to_np_rgba, suggested_export_name
from core.mosaic import check_block_size, pixelate
from core.raster import RasterBuffer
from core.selection import SelectionModel
from core.state import MosaicSettings

logger = logging.getLogger(__name__)

RegionTransform = Callable[..., np.ndarray]


class SessionState(enum.Enum):
    EMPTY = "empty"
    LOADED = "loaded"
    SELECTING = "selecting"
    IDLE = "idle"


class EditSession:
    """
    One image being mosaicked.

    Owns the raster buffer (with its restore snapshot) and the selection.
    Every successful mosaic is committed straight away, so the only undo is
    dropping an uncommitted selection via reset_selection().
    """

    def __init__(
        self,
        settings: Optional[MosaicSettings] = None,
        transform: RegionTransform = pixelate,
    ) -> None:
        self.settings = settings if settings is not None else MosaicSettings()
        self.buffer = RasterBuffer()
        self.selection = SelectionModel()
        self.source_name: Optional[str] = None
        self._transform = transform
        self._state = SessionState.EMPTY

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def has_image(self) -> bool:
        return self._state is not SessionState.EMPTY

    @property
    def has_selection(self) -> bool:
        return self.has_image and self.selection.is_active

    @property
    def size(self) -> tuple[int, int]:
        return self.buffer.size

    @property
    def pixels(self) -> Optional[np.ndarray]:
        return self.buffer.pixels

    # ---- Loading ----
    def load_image(self, pixels, width: int, height: int, source_name: Optional[str] = None) -> None:
        # validate into a fresh buffer so a bad load leaves the current image alone
        fresh = RasterBuffer()
        fresh.load(pixels, width, height)
        self.buffer = fresh
        self.selection.clear()
        self.source_name = source_name
        self._state = SessionState.LOADED
        logger.info("Loaded image %s (%dx%d)", source_name or "<untitled>", width, height)

    def load_pil(self, image: Image.Image, source_name: Optional[str] = None) -> None:
        arr = pil_to_np_rgba(image)
        self.load_image(arr, arr.shape[1], arr.shape[0], source_name=source_name)

    def clear_image(self) -> None:
        self.buffer.clear()
        self.selection.clear()
        self.source_name = None
        self._state = SessionState.EMPTY

    # ---- Selection ----
    def begin_select(self, point: Point) -> None:
        if not self.has_image:
            return
        self.buffer.restore()
        self.selection.begin(point)
        self._state = SessionState.SELECTING

    def drag_select(self, point: Point) -> None:
        if self._state is not SessionState.SELECTING:
            return
        self.selection.update(point)

    def end_select(self) -> None:
        if self._state is not SessionState.SELECTING:
            return
        self.selection.end_drag()
        self._state = SessionState.IDLE

    def reset_selection(self) -> None:
        if not self.has_selection:
            return
        self.buffer.restore()
        self.selection.clear()
        self._state = SessionState.LOADED

    def target_rect(self) -> Rect:
        if not self.has_image:
            raise NoImageLoaded("no image loaded")
        w, h = self.buffer.size
        return self.selection.rect_or_full(w, h)

    # ---- Mosaic ----
    def apply_mosaic(self, block_size: Optional[int] = None) -> Rect:
        if not self.has_image:
            raise NoImageLoaded("load an image before applying a mosaic")

        size = check_block_size(block_size if block_size is not None else self.settings.block_size)
        rect = self.target_rect()
        self.buffer.restore()
        try:
            region = self.buffer.read(rect)
            if region.size:
                result = self._transform(region, size, average_alpha=self.settings.average_alpha)
                self.buffer.write(rect, result)
        except Exception as exc:
            self.buffer.restore()
            logger.error("Mosaic on %s failed, raster restored: %s", rect, exc)
            raise TransformFailure(f"mosaic failed: {exc}") from exc

        self.buffer.commit()
        self.selection.clear()
        self._state = SessionState.LOADED
        logger.info("Applied mosaic to %s with block size %d", rect.as_xywh(), size)
        return rect

    # ---- Export ----
    def export(self) -> Image.Image:
        if not self.has_image:
            raise NoImageLoaded("nothing to export")
        return np_rgba_to_pil(self.buffer.read(Rect.full(*self.buffer.size)))

    def export_png(self) -> bytes:
        return encode_png(self.export())

    def suggested_filename(self) -> str:
        return suggested_export_name(self.source_name)
