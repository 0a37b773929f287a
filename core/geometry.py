from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(frozen=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True)
class Rect:
    """Half-open integer rectangle [x0, x1) x [y0, y1) in raster pixels."""

    x0: int
    y0: int
    x1: int
    y1: int

    @classmethod
    def full(cls, width: int, height: int) -> "Rect":
        return cls(0, 0, int(width), int(height))

    @classmethod
    def enclosing(cls, a: Point, b: Point) -> "Rect":
        # floor the top-left and ceil the bottom-right so the pixels touched
        # by the gesture are always included
        return cls(
            int(math.floor(min(a.x, b.x))),
            int(math.floor(min(a.y, b.y))),
            int(math.ceil(max(a.x, b.x))),
            int(math.ceil(max(a.y, b.y))),
        )

    @property
    def width(self) -> int:
        return self.x1 - self.x0

    @property
    def height(self) -> int:
        return self.y1 - self.y0

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    def as_xywh(self) -> Tuple[int, int, int, int]:
        return (self.x0, self.y0, self.width, self.height)

    def clamp(self, width: int, height: int) -> "Rect":
        x0 = max(0, min(int(width), self.x0))
        y0 = max(0, min(int(height), self.y0))
        x1 = max(0, min(int(width), self.x1))
        y1 = max(0, min(int(height), self.y1))
        return Rect(x0, y0, max(x0, x1), max(y0, y1))


def display_to_raster(
    display_xy: Tuple[float, float],
    display_origin: Tuple[float, float],
    display_size: Tuple[float, float],
    raster_size: Tuple[int, int],
    clamp: bool = True,
) -> Optional[Point]:
    """
    Map a pointer position in display coordinates to raster coordinates.

    The raster is drawn at `display_origin` with on-screen size `display_size`;
    the scale factor per axis is raster size / displayed size. With `clamp`
    the result is pinned to [0, W] x [0, H] so a drag leaving the image keeps
    selecting up to its edge. Returns None when the display size is zero.
    """
    draw_w, draw_h = display_size
    if draw_w <= 0 or draw_h <= 0:
        return None
    raster_w, raster_h = raster_size
    scale_x = float(raster_w) / float(draw_w)
    scale_y = float(raster_h) / float(draw_h)
    x = (float(display_xy[0]) - float(display_origin[0])) * scale_x
    y = (float(display_xy[1]) - float(display_origin[1])) * scale_y
    if clamp:
        x = max(0.0, min(float(raster_w), x))
        y = max(0.0, min(float(raster_h), y))
    return Point(x, y)
