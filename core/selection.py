from __future__ import annotations

from typing import Optional, Tuple

from core.errors import DegenerateSelection
from core.geometry import Point, Rect


class SelectionModel:
    """
    Rectangle selection captured as a drag gesture.

    Start and end are kept as free points; which corner the user started from
    is only known once the drag completes, so normalisation happens on read.
    """

    def __init__(self) -> None:
        self.start: Optional[Point] = None
        self.end: Optional[Point] = None
        self._dragging = False

    @property
    def is_active(self) -> bool:
        return self.start is not None and self.end is not None

    @property
    def is_dragging(self) -> bool:
        return self._dragging

    def begin(self, point: Point) -> None:
        self.start = point
        self.end = point
        self._dragging = True

    def update(self, point: Point) -> None:
        if not self.is_active:
            return
        self.end = point

    def end_drag(self) -> None:
        self._dragging = False

    def clear(self) -> None:
        self.start = None
        self.end = None
        self._dragging = False

    def normalized_rect(self, bounds: Optional[Tuple[int, int]] = None) -> Rect:
        if not self.is_active:
            raise DegenerateSelection("no selection")
        rect = Rect.enclosing(self.start, self.end)
        if bounds is not None:
            rect = rect.clamp(bounds[0], bounds[1])
        if rect.is_empty:
            raise DegenerateSelection(f"selection {rect.width}x{rect.height} has no area")
        return rect

    def rect_or_full(self, width: int, height: int) -> Rect:
        try:
            return self.normalized_rect((width, height))
        except DegenerateSelection:
            return Rect.full(width, height)

    def overlay_rect(self) -> Optional[Tuple[float, float, float, float]]:
        # un-rounded (x, y, w, h) for drawing the rubber band
        if not self.is_active:
            return None
        x = min(self.start.x, self.end.x)
        y = min(self.start.y, self.end.y)
        return (x, y, abs(self.end.x - self.start.x), abs(self.end.y - self.start.y))
