from __future__ import annotations
from typing import Optional, Callable, Tuple

from PySide6.QtCore import Qt, QPoint, QRectF, QTimer
from PySide6.QtGui import QPainter, QImage, QPixmap, QColor, QPen
from PySide6.QtWidgets import QWidget

from core.geometry import Point, display_to_raster


class CanvasWidget(QWidget):
    """
    Shows the working raster (QImage) with view zoom/pan.
    Supports:
      - left-drag: rubber-band selection (start/drag/finish callbacks in raster px)
      - wheel: view zoom
      - middle-drag: pan view
    The selection rectangle is only drawn on top of the image, never into it.
    """
    def __init__(
        self,
        on_select_start: Callable[[Point], None],
        on_select_drag: Callable[[Point], None],
        on_select_finish: Callable[[], None],
        parent: Optional[QWidget] = None,
    ):
        super().__init__(parent)
        self.setMouseTracking(True)
        self.setFocusPolicy(Qt.StrongFocus)

        self._image: Optional[QImage] = None
        self._image_size: Tuple[int, int] = (0, 0)

        # View transform
        self._view_zoom = 1.0
        self._view_pan_x = 0.0
        self._view_pan_y = 0.0

        # Interaction
        self._dragging_select = False
        self._dragging_mid = False
        self._last_pos = QPoint()

        self._selection_rect: Optional[Tuple[float, float, float, float]] = None

        self._on_select_start = on_select_start
        self._on_select_drag = on_select_drag
        self._on_select_finish = on_select_finish

        self._ants_phase = 0.0
        self._ants_timer = QTimer(self)
        self._ants_timer.setInterval(120)
        self._ants_timer.timeout.connect(self._advance_ants)

    def set_image(self, qimg: Optional[QImage]) -> None:
        self._image = qimg
        self._image_size = (0, 0) if qimg is None else (qimg.width(), qimg.height())
        self.update()

    def set_selection_overlay(self, rect: Optional[Tuple[float, float, float, float]]) -> None:
        self._selection_rect = rect
        if rect is not None:
            if not self._ants_timer.isActive():
                self._ants_timer.start()
        elif self._ants_timer.isActive():
            self._ants_timer.stop()
        self.update()

    def reset_view(self) -> None:
        self._view_zoom = 1.0
        self._view_pan_x = 0.0
        self._view_pan_y = 0.0
        self.update()

    def fit_to_view(self) -> None:
        img_w, img_h = self._image_size
        if img_w <= 0 or img_h <= 0:
            return
        margin = 20.0
        zx = max(1.0, self.width() - margin) / float(img_w)
        zy = max(1.0, self.height() - margin) / float(img_h)
        self._view_zoom = max(0.05, min(20.0, min(zx, zy)))
        self._view_pan_x = 0.0
        self._view_pan_y = 0.0
        self.update()

    def _image_rect(self) -> QRectF:
        img_w, img_h = self._image_size
        cx = self.width() * 0.5 + self._view_pan_x
        cy = self.height() * 0.5 + self._view_pan_y
        draw_w = img_w * self._view_zoom
        draw_h = img_h * self._view_zoom
        return QRectF(cx - draw_w * 0.5, cy - draw_h * 0.5, draw_w, draw_h)

    def paintEvent(self, _) -> None:
        p = QPainter(self)
        p.setRenderHint(QPainter.Antialiasing, True)

        # Background
        p.fillRect(self.rect(), QColor(30, 30, 30))

        if self._image is None:
            p.setPen(QPen(QColor(220, 220, 220)))
            p.drawText(
                self.rect(),
                Qt.AlignCenter,
                "Drop an image, paste one (Ctrl+V) or File → Open…",
            )
            return

        r = self._image_rect()

        # Checkerboard underlay (to visualize transparency)
        self._draw_checkerboard(p, r, int(16 * self._view_zoom))

        # Draw raster without smoothing so blocks stay crisp
        p.setRenderHint(QPainter.SmoothPixmapTransform, False)
        pm = QPixmap.fromImage(self._image)
        p.drawPixmap(int(r.left()), int(r.top()), int(r.width()), int(r.height()), pm)

        p.setPen(QPen(QColor(240, 240, 240), 1))
        p.drawRect(r)

        if self._selection_rect is not None:
            self._draw_selection_overlay(p, r)

        p.setPen(QPen(QColor(220, 220, 220)))
        msg = "Left-drag: select region | Wheel: view zoom | Middle-drag: pan view"
        p.drawText(10, self.height() - 10, msg)

    def _draw_checkerboard(self, p: QPainter, r: QRectF, cell: int) -> None:
        if cell < 4:
            cell = 4
        c1 = QColor(60, 60, 60)
        c2 = QColor(90, 90, 90)

        x0 = int(r.left())
        y0 = int(r.top())
        x1 = int(r.right())
        y1 = int(r.bottom())

        for y in range(y0, y1, cell):
            for x in range(x0, x1, cell):
                use_c1 = ((x // cell) + (y // cell)) % 2 == 0
                p.fillRect(x, y, cell, cell, c1 if use_c1 else c2)

    def _widget_to_raster(self, pos: QPoint) -> Optional[Point]:
        img_w, img_h = self._image_size
        if img_w <= 0 or img_h <= 0:
            return None
        r = self._image_rect()
        return display_to_raster(
            (pos.x(), pos.y()),
            (r.left(), r.top()),
            (r.width(), r.height()),
            (img_w, img_h),
        )

    def _draw_selection_overlay(self, p: QPainter, r: QRectF) -> None:
        img_w, img_h = self._image_size
        if img_w <= 0 or img_h <= 0:
            return
        sx, sy, sw, sh = self._selection_rect
        # Raster px -> widget px
        rx = r.left() + (sx / float(img_w)) * r.width()
        ry = r.top() + (sy / float(img_h)) * r.height()
        rw = (sw / float(img_w)) * r.width()
        rh = (sh / float(img_h)) * r.height()
        if rw <= 0 or rh <= 0:
            return

        outer = QPen(QColor(255, 40, 40), 2)
        outer.setDashPattern([4, 4])
        outer.setDashOffset(self._ants_phase)
        p.setPen(outer)
        p.drawRect(QRectF(rx, ry, rw, rh))

        inner = QPen(QColor(255, 255, 255), 2)
        inner.setDashPattern([4, 4])
        inner.setDashOffset(self._ants_phase + 4.0)
        p.setPen(inner)
        p.drawRect(QRectF(rx, ry, rw, rh))

    def wheelEvent(self, e) -> None:
        delta = e.angleDelta().y()
        if delta == 0:
            return
        factor = 1.1 if delta > 0 else (1.0 / 1.1)
        self._view_zoom = max(0.05, min(20.0, self._view_zoom * factor))
        self.update()
        e.accept()

    def mousePressEvent(self, e) -> None:
        self._last_pos = e.position().toPoint()

        if e.button() == Qt.LeftButton:
            pt = self._widget_to_raster(self._last_pos)
            if pt is None:
                return
            self._dragging_select = True
            self._on_select_start(pt)
        elif e.button() == Qt.MiddleButton:
            self._dragging_mid = True

    def mouseMoveEvent(self, e) -> None:
        pos = e.position().toPoint()
        dx = pos.x() - self._last_pos.x()
        dy = pos.y() - self._last_pos.y()
        self._last_pos = pos

        if self._dragging_select:
            pt = self._widget_to_raster(pos)
            if pt is not None:
                self._on_select_drag(pt)
        elif self._dragging_mid:
            self._view_pan_x += dx
            self._view_pan_y += dy
            self.update()

    def mouseReleaseEvent(self, e) -> None:
        if e.button() == Qt.LeftButton:
            if self._dragging_select:
                self._dragging_select = False
                self._on_select_finish()
        elif e.button() == Qt.MiddleButton:
            self._dragging_mid = False

    def leaveEvent(self, e) -> None:
        # a drag that leaves the widget ends the gesture
        if self._dragging_select:
            self._dragging_select = False
            self._on_select_finish()
        super().leaveEvent(e)

    def _advance_ants(self) -> None:
        self._ants_phase = (self._ants_phase + 1.0) % 8.0
        self.update()
