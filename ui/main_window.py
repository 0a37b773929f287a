from __future__ import annotations
import logging
from pathlib import Path
from typing import Optional
import numpy as np
from PIL import Image

from PySide6.QtCore import Qt
from PySide6.QtGui import QAction, QImage, QKeySequence, QIcon
from PySide6.QtWidgets import (
    QApplication, QMainWindow, QWidget, QFileDialog, QVBoxLayout, QHBoxLayout, QLabel,
    QSpinBox, QCheckBox, QPushButton, QMessageBox, QDockWidget, QRadioButton, QButtonGroup,
    QGroupBox, QScrollArea
)

from core.errors import MosaicError, NoImageLoaded
from core.geometry import Point
from core.io import IMAGE_EXTENSIONS, load_image_rgba, np_rgba_to_pil, save_image
from core.session import EditSession
from core.settings_io import default_settings_path, load_settings_or_default, save_settings
from core.state import (
    BLOCK_SIZE_PRESETS,
    MAX_BLOCK_SIZE,
    MIN_BLOCK_SIZE,
    PRESET_LABELS,
)
from ui.canvas_widget import CanvasWidget

logger = logging.getLogger(__name__)


def pil_rgba_to_qimage(img: Image.Image) -> QImage:
    img = img.convert("RGBA")
    w, h = img.size
    data = img.tobytes("raw", "RGBA")
    qimg = QImage(data, w, h, QImage.Format_RGBA8888)
    # Important: keep a copy because Python-owned bytes may be freed
    return qimg.copy()


def np_rgba_to_qimage(arr: np.ndarray) -> QImage:
    h, w = arr.shape[:2]
    data = np.ascontiguousarray(arr, dtype=np.uint8).tobytes()
    qimg = QImage(data, w, h, w * 4, QImage.Format_RGBA8888)
    return qimg.copy()


def qimage_to_pil_rgba(qimg: QImage) -> Image.Image:
    qimg = qimg.convertToFormat(QImage.Format_RGBA8888)
    w, h = qimg.width(), qimg.height()
    stride = qimg.bytesPerLine()
    buf = np.frombuffer(qimg.constBits(), dtype=np.uint8, count=stride * h)
    # rows may be padded past w * 4 bytes
    arr = buf.reshape(h, stride)[:, : w * 4].reshape(h, w, 4).copy()
    return np_rgba_to_pil(arr)


class MainWindow(QMainWindow):
    def __init__(self, logo_path: Optional[Path] = None, settings_path: Optional[Path] = None):
        super().__init__()
        self._logo_path = logo_path
        if self._logo_path is not None and self._logo_path.exists():
            self.setWindowIcon(QIcon(str(self._logo_path)))
        self.setWindowTitle("OpenMosaic")

        self._settings_path = settings_path or default_settings_path()
        self.session = EditSession(settings=load_settings_or_default(str(self._settings_path)))

        self._act_apply: Optional[QAction] = None
        self._act_reset_sel: Optional[QAction] = None

        # Central
        self.canvas = CanvasWidget(
            on_select_start=self._select_start,
            on_select_drag=self._select_drag,
            on_select_finish=self._select_finish,
        )

        central = QWidget()
        lay = QVBoxLayout()
        lay.addWidget(self.canvas)
        central.setLayout(lay)
        self.setCentralWidget(central)

        self._build_menu()
        self._build_controls_dock()

        self.setAcceptDrops(True)
        self.resize(1100, 760)
        self._sync_ui_from_settings()
        self._rerender()

    # ---------------------------
    # Menu / Actions
    # ---------------------------
    def _build_menu(self) -> None:
        open_act = QAction("Open…", self)
        open_act.setShortcut(QKeySequence.StandardKey.Open)
        open_act.triggered.connect(self.open_file)

        paste_act = QAction("Paste Image", self)
        paste_act.setShortcut(QKeySequence.StandardKey.Paste)
        paste_act.triggered.connect(self.paste_from_clipboard)

        save_act = QAction("Save As…", self)
        save_act.setShortcut(QKeySequence.StandardKey.SaveAs)
        save_act.triggered.connect(self.save_as)

        copy_act = QAction("Copy Image", self)
        copy_act.setShortcut(QKeySequence.StandardKey.Copy)
        copy_act.triggered.connect(self.copy_to_clipboard)

        clear_act = QAction("Close Image", self)
        clear_act.setShortcut(QKeySequence.StandardKey.Close)
        clear_act.triggered.connect(self.clear_image)

        quit_act = QAction("Quit", self)
        quit_act.setShortcut(QKeySequence.StandardKey.Quit)
        quit_act.triggered.connect(self.close)

        self._act_apply = QAction("Apply Mosaic", self)
        self._act_apply.setShortcut("Ctrl+M")
        self._act_apply.triggered.connect(self.apply_mosaic)

        self._act_reset_sel = QAction("Reset Selection", self)
        self._act_reset_sel.setShortcut(QKeySequence(Qt.Key_Escape))
        self._act_reset_sel.triggered.connect(self.reset_selection)

        reset_view = QAction("Reset View", self)
        reset_view.triggered.connect(self.canvas.reset_view)

        fit_act = QAction("Fit Image to Window", self)
        fit_act.setShortcut("F")
        fit_act.triggered.connect(self.canvas.fit_to_view)

        mfile = self.menuBar().addMenu("File")
        mfile.addAction(open_act)
        mfile.addAction(paste_act)
        mfile.addAction(save_act)
        mfile.addAction(copy_act)
        mfile.addAction(clear_act)
        mfile.addSeparator()
        mfile.addAction(quit_act)

        medit = self.menuBar().addMenu("Edit")
        medit.addAction(self._act_apply)
        medit.addAction(self._act_reset_sel)

        mview = self.menuBar().addMenu("View")
        mview.addAction(reset_view)
        mview.addAction(fit_act)

    # ---------------------------
    # Controls dock
    # ---------------------------
    def _build_controls_dock(self) -> None:
        dock = QDockWidget("Controls", self)
        dock.setAllowedAreas(Qt.LeftDockWidgetArea | Qt.RightDockWidgetArea)

        root = QWidget()
        root_lay = QVBoxLayout(root)

        scroll = QScrollArea()
        scroll.setWidgetResizable(True)
        panel = QWidget()
        v = QVBoxLayout(panel)

        g_size, gl_size = self._make_group("Mosaic Size")
        self.preset_group = QButtonGroup(self)
        self._preset_buttons: dict[str, QRadioButton] = {}
        for key, size in BLOCK_SIZE_PRESETS.items():
            btn = QRadioButton(f"{PRESET_LABELS[key]} ({size}px)")
            self.preset_group.addButton(btn)
            self._preset_buttons[key] = btn
            btn.toggled.connect(lambda on, k=key: self._on_preset_toggled(k, on))
            gl_size.addWidget(btn)
        custom_row = QHBoxLayout()
        custom_row.addWidget(QLabel("Block"))
        self.block_spin = QSpinBox()
        self.block_spin.setRange(MIN_BLOCK_SIZE, MAX_BLOCK_SIZE)
        self.block_spin.setSuffix(" px")
        self.block_spin.valueChanged.connect(self._on_block_spin_changed)
        custom_row.addWidget(self.block_spin, 1)
        gl_size.addLayout(custom_row)
        self.avg_alpha_chk = QCheckBox("Average transparency too")
        self.avg_alpha_chk.toggled.connect(self._on_avg_alpha_toggled)
        gl_size.addWidget(self.avg_alpha_chk)
        v.addWidget(g_size)

        g_act, gl_act = self._make_group("Actions")
        self.apply_btn = QPushButton("Apply Mosaic")
        self.apply_btn.clicked.connect(self.apply_mosaic)
        gl_act.addWidget(self.apply_btn)
        self.reset_sel_btn = QPushButton("Reset Selection")
        self.reset_sel_btn.clicked.connect(self.reset_selection)
        gl_act.addWidget(self.reset_sel_btn)
        self.save_btn = QPushButton("Save Image…")
        self.save_btn.clicked.connect(self.save_as)
        gl_act.addWidget(self.save_btn)
        self.copy_btn = QPushButton("Copy to Clipboard")
        self.copy_btn.clicked.connect(self.copy_to_clipboard)
        gl_act.addWidget(self.copy_btn)
        v.addWidget(g_act)

        hint = QLabel(
            "Drag over the image to select the area to pixelate.\n"
            "Apply without a selection to pixelate the whole image."
        )
        hint.setWordWrap(True)
        v.addWidget(hint)

        v.addStretch(1)
        scroll.setWidget(panel)
        root_lay.addWidget(scroll)
        dock.setWidget(root)
        self.addDockWidget(Qt.RightDockWidgetArea, dock)

    def _make_group(self, title: str) -> tuple[QGroupBox, QVBoxLayout]:
        g = QGroupBox(title)
        gl = QVBoxLayout()
        g.setLayout(gl)
        return g, gl

    # ---------------------------
    # Settings
    # ---------------------------
    def _sync_ui_from_settings(self) -> None:
        settings = self.session.settings
        for key, btn in self._preset_buttons.items():
            btn.blockSignals(True)
            btn.setChecked(settings.preset == key)
            btn.blockSignals(False)
        self.block_spin.blockSignals(True)
        self.block_spin.setValue(int(settings.block_size))
        self.block_spin.blockSignals(False)
        self.avg_alpha_chk.blockSignals(True)
        self.avg_alpha_chk.setChecked(bool(settings.average_alpha))
        self.avg_alpha_chk.blockSignals(False)

    def _on_preset_toggled(self, key: str, on: bool) -> None:
        if not on:
            return
        self.session.settings.set_preset(key)
        self._sync_ui_from_settings()
        self._update_status()

    def _on_block_spin_changed(self, value: int) -> None:
        self.session.settings.set_custom_block_size(value)
        # a custom size leaves no preset checked
        self.preset_group.setExclusive(False)
        self._sync_ui_from_settings()
        self.preset_group.setExclusive(True)
        self._update_status()

    def _on_avg_alpha_toggled(self, on: bool) -> None:
        self.session.settings.average_alpha = bool(on)

    def _save_settings(self) -> None:
        try:
            save_settings(str(self._settings_path), self.session.settings)
        except OSError as e:
            logger.warning("Could not save settings to %s: %s", self._settings_path, e)

    def closeEvent(self, e) -> None:
        self._save_settings()
        super().closeEvent(e)

    # ---------------------------
    # File IO
    # ---------------------------
    def open_file(self) -> None:
        patterns = " ".join(f"*{ext}" for ext in IMAGE_EXTENSIONS)
        path, _ = QFileDialog.getOpenFileName(
            self, "Open Image", self.session.settings.last_open_dir or "", f"Images ({patterns})"
        )
        if not path:
            return
        self.load_path(path)

    def load_path(self, path: str) -> None:
        try:
            img = load_image_rgba(path)
            self.session.load_pil(img, source_name=Path(path).name)
        except (OSError, ValueError) as e:
            QMessageBox.critical(self, "Open failed", str(e))
            return
        self.session.settings.last_open_dir = str(Path(path).parent)
        self._after_load()

    def load_qimage(self, qimg: QImage, failure_title: str) -> bool:
        if qimg.isNull():
            QMessageBox.critical(self, failure_title, "The image data could not be read.")
            return False
        try:
            self.session.load_pil(qimage_to_pil_rgba(qimg))
        except (OSError, ValueError) as e:
            QMessageBox.critical(self, failure_title, str(e))
            return False
        self._after_load()
        return True

    def _after_load(self) -> None:
        self._rerender()
        self.canvas.fit_to_view()

    def paste_from_clipboard(self) -> None:
        mime = QApplication.clipboard().mimeData()
        if mime is None:
            return
        if mime.hasImage():
            self.load_qimage(QApplication.clipboard().image(), "Paste failed")
            return
        if mime.hasUrls():
            for url in mime.urls():
                path = url.toLocalFile()
                if path and Path(path).suffix.lower() in IMAGE_EXTENSIONS:
                    self.load_path(path)
                    return
        self.statusBar().showMessage("No image on the clipboard", 3000)

    def save_as(self) -> None:
        if not self.session.has_image:
            QMessageBox.information(self, "Nothing to save", "Load an image first.")
            return

        start_dir = Path(self.session.settings.last_save_dir or "")
        path, _ = QFileDialog.getSaveFileName(
            self,
            "Save As",
            str(start_dir / self.session.suggested_filename()),
            "PNG (*.png);;JPG (*.jpg *.jpeg);;WEBP (*.webp);;TIFF (*.tif *.tiff)",
        )
        if not path:
            return

        try:
            save_image(path, self.session.export())
        except (OSError, ValueError, MosaicError) as e:
            QMessageBox.critical(self, "Save failed", str(e))
            return
        self.session.settings.last_save_dir = str(Path(path).parent)
        self.statusBar().showMessage(f"Saved {path}", 3000)

    def copy_to_clipboard(self) -> None:
        try:
            img = self.session.export()
        except NoImageLoaded:
            self.statusBar().showMessage("Nothing to copy", 3000)
            return
        try:
            QApplication.clipboard().setImage(pil_rgba_to_qimage(img))
        except RuntimeError as e:
            logger.error("Clipboard copy failed: %s", e)
            self.statusBar().showMessage(f"Copy failed: {e}", 3000)
            return
        self.statusBar().showMessage("Image copied to clipboard", 3000)

    def clear_image(self) -> None:
        self.session.clear_image()
        self._rerender()

    # ---------------------------
    # Drag & drop support
    # ---------------------------
    def dragEnterEvent(self, e) -> None:
        if e.mimeData().hasUrls() or e.mimeData().hasImage():
            e.acceptProposedAction()

    def dropEvent(self, e) -> None:
        mime = e.mimeData()
        urls = mime.urls()
        if urls:
            path = urls[0].toLocalFile()
            if path:
                self.load_path(path)
            return
        if mime.hasImage():
            self.load_qimage(QImage(mime.imageData()), "Drop failed")

    # ---------------------------
    # Selection / mosaic
    # ---------------------------
    def _select_start(self, pt: Point) -> None:
        self.session.begin_select(pt)
        self._refresh_overlay()

    def _select_drag(self, pt: Point) -> None:
        self.session.drag_select(pt)
        self._refresh_overlay()

    def _select_finish(self) -> None:
        self.session.end_select()
        self._refresh_overlay()

    def reset_selection(self) -> None:
        self.session.reset_selection()
        self._rerender()

    def apply_mosaic(self) -> None:
        try:
            self.session.apply_mosaic()
        except NoImageLoaded:
            QMessageBox.information(self, "No image", "Load an image first.")
            return
        except MosaicError as e:
            QMessageBox.critical(self, "Mosaic failed", str(e))
        self._rerender()

    # ---------------------------
    # Rendering
    # ---------------------------
    def _refresh_overlay(self) -> None:
        self.canvas.set_selection_overlay(self.session.selection.overlay_rect() if self.session.has_selection else None)
        self._update_actions()
        self._update_status()

    def _update_actions(self) -> None:
        has_image = self.session.has_image
        has_sel = self.session.has_selection
        for w in (self.apply_btn, self.save_btn, self.copy_btn, self._act_apply):
            w.setEnabled(has_image)
        self.reset_sel_btn.setEnabled(has_sel)
        self._act_reset_sel.setEnabled(has_sel)

    def _update_status(self) -> None:
        s = self.session
        if not s.has_image:
            self.statusBar().showMessage("No image")
            return
        w, h = s.size
        if s.has_selection:
            try:
                r = s.selection.normalized_rect((w, h))
                sel = f"{r.width}x{r.height} at ({r.x0}, {r.y0})"
            except MosaicError:
                sel = "whole image"
        else:
            sel = "whole image"
        msg = (
            f"Image: {s.source_name or 'pasted'} {w}x{h} | Target: {sel} | "
            f"Block: {s.settings.block_size}px | {s.state.value}"
        )
        self.statusBar().showMessage(msg)

    def _rerender(self) -> None:
        pixels = self.session.pixels
        self.canvas.set_image(None if pixels is None else np_rgba_to_qimage(pixels))
        self._refresh_overlay()
