"""
Main application window.

Orchestrates image loading (file, drag-and-drop, URL), ratio selection,
focal-point editing, and export of per-ratio crops or a composite sheet.
The window holds the user's state and re-invokes the crop core whenever
an input changes.
"""

from pathlib import Path

from PyQt6.QtWidgets import (
    QMainWindow, QWidget, QVBoxLayout, QHBoxLayout, QPushButton, QLabel, QFileDialog,
    QSplitter, QGroupBox, QMessageBox, QStatusBar, QToolBar, QSlider, QApplication,
    QScrollArea, QLineEdit, QInputDialog,
)
from PyQt6.QtCore import Qt
from PyQt6.QtGui import QAction, QDragEnterEvent, QDropEvent

from focal_crop.config import IMAGE_EXTENSIONS
from focal_crop.export import ExportResult, save_export
from focal_crop.image_io import RasterSource, format_file_size
from focal_crop.models import FocalPoint, compute_crop
from focal_crop.preview_widget import (
    ExportThread, FocalPreviewWidget, SourceLoaderThread, wait_for_threads,
)
from focal_crop.ratios import RatioSelection, format_ratio, load_custom_ratios, save_custom_ratios


class MainWindow(QMainWindow):
    def __init__(self):
        super().__init__()
        self.setWindowTitle("Focal Crop Tool")
        self.setMinimumSize(900, 500)

        preferred_w, preferred_h = 1440, 900
        screen = QApplication.primaryScreen()
        if screen is not None:
            avail = screen.availableGeometry()
            preferred_w = min(preferred_w, int(avail.width() * 0.8))
            preferred_h = min(preferred_h, int(avail.height() * 0.8))
        self.resize(preferred_w, preferred_h)
        self.setAcceptDrops(True)

        self._source: RasterSource | None = None
        self._selection = RatioSelection(load_custom_ratios())
        self._focal = FocalPoint()
        self._output_root: Path | None = None
        self._loader: SourceLoaderThread | None = None
        self._exporter: ExportThread | None = None

        self._build_ui()
        self._refresh_preview()
        self._update_button_states()

    # =========================================================================
    # UI construction
    # =========================================================================

    def _build_ui(self):
        self._build_toolbar()

        central = QWidget()
        self.setCentralWidget(central)
        main_layout = QHBoxLayout(central)
        main_layout.setContentsMargins(4, 4, 4, 4)

        splitter = QSplitter(Qt.Orientation.Horizontal)
        main_layout.addWidget(splitter)

        self._preview = FocalPreviewWidget()
        self._preview.focal_changed.connect(self._on_preview_focal_changed)
        splitter.addWidget(self._preview)
        splitter.addWidget(self._build_right_panel())
        splitter.setSizes([1000, 260])

        self._status = QStatusBar()
        self.setStatusBar(self._status)
        self._status.showMessage("Open an image, paste a URL, or drop a file to begin.")

    def _build_toolbar(self):
        toolbar = QToolBar("Main")
        toolbar.setMovable(False)
        self.addToolBar(toolbar)

        act_open = QAction("📂 Open Image", self)
        act_open.triggered.connect(self._select_image)
        toolbar.addAction(act_open)

        act_url = QAction("🌐 Load from URL", self)
        act_url.triggered.connect(self._load_url)
        toolbar.addAction(act_url)

        act_output = QAction("💾 Set Output Folder", self)
        act_output.triggered.connect(self._select_output_folder)
        toolbar.addAction(act_output)

        toolbar.addSeparator()

        act_export = QAction("▶ Export Selected Ratios", self)
        act_export.triggered.connect(lambda: self._start_export(composite=False))
        toolbar.addAction(act_export)
        self._act_export = act_export

        act_composite = QAction("▦ Export Composite", self)
        act_composite.setToolTip("All selected ratios side by side in one labelled PNG")
        act_composite.triggered.connect(lambda: self._start_export(composite=True))
        toolbar.addAction(act_composite)
        self._act_composite = act_composite

    def _build_right_panel(self) -> QWidget:
        inner = QWidget()
        inner_layout = QVBoxLayout(inner)
        inner_layout.setContentsMargins(0, 0, 0, 0)

        inner_layout.addWidget(self._build_ratio_group())
        inner_layout.addWidget(self._build_focal_group())

        self._info_label = QLabel("No image loaded")
        self._info_label.setWordWrap(True)
        inner_layout.addWidget(self._info_label)

        self._crop_info_label = QLabel("")
        self._crop_info_label.setWordWrap(True)
        self._crop_info_label.setStyleSheet("color: #aaa; font-size: 9pt;")
        inner_layout.addWidget(self._crop_info_label)

        inner_layout.addStretch()

        scroll = QScrollArea()
        scroll.setWidgetResizable(True)
        scroll.setWidget(inner)
        scroll.setHorizontalScrollBarPolicy(Qt.ScrollBarPolicy.ScrollBarAlwaysOff)
        scroll.setFrameShape(scroll.Shape.NoFrame)

        right_panel = QWidget()
        right_panel.setFixedWidth(260)
        right_layout = QVBoxLayout(right_panel)
        right_layout.setContentsMargins(4, 0, 0, 0)
        right_layout.addWidget(scroll)
        return right_panel

    def _build_ratio_group(self) -> QGroupBox:
        ratio_group = QGroupBox("Aspect Ratios")
        layout = QVBoxLayout(ratio_group)

        self._ratio_buttons_layout = QVBoxLayout()
        layout.addLayout(self._ratio_buttons_layout)
        self._ratio_rows: list[QWidget] = []
        self._rebuild_ratio_buttons()

        # Custom ratio input
        input_row = QHBoxLayout()
        self._custom_input = QLineEdit()
        self._custom_input.setPlaceholderText("W:H (e.g. 21:9)")
        self._custom_input.returnPressed.connect(self._add_custom_ratio)
        input_row.addWidget(self._custom_input, stretch=1)
        btn_add = QPushButton("Add")
        btn_add.clicked.connect(self._add_custom_ratio)
        input_row.addWidget(btn_add)
        layout.addLayout(input_row)

        self._custom_error = QLabel("")
        self._custom_error.setStyleSheet("color: #d32f2f;")
        self._custom_error.setWordWrap(True)
        layout.addWidget(self._custom_error)

        return ratio_group

    def _rebuild_ratio_buttons(self):
        """Clear and recreate one toggle button per preset/custom ratio."""
        for row in self._ratio_rows:
            self._ratio_buttons_layout.removeWidget(row)
            row.deleteLater()
        self._ratio_rows.clear()

        for ratio in self._selection.presets:
            self._add_ratio_row(ratio.value, ratio.label, removable_index=None)
        for i, ratio in enumerate(self._selection.custom):
            self._add_ratio_row(ratio.value, ratio.label, removable_index=i)

    def _add_ratio_row(self, value: float, label: str, removable_index: int | None):
        row = QWidget()
        row_layout = QHBoxLayout(row)
        row_layout.setContentsMargins(0, 0, 0, 0)

        btn = QPushButton(label)
        btn.setCheckable(True)
        btn.setChecked(self._selection.is_selected(value))
        btn.clicked.connect(lambda checked, v=value: self._on_ratio_toggled(v))
        row_layout.addWidget(btn, stretch=1)

        if removable_index is not None:
            btn_remove = QPushButton("✕")
            btn_remove.setFixedWidth(28)
            btn_remove.setToolTip("Remove custom ratio")
            btn_remove.clicked.connect(lambda checked, i=removable_index: self._remove_custom_ratio(i))
            row_layout.addWidget(btn_remove)

        self._ratio_buttons_layout.addWidget(row)
        self._ratio_rows.append(row)

    def _build_focal_group(self) -> QGroupBox:
        focal_group = QGroupBox("Focal Point")
        layout = QVBoxLayout(focal_group)

        self._focal_sliders: dict[str, QSlider] = {}
        self._focal_labels: dict[str, QLabel] = {}
        for axis in ("x", "y"):
            row = QHBoxLayout()
            row.addWidget(QLabel(f"{axis.upper()}:"))
            slider = QSlider(Qt.Orientation.Horizontal)
            slider.setRange(0, 100)
            slider.setValue(round(getattr(self._focal, axis)))
            slider.valueChanged.connect(lambda v, a=axis: self._on_focal_slider(a, v))
            row.addWidget(slider, stretch=1)
            value_label = QLabel(f"{getattr(self._focal, axis):.0f}%")
            value_label.setFixedWidth(40)
            row.addWidget(value_label)
            layout.addLayout(row)
            self._focal_sliders[axis] = slider
            self._focal_labels[axis] = value_label

        btn_reset = QPushButton("🎯 Reset to Center")
        btn_reset.clicked.connect(self._reset_focal_point)
        layout.addWidget(btn_reset)

        hint = QLabel("Click or drag on the image to move the focal point.")
        hint.setWordWrap(True)
        hint.setStyleSheet("color: #aaa; font-size: 8pt;")
        layout.addWidget(hint)
        return focal_group

    # =========================================================================
    # Ratio selection
    # =========================================================================

    def _on_ratio_toggled(self, value: float):
        self._selection.toggle(value)
        self._refresh_preview()
        self._update_button_states()

    def _add_custom_ratio(self):
        error = self._selection.add_custom(self._custom_input.text())
        if error:
            self._custom_error.setText(error)
            return
        self._custom_error.setText("")
        self._custom_input.clear()
        self._persist_custom_ratios()
        self._rebuild_ratio_buttons()
        self._refresh_preview()
        self._update_button_states()

    def _remove_custom_ratio(self, index: int):
        self._selection.remove_custom(index)
        self._persist_custom_ratios()
        self._rebuild_ratio_buttons()
        self._refresh_preview()
        self._update_button_states()

    def _persist_custom_ratios(self):
        try:
            save_custom_ratios(self._selection.custom)
        except (ValueError, OSError) as exc:
            QMessageBox.warning(self, "Save Failed", f"Could not save custom ratios:\n{exc}")

    # =========================================================================
    # Focal point
    # =========================================================================

    def _on_focal_slider(self, axis: str, value: int):
        if axis == "x":
            self._focal.set_x(float(value))
        else:
            self._focal.set_y(float(value))
        self._focal_labels[axis].setText(f"{value}%")
        self._refresh_preview()

    def _on_preview_focal_changed(self, x: float, y: float):
        self._focal.set_x(x)
        self._focal.set_y(y)
        self._sync_focal_sliders()
        self._refresh_preview()

    def _reset_focal_point(self):
        self._focal.reset()
        self._sync_focal_sliders()
        self._refresh_preview()

    def _sync_focal_sliders(self):
        for axis, slider in self._focal_sliders.items():
            value = getattr(self._focal, axis)
            slider.blockSignals(True)
            slider.setValue(round(value))
            slider.blockSignals(False)
            self._focal_labels[axis].setText(f"{value:.0f}%")

    def _refresh_preview(self):
        requests = self._selection.requests()
        self._preview.set_ratios(requests)
        self._preview.set_focal_point(self._focal)
        self._update_crop_info(requests)

    def _update_crop_info(self, requests):
        if self._source is None or not requests:
            self._crop_info_label.setText("")
            return
        lines = []
        for ratio in requests:
            crop = compute_crop(self._source.width, self._source.height, ratio.value, self._focal)
            w, h = crop.size
            lines.append(f"{ratio.display}: {w}×{h} at ({crop.x:.0f}, {crop.y:.0f})")
        self._crop_info_label.setText("\n".join(lines))

    # =========================================================================
    # Image loading
    # =========================================================================

    def _select_image(self):
        patterns = " ".join(f"*{ext}" for ext in sorted(IMAGE_EXTENSIONS))
        path, _ = QFileDialog.getOpenFileName(self, "Open Image", "", f"Images ({patterns})")
        if path:
            self._start_loader(SourceLoaderThread(path=Path(path), parent=self))

    def _load_url(self):
        url, ok = QInputDialog.getText(self, "Load from URL", "Image URL:")
        if ok and url.strip():
            self._start_loader(SourceLoaderThread(url=url.strip(), parent=self))

    def dragEnterEvent(self, event: QDragEnterEvent):
        if event.mimeData().hasUrls():
            event.acceptProposedAction()

    def dropEvent(self, event: QDropEvent):
        urls = event.mimeData().urls()
        if not urls:
            return
        url = urls[0]
        if url.isLocalFile():
            loader = SourceLoaderThread(path=Path(url.toLocalFile()), parent=self)
        else:
            loader = SourceLoaderThread(url=url.toString(), parent=self)
        self._start_loader(loader)
        event.acceptProposedAction()

    def _start_loader(self, loader: SourceLoaderThread):
        # Drop results from any previous load still in flight
        if self._loader is not None:
            try:
                self._loader.loaded.disconnect()
                self._loader.error.disconnect()
            except (TypeError, RuntimeError):
                pass  # Already disconnected or destroyed

        self._loader = loader
        self._preview.set_loading(True)
        self._status.showMessage("Loading image…")
        loader.loaded.connect(self._on_source_loaded)
        loader.error.connect(self._on_source_error)
        loader.start()

    def _on_source_loaded(self, source: RasterSource):
        self._source = source
        self._preview.set_source(source)
        size = format_file_size(source.size_bytes) if source.size_bytes is not None else "remote"
        self._info_label.setText(
            f"{source.name}\n{source.width}×{source.height}px "
            f"({format_ratio(source.width / source.height)}) · {size}"
        )
        self._status.showMessage(f"Loaded {source.name}")
        self._refresh_preview()
        self._update_button_states()

    def _on_source_error(self, error: str):
        # Keep the previous image (if any) on screen
        self._preview.set_loading(False)
        self._status.showMessage(f"Failed to load image: {error}")
        QMessageBox.warning(self, "Load Failed", error)

    # =========================================================================
    # Export
    # =========================================================================

    def _select_output_folder(self):
        folder = QFileDialog.getExistingDirectory(self, "Select Output Folder")
        if folder:
            self._output_root = Path(folder)
            self._status.showMessage(f"Output folder: {self._output_root}")

    def _ensure_output_folder(self) -> bool:
        if not self._output_root:
            self._select_output_folder()
        if not self._output_root:
            QMessageBox.warning(self, "No Output Folder", "Please select an output folder first.")
            return False
        return True

    def _update_button_states(self):
        ready = (
            self._source is not None
            and bool(self._selection.selected)
            and (self._exporter is None or not self._exporter.isRunning())
        )
        self._act_export.setEnabled(ready)
        self._act_composite.setEnabled(ready)

    def _start_export(self, composite: bool):
        if self._source is None or not self._selection.selected:
            return
        if not self._ensure_output_folder():
            return

        self._exporter = ExportThread(
            self._source, self._selection.requests(), self._focal, composite, parent=self,
        )
        self._exporter.finished_exports.connect(self._on_exports_finished)
        self._exporter.finished.connect(self._update_button_states)
        self._exporter.start()
        self._status.showMessage("Exporting…")
        self._update_button_states()

    def _on_exports_finished(self, results: list[ExportResult]):
        saved, errors = [], []
        for result in results:
            if not result.success:
                errors.append(result)
                continue
            try:
                saved.append(save_export(result, self._output_root))
            except OSError as exc:
                errors.append(ExportResult(False, result.filename, error=str(exc)))

        if errors:
            err_names = "\n".join(f"• {e.filename}: {e.error}" for e in errors[:10])
            suffix = f"\n…and {len(errors) - 10} more" if len(errors) > 10 else ""
            QMessageBox.warning(self, "Export failed", f"{len(errors)} failed:\n\n{err_names}{suffix}")

        self._status.showMessage(
            f"Exported {len(saved)}/{len(results)} file(s) to {self._output_root}"
        )
        self._update_button_states()

    def closeEvent(self, event):
        """Let background work finish before the window goes away."""
        wait_for_threads((self._loader, self._exporter))
        super().closeEvent(event)
