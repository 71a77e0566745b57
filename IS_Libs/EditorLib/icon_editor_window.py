from pathlib import Path
from typing import Any, Callable, Dict, Optional, Tuple

import io
import logging
import sys

from PyQt5.QtCore import Qt, QTimer
from PyQt5.QtGui import QColor, QPixmap
from PyQt5.QtWidgets import (
    QApplication,
    QCheckBox,
    QColorDialog,
    QComboBox,
    QDoubleSpinBox,
    QFileDialog,
    QFormLayout,
    QGroupBox,
    QHBoxLayout,
    QInputDialog,
    QLabel,
    QLineEdit,
    QMainWindow,
    QMessageBox,
    QProgressDialog,
    QPushButton,
    QSlider,
    QVBoxLayout,
    QWidget,
)

from IS_Libs.constants import (
    DEFAULT_WINDOW_HEIGHT,
    DEFAULT_WINDOW_WIDTH,
    DRAG_RENDER_INTERVAL_MS,
    ICON_SHAPES,
    PADDING_UNITS,
    PLATFORM_ANDROID,
    PLATFORM_ANDROID_STORE,
    PLATFORM_IOS,
    PREVIEW_LABEL_SIZE,
    PROJECT_EXTENSION,
    STANDARD_IMAGE_FILTER,
)
from IS_Libs.errors import IconStudioError
from IS_Libs.ExportLib.export_orchestrator import ExportOptions, ExportProgress
from IS_Libs.ExportLib.export_sinks import DirectorySink
from IS_Libs.ImageEditingLib.image_models import color_to_hex
from IS_Libs.ImageEditingLib.pixel_filters import get_default_registry, selectable_filter_kinds
from IS_Libs.ProjStoreLib.project_store import (
    create_project_file,
    get_projects_dir,
    list_project_files,
    load_project_name,
    load_project_state,
    save_project_state,
)
from IS_Libs.SessionLib.editor_session import EditorSession
from IS_Libs.SessionLib.handoff_store import HandoffStore
from IS_Libs.SessionLib.input_coalescer import DragCoalescer
from IS_Libs.SessionLib.status_messages import STATUS_ERROR, STATUS_SUCCESS

logger = logging.getLogger(__name__)

STATUS_POLL_MS = 250

# field -> (label, min, max, decimals)
SLIDER_FIELDS: Dict[str, Tuple[str, float, float, int]] = {
    "scale": ("Scale", 0.01, 5.0, 2),
    "rotation": ("Rotation", -180.0, 180.0, 0),
    "x_offset": ("X offset", -256.0, 256.0, 0),
    "y_offset": ("Y offset", -256.0, 256.0, 0),
    "padding": ("Padding", 0.0, 200.0, 0),
    "border_width": ("Border width", 0.0, 64.0, 0),
    "blur_radius": ("Blur radius", 0.0, 32.0, 1),
}

COLOR_FIELDS: Dict[str, str] = {
    "background_color": "Background",
    "border_color": "Border colour",
    "text_font_color": "Text colour",
}


def pil_to_pixmap(image: Any) -> QPixmap:
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    pixmap = QPixmap()
    pixmap.loadFromData(buffer.getvalue(), "PNG")
    return pixmap


class IconEditorWindow(QMainWindow):
    def __init__(
        self,
        session: Optional[EditorSession] = None,
        handoff: Optional[HandoffStore] = None,
        projects_base: Optional[Path] = None,
    ) -> None:
        super().__init__()
        self.setWindowTitle("Icon Studio")
        self.resize(DEFAULT_WINDOW_WIDTH, DEFAULT_WINDOW_HEIGHT)

        self.session = session or EditorSession()
        self.handoff = handoff
        self.export_options = ExportOptions(reference_size=self.session.reference_size)
        self.project_path: Optional[Path] = None
        self.projects_base = projects_base or Path.cwd()

        self.sliders: Dict[str, Tuple[QSlider, QDoubleSpinBox, int]] = {}
        self.color_buttons: Dict[str, QPushButton] = {}

        self.coalescer = DragCoalescer(self._render_drag_sample, self._commit_drag_result)

        # Renders pending drag samples once the throttle window has passed
        self.drag_timer = QTimer(self)
        self.drag_timer.setInterval(DRAG_RENDER_INTERVAL_MS)
        self.drag_timer.timeout.connect(self.coalescer.poll)

        self.status_timer = QTimer(self)
        self.status_timer.setInterval(STATUS_POLL_MS)
        self.status_timer.timeout.connect(self._refresh_status)

        self._build_ui()
        self._connect_signals()
        self._sync_controls()
        self._refresh_project_list()
        self._sync_export_controls()
        self.refresh_preview()
        self.status_timer.start()

    # ------------------------------------------------------------------
    # UI construction
    # ------------------------------------------------------------------

    def _build_ui(self) -> None:
        central = QWidget(self)
        self.setCentralWidget(central)
        root = QHBoxLayout(central)

        controls_col = QVBoxLayout()
        preview_col = QVBoxLayout()

        # Source
        source_box = QGroupBox("Image", self)
        source_layout = QVBoxLayout(source_box)
        self.btn_load_file = QPushButton("Load Image...")
        url_row = QHBoxLayout()
        self.url_edit = QLineEdit(self)
        self.url_edit.setPlaceholderText("https://... or data:...")
        self.btn_load_url = QPushButton("Load URL")
        url_row.addWidget(self.url_edit, stretch=3)
        url_row.addWidget(self.btn_load_url, stretch=1)
        source_layout.addWidget(self.btn_load_file)
        source_layout.addLayout(url_row)

        # Transform
        transform_box = QGroupBox("Transform", self)
        transform_form = QFormLayout(transform_box)
        for field, (label, min_value, max_value, decimals) in SLIDER_FIELDS.items():
            transform_form.addRow(label, self._create_slider_row(field, min_value, max_value, decimals))

        self.padding_unit_combo = QComboBox(self)
        self.padding_unit_combo.addItems(PADDING_UNITS)
        transform_form.addRow("Padding unit", self.padding_unit_combo)

        self.shape_combo = QComboBox(self)
        self.shape_combo.addItems(ICON_SHAPES)
        transform_form.addRow("Shape", self.shape_combo)

        self.filter_combo = QComboBox(self)
        registry = self.session.registry or get_default_registry()
        for index, kind in enumerate(selectable_filter_kinds(registry)):
            self.filter_combo.addItem(kind)
            if registry.has_operator(kind):
                self.filter_combo.setItemData(index, registry.get_metadata(kind)["description"], Qt.ToolTipRole)
        transform_form.addRow("Filter", self.filter_combo)

        for field, label in COLOR_FIELDS.items():
            button = QPushButton(self)
            self.color_buttons[field] = button
            transform_form.addRow(label, button)

        # Text overlay
        text_box = QGroupBox("Text", self)
        text_form = QFormLayout(text_box)
        self.text_edit = QLineEdit(self)
        self.text_size_spin = QDoubleSpinBox(self)
        self.text_size_spin.setRange(1.0, 256.0)
        self.text_x_spin = QDoubleSpinBox(self)
        self.text_x_spin.setRange(-256.0, 256.0)
        self.text_y_spin = QDoubleSpinBox(self)
        self.text_y_spin.setRange(-256.0, 256.0)
        text_form.addRow("Content", self.text_edit)
        text_form.addRow("Font size", self.text_size_spin)
        text_form.addRow("X offset", self.text_x_spin)
        text_form.addRow("Y offset", self.text_y_spin)

        # History
        history_row = QHBoxLayout()
        self.btn_undo = QPushButton("Undo")
        self.btn_redo = QPushButton("Redo")
        self.btn_reset = QPushButton("Reset")
        history_row.addWidget(self.btn_undo)
        history_row.addWidget(self.btn_redo)
        history_row.addWidget(self.btn_reset)

        # Export
        export_box = QGroupBox("Export", self)
        export_layout = QVBoxLayout(export_box)
        self.chk_sharpen = QCheckBox("Sharpen")
        self.chk_ios = QCheckBox("Include iOS sizes")
        self.chk_store = QCheckBox("Include 512px store icon")
        self.btn_export_zip = QPushButton("Export ZIP...")
        self.btn_export_folder = QPushButton("Export to Folder...")
        export_layout.addWidget(self.chk_sharpen)
        export_layout.addWidget(self.chk_ios)
        export_layout.addWidget(self.chk_store)
        export_layout.addWidget(self.btn_export_zip)
        export_layout.addWidget(self.btn_export_folder)

        project_box = QGroupBox("Projects")
        project_layout = QVBoxLayout(project_box)
        self.combo_projects = QComboBox()
        project_layout.addWidget(self.combo_projects)
        project_row = QHBoxLayout()
        self.btn_new_project = QPushButton("New Project...")
        self.btn_open_project = QPushButton("Open Project...")
        self.btn_save_project = QPushButton("Save Project...")
        project_row.addWidget(self.btn_new_project)
        project_row.addWidget(self.btn_open_project)
        project_row.addWidget(self.btn_save_project)
        project_layout.addLayout(project_row)

        controls_col.addWidget(source_box)
        controls_col.addWidget(transform_box)
        controls_col.addWidget(text_box)
        controls_col.addLayout(history_row)
        controls_col.addWidget(export_box)
        controls_col.addWidget(project_box)
        controls_col.addStretch(1)

        self.label_preview = QLabel("Preview")
        self.label_preview.setAlignment(Qt.AlignCenter)
        self.label_preview.setFixedSize(PREVIEW_LABEL_SIZE, PREVIEW_LABEL_SIZE)
        self.label_preview.setStyleSheet("border: 1px solid #888;")
        self.label_status = QLabel("")
        self.label_status.setWordWrap(True)

        preview_col.addWidget(self.label_preview, alignment=Qt.AlignCenter)
        preview_col.addWidget(self.label_status)
        preview_col.addStretch(1)

        root.addLayout(controls_col, stretch=1)
        root.addLayout(preview_col, stretch=2)

    def _create_slider_row(self, field: str, min_value: float, max_value: float, decimals: int) -> QWidget:
        container = QWidget(self)
        row = QHBoxLayout(container)
        row.setContentsMargins(0, 0, 0, 0)

        scale = 10 ** decimals
        slider = QSlider(Qt.Horizontal, self)
        slider.setMinimum(int(round(min_value * scale)))
        slider.setMaximum(int(round(max_value * scale)))

        spin = QDoubleSpinBox(self)
        spin.setDecimals(decimals)
        spin.setMinimum(min_value)
        spin.setMaximum(max_value)
        spin.setSingleStep(1.0 / scale if decimals else 1.0)

        reset = QPushButton("↺", self)
        reset.setFixedWidth(28)
        reset.setToolTip("Reset to default")

        def on_slider_change(raw: int) -> None:
            value = float(raw) / scale
            spin.blockSignals(True)
            spin.setValue(value)
            spin.blockSignals(False)
            if slider.isSliderDown():
                self.drag_timer.start()
                self.coalescer.sample({field: value})
            else:
                self._apply_settled({field: value})

        def on_spin_change(value: float) -> None:
            slider.blockSignals(True)
            slider.setValue(int(round(value * scale)))
            slider.blockSignals(False)
            self._apply_settled({field: value})

        def on_release() -> None:
            self.drag_timer.stop()
            self.coalescer.release({field: float(slider.value()) / scale})

        slider.valueChanged.connect(on_slider_change)
        slider.sliderReleased.connect(on_release)
        spin.valueChanged.connect(on_spin_change)
        reset.clicked.connect(lambda: self._reset_field(field))

        row.addWidget(slider, stretch=3)
        row.addWidget(spin, stretch=1)
        row.addWidget(reset)
        self.sliders[field] = (slider, spin, scale)
        return container

    def _connect_signals(self) -> None:
        self.btn_load_file.clicked.connect(self.load_file)
        self.btn_load_url.clicked.connect(self.load_url)
        self.url_edit.returnPressed.connect(self.load_url)

        self.padding_unit_combo.currentTextChanged.connect(lambda value: self._apply_settled({"padding_unit": value}))
        self.shape_combo.currentTextChanged.connect(lambda value: self._apply_settled({"icon_shape": value}))
        self.filter_combo.currentTextChanged.connect(lambda value: self._apply_settled({"filter_kind": value}))
        for field, button in self.color_buttons.items():
            button.clicked.connect(self._make_color_picker(field))

        self.text_edit.editingFinished.connect(lambda: self._apply_settled({"text_content": self.text_edit.text()}))
        self.text_size_spin.valueChanged.connect(lambda value: self._apply_settled({"text_font_size": value}))
        self.text_x_spin.valueChanged.connect(lambda value: self._apply_settled({"text_x_offset": value}))
        self.text_y_spin.valueChanged.connect(lambda value: self._apply_settled({"text_y_offset": value}))

        self.btn_undo.clicked.connect(self.undo)
        self.btn_redo.clicked.connect(self.redo)
        self.btn_reset.clicked.connect(self.reset)

        self.btn_export_zip.clicked.connect(self.export_zip)
        self.btn_export_folder.clicked.connect(self.export_folder)
        self.combo_projects.activated.connect(self._open_listed_project)
        self.btn_new_project.clicked.connect(self.new_project)
        self.btn_open_project.clicked.connect(self.open_project)
        self.btn_save_project.clicked.connect(self.save_project)

    def _make_color_picker(self, field: str) -> Callable[[], None]:
        def pick() -> None:
            color = QColorDialog.getColor(QColor(self.color_buttons[field].text()), self, "Pick colour")
            if not color.isValid():
                return
            self._apply_settled({field: (color.red(), color.green(), color.blue())})
        return pick

    # ------------------------------------------------------------------
    # Session plumbing
    # ------------------------------------------------------------------

    def _render_drag_sample(self, changes: Dict[str, Any]) -> None:
        self._show_preview(self.session.preview_change(changes))

    def _commit_drag_result(self, changes: Dict[str, Any]) -> None:
        self.session.commit_change(changes)
        self._update_history_buttons()

    def _apply_settled(self, changes: Dict[str, Any]) -> None:
        try:
            if self.session.model.replace(**changes) == self.session.model:
                return
            self.session.commit_change(changes)
        except ValueError as e:
            self.session.status.error(str(e))
            self._sync_controls()
            return
        self._sync_controls()
        self.refresh_preview()

    def _reset_field(self, field: str) -> None:
        self.session.reset_field(field)
        self._sync_controls()
        self.refresh_preview()

    def _sync_controls(self) -> None:
        """Push the session model into every widget without emitting signals."""
        model = self.session.model
        for field, (slider, spin, scale) in self.sliders.items():
            value = float(getattr(model, field))
            for widget in (slider, spin):
                widget.blockSignals(True)
            slider.setValue(int(round(value * scale)))
            spin.setValue(value)
            for widget in (slider, spin):
                widget.blockSignals(False)

        combos = (
            (self.padding_unit_combo, model.padding_unit),
            (self.shape_combo, model.icon_shape),
            (self.filter_combo, model.filter_kind),
        )
        for combo, value in combos:
            combo.blockSignals(True)
            combo.setCurrentText(value)
            combo.blockSignals(False)

        colors = {
            "background_color": model.background_color,
            "border_color": model.border_color,
            "text_font_color": model.text.font_color,
        }
        for field, color in colors.items():
            hex_color = color_to_hex(color)
            self.color_buttons[field].setText(hex_color)
            self.color_buttons[field].setStyleSheet(f"background-color: {hex_color};")

        text_widgets = (
            (self.text_size_spin, model.text.font_size),
            (self.text_x_spin, model.text.x_offset),
            (self.text_y_spin, model.text.y_offset),
        )
        for spin, value in text_widgets:
            spin.blockSignals(True)
            spin.setValue(value)
            spin.blockSignals(False)
        self.text_edit.setText(model.text.content)
        self._update_history_buttons()

    def _sync_export_controls(self) -> None:
        self.chk_sharpen.setChecked(self.export_options.sharpen)
        self.chk_ios.setChecked(PLATFORM_IOS in self.export_options.platforms)
        self.chk_store.setChecked(PLATFORM_ANDROID_STORE in self.export_options.platforms)

    def _update_history_buttons(self) -> None:
        self.btn_undo.setEnabled(self.session.history.can_undo())
        self.btn_redo.setEnabled(self.session.history.can_redo())

    def refresh_preview(self) -> None:
        self._show_preview(self.session.render_preview())

    def _show_preview(self, image: Any) -> None:
        pixmap = pil_to_pixmap(image)
        if pixmap.isNull():
            self.label_preview.setText("Preview failed")
            return
        self.label_preview.setPixmap(pixmap)

    def _refresh_status(self) -> None:
        message = self.session.status.latest()
        if message is None:
            self.label_status.setText("")
            return
        colors = {STATUS_ERROR: "#b00020", STATUS_SUCCESS: "#1b5e20"}
        self.label_status.setStyleSheet(f"color: {colors.get(message.kind, '#333')};")
        self.label_status.setText(message.text)

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def _after_load(self) -> None:
        self._sync_controls()
        self.refresh_preview()
        self._refresh_status()

    def load_file(self) -> None:
        file_path, _ = QFileDialog.getOpenFileName(self, "Select Image", "", STANDARD_IMAGE_FILTER)
        if not file_path:
            return
        try:
            self.session.load_path(file_path)
        except IconStudioError:
            self._refresh_status()
            return
        self._after_load()

    def load_url(self, url: Optional[str] = None) -> None:
        url = (url or self.url_edit.text()).strip()
        if not url:
            return
        try:
            self.session.load_url(url)
        except IconStudioError:
            self._refresh_status()
            return
        self._after_load()

    def load_reference(self, reference: str) -> None:
        try:
            self.session.load_reference(reference)
        except IconStudioError:
            self._refresh_status()
            return
        self._after_load()

    def check_handoff(self) -> None:
        """Load the image chosen in the gallery, if any."""
        if self.handoff is None:
            return
        url = self.handoff.take()
        if url:
            logger.info(f"Loading handed-off image {url[:100]}")
            self.load_url(url)

    def undo(self) -> None:
        if self.session.undo():
            self._sync_controls()
            self.refresh_preview()

    def redo(self) -> None:
        if self.session.redo():
            self._sync_controls()
            self.refresh_preview()

    def reset(self) -> None:
        self.session.reset()
        self._sync_controls()
        self.refresh_preview()

    def _current_export_options(self) -> ExportOptions:
        platforms = [PLATFORM_ANDROID]
        if self.chk_store.isChecked():
            platforms.append(PLATFORM_ANDROID_STORE)
        if self.chk_ios.isChecked():
            platforms.append(PLATFORM_IOS)
        self.export_options = ExportOptions(
            platforms=platforms,
            sharpen=self.chk_sharpen.isChecked(),
            sharpen_border_mode=self.export_options.sharpen_border_mode,
            archive_name=self.export_options.archive_name,
            reference_size=self.session.reference_size,
        )
        return self.export_options

    def _export_progress_dialog(self) -> QProgressDialog:
        progress = QProgressDialog("Exporting icons...", "Cancel", 0, 0, self)
        progress.setWindowModality(Qt.WindowModal)
        progress.setMinimumDuration(0)
        return progress

    @staticmethod
    def _advance(progress: QProgressDialog, step: ExportProgress) -> None:
        progress.setMaximum(step.total)
        progress.setValue(step.index)
        QApplication.processEvents()

    def export_zip(self) -> None:
        folder = QFileDialog.getExistingDirectory(self, "Select Archive Directory")
        if not folder:
            return
        progress = self._export_progress_dialog()
        try:
            saved = self.session.export_archive(
                folder,
                self._current_export_options(),
                progress=lambda step: self._advance(progress, step),
                should_cancel=progress.wasCanceled,
            )
        except IconStudioError:
            # posted to the status board by the session
            saved = None
        except (OSError, ValueError) as e:
            QMessageBox.warning(self, "Export Failed", str(e))
            saved = None
        finally:
            progress.close()
        if saved is not None:
            self.session.status.success(f"Saved {saved}")
        self._refresh_status()

    def export_folder(self) -> None:
        folder = QFileDialog.getExistingDirectory(self, "Select Export Directory")
        if not folder:
            return
        progress = self._export_progress_dialog()
        try:
            self.session.export(
                self._current_export_options(),
                sinks=[DirectorySink(folder, overwrite=True)],
                progress=lambda step: self._advance(progress, step),
                should_cancel=progress.wasCanceled,
            )
        except IconStudioError:
            # posted to the status board by the session
            pass
        finally:
            progress.close()
        self._refresh_status()

    def _refresh_project_list(self) -> None:
        self.combo_projects.clear()
        for project_file in list_project_files(self.projects_base):
            self.combo_projects.addItem(load_project_name(project_file), str(project_file))

    def _open_listed_project(self, index: int) -> None:
        file_path = self.combo_projects.itemData(index)
        if file_path:
            self._open_project_path(Path(file_path))

    def _open_project_path(self, project_path: Path) -> None:
        origin, model, options = load_project_state(project_path)
        if origin:
            try:
                self.session.load_reference(origin)
            except IconStudioError:
                self._refresh_status()
        self.session.restore(model)
        self.export_options = options
        self._sync_export_controls()
        self.project_path = project_path
        self._after_load()

    def _write_project(self, project_path: Path) -> None:
        origin = self.session.source.origin if self.session.source else None
        save_project_state(project_path, origin, self.session.model, self._current_export_options())
        self.project_path = project_path
        self.session.status.success(f"Project saved to {project_path}")
        self._refresh_project_list()
        self._refresh_status()

    def new_project(self) -> None:
        name, ok = QInputDialog.getText(self, "New Project", "Project name:")
        if not ok:
            return
        self._write_project(create_project_file(self.projects_base, name))

    def open_project(self) -> None:
        start_dir = str(get_projects_dir(self.projects_base))
        file_path, _ = QFileDialog.getOpenFileName(self, "Open Project", start_dir, f"Icon Studio Projects (*{PROJECT_EXTENSION})")
        if not file_path:
            return
        self._open_project_path(Path(file_path))

    def save_project(self) -> None:
        if self.project_path:
            default = str(self.project_path)
        else:
            default = str(get_projects_dir(self.projects_base) / f"icon{PROJECT_EXTENSION}")
        file_path, _ = QFileDialog.getSaveFileName(self, "Save Project", default, f"Icon Studio Projects (*{PROJECT_EXTENSION})")
        if not file_path:
            return
        self._write_project(Path(file_path))


def main(
    argv: Optional[list] = None,
    handoff_dir: Optional[Path] = None,
    source: Optional[str] = None,
    projects_base: Optional[Path] = None,
) -> int:
    app = QApplication(argv if argv is not None else sys.argv)
    handoff = HandoffStore(handoff_dir) if handoff_dir is not None else None
    window = IconEditorWindow(handoff=handoff, projects_base=projects_base)
    window.show()
    window.check_handoff()
    if source:
        window.load_reference(source)
    return app.exec_()
