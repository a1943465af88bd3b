# ruff: noqa: PLR0915
"""Main window: template list, template form and the generate screen."""

from __future__ import annotations

import contextlib

from PySide6.QtCore import Qt
from PySide6.QtGui import QKeySequence
from PySide6.QtWidgets import (
    QButtonGroup,
    QComboBox,
    QFileDialog,
    QFormLayout,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QListWidget,
    QListWidgetItem,
    QMainWindow,
    QMessageBox,
    QProgressBar,
    QPushButton,
    QScrollArea,
    QStackedWidget,
    QVBoxLayout,
    QWidget,
)

from photo_template.logger import get_logger

from .crop_canvas import CropCanvas

_logger = get_logger("main_window")

_PAGE_INDEX = {"list": 0, "create": 1, "edit": 1, "generate": 2}
_IMAGE_FILTER = "Images (*.png *.jpg *.jpeg *.bmp *.gif *.tiff *.webp)"


def show_delete_confirmation(parent, name: str) -> bool:
    """Ask before deleting a template. Returns True if the user confirmed."""
    msg_box = QMessageBox(parent)
    msg_box.setWindowTitle("Delete template")
    msg_box.setIcon(QMessageBox.Icon.Warning)
    msg_box.setText(f"Delete the template \"{name}\"?")
    msg_box.setInformativeText("This cannot be undone.")

    yes_btn = msg_box.addButton("&Yes", QMessageBox.ButtonRole.YesRole)
    yes_btn.setObjectName("button-yes")
    with contextlib.suppress(Exception):
        yes_btn.setShortcut(QKeySequence("Y"))
    no_btn = msg_box.addButton("&No", QMessageBox.ButtonRole.NoRole)
    no_btn.setObjectName("button-no")
    with contextlib.suppress(Exception):
        no_btn.setShortcut(QKeySequence("N"))

    msg_box.setDefaultButton(no_btn)
    msg_box.setEscapeButton(no_btn)
    msg_box.exec()
    return msg_box.clickedButton() is yes_btn


class MainWindow(QMainWindow):
    def __init__(self, backend, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self.setWindowTitle("Photo Templates")
        self.resize(1000, 760)

        self.backend = backend
        self._view = backend.view
        self._editor = backend.editor
        self._generation = backend.generation

        self.message_label = QLabel("")
        self.message_label.setWordWrap(True)
        self.pages = QStackedWidget()
        self.pages.addWidget(self._build_list_page())
        self.pages.addWidget(self._build_form_page())
        self.pages.addWidget(self._build_generate_page())

        central = QWidget()
        layout = QVBoxLayout(central)
        layout.addWidget(self.message_label)
        layout.addWidget(self.pages, 1)
        self.setCentralWidget(central)

        self._view.modeChanged.connect(self._on_mode_changed)
        self._view.templatesChanged.connect(self._on_templates_changed)
        self._view.messageChanged.connect(self._on_message_changed)
        self._view.messageLevelChanged.connect(self._on_message_changed)
        self._editor.nameChanged.connect(self._on_name_changed)
        self._editor.templateImgChanged.connect(self._on_template_img_changed)
        self._editor.activeRegionChanged.connect(self._on_active_region_changed)
        self._generation.runningChanged.connect(self._on_running_changed)
        self._generation.progressChanged.connect(self.progress_bar.setValue)
        self._generation.archivePathChanged.connect(self._on_archive_changed)
        self._generation.sourceFolderChanged.connect(self.folder_edit.setText)
        self._generation.selectedTemplateIdChanged.connect(self._on_selected_template_changed)

        self._on_mode_changed(self._view.mode)
        self._on_running_changed(False)
        self._on_archive_changed("")

    # ---- pages ----
    def _build_list_page(self) -> QWidget:
        page = QWidget()
        self.create_btn = QPushButton("New template")
        self.generate_btn = QPushButton("Generate images")
        self.create_btn.clicked.connect(lambda: self.backend.dispatch("openCreate"))
        self.generate_btn.clicked.connect(lambda: self.backend.dispatch("openGenerate"))

        self.template_list = QListWidget()
        self.template_list.itemDoubleClicked.connect(lambda _item: self._edit_selected())
        self.edit_btn = QPushButton("Edit")
        self.delete_btn = QPushButton("Delete")
        self.edit_btn.clicked.connect(self._edit_selected)
        self.delete_btn.clicked.connect(self._delete_selected)

        top = QHBoxLayout()
        top.addWidget(self.create_btn)
        top.addWidget(self.generate_btn)
        top.addStretch()
        row = QHBoxLayout()
        row.addStretch()
        row.addWidget(self.edit_btn)
        row.addWidget(self.delete_btn)

        layout = QVBoxLayout(page)
        layout.addLayout(top)
        layout.addWidget(self.template_list, 1)
        layout.addLayout(row)
        return page

    def _build_form_page(self) -> QWidget:
        page = QWidget()
        self.name_edit = QLineEdit()
        self.name_edit.setPlaceholderText("Template name")
        self.name_edit.textEdited.connect(lambda text: self.backend.dispatch("setName", {"value": text}))

        self.image_label = QLabel("No image")
        image_btn = QPushButton("Choose image...")
        image_btn.clicked.connect(self._choose_template_image)

        self.photo_mode_btn = QPushButton("Photo area (red)")
        self.number_mode_btn = QPushButton("Number area (blue)")
        self.region_group = QButtonGroup(page)
        self.region_group.setExclusive(True)
        for btn, region in ((self.photo_mode_btn, "photo"), (self.number_mode_btn, "number")):
            btn.setCheckable(True)
            self.region_group.addButton(btn)
            btn.clicked.connect(lambda _checked=False, r=region: self.backend.dispatch("setCropMode", {"region": r}))
        self.photo_mode_btn.setChecked(True)

        self.canvas = CropCanvas(self.backend)
        scroll = QScrollArea()
        scroll.setWidget(self.canvas)
        scroll.setAlignment(Qt.AlignmentFlag.AlignCenter)

        save_btn = QPushButton("Save")
        cancel_btn = QPushButton("Cancel")
        save_btn.clicked.connect(lambda: self.backend.dispatch("submit"))
        cancel_btn.clicked.connect(lambda: self.backend.dispatch("backToList"))

        form = QFormLayout()
        form.addRow("Name", self.name_edit)
        image_row = QHBoxLayout()
        image_row.addWidget(self.image_label, 1)
        image_row.addWidget(image_btn)
        form.addRow("Image", image_row)
        mode_row = QHBoxLayout()
        mode_row.addWidget(self.photo_mode_btn)
        mode_row.addWidget(self.number_mode_btn)
        mode_row.addStretch()
        form.addRow("Draw", mode_row)

        btns = QHBoxLayout()
        btns.addStretch()
        btns.addWidget(save_btn)
        btns.addWidget(cancel_btn)

        layout = QVBoxLayout(page)
        layout.addLayout(form)
        layout.addWidget(scroll, 1)
        layout.addLayout(btns)
        return page

    def _build_generate_page(self) -> QWidget:
        page = QWidget()
        self.template_combo = QComboBox()
        self.template_combo.currentIndexChanged.connect(self._on_combo_changed)

        self.folder_edit = QLineEdit()
        self.folder_edit.setReadOnly(True)
        self.browse_btn = QPushButton("Browse...")
        self.browse_btn.clicked.connect(self._choose_source_folder)

        self.progress_bar = QProgressBar()
        self.progress_bar.setRange(0, 100)
        self.start_btn = QPushButton("Generate")
        self.archive_btn = QPushButton("Open archive folder")
        self.back_btn = QPushButton("Back")
        self.start_btn.clicked.connect(lambda: self.backend.dispatch("generate"))
        self.archive_btn.clicked.connect(lambda: self.backend.dispatch("openArchive"))
        self.back_btn.clicked.connect(lambda: self.backend.dispatch("backToList"))

        form = QFormLayout()
        form.addRow("Template", self.template_combo)
        folder_row = QHBoxLayout()
        folder_row.addWidget(self.folder_edit)
        folder_row.addWidget(self.browse_btn)
        form.addRow("Photos", folder_row)

        btns = QHBoxLayout()
        btns.addStretch()
        btns.addWidget(self.start_btn)
        btns.addWidget(self.archive_btn)
        btns.addWidget(self.back_btn)

        layout = QVBoxLayout(page)
        layout.addLayout(form)
        layout.addWidget(self.progress_bar)
        layout.addStretch()
        layout.addLayout(btns)
        return page

    # ---- list actions ----
    def _selected_template(self) -> dict | None:
        item = self.template_list.currentItem()
        if item is None:
            return None
        return item.data(Qt.ItemDataRole.UserRole)

    def _edit_selected(self) -> None:
        row = self._selected_template()
        if row is not None:
            self.backend.dispatch("openEdit", {"id": row["id"]})

    def _delete_selected(self) -> None:
        row = self._selected_template()
        if row is None:
            return
        if not show_delete_confirmation(self, row["name"]):
            _logger.debug("delete canceled for template %s", row["id"])
            return
        self.backend.dispatch("deleteTemplate", {"id": row["id"], "confirmed": True})

    # ---- form actions ----
    def _choose_template_image(self) -> None:
        path, _ = QFileDialog.getOpenFileName(self, "Choose template image", "", _IMAGE_FILTER)
        if path:
            self.backend.dispatch("uploadTemplateImage", {"path": path})

    # ---- generate actions ----
    def _choose_source_folder(self) -> None:
        start_dir = self.folder_edit.text() or self.backend.settings_manager.last_source_dir or ""
        path = QFileDialog.getExistingDirectory(self, "Select photo folder", start_dir)
        if path:
            self.backend.dispatch("setSourceFolder", {"path": path})

    def _on_combo_changed(self, index: int) -> None:
        if index < 0:
            return
        self.backend.dispatch("selectTemplate", {"id": self.template_combo.itemData(index)})

    # ---- state -> widgets ----
    def _on_mode_changed(self, mode: str) -> None:
        self.pages.setCurrentIndex(_PAGE_INDEX.get(mode, 0))
        if mode == "generate":
            self._on_combo_changed(self.template_combo.currentIndex())
        self._on_message_changed()

    def _on_templates_changed(self) -> None:
        rows = self._view.templates
        self.template_list.clear()
        for row in rows:
            item = QListWidgetItem(str(row["name"]))
            item.setData(Qt.ItemDataRole.UserRole, row)
            self.template_list.addItem(item)

        self.template_combo.blockSignals(True)
        try:
            self.template_combo.clear()
            for row in rows:
                self.template_combo.addItem(str(row["name"]), row["id"])
        finally:
            self.template_combo.blockSignals(False)

        has_rows = bool(rows)
        self.edit_btn.setEnabled(has_rows)
        self.delete_btn.setEnabled(has_rows)

    def _on_message_changed(self, *_args) -> None:
        text = self._view.message
        color = "#d32f2f" if self._view.messageLevel == "error" else "#2e7d32"
        self.message_label.setStyleSheet(f"color: {color};")
        self.message_label.setText(text)
        self.message_label.setVisible(bool(text))

    def _on_name_changed(self, name: str) -> None:
        if self.name_edit.text() != name:
            self.name_edit.setText(name)

    def _on_template_img_changed(self, path: str) -> None:
        self.image_label.setText(path or "No image")

    def _on_active_region_changed(self, region: str) -> None:
        btn = self.number_mode_btn if region == "number" else self.photo_mode_btn
        btn.setChecked(True)

    def _on_selected_template_changed(self, template_id: int) -> None:
        index = self.template_combo.findData(template_id)
        if index >= 0 and index != self.template_combo.currentIndex():
            self.template_combo.blockSignals(True)
            self.template_combo.setCurrentIndex(index)
            self.template_combo.blockSignals(False)

    def _on_running_changed(self, running: bool) -> None:
        self.start_btn.setEnabled(not running)
        self.browse_btn.setEnabled(not running)
        self.template_combo.setEnabled(not running)
        self.start_btn.setText("Generating..." if running else "Generate")

    def _on_archive_changed(self, path: str) -> None:
        self.archive_btn.setEnabled(bool(path))

    def closeEvent(self, event) -> None:  # type: ignore[override]
        try:
            self.backend.shutdown()
        except Exception as e:
            _logger.error("backend shutdown failed: %s", e)
        super().closeEvent(event)
