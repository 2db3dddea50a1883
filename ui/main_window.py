"""Main application window for ComicTranslate."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from PySide6 import QtCore, QtGui, QtWidgets

from config import APP_NAME, ARCHIVE_EXTENSIONS, IMAGE_EXTENSIONS
from comic.models import DisplayedImage, TranslatedBubble
from comic.session import ComicSession
from export.page_export import EXPORT_FILTERS, export_page
from languages import list_target_langs
from settings_manager import load_effective_settings
from translator import ComicTranslator
from ui.dialogs import AboutDialog, SettingsDialog, tier_color
from ui.page_canvas import PageCanvas

logger = logging.getLogger(__name__)

OPEN_FILTERS = (
    "Comics and images ({patterns});;Comic archives (*.cbz *.cbr *.zip);;"
    "Images (*.jpg *.jpeg *.png *.webp *.gif);;All files (*)"
).format(patterns=" ".join(f"*{ext}" for ext in ARCHIVE_EXTENSIONS + IMAGE_EXTENSIONS))


class MainWindow(QtWidgets.QMainWindow):
    """
    Main window: page canvas on the right, sidebar with navigation, language,
    translation and export controls on the left. All state lives in ComicSession;
    the window re-renders from it on every stateChanged.
    """

    def __init__(
        self,
        session: Optional[ComicSession] = None,
        settings: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__()
        self.setWindowTitle(APP_NAME)
        self.settings_cache: Dict[str, Any] = settings if settings is not None else load_effective_settings()

        translation = self.settings_cache.get("translation", {})
        appearance = self.settings_cache.get("appearance", {})
        self.session = session or ComicSession(
            ComicTranslator.from_settings(self.settings_cache),
            target_language=translation.get("target_language") or "",
            parent=self,
        )
        self.session.set_show_bubbles(bool(appearance.get("show_bubbles", True)))

        self._shown_image: Optional[DisplayedImage] = None
        self._shown_bubbles: Optional[List[TranslatedBubble]] = None
        self._shown_pages: Optional[list] = None

        self._init_actions()
        self._init_menu_bar()
        self._init_central_widgets()
        self._init_status_bar()

        self.setAcceptDrops(True)
        self.session.stateChanged.connect(self._sync_from_session)
        self.session.busyChanged.connect(self._on_busy_changed)

        self.resize(1200, 850)
        self._sync_from_session()

    # -------------------- init UI --------------------
    def _init_actions(self) -> None:
        self.action_open = QtGui.QAction("Open...", self)
        self.action_open.setShortcut(QtGui.QKeySequence.Open)
        self.action_open.triggered.connect(self._on_open_triggered)

        self.action_export_page = QtGui.QAction("Export page...", self)
        self.action_export_page.setShortcut(QtGui.QKeySequence("Ctrl+E"))
        self.action_export_page.triggered.connect(self._on_export_current_page)

        self.action_close_file = QtGui.QAction("Close file", self)
        self.action_close_file.setShortcut(QtGui.QKeySequence.Close)
        self.action_close_file.triggered.connect(self.session.reset)

        self.action_exit = QtGui.QAction("Exit", self)
        self.action_exit.triggered.connect(self.close)

        self.action_toggle_bubbles = QtGui.QAction("Show translations", self)
        self.action_toggle_bubbles.setCheckable(True)
        self.action_toggle_bubbles.setChecked(self.session.show_bubbles)
        self.action_toggle_bubbles.setShortcut(QtGui.QKeySequence("Ctrl+T"))
        self.action_toggle_bubbles.triggered.connect(self.session.set_show_bubbles)

        self.action_prev_page = QtGui.QAction("Previous page", self)
        self.action_prev_page.setShortcut(QtGui.QKeySequence(QtCore.Qt.Key_Left))
        self.action_prev_page.triggered.connect(self.session.previous_page)
        self.action_next_page = QtGui.QAction("Next page", self)
        self.action_next_page.setShortcut(QtGui.QKeySequence(QtCore.Qt.Key_Right))
        self.action_next_page.triggered.connect(self.session.next_page)
        for action in (self.action_prev_page, self.action_next_page):
            action.setShortcutContext(QtCore.Qt.WindowShortcut)
            self.addAction(action)

        self.action_open_settings = QtGui.QAction("Settings...", self)
        self.action_open_settings.triggered.connect(self._open_settings_dialog)

        self.action_about = QtGui.QAction("About", self)
        self.action_about.triggered.connect(self._on_about_triggered)

    def _init_menu_bar(self) -> None:
        menu_bar = self.menuBar()

        self.menu_file = menu_bar.addMenu("File")
        self.menu_file.addAction(self.action_open)
        self.menu_file.addAction(self.action_export_page)
        self.menu_file.addAction(self.action_close_file)
        self.menu_file.addSeparator()
        self.menu_file.addAction(self.action_exit)

        self.menu_view = menu_bar.addMenu("View")
        self.menu_view.addAction(self.action_toggle_bubbles)
        self.menu_view.addSeparator()
        self.menu_view.addAction(self.action_prev_page)
        self.menu_view.addAction(self.action_next_page)

        self.menu_settings = menu_bar.addMenu("Settings")
        self.menu_settings.addAction(self.action_open_settings)

        self.menu_help = menu_bar.addMenu("Help")
        self.menu_help.addAction(self.action_about)

    def _init_central_widgets(self) -> None:
        self.canvas = PageCanvas(self)

        sidebar = QtWidgets.QWidget(self)
        sidebar.setObjectName("sidebar")
        sidebar.setMinimumWidth(260)
        sidebar.setMaximumWidth(340)
        side = QtWidgets.QVBoxLayout(sidebar)
        side.setContentsMargins(12, 12, 12, 12)
        side.setSpacing(8)

        self.file_label = QtWidgets.QLabel(self)
        self.file_label.setWordWrap(True)
        self.file_label.setObjectName("fileLabel")
        self.open_button = QtWidgets.QPushButton("Open comic...", self)
        self.open_button.clicked.connect(self._on_open_triggered)
        side.addWidget(self.file_label)
        side.addWidget(self.open_button)

        # Page navigation
        self.nav_box = QtWidgets.QGroupBox("Pages", self)
        nav_layout = QtWidgets.QVBoxLayout(self.nav_box)
        nav_row = QtWidgets.QHBoxLayout()
        self.prev_button = QtWidgets.QToolButton(self)
        self.prev_button.setArrowType(QtCore.Qt.LeftArrow)
        self.prev_button.setToolTip("Previous page (Left)")
        self.prev_button.clicked.connect(self.session.previous_page)
        self.page_label = QtWidgets.QLabel(self)
        self.page_label.setAlignment(QtCore.Qt.AlignCenter)
        self.next_button = QtWidgets.QToolButton(self)
        self.next_button.setArrowType(QtCore.Qt.RightArrow)
        self.next_button.setToolTip("Next page (Right)")
        self.next_button.clicked.connect(self.session.next_page)
        nav_row.addWidget(self.prev_button)
        nav_row.addWidget(self.page_label, 1)
        nav_row.addWidget(self.next_button)
        nav_layout.addLayout(nav_row)
        self.page_list = QtWidgets.QListWidget(self)
        self.page_list.setFocusPolicy(QtCore.Qt.ClickFocus)
        self.page_list.currentRowChanged.connect(self._on_page_row_changed)
        nav_layout.addWidget(self.page_list)
        side.addWidget(self.nav_box, 1)

        # Translation controls
        self.lang_combo = QtWidgets.QComboBox(self)
        for code, label in list_target_langs():
            self.lang_combo.addItem(label, userData=code)
        self.lang_combo.currentIndexChanged.connect(self._on_lang_changed)
        lang_form = QtWidgets.QFormLayout()
        lang_form.addRow("Translate to", self.lang_combo)
        side.addLayout(lang_form)

        self.translate_button = QtWidgets.QPushButton("Translate page", self)
        self.translate_button.setObjectName("primaryButton")
        self.translate_button.clicked.connect(self._on_translate_clicked)
        self.toggle_bubbles_button = QtWidgets.QPushButton(self)
        self.toggle_bubbles_button.clicked.connect(
            lambda: self.session.set_show_bubbles(not self.session.show_bubbles)
        )
        self.export_button = QtWidgets.QPushButton("Export page...", self)
        self.export_button.clicked.connect(self._on_export_current_page)
        self.close_button = QtWidgets.QPushButton("Close file", self)
        self.close_button.clicked.connect(self.session.reset)
        for button in (self.translate_button, self.toggle_bubbles_button, self.export_button, self.close_button):
            side.addWidget(button)

        # Page stats
        self.stats_box = QtWidgets.QGroupBox("Page stats", self)
        stats_form = QtWidgets.QFormLayout(self.stats_box)
        self.bubble_count_label = QtWidgets.QLabel(self)
        self.confidence_label = QtWidgets.QLabel(self)
        stats_form.addRow("Bubbles", self.bubble_count_label)
        stats_form.addRow("Avg. confidence", self.confidence_label)
        side.addWidget(self.stats_box)

        # Error panel
        self.error_frame = QtWidgets.QFrame(self)
        self.error_frame.setObjectName("errorPanel")
        self.error_frame.setStyleSheet(
            "QFrame#errorPanel { background: #fdecea; border: 1px solid #c62828; border-radius: 6px; }"
            "QFrame#errorPanel QLabel { color: #8e1b1b; border: none; }"
        )
        error_layout = QtWidgets.QHBoxLayout(self.error_frame)
        self.error_label = QtWidgets.QLabel(self.error_frame)
        self.error_label.setWordWrap(True)
        self.error_dismiss_button = QtWidgets.QToolButton(self.error_frame)
        self.error_dismiss_button.setText("✕")
        self.error_dismiss_button.setAutoRaise(True)
        self.error_dismiss_button.setToolTip("Dismiss")
        self.error_dismiss_button.clicked.connect(self.session.dismiss_error)
        error_layout.addWidget(self.error_label, 1)
        error_layout.addWidget(self.error_dismiss_button, 0, QtCore.Qt.AlignTop)
        side.addWidget(self.error_frame)

        splitter = QtWidgets.QSplitter(QtCore.Qt.Horizontal, self)
        splitter.addWidget(sidebar)
        splitter.addWidget(self.canvas)
        splitter.setStretchFactor(0, 0)
        splitter.setStretchFactor(1, 1)
        splitter.setChildrenCollapsible(False)
        self.setCentralWidget(splitter)

    def _init_status_bar(self) -> None:
        bar = self.statusBar()
        bar.showMessage("Ready")
        self._status_progress_bar = QtWidgets.QProgressBar(self)
        self._status_progress_bar.setRange(0, 1)
        self._status_progress_bar.setFixedWidth(140)
        self._status_progress_bar.setMaximumHeight(14)
        self._status_progress_bar.setVisible(False)
        bar.addPermanentWidget(self._status_progress_bar)

    # -------------------- helpers --------------------
    def _set_status_busy(self, busy: bool, message: str | None = None) -> None:
        """Show a small progress bar in the status bar to indicate ongoing work."""
        if message:
            self.statusBar().showMessage(message)
        self._status_progress_bar.setVisible(busy)
        self._status_progress_bar.setRange(0, 0 if busy else 1)
        self.canvas.set_busy(busy, message or "")
        QtWidgets.QApplication.processEvents(QtCore.QEventLoop.ProcessEventsFlag.ExcludeUserInputEvents)

    def _on_busy_changed(self, busy: bool, message: str) -> None:
        self._set_status_busy(busy, message)
        if not busy:
            self.statusBar().showMessage(self._idle_status_text())

    def _idle_status_text(self) -> str:
        session = self.session
        if session.displayed_image is None:
            return "Ready"
        if session.bubbles:
            return f"{len(session.bubbles)} bubbles translated into {session.target_language_label}"
        return session.source_name or "Ready"

    def _sync_from_session(self) -> None:
        """Re-render every widget from the session state."""
        session = self.session

        if session.displayed_image is not self._shown_image:
            self._shown_image = session.displayed_image
            self.canvas.set_image(session.displayed_image)
        if session.bubbles is not self._shown_bubbles:
            self._shown_bubbles = session.bubbles
            self.canvas.set_bubbles(session.bubbles)
        self.canvas.set_bubbles_visible(session.show_bubbles)
        if session.pages is not self._shown_pages:
            self._shown_pages = session.pages
            self._populate_page_list()

        has_image = session.displayed_image is not None
        title = session.archive_name or session.source_name
        self.setWindowTitle(f"{APP_NAME} - {title}" if title else APP_NAME)
        if session.archive_name:
            self.file_label.setText(f"<b>{session.archive_name}</b><br>{session.source_name or ''}")
        else:
            self.file_label.setText(f"<b>{session.source_name}</b>" if session.source_name else "No file open")

        self.nav_box.setVisible(session.is_archive)
        self.page_label.setText(session.page_label)
        self.prev_button.setEnabled(session.can_go_previous)
        self.next_button.setEnabled(session.can_go_next)
        self.action_prev_page.setEnabled(session.can_go_previous)
        self.action_next_page.setEnabled(session.can_go_next)
        self.page_list.blockSignals(True)
        self.page_list.setCurrentRow(session.current_page_index if session.is_archive else -1)
        self.page_list.blockSignals(False)

        idx = self.lang_combo.findData(session.target_language)
        if idx >= 0 and idx != self.lang_combo.currentIndex():
            self.lang_combo.blockSignals(True)
            self.lang_combo.setCurrentIndex(idx)
            self.lang_combo.blockSignals(False)

        self.translate_button.setVisible(not session.bubbles)
        self.translate_button.setEnabled(session.can_translate)
        self.translate_button.setText("Translating..." if session.is_processing else "Translate page")
        self.toggle_bubbles_button.setVisible(bool(session.bubbles))
        self.toggle_bubbles_button.setText("Hide text" if session.show_bubbles else "Show text")
        self.action_toggle_bubbles.setChecked(session.show_bubbles)
        self.export_button.setEnabled(has_image)
        self.action_export_page.setEnabled(has_image)
        self.close_button.setEnabled(has_image or session.is_archive)
        self.action_close_file.setEnabled(has_image or session.is_archive)

        self.stats_box.setVisible(bool(session.bubbles))
        if session.bubbles:
            score = session.average_confidence
            self.bubble_count_label.setText(str(len(session.bubbles)))
            self.confidence_label.setText(f"{score}%")
            self.confidence_label.setStyleSheet(f"color: {tier_color(score)}; font-weight: 600;")

        self.error_frame.setVisible(bool(session.error))
        self.error_label.setText(session.error or "")

    def _populate_page_list(self) -> None:
        self.page_list.blockSignals(True)
        self.page_list.clear()
        for entry in self.session.pages:
            item = QtWidgets.QListWidgetItem(f"{entry.index + 1}. {Path(entry.file_name).name}")
            item.setToolTip(entry.file_name)
            self.page_list.addItem(item)
        self.page_list.blockSignals(False)

    # -------------------- file handling --------------------
    def open_path(self, path: Path) -> None:
        """Open a comic archive or image file in the current session."""
        logger.info("Opening %s", path)
        self.session.select_file(path)

    def _on_open_triggered(self) -> None:
        path, _ = QtWidgets.QFileDialog.getOpenFileName(self, "Open comic", "", OPEN_FILTERS)
        if path:
            self.open_path(Path(path))

    def _on_export_current_page(self) -> None:
        session = self.session
        if session.displayed_image is None:
            QtWidgets.QMessageBox.information(self, "Export page", "Open a page before exporting.")
            return
        stem = Path(session.source_name or "page").stem
        path, selected_filter = QtWidgets.QFileDialog.getSaveFileName(
            self, "Export page", f"{stem}_translated.png", EXPORT_FILTERS
        )
        if not path:
            return
        output = Path(path)
        if not output.suffix:
            output = output.with_suffix(".pdf" if "pdf" in selected_filter.lower() else ".png")
        shown = self.canvas.image_rect()
        try:
            export_page(
                session.displayed_image,
                session.bubbles,
                output,
                show_bubbles=session.show_bubbles,
                layout_size=None if shown.isEmpty() else shown.size(),
            )
        except (ValueError, OSError) as exc:
            logger.error("Export failed: %s", exc)
            QtWidgets.QMessageBox.critical(self, "Export page", f"Export failed:\n{exc}")
            return
        self.statusBar().showMessage(f"Exported to {output}", 5000)

    # -------------------- slots --------------------
    def _on_page_row_changed(self, row: int) -> None:
        if row >= 0 and row != self.session.current_page_index:
            self.session.go_to_page(row)

    def _on_lang_changed(self, index: int) -> None:
        code = self.lang_combo.itemData(index)
        if code:
            self.session.set_target_language(code)

    def _on_translate_clicked(self) -> None:
        translator = self.session.translator
        if isinstance(translator, ComicTranslator) and not translator.api_key:
            answer = QtWidgets.QMessageBox.question(
                self,
                "Translate page",
                "No API key is configured. Open settings to add one?",
            )
            if answer == QtWidgets.QMessageBox.StandardButton.Yes:
                self._open_settings_dialog()
            return
        self.session.translate_current_page()

    def _open_settings_dialog(self) -> bool:
        """Open the settings dialog; returns True if settings changed."""
        old_settings = dict(self.settings_cache)
        dialog = SettingsDialog(parent=self)
        dialog.settingsApplied.connect(self._apply_settings_snapshot)
        result = dialog.exec()
        updated_settings = dialog.get_updated_settings()
        if result == QtWidgets.QDialog.DialogCode.Accepted or updated_settings != old_settings:
            self._apply_settings_snapshot(updated_settings)
            return True
        return False

    def _apply_settings_snapshot(self, settings: Dict[str, Any]) -> None:
        self.settings_cache = dict(settings)
        self.session.translator = ComicTranslator.from_settings(self.settings_cache)
        target = self.settings_cache.get("translation", {}).get("target_language")
        if target:
            try:
                self.session.set_target_language(target)
            except ValueError:
                logger.warning("Ignoring unsupported target language %r from settings", target)
        self.session.set_show_bubbles(bool(self.settings_cache.get("appearance", {}).get("show_bubbles", True)))
        self._apply_theme()
        for overlay in self.canvas.overlays:
            overlay.refit()

    def _apply_theme(self) -> None:
        """Apply light/dark theme from settings to the application."""
        app_instance = QtWidgets.QApplication.instance()
        if app_instance is None:
            return
        theme = self.settings_cache.get("appearance", {}).get("theme", "system")
        from main import apply_theme

        apply_theme(app_instance, theme)

    def _on_about_triggered(self) -> None:
        AboutDialog(self).exec()

    # -------------------- drag & drop --------------------
    def dragEnterEvent(self, event: QtGui.QDragEnterEvent) -> None:  # type: ignore[override]
        if self._dropped_path(event.mimeData()) is not None:
            event.acceptProposedAction()
        else:
            event.ignore()

    def dropEvent(self, event: QtGui.QDropEvent) -> None:  # type: ignore[override]
        path = self._dropped_path(event.mimeData())
        if path is None:
            event.ignore()
            return
        event.acceptProposedAction()
        self.open_path(path)

    @staticmethod
    def _dropped_path(mime: QtCore.QMimeData) -> Optional[Path]:
        if not mime.hasUrls():
            return None
        for url in mime.urls():
            if url.isLocalFile():
                return Path(url.toLocalFile())
        return None

    def closeEvent(self, event: QtGui.QCloseEvent) -> None:  # type: ignore[override]
        """Release the open archive before the window goes away."""
        self.session.close()
        super().closeEvent(event)
