"""Dialogs for ComicTranslate."""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from PySide6 import QtCore, QtGui, QtWidgets

from config import APP_NAME, APP_VERSION, DEFAULT_MODEL, DEFAULT_TEMPERATURE, app_config
from comic.models import TranslatedBubble, confidence_tier
from languages import list_target_langs
from settings_manager import DEFAULT_SETTINGS, load_effective_settings, save_global_settings
from ui.overlay_layout import pick_comic_font

logger = logging.getLogger(__name__)

TIER_COLORS = {
    "high": "#2e7d32",
    "medium": "#f9a825",
    "low": "#c62828",
}


def tier_color(score: Optional[int]) -> str:
    """Badge colour for a confidence score."""
    return TIER_COLORS[confidence_tier(score)]


# -------------------- basic dialogs --------------------
class BubbleDetailDialog(QtWidgets.QDialog):
    """Shows one bubble's translation, original text and confidence."""

    def __init__(self, bubble: TranslatedBubble, parent: Optional[QtWidgets.QWidget] = None) -> None:
        super().__init__(parent)
        self.bubble = bubble
        self.setWindowTitle("Bubble details")
        self.setMinimumWidth(360)

        translated = QtWidgets.QLabel(bubble.translated_text, self)
        translated.setWordWrap(True)
        translated.setTextInteractionFlags(QtCore.Qt.TextInteractionFlag.TextSelectableByMouse)
        font = translated.font()
        font.setPointSize(font.pointSize() + 3)
        font.setBold(True)
        translated.setFont(font)

        original = QtWidgets.QLabel(bubble.original_text or "(none)", self)
        original.setWordWrap(True)
        original.setTextInteractionFlags(QtCore.Qt.TextInteractionFlag.TextSelectableByMouse)

        score = bubble.confidence if bubble.confidence is not None else 0
        self.badge = QtWidgets.QLabel(f"Confidence: {score}%", self)
        self.badge.setObjectName("confidenceBadge")
        self.badge.setProperty("tier", confidence_tier(bubble.confidence))
        self.badge.setStyleSheet(
            f"QLabel#confidenceBadge {{ background: {tier_color(bubble.confidence)}; color: white;"
            " border-radius: 8px; padding: 2px 8px; }"
        )

        buttons = QtWidgets.QDialogButtonBox(QtWidgets.QDialogButtonBox.Close, parent=self)
        buttons.rejected.connect(self.reject)

        form = QtWidgets.QFormLayout()
        form.addRow("Translation:", translated)
        form.addRow("Original:", original)

        badge_row = QtWidgets.QHBoxLayout()
        badge_row.addWidget(self.badge)
        badge_row.addStretch(1)

        layout = QtWidgets.QVBoxLayout(self)
        layout.addLayout(form)
        layout.addLayout(badge_row)
        layout.addWidget(buttons)


class AboutDialog(QtWidgets.QDialog):
    """Simple About dialog for the application."""

    def __init__(self, parent: Optional[QtWidgets.QWidget] = None) -> None:
        super().__init__(parent)
        self.setWindowTitle(f"About {APP_NAME}")
        label = QtWidgets.QLabel(
            f"<b>{APP_NAME}</b> {APP_VERSION}<br>"
            "Open a comic page or a .cbz/.zip archive and translate its speech bubbles "
            "with a vision-language model.",
            self,
        )
        label.setWordWrap(True)
        label.setAlignment(QtCore.Qt.AlignCenter)
        layout = QtWidgets.QVBoxLayout(self)
        layout.addWidget(label)
        buttons = QtWidgets.QDialogButtonBox(QtWidgets.QDialogButtonBox.Ok, parent=self)
        buttons.accepted.connect(self.accept)
        layout.addWidget(buttons)


# -------------------- settings tabs --------------------
class GeneralSettingsTab(QtWidgets.QWidget):
    """General settings: log level."""

    LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")

    def __init__(self, settings: Dict[str, Any], parent: Optional[QtWidgets.QWidget] = None) -> None:
        super().__init__(parent)
        base = DEFAULT_SETTINGS.get("general", {})
        log_level = str(settings.get("log_level", base.get("log_level", "INFO"))).upper()

        self.log_level_combo = QtWidgets.QComboBox(self)
        for level in self.LOG_LEVELS:
            self.log_level_combo.addItem(level, userData=level)
        idx = self.log_level_combo.findData(log_level)
        self.log_level_combo.setCurrentIndex(idx if idx >= 0 else 1)

        form = QtWidgets.QFormLayout()
        form.addRow("Log level (applies on restart)", self.log_level_combo)

        layout = QtWidgets.QVBoxLayout(self)
        layout.setContentsMargins(12, 12, 12, 12)
        layout.addLayout(form)
        layout.addStretch(1)

    def get_values(self) -> Dict[str, Any]:
        return {"log_level": self.log_level_combo.currentData() or "INFO"}


class TranslationSettingsTab(QtWidgets.QWidget):
    """Translation service: API key, model, temperature, default target language."""

    def __init__(self, settings: Dict[str, Any], parent: Optional[QtWidgets.QWidget] = None) -> None:
        super().__init__(parent)
        base = DEFAULT_SETTINGS.get("translation", {})

        self.api_key_edit = QtWidgets.QLineEdit(str(settings.get("api_key") or ""), self)
        self.api_key_edit.setEchoMode(QtWidgets.QLineEdit.Password)
        self.api_key_edit.setPlaceholderText("Leave empty to use API_KEY / GEMINI_API_KEY")

        self.model_edit = QtWidgets.QLineEdit(str(settings.get("model") or DEFAULT_MODEL), self)

        self.temperature_spin = QtWidgets.QDoubleSpinBox(self)
        self.temperature_spin.setRange(0.0, 2.0)
        self.temperature_spin.setSingleStep(0.1)
        self.temperature_spin.setDecimals(2)
        try:
            temperature = float(settings.get("temperature", DEFAULT_TEMPERATURE))
        except (TypeError, ValueError):
            temperature = DEFAULT_TEMPERATURE
        self.temperature_spin.setValue(temperature)

        self.target_combo = QtWidgets.QComboBox(self)
        for code, label in list_target_langs():
            self.target_combo.addItem(label, userData=code)
        idx = self.target_combo.findData(settings.get("target_language", base.get("target_language")))
        self.target_combo.setCurrentIndex(idx if idx >= 0 else 0)

        form = QtWidgets.QFormLayout()
        form.setHorizontalSpacing(12)
        form.setVerticalSpacing(10)
        form.addRow("API key", self.api_key_edit)
        form.addRow("Model", self.model_edit)
        form.addRow("Temperature", self.temperature_spin)
        form.addRow("Default target language", self.target_combo)

        layout = QtWidgets.QVBoxLayout(self)
        layout.setContentsMargins(12, 12, 12, 12)
        layout.addLayout(form)
        layout.addStretch(1)

    def get_values(self) -> Dict[str, Any]:
        return {
            "api_key": self.api_key_edit.text().strip(),
            "model": self.model_edit.text().strip() or DEFAULT_MODEL,
            "temperature": float(self.temperature_spin.value()),
            "target_language": self.target_combo.currentData(),
        }


class AppearanceSettingsTab(QtWidgets.QWidget):
    """Appearance: theme and overlay font."""

    def __init__(self, settings: Dict[str, Any], parent: Optional[QtWidgets.QWidget] = None) -> None:
        super().__init__(parent)
        base = DEFAULT_SETTINGS.get("appearance", {})
        theme = settings.get("theme", base.get("theme", "system"))
        family = settings.get("comic_font_family") or ""

        self.theme_combo = QtWidgets.QComboBox(self)
        self.theme_combo.addItem("System", userData="system")
        self.theme_combo.addItem("Light", userData="light")
        self.theme_combo.addItem("Dark", userData="dark")
        idx = self.theme_combo.findData(theme)
        self.theme_combo.setCurrentIndex(idx if idx >= 0 else 0)

        self.font_combo = QtWidgets.QComboBox(self)
        self.font_combo.addItem("Automatic", userData="")
        for name in sorted(QtGui.QFontDatabase.families()):
            self.font_combo.addItem(name, userData=name)
        idx = self.font_combo.findData(family)
        self.font_combo.setCurrentIndex(idx if idx >= 0 else 0)

        self.show_bubbles_checkbox = QtWidgets.QCheckBox("Show translations on open", self)
        self.show_bubbles_checkbox.setChecked(bool(settings.get("show_bubbles", True)))

        form = QtWidgets.QFormLayout()
        form.addRow("Theme", self.theme_combo)
        form.addRow("Overlay font", self.font_combo)
        form.addRow("", self.show_bubbles_checkbox)

        layout = QtWidgets.QVBoxLayout(self)
        layout.setContentsMargins(12, 12, 12, 12)
        layout.addLayout(form)
        layout.addStretch(1)

    def get_values(self) -> Dict[str, Any]:
        return {
            "theme": self.theme_combo.currentData() or "system",
            "comic_font_family": self.font_combo.currentData() or "",
            "show_bubbles": bool(self.show_bubbles_checkbox.isChecked()),
        }


class SettingsDialog(QtWidgets.QDialog):
    """Settings dialog with one tab per settings group."""

    settingsApplied = QtCore.Signal(dict)

    def __init__(self, parent: Optional[QtWidgets.QWidget] = None) -> None:
        super().__init__(parent)
        self.setWindowTitle("Settings")
        self._initial_settings = load_effective_settings()
        self._current_settings = dict(self._initial_settings)

        self.tab_widget = QtWidgets.QTabWidget(self)
        self.general_tab = GeneralSettingsTab(self._initial_settings.get("general", {}), self)
        self.translation_tab = TranslationSettingsTab(self._initial_settings.get("translation", {}), self)
        self.appearance_tab = AppearanceSettingsTab(self._initial_settings.get("appearance", {}), self)
        self.tab_widget.addTab(self.general_tab, "General")
        self.tab_widget.addTab(self.translation_tab, "Translation")
        self.tab_widget.addTab(self.appearance_tab, "Appearance")

        buttons = QtWidgets.QDialogButtonBox(QtCore.Qt.Horizontal, self)
        self.btn_save = buttons.addButton("Save", QtWidgets.QDialogButtonBox.AcceptRole)
        self.btn_cancel = buttons.addButton("Cancel", QtWidgets.QDialogButtonBox.RejectRole)
        self.btn_apply = buttons.addButton("Apply", QtWidgets.QDialogButtonBox.ApplyRole)
        self.btn_save.clicked.connect(self._on_save_and_close)
        self.btn_cancel.clicked.connect(self.reject)
        self.btn_apply.clicked.connect(self._on_apply)

        layout = QtWidgets.QVBoxLayout(self)
        layout.addWidget(self.tab_widget)
        layout.addWidget(buttons)

    def _collect_settings(self) -> Dict[str, Any]:
        updated = dict(self._initial_settings)
        updated["general"] = {**(self._initial_settings.get("general", {}) or {}), **self.general_tab.get_values()}
        updated["translation"] = {
            **(self._initial_settings.get("translation", {}) or {}),
            **self.translation_tab.get_values(),
        }
        updated["appearance"] = {
            **(self._initial_settings.get("appearance", {}) or {}),
            **self.appearance_tab.get_values(),
        }
        for key, value in DEFAULT_SETTINGS.items():
            if key not in updated:
                updated[key] = value
        return updated

    def _save_settings(self) -> Dict[str, Any]:
        """Persist current UI values and emit an update signal."""
        self._current_settings = self._collect_settings()
        try:
            save_global_settings(self._current_settings)
        except OSError as exc:
            logger.error("Failed to save settings: %s", exc)
            QtWidgets.QMessageBox.warning(self, "Settings", f"Could not save settings:\n{exc}")
        preferred = self._current_settings["appearance"].get("comic_font_family") or ""
        app_config.comic_font_family = pick_comic_font(preferred) or None
        snapshot = dict(self._current_settings)
        self.settingsApplied.emit(snapshot)
        return snapshot

    def _on_apply(self) -> None:
        self._save_settings()

    def _on_save_and_close(self) -> None:
        self._save_settings()
        self.accept()

    def get_updated_settings(self) -> Dict[str, Any]:
        """Return the latest settings snapshot after dialog completion."""
        return dict(self._current_settings)
