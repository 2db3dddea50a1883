"""
Overlay widgets that draw translated text over the speech bubbles of a page.

Each BubbleOverlayWidget is a child of the page canvas placed over one bubble's
bounding box; its font size is refitted whenever the text or the size changes.
"""
from __future__ import annotations

import dataclasses
from typing import Optional

from PySide6 import QtCore, QtGui, QtWidgets

from config import FIT_DEFAULT_FONT_SIZE, app_config
from comic.models import TranslatedBubble
from ui.dialogs import BubbleDetailDialog
from ui.overlay_layout import TEXT_PADDING, fit_text_in_rect, make_text_document

WARNING_COLOR = QtGui.QColor(198, 40, 40)
HIGHLIGHT_COLOR = QtGui.QColor(0, 120, 215)
BORDER_COLOR = QtGui.QColor(0, 0, 0, 60)
MARKER_SIZE = 14


def paint_bubble_box(
    painter: QtGui.QPainter,
    rect: QtCore.QRectF,
    text: str,
    font_size: int,
    pen: Optional[QtGui.QPen] = None,
) -> None:
    """Draw the white rounded box with centred text used for translated bubbles."""
    path = QtGui.QPainterPath()
    path.addRoundedRect(rect, 6, 6)
    painter.fillPath(path, QtGui.QColor(255, 255, 255, 240))
    painter.setPen(pen if pen is not None else QtGui.QPen(BORDER_COLOR))
    painter.drawPath(path)

    inner_w = max(1.0, rect.width() - 2 * TEXT_PADDING)
    doc = make_text_document(text, app_config.comic_font_family or "", font_size, inner_w)
    doc_h = doc.size().height()
    painter.save()
    painter.translate(rect.x() + TEXT_PADDING, rect.y() + max(TEXT_PADDING, (rect.height() - doc_h) / 2))
    doc.drawContents(painter, QtCore.QRectF(0, 0, inner_w, max(doc_h, rect.height())))
    painter.restore()


class BubbleOverlayWidget(QtWidgets.QWidget):
    """One translated bubble drawn over the page."""

    detailsRequested = QtCore.Signal(object)

    def __init__(self, bubble: TranslatedBubble, parent: Optional[QtWidgets.QWidget] = None) -> None:
        super().__init__(parent)
        self._bubble = bubble
        self._font_size: int = FIT_DEFAULT_FONT_SIZE
        self._hovered = False

        self.setAttribute(QtCore.Qt.WA_Hover, True)
        self.setMouseTracking(True)

        self.expand_button = QtWidgets.QToolButton(self)
        self.expand_button.setText("⤢")
        self.expand_button.setToolTip("Show details")
        self.expand_button.setAutoRaise(True)
        self.expand_button.setCursor(QtCore.Qt.PointingHandCursor)
        self.expand_button.setFixedSize(18, 18)
        self.expand_button.clicked.connect(self.open_details)
        self.expand_button.hide()

        self._update_tooltip()

    # -------------------- state --------------------
    @property
    def bubble(self) -> TranslatedBubble:
        return self._bubble

    @property
    def text(self) -> str:
        return self._bubble.translated_text

    @property
    def font_size(self) -> int:
        """Font size (px) chosen by the last fit."""
        return self._font_size

    @property
    def is_hovered(self) -> bool:
        return self._hovered

    def set_bubble(self, bubble: TranslatedBubble) -> None:
        self._bubble = bubble
        self._update_tooltip()
        self.refit()

    def set_text(self, text: str) -> None:
        """Replace the translated text and refit it to the box."""
        if text == self._bubble.translated_text:
            return
        self.set_bubble(dataclasses.replace(self._bubble, translated_text=text))

    def box_rect(self) -> QtCore.QRectF:
        """Rect the box is painted in, inset so the border stays inside the widget."""
        return QtCore.QRectF(self.rect()).adjusted(1, 1, -1, -1)

    def refit(self) -> None:
        if self.width() <= 0 or self.height() <= 0:
            return
        self._font_size = fit_text_in_rect(self.text, self.box_rect())
        self.update()

    def _update_tooltip(self) -> None:
        if self._bubble.is_low_confidence:
            self.setToolTip(f"Low confidence ({self._bubble.confidence}%): translation may be inaccurate")
        else:
            self.setToolTip(self._bubble.original_text)

    def open_details(self) -> BubbleDetailDialog:
        """Open a non-modal detail dialog for this bubble."""
        dialog = BubbleDetailDialog(self._bubble, self.window())
        dialog.setAttribute(QtCore.Qt.WA_DeleteOnClose, True)
        dialog.show()
        self.detailsRequested.emit(self._bubble)
        return dialog

    # -------------------- events --------------------
    def resizeEvent(self, event: QtGui.QResizeEvent) -> None:  # type: ignore[override]
        super().resizeEvent(event)
        self.expand_button.move(max(0, self.width() - self.expand_button.width() - 1), 1)
        self.refit()

    def enterEvent(self, event: QtGui.QEnterEvent) -> None:  # type: ignore[override]
        self._hovered = True
        self.expand_button.show()
        self.expand_button.raise_()
        self.update()
        super().enterEvent(event)

    def leaveEvent(self, event: QtCore.QEvent) -> None:  # type: ignore[override]
        self._hovered = False
        self.expand_button.hide()
        self.update()
        super().leaveEvent(event)

    def mouseDoubleClickEvent(self, event: QtGui.QMouseEvent) -> None:  # type: ignore[override]
        if event.button() == QtCore.Qt.LeftButton:
            self.open_details()
            event.accept()
            return
        super().mouseDoubleClickEvent(event)

    def paintEvent(self, event: QtGui.QPaintEvent) -> None:  # type: ignore[override]
        painter = QtGui.QPainter(self)
        painter.setRenderHint(QtGui.QPainter.Antialiasing, True)

        rect = self.box_rect()
        pen = QtGui.QPen(HIGHLIGHT_COLOR if self._hovered else BORDER_COLOR)
        pen.setWidthF(2.0 if self._hovered else 1.0)
        paint_bubble_box(painter, rect, self.text, self._font_size, pen)

        if self._bubble.is_low_confidence:
            marker = QtCore.QRectF(rect.x() + 2, rect.y() + 2, MARKER_SIZE, MARKER_SIZE)
            painter.setPen(QtCore.Qt.NoPen)
            painter.setBrush(WARNING_COLOR)
            painter.drawEllipse(marker)
            painter.setPen(QtCore.Qt.white)
            font = painter.font()
            font.setBold(True)
            font.setPixelSize(10)
            painter.setFont(font)
            painter.drawText(marker, QtCore.Qt.AlignCenter, "!")
        painter.end()
