"""Page canvas: draws the current page scaled to fit and hosts the bubble overlays."""
from __future__ import annotations

import logging
from typing import List, Optional

from PySide6 import QtCore, QtGui, QtWidgets

from config import MAX_UPLOAD_BYTES
from comic.models import DisplayedImage, TranslatedBubble
from ui.bubble_overlay import BubbleOverlayWidget
from ui.overlay_layout import box_to_geometry, geometry_to_rect

logger = logging.getLogger(__name__)

PLACEHOLDER_TEXT = (
    "Open a comic page (.jpg, .png, .webp) or archive (.cbz, .zip, up to {size} GB) to begin."
).format(size=MAX_UPLOAD_BYTES // (1024 ** 3))


class PageCanvas(QtWidgets.QWidget):
    """Canvas that draws the page pixmap (contain-fit, centred) and its overlays."""

    def __init__(self, parent: Optional[QtWidgets.QWidget] = None) -> None:
        super().__init__(parent)
        self._pixmap: Optional[QtGui.QPixmap] = None
        self._overlays: List[BubbleOverlayWidget] = []
        self._bubbles_visible: bool = True
        self._busy_message: Optional[str] = None
        self.setMinimumSize(320, 320)
        self.setSizePolicy(QtWidgets.QSizePolicy.Expanding, QtWidgets.QSizePolicy.Expanding)

    # -------------------- content --------------------
    @property
    def overlays(self) -> List[BubbleOverlayWidget]:
        return list(self._overlays)

    @property
    def has_image(self) -> bool:
        return self._pixmap is not None

    def set_image(self, image: Optional[DisplayedImage]) -> bool:
        """Show an encoded image; returns False (and clears the page) if Qt cannot decode it."""
        if image is None:
            self._pixmap = None
            self.update()
            return True
        pixmap = QtGui.QPixmap()
        if not pixmap.loadFromData(image.data):
            logger.warning("Qt could not decode %r", image)
            self._pixmap = None
            self.update()
            return False
        self._pixmap = pixmap
        self._layout_overlays()
        self.update()
        return True

    def set_bubbles(self, bubbles: List[TranslatedBubble]) -> None:
        """Replace the overlays with one per bubble."""
        self.clear_bubbles()
        for bubble in bubbles:
            overlay = BubbleOverlayWidget(bubble, self)
            overlay.setVisible(self._bubbles_visible)
            self._overlays.append(overlay)
        self._layout_overlays()

    def clear_bubbles(self) -> None:
        for overlay in self._overlays:
            overlay.hide()
            overlay.deleteLater()
        self._overlays.clear()

    def set_bubbles_visible(self, visible: bool) -> None:
        self._bubbles_visible = bool(visible)
        for overlay in self._overlays:
            overlay.setVisible(self._bubbles_visible)
            if self._bubbles_visible:
                overlay.raise_()

    def bubbles_visible(self) -> bool:
        return self._bubbles_visible

    def set_busy(self, busy: bool, message: str = "") -> None:
        """Dim the page and show `message` while an operation is running."""
        self._busy_message = (message or "Working...") if busy else None
        self.update()

    # -------------------- geometry --------------------
    def image_rect(self) -> QtCore.QRectF:
        """Rectangle (widget coordinates) the page is drawn in; empty when there is no page."""
        if self._pixmap is None or self._pixmap.width() == 0 or self._pixmap.height() == 0:
            return QtCore.QRectF()
        scale = min(self.width() / self._pixmap.width(), self.height() / self._pixmap.height())
        w = self._pixmap.width() * scale
        h = self._pixmap.height() * scale
        return QtCore.QRectF((self.width() - w) / 2, (self.height() - h) / 2, w, h)

    def _layout_overlays(self) -> None:
        image_rect = self.image_rect()
        if image_rect.isEmpty():
            return
        for overlay in self._overlays:
            rect = geometry_to_rect(box_to_geometry(overlay.bubble.box), image_rect)
            overlay.setGeometry(rect.toAlignedRect())

    def resizeEvent(self, event: QtGui.QResizeEvent) -> None:  # type: ignore[override]
        super().resizeEvent(event)
        self._layout_overlays()

    # -------------------- painting --------------------
    def paintEvent(self, event: QtGui.QPaintEvent) -> None:  # type: ignore[override]
        painter = QtGui.QPainter(self)
        painter.setRenderHint(QtGui.QPainter.SmoothPixmapTransform, True)
        if self._pixmap is None:
            painter.setPen(self.palette().color(QtGui.QPalette.PlaceholderText))
            painter.drawText(
                self.rect().adjusted(24, 24, -24, -24),
                QtCore.Qt.AlignCenter | QtCore.Qt.TextWordWrap,
                PLACEHOLDER_TEXT,
            )
        else:
            painter.drawPixmap(self.image_rect(), self._pixmap, QtCore.QRectF(self._pixmap.rect()))

        if self._busy_message is not None:
            painter.fillRect(self.rect(), QtGui.QColor(0, 0, 0, 110))
            painter.setPen(QtCore.Qt.white)
            font = painter.font()
            font.setPointSize(font.pointSize() + 4)
            font.setBold(True)
            painter.setFont(font)
            painter.drawText(self.rect(), QtCore.Qt.AlignCenter, self._busy_message)
        painter.end()
