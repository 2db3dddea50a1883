"""Export of a translated page (image plus bubble overlays) to PNG/JPEG or PDF."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Optional

from PySide6 import QtCore, QtGui

from comic.models import DisplayedImage, TranslatedBubble
from ui.bubble_overlay import paint_bubble_box
from ui.overlay_layout import box_to_geometry, fit_text_in_rect, geometry_to_rect

logger = logging.getLogger(__name__)

IMAGE_SUFFIXES = (".png", ".jpg", ".jpeg")
EXPORT_FILTERS = "PNG image (*.png);;JPEG image (*.jpg *.jpeg);;PDF document (*.pdf)"


def layout_scale(page_size: QtCore.QSize, layout_size: Optional[QtCore.QSizeF] = None) -> float:
    """Ratio of native page pixels to the pixels the overlays were laid out in on screen."""
    if layout_size is None or layout_size.width() <= 0 or page_size.width() <= 0:
        return 1.0
    return page_size.width() / layout_size.width()


def render_translated_page(
    image: DisplayedImage,
    bubbles: Iterable[TranslatedBubble],
    show_bubbles: bool = True,
    layout_size: Optional[QtCore.QSizeF] = None,
) -> QtGui.QImage:
    """
    Render the page at its native resolution with the translated bubbles drawn over it.

    Bubbles are fitted in `layout_size` pixels (the size the page is shown at) and
    scaled up, so the text keeps the proportions it has on screen. Without a layout
    size the fit runs in native pixels.
    """
    page = QtGui.QImage()
    if not page.loadFromData(image.data):
        raise ValueError(f"Cannot decode page image for export: {image!r}")
    page = page.convertToFormat(QtGui.QImage.Format_ARGB32_Premultiplied)
    if not show_bubbles:
        return page

    scale = layout_scale(page.size(), layout_size)
    image_rect = QtCore.QRectF(0, 0, page.width() / scale, page.height() / scale)
    painter = QtGui.QPainter(page)
    painter.setRenderHint(QtGui.QPainter.Antialiasing, True)
    painter.scale(scale, scale)
    try:
        for bubble in bubbles:
            rect = geometry_to_rect(box_to_geometry(bubble.box), image_rect).adjusted(1, 1, -1, -1)
            if rect.width() < 1 or rect.height() < 1:
                continue
            size = fit_text_in_rect(bubble.translated_text, rect)
            paint_bubble_box(painter, rect, bubble.translated_text, size)
    finally:
        painter.end()
    return page


def _write_pdf(page: QtGui.QImage, output_path: Path) -> None:
    writer = QtGui.QPdfWriter(str(output_path))
    writer.setPageSize(QtGui.QPageSize(QtCore.QSizeF(page.width(), page.height()), QtGui.QPageSize.Unit.Point))
    writer.setPageMargins(QtCore.QMarginsF(0, 0, 0, 0))
    writer.setResolution(72)
    painter = QtGui.QPainter()
    if not painter.begin(writer):
        raise OSError(f"Cannot write PDF to {output_path}")
    try:
        target = QtCore.QRectF(painter.viewport())
        painter.drawImage(target, page)
    finally:
        painter.end()


def export_page(
    image: DisplayedImage,
    bubbles: Iterable[TranslatedBubble],
    output_path: Path,
    show_bubbles: bool = True,
    layout_size: Optional[QtCore.QSizeF] = None,
) -> Path:
    """
    Write the translated page to `output_path`; the suffix picks the format.

    :raises ValueError: for an unsupported suffix or an undecodable page.
    :raises OSError: when the file cannot be written.
    """
    output_path = Path(output_path)
    suffix = output_path.suffix.lower()
    if suffix not in IMAGE_SUFFIXES and suffix != ".pdf":
        raise ValueError(f"Unsupported export format: {suffix or '(none)'}")

    page = render_translated_page(image, bubbles, show_bubbles, layout_size)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    if suffix == ".pdf":
        _write_pdf(page, output_path)
    else:
        if suffix in (".jpg", ".jpeg"):
            page = page.convertToFormat(QtGui.QImage.Format_RGB32)
        if not page.save(str(output_path)):
            raise OSError(f"Cannot write image to {output_path}")
    logger.info("Exported page to %s", output_path)
    return output_path
