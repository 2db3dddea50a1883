"""Placement and font fitting for translated-bubble overlays."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Sequence, Tuple

from PySide6 import QtCore, QtGui

from config import (
    DEFAULT_COMIC_FONT_FAMILIES,
    FIT_DEFAULT_FONT_SIZE,
    FIT_MIN_FONT_SIZE,
    FIT_START_MAX_FONT_SIZE,
    FIT_START_MIN_FONT_SIZE,
    app_config,
)
from comic.models import BOX_SCALE

logger = logging.getLogger(__name__)

# Padding (px) between the overlay border and its text.
TEXT_PADDING = 4

MeasureFn = Callable[[int], Tuple[float, float]]


@dataclass(frozen=True)
class OverlayGeometry:
    """Overlay position and size as percentages of the rendered image."""

    top: float
    left: float
    width: float
    height: float


def box_to_geometry(box: Sequence[float]) -> OverlayGeometry:
    """Convert a [ymin, xmin, ymax, xmax] box on the 0-1000 scale to percentages."""
    ymin, xmin, ymax, xmax = box
    factor = BOX_SCALE / 100
    return OverlayGeometry(
        top=ymin / factor,
        left=xmin / factor,
        width=(xmax - xmin) / factor,
        height=(ymax - ymin) / factor,
    )


def geometry_to_rect(geometry: OverlayGeometry, image_rect: QtCore.QRectF) -> QtCore.QRectF:
    """Map a percent geometry onto the on-screen rectangle the image is drawn in."""
    return QtCore.QRectF(
        image_rect.x() + image_rect.width() * geometry.left / 100.0,
        image_rect.y() + image_rect.height() * geometry.top / 100.0,
        image_rect.width() * geometry.width / 100.0,
        image_rect.height() * geometry.height / 100.0,
    )


def initial_font_size(box_height: float) -> int:
    """Starting font size for a bubble: a third of its height, clamped to 10-30."""
    if not box_height or box_height <= 0:
        return FIT_DEFAULT_FONT_SIZE
    return int(max(FIT_START_MIN_FONT_SIZE, min(FIT_START_MAX_FONT_SIZE, box_height / 3)))


def fit_font_size(
    measure: MeasureFn,
    box_width: float,
    box_height: float,
    start: int,
    *,
    min_size: int = FIT_MIN_FONT_SIZE,
) -> int:
    """
    Shrink the font one step at a time until the measured text fits the box.

    `measure(size)` returns the (width, height) the text occupies at that size.
    Never goes below `min_size`, so at most `start - min_size` steps are taken.
    """
    size = max(int(start), min_size)
    while size > min_size:
        width, height = measure(size)
        if width <= box_width and height <= box_height:
            break
        size -= 1
    return size


def pick_comic_font(preferred: str = "") -> str:
    """Return `preferred` if installed, else the first installed default comic family, else ""."""
    installed = set(QtGui.QFontDatabase.families())
    for family in (preferred, *DEFAULT_COMIC_FONT_FAMILIES):
        if family and family in installed:
            return family
    return ""


def make_text_document(text: str, family: str, size: int, width: float) -> QtGui.QTextDocument:
    """Build a centred, word-wrapping document the way overlays lay out their text."""
    doc = QtGui.QTextDocument()
    doc.setDocumentMargin(0)
    font = QtGui.QFont(family) if family else QtGui.QFont()
    font.setPixelSize(max(1, size))
    font.setBold(True)
    doc.setDefaultFont(font)
    option = QtGui.QTextOption()
    option.setAlignment(QtCore.Qt.AlignmentFlag.AlignHCenter)
    option.setWrapMode(QtGui.QTextOption.WrapMode.WrapAtWordBoundaryOrAnywhere)
    doc.setDefaultTextOption(option)
    doc.setPlainText(text)
    doc.setTextWidth(max(1.0, width))
    return doc


def qt_text_measurer(text: str, width: float, family: str | None = None) -> MeasureFn:
    """
    Return a measure function for `fit_font_size` backed by QTextDocument.

    The reported width is the widest laid-out line, so a word too long for the box
    counts as overflow even though the document breaks it.
    """
    resolved = family if family is not None else (app_config.comic_font_family or "")

    def measure(size: int) -> Tuple[float, float]:
        doc = make_text_document(text, resolved, size, width)
        metrics = QtGui.QFontMetricsF(doc.defaultFont())
        widest = max((metrics.horizontalAdvance(word) for word in text.split()), default=0.0)
        doc_size = doc.size()
        return max(doc.idealWidth(), widest), doc_size.height()

    return measure


def fit_text_in_rect(text: str, rect: QtCore.QRectF, family: str | None = None) -> int:
    """Font size at which `text` fits inside `rect` (minus padding)."""
    inner_w = max(1.0, rect.width() - 2 * TEXT_PADDING)
    inner_h = max(1.0, rect.height() - 2 * TEXT_PADDING)
    start = initial_font_size(rect.height())
    if not text.strip():
        return start
    size = fit_font_size(qt_text_measurer(text, inner_w, family), inner_w, inner_h, start)
    logger.debug("Fitted overlay text at %spt (start %spt, box %.0fx%.0f)", size, start, inner_w, inner_h)
    return size
