"""Comic reading session: file selection, page navigation and on-demand translation."""
from __future__ import annotations

import logging
from enum import Enum, auto
from pathlib import Path
from typing import List, Optional, Protocol, Union

from PySide6 import QtCore, QtGui

from config import ARCHIVE_EXTENSIONS
from comic.archive import ArchiveStore
from comic.errors import ArchiveError, EmptyArchiveError
from comic.images import load_image_file
from comic.models import DisplayedImage, PageEntry, TranslatedBubble, average_confidence
from languages import DEFAULT_TARGET_LANG, get_lang_display_name, normalize_lang
from translator.errors import TranslationFailedError

logger = logging.getLogger(__name__)

MSG_INVALID_ARCHIVE = (
    "Could not read archive. Please ensure it is a valid .cbz or .zip file. "
    "For .cbr, try converting to .cbz."
)
MSG_EMPTY_ARCHIVE = "No images found in this archive."
MSG_PAGE_LOAD_FAILED = "Failed to load page image."
MSG_IMAGE_READ_FAILED = "Could not read the selected image file."


class PageTranslator(Protocol):
    def translate(self, image: DisplayedImage, target_language: str) -> List[TranslatedBubble]:
        ...


class SessionPhase(Enum):
    """Observable state of the session, derived from its fields."""

    EMPTY = auto()
    LOADING = auto()
    VIEWING = auto()
    TRANSLATING = auto()
    ERROR = auto()


def is_archive_file(path: Union[str, Path]) -> bool:
    """Return True if the file name marks a comic archive (.cbz/.cbr/.zip)."""
    return Path(path).name.lower().endswith(ARCHIVE_EXTENSIONS)


def is_displayable(image: DisplayedImage) -> bool:
    """Return True if Qt can decode the image, i.e. the page canvas can show it."""
    return not QtGui.QImage.fromData(image.data).isNull()


class ComicSession(QtCore.QObject):
    """
    Owns everything the UI shows for one opened comic.

    Operations run to completion on the caller's thread. Busy flags make
    navigation and translation requests that arrive mid-operation no-ops, and a
    request generation counter drops translation results that finish after the
    user has moved on (new file, page change or reset).
    """

    stateChanged = QtCore.Signal()
    busyChanged = QtCore.Signal(bool, str)

    def __init__(
        self,
        translator: Optional[PageTranslator] = None,
        archive_store: Optional[ArchiveStore] = None,
        target_language: str = DEFAULT_TARGET_LANG,
        parent: Optional[QtCore.QObject] = None,
    ) -> None:
        super().__init__(parent)
        self.translator = translator
        self._archive = archive_store or ArchiveStore()
        self._target_language: str = normalize_lang(target_language) or DEFAULT_TARGET_LANG
        self._generation: int = 0

        self.displayed_image: Optional[DisplayedImage] = None
        self.source_name: Optional[str] = None
        self.archive_name: Optional[str] = None
        self.pages: List[PageEntry] = []
        self.current_page_index: int = 0
        self.bubbles: List[TranslatedBubble] = []
        self.error: Optional[str] = None
        self.is_loading_page: bool = False
        self.is_processing: bool = False
        self.show_bubbles: bool = True

    # -------------------- derived state --------------------
    @property
    def phase(self) -> SessionPhase:
        if self.is_loading_page:
            return SessionPhase.LOADING
        if self.is_processing:
            return SessionPhase.TRANSLATING
        if self.error:
            return SessionPhase.ERROR
        if self.displayed_image is not None:
            return SessionPhase.VIEWING
        return SessionPhase.EMPTY

    @property
    def target_language(self) -> str:
        """Language code of the current translation target."""
        return self._target_language

    @property
    def target_language_label(self) -> str:
        return get_lang_display_name(self._target_language)

    @property
    def page_count(self) -> int:
        return len(self.pages)

    @property
    def is_archive(self) -> bool:
        return bool(self.pages)

    @property
    def average_confidence(self) -> int:
        return average_confidence(self.bubbles)

    @property
    def can_go_previous(self) -> bool:
        return self.is_archive and self.current_page_index > 0 and not self.is_loading_page

    @property
    def can_go_next(self) -> bool:
        return (
            self.is_archive
            and self.current_page_index < self.page_count - 1
            and not self.is_loading_page
        )

    @property
    def can_translate(self) -> bool:
        return self.displayed_image is not None and not (self.is_processing or self.is_loading_page)

    @property
    def page_label(self) -> str:
        if not self.pages:
            return ""
        return f"{self.current_page_index + 1} / {self.page_count}"

    @property
    def current_page(self) -> Optional[PageEntry]:
        if 0 <= self.current_page_index < len(self.pages):
            return self.pages[self.current_page_index]
        return None

    # -------------------- settings --------------------
    def set_target_language(self, value: str) -> None:
        """Select the translation target by code or label; unknown values raise ValueError."""
        code = normalize_lang(value)
        if code is None:
            raise ValueError(f"Unsupported target language: {value!r}")
        if code != self._target_language:
            self._target_language = code
            self.stateChanged.emit()

    def set_show_bubbles(self, show: bool) -> None:
        if self.show_bubbles != bool(show):
            self.show_bubbles = bool(show)
            self.stateChanged.emit()

    def dismiss_error(self) -> None:
        if self.error is not None:
            self.error = None
            self.stateChanged.emit()

    # -------------------- operations --------------------
    def select_file(self, path: Union[str, Path]) -> None:
        """Open a comic archive or a single page image, replacing whatever was open."""
        path = Path(path)
        self.reset()
        if is_archive_file(path):
            self._open_archive(path)
        else:
            self._open_single_image(path)

    def _open_archive(self, path: Path) -> None:
        generation = self._generation
        self._set_loading(True, f"Opening {path.name}...")
        try:
            pages = self._archive.load(path)
        except EmptyArchiveError:
            logger.warning("Archive %s contains no page images", path.name)
            self.error = MSG_EMPTY_ARCHIVE
            return
        except ArchiveError as exc:
            logger.warning("Failed to open archive %s: %s", path.name, exc)
            self.error = MSG_INVALID_ARCHIVE
            return
        finally:
            self._set_loading(False)

        if generation != self._generation:
            return
        self.pages = pages
        self.archive_name = path.name
        self.current_page_index = 0
        self._load_page(0)

    def _open_single_image(self, path: Path) -> None:
        try:
            image = load_image_file(path)
        except OSError as exc:
            logger.warning("Failed to read image %s: %s", path, exc)
            self.error = MSG_IMAGE_READ_FAILED
            self.stateChanged.emit()
            return
        if not is_displayable(image):
            logger.warning("Cannot decode image %s", path)
            self.error = MSG_IMAGE_READ_FAILED
            self.stateChanged.emit()
            return
        self.displayed_image = image
        self.source_name = path.name
        self.stateChanged.emit()

    def go_to_page(self, index: int) -> bool:
        """
        Show the archive page at `index`.

        Returns False (and changes nothing) when the index is out of range or a
        page load is already running.
        """
        if not 0 <= index < len(self.pages):
            return False
        if self.is_loading_page:
            return False
        self.current_page_index = index
        self._load_page(index)
        return True

    def next_page(self) -> bool:
        return self.go_to_page(self.current_page_index + 1)

    def previous_page(self) -> bool:
        return self.go_to_page(self.current_page_index - 1)

    def first_page(self) -> bool:
        return self.go_to_page(0)

    def last_page(self) -> bool:
        return self.go_to_page(len(self.pages) - 1)

    def _load_page(self, index: int) -> None:
        entry = self.pages[index]
        self._generation += 1
        self.error = None
        self.bubbles = []
        self._set_loading(True, f"Loading page {index + 1}...")
        try:
            image = self._archive.extract_entry(entry.file_name)
        except ArchiveError as exc:
            logger.warning("Failed to load page %s: %s", entry.file_name, exc)
            self.error = MSG_PAGE_LOAD_FAILED
        else:
            if not is_displayable(image):
                logger.warning("Cannot decode page %s", entry.file_name)
                self.error = MSG_PAGE_LOAD_FAILED
                return
            self.displayed_image = image
            self.source_name = entry.file_name
        finally:
            self._set_loading(False)

    def translate_current_page(self) -> bool:
        """
        Translate the displayed page and replace the bubble batch on success.

        Returns False without touching any state when there is nothing to
        translate or another operation is running.
        """
        image = self.displayed_image
        if image is None or self.is_processing or self.is_loading_page:
            return False
        if self.translator is None:
            raise RuntimeError("ComicSession has no translator configured")

        generation = self._generation
        self.error = None
        self.is_processing = True
        self.stateChanged.emit()
        self.busyChanged.emit(True, "Translating page...")
        try:
            bubbles = self.translator.translate(image, self.target_language_label)
        except TranslationFailedError as exc:
            if generation == self._generation:
                self.error = str(exc)
        else:
            if generation == self._generation:
                self.bubbles = list(bubbles)
            else:
                logger.info("Discarding translation for a page that is no longer shown")
        finally:
            self.is_processing = False
            self.busyChanged.emit(False, "")
            self.stateChanged.emit()
        return True

    def reset(self) -> None:
        """Close the current comic and return to the empty state."""
        self._generation += 1
        self.displayed_image = None
        self.source_name = None
        self.bubbles = []
        self.error = None
        self.archive_name = None
        self.pages = []
        self.current_page_index = 0
        self._archive.clear()
        self.stateChanged.emit()

    def close(self) -> None:
        """Release the resident archive at the end of the session."""
        self._archive.clear()

    # -------------------- helpers --------------------
    def _set_loading(self, loading: bool, message: str = "") -> None:
        self.is_loading_page = loading
        self.busyChanged.emit(loading, message)
        self.stateChanged.emit()
