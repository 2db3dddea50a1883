"""In-memory comic archive store with natural page ordering and lazy page extraction."""
from __future__ import annotations

import io
import logging
import re
import unicodedata
import zipfile
import zlib
from pathlib import Path, PurePosixPath
from typing import BinaryIO, List, Optional, Union

from config import IMAGE_EXTENSIONS
from comic.errors import (
    ArchiveNotLoadedError,
    ArchiveParseError,
    EmptyArchiveError,
    EntryNotFoundError,
)
from comic.models import DisplayedImage, PageEntry

logger = logging.getLogger(__name__)

ArchiveSource = Union[str, Path, bytes, bytearray, BinaryIO]

_DIGITS_RE = re.compile(r"([0-9]+)")
_RAR_SIGNATURE = b"Rar!\x1a\x07"
_MIME_BY_EXTENSION = {
    "png": "image/png",
    "webp": "image/webp",
}
_ENTRY_READ_ERRORS = (
    zipfile.BadZipFile,
    zlib.error,
    EOFError,
    OSError,
    NotImplementedError,
    RuntimeError,
)


def natural_sort_key(name: str) -> tuple:
    """
    Sort key comparing digit runs numerically and text case/accent-insensitively.

    "page2.jpg" sorts before "page10.jpg". Split parts alternate text/number, so
    keys of different names always compare like types at the same position.
    """
    parts = _DIGITS_RE.split(name)
    key: list = []
    for i, part in enumerate(parts):
        if i % 2:
            key.append(int(part))
        else:
            key.append(_fold_text(part))
    return tuple(key)


def _fold_text(text: str) -> str:
    decomposed = unicodedata.normalize("NFKD", text)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.casefold()


def is_page_image_name(name: str) -> bool:
    """Return True if an archive entry name looks like a displayable page."""
    lowered = name.lower()
    if not lowered.endswith(IMAGE_EXTENSIONS):
        return False
    if "__macosx" in lowered or name.startswith("."):
        return False
    # Hidden files and AppleDouble companions (".foo.jpg", "dir/._foo.jpg").
    return not any(part.startswith(".") for part in PurePosixPath(name).parts)


def guess_entry_mime(file_name: str) -> str:
    """Infer the mime type of an entry from its extension, defaulting to JPEG."""
    ext = file_name.rsplit(".", 1)[-1].lower() if "." in file_name else ""
    return _MIME_BY_EXTENSION.get(ext, "image/jpeg")


def _looks_like_rar(source: ArchiveSource) -> bool:
    head = b""
    if isinstance(source, (bytes, bytearray)):
        head = bytes(source[: len(_RAR_SIGNATURE)])
    elif isinstance(source, (str, Path)):
        try:
            with open(source, "rb") as f:
                head = f.read(len(_RAR_SIGNATURE))
        except OSError:
            return False
    return head == _RAR_SIGNATURE


class ArchiveStore:
    """
    Holds at most one decoded zip archive.

    The container is opened once on load; page bytes are read lazily per request so
    large archives are never materialized up front. Paths are opened directly by
    zipfile, so only the central directory is read on load.
    """

    def __init__(self) -> None:
        self._zip: Optional[zipfile.ZipFile] = None
        self._pages: List[PageEntry] = []

    @property
    def is_loaded(self) -> bool:
        return self._zip is not None

    @property
    def pages(self) -> List[PageEntry]:
        """Return the page list of the resident archive (empty when nothing is loaded)."""
        return list(self._pages)

    def load(self, source: ArchiveSource) -> List[PageEntry]:
        """
        Decode `source` as a zip container and return its sorted page entries.

        :raises ArchiveParseError: the input is not a readable zip container.
        :raises EmptyArchiveError: the container holds no qualifying images.
        """
        handle: Union[str, Path, BinaryIO]
        if isinstance(source, (bytes, bytearray)):
            handle = io.BytesIO(bytes(source))
        else:
            handle = source

        try:
            archive = zipfile.ZipFile(handle)
        except (zipfile.BadZipFile, zipfile.LargeZipFile, OSError, EOFError, ValueError) as exc:
            if _looks_like_rar(source):
                logger.warning("Archive is RAR-compressed; only zip-based archives are supported")
            else:
                logger.warning("Failed to open archive: %s", exc)
            raise ArchiveParseError(
                "Could not parse the comic archive. Ensure it is a valid .cbz or .zip file."
            ) from exc

        names = [info.filename for info in archive.infolist() if not info.is_dir()]
        files = sorted(
            (name for name in names if is_page_image_name(name)),
            key=lambda name: (natural_sort_key(name), name),
        )
        if not files:
            archive.close()
            raise EmptyArchiveError("No images found in this archive.")

        self.clear()
        self._zip = archive
        self._pages = [PageEntry(file_name=name, index=i) for i, name in enumerate(files)]
        logger.info("Loaded archive with %d pages (%d entries total)", len(files), len(names))
        return list(self._pages)

    def extract_entry(self, file_name: str) -> DisplayedImage:
        """
        Read one entry from the resident archive as a displayable image.

        :raises ArchiveNotLoadedError: no archive is resident.
        :raises EntryNotFoundError: the entry is missing from the archive.
        :raises ArchiveParseError: the entry data cannot be decompressed.
        """
        if self._zip is None:
            raise ArchiveNotLoadedError("No archive loaded")
        try:
            info = self._zip.getinfo(file_name)
        except KeyError as exc:
            raise EntryNotFoundError(file_name) from exc
        try:
            data = self._zip.read(info)
        except _ENTRY_READ_ERRORS as exc:
            raise ArchiveParseError(f"Failed to read {file_name} from archive: {exc}") from exc
        return DisplayedImage(mime_type=guess_entry_mime(file_name), data=data)

    def clear(self) -> None:
        """Release the resident archive; safe to call when nothing is loaded."""
        archive, self._zip = self._zip, None
        self._pages = []
        if archive is not None:
            archive.close()

    def __enter__(self) -> "ArchiveStore":
        return self

    def __exit__(self, *exc_info) -> None:
        self.clear()

    def __len__(self) -> int:
        return len(self._pages)
