"""Exceptions raised while loading comic archives and pages."""
from __future__ import annotations


class ComicError(Exception):
    """Base class for comic loading failures."""


class ArchiveError(ComicError):
    """Raised by the archive store."""


class ArchiveParseError(ArchiveError):
    """The input is not a decodable zip container (or an entry inside it is corrupt)."""


class EmptyArchiveError(ArchiveError):
    """The container decoded but holds no qualifying page images."""


class ArchiveNotLoadedError(ArchiveError):
    """A page was requested while no archive is resident."""


class EntryNotFoundError(ArchiveError):
    """The requested entry does not exist in the resident archive."""

    def __init__(self, file_name: str):
        super().__init__(f"Page {file_name} not found in archive")
        self.file_name = file_name
