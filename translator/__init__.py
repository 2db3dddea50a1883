"""Translation package for ComicTranslate."""

from translator.client import ComicTranslator
from translator.errors import MalformedResponseError, TranslationFailedError

__all__ = [
    "ComicTranslator",
    "MalformedResponseError",
    "TranslationFailedError",
]
