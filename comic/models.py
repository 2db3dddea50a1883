"""Core comic models: page entries, displayed images and translated bubbles."""
from __future__ import annotations

import base64
import binascii
import math
import re
from dataclasses import dataclass
from typing import Iterable, Optional

from config import (
    HIGH_CONFIDENCE_THRESHOLD,
    LOW_CONFIDENCE_THRESHOLD,
    MEDIUM_CONFIDENCE_THRESHOLD,
)

BOX_SCALE = 1000

_DATA_URI_RE = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+);base64,(?P<payload>.*)$", re.DOTALL)


@dataclass(frozen=True)
class PageEntry:
    """One image file inside an archive."""

    file_name: str  # path of the entry inside the archive
    index: int  # 0-based position in the sorted page list


@dataclass(frozen=True)
class DisplayedImage:
    """Encoded image currently shown to the user (mime type + raw bytes)."""

    mime_type: str
    data: bytes

    @property
    def base64_payload(self) -> str:
        """Return the base64 payload without a data-URI prefix."""
        return base64.b64encode(self.data).decode("ascii")

    def to_data_uri(self) -> str:
        return f"data:{self.mime_type};base64,{self.base64_payload}"

    @classmethod
    def from_data_uri(cls, uri: str) -> "DisplayedImage":
        """Parse a `data:<mime>;base64,<payload>` string, raising ValueError when malformed."""
        match = _DATA_URI_RE.match(uri.strip())
        if match is None:
            raise ValueError("Not a base64 data URI")
        try:
            data = base64.b64decode(match.group("payload"), validate=True)
        except binascii.Error as exc:
            raise ValueError(f"Invalid base64 payload: {exc}") from exc
        return cls(mime_type=match.group("mime"), data=data)

    def __repr__(self) -> str:
        return f"DisplayedImage(mime_type={self.mime_type!r}, size={len(self.data)})"


@dataclass(frozen=True)
class TranslatedBubble:
    """
    Detected speech bubble with its original and translated text.

    `box` is (ymin, xmin, ymax, xmax) on a 0-1000 scale relative to the image.
    """

    id: str
    original_text: str
    translated_text: str
    box: tuple[int, int, int, int]
    confidence: Optional[int] = None

    @property
    def ymin(self) -> int:
        return self.box[0]

    @property
    def xmin(self) -> int:
        return self.box[1]

    @property
    def ymax(self) -> int:
        return self.box[2]

    @property
    def xmax(self) -> int:
        return self.box[3]

    @property
    def is_low_confidence(self) -> bool:
        return self.confidence is not None and self.confidence < LOW_CONFIDENCE_THRESHOLD


def normalize_box(values: Iterable[float]) -> tuple[int, int, int, int]:
    """Round, clamp to the 0-1000 scale and order a (ymin, xmin, ymax, xmax) box."""
    ymin, xmin, ymax, xmax = (min(BOX_SCALE, max(0, round_half_up(v))) for v in values)
    if ymin > ymax:
        ymin, ymax = ymax, ymin
    if xmin > xmax:
        xmin, xmax = xmax, xmin
    return (ymin, xmin, ymax, xmax)


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves rounded up (2.5 -> 3), unlike round()."""
    return int(math.floor(value + 0.5))


def average_confidence(bubbles: Iterable[TranslatedBubble]) -> int:
    """Mean bubble confidence rounded to an integer; missing scores count as 0, empty -> 0."""
    scores = [bubble.confidence or 0 for bubble in bubbles]
    if not scores:
        return 0
    return round_half_up(sum(scores) / len(scores))


def confidence_tier(score: Optional[int]) -> str:
    """Bucket a confidence score into "high", "medium" or "low" for display colours."""
    value = score or 0
    if value >= HIGH_CONFIDENCE_THRESHOLD:
        return "high"
    if value >= MEDIUM_CONFIDENCE_THRESHOLD:
        return "medium"
    return "low"
