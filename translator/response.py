"""Response schema for bubble translation and validation of model output."""
from __future__ import annotations

import itertools
import json
import math
import re
import time
from typing import Any, Callable, Dict, List, Optional

from comic.models import TranslatedBubble, normalize_box, round_half_up
from translator.errors import MalformedResponseError

# Gemini responseSchema (OpenAPI subset) describing the expected JSON.
TRANSLATION_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "bubbles": {
            "type": "ARRAY",
            "description": "List of detected speech bubbles and their translations.",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "originalText": {
                        "type": "STRING",
                        "description": "The text content extracted from the bubble.",
                    },
                    "translatedText": {
                        "type": "STRING",
                        "description": "Translated text.",
                    },
                    "box_2d": {
                        "type": "ARRAY",
                        "description": "Bounding box [ymin, xmin, ymax, xmax] 0-1000.",
                        "items": {"type": "INTEGER"},
                    },
                    "confidence": {
                        "type": "INTEGER",
                        "description": "Confidence score (0-100).",
                    },
                },
                "required": ["originalText", "translatedText", "box_2d", "confidence"],
            },
        },
    },
    "required": ["bubbles"],
}

_FENCE_RE = re.compile(r"^```(?:json)?\s*(?P<body>.*?)\s*```$", re.DOTALL | re.IGNORECASE)
_batch_counter = itertools.count(1)


def make_id_factory() -> Callable[[int], str]:
    """Return a factory of bubble ids for one batch: bubble-<batch>-<index>-<millis>."""
    batch = next(_batch_counter)
    millis = int(time.time() * 1000)
    return lambda index: f"bubble-{batch}-{index}-{millis}"


def _strip_code_fence(text: str) -> str:
    match = _FENCE_RE.match(text.strip())
    return match.group("body") if match else text.strip()


def _require_str(item: Dict[str, Any], key: str, index: int) -> str:
    value = item.get(key)
    if not isinstance(value, str):
        raise MalformedResponseError(f"bubble {index}: '{key}' missing or not a string")
    return value


def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def parse_bubble(item: Any, index: int, bubble_id: str) -> TranslatedBubble:
    """Validate one element of the `bubbles` array."""
    if not isinstance(item, dict):
        raise MalformedResponseError(f"bubble {index}: expected an object, got {type(item).__name__}")
    original = _require_str(item, "originalText", index)
    translated = _require_str(item, "translatedText", index)

    box_raw = item.get("box_2d")
    if not isinstance(box_raw, list) or len(box_raw) != 4 or not all(_is_number(v) for v in box_raw):
        raise MalformedResponseError(f"bubble {index}: 'box_2d' must be four numbers, got {box_raw!r}")

    confidence_raw = item.get("confidence")
    if not _is_number(confidence_raw):
        raise MalformedResponseError(f"bubble {index}: 'confidence' missing or not a number")
    confidence = min(100, max(0, round_half_up(confidence_raw)))

    return TranslatedBubble(
        id=bubble_id,
        original_text=original,
        translated_text=translated,
        box=normalize_box(box_raw),
        confidence=confidence,
    )


def parse_translation_response(
    text: Optional[str],
    id_factory: Optional[Callable[[int], str]] = None,
) -> List[TranslatedBubble]:
    """
    Parse the model's JSON text into translated bubbles.

    :raises MalformedResponseError: on empty text, invalid JSON or schema violations.
    """
    if not text or not text.strip():
        raise MalformedResponseError("No response text from the model")
    try:
        data = json.loads(_strip_code_fence(text))
    except json.JSONDecodeError as exc:
        raise MalformedResponseError(f"Response is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise MalformedResponseError("Response JSON is not an object")
    bubbles_raw = data.get("bubbles")
    if not isinstance(bubbles_raw, list):
        raise MalformedResponseError("Response has no 'bubbles' array")

    make_id = id_factory or make_id_factory()
    return [parse_bubble(item, i, make_id(i)) for i, item in enumerate(bubbles_raw)]
