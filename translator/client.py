"""Comic page translator backed by a vision-language model (Gemini generateContent)."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from config import (
    DEFAULT_MODEL,
    DEFAULT_TEMPERATURE,
    GEMINI_API_BASE,
    MAX_UPLOAD_DIMENSION,
)
from comic.images import resize_for_upload
from comic.models import DisplayedImage, TranslatedBubble
from languages import get_lang_display_name, normalize_lang
from settings_manager import resolve_api_key
from translator.errors import GeminiApiError, MalformedResponseError, TranslationFailedError
from translator.gemini_api import call_generate_content, extract_response_text
from translator.response import TRANSLATION_SCHEMA, parse_translation_response

logger = logging.getLogger(__name__)

PROMPT_TEMPLATE = """
Task: Comic Book Translation.
1. Detect all speech bubbles.
2. Extract text.
3. Translate to {target_language}.
4. Return bounding boxes (0-1000 scale) and confidence (0-100).

Constraint:
- Keep translations CONCISE and SHORT to fit inside the original bubble area.
- Match the informal tone of a comic.
- Return JSON only.
""".strip()


def target_language_label(value: str) -> str:
    """Return the label sent to the model for a language code or label."""
    code = normalize_lang(value)
    return get_lang_display_name(code) if code else value


def build_prompt(target_language: str) -> str:
    return PROMPT_TEMPLATE.format(target_language=target_language_label(target_language))


def build_request_payload(
    image: DisplayedImage,
    target_language: str,
    temperature: float = DEFAULT_TEMPERATURE,
) -> Dict[str, Any]:
    """Assemble the generateContent body: inline image, instruction and JSON schema."""
    return {
        "contents": [
            {
                "role": "user",
                "parts": [
                    {
                        "inlineData": {
                            "mimeType": image.mime_type,
                            "data": image.base64_payload,
                        }
                    },
                    {"text": build_prompt(target_language)},
                ],
            }
        ],
        "generationConfig": {
            "responseMimeType": "application/json",
            "responseSchema": TRANSLATION_SCHEMA,
            "temperature": temperature,
        },
    }


class ComicTranslator:
    """
    Translates a whole comic page in one model call.

    Every failure surfaces as TranslationFailedError with a generic message;
    details are logged and kept on the exception's `detail` attribute.
    """

    def __init__(
        self,
        api_key: str = "",
        model: str = DEFAULT_MODEL,
        temperature: float = DEFAULT_TEMPERATURE,
        max_dimension: int = MAX_UPLOAD_DIMENSION,
        api_base: str = GEMINI_API_BASE,
        timeout: Optional[float] = None,
    ) -> None:
        self.api_key = api_key
        self.model = model or DEFAULT_MODEL
        self.temperature = temperature
        self.max_dimension = max_dimension
        self.api_base = api_base
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Dict[str, Any]) -> "ComicTranslator":
        """Build a translator from the `translation` settings group."""
        translation = settings.get("translation", {}) if isinstance(settings, dict) else {}
        temperature = translation.get("temperature", DEFAULT_TEMPERATURE)
        timeout = translation.get("timeout_sec")
        try:
            temperature = float(temperature)
        except (TypeError, ValueError):
            logger.warning("Invalid temperature %r, using %s", temperature, DEFAULT_TEMPERATURE)
            temperature = DEFAULT_TEMPERATURE
        try:
            timeout = float(timeout) if timeout else None
        except (TypeError, ValueError):
            logger.warning("Invalid timeout %r, requests will not time out", timeout)
            timeout = None
        return cls(
            api_key=resolve_api_key(settings),
            model=str(translation.get("model") or DEFAULT_MODEL),
            temperature=temperature,
            timeout=timeout,
        )

    def translate(self, image: DisplayedImage, target_language: str) -> List[TranslatedBubble]:
        """
        Detect and translate the speech bubbles on one page.

        :raises TranslationFailedError: on any network, parsing or schema failure
            (MalformedResponseError for unusable model output).
        """
        if not self.api_key:
            logger.error("Translation skipped: no API key configured")
            raise TranslationFailedError(detail="missing API key")

        upload = resize_for_upload(image, self.max_dimension)
        payload = build_request_payload(upload, target_language, self.temperature)
        try:
            response = call_generate_content(
                payload,
                model=self.model,
                api_key=self.api_key,
                api_base=self.api_base,
                timeout=self.timeout,
            )
            bubbles = parse_translation_response(extract_response_text(response))
        except MalformedResponseError as exc:
            logger.error("Translation response rejected: %s", exc.detail)
            raise
        except GeminiApiError as exc:
            logger.error("Translation request failed: %s", exc)
            raise TranslationFailedError(detail=str(exc)) from exc
        except Exception as exc:  # noqa: BLE001
            logger.exception("Unexpected translation error")
            raise TranslationFailedError(detail=str(exc)) from exc

        logger.info(
            "Translated page into %s: %d bubbles", target_language_label(target_language), len(bubbles)
        )
        return bubbles
