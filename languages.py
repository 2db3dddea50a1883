"""Target language registry for ComicTranslate."""
from typing import Optional

# The "name" is the label sent to the translation model.
SUPPORTED_LANGS: dict[str, dict[str, str]] = {
    "tr": {"name": "Turkish", "native_name": "Türkçe"},
    "en": {"name": "English", "native_name": "English"},
    "es": {"name": "Spanish", "native_name": "Español"},
    "ja": {"name": "Japanese", "native_name": "日本語"},
    "fr": {"name": "French", "native_name": "Français"},
    "de": {"name": "German", "native_name": "Deutsch"},
    "ko": {"name": "Korean", "native_name": "한국어"},
    "zh": {"name": "Chinese (Simplified)", "native_name": "简体中文"},
}

DEFAULT_TARGET_LANG = "tr"


def is_supported_lang(code: Optional[str]) -> bool:
    """Return True if the provided language code is registered as supported."""
    if not code:
        return False
    return code in SUPPORTED_LANGS


def get_lang_display_name(code: str) -> str:
    """Return the language label or a fallback if unknown."""
    if code in SUPPORTED_LANGS:
        return SUPPORTED_LANGS[code]["name"]
    return f"Unknown ({code})" if code else "Unknown"


def normalize_lang(value: Optional[str]) -> Optional[str]:
    """
    Map a language code or label ("ko", "Korean", "chinese (simplified)") to its code.

    Returns None for anything outside the registry.
    """
    if not value:
        return None
    key = value.strip()
    if key in SUPPORTED_LANGS:
        return key
    lowered = key.casefold()
    for code, info in SUPPORTED_LANGS.items():
        if lowered in (code, info["name"].casefold()):
            return code
    return None


def list_target_langs() -> list[tuple[str, str]]:
    """Return (code, label) pairs in display order."""
    return [(code, info["name"]) for code, info in SUPPORTED_LANGS.items()]
