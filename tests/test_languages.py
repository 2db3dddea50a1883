import pytest

from languages import (
    DEFAULT_TARGET_LANG,
    SUPPORTED_LANGS,
    get_lang_display_name,
    is_supported_lang,
    list_target_langs,
    normalize_lang,
)


def test_registry_contents():
    assert [label for _, label in list_target_langs()] == [
        "Turkish",
        "English",
        "Spanish",
        "Japanese",
        "French",
        "German",
        "Korean",
        "Chinese (Simplified)",
    ]
    assert DEFAULT_TARGET_LANG == "tr"
    assert is_supported_lang(DEFAULT_TARGET_LANG)
    assert set(SUPPORTED_LANGS) == {code for code, _ in list_target_langs()}


@pytest.mark.parametrize(
    "value, code",
    [("ko", "ko"), ("Korean", "ko"), ("  german ", "de"), ("CHINESE (SIMPLIFIED)", "zh"), ("Klingon", None), ("", None), (None, None)],
)
def test_normalize_lang(value, code):
    assert normalize_lang(value) == code


def test_display_name_fallback():
    assert get_lang_display_name("fr") == "French"
    assert get_lang_display_name("xx") == "Unknown (xx)"
    assert not is_supported_lang("xx")
