import settings_manager
from settings_manager import (
    DEFAULT_SETTINGS,
    load_effective_settings,
    load_global_settings,
    resolve_api_key,
    save_global_settings,
)


def test_missing_file_returns_defaults(tmp_path):
    settings = load_global_settings(tmp_path / "config.yaml")
    assert settings == DEFAULT_SETTINGS
    assert settings is not DEFAULT_SETTINGS


def test_partial_file_is_deep_merged(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("translation:\n  model: gemini-custom\nappearance:\n  theme: dark\n", encoding="utf-8")
    settings = load_global_settings(path)
    assert settings["translation"]["model"] == "gemini-custom"
    assert settings["translation"]["target_language"] == DEFAULT_SETTINGS["translation"]["target_language"]
    assert settings["appearance"]["theme"] == "dark"
    assert settings["appearance"]["show_bubbles"] is True


def test_malformed_file_falls_back_to_defaults(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("translation: [unclosed\n", encoding="utf-8")
    assert load_global_settings(path) == DEFAULT_SETTINGS


def test_non_mapping_file_falls_back_to_defaults(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("- just\n- a list\n", encoding="utf-8")
    assert load_global_settings(path) == DEFAULT_SETTINGS


def test_save_and_reload(tmp_path):
    path = tmp_path / "nested" / "config.yaml"
    settings = load_global_settings(path)
    settings["translation"]["api_key"] = "abc"
    settings["translation"]["target_language"] = "ja"
    save_global_settings(settings, path)
    reloaded = load_effective_settings(path)
    assert reloaded["translation"]["api_key"] == "abc"
    assert reloaded["translation"]["target_language"] == "ja"


def test_merge_does_not_mutate_inputs():
    base = {"a": {"b": 1}}
    merged = settings_manager._merge_dicts(base, {"a": {"c": 2}})
    assert merged == {"a": {"b": 1, "c": 2}}
    assert base == {"a": {"b": 1}}


def test_resolve_api_key_prefers_settings(monkeypatch):
    monkeypatch.setenv("API_KEY", "env-key")
    assert resolve_api_key({"translation": {"api_key": " set-key "}}) == "set-key"


def test_resolve_api_key_env_order(monkeypatch):
    monkeypatch.setenv("API_KEY", "first")
    monkeypatch.setenv("GEMINI_API_KEY", "second")
    assert resolve_api_key({"translation": {"api_key": ""}}) == "first"
    monkeypatch.delenv("API_KEY")
    assert resolve_api_key({}) == "second"
    monkeypatch.delenv("GEMINI_API_KEY")
    assert resolve_api_key({}) == ""
