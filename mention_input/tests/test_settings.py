"""settings.json 分层加载"""

import json

from mention_input.settings import (
    DEFAULT_MENU_MAX_HEIGHT,
    ENV_MENU_HEIGHT,
    ENV_SHOW_DEBUG,
    MentionSettings,
    load_settings_file,
    resolve_settings,
)


def _write(path, data):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data) if not isinstance(data, str) else data, encoding="utf-8")
    return path


def _clear_env(monkeypatch):
    monkeypatch.delenv(ENV_MENU_HEIGHT, raising=False)
    monkeypatch.delenv(ENV_SHOW_DEBUG, raising=False)


def test_defaults_without_files(tmp_path, monkeypatch):
    _clear_env(monkeypatch)
    settings = resolve_settings(
        project_root=tmp_path / "project",
        user_settings_path=tmp_path / "missing.json",
    )
    assert settings == MentionSettings()
    assert settings.menu_max_height == DEFAULT_MENU_MAX_HEIGHT


def test_project_overrides_user(tmp_path, monkeypatch):
    _clear_env(monkeypatch)
    user_path = _write(
        tmp_path / "home" / "settings.json",
        {"menu_max_height": 4, "show_debug": False, "users_file": "/data/users.json"},
    )
    project_root = tmp_path / "project"
    _write(project_root / ".mention_input" / "settings.json", {"menu_max_height": 6})

    settings = resolve_settings(project_root=project_root, user_settings_path=user_path)

    assert settings.menu_max_height == 6
    assert settings.show_debug is False
    assert str(settings.users_file) == "/data/users.json"


def test_relative_users_file_resolves_against_settings_dir(tmp_path):
    path = _write(tmp_path / "cfg" / "settings.json", {"users_file": "users.yaml"})
    config = load_settings_file(path)
    assert config is not None
    assert config.users_file == tmp_path / "cfg" / "users.yaml"


def test_env_overrides_files(tmp_path, monkeypatch):
    user_path = _write(tmp_path / "settings.json", {"menu_max_height": 4, "show_debug": True})
    monkeypatch.setenv(ENV_MENU_HEIGHT, "12")
    monkeypatch.setenv(ENV_SHOW_DEBUG, "off")

    settings = resolve_settings(sources=("user",), user_settings_path=user_path)

    assert settings.menu_max_height == 12
    assert settings.show_debug is False


def test_invalid_env_falls_back(tmp_path, monkeypatch):
    monkeypatch.setenv(ENV_MENU_HEIGHT, "-3")
    monkeypatch.setenv(ENV_SHOW_DEBUG, "maybe")

    settings = resolve_settings(sources=None)

    assert settings.menu_max_height == DEFAULT_MENU_MAX_HEIGHT
    assert settings.show_debug is True


def test_invalid_fields_are_skipped(tmp_path):
    path = _write(
        tmp_path / "settings.json",
        {"menu_max_height": True, "show_debug": "yes", "mouse_support": False, "users_file": 3},
    )
    config = load_settings_file(path)
    assert config is not None
    assert config.menu_max_height is None
    assert config.show_debug is None
    assert config.users_file is None
    assert config.mouse_support is False


def test_malformed_or_empty_files_return_none(tmp_path):
    assert load_settings_file(_write(tmp_path / "a.json", "{not json")) is None
    assert load_settings_file(_write(tmp_path / "b.json", [1, 2])) is None
    assert load_settings_file(_write(tmp_path / "c.json", {})) is None
    assert load_settings_file(tmp_path) is None
