import json

import pytest

from Chemi import config_manager


@pytest.fixture
def config_files(tmp_path, monkeypatch):
    config_path = tmp_path / "config.json"
    strings_path = tmp_path / "ui_strings.json"
    monkeypatch.setattr(config_manager, "config_json", config_path)
    monkeypatch.setattr(config_manager, "ui_strings", strings_path)
    return config_path, strings_path


def test_defaults_without_config_file(config_files):
    assert config_manager.load_setting_value("all") == config_manager.DEFAULT_SETTINGS
    assert config_manager.load_setting_value("decimal_places") == 4


def test_partial_config_is_merged_with_defaults(config_files):
    config_path, _ = config_files
    config_path.write_text(json.dumps({"decimal_places": 2}), encoding="utf-8")
    settings = config_manager.load_setting_value("all")
    assert settings["decimal_places"] == 2
    assert settings["gas_constant"] == 0.08206


def test_corrupt_config_uses_defaults(config_files):
    config_path, _ = config_files
    config_path.write_text("{", encoding="utf-8")
    assert config_manager.load_setting_value("darkmode") is False


def test_unknown_key(config_files):
    assert config_manager.load_setting_value("no_such_setting") == 0


def test_save_and_load(config_files):
    settings = {**config_manager.DEFAULT_SETTINGS, "darkmode": True, "molar_mass_decimals": 5}
    assert config_manager.save_setting(settings) == settings
    assert config_manager.load_setting_value("darkmode") is True
    assert config_manager.load_setting_value("molar_mass_decimals") == 5


def test_save_failure_returns_empty_dict(tmp_path, monkeypatch):
    monkeypatch.setattr(config_manager, "config_json", tmp_path / "missing_dir" / "config.json")
    assert config_manager.save_setting({"darkmode": True}) == {}


def test_setting_descriptions(config_files):
    _, strings_path = config_files
    assert config_manager.load_setting_description("all") == {}
    strings_path.write_text(json.dumps({"darkmode": "Dark mode"}), encoding="utf-8")
    assert config_manager.load_setting_description("darkmode") == "Dark mode"
