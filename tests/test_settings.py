import json

from ynap.settings import load_settings, save_settings, get_banks_dir, DEFAULTS


def test_save_and_load_roundtrip(tmp_path, monkeypatch):
    monkeypatch.setattr("ynap.settings.SETTINGS_PATH", tmp_path / "settings.json")
    monkeypatch.setattr("ynap.settings.CONFIG_DIR", tmp_path)
    save_settings({**DEFAULTS, "log_level": "DEBUG"})
    assert load_settings()["log_level"] == "DEBUG"


def test_load_settings_returns_defaults_when_missing(tmp_path, monkeypatch):
    monkeypatch.setattr("ynap.settings.SETTINGS_PATH", tmp_path / "settings.json")
    assert load_settings() == DEFAULTS


def test_load_settings_merges_with_defaults(tmp_path, monkeypatch):
    settings_path = tmp_path / "settings.json"
    settings_path.write_text(json.dumps({"workers": 8}))
    monkeypatch.setattr("ynap.settings.SETTINGS_PATH", settings_path)
    settings = load_settings()
    assert settings["workers"] == 8
    assert settings["log_level"] == "WARNING"


def test_get_banks_dir_reads_from_settings(tmp_path, monkeypatch):
    settings_path = tmp_path / "settings.json"
    settings_path.write_text(json.dumps({"banks_dir": "/tmp/custom-banks"}))
    monkeypatch.setattr("ynap.settings.SETTINGS_PATH", settings_path)
    assert str(get_banks_dir()) == "/tmp/custom-banks"


def test_save_creates_config_dir(tmp_path, monkeypatch):
    config_dir = tmp_path / "config" / "ynap"
    monkeypatch.setattr("ynap.settings.CONFIG_DIR", config_dir)
    monkeypatch.setattr("ynap.settings.SETTINGS_PATH", config_dir / "settings.json")
    save_settings(DEFAULTS)
    assert (config_dir / "settings.json").exists()
