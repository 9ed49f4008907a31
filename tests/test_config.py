import json
from pathlib import Path

from saga import config


def test_user_data_dir_honours_saga_home(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("SAGA_HOME", str(tmp_path))

    assert config.get_user_data_dir() == tmp_path
    assert config.get_save_dir() == tmp_path / "saves"
    assert config.get_default_config_path() == tmp_path / "config.json"


def test_load_config_defaults_when_missing(tmp_path: Path) -> None:
    loaded = config.load_config(tmp_path / "missing.json")

    assert loaded == config.EngineConfig()
    assert loaded.manual_slot_count == 3
    assert loaded.auto_slot_count == 3


def test_load_config_defaults_when_invalid_json(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text("{ nope", encoding="utf-8")

    assert config.load_config(path) == config.EngineConfig()


def test_load_config_normalizes_invalid_values(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text(
        json.dumps(
            {
                "manual_slot_count": 0,
                "auto_slot_count": True,
                "autosave_enabled": "yes",
                "deferred_autosave": True,
                "save_dir": str(tmp_path / "saves"),
            }
        ),
        encoding="utf-8",
    )

    loaded = config.load_config(path)

    assert loaded.manual_slot_count == 3
    assert loaded.auto_slot_count == 3
    assert loaded.autosave_enabled is True
    assert loaded.deferred_autosave is True
    assert loaded.save_dir == tmp_path / "saves"
    assert loaded.resolved_save_dir() == tmp_path / "saves"


def test_save_config_round_trip(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "config.json"
    original = config.EngineConfig(manual_slot_count=5, quarantine_corrupt_saves=False, definitions_dir=tmp_path)

    config.save_config(original, path)

    assert config.load_config(path) == original


def test_resolved_save_dir_defaults_to_user_dir(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("SAGA_HOME", str(tmp_path))

    assert config.EngineConfig().resolved_save_dir() == tmp_path / "saves"
