"""Tests for learning store and calibration configuration resolvers."""

import json
from pathlib import Path

import pytest

from utils.learning_config import (
    DEFAULT_CALIBRATION_CONFIG,
    get_calibration_config,
    get_data_dir,
    get_store_backend,
    load_calibration_config,
    validate_calibration_config,
)


def write_config(tmp_path: Path, data) -> Path:
    file_path = tmp_path / "calibration.json"
    file_path.write_text(json.dumps(data, indent=2))
    return file_path


def test_unset_backend_returns_json(monkeypatch):
    monkeypatch.delenv("INFRAGUARD_STORE_BACKEND", raising=False)
    assert get_store_backend() == "json"


def test_memory_backend(monkeypatch):
    monkeypatch.setenv("INFRAGUARD_STORE_BACKEND", " MEMORY ")
    assert get_store_backend() == "memory"


def test_invalid_backend_falls_back_to_json(monkeypatch, caplog):
    monkeypatch.setenv("INFRAGUARD_STORE_BACKEND", "sqlite")
    assert get_store_backend() == "json"
    assert "Invalid INFRAGUARD_STORE_BACKEND" in caplog.text


def test_empty_backend_returns_json(monkeypatch):
    monkeypatch.setenv("INFRAGUARD_STORE_BACKEND", "   ")
    assert get_store_backend() == "json"


def test_data_dir_default(monkeypatch):
    monkeypatch.delenv("INFRAGUARD_DATA_DIR", raising=False)
    data_dir = get_data_dir()
    assert data_dir.name == "data"
    assert data_dir.parent.name == "backend"


def test_data_dir_from_env(monkeypatch, tmp_path):
    monkeypatch.setenv("INFRAGUARD_DATA_DIR", str(tmp_path))
    assert get_data_dir() == tmp_path


def test_validate_full_config():
    config = validate_calibration_config(
        {
            "version": "1.0",
            "min_samples_for_calibration": 5,
            "ignore_rate_downgrade_1": 0.6,
            "ignore_rate_downgrade_2": 0.8,
            "fix_rate_upgrade": 0.4,
            "critical_min_severity": "high",
        }
    )

    assert config.min_samples_for_calibration == 5
    assert config.ignore_rate_downgrade_1 == 0.6
    assert config.ignore_rate_downgrade_2 == 0.8
    assert config.fix_rate_upgrade == 0.4
    assert config.critical_min_severity == "high"


def test_missing_keys_keep_defaults():
    assert validate_calibration_config({"version": "1.0"}) == DEFAULT_CALIBRATION_CONFIG


@pytest.mark.parametrize(
    "data,match",
    [
        ([], "root must be an object"),
        ({}, "missing required key 'version'"),
        ({"version": "2.0"}, "unsupported version"),
        ({"version": "1.0", "min_samples_for_calibration": 0}, "must be >= 1"),
        ({"version": "1.0", "min_samples_for_calibration": True}, "must be an integer"),
        ({"version": "1.0", "fix_rate_upgrade": 1.5}, "must be between 0 and 1"),
        ({"version": "1.0", "ignore_rate_downgrade_1": "high"}, "must be a number"),
        ({"version": "1.0", "ignore_rate_downgrade_2": 0.5}, "must be >="),
        ({"version": "1.0", "critical_min_severity": "suppressed"}, "critical_min_severity"),
    ],
)
def test_invalid_config_raises(data, match):
    with pytest.raises(ValueError, match=match):
        validate_calibration_config(data, "calibration.json")


def test_load_calibration_config(tmp_path):
    path = write_config(tmp_path, {"version": "1.0", "min_samples_for_calibration": 3})

    assert load_calibration_config(path).min_samples_for_calibration == 3


def test_load_missing_file_raises(tmp_path):
    with pytest.raises(ValueError, match="Missing calibration config file"):
        load_calibration_config(tmp_path / "nope.json")


def test_load_invalid_json_raises(tmp_path):
    path = tmp_path / "calibration.json"
    path.write_text("{not json")

    with pytest.raises(ValueError, match="Invalid JSON in 'calibration.json'"):
        load_calibration_config(path)


def test_get_calibration_config_from_env(monkeypatch, tmp_path):
    path = write_config(tmp_path, {"version": "1.0", "fix_rate_upgrade": 0.3})
    monkeypatch.setenv("INFRAGUARD_CALIBRATION_CONFIG", str(path))

    assert get_calibration_config().fix_rate_upgrade == 0.3


def test_invalid_calibration_file_uses_defaults(monkeypatch, tmp_path, caplog):
    path = write_config(tmp_path, {"version": "0.1"})
    monkeypatch.setenv("INFRAGUARD_CALIBRATION_CONFIG", str(path))

    assert get_calibration_config() == DEFAULT_CALIBRATION_CONFIG
    assert "Ignoring calibration config" in caplog.text


def test_unset_calibration_config_uses_defaults(monkeypatch):
    monkeypatch.delenv("INFRAGUARD_CALIBRATION_CONFIG", raising=False)
    assert get_calibration_config() == DEFAULT_CALIBRATION_CONFIG
