"""Tests for learning store backend selection."""

import pytest

from services.calibration_store import InMemoryCalibrationStore, JsonCalibrationStore
from services.feedback_store import InMemoryFeedbackStore, JsonFeedbackStore
from services.learning_stores import LearningStores
from services.usage_store import InMemoryUsageStore, JsonUsageStore


def test_in_memory_handle():
    stores = LearningStores.in_memory()

    assert stores.backend == "memory"
    assert isinstance(stores.feedback, InMemoryFeedbackStore)
    assert isinstance(stores.usage, InMemoryUsageStore)
    assert isinstance(stores.calibration, InMemoryCalibrationStore)


def test_json_handle_uses_learning_subdir(tmp_path):
    stores = LearningStores(backend="json", data_dir=tmp_path)

    assert stores.backend == "json"
    assert isinstance(stores.feedback, JsonFeedbackStore)
    assert isinstance(stores.usage, JsonUsageStore)
    assert isinstance(stores.calibration, JsonCalibrationStore)
    assert (tmp_path / "learning").is_dir()


def test_unwritable_dir_falls_back_to_memory(tmp_path, caplog):
    blocker = tmp_path / "blocker"
    blocker.write_text("file, not a directory")

    stores = LearningStores(backend="json", data_dir=blocker)

    assert stores.backend == "memory"
    assert isinstance(stores.feedback, InMemoryFeedbackStore)
    assert "not writable" in caplog.text


def test_backend_from_env(monkeypatch, tmp_path):
    monkeypatch.setenv("INFRAGUARD_STORE_BACKEND", "memory")
    monkeypatch.setenv("INFRAGUARD_DATA_DIR", str(tmp_path))

    assert LearningStores().backend == "memory"
    assert not (tmp_path / "learning").exists()


def test_selection_happens_once(tmp_path):
    stores = LearningStores(backend="json", data_dir=tmp_path)

    first = stores.feedback
    assert stores.feedback is first
    assert stores.usage is stores.usage


def test_caps_are_passed_through():
    stores = LearningStores.in_memory(feedback_cap=5, usage_cap=6, interaction_cap=7)

    assert stores.feedback.cap == 5
    assert stores.usage.cap == 6
    assert stores.calibration.cap == 7


def test_invalid_backend_raises():
    with pytest.raises(ValueError):
        LearningStores(backend="sqlite")
