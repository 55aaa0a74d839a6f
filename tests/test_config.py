"""Test environment-driven configuration"""
import pytest
from pydantic import ValidationError

from trainsync.config import PollingConfig, default_polling_config, load_settings


def test_default_intervals(monkeypatch):
    for name in ("POLL_HEALTH_MS", "POLL_TASKS_MS", "POLL_PROGRESS_MS"):
        monkeypatch.delenv(name, raising=False)

    config = default_polling_config()

    assert config == PollingConfig(health_interval_ms=30000, tasks_interval_ms=15000, progress_interval_ms=1000)


def test_settings_from_environment(monkeypatch):
    monkeypatch.setenv("TRAINING_SERVER", "http://gpu-box:9000/")
    monkeypatch.setenv("POLL_PROGRESS_MS", "2500")
    monkeypatch.setenv("HYDRATION_CONCURRENCY", "5")
    monkeypatch.setenv("TASK_LIST_LIMIT", "20")

    settings = load_settings()

    assert settings.training_server == "http://gpu-box:9000"
    assert settings.polling.progress_interval_ms == 2500
    assert settings.hydration_concurrency == 5
    assert settings.task_list_limit == 20


def test_non_positive_interval_rejected(monkeypatch):
    monkeypatch.setenv("POLL_TASKS_MS", "0")

    with pytest.raises(ValidationError):
        default_polling_config()
