"""
Tests for Config loading (config.json + MSE_* env overrides) and the
value types the rules pipeline is configured with.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from modeswitch.api.schemas import CalendarEventIn
from modeswitch.config import Config
from modeswitch.rules.types import DEFAULT_TIMING_CONFIG, CalendarEvent, TimingConfig


# ── Config ───────────────────────────────────────────────────────────────────

def test_defaults(tmp_path: Path):
    cfg = Config(data_dir=tmp_path / "data")
    assert cfg.api_port == 8766
    assert cfg.prep_window_minutes == 45
    assert cfg.synthesis_window_minutes == 60
    assert cfg.meeting_grace_minutes == 2
    assert cfg.minimum_hold_ms == 5000
    assert cfg.data_dir.is_dir()
    assert cfg.audit_db_path == tmp_path / "data" / "audit.db"


def test_timing_mirrors_config(tmp_path: Path):
    cfg = Config(data_dir=tmp_path, prep_window_minutes=30, minimum_hold_ms=0)
    timing = cfg.timing()
    assert timing == TimingConfig(prep_window_minutes=30, minimum_hold_ms=0)
    assert timing.prep_window_ms == 30 * 60_000


def test_load_without_file_uses_defaults(tmp_path: Path, monkeypatch):
    monkeypatch.setenv("MSE_DATA_DIR", str(tmp_path))
    cfg = Config.load(tmp_path / "missing.json")
    assert cfg.prep_window_minutes == 45
    assert cfg.data_dir == tmp_path


def test_load_from_json(tmp_path: Path, monkeypatch):
    config_file = tmp_path / "config.json"
    config_file.write_text(json.dumps({
        "data_dir": str(tmp_path / "store"),
        "prep_window_minutes": 15,
        "minimum_hold_ms": 2500,
        "not_a_setting": True,
    }))
    cfg = Config.load(config_file)
    assert cfg.prep_window_minutes == 15
    assert cfg.minimum_hold_ms == 2500
    assert not hasattr(cfg, "not_a_setting")
    assert cfg.data_dir == tmp_path / "store"
    assert cfg.data_dir.is_dir()


def test_env_overrides_json(tmp_path: Path, monkeypatch):
    config_file = tmp_path / "config.json"
    config_file.write_text(json.dumps({"data_dir": str(tmp_path), "api_port": 9000}))
    monkeypatch.setenv("MSE_API_PORT", "9100")
    monkeypatch.setenv("MSE_MINIMUM_HOLD_MS", "1000")
    monkeypatch.setenv("MSE_LOG_LEVEL", "debug")
    cfg = Config.load(config_file)
    assert cfg.api_port == 9100
    assert cfg.minimum_hold_ms == 1000
    assert cfg.log_level == "debug"
    assert cfg.timing().minimum_hold_ms == 1000


def test_env_accepts_fractional_minutes(tmp_path: Path, monkeypatch):
    monkeypatch.setenv("MSE_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("MSE_PREP_WINDOW_MINUTES", "7.5")
    monkeypatch.setenv("MSE_MEETING_GRACE_MINUTES", "0.5")
    cfg = Config.load(tmp_path / "missing.json")
    assert cfg.prep_window_minutes == 7.5
    assert cfg.timing().prep_window_ms == 450_000
    assert cfg.timing().grace_ms == 30_000


# ── TimingConfig ─────────────────────────────────────────────────────────────

def test_default_timing():
    assert DEFAULT_TIMING_CONFIG.grace_ms == 120_000
    assert DEFAULT_TIMING_CONFIG.synthesis_window_ms == 3_600_000


def test_fractional_minutes():
    assert TimingConfig(meeting_grace_minutes=0.5).grace_ms == 30_000


@pytest.mark.parametrize("field", [
    "prep_window_minutes", "synthesis_window_minutes", "meeting_grace_minutes", "minimum_hold_ms",
])
def test_negative_values_rejected(field):
    with pytest.raises(ValueError):
        TimingConfig(**{field: -1})


@pytest.mark.parametrize("value", ["45", None, True])
def test_non_numbers_rejected(value):
    with pytest.raises(TypeError):
        TimingConfig(prep_window_minutes=value)


# ── CalendarEvent.from_dict ──────────────────────────────────────────────────

def test_event_from_camel_case():
    event = CalendarEvent.from_dict({
        "id": "evt-1",
        "title": "Sync",
        "startTime": 1000,
        "endTime": 2000,
        "attendees": ["a@example.com"],
    })
    assert event == CalendarEvent("evt-1", "Sync", 1000, 2000, ("a@example.com",))


def test_event_from_snake_case():
    event = CalendarEvent.from_dict({"id": 7, "start_time": 1000, "end_time": 2000})
    assert event.id == "7"
    assert event.title == ""
    assert event.attendees == ()


def test_event_missing_times_raises():
    with pytest.raises(KeyError):
        CalendarEvent.from_dict({"id": "x", "startTime": 1000})


def test_api_event_builds_through_from_dict():
    payload = {"id": "evt-1", "title": "Sync", "startTime": 1000, "endTime": 2000, "attendees": ["a"]}
    assert CalendarEventIn(**payload).to_event() == CalendarEvent.from_dict(payload)
