from __future__ import annotations

import json

import pytest

from aquatrade.config import CONFIG_FILE_NAME, load_settings


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for var in ("AQUATRADE_DATA_DIR", "AQUATRADE_TAX_RATE", "AQUATRADE_LOG_LEVEL"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))


def test_defaults_under_home(tmp_path):
    s = load_settings()
    assert s.data_dir == (tmp_path / "home" / ".aquatrade").resolve()
    assert s.db_path == s.data_dir / "aquatrade.db"
    assert s.data_dir.is_dir()
    assert (s.tax_rate, s.currency, s.overdue_days, s.log_level) == (0.10, "USD", 30, "INFO")


def test_env_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("AQUATRADE_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("AQUATRADE_TAX_RATE", "0.16")
    monkeypatch.setenv("AQUATRADE_LOG_LEVEL", "debug")

    s = load_settings()
    assert s.data_dir == (tmp_path / "data").resolve()
    assert s.tax_rate == pytest.approx(0.16)
    assert s.log_level == "DEBUG"


def test_session_dir_wins_over_env(monkeypatch, tmp_path):
    monkeypatch.setenv("AQUATRADE_DATA_DIR", str(tmp_path / "env"))
    s = load_settings(str(tmp_path / "session"))
    assert s.data_dir == (tmp_path / "session").resolve()


def test_persisted_settings_file(tmp_path):
    default_dir = tmp_path / "home" / ".aquatrade"
    default_dir.mkdir(parents=True)
    (default_dir / CONFIG_FILE_NAME).write_text(
        json.dumps({"data_dir": str(tmp_path / "elsewhere"), "currency": "KES", "overdue_days": 14}),
        encoding="utf-8",
    )

    s = load_settings()
    assert s.data_dir == (tmp_path / "elsewhere").resolve()
    assert s.currency == "KES"
    assert s.overdue_days == 14


def test_unreadable_settings_file_is_ignored(tmp_path, caplog):
    default_dir = tmp_path / "home" / ".aquatrade"
    default_dir.mkdir(parents=True)
    (default_dir / CONFIG_FILE_NAME).write_text("{broken", encoding="utf-8")

    s = load_settings()
    assert s.data_dir == default_dir.resolve()
    assert "Ignoring unreadable settings file" in caplog.text


@pytest.mark.parametrize("value", ["ten percent", "-0.1"])
def test_bad_tax_rate(monkeypatch, value):
    monkeypatch.setenv("AQUATRADE_TAX_RATE", value)
    with pytest.raises(ValueError):
        load_settings()
