from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path

import streamlit as st

CONFIG_FILE_NAME = "settings.json"
ENV_DATA_DIR = "AQUATRADE_DATA_DIR"
ENV_TAX_RATE = "AQUATRADE_TAX_RATE"
ENV_LOG_LEVEL = "AQUATRADE_LOG_LEVEL"
SESSION_DATA_DIR = "aquatrade_data_dir"

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Settings:
    data_dir: Path
    db_path: Path
    currency: str = "USD"
    tax_rate: float = 0.10
    overdue_days: int = 30
    log_level: str = "INFO"


def _default_data_dir() -> Path:
    return Path.home() / ".aquatrade"


def _load_persisted_settings(data_dir: Path) -> dict:
    cfg = data_dir / CONFIG_FILE_NAME
    if cfg.exists():
        try:
            return json.loads(cfg.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            logger.warning("Ignoring unreadable settings file %s", cfg)
            return {}
    return {}


def persist_data_dir(data_dir_str: str) -> None:
    data_dir = Path(data_dir_str).expanduser().resolve()
    data_dir.mkdir(parents=True, exist_ok=True)

    cfg = data_dir / CONFIG_FILE_NAME
    payload = {"data_dir": str(data_dir)}
    cfg.write_text(json.dumps(payload, indent=2), encoding="utf-8")

    # Update session for immediate effect
    st.session_state[SESSION_DATA_DIR] = str(data_dir)


def load_settings(session_data_dir: str | None = None) -> Settings:
    # Priority order:
    # 1) Session state (set via Data Management page)
    # 2) Environment variable
    # 3) Persisted settings in default folder
    # 4) Default folder
    persisted: dict = {}
    if session_data_dir:
        data_dir = Path(session_data_dir).expanduser().resolve()
    elif os.getenv(ENV_DATA_DIR):
        data_dir = Path(os.getenv(ENV_DATA_DIR, "")).expanduser().resolve()
    else:
        default_dir = _default_data_dir()
        persisted = _load_persisted_settings(default_dir)
        data_dir = Path(persisted.get("data_dir", default_dir)).expanduser().resolve()

    tax_rate = float(persisted.get("tax_rate", 0.10))
    if os.getenv(ENV_TAX_RATE):
        try:
            tax_rate = float(os.getenv(ENV_TAX_RATE, ""))
        except ValueError:
            raise ValueError(f"{ENV_TAX_RATE} must be a number.")
    if tax_rate < 0:
        raise ValueError("Tax rate must be >= 0.")

    log_level = os.getenv(ENV_LOG_LEVEL, str(persisted.get("log_level", "INFO"))).upper()

    data_dir.mkdir(parents=True, exist_ok=True)
    db_path = data_dir / "aquatrade.db"
    return Settings(
        data_dir=data_dir,
        db_path=db_path,
        currency=str(persisted.get("currency", "USD")),
        tax_rate=tax_rate,
        overdue_days=int(persisted.get("overdue_days", 30)),
        log_level=log_level,
    )


@st.cache_resource
def get_settings() -> Settings:
    return load_settings(st.session_state.get(SESSION_DATA_DIR))
