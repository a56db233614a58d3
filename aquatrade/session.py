from __future__ import annotations

import logging
from pathlib import Path

import streamlit as st

from aquatrade.config import Settings
from aquatrade.db import get_conn
from aquatrade.storage import SqliteStorage
from aquatrade.store import RecordStore


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@st.cache_resource
def get_store(db_path: Path) -> RecordStore:
    return RecordStore(SqliteStorage(get_conn(db_path)))


def warn_persist_errors(store: RecordStore) -> None:
    for key, msg in store.persist_errors.items():
        st.warning(f"Changes to **{key}** are not saved yet: {msg}", icon="⚠️")
