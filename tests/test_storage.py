from __future__ import annotations

import pytest

from aquatrade.db import connect
from aquatrade.models import CustomerUpdate
from aquatrade.storage import MemoryStorage, SqliteStorage, StorageError
from aquatrade.store import RecordStore, storage_key


@pytest.fixture
def sqlite_storage(tmp_path):
    conn = connect(tmp_path / "aquatrade.db")
    yield SqliteStorage(conn)
    conn.close()


def test_sqlite_load_save_remove(sqlite_storage):
    assert sqlite_storage.load("fishmarket_customers") is None

    sqlite_storage.save("fishmarket_customers", b"[1]")
    sqlite_storage.save("fishmarket_customers", b"[1, 2]")
    assert sqlite_storage.load("fishmarket_customers") == b"[1, 2]"
    assert sqlite_storage.keys() == ["fishmarket_customers"]

    sqlite_storage.remove("fishmarket_customers")
    sqlite_storage.remove("fishmarket_customers")
    assert sqlite_storage.load("fishmarket_customers") is None


def test_sqlite_save_failure_raises_storage_error(tmp_path):
    conn = connect(tmp_path / "aquatrade.db")
    storage = SqliteStorage(conn)
    conn.close()
    with pytest.raises(StorageError):
        storage.save("fishmarket_sales", b"[]")


def test_store_survives_restart(tmp_path, clock):
    db = tmp_path / "aquatrade.db"

    conn = connect(db)
    s1 = RecordStore(SqliteStorage(conn), clock=clock)
    cust = s1.add_customer(name="Harbor Grill", balance=75.5)
    s1.update_customer(cust.id, CustomerUpdate(phone="+1-555-0199"))
    conn.close()

    conn = connect(db)
    s2 = RecordStore(SqliteStorage(conn), clock=clock)
    names = [c.name for c in s2.customers]
    assert names == ["Ocean Fresh Restaurant", "Maritime Seafood Market", "Harbor Grill"]
    assert s2.get("customers", cust.id).phone == "+1-555-0199"
    # Untouched collections still come from the seed.
    assert len(s2.products) == 3
    conn.close()


def test_keys_use_fishmarket_prefix(storage, store):
    store.add_party(name="Coastal Distribution Co.", type="distributor")
    assert list(storage.data) == [storage_key("parties")] == ["fishmarket_parties"]


def test_memory_storage_initial_data_is_copied():
    initial = {"k": b"v"}
    m = MemoryStorage(initial)
    m.save("k", b"w")
    assert initial == {"k": b"v"}
    assert m.writes == 1
