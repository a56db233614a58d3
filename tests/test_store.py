from __future__ import annotations

import json
import logging

import pytest

from aquatrade.models import CustomerUpdate, FishBoxUpdate, LineItem, ProductUpdate, SaleUpdate
from aquatrade.services.demo_data import reset_to_seed
from aquatrade.storage import MemoryStorage, StorageError
from aquatrade.store import RecordStore, storage_key


class FailingStorage(MemoryStorage):
    def save(self, key: str, payload: bytes) -> None:
        raise StorageError(f"disk full while writing {key}")


class LockedStorage(MemoryStorage):
    def remove(self, key: str) -> None:
        raise StorageError(f"locked {key}")


def test_add_assigns_id_and_timestamp_and_appends(store):
    a = store.add_customer(name="Ocean Fresh Restaurant", balance=2450.0)
    b = store.add_customer(name="Maritime Seafood Market")

    assert a.id and b.id and a.id != b.id
    assert a.created_at.startswith("2026-03-10T09:00:00")
    assert [c.id for c in store.customers] == [a.id, b.id]


def test_every_mutation_persists_whole_collection(store, storage):
    c = store.add_customer(name="A")
    assert storage.writes == 1
    store.update_customer(c.id, CustomerUpdate(phone="+1-555"))
    store.add_customer(name="B")
    assert storage.writes == 3

    rows = json.loads(storage.load(storage_key("customers")))
    assert [r["name"] for r in rows] == ["A", "B"]
    assert rows[0]["phone"] == "+1-555"
    assert "createdAt" in rows[0]


def test_update_round_trip_keeps_other_fields(store):
    p = store.add_product(name="Pacific Tuna", category="Fresh Fish", purchase_price=15, selling_price=22, stock=80, min_stock=15)

    updated = store.update_product(p.id, ProductUpdate(stock=12))
    again = store.get("products", p.id)

    assert updated == again
    assert again.stock == 12
    assert again.id == p.id
    assert again.created_at == p.created_at
    assert (again.name, again.category, again.selling_price, again.min_stock) == ("Pacific Tuna", "Fresh Fish", 22, 15)


def test_update_keeps_position(store):
    ids = [store.add_customer(name=n).id for n in ("A", "B", "C")]
    store.update_customer(ids[0], CustomerUpdate(name="A2"))
    assert [c.name for c in store.customers] == ["A2", "B", "C"]


def test_update_unknown_id_is_noop(store, storage):
    store.add_customer(name="A")
    before = storage.writes
    assert store.update_customer("missing", CustomerUpdate(name="X")) is None
    assert storage.writes == before
    assert [c.name for c in store.customers] == ["A"]


def test_delete_is_idempotent(store):
    a = store.add_customer(name="A")
    store.add_customer(name="B")

    assert store.delete_customer(a.id) is True
    once = store.customers
    assert store.delete_customer(a.id) is False
    assert store.customers == once
    assert [c.name for c in once] == ["B"]


def test_records_are_immutable(store):
    c = store.add_customer(name="A")
    with pytest.raises(Exception):
        c.name = "changed"


def test_reload_from_same_storage(store, storage, clock):
    c = store.add_customer(name="A", balance=100)
    store.add_product(name="Salmon", stock=5, min_stock=10)

    reopened = RecordStore(storage, clock=clock, seed={})
    assert reopened.customers == store.customers
    assert reopened.products == store.products
    assert reopened.get("customers", c.id).balance == 100


def test_missing_keys_fall_back_to_seed(seeded_store):
    assert [c.name for c in seeded_store.customers] == ["Ocean Fresh Restaurant", "Maritime Seafood Market"]
    assert len(seeded_store.parties) == 2
    assert len(seeded_store.products) == 3
    assert seeded_store.sales == ()
    assert seeded_store.fish_boxes == ()


def test_stored_empty_collection_is_not_reseeded(storage, clock):
    storage.save(storage_key("customers"), b"[]")
    s = RecordStore(storage, clock=clock)
    assert s.customers == ()
    assert len(s.products) == 3


def test_corrupt_collection_raises(storage, clock):
    storage.save(storage_key("sales"), b"{not json")
    with pytest.raises(StorageError):
        RecordStore(storage, clock=clock)


def test_persist_failure_keeps_memory_and_logs(clock, caplog):
    s = RecordStore(FailingStorage(), clock=clock, seed={})
    with caplog.at_level(logging.ERROR, logger="aquatrade.store"):
        c = s.add_customer(name="A")

    assert s.get("customers", c.id) == c
    assert storage_key("customers") in s.persist_errors
    assert "Failed to persist customers" in caplog.text


def test_persist_error_cleared_after_successful_write(clock):
    storage = FailingStorage()
    s = RecordStore(storage, clock=clock, seed={})
    s.add_customer(name="A")
    assert s.persist_errors

    s.storage = MemoryStorage()
    s.add_customer(name="B")
    assert s.persist_errors == {}


def test_sale_payment_status_update(store):
    cust = store.add_customer(name="A")
    line = LineItem(product_id="p1", product_name="Salmon", quantity=2, price=5.0, total=10.0)
    sale = store.add_sale(customer_id=cust.id, customer_name=cust.name, lines=[line], subtotal=10, tax=1, total=11)
    assert sale.payment_status == "pending"

    store.update_sale(sale.id, SaleUpdate(payment_status="paid"))
    assert store.get("sales", sale.id).payment_status == "paid"

    with pytest.raises(ValueError):
        store.update_sale(sale.id, SaleUpdate(payment_status="refunded"))


def test_sent_fish_box_cannot_go_back(store):
    box = store.add_fish_box(box_number="BX-1", fish_type="Salmon", weight=12.5, status="sent")
    with pytest.raises(ValueError, match="already sent"):
        store.update_fish_box(box.id, FishBoxUpdate(status="received"))

    # Other fields can still be corrected.
    fixed = store.update_fish_box(box.id, FishBoxUpdate(weight=13.0))
    assert fixed.weight == 13.0 and fixed.status == "sent"


def test_clear_and_reset(seeded_store, storage):
    seeded_store.clear("customers")
    assert seeded_store.customers == ()
    assert storage.load(storage_key("customers")) == b"[]"

    seeded_store.reset("customers")
    assert storage.load(storage_key("customers")) is None
    assert len(seeded_store.customers) == 2


def test_unknown_collection(store):
    with pytest.raises(ValueError):
        store.list("invoices")


def test_snapshot_has_all_collections(seeded_store):
    snap = seeded_store.snapshot()
    assert set(snap) == {"customers", "parties", "products", "sales", "purchases", "fishboxes", "exportDate"}
    assert snap["products"][0]["purchasePrice"] == 12.5


def test_sale_without_lines_is_rejected(store):
    with pytest.raises(ValueError, match="at least one product line"):
        store.add_sale(customer_id="c1", customer_name="A", lines=(), subtotal=0, tax=0, total=0)
    assert store.sales == ()


def test_reset_failure_keeps_memory_and_logs(clock, caplog):
    s = RecordStore(LockedStorage(), clock=clock)
    s.clear("customers")

    with caplog.at_level(logging.ERROR, logger="aquatrade.store"):
        assert s.reset("customers") is False

    assert s.customers == ()
    assert s.persist_errors[storage_key("customers")] == "locked fishmarket_customers"
    assert "Failed to reset customers" in caplog.text


def test_reset_to_seed_survives_locked_storage(clock):
    s = RecordStore(LockedStorage(), clock=clock)
    reset_to_seed(s)
    assert len(s.persist_errors) == 6


def test_malformed_row_raises_storage_error(storage, clock):
    storage.save(storage_key("customers"), json.dumps([{"id": "1"}]).encode("utf-8"))
    with pytest.raises(StorageError, match="malformed record"):
        RecordStore(storage, clock=clock)


def test_invalid_row_value_raises_storage_error(storage, clock):
    rows = [{"id": "1", "name": "Salmon", "stock": -3}]
    storage.save(storage_key("products"), json.dumps(rows).encode("utf-8"))
    with pytest.raises(StorageError):
        RecordStore(storage, clock=clock)


def test_fish_box_links_can_be_cleared(store):
    box = store.add_fish_box(box_number="BX-1", fish_type="Salmon", weight=10, supplier_id="p1")

    kept = store.update_fish_box(box.id, FishBoxUpdate(supplier_id=None, grade="B"))
    assert kept.supplier_id == "p1"

    cleared = store.update_fish_box(box.id, FishBoxUpdate(supplier_id=""))
    assert cleared.supplier_id is None
    assert store.get("fishboxes", box.id).supplier_id is None
