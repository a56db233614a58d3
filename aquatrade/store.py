"""
Record store and mutation layer.

Six independent ordered collections (insertion order = display order), each persisted
as one JSON array under a fixed key. Every mutation rewrites its collection through the
storage port before returning. If the write fails the error is logged, remembered in
``persist_errors`` and the in-memory collection stays authoritative.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Callable, Optional, Sequence

from aquatrade.models import (
    Customer,
    CustomerUpdate,
    FishBox,
    FishBoxUpdate,
    LineItem,
    Party,
    PartyUpdate,
    Product,
    ProductUpdate,
    Purchase,
    PurchaseUpdate,
    Sale,
    SaleUpdate,
    from_record,
    merge,
    to_record,
)
from aquatrade.services.demo_data import SEED_RECORDS
from aquatrade.storage import StorageError, StoragePort
from aquatrade.utils import iso_now, iso_today, new_id

logger = logging.getLogger(__name__)

KEY_PREFIX = "fishmarket_"

COLLECTIONS: dict[str, type] = {
    "customers": Customer,
    "parties": Party,
    "products": Product,
    "sales": Sale,
    "purchases": Purchase,
    "fishboxes": FishBox,
}


def storage_key(kind: str) -> str:
    return f"{KEY_PREFIX}{kind}"


def _check_kind(kind: str) -> None:
    if kind not in COLLECTIONS:
        raise ValueError(f"Unknown collection '{kind}'.")


class RecordStore:
    def __init__(
        self,
        storage: StoragePort,
        *,
        clock: Callable[[], str] = iso_now,
        seed: Optional[dict[str, list[dict]]] = None,
    ) -> None:
        self.storage = storage
        self.clock = clock
        self.seed = SEED_RECORDS if seed is None else seed
        self.persist_errors: dict[str, str] = {}
        self._data: dict[str, list[Any]] = {kind: self._load(kind) for kind in COLLECTIONS}

    # -------------------------
    # Loading / persistence
    # -------------------------

    def _load(self, kind: str) -> list[Any]:
        cls = COLLECTIONS[kind]
        raw = self.storage.load(storage_key(kind))
        if raw is None:
            seeded = self.seed.get(kind, [])
            if seeded:
                logger.info("No stored %s, starting from %d seed record(s)", kind, len(seeded))
            return [from_record(cls, r) for r in seeded]
        return self._decode(kind, raw)

    def _decode(self, kind: str, raw: bytes) -> list[Any]:
        cls = COLLECTIONS[kind]
        try:
            rows = json.loads(raw)
        except ValueError as e:
            raise StorageError(f"Stored '{storage_key(kind)}' is not valid JSON.") from e
        if not isinstance(rows, list):
            raise StorageError(f"Stored '{storage_key(kind)}' is not a JSON array.")
        try:
            return [from_record(cls, r) for r in rows]
        except (TypeError, ValueError, AttributeError) as e:
            raise StorageError(f"Stored '{storage_key(kind)}' has a malformed record: {e}") from e

    def _persist(self, kind: str) -> bool:
        key = storage_key(kind)
        payload = json.dumps([to_record(r) for r in self._data[kind]]).encode("utf-8")
        try:
            self.storage.save(key, payload)
        except StorageError as e:
            logger.exception("Failed to persist %s; keeping in-memory state", kind)
            self.persist_errors[key] = str(e)
            return False
        self.persist_errors.pop(key, None)
        return True

    # -------------------------
    # Reads
    # -------------------------

    def list(self, kind: str) -> tuple:
        _check_kind(kind)
        return tuple(self._data[kind])

    def get(self, kind: str, record_id: str) -> Optional[Any]:
        _check_kind(kind)
        return next((r for r in self._data[kind] if r.id == record_id), None)

    @property
    def customers(self) -> tuple[Customer, ...]:
        return self.list("customers")

    @property
    def parties(self) -> tuple[Party, ...]:
        return self.list("parties")

    @property
    def products(self) -> tuple[Product, ...]:
        return self.list("products")

    @property
    def sales(self) -> tuple[Sale, ...]:
        return self.list("sales")

    @property
    def purchases(self) -> tuple[Purchase, ...]:
        return self.list("purchases")

    @property
    def fish_boxes(self) -> tuple[FishBox, ...]:
        return self.list("fishboxes")

    # -------------------------
    # Generic mutations
    # -------------------------

    def _next_id(self, kind: str) -> str:
        return new_id({r.id for r in self._data[kind]})

    def _add(self, kind: str, record: Any) -> Any:
        self._data[kind].append(record)
        logger.debug("Added %s %s", kind, record.id)
        self._persist(kind)
        return record

    def _update(self, kind: str, record_id: str, update: Any) -> Optional[Any]:
        rows = self._data[kind]
        for i, r in enumerate(rows):
            if r.id == record_id:
                rows[i] = merge(r, update)
                logger.debug("Updated %s %s", kind, record_id)
                self._persist(kind)
                return rows[i]
        return None

    def _delete(self, kind: str, record_id: str) -> bool:
        rows = self._data[kind]
        for i, r in enumerate(rows):
            if r.id == record_id:
                del rows[i]
                logger.debug("Deleted %s %s", kind, record_id)
                self._persist(kind)
                return True
        return False

    def clear(self, kind: str) -> None:
        """Empty a collection (persisted as an empty array)."""
        _check_kind(kind)
        self._data[kind] = []
        self._persist(kind)

    def reset(self, kind: str) -> bool:
        """Forget a stored collection; it falls back to the seed data like a fresh install."""
        _check_kind(kind)
        key = storage_key(kind)
        try:
            self.storage.remove(key)
        except StorageError as e:
            logger.exception("Failed to reset %s; keeping in-memory state", kind)
            self.persist_errors[key] = str(e)
            return False
        self.persist_errors.pop(key, None)
        self._data[kind] = self._load(kind)
        return True

    def snapshot(self) -> dict[str, Any]:
        out: dict[str, Any] = {kind: [to_record(r) for r in rows] for kind, rows in self._data.items()}
        out["exportDate"] = self.clock()
        return out

    # -------------------------
    # Customers
    # -------------------------

    def add_customer(
        self,
        *,
        name: str,
        email: str = "",
        phone: str = "",
        address: str = "",
        balance: float = 0.0,
    ) -> Customer:
        rec = Customer(
            id=self._next_id("customers"),
            name=name,
            email=email,
            phone=phone,
            address=address,
            balance=float(balance),
            created_at=self.clock(),
        )
        return self._add("customers", rec)

    def update_customer(self, customer_id: str, update: CustomerUpdate) -> Optional[Customer]:
        return self._update("customers", customer_id, update)

    def delete_customer(self, customer_id: str) -> bool:
        return self._delete("customers", customer_id)

    # -------------------------
    # Parties
    # -------------------------

    def add_party(
        self,
        *,
        name: str,
        type: str = "supplier",
        contact: str = "",
        address: str = "",
        balance: float = 0.0,
    ) -> Party:
        rec = Party(
            id=self._next_id("parties"),
            name=name,
            type=type,
            contact=contact,
            address=address,
            balance=float(balance),
            created_at=self.clock(),
        )
        return self._add("parties", rec)

    def update_party(self, party_id: str, update: PartyUpdate) -> Optional[Party]:
        return self._update("parties", party_id, update)

    def delete_party(self, party_id: str) -> bool:
        return self._delete("parties", party_id)

    # -------------------------
    # Products
    # -------------------------

    def add_product(
        self,
        *,
        name: str,
        category: str = "",
        unit: str = "kg",
        purchase_price: float = 0.0,
        selling_price: float = 0.0,
        stock: float = 0.0,
        min_stock: float = 0.0,
    ) -> Product:
        rec = Product(
            id=self._next_id("products"),
            name=name,
            category=category,
            unit=unit,
            purchase_price=float(purchase_price),
            selling_price=float(selling_price),
            stock=float(stock),
            min_stock=float(min_stock),
            created_at=self.clock(),
        )
        return self._add("products", rec)

    def update_product(self, product_id: str, update: ProductUpdate) -> Optional[Product]:
        return self._update("products", product_id, update)

    def delete_product(self, product_id: str) -> bool:
        return self._delete("products", product_id)

    # -------------------------
    # Sales / purchases
    # -------------------------

    def add_sale(
        self,
        *,
        customer_id: str,
        customer_name: str,
        lines: Sequence[LineItem],
        subtotal: float,
        tax: float,
        total: float,
        payment_status: str = "pending",
    ) -> Sale:
        rec = Sale(
            id=self._next_id("sales"),
            customer_id=customer_id,
            customer_name=customer_name,
            lines=tuple(lines),
            subtotal=float(subtotal),
            tax=float(tax),
            total=float(total),
            payment_status=payment_status,
            created_at=self.clock(),
        )
        return self._add("sales", rec)

    def update_sale(self, sale_id: str, update: SaleUpdate) -> Optional[Sale]:
        return self._update("sales", sale_id, update)

    def delete_sale(self, sale_id: str) -> bool:
        return self._delete("sales", sale_id)

    def add_purchase(
        self,
        *,
        party_id: str,
        party_name: str,
        lines: Sequence[LineItem],
        subtotal: float,
        tax: float,
        total: float,
        payment_status: str = "pending",
    ) -> Purchase:
        rec = Purchase(
            id=self._next_id("purchases"),
            party_id=party_id,
            party_name=party_name,
            lines=tuple(lines),
            subtotal=float(subtotal),
            tax=float(tax),
            total=float(total),
            payment_status=payment_status,
            created_at=self.clock(),
        )
        return self._add("purchases", rec)

    def update_purchase(self, purchase_id: str, update: PurchaseUpdate) -> Optional[Purchase]:
        return self._update("purchases", purchase_id, update)

    def delete_purchase(self, purchase_id: str) -> bool:
        return self._delete("purchases", purchase_id)

    # -------------------------
    # Fish boxes
    # -------------------------

    def add_fish_box(
        self,
        *,
        box_number: str,
        fish_type: str,
        weight: float,
        grade: str = "A",
        status: str = "received",
        supplier_id: Optional[str] = None,
        customer_id: Optional[str] = None,
        date: Optional[str] = None,
    ) -> FishBox:
        rec = FishBox(
            id=self._next_id("fishboxes"),
            box_number=box_number,
            fish_type=fish_type,
            weight=float(weight),
            grade=grade,
            supplier_id=supplier_id or None,
            customer_id=customer_id or None,
            status=status,
            date=date or iso_today(),
        )
        return self._add("fishboxes", rec)

    def update_fish_box(self, box_id: str, update: FishBoxUpdate) -> Optional[FishBox]:
        current = self.get("fishboxes", box_id)
        if current is None:
            return None
        if current.status == "sent" and update.status not in (None, "sent"):
            raise ValueError(f"Box {current.box_number} was already sent; it cannot go back to '{update.status}'.")
        return self._update("fishboxes", box_id, update)

    def delete_fish_box(self, box_id: str) -> bool:
        return self._delete("fishboxes", box_id)

