from __future__ import annotations

import random
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from aquatrade.store import RecordStore


# Starting dataset for a fresh install (any collection with no stored value).
SEED_RECORDS: dict[str, list[dict]] = {
    "customers": [
        {
            "id": "1",
            "name": "Ocean Fresh Restaurant",
            "email": "orders@oceanfresh.com",
            "phone": "+1-555-0101",
            "address": "123 Harbor Street, Coastal City",
            "balance": 2450.00,
            "createdAt": "2024-01-15T10:30:00Z",
        },
        {
            "id": "2",
            "name": "Maritime Seafood Market",
            "email": "purchasing@maritime.com",
            "phone": "+1-555-0102",
            "address": "456 Fisherman's Wharf, Port Town",
            "balance": 1850.75,
            "createdAt": "2024-01-20T14:15:00Z",
        },
    ],
    "parties": [
        {
            "id": "1",
            "name": "Deep Sea Fisheries Ltd.",
            "type": "supplier",
            "contact": "+1-555-0201",
            "address": "789 Trawler Avenue, Fish Port",
            "balance": -3200.00,
            "createdAt": "2024-01-10T08:00:00Z",
        },
        {
            "id": "2",
            "name": "Coastal Distribution Co.",
            "type": "distributor",
            "contact": "+1-555-0202",
            "address": "321 Distribution Drive, Trade Center",
            "balance": 1500.25,
            "createdAt": "2024-01-12T11:45:00Z",
        },
    ],
    "products": [
        {
            "id": "1",
            "name": "Atlantic Salmon",
            "category": "Fresh Fish",
            "unit": "kg",
            "purchasePrice": 12.50,
            "sellingPrice": 18.00,
            "stock": 150,
            "minStock": 20,
            "createdAt": "2024-01-01T00:00:00Z",
        },
        {
            "id": "2",
            "name": "Pacific Tuna",
            "category": "Fresh Fish",
            "unit": "kg",
            "purchasePrice": 15.00,
            "sellingPrice": 22.00,
            "stock": 80,
            "minStock": 15,
            "createdAt": "2024-01-01T00:00:00Z",
        },
        {
            "id": "3",
            "name": "King Prawns",
            "category": "Shellfish",
            "unit": "kg",
            "purchasePrice": 25.00,
            "sellingPrice": 35.00,
            "stock": 45,
            "minStock": 10,
            "createdAt": "2024-01-01T00:00:00Z",
        },
    ],
}

FISH_TYPES = ["Salmon", "Tuna", "Mackerel", "Tilapia", "Sardine"]


def wipe_all(store: "RecordStore") -> None:
    # Keep the keys, store empty collections (no reseed on next start).
    for kind in ("fishboxes", "purchases", "sales", "products", "parties", "customers"):
        store.clear(kind)


def reset_to_seed(store: "RecordStore") -> None:
    for kind in ("customers", "parties", "products", "sales", "purchases", "fishboxes"):
        store.reset(kind)


def load_demo_data(
    store: "RecordStore",
    *,
    seed: int = 7,
    tax_rate: float = 0.10,
    now: Optional[datetime] = None,
) -> None:
    """
    Adds a spread of sales, purchases and fish boxes over the last two months so the
    reports have something to show. Timestamps are back-dated by swapping the store clock.
    """
    from aquatrade.services.billing import LineSelection, record_purchase, record_sale

    rng = random.Random(seed)
    now = now or datetime.now(timezone.utc)

    customers = list(store.customers)
    parties = list(store.parties)
    products = list(store.products)
    if not customers or not parties or not products:
        raise ValueError("Demo data needs at least one customer, party and product. Reset to seed data first.")

    original_clock = store.clock
    try:
        for i in range(24):
            ts = now - timedelta(days=rng.randint(0, 60), hours=rng.randint(0, 8))
            store.clock = lambda ts=ts: ts.replace(microsecond=0).isoformat()

            picks = rng.sample(products, k=rng.randint(1, len(products)))
            record_sale(
                store,
                customer_id=rng.choice(customers).id,
                selections=[LineSelection(product_id=p.id, quantity=float(rng.randint(2, 25))) for p in picks],
                tax_rate=tax_rate,
                payment_status=rng.choice(["paid", "paid", "pending", "partial"]),
            )

            if i % 3 == 0:
                suppliers = [p for p in parties if p.type == "supplier"] or parties
                record_purchase(
                    store,
                    party_id=rng.choice(suppliers).id,
                    selections=[LineSelection(product_id=p.id, quantity=float(rng.randint(20, 60))) for p in picks],
                    tax_rate=tax_rate,
                    payment_status=rng.choice(["paid", "pending"]),
                )
    finally:
        store.clock = original_clock

    suppliers = [p for p in parties if p.type == "supplier"]
    for i in range(10):
        day = (now - timedelta(days=rng.randint(0, 10))).date().isoformat()
        store.add_fish_box(
            box_number=f"BX-{day.replace('-', '')}-{i + 1:03d}",
            fish_type=rng.choice(FISH_TYPES),
            weight=round(rng.uniform(8, 25), 1),
            grade=rng.choice(["A", "A", "B", "C"]),
            status="received",
            supplier_id=rng.choice(suppliers).id if suppliers else None,
            date=day,
        )
