from __future__ import annotations

import itertools
from datetime import datetime

import pytest

from aquatrade.models import LineItem, Sale
from aquatrade.storage import MemoryStorage
from aquatrade.store import RecordStore


def local_ts(y: int, m: int, d: int, h: int = 12, mi: int = 0) -> str:
    """ISO timestamp for a local wall-clock time (independent of the machine's TZ)."""
    return datetime(y, m, d, h, mi).astimezone().isoformat()


@pytest.fixture
def ts():
    return local_ts


@pytest.fixture
def clock():
    # Monotonic fake clock: one minute per call starting 2026-03-10 09:00 local.
    counter = itertools.count()

    def _now() -> str:
        n = next(counter)
        return local_ts(2026, 3, 10, 9 + n // 60, n % 60)

    return _now


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def store(storage, clock) -> RecordStore:
    return RecordStore(storage, clock=clock, seed={})


@pytest.fixture
def seeded_store(storage, clock) -> RecordStore:
    return RecordStore(storage, clock=clock)


@pytest.fixture
def make_sale():
    counter = itertools.count(1)

    def _make(
        total: float,
        *,
        status: str = "pending",
        created_at: str = "2026-03-10T12:00:00+00:00",
        customer_id: str = "c1",
        customer_name: str = "Ocean Fresh Restaurant",
        product_id: str = "p1",
        product_name: str = "Atlantic Salmon",
        tax: float = 0.0,
        sale_id: str | None = None,
    ) -> Sale:
        subtotal = total - tax
        line = LineItem(product_id=product_id, product_name=product_name, quantity=1.0, price=subtotal, total=subtotal)
        return Sale(
            id=sale_id or f"s{next(counter)}",
            customer_id=customer_id,
            customer_name=customer_name,
            lines=(line,),
            subtotal=subtotal,
            tax=tax,
            total=total,
            payment_status=status,
            created_at=created_at,
        )

    return _make
