"""
pandas views of engine results, used by the pages for tables, charts and downloads.
"""
from __future__ import annotations

import json
from dataclasses import asdict
from typing import Any, Iterable, Sequence

import pandas as pd

from aquatrade.models import Product, to_record
from aquatrade.services.aggregates import PeriodBucket
from aquatrade.services.billing import LineSelection
from aquatrade.services.ledger import Statement


def records_frame(records: Iterable[Any]) -> pd.DataFrame:
    """Flat frame of records using the stored (camelCase) field names; line items dropped."""
    rows = []
    for r in records:
        d = to_record(r)
        d.pop("products", None)
        rows.append(d)
    return pd.DataFrame(rows)


def sales_frame(sales: Iterable[Any]) -> pd.DataFrame:
    rows = [
        {
            "id": s.id,
            "date": s.created_at,
            "customer": s.customer_name,
            "items": len(s.lines),
            "subtotal": round(s.subtotal, 2),
            "tax": round(s.tax, 2),
            "total": round(s.total, 2),
            "status": s.payment_status,
        }
        for s in sales
    ]
    return pd.DataFrame(rows, columns=["id", "date", "customer", "items", "subtotal", "tax", "total", "status"])


def statement_frame(statement: Statement) -> pd.DataFrame:
    rows = [
        {
            "date": e.sale.created_at,
            "invoice": e.sale.id,
            "amount": round(e.sale.total, 2),
            "status": e.sale.payment_status,
            "balance_before": round(e.balance_before, 2),
            "balance_after": round(e.balance_after, 2),
        }
        for e in statement.entries
    ]
    return pd.DataFrame(rows, columns=["date", "invoice", "amount", "status", "balance_before", "balance_after"])


def series_frame(buckets: Sequence[PeriodBucket]) -> pd.DataFrame:
    df = pd.DataFrame([asdict(b) for b in buckets])
    if df.empty:
        return df
    return df.set_index("label")


def line_editor_frame(products: Sequence[Product], price_field: str = "selling_price") -> pd.DataFrame:
    """Editable invoice grid, one row per product, indexed by product id."""
    return pd.DataFrame(
        {
            "Product": [f"{p.name} ({p.id})" for p in products],
            "Quantity": [0.0 for _ in products],
            "Price": [float(getattr(p, price_field)) for p in products],
        },
        index=pd.Index([p.id for p in products], name="product_id"),
    )


def selections_from_frame(df: pd.DataFrame) -> list[LineSelection]:
    out: list[LineSelection] = []
    for product_id, row in df.iterrows():
        qty = float(row["Quantity"])
        if qty > 0:
            out.append(LineSelection(product_id=str(product_id), quantity=qty, price=float(row["Price"])))
    return out


def to_csv_bytes(df: pd.DataFrame) -> bytes:
    return df.to_csv(index=False).encode("utf-8")


def backup_json(snapshot: dict[str, Any]) -> bytes:
    return json.dumps(snapshot, indent=2).encode("utf-8")
