from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional, Sequence

from aquatrade.models import LineItem, Product, Purchase, Sale, PAYMENT_STATUSES

if TYPE_CHECKING:
    from aquatrade.store import RecordStore

DEFAULT_TAX_RATE = 0.10


@dataclass
class LineSelection:
    product_id: str
    quantity: float
    price: Optional[float] = None  # None = product's list price


@dataclass(frozen=True)
class InvoiceTotals:
    subtotal: float
    tax: float
    total: float


def build_lines(
    products: Sequence[Product],
    selections: Sequence[LineSelection],
    *,
    price_field: str = "selling_price",
) -> tuple[LineItem, ...]:
    if not selections:
        raise ValueError("Add at least one product line.")

    by_id = {p.id: p for p in products}
    lines: list[LineItem] = []
    for sel in selections:
        product = by_id.get(sel.product_id)
        if product is None:
            raise ValueError(f"Product '{sel.product_id}' not found.")
        qty = float(sel.quantity)
        if qty <= 0:
            raise ValueError(f"Quantity for '{product.name}' must be > 0.")
        price = float(getattr(product, price_field)) if sel.price is None else float(sel.price)
        if price < 0:
            raise ValueError(f"Price for '{product.name}' must be >= 0.")
        lines.append(
            LineItem(
                product_id=product.id,
                product_name=product.name,
                quantity=qty,
                price=price,
                total=qty * price,
            )
        )
    return tuple(lines)


def price_invoice(lines: Sequence[LineItem], tax_rate: float = DEFAULT_TAX_RATE) -> InvoiceTotals:
    subtotal = sum(l.total for l in lines)
    tax = subtotal * float(tax_rate)
    return InvoiceTotals(subtotal=subtotal, tax=tax, total=subtotal + tax)


def _check_status(payment_status: str) -> None:
    if payment_status not in PAYMENT_STATUSES:
        raise ValueError(f"Invalid payment status '{payment_status}'.")


def record_sale(
    store: "RecordStore",
    *,
    customer_id: str,
    selections: Sequence[LineSelection],
    tax_rate: float = DEFAULT_TAX_RATE,
    payment_status: str = "pending",
) -> Sale:
    customer = store.get("customers", customer_id)
    if customer is None:
        raise ValueError("Select a customer first.")
    _check_status(payment_status)

    lines = build_lines(store.products, selections)
    totals = price_invoice(lines, tax_rate)
    return store.add_sale(
        customer_id=customer.id,
        customer_name=customer.name,
        lines=lines,
        subtotal=totals.subtotal,
        tax=totals.tax,
        total=totals.total,
        payment_status=payment_status,
    )


def record_purchase(
    store: "RecordStore",
    *,
    party_id: str,
    selections: Sequence[LineSelection],
    tax_rate: float = DEFAULT_TAX_RATE,
    payment_status: str = "pending",
) -> Purchase:
    party = store.get("parties", party_id)
    if party is None:
        raise ValueError("Select a party first.")
    _check_status(payment_status)

    lines = build_lines(store.products, selections, price_field="purchase_price")
    totals = price_invoice(lines, tax_rate)
    return store.add_purchase(
        party_id=party.id,
        party_name=party.name,
        lines=lines,
        subtotal=totals.subtotal,
        tax=totals.tax,
        total=totals.total,
        payment_status=payment_status,
    )
