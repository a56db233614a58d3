from __future__ import annotations

import math
from dataclasses import dataclass, field, fields, replace
from typing import Any, Optional

PARTY_TYPES = ("supplier", "distributor")
PAYMENT_STATUSES = ("paid", "pending", "partial")
GRADES = ("A", "B", "C")
BOX_STATUSES = ("received", "sent", "in_stock")

TOLERANCE = 1e-9

# Optional FishBox references; "" in a FishBoxUpdate clears them.
LINK_FIELDS = ("supplier_id", "customer_id")


def _json(name: str) -> dict:
    return {"json": name}


def _check_choice(value: str, options: tuple[str, ...], label: str) -> None:
    if value not in options:
        raise ValueError(f"Invalid {label} '{value}'. Use one of: {', '.join(options)}.")


def _check_non_negative(value: float, label: str) -> None:
    if float(value) < 0:
        raise ValueError(f"{label} must be >= 0.")


@dataclass(frozen=True)
class Customer:
    id: str
    name: str
    email: str = ""
    phone: str = ""
    address: str = ""
    # positive = amount owed to the business
    balance: float = 0.0
    created_at: str = field(default="", metadata=_json("createdAt"))


@dataclass(frozen=True)
class Party:
    id: str
    name: str
    type: str = "supplier"
    contact: str = ""
    address: str = ""
    balance: float = 0.0
    created_at: str = field(default="", metadata=_json("createdAt"))

    def __post_init__(self) -> None:
        _check_choice(self.type, PARTY_TYPES, "party type")


@dataclass(frozen=True)
class Product:
    id: str
    name: str
    category: str = ""
    unit: str = "kg"
    purchase_price: float = field(default=0.0, metadata=_json("purchasePrice"))
    selling_price: float = field(default=0.0, metadata=_json("sellingPrice"))
    stock: float = 0.0
    min_stock: float = field(default=0.0, metadata=_json("minStock"))
    created_at: str = field(default="", metadata=_json("createdAt"))

    def __post_init__(self) -> None:
        _check_non_negative(self.stock, "Stock")
        _check_non_negative(self.min_stock, "Minimum stock")


@dataclass(frozen=True)
class LineItem:
    product_id: str = field(metadata=_json("productId"))
    # Snapshot of the product name when the invoice was written.
    product_name: str = field(metadata=_json("productName"))
    quantity: float
    price: float
    total: float

    def __post_init__(self) -> None:
        if not math.isclose(self.total, self.quantity * self.price, abs_tol=TOLERANCE):
            raise ValueError(f"Line total for '{self.product_name}' must equal quantity x price.")


def _check_invoice(lines: tuple[LineItem, ...], subtotal: float, tax: float, total: float) -> None:
    if not lines:
        raise ValueError("An invoice needs at least one product line.")
    if not math.isclose(subtotal, sum(l.total for l in lines), abs_tol=TOLERANCE):
        raise ValueError("Subtotal must equal the sum of line totals.")
    if not math.isclose(total, subtotal + tax, abs_tol=TOLERANCE):
        raise ValueError("Total must equal subtotal + tax.")


@dataclass(frozen=True)
class Sale:
    """
    An invoice to a customer.

    customer_name is captured when the sale is written and never refreshed: a later
    rename or delete of the customer leaves the historical invoice as it was.
    """

    id: str
    customer_id: str = field(metadata=_json("customerId"))
    customer_name: str = field(metadata=_json("customerName"))
    lines: tuple[LineItem, ...] = field(metadata=_json("products"))
    subtotal: float
    tax: float
    total: float
    payment_status: str = field(default="pending", metadata=_json("paymentStatus"))
    created_at: str = field(default="", metadata=_json("createdAt"))

    def __post_init__(self) -> None:
        _check_choice(self.payment_status, PAYMENT_STATUSES, "payment status")
        _check_invoice(self.lines, self.subtotal, self.tax, self.total)


@dataclass(frozen=True)
class Purchase:
    """A purchase order from a party; party_name is a creation-time snapshot."""

    id: str
    party_id: str = field(metadata=_json("partyId"))
    party_name: str = field(metadata=_json("partyName"))
    lines: tuple[LineItem, ...] = field(metadata=_json("products"))
    subtotal: float
    tax: float
    total: float
    payment_status: str = field(default="pending", metadata=_json("paymentStatus"))
    created_at: str = field(default="", metadata=_json("createdAt"))

    def __post_init__(self) -> None:
        _check_choice(self.payment_status, PAYMENT_STATUSES, "payment status")
        _check_invoice(self.lines, self.subtotal, self.tax, self.total)


@dataclass(frozen=True)
class FishBox:
    id: str
    box_number: str = field(metadata=_json("boxNumber"))
    fish_type: str = field(metadata=_json("fishType"))
    weight: float
    grade: str = "A"
    supplier_id: Optional[str] = field(default=None, metadata=_json("supplierId"))
    customer_id: Optional[str] = field(default=None, metadata=_json("customerId"))
    status: str = "received"
    date: str = ""

    def __post_init__(self) -> None:
        # An empty link is the same as no link.
        for name in LINK_FIELDS:
            if getattr(self, name) == "":
                object.__setattr__(self, name, None)
        _check_non_negative(self.weight, "Weight")
        _check_choice(self.grade, GRADES, "grade")
        _check_choice(self.status, BOX_STATUSES, "box status")


# -------------------------
# Partial updates
# -------------------------
# None means "leave unchanged".


@dataclass(frozen=True)
class CustomerUpdate:
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    balance: Optional[float] = None


@dataclass(frozen=True)
class PartyUpdate:
    name: Optional[str] = None
    type: Optional[str] = None
    contact: Optional[str] = None
    address: Optional[str] = None
    balance: Optional[float] = None


@dataclass(frozen=True)
class ProductUpdate:
    name: Optional[str] = None
    category: Optional[str] = None
    unit: Optional[str] = None
    purchase_price: Optional[float] = None
    selling_price: Optional[float] = None
    stock: Optional[float] = None
    min_stock: Optional[float] = None


@dataclass(frozen=True)
class SaleUpdate:
    payment_status: Optional[str] = None


@dataclass(frozen=True)
class PurchaseUpdate:
    payment_status: Optional[str] = None


@dataclass(frozen=True)
class FishBoxUpdate:
    """None leaves a field unchanged; an empty supplier_id/customer_id clears the link."""

    box_number: Optional[str] = None
    fish_type: Optional[str] = None
    weight: Optional[float] = None
    grade: Optional[str] = None
    supplier_id: Optional[str] = None
    customer_id: Optional[str] = None
    status: Optional[str] = None
    date: Optional[str] = None


def changes(update: Any) -> dict[str, Any]:
    return {f.name: getattr(update, f.name) for f in fields(update) if getattr(update, f.name) is not None}


def merge(record: Any, update: Any) -> Any:
    """Shallow merge of the set fields of ``update`` over ``record`` (id/created_at kept)."""
    return replace(record, **changes(update))


# -------------------------
# JSON mapping
# -------------------------

_NESTED: dict[type, dict[str, type]] = {
    Sale: {"lines": LineItem},
    Purchase: {"lines": LineItem},
}


def _json_name(f) -> str:
    return f.metadata.get("json", f.name)


def to_record(obj: Any) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for f in fields(obj):
        value = getattr(obj, f.name)
        if isinstance(value, tuple):
            value = [to_record(v) for v in value]
        if value is None and f.name in LINK_FIELDS and isinstance(obj, FishBox):
            continue
        out[_json_name(f)] = value
    return out


def from_record(cls: type, data: dict[str, Any]) -> Any:
    nested = _NESTED.get(cls, {})
    kwargs: dict[str, Any] = {}
    for f in fields(cls):
        key = _json_name(f)
        if key not in data:
            continue
        value = data[key]
        if f.name in nested:
            value = tuple(from_record(nested[f.name], v) for v in value or [])
        kwargs[f.name] = value
    return cls(**kwargs)
