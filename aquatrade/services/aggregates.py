"""
Derived values for the dashboard pages.

Everything here is a pure function over record sequences: no store access, no I/O.
Divisions go through safe_div so an empty period shows 0 instead of NaN/inf.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Iterable, Optional, Sequence

from aquatrade.models import Customer, Product, Purchase, Sale, PAYMENT_STATUSES
from aquatrade.utils import as_date, local_date, parse_ts, safe_div


# -------------------------
# Totals / predicates
# -------------------------

def revenue_total(sales: Iterable[Sale]) -> float:
    return sum(s.total for s in sales)


def purchases_total(purchases: Iterable[Purchase]) -> float:
    return sum(p.total for p in purchases)


def gross_profit(sales: Iterable[Sale], purchases: Iterable[Purchase]) -> float:
    return revenue_total(sales) - purchases_total(purchases)


def is_low_stock(product: Product) -> bool:
    # Inclusive: sitting exactly on the minimum is already low.
    return product.stock <= product.min_stock


def low_stock_products(products: Iterable[Product]) -> list[Product]:
    return [p for p in products if is_low_stock(p)]


def profit_margin(product: Product) -> float:
    return safe_div(product.selling_price - product.purchase_price, product.purchase_price) * 100.0


def collection_rate(collected: float, total_sales: float) -> float:
    return safe_div(collected, total_sales) * 100.0


def amount_by_status(sales: Iterable[Sale], status: str) -> float:
    return sum(s.total for s in sales if s.payment_status == status)


# -------------------------
# Date filters
# -------------------------

def same_local_day(ts: str, day: date | datetime | str) -> bool:
    """Same calendar date in the local time zone (not a 24h window)."""
    return local_date(ts) == as_date(day)


def sales_on_date(sales: Iterable[Sale], day: date | datetime | str) -> list[Sale]:
    target = as_date(day)
    return [s for s in sales if local_date(s.created_at) == target]


def sales_in_range(
    sales: Iterable[Sale],
    start: date | datetime | str,
    end: date | datetime | str,
) -> list[Sale]:
    lo, hi = as_date(start), as_date(end)
    return [s for s in sales if lo <= local_date(s.created_at) <= hi]


def filter_sales(
    sales: Iterable[Sale],
    *,
    start: Optional[date | str] = None,
    end: Optional[date | str] = None,
    search: str = "",
    status: str = "all",
) -> list[Sale]:
    """Sales register filter: date range, free-text search on customer/id, payment status."""
    if status != "all" and status not in PAYMENT_STATUSES:
        raise ValueError(f"Invalid status filter '{status}'.")

    needle = search.strip().lower()
    lo = as_date(start) if start is not None else None
    hi = as_date(end) if end is not None else None

    out: list[Sale] = []
    for s in sales:
        d = local_date(s.created_at)
        if lo is not None and d < lo:
            continue
        if hi is not None and d > hi:
            continue
        if needle and needle not in s.customer_name.lower() and needle not in s.id.lower():
            continue
        if status != "all" and s.payment_status != status:
            continue
        out.append(s)
    return out


# -------------------------
# Sales register / daily sheet
# -------------------------

@dataclass(frozen=True)
class RegisterTotals:
    count: int
    total: float
    subtotal: float
    tax: float
    average_order_value: float
    effective_tax_rate: float
    items_sold: float
    count_by_status: dict[str, int] = field(default_factory=dict)
    amount_by_status: dict[str, float] = field(default_factory=dict)


def register_totals(sales: Sequence[Sale]) -> RegisterTotals:
    total = revenue_total(sales)
    subtotal = sum(s.subtotal for s in sales)
    tax = sum(s.tax for s in sales)
    return RegisterTotals(
        count=len(sales),
        total=total,
        subtotal=subtotal,
        tax=tax,
        average_order_value=safe_div(total, len(sales)),
        effective_tax_rate=safe_div(tax, subtotal) * 100.0,
        items_sold=sum(l.quantity for s in sales for l in s.lines),
        count_by_status={st: sum(1 for s in sales if s.payment_status == st) for st in PAYMENT_STATUSES},
        amount_by_status={st: amount_by_status(sales, st) for st in PAYMENT_STATUSES},
    )


@dataclass(frozen=True)
class DailyCollection:
    day: date
    sales: tuple[Sale, ...]
    total_sales: float
    collected: float
    pending: float
    partial: float
    paid_count: int
    pending_count: int
    partial_count: int
    collection_rate: float


def daily_collection(sales: Iterable[Sale], day: date | datetime | str) -> DailyCollection:
    todays = sales_on_date(sales, day)
    total = revenue_total(todays)
    collected = amount_by_status(todays, "paid")
    return DailyCollection(
        day=as_date(day),
        sales=tuple(todays),
        total_sales=total,
        collected=collected,
        pending=amount_by_status(todays, "pending"),
        partial=amount_by_status(todays, "partial"),
        paid_count=sum(1 for s in todays if s.payment_status == "paid"),
        pending_count=sum(1 for s in todays if s.payment_status == "pending"),
        partial_count=sum(1 for s in todays if s.payment_status == "partial"),
        collection_rate=collection_rate(collected, total),
    )


# -------------------------
# Rankings
# -------------------------

@dataclass
class ProductPerformance:
    product_id: str
    name: str
    quantity: float = 0.0
    revenue: float = 0.0
    orders: int = 0


@dataclass
class CustomerPerformance:
    customer_id: str
    name: str
    orders: int = 0
    revenue: float = 0.0
    last_order: str = ""


def top_products(sales: Iterable[Sale], limit: Optional[int] = 10) -> list[ProductPerformance]:
    acc: dict[str, ProductPerformance] = {}
    order_ids: dict[str, set[str]] = {}
    for s in sales:
        for line in s.lines:
            perf = acc.get(line.product_id)
            if perf is None:
                perf = acc[line.product_id] = ProductPerformance(line.product_id, line.product_name)
                order_ids[line.product_id] = set()
            perf.quantity += line.quantity
            perf.revenue += line.total
            order_ids[line.product_id].add(s.id)

    for pid, perf in acc.items():
        perf.orders = len(order_ids[pid])

    # sorted() is stable: exact ties keep first-seen order.
    ranked = sorted(acc.values(), key=lambda p: p.revenue, reverse=True)
    return ranked if limit is None else ranked[:limit]


def top_customers(sales: Iterable[Sale], limit: Optional[int] = 10) -> list[CustomerPerformance]:
    acc: dict[str, CustomerPerformance] = {}
    for s in sales:
        perf = acc.get(s.customer_id)
        if perf is None:
            # Name as written on the first invoice seen for this customer.
            perf = acc[s.customer_id] = CustomerPerformance(s.customer_id, s.customer_name, last_order=s.created_at)
        perf.orders += 1
        perf.revenue += s.total
        if parse_ts(s.created_at) > parse_ts(perf.last_order):
            perf.last_order = s.created_at

    ranked = sorted(acc.values(), key=lambda c: c.revenue, reverse=True)
    return ranked if limit is None else ranked[:limit]


def category_breakdown(products: Iterable[Product], sales: Sequence[Sale]) -> dict[str, float]:
    """Revenue per product category; categories with no sales are dropped."""
    out: dict[str, float] = {}
    for p in products:
        revenue = 0.0
        for s in sales:
            line = next((l for l in s.lines if l.product_id == p.id), None)
            if line is not None:
                revenue += line.total
        out[p.category] = out.get(p.category, 0.0) + revenue
    return {k: v for k, v in out.items() if v > 0}


# -------------------------
# Time series
# -------------------------

VIEW_BUCKETS = {"monthly": 6, "weekly": 8, "daily": 7}


@dataclass(frozen=True)
class PeriodBucket:
    label: str
    start: date
    end: date  # inclusive
    sales: float
    transactions: int
    customers: int


def _month_start(d: date, back: int) -> date:
    idx = d.year * 12 + (d.month - 1) - back
    return date(idx // 12, idx % 12 + 1, 1)


def _month_end(first: date) -> date:
    return _month_start(first, -1) - timedelta(days=1)


def period_windows(view: str, now: datetime | date) -> list[tuple[str, date, date]]:
    """(label, first day, last day) per bucket, oldest first."""
    if view not in VIEW_BUCKETS:
        raise ValueError(f"Invalid view '{view}'. Use monthly, weekly or daily.")
    today = as_date(now)
    n = VIEW_BUCKETS[view]
    out: list[tuple[str, date, date]] = []
    for i in range(n - 1, -1, -1):
        if view == "monthly":
            first = _month_start(today, i)
            out.append((first.strftime("%b %y"), first, _month_end(first)))
        elif view == "weekly":
            anchor = today - timedelta(weeks=i)
            # Weeks start on Sunday.
            first = anchor - timedelta(days=(anchor.weekday() + 1) % 7)
            out.append((first.strftime("%d %b"), first, first + timedelta(days=6)))
        else:
            d = today - timedelta(days=i)
            out.append((d.strftime("%a"), d, d))
    return out


def time_series(sales: Sequence[Sale], view: str, now: datetime | date) -> list[PeriodBucket]:
    dated = [(local_date(s.created_at), s) for s in sales]
    buckets: list[PeriodBucket] = []
    for label, first, last in period_windows(view, now):
        inside = [s for d, s in dated if first <= d <= last]
        buckets.append(
            PeriodBucket(
                label=label,
                start=first,
                end=last,
                sales=revenue_total(inside),
                transactions=len(inside),
                customers=len({s.customer_id for s in inside}),
            )
        )
    return buckets


@dataclass(frozen=True)
class MonthlyProfit:
    label: str
    start: date
    sales: float
    purchases: float
    profit: float


def monthly_profit(
    sales: Sequence[Sale],
    purchases: Sequence[Purchase],
    now: datetime | date,
) -> list[MonthlyProfit]:
    out: list[MonthlyProfit] = []
    for _, first, last in period_windows("monthly", now):
        s_total = revenue_total(s for s in sales if first <= local_date(s.created_at) <= last)
        p_total = purchases_total(p for p in purchases if first <= local_date(p.created_at) <= last)
        out.append(
            MonthlyProfit(
                label=first.strftime("%b"),
                start=first,
                sales=s_total,
                purchases=p_total,
                profit=s_total - p_total,
            )
        )
    return out


# -------------------------
# Receivables / dashboard
# -------------------------

@dataclass(frozen=True)
class Receivable:
    customer: Customer
    total_sales: float
    outstanding: float
    unpaid_sales: tuple[Sale, ...]
    overdue: bool


def receivables(
    customers: Iterable[Customer],
    sales: Sequence[Sale],
    now: datetime,
    *,
    overdue_days: int = 30,
) -> list[Receivable]:
    """Customers with non-paid invoices; overdue when any is older than overdue_days."""
    cutoff = timedelta(days=overdue_days)
    if now.tzinfo is None:
        now = now.astimezone()
    out: list[Receivable] = []
    for c in customers:
        mine = [s for s in sales if s.customer_id == c.id]
        unpaid = [s for s in mine if s.payment_status != "paid"]
        outstanding = revenue_total(unpaid)
        if outstanding <= 0:
            continue
        out.append(
            Receivable(
                customer=c,
                total_sales=revenue_total(mine),
                outstanding=outstanding,
                unpaid_sales=tuple(unpaid),
                overdue=any(now - parse_ts(s.created_at) > cutoff for s in unpaid),
            )
        )
    return out


def receivables_total(rows: Iterable[Receivable]) -> float:
    return sum(r.outstanding for r in rows)


@dataclass(frozen=True)
class DashboardSummary:
    revenue: float
    purchases: float
    gross_profit: float
    customers: int
    products: int
    low_stock: int
    pending_payments: int
    recent_sales: tuple[Sale, ...]


def dashboard_summary(
    customers: Sequence[Customer],
    products: Sequence[Product],
    sales: Sequence[Sale],
    purchases: Sequence[Purchase],
    *,
    recent: int = 5,
) -> DashboardSummary:
    newest = sorted(sales, key=lambda s: parse_ts(s.created_at), reverse=True)[:recent]
    return DashboardSummary(
        revenue=revenue_total(sales),
        purchases=purchases_total(purchases),
        gross_profit=gross_profit(sales, purchases),
        customers=len(customers),
        products=len(products),
        low_stock=len(low_stock_products(products)),
        pending_payments=sum(1 for s in sales if s.payment_status == "pending"),
        recent_sales=tuple(newest),
    )
