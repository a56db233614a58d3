from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable, Optional

from aquatrade.models import Customer, Sale
from aquatrade.services.aggregates import amount_by_status, revenue_total, sales_in_range
from aquatrade.utils import as_date, parse_ts


@dataclass(frozen=True)
class StatementEntry:
    sale: Sale
    balance_before: float
    balance_after: float


@dataclass(frozen=True)
class Statement:
    customer: Optional[Customer]
    start: date
    end: date
    entries: tuple[StatementEntry, ...]  # oldest first
    total_sales: float
    paid: float
    pending: float
    partial: float


def running_balance(baseline: float, sales_newest_first: Iterable[Sale]) -> list[StatementEntry]:
    """
    Fold invoices into before/after balances, walking newest -> oldest.

    NOTE: the stored balance is attached to the *newest* invoice and grows towards the
    oldest one. The trail is internally consistent but not anchored at the start of the
    period. Statements have always been displayed this way, so it is kept as-is.
    Paid invoices leave the balance unchanged.
    """
    entries: list[StatementEntry] = []
    balance = float(baseline)
    for s in sales_newest_first:
        after = balance + (0.0 if s.payment_status == "paid" else s.total)
        entries.append(StatementEntry(sale=s, balance_before=balance, balance_after=after))
        balance = after
    return entries


def customer_statement(
    customer: Optional[Customer],
    sales: Iterable[Sale],
    start: date | datetime | str,
    end: date | datetime | str,
) -> Statement:
    """
    Account statement for one customer over an inclusive calendar-date range.
    Entries come back oldest first with running balances from running_balance().
    """
    lo, hi = as_date(start), as_date(end)
    if customer is None:
        return Statement(None, lo, hi, (), 0.0, 0.0, 0.0, 0.0)

    mine = [s for s in sales if s.customer_id == customer.id]
    in_range = sales_in_range(mine, lo, hi)
    newest_first = sorted(in_range, key=lambda s: parse_ts(s.created_at), reverse=True)

    entries = running_balance(customer.balance, newest_first)
    entries.reverse()

    return Statement(
        customer=customer,
        start=lo,
        end=hi,
        entries=tuple(entries),
        total_sales=revenue_total(in_range),
        paid=amount_by_status(in_range, "paid"),
        pending=amount_by_status(in_range, "pending"),
        partial=amount_by_status(in_range, "partial"),
    )
