from __future__ import annotations

from datetime import date, datetime
from typing import TYPE_CHECKING, Iterable, Optional

from aquatrade.models import FishBox, FishBoxUpdate, GRADES
from aquatrade.utils import as_date, iso_today

if TYPE_CHECKING:
    from aquatrade.store import RecordStore

# in_stock is treated the same as received everywhere.
ON_HAND = ("received", "in_stock")


def receive_box(
    store: "RecordStore",
    *,
    box_number: str,
    fish_type: str,
    weight: float,
    grade: str = "A",
    supplier_id: Optional[str] = None,
    day: Optional[str] = None,
) -> FishBox:
    if not str(box_number).strip():
        raise ValueError("Box number is required.")
    return store.add_fish_box(
        box_number=str(box_number).strip(),
        fish_type=fish_type,
        weight=weight,
        grade=grade,
        status="received",
        supplier_id=supplier_id,
        date=day or iso_today(),
    )


def send_new_box(
    store: "RecordStore",
    *,
    box_number: str,
    fish_type: str,
    weight: float,
    grade: str = "A",
    customer_id: Optional[str] = None,
    day: Optional[str] = None,
) -> FishBox:
    if not str(box_number).strip():
        raise ValueError("Box number is required.")
    return store.add_fish_box(
        box_number=str(box_number).strip(),
        fish_type=fish_type,
        weight=weight,
        grade=grade,
        status="sent",
        customer_id=customer_id,
        date=day or iso_today(),
    )


def ship_box(store: "RecordStore", box_id: str, customer_id: str, *, day: Optional[str] = None) -> Optional[FishBox]:
    """received/in_stock -> sent. Unknown box is a no-op (None); a sent box cannot ship twice."""
    box = store.get("fishboxes", box_id)
    if box is None:
        return None
    if box.status not in ON_HAND:
        raise ValueError(f"Box {box.box_number} was already sent.")
    return store.update_fish_box(
        box_id,
        FishBoxUpdate(customer_id=customer_id, status="sent", date=day or iso_today()),
    )


def edit_box(
    store: "RecordStore",
    box_id: str,
    *,
    box_number: str,
    fish_type: str,
    weight: float,
    grade: str,
    supplier_id: Optional[str] = None,
    day: Optional[str] = None,
) -> Optional[FishBox]:
    """Correct a box still on hand. supplier_id None removes the supplier link."""
    box = store.get("fishboxes", box_id)
    if box is None:
        return None
    if box.status not in ON_HAND:
        raise ValueError(f"Box {box.box_number} was already sent; it can no longer be edited.")
    if not str(box_number).strip():
        raise ValueError("Box number is required.")
    return store.update_fish_box(
        box_id,
        FishBoxUpdate(
            box_number=str(box_number).strip(),
            fish_type=fish_type,
            weight=float(weight),
            grade=grade,
            supplier_id=supplier_id or "",
            date=day,
        ),
    )


def received_boxes(boxes: Iterable[FishBox]) -> list[FishBox]:
    return [b for b in boxes if b.status in ON_HAND]


def sent_boxes(boxes: Iterable[FishBox]) -> list[FishBox]:
    return [b for b in boxes if b.status == "sent"]


def total_weight(boxes: Iterable[FishBox]) -> float:
    return sum(b.weight for b in boxes)


def grade_distribution(boxes: Iterable[FishBox]) -> dict[str, int]:
    out = {g: 0 for g in GRADES}
    for b in boxes:
        out[b.grade] += 1
    return out


def boxes_on(boxes: Iterable[FishBox], day: date | datetime | str) -> list[FishBox]:
    target = as_date(day)
    return [b for b in boxes if b.date and as_date(b.date) == target]
