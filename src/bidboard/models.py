from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timedelta, timezone
from typing import Mapping, Optional, Tuple

from .errors import InvalidStatus, InvalidValue
from .pricing import grand_total

DRAFT = "Draft"
SUBMITTED = "Submitted"
WON = "Won"
LOST = "Lost"

# Kanban column order.
STATUSES: Tuple[str, ...] = (DRAFT, SUBMITTED, WON, LOST)

CUSTOMER_TYPES: Tuple[str, ...] = ("Owner", "GC", "Developer")

UNKNOWN_CUSTOMER = "Unknown Client"
EXTRACTED_ITEM_NAME = "Extracted Item"

LINE_ITEM_FIELDS = frozenset({"name", "description", "qty", "rate"})


def new_item_id() -> str:
    return uuid.uuid4().hex[:9]


def new_estimate_id() -> str:
    return f"est-{uuid.uuid4().hex[:8]}"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _text(value: object | None, default: str) -> str:
    if value is None:
        return default
    text = str(value)
    return text if text.strip() else default


def _number(name: str, value: object | None, default: float) -> float:
    if value is None:
        return float(default)
    if isinstance(value, bool):
        raise InvalidValue(f"{name} must be numeric, got {value!r}")
    try:
        return float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        raise InvalidValue(f"{name} must be numeric, got {value!r}") from exc


@dataclass(frozen=True)
class Customer:
    """Client reference data; never mutated by the engine."""

    id: str
    name: str
    type: str
    email: Optional[str] = None
    phone: Optional[str] = None

    def __post_init__(self) -> None:
        if self.type not in CUSTOMER_TYPES:
            raise InvalidValue(f"Unknown customer type {self.type!r}")


@dataclass(frozen=True)
class LineItem:
    """One priced scope entry. ``amount`` is always ``qty * rate``."""

    id: str
    name: str
    description: str
    qty: float
    rate: float
    amount: float

    @classmethod
    def build(
        cls,
        name: object | None = None,
        description: object | None = None,
        qty: object | None = None,
        rate: object | None = None,
        *,
        item_id: Optional[str] = None,
        default_name: str = "",
    ) -> "LineItem":
        """Create an item, filling every absent field with its default.

        Defaults: fresh id, ``name`` -> ``default_name``, ``description`` -> "",
        ``qty`` -> 1, ``rate`` -> 0.
        """
        qty_value = _number("qty", qty, 1)
        rate_value = _number("rate", rate, 0)
        return cls(
            id=item_id or new_item_id(),
            name=_text(name, default_name),
            description=_text(description, ""),
            qty=qty_value,
            rate=rate_value,
            amount=qty_value * rate_value,
        )

    @classmethod
    def from_partial(cls, partial: Mapping[str, object] | None, *, default_name: str = "") -> "LineItem":
        data = partial or {}
        return cls.build(
            data.get("name"),
            data.get("description"),
            data.get("qty"),
            data.get("rate"),
            default_name=default_name,
        )

    def with_changes(self, fields: Mapping[str, object]) -> "LineItem":
        """Return a copy with ``fields`` applied and ``amount`` recomputed."""
        unknown = set(fields) - LINE_ITEM_FIELDS
        if unknown:
            raise InvalidValue(f"Line item fields cannot be edited: {', '.join(sorted(unknown))}")
        qty = _number("qty", fields["qty"], self.qty) if "qty" in fields else self.qty
        rate = _number("rate", fields["rate"], self.rate) if "rate" in fields else self.rate
        return replace(
            self,
            name=str(fields["name"]) if fields.get("name") is not None else self.name,
            description=(
                str(fields["description"]) if fields.get("description") is not None else self.description
            ),
            qty=qty,
            rate=rate,
            amount=qty * rate,
        )


@dataclass(frozen=True)
class Estimate:
    """A project bid snapshot. ``total`` is always derived from the line items."""

    id: str
    name: str
    customer_id: str
    location: str
    status: str
    total: float
    due_date: date
    memo: str = ""
    exclusions: str = ""
    line_items: Tuple[LineItem, ...] = field(default_factory=tuple)
    updated_at: datetime = field(default_factory=utc_now)
    margin: Optional[float] = None
    tax: Optional[float] = None

    @classmethod
    def create(
        cls,
        *,
        name: str,
        customer_id: str,
        location: str = "",
        status: str = DRAFT,
        due_date: date | None = None,
        memo: str = "",
        exclusions: str = "",
        line_items: Tuple[LineItem, ...] | list = (),
        updated_at: datetime | None = None,
        margin: Optional[float] = None,
        tax: Optional[float] = None,
        estimate_id: Optional[str] = None,
        due_in_days: int = 7,
    ) -> "Estimate":
        if status not in STATUSES:
            raise InvalidStatus(status)
        stamp = updated_at or utc_now()
        items = tuple(line_items)
        return cls(
            id=estimate_id or new_estimate_id(),
            name=name,
            customer_id=customer_id,
            location=location,
            status=status,
            total=grand_total(items, margin, tax),
            due_date=due_date or (stamp.date() + timedelta(days=due_in_days)),
            memo=memo,
            exclusions=exclusions,
            line_items=items,
            updated_at=stamp,
            margin=margin,
            tax=tax,
        )

    def find_item(self, item_id: str) -> Optional[LineItem]:
        for item in self.line_items:
            if item.id == item_id:
                return item
        return None


__all__ = [
    "Customer",
    "LineItem",
    "Estimate",
    "DRAFT",
    "SUBMITTED",
    "WON",
    "LOST",
    "STATUSES",
    "CUSTOMER_TYPES",
    "UNKNOWN_CUSTOMER",
    "EXTRACTED_ITEM_NAME",
    "LINE_ITEM_FIELDS",
    "new_item_id",
    "new_estimate_id",
    "utc_now",
]
