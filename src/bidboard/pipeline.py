"""Estimate status and field edits.

Statuses form a flat set: any status may be reassigned to any other, since the
table dropdown, the kanban board and the builder form all write the status
directly. Only values outside the set are refused.
"""
from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from .errors import InvalidStatus, InvalidValue
from .models import STATUSES, Customer, Estimate
from .pricing import ALLOW, check_value, reprice

LOGGER = logging.getLogger(__name__)

EDITABLE_FIELDS = frozenset(
    {"name", "customer_id", "location", "due_date", "memo", "exclusions", "margin", "tax", "status"}
)
_DERIVED_FIELDS = frozenset({"id", "total", "line_items", "updated_at"})


def coerce_status(value: object) -> str:
    if isinstance(value, str):
        for status in STATUSES:
            if value.strip().lower() == status.lower():
                return status
    raise InvalidStatus(value)


def touch(estimate: Estimate, now: datetime) -> Estimate:
    """Stamp ``updated_at`` without ever moving it backwards."""
    return replace(estimate, updated_at=max(estimate.updated_at, now))


def set_status(estimate: Estimate, status: object, *, now: datetime) -> Estimate:
    return touch(replace(estimate, status=coerce_status(status)), now)


def _to_date(value: object) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip())
    except ValueError as exc:
        raise InvalidValue(f"due_date must be an ISO date, got {value!r}") from exc


def _to_pct(name: str, value: object, policy: str) -> Optional[float]:
    if value is None:
        return None
    if isinstance(value, bool):
        raise InvalidValue(f"{name} must be numeric, got {value!r}")
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        raise InvalidValue(f"{name} must be numeric, got {value!r}") from exc
    return check_value(name, number, policy)


def set_estimate_fields(
    estimate: Estimate,
    fields: Mapping[str, object],
    *,
    now: datetime,
    policy: str = ALLOW,
) -> Estimate:
    """Apply builder-form edits, then reprice and stamp the estimate."""
    derived = set(fields) & _DERIVED_FIELDS
    if derived:
        raise InvalidValue(f"Derived fields cannot be assigned: {', '.join(sorted(derived))}")
    unknown = set(fields) - EDITABLE_FIELDS
    if unknown:
        raise InvalidValue(f"Unknown estimate fields: {', '.join(sorted(unknown))}")

    changes: Dict[str, object] = {}
    for key, value in fields.items():
        if key == "status":
            changes[key] = coerce_status(value)
        elif key == "due_date":
            changes[key] = _to_date(value)
        elif key in ("margin", "tax"):
            changes[key] = _to_pct(key, value, policy)
        else:
            changes[key] = "" if value is None else str(value)
    LOGGER.debug("Editing %s fields on estimate %s", ", ".join(sorted(changes)), estimate.id)
    return touch(reprice(replace(estimate, **changes)), now)


def group_by_status(estimates: Iterable[Estimate]) -> Dict[str, List[Estimate]]:
    """Kanban columns in pipeline order; every status is present."""
    columns: Dict[str, List[Estimate]] = {status: [] for status in STATUSES}
    for estimate in estimates:
        columns.setdefault(estimate.status, []).append(estimate)
    return columns


def search(
    estimates: Iterable[Estimate],
    query: str,
    customers: Sequence[Customer] = (),
) -> List[Estimate]:
    """Filter by estimate name or customer name (case-insensitive)."""
    needle = query.strip().lower()
    if not needle:
        return list(estimates)
    names = {customer.id: customer.name.lower() for customer in customers}
    matches = []
    for estimate in estimates:
        if needle in estimate.name.lower() or needle in names.get(estimate.customer_id, ""):
            matches.append(estimate)
    return matches


__all__ = [
    "EDITABLE_FIELDS",
    "coerce_status",
    "touch",
    "set_status",
    "set_estimate_fields",
    "group_by_status",
    "search",
]
