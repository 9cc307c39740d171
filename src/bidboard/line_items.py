"""Line item edits, each producing a new estimate snapshot.

Every function returns a repriced, freshly stamped estimate. An unknown
``item_id`` leaves the snapshot untouched (``updated_at`` included) unless
``strict`` is set, in which case :class:`~bidboard.errors.NotFound` is raised.
"""
from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import TYPE_CHECKING, Iterable, Mapping, Optional

from .errors import NotFound
from .models import EXTRACTED_ITEM_NAME, Estimate, LineItem
from .pipeline import touch
from .pricing import ALLOW, check_value, reprice

if TYPE_CHECKING:
    from .assist.results import SuggestedItem

LOGGER = logging.getLogger(__name__)


def _apply_policy(item: LineItem, policy: str) -> LineItem:
    qty = check_value("qty", item.qty, policy)
    rate = check_value("rate", item.rate, policy)
    if qty == item.qty and rate == item.rate:
        return item
    return replace(item, qty=qty, rate=rate, amount=qty * rate)


def _publish(estimate: Estimate, items: Iterable[LineItem], now: datetime) -> Estimate:
    return touch(reprice(replace(estimate, line_items=tuple(items))), now)


def _missing(estimate: Estimate, item_id: str, strict: bool) -> Estimate:
    if strict:
        raise NotFound("line item", item_id)
    LOGGER.warning("Line item %s not found on estimate %s; edit ignored", item_id, estimate.id)
    return estimate


def add_line_item(
    estimate: Estimate,
    partial: Optional[Mapping[str, object]] = None,
    *,
    now: datetime,
    policy: str = ALLOW,
) -> Estimate:
    item = _apply_policy(LineItem.from_partial(partial), policy)
    return _publish(estimate, (*estimate.line_items, item), now)


def update_line_item(
    estimate: Estimate,
    item_id: str,
    fields: Mapping[str, object],
    *,
    now: datetime,
    policy: str = ALLOW,
    strict: bool = False,
) -> Estimate:
    """Apply ``fields`` to one item; editing qty keeps the current rate and vice versa."""
    if estimate.find_item(item_id) is None:
        return _missing(estimate, item_id, strict)
    items = [
        _apply_policy(item.with_changes(fields), policy) if item.id == item_id else item
        for item in estimate.line_items
    ]
    return _publish(estimate, items, now)


def remove_line_item(
    estimate: Estimate,
    item_id: str,
    *,
    now: datetime,
    strict: bool = False,
) -> Estimate:
    if estimate.find_item(item_id) is None:
        return _missing(estimate, item_id, strict)
    return _publish(estimate, (item for item in estimate.line_items if item.id != item_id), now)


def bulk_import(
    estimate: Estimate,
    partials: Iterable[Mapping[str, object]],
    *,
    now: datetime,
    policy: str = ALLOW,
) -> Estimate:
    """Append extracted items in order as one update (one reprice, one stamp)."""
    imported = [
        _apply_policy(LineItem.from_partial(partial, default_name=EXTRACTED_ITEM_NAME), policy)
        for partial in partials
    ]
    if not imported:
        return estimate
    return _publish(estimate, (*estimate.line_items, *imported), now)


def add_suggested_item(
    estimate: Estimate,
    suggestion: "SuggestedItem",
    *,
    now: datetime,
    policy: str = ALLOW,
) -> Estimate:
    return add_line_item(
        estimate,
        {
            "name": suggestion.name,
            "description": suggestion.description,
            "qty": suggestion.suggested_qty,
            "rate": suggestion.suggested_rate,
        },
        now=now,
        policy=policy,
    )


__all__ = [
    "add_line_item",
    "update_line_item",
    "remove_line_item",
    "bulk_import",
    "add_suggested_item",
]
