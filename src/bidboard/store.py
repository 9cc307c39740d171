"""In-memory estimate store: the single source of truth for estimate snapshots.

Each operation reads the latest snapshot for an id, derives the next one with
the pure functions in :mod:`bidboard.line_items` and :mod:`bidboard.pipeline`,
and publishes it with one assignment. Readers therefore only ever see whole
snapshots. The store is an ordinary object handed to whoever needs it; there
is no module-level instance.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence

from . import line_items as items_ops
from . import pipeline
from .config import Config
from .errors import NotFound
from .models import DRAFT, Customer, Estimate, utc_now

LOGGER = logging.getLogger(__name__)

Clock = Callable[[], datetime]


class EstimateStore:
    """Holds one snapshot per estimate id plus the customer reference list."""

    def __init__(
        self,
        customers: Iterable[Customer] = (),
        estimates: Iterable[Estimate] = (),
        *,
        clock: Optional[Clock] = None,
        config: Optional[Config] = None,
    ) -> None:
        self.config = config or Config()
        self._clock = clock or utc_now
        self._customers: Dict[str, Customer] = {customer.id: customer for customer in customers}
        self._estimates: Dict[str, Estimate] = {}
        # Display order: newest-created first.
        self._order: List[str] = []
        for estimate in estimates:
            self._estimates[estimate.id] = estimate
            self._order.append(estimate.id)

    def __len__(self) -> int:
        return len(self._estimates)

    def __contains__(self, estimate_id: object) -> bool:
        return estimate_id in self._estimates

    @property
    def customers(self) -> List[Customer]:
        return list(self._customers.values())

    def customer_for(self, estimate: Estimate) -> Optional[Customer]:
        return self._customers.get(estimate.customer_id)

    def get(self, estimate_id: str) -> Optional[Estimate]:
        return self._estimates.get(estimate_id)

    def list(self) -> List[Estimate]:
        return [self._estimates[estimate_id] for estimate_id in self._order]

    def _now(self) -> datetime:
        return self._clock()

    def _current(self, estimate_id: str) -> Optional[Estimate]:
        estimate = self._estimates.get(estimate_id)
        if estimate is None:
            if self.config.strict_lookups:
                raise NotFound("estimate", estimate_id)
            LOGGER.warning("Estimate %s not found; edit ignored", estimate_id)
        return estimate

    def _publish(self, estimate: Estimate) -> Estimate:
        self._estimates[estimate.id] = estimate
        return estimate

    def _apply(self, estimate_id: str, edit: Callable[[Estimate], Estimate]) -> Optional[Estimate]:
        current = self._current(estimate_id)
        if current is None:
            return None
        updated = edit(current)
        if updated is current:
            return current
        return self._publish(updated)

    def create_estimate(self, customer_id: Optional[str] = None) -> Estimate:
        """Start a Draft bid with no line items and the configured margin and tax."""
        cfg = self.config
        if customer_id is None:
            customer_id = next(iter(self._customers), "")
        estimate = Estimate.create(
            name=cfg.default_name,
            customer_id=customer_id,
            location=cfg.default_location,
            status=DRAFT,
            updated_at=self._now(),
            margin=cfg.default_margin,
            tax=cfg.default_tax,
            due_in_days=cfg.due_in_days,
        )
        self._publish(estimate)
        self._order.insert(0, estimate.id)
        LOGGER.info("Created estimate %s for customer %s", estimate.id, customer_id or "<none>")
        return estimate

    def add_line_item(self, estimate_id: str, partial: Optional[Mapping[str, object]] = None) -> Optional[Estimate]:
        return self._apply(
            estimate_id,
            lambda est: items_ops.add_line_item(
                est, partial, now=self._now(), policy=self.config.negative_values
            ),
        )

    def update_line_item(
        self, estimate_id: str, item_id: str, fields: Mapping[str, object]
    ) -> Optional[Estimate]:
        return self._apply(
            estimate_id,
            lambda est: items_ops.update_line_item(
                est,
                item_id,
                fields,
                now=self._now(),
                policy=self.config.negative_values,
                strict=self.config.strict_lookups,
            ),
        )

    def remove_line_item(self, estimate_id: str, item_id: str) -> Optional[Estimate]:
        return self._apply(
            estimate_id,
            lambda est: items_ops.remove_line_item(
                est, item_id, now=self._now(), strict=self.config.strict_lookups
            ),
        )

    def bulk_import(self, estimate_id: str, items: Sequence[Mapping[str, object]]) -> Optional[Estimate]:
        updated = self._apply(
            estimate_id,
            lambda est: items_ops.bulk_import(
                est, items, now=self._now(), policy=self.config.negative_values
            ),
        )
        if updated is not None:
            LOGGER.info("Imported %d line item(s) into estimate %s", len(items), estimate_id)
        return updated

    def add_suggested_item(self, estimate_id: str, suggestion) -> Optional[Estimate]:
        return self._apply(
            estimate_id,
            lambda est: items_ops.add_suggested_item(
                est, suggestion, now=self._now(), policy=self.config.negative_values
            ),
        )

    def set_status(self, estimate_id: str, status: str) -> Optional[Estimate]:
        status = pipeline.coerce_status(status)
        updated = self._apply(estimate_id, lambda est: pipeline.set_status(est, status, now=self._now()))
        if updated is not None:
            LOGGER.info("Estimate %s moved to %s", estimate_id, status)
        return updated

    def set_estimate_fields(self, estimate_id: str, fields: Mapping[str, object]) -> Optional[Estimate]:
        return self._apply(
            estimate_id,
            lambda est: pipeline.set_estimate_fields(
                est, fields, now=self._now(), policy=self.config.negative_values
            ),
        )


__all__ = ["EstimateStore", "Clock"]
