"""Estimate pricing: subtotal, margin, tax and grand total roll-up.

Tax is charged on the subtotal *plus* margin::

    margin_amount = subtotal * margin / 100
    tax_amount = (subtotal + margin_amount) * tax / 100
    total = subtotal + margin_amount + tax_amount

Absent percentages count as zero. Negative inputs are accepted arithmetically
unless a stricter :data:`NegativeValuePolicy` is configured.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Iterable, Optional

from .errors import InvalidValue

if TYPE_CHECKING:
    from .models import Estimate, LineItem

ALLOW = "allow"
REJECT = "reject"
CLAMP = "clamp"

NEGATIVE_VALUE_POLICIES = (ALLOW, REJECT, CLAMP)


@dataclass(frozen=True)
class PriceBreakdown:
    """Totals panel for a single estimate."""

    subtotal: float
    margin_amount: float
    tax_amount: float
    total: float

    @property
    def markup(self) -> float:
        """Everything added on top of the subtotal."""
        return self.total - self.subtotal


def _pct(value: Optional[float]) -> float:
    return float(value) if value is not None else 0.0


def subtotal(items: Iterable["LineItem"]) -> float:
    return float(sum((item.amount for item in items), 0.0))


def price_breakdown(
    items: Iterable["LineItem"],
    margin_pct: Optional[float] = None,
    tax_pct: Optional[float] = None,
) -> PriceBreakdown:
    base = subtotal(items)
    margin_amount = base * (_pct(margin_pct) / 100)
    tax_amount = (base + margin_amount) * (_pct(tax_pct) / 100)
    return PriceBreakdown(
        subtotal=base,
        margin_amount=margin_amount,
        tax_amount=tax_amount,
        total=base + margin_amount + tax_amount,
    )


def grand_total(
    items: Iterable["LineItem"],
    margin_pct: Optional[float] = None,
    tax_pct: Optional[float] = None,
) -> float:
    return price_breakdown(items, margin_pct, tax_pct).total


def estimate_breakdown(estimate: "Estimate") -> PriceBreakdown:
    return price_breakdown(estimate.line_items, estimate.margin, estimate.tax)


def reprice(estimate: "Estimate") -> "Estimate":
    """Return ``estimate`` with ``total`` recomputed from its current inputs."""
    return replace(estimate, total=grand_total(estimate.line_items, estimate.margin, estimate.tax))


def check_value(name: str, value: Optional[float], policy: str = ALLOW) -> Optional[float]:
    """Apply the negative-value policy to a quantity, rate or percentage."""
    if policy not in NEGATIVE_VALUE_POLICIES:
        raise ValueError(f"Unknown negative value policy {policy!r}")
    if value is None or policy == ALLOW:
        return value
    if value < 0:
        if policy == REJECT:
            raise InvalidValue(f"{name} must not be negative (got {value})")
        return 0.0
    return value


__all__ = [
    "PriceBreakdown",
    "subtotal",
    "grand_total",
    "price_breakdown",
    "estimate_breakdown",
    "reprice",
    "check_value",
    "ALLOW",
    "REJECT",
    "CLAMP",
    "NEGATIVE_VALUE_POLICIES",
]
